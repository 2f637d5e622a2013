"""Handles interactive/command-line mode for the minilang interpreter. Uses cmd as backend, and readline (when the
platform has it) for line editing and a history file that persists across runs.
"""

import cmd

try:
    import readline
except ImportError:  # e.g. windows without pyreadline: no history, everything else works
    readline = None


class Shell(cmd.Cmd):
    """minilang interpreter shell."""
    intro = "minilang interpreter :: Python backend\nType 'help' for more information, 'exit' or Ctrl-D to leave."
    prompt = ">> "

    def __init__(self, sess, history_path="history.txt", *args, **kwargs):
        super().__init__(*args, **kwargs)

        self.sess = sess
        self.history_path = history_path
        self.line_num = 0

    def preloop(self):
        """Loads the history file. A missing or unreadable file is only worth a warning."""
        if readline is None or not self.history_path:
            return
        try:
            readline.read_history_file(self.history_path)
        except OSError:
            self.sess.error_handler.warn("No previous history.", diagnosis=False)

    def postloop(self):
        """Saves the history file."""
        if readline is None or not self.history_path:
            return
        try:
            readline.write_history_file(self.history_path)
        except OSError as e:
            self.sess.error_handler.warn("could not save history to '{}': {}", [self.history_path, str(e)],
                                         diagnosis=False)

    def cmdloop(self, intro=None):
        """Runs the prompt loop. Ctrl-C at the prompt leaves the shell (history is still saved)."""
        try:
            super().cmdloop(intro)
        except KeyboardInterrupt:
            print("\nCTRL-C")
            self.postloop()

    def default(self, line):
        """Executes arbitrary minilang statements."""
        with self.sess.error_handler:  # needed because cmd.Cmd automatically exits on Exception
            self.line_num += 1
            self.sess.add(line, self.line_num)
            self.sess.run()

    def _as_source(self, arg):
        """Commands double as identifiers: 'exit = 1' is a statement, not the exit command."""
        if arg:
            self.default(self.lastcmd)
            return True
        return False

    def do_help(self, arg):
        """Doesnt return docs, but rather a short intro."""
        if self._as_source(arg):
            return
        print("Welcome to the minilang interpreter!\n\n"
              "Every line is one or more ';'-separated statements. Numbers are floats, and the logical operators\n"
              "|| && == != < > produce booleans. Variables and functions persist from line to line.\n\n"
              "Try it out by typing 'fn sq(x) { x*x; }' and then 'sq(3)'. Loops and branches take their body in\n"
              "braces: 'i = 0; while i < 3 { i = i + 1; }'. Note that a condition is also true when it is the\n"
              "number 0.")

    def emptyline(self):
        """Do not repeat previous command on empty line."""
        return ""

    def do_EOF(self, arg):
        """Exits interpreter."""
        print("\nCTRL-D")
        return True

    def do_exit(self, arg):
        """Exits interpreter."""
        if self._as_source(arg):
            return False
        return True
