"""Session control for the minilang interpreter. A Session owns the environment that persists across lines, parses
each line into statements and evaluates them, either in command-line mode or file interpretation mode.
"""

from minilang.core.node import Environment
from minilang.core.parser import program
from minilang.lang.error import GenericException


class Session:
    """Governs a minilang session: one Environment shared by every line that is run."""
    SH_FILE = "<in>"  # command-line interpreter filename

    def __init__(self, error_handler, path=SH_FILE, cmd_line=True):
        self.error_handler = error_handler
        self.error_handler.watch(path)

        self.path = path          # used for error messages
        self.cmd_line = cmd_line  # whether or not in command-line mode

        self.environment = Environment()
        self.pending = []   # (node, line, line_num) parsed by add, waiting for run

        if self.cmd_line:
            self.error_handler.fatal = False
        elif path == Session.SH_FILE:
            raise GenericException("'<in>' is a reserved filename")

    def run_file(self):
        """Runs every non-empty line of self.path in order, as if it had been typed into the shell."""
        try:
            with open(self.path, "r", encoding="utf-8") as file:
                lines = file.read().splitlines()
        except OSError:
            raise GenericException("'{}' could not be opened", self.path, diagnosis=False)

        for line_num, line in enumerate(lines, start=1):
            if line.strip():
                self.add(line, line_num)
                self.run()

    def add(self, line, line_num):
        """Parses line and queues its statements for run. If only part of the line parses, nothing is queued: the
        parsed statements are reported along with the unparsed remainder, and the incomplete statements are returned.
        Raises ParseError if nothing parses at all.
        """
        self.error_handler.locate(self.path, line, line_num)

        remainder, nodes = program(line)
        if remainder:
            unparsed = remainder.decode("utf-8", errors="replace")
            start = len(line) - len(unparsed)
            for node in nodes:
                print(f"Line: {node!r}")
            msg = "parsing incomplete, '{1}' left unparsed"
            self.error_handler.warn(msg, [line, unparsed], start=start)
            self.error_handler.release(self.path)
            return nodes

        self.pending.extend((node, line, line_num) for node in nodes)
        self.error_handler.release(self.path)
        return []

    def run(self):
        """Evaluates queued statements in order against the session environment. Each statement is independent: if one
        raises, everything evaluated before it stays in effect and the statements after it are dropped.
        """
        pending, self.pending = self.pending, []
        for node, line, line_num in pending:
            self.error_handler.locate(self.path, line, line_num)

            value = node.evaluate(self.environment)
            print(f"Line: {node!r}")
            print(f"Evaluated: {value!r}")

            self.error_handler.release(self.path)
