"""Runs minilang scripts or the interactive shell. Installed as the `minilang` console script.

Usage:
    minilang [--history PATH] [--recursion-limit N]   ; interactive shell
    minilang [--recursion-limit N] FILE               ; run FILE line by line, stop at the first error
"""

import argparse
import sys

from minilang.lang.error import ErrorHandler
from minilang.lang.session import Session
from minilang.lang.shell import Shell


DEFAULT_HISTORY = "history.txt"
DEFAULT_RECURSION_LIMIT = 10000


def parse_args(argv=None):
    parser = argparse.ArgumentParser(prog="minilang", description="minilang interpreter")
    parser.add_argument("file", help="file to interpret and run (if empty, goes to command-line mode)", nargs="?")
    parser.add_argument("--history", default=DEFAULT_HISTORY, metavar="PATH",
                        help=f"shell history file, loaded at start and saved at exit (default: {DEFAULT_HISTORY})")
    parser.add_argument("--recursion-limit", type=int, default=DEFAULT_RECURSION_LIMIT, metavar="N",
                        help="python recursion limit; bounds how deeply scripts may nest and recurse "
                             f"(default: {DEFAULT_RECURSION_LIMIT})")
    return parser.parse_args(argv)


def main(argv=None):
    """Runs minilang interpreter. Called from the minilang console script."""
    args = parse_args(argv)
    sys.setrecursionlimit(max(args.recursion_limit, 100))

    with ErrorHandler() as error_handler:
        if args.file is not None:
            Session(error_handler, args.file, cmd_line=False).run_file()
        else:
            Shell(Session(error_handler, Session.SH_FILE, cmd_line=True), args.history).cmdloop()


if __name__ == "__main__":
    main()
