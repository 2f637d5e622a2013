"""Errors and error reporting for the minilang interpreter.

Two kinds of GenericException are raised while a line is handled: ParseError from the parser and EvaluationError from
the evaluator. ErrorHandler turns them into coloured `error:`/`warning:` reports. Any other exception that reaches it is
reported as an internal error and re-raised.
"""

import sys

from termcolor import colored


class GenericException(Exception):
    """A reportable minilang error. msg is a format string whose fields are filled with exprs (bolded); exprs[0] is
    the source line the error is about, and start/end give the span of it that the caret diagnosis points at.
    """

    def __init__(self, msg, exprs=None, start=0, end=-1, diagnosis=True, internal=False):
        if isinstance(exprs, str):
            exprs = [exprs]
        exprs = list(exprs) if exprs else [""]

        self.msg = msg.format(*(colored(expr, attrs=["bold"]) for expr in exprs))
        self.expr = exprs[0]
        self.start = start
        self.end = len(self.expr) if end == -1 else end

        self.diagnosis = diagnosis
        self.internal = internal
        super().__init__(self.msg)

    @property
    def showable(self):
        """Whether a caret diagnosis can be drawn under self.expr."""
        return self.diagnosis and not self.internal and bool(self.expr)


class ParseError(GenericException):
    """Raised by the parser when a grammar rule cannot match. position is the byte offset into the parsed input,
    column the same offset counted in characters of the decoded line, and kind names what was expected there ('tag',
    'identifier', 'expression', ...).
    """

    def __init__(self, kind, position, data, expected=None):
        self.kind = kind
        self.position = position
        self.expected = expected

        if isinstance(data, bytes):
            line = data.decode("utf-8", errors="replace")
            column = len(data[:position].decode("utf-8", errors="replace"))
        else:
            line, column = data, position
        self.column = column

        found = line[column:column + 1] or "end of input"
        wanted = (f"'{expected}'" if expected else kind).replace("{", "{{").replace("}", "}}")

        super().__init__(f"expected {wanted} at column {column}, found '{{1}}'", [line, found],
                         start=column, end=column + 1)

    def __repr__(self):
        return f"ParseError(kind='{self.kind}', position={self.position})"


class EvaluationError(GenericException):
    """Raised by the evaluator: undefined variable/function, arity mismatch, or operand type mismatch."""

    def __init__(self, msg, *exprs):
        super().__init__(msg, exprs, diagnosis=False)


class ErrorHandler:
    """Context manager around the handling of one line. Reports minilang errors instead of letting them propagate, and
    exits the process on the first one when fatal.

    Sessions tell the handler which line of which file is being handled (locate/release), so that reports can say
    where they came from.
    """
    ERROR = "red"
    WARNING = "magenta"

    def __init__(self, fatal=True):
        self.fatal = fatal
        self.locations = {}  # path -> (line, line_num), or (None, None) between lines

    def watch(self, path):
        self.locations[path] = (None, None)

    def locate(self, path, line, line_num):
        """Marks line as the one being handled in path. Call before parsing or evaluating it."""
        self.locations[path] = (line, line_num)

    def release(self, path):
        """Marks path as idle again once its line has been handled."""
        self.locations[path] = (None, None)

    def active(self):
        """(path, line, line_num) for every path that is in the middle of a line, in registration order."""
        return [(path, line, line_num) for path, (line, line_num) in self.locations.items() if line is not None]

    @staticmethod
    def highlight(error, color=ERROR):
        """Two-line diagnosis: error.expr with the offending span coloured, and a caret underneath it."""
        start, expr = error.start, error.expr
        end = max(error.end, start + 1)

        source = expr[:start] + colored(expr[start:end], color, attrs=["bold"]) + expr[end:]
        caret = " " * start + colored("^" + "~" * (end - start - 1), color, attrs=["bold"])
        return f"  {source}\n  {caret}"

    def warn(self, *args, **kwargs):
        """Prints a warning built from args (same signature as GenericException). Never stops anything."""
        warning = GenericException(*args, **kwargs)

        prefix = ""
        for path, __, line_num in self.active():
            prefix = colored(f"{path}:{line_num}:{warning.start}: ", attrs=["bold"])

        print(prefix + colored("warning: ", ErrorHandler.WARNING, attrs=["bold"]) + warning.msg)
        if warning.showable:
            print(ErrorHandler.highlight(warning, ErrorHandler.WARNING))

    def throw(self, error):
        """Prints error with a traceback of the lines being handled, then exits if fatal. Otherwise every path is
        released, ready for the next line.
        """
        report = [f"  File '{path}', line {line_num}:\n    {line}\n" for path, line, line_num in self.active()]
        if report:
            report.insert(0, "Traceback:\n")

        if error.internal:
            report.append(colored("[internal] ", ErrorHandler.ERROR, attrs=["bold"]))
        report.append(colored("error: ", ErrorHandler.ERROR, attrs=["bold"]) + error.msg)
        print("".join(report))

        if error.showable:
            print(ErrorHandler.highlight(error))

        if self.fatal:
            sys.exit(1)
        for path in self.locations:
            self.release(path)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if exc_type is None:
            return False
        if issubclass(exc_type, SystemExit):
            return False

        if issubclass(exc_type, GenericException):
            self.throw(exc_val)
        elif issubclass(exc_type, KeyboardInterrupt):
            self.throw(GenericException("keyboard interrupt, statement aborted", diagnosis=False))
        elif issubclass(exc_type, RecursionError):
            self.throw(GenericException("maximum recursion depth exceeded, statement aborted", diagnosis=False))
        else:
            self.throw(GenericException(f"unknown error: '{exc_type.__name__}: {exc_val}'", internal=True))
            return False
        return True
