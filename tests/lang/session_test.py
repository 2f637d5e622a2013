import io
import os
import tempfile
import unittest
from contextlib import redirect_stdout

from minilang.core.node import Assignment, Constant
from minilang.core.value import Number
from minilang.lang.error import ErrorHandler, EvaluationError, GenericException, ParseError
from minilang.lang.session import Session


def run(sess, *lines):
    """Adds and runs each line in sess, discarding printed output."""
    with redirect_stdout(io.StringIO()):
        for line_num, line in enumerate(lines, start=1):
            sess.add(line, line_num)
            sess.run()
    return sess.environment


class SessionTestCase(unittest.TestCase):

    def setUp(self):
        self.sess = Session(ErrorHandler())

    def test_cmd_line_is_not_fatal(self):
        self.assertFalse(self.sess.error_handler.fatal)
        self.assertRaises(GenericException, Session, ErrorHandler(), Session.SH_FILE, cmd_line=False)

    def test_add_run(self):
        output = io.StringIO()
        with redirect_stdout(output):
            self.assertEqual([], self.sess.add("x = 1; y = x + 1", 1))
            self.assertEqual(2, len(self.sess.pending))
            self.sess.run()

        self.assertEqual(Number(2), self.sess.environment.variables["y"])
        self.assertEqual([], self.sess.pending)
        self.assertEqual(2, output.getvalue().count("Evaluated: None"))

        output = io.StringIO()
        with redirect_stdout(output):
            self.sess.add("y * 3", 2)
            self.sess.run()
        self.assertIn("Evaluated: Number(6.0)", output.getvalue())

    def test_lines_leave_only_bindings(self):
        run(self.sess, "x = 0", *["x = x + 1"] * 200)
        self.assertEqual(Number(200), self.sess.environment.variables["x"])

        # evaluated statements are dropped once printed
        queues = [value for value in vars(self.sess).values() if isinstance(value, list)]
        self.assertEqual([[]], queues)

    def test_partial_line(self):
        output = io.StringIO()
        with redirect_stdout(output):
            nodes = self.sess.add("x = 1 2", 1)
            self.sess.run()
        self.assertEqual([Assignment("x", Constant(Number(1)))], nodes)
        self.assertNotIn("x", self.sess.environment.variables)
        self.assertIn("parsing incomplete", output.getvalue())

        # the warning points at the unparsed text
        output = io.StringIO()
        with redirect_stdout(output):
            self.sess.add("x = 1 \u00e9\u00e9", 2)
        self.assertIn("<in>:2:6:", output.getvalue())

    def test_parse_error(self):
        self.assertRaises(ParseError, self.sess.add, "(1", 1)
        self.assertEqual([], self.sess.pending)

    def test_error_keeps_earlier_statements(self):
        with redirect_stdout(io.StringIO()):
            self.sess.add("a = 1; b = bogus(); c = 3", 1)
            self.assertRaises(EvaluationError, self.sess.run)
        self.assertEqual(Number(1), self.sess.environment.variables["a"])
        self.assertNotIn("b", self.sess.environment.variables)
        self.assertNotIn("c", self.sess.environment.variables)
        self.assertEqual([], self.sess.pending)

    def test_functions_cannot_touch_caller(self):
        env = run(self.sess, "fn f() { x = 99; x; }", "x = 1", "y = f()")
        self.assertEqual(Number(1), env.variables["x"])
        self.assertEqual(Number(99), env.variables["y"])

    def test_loops(self):
        env = run(self.sess, "s = 0; for i = 0; i < 3; i = i + 1 { s = s + i; }")
        self.assertEqual(Number(3), env.variables["s"])

        # a nonzero number is a false condition
        env = run(self.sess, "c = 0; while 1 { c = c + 1; }")
        self.assertEqual(Number(0), env.variables["c"])

        env = run(self.sess, "n = 0; c = 0; while n { c = c + 1; n = 1; }")
        self.assertEqual(Number(1), env.variables["c"])

    def test_if_zero(self):
        env = run(self.sess, "if 0 { r = 1; } else { r = 2; }")
        self.assertEqual(Number(1), env.variables["r"])

    def test_recursion(self):
        env = run(self.sess, "fn fib(n) { if n < 2 { n; } else { fib(n - 1) + fib(n - 2); }; }", "r = fib(10)")
        self.assertEqual(Number(55), env.variables["r"])


class FileTestCase(unittest.TestCase):

    def test_run_file(self):
        with tempfile.TemporaryDirectory() as directory:
            path = os.path.join(directory, "script.ml")
            with open(path, "w", encoding="utf-8") as file:
                file.write("fn sq(x) { x * x; }\n\nr = sq(4)\nr = r + 1\n")

            sess = Session(ErrorHandler(), path, cmd_line=False)
            output = io.StringIO()
            with redirect_stdout(output):
                sess.run_file()
        self.assertEqual(Number(17), sess.environment.variables["r"])
        self.assertEqual(3, output.getvalue().count("Evaluated:"))

    def test_missing_file(self):
        sess = Session(ErrorHandler(), "does/not/exist.ml", cmd_line=False)
        self.assertRaises(GenericException, sess.run_file)


if __name__ == '__main__':
    unittest.main()
