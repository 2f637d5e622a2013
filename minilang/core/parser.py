"""Recursive-descent parser for the minilang language. Consumes a line of source bytes and produces AST Nodes plus
whatever input was left unconsumed.

The grammar is tried top to bottom; `|` is an ordered alternation (first match wins, a failed alternative is rewound
before the next one is tried):

```
<program>    ::= <statement> (";" <statement>)* [";"]
<statement>  ::= <function> | <while> | <if_else> | <for> | <assignment> | <expression>
<function>   ::= "fn" <ident> "(" [<ident> ("," <ident>)*] ")" <body>
<body>       ::= "{" (<statement> ";")* "}"
<if_else>    ::= "if" <expression> <body> ["else" <body>]
<while>      ::= "while" <expression> <body>
<for>        ::= "for" <statement> ";" <expression> ";" <statement> <body>
<assignment> ::= <ident> "=" <expression>
<expression> ::= <term> (("+" | "-") <expression>)?
<term>       ::= <logic> (("*" | "/") <term>)?
<logic>      ::= <factor> (("||" | "&&" | "==" | "!=" | ">" | "<") <logic>)?
<factor>     ::= ["-"] (<number> | <call> | <ident> | "(" <expression> ")")
<call>       ::= <ident> "(" [<expression> ("," <expression>)*] ")"
<ident>      ::= ("a".."z" | "A".."Z")+
```

Some consequences worth knowing about:
- Operators chain to the right, since each rule recurses for its right-hand side: 1-2-3 parses as 1-(2-3).
- All six logical operators share a single level, and that level binds tighter than * and /.
- Unary minus is sugar: -x parses as 0-x.
- Only the space character counts as whitespace. It may appear between any two tokens.
- Keywords are not reserved; `iffy = 1` is an assignment because the if rule fails and is rewound.
"""

import re

from minilang.core.node import (
    Assignment, BinaryOperation, Block, Call, Constant, For, Function, FunctionDecl, IfElse, Variable, While
)
from minilang.core.value import Number, Operation
from minilang.lang.error import ParseError


NUMBER = re.compile(rb"(?:[0-9]+(?:\.[0-9]*)?|\.[0-9]+)(?:[eE][+-]?[0-9]+)?")

OPERATORS = [b"||", b"&&", b"==", b"!=", b"+", b"-", b"/", b"*", b">", b"<"]  # two-char symbols must come first

PLUS_MINUS = (Operation.PLUS, Operation.MINUS)
DIV_MULTI = (Operation.MULTIPLY, Operation.DIVIDE)
LOGIC = (Operation.NOT_EQUAL, Operation.EQUAL, Operation.OR, Operation.AND, Operation.LESS, Operation.MORE)


class Parser:
    """Parser state over one input: the bytes and the current offset into them. Each grammar rule is a method that
    either returns its Node (advancing self.pos) or raises ParseError. Rules never catch errors from the rules they
    call, except where the grammar makes something optional or offers alternatives.
    """

    def __init__(self, data):
        if isinstance(data, str):
            data = data.encode("utf-8")
        self.data = data
        self.pos = 0

    @property
    def remainder(self):
        return self.data[self.pos:]

    def error(self, kind, expected=None, pos=None):
        return ParseError(kind, self.pos if pos is None else pos, self.data, expected)

    # primitives

    def space(self):
        while self.data[self.pos:self.pos + 1] == b" ":
            self.pos += 1

    def tag(self, literal):
        if not self.data.startswith(literal, self.pos):
            raise self.error("tag", literal.decode())
        self.pos += len(literal)
        return literal

    def attempt(self, *rules):
        """Ordered alternation: returns the result of the first rule that succeeds, rewinding the input between tries.
        If every rule fails, the error that got furthest into the input is raised (the later rule on a tie).
        """
        start = self.pos
        error = None
        for rule in rules:
            try:
                return rule()
            except ParseError as e:
                self.pos = start
                if error is None or e.position >= error.position:
                    error = e
        raise error

    def optional(self, rule):
        """Returns rule() or, if it fails, None with the input rewound."""
        start = self.pos
        try:
            return rule()
        except ParseError:
            self.pos = start
            return None

    def many(self, rule):
        """Applies rule until it fails, returning the list of results. The failed attempt is rewound."""
        results = []
        while True:
            start = self.pos
            try:
                results.append(rule())
            except ParseError:
                self.pos = start
                return results

    # tokens

    def identifier(self):
        start = self.pos
        while self.data[self.pos:self.pos + 1].isalpha():
            self.pos += 1
        if self.pos == start:
            raise self.error("identifier")
        return self.data[start:self.pos].decode("ascii")

    def number(self):
        match = NUMBER.match(self.data, self.pos)
        if not match:
            raise self.error("number")
        self.pos = match.end()
        return Constant(Number(float(match.group())))

    def variable(self):
        return Variable(self.identifier())

    def operation(self, allowed):
        """Reads any operator, then fails (at the operator) unless it is one of allowed."""
        start = self.pos
        for symbol in OPERATORS:
            if self.data.startswith(symbol, self.pos):
                operation = Operation.from_symbol(symbol.decode())
                break
        else:
            raise self.error("operator")

        if operation not in allowed:
            raise self.error("operator", pos=start)
        self.pos += len(symbol)
        return operation

    # expressions

    def binary(self, operand, allowed, rest):
        """operand (allowed rest)?: once an operator has been read, rest must parse or the whole rule fails."""
        left = operand()
        self.space()
        operation = self.optional(lambda: self.operation(allowed))
        if operation is None:
            return left
        return BinaryOperation(operation, left, rest())

    def expression(self):
        self.space()
        return self.binary(self.term, PLUS_MINUS, self.expression)

    def term(self):
        return self.binary(self.logic, DIV_MULTI, self.term)

    def logic(self):
        return self.binary(self.factor, LOGIC, self.logic)

    def factor(self):
        self.space()
        minus = self.optional(lambda: self.tag(b"-")) is not None
        self.space()
        start = self.pos
        try:
            operand = self.attempt(self.number, self.call, self.variable, self.brackets)
        except ParseError as e:
            if e.position == start:
                raise self.error("expression") from None
            raise
        if minus:
            return BinaryOperation(Operation.MINUS, Constant(Number(0.0)), operand)
        return operand

    def brackets(self):
        self.tag(b"(")
        self.space()
        expr = self.expression()
        self.space()
        self.tag(b")")
        return expr

    def call(self):
        self.space()
        name = self.identifier()
        self.space()
        self.tag(b"(")
        self.space()
        arguments = self.separated(self.expression)
        self.space()
        self.tag(b")")
        return Call(name, arguments)

    def separated(self, item):
        """[item ("," item)*], with spaces allowed around the commas."""
        first = self.optional(item)
        if first is None:
            return []

        def next_item():
            self.space()
            self.tag(b",")
            self.space()
            return item()

        return [first] + self.many(next_item)

    # statements

    def statement(self):
        return self.attempt(self.function, self.while_loop, self.if_else, self.for_loop, self.assignment,
                            self.expression)

    def body(self):
        """'{' (statement ';')* '}' as a Block."""
        self.space()
        self.tag(b"{")

        def terminated():
            self.space()
            stmt = self.statement()
            self.space()
            self.tag(b";")
            return stmt

        statements = self.many(terminated)
        self.space()
        self.tag(b"}")
        return Block(statements)

    def keyword(self, word):
        self.space()
        self.tag(word)
        self.space()

    def function(self):
        self.keyword(b"fn")
        name = self.identifier()
        self.space()
        self.tag(b"(")
        self.space()
        parameters = self.separated(self.identifier)
        self.space()
        self.tag(b")")
        self.space()
        return FunctionDecl(name, Function(parameters, self.body()))

    def if_else(self):
        self.keyword(b"if")
        condition = self.expression()
        self.space()
        if_body = self.body()

        self.space()
        if self.optional(lambda: self.tag(b"else")) is None:
            return IfElse(condition, if_body)
        self.space()
        return IfElse(condition, if_body, self.body())

    def while_loop(self):
        self.keyword(b"while")
        condition = self.expression()
        self.space()
        return While(condition, self.body())

    def for_loop(self):
        self.keyword(b"for")
        init = self.statement()
        self.keyword(b";")
        condition = self.expression()
        self.keyword(b";")
        step = self.statement()
        self.space()
        return For(init, condition, self.body(), step)

    def assignment(self):
        self.space()
        name = self.identifier()
        self.space()
        self.tag(b"=")
        self.space()
        return Assignment(name, self.expression())

    def program(self):
        """statement (';' statement)* [';']. A ';' that is not followed by a statement is only consumed at the very end
        of the input; otherwise it is left in the remainder.
        """
        statements = [self.statement()]

        def separated_statement():
            self.space()
            self.tag(b";")
            self.space()
            if self.pos == len(self.data):
                return None
            return self.statement()

        for stmt in self.many(separated_statement):
            if stmt is None:
                break
            statements.append(stmt)
        return statements


def statement(data):
    """Parses one statement from data (bytes or str). Returns (unconsumed bytes, Node); raises ParseError if no
    statement can be parsed. Unconsumed input is not an error: callers decide what to do with a non-empty remainder.
    """
    parser = Parser(data)
    node = parser.statement()
    return parser.remainder, node


def program(data):
    """Parses ';'-separated statements from data. Returns (unconsumed bytes, [Node, ...]); raises ParseError if not
    even the first statement parses.
    """
    parser = Parser(data)
    nodes = parser.program()
    return parser.remainder, nodes
