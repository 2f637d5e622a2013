"""Abstract syntax tree of the minilang language, and its tree-walking evaluator.

Every node owns its children exclusively (the parser builds a fresh tree per line), and every node knows how to
evaluate itself against an Environment and how to print itself back as source text:

```
<node> ::= Constant(<value>)
         | Variable(<name>)
         | BinaryOperation(<operation>, <node>, <node>)
         | Assignment(<name>, <node>)                 ; yields None
         | Block(<node>*)                             ; yields the value of its last statement
         | FunctionDecl(<name>, Function(<name>*, <node>))  ; yields None
         | Call(<name>, <node>*)
         | IfElse(<node>, <node>, <node>?)
         | While(<node>, <node>)                      ; yields None
         | For(<node>, <node>, <node>, <node>)        ; yields None
```

Environments are flat: one namespace of variables and one of functions. A call runs its body against a *copy* of the
caller's environment, so nothing the callee assigns is visible to the caller afterwards.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from minilang.core.value import (
    NONE, Bool, Nothing, Number, Operation, divide, format_f32, is_truthy, variant_name
)
from minilang.lang.error import EvaluationError


@dataclass(frozen=True)
class Function:
    """A declared function: parameter names and the body evaluated on call."""
    parameters: List[str]
    body: "Node"


@dataclass
class Environment:
    """Variable and function bindings visible to a statement."""
    variables: Dict[str, object] = field(default_factory=dict)
    functions: Dict[str, Function] = field(default_factory=dict)

    def clone(self):
        """Independent copy. Values and Functions are never mutated in place, so copying the mappings is enough."""
        return Environment(dict(self.variables), dict(self.functions))


class Node(ABC):
    """Superclass for every AST node."""

    @abstractmethod
    def evaluate(self, env):
        """Evaluates this node against env (mutating it for assignments/declarations) and returns a Value. Raises
        EvaluationError on a semantic failure.
        """

    @abstractmethod
    def to_string(self):
        """Source text for this node. Pure: never evaluates anything."""

    def __str__(self):
        return self.to_string()


def _block_text(statements):
    if not statements:
        return "{ }"
    return "{ " + " ".join(f"{stmt.to_string()};" for stmt in statements) + " }"


def _body_text(body):
    if isinstance(body, Block):
        return _block_text(body.statements)
    return _block_text([body])


@dataclass
class Constant(Node):
    value: object

    def evaluate(self, env):
        return self.value

    def to_string(self):
        if isinstance(self.value, Number):
            return format_f32(self.value.value)
        if isinstance(self.value, Bool):
            return "true" if self.value.value else "false"
        return "None"


@dataclass
class Variable(Node):
    name: str

    def evaluate(self, env):
        try:
            return env.variables[self.name]
        except KeyError:
            raise EvaluationError("undefined variable '{}'", self.name) from None

    def to_string(self):
        return self.name


@dataclass
class BinaryOperation(Node):
    operation: Operation
    left: Node
    right: Node

    def evaluate(self, env):
        left = self.left.evaluate(env)
        right = self.right.evaluate(env)  # no short-circuiting: both sides always run

        if self.operation.is_arithmetic:
            return self._arithmetic(left, right)
        return self._logical(left, right)

    def _mismatch(self, left, right):
        msg = f"operator '{self.operation}' not supported between {{}} and {{}}"
        return EvaluationError(msg, variant_name(left), variant_name(right))

    def _arithmetic(self, left, right):
        if not (isinstance(left, Number) and isinstance(right, Number)):
            raise self._mismatch(left, right)

        op, a, b = self.operation, left.value, right.value
        if op is Operation.PLUS:
            result = a + b
        elif op is Operation.MINUS:
            result = a - b
        elif op is Operation.MULTIPLY:
            result = a * b
        else:
            result = divide(a, b)
        return Number(result)

    def _logical(self, left, right):
        if type(left) is not type(right) or isinstance(left, Nothing):
            raise self._mismatch(left, right)

        op, a, b = self.operation, left.value, right.value
        if op is Operation.EQUAL:
            return Bool(a == b)
        if op is Operation.NOT_EQUAL:
            return Bool(a != b)

        if isinstance(left, Number) and op in (Operation.LESS, Operation.MORE):
            return Bool(a < b if op is Operation.LESS else a > b)
        if isinstance(left, Bool) and op in (Operation.OR, Operation.AND):
            return Bool(a or b if op is Operation.OR else a and b)

        raise self._mismatch(left, right)

    def to_string(self):
        prec = self.operation.precedence

        left = self.left.to_string()
        if isinstance(self.left, BinaryOperation) and self.left.operation.precedence <= prec:
            left = f"({left})"  # chains group to the right, so an equal-level left child needs brackets

        right = self.right.to_string()
        if isinstance(self.right, BinaryOperation) and self.right.operation.precedence < prec:
            right = f"({right})"

        return f"{left}{self.operation}{right}"


@dataclass
class Assignment(Node):
    name: str
    value: Node

    def evaluate(self, env):
        env.variables[self.name] = self.value.evaluate(env)
        return NONE

    def to_string(self):
        return f"{self.name} = {self.value.to_string()}"


@dataclass
class Block(Node):
    statements: List[Node] = field(default_factory=list)

    def evaluate(self, env):
        result = NONE
        for statement in self.statements:
            result = statement.evaluate(env)
        return result

    def to_string(self):
        return _block_text(self.statements)


@dataclass
class FunctionDecl(Node):
    name: str
    function: Function

    def evaluate(self, env):
        env.functions[self.name] = self.function  # redeclaring replaces silently
        return NONE

    def to_string(self):
        params = ", ".join(self.function.parameters)
        return f"fn {self.name}({params}) {_body_text(self.function.body)}"


@dataclass
class Call(Node):
    name: str
    arguments: List[Node] = field(default_factory=list)

    def evaluate(self, env):
        function = env.functions.get(self.name)
        if function is None:
            raise EvaluationError("undefined function '{}'", self.name)

        if len(function.parameters) != len(self.arguments):
            msg = f"'{{}}' takes {len(function.parameters)} argument(s) but {len(self.arguments)} were given"
            raise EvaluationError(msg, self.name)

        values = [argument.evaluate(env) for argument in self.arguments]

        frame = env.clone()
        frame.variables.update(zip(function.parameters, values))
        return function.body.evaluate(frame)

    def to_string(self):
        args = ", ".join(argument.to_string() for argument in self.arguments)
        return f"{self.name}({args})"


@dataclass
class IfElse(Node):
    condition: Node
    if_body: Node
    else_body: Optional[Node] = None

    def evaluate(self, env):
        if is_truthy(self.condition.evaluate(env)):
            return self.if_body.evaluate(env)
        if self.else_body is not None:
            return self.else_body.evaluate(env)
        return NONE

    def to_string(self):
        text = f"if {self.condition.to_string()} {_body_text(self.if_body)}"
        if self.else_body is not None:
            text += f" else {_body_text(self.else_body)}"
        return text


@dataclass
class While(Node):
    condition: Node
    body: Node

    def evaluate(self, env):
        while is_truthy(self.condition.evaluate(env)):
            self.body.evaluate(env)
        return NONE

    def to_string(self):
        return f"while {self.condition.to_string()} {_body_text(self.body)}"


@dataclass
class For(Node):
    init: Node
    condition: Node
    body: Node
    step: Node

    def evaluate(self, env):
        self.init.evaluate(env)
        while is_truthy(self.condition.evaluate(env)):
            self.body.evaluate(env)
            self.step.evaluate(env)
        return NONE

    def to_string(self):
        return (f"for {self.init.to_string()}; {self.condition.to_string()}; {self.step.to_string()} "
                f"{_body_text(self.body)}")
