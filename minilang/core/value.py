"""Runtime values and operators of the minilang language.

A value is one of exactly three variants:

```
<value> ::= None            ; result of statements (assignment, function declaration, loops)
          | Bool(<bool>)    ; result of the logical/relational operators
          | Number(<float>) ; single-precision float, the only numeric type
```

Numbers and booleans are never coerced into each other, and None is never accepted as an operand.
"""

import math
import struct
from dataclasses import dataclass
from enum import Enum


def to_f32(number):
    """Rounds a Python float to the nearest IEEE single-precision float. Overflow rounds to +/- infinity."""
    try:
        return struct.unpack("f", struct.pack("f", number))[0]
    except OverflowError:
        return math.copysign(math.inf, number)


def format_f32(number):
    """Shortest decimal text that reads back as the same single-precision float: 8.0 -> '8', 0.1 -> '0.1'."""
    if math.isnan(number):
        return "NaN"
    if math.isinf(number):
        return "inf" if number > 0 else "-inf"

    for precision in range(1, 10):
        text = f"{number:.{precision}g}"
        if to_f32(float(text)) == number:
            break

    if "e" in text:
        text = repr(float(text))  # expand exponent form back into a plain literal when python can
    if text.endswith(".0"):
        text = text[:-2]
    return text


class Nothing:
    """The None value. There is a single instance, NONE."""

    def __eq__(self, other):
        return isinstance(other, Nothing)

    def __hash__(self):
        return hash(None)

    def __repr__(self):
        return "None"


NONE = Nothing()


@dataclass(frozen=True)
class Bool:
    value: bool

    def __repr__(self):
        return f"Bool({self.value})"


@dataclass(frozen=True)
class Number:
    value: float

    def __post_init__(self):
        object.__setattr__(self, "value", to_f32(float(self.value)))

    def __repr__(self):
        return f"Number({self.value!r})"


def variant_name(value):
    """Name of value's variant, used in error messages."""
    return type(value).__name__ if not isinstance(value, Nothing) else "None"


def is_truthy(value):
    """Truthiness rule used by if/while/for: Bool(True) is true, and so is Number(0.0). Every other value is false.

    Note that a zero Number being true is the reverse of the usual C convention. It is the rule conditions have always
    followed in this language, so loops written against it keep working.
    """
    if isinstance(value, Bool):
        return value.value
    if isinstance(value, Number):
        return value.value == 0.0
    return False


class Operation(Enum):
    """Closed set of binary operators. The first four are arithmetic, the rest logical/relational."""
    PLUS = "+"
    MINUS = "-"
    DIVIDE = "/"
    MULTIPLY = "*"
    LESS = "<"
    MORE = ">"
    EQUAL = "=="
    NOT_EQUAL = "!="
    OR = "||"
    AND = "&&"

    @classmethod
    def from_symbol(cls, symbol):
        """Operation for its source text, e.g. '&&' -> Operation.AND. Raises ValueError for unknown symbols."""
        return cls(symbol)

    @property
    def is_arithmetic(self):
        return self in ARITHMETIC

    @property
    def precedence(self):
        """Binding strength as built by the parser: + - loosest, then * /, then every logical operator."""
        if self in (Operation.PLUS, Operation.MINUS):
            return 1
        if self in (Operation.MULTIPLY, Operation.DIVIDE):
            return 2
        return 3

    def __str__(self):
        return self.value

    def __repr__(self):
        return f"Operation.{self.name}"


ARITHMETIC = frozenset((Operation.PLUS, Operation.MINUS, Operation.DIVIDE, Operation.MULTIPLY))


def divide(left, right):
    """IEEE division: x/0 is +/-inf, 0/0 and nan/0 are nan, rather than python's ZeroDivisionError."""
    if right == 0.0:
        if left == 0.0 or math.isnan(left):
            return math.nan
        return math.copysign(math.inf, left) * math.copysign(1.0, right)
    return left / right
