"""Runtime values and coercions for Nexen.

Scalars are represented by native Python objects: every number is a
`float`, booleans are `bool` and text is `str`. Composite values are
frozen dataclasses so that a value never changes once it has been
constructed. Functions carry no environment: free variables in their
bodies resolve against whatever scope stack is active at call time.

Control flow (return, break, continue) is not encoded in values. Block,
conditional, loop and call evaluation exchange `Completion` records
instead, and only a function boundary turns a `'return'` completion back
into a plain value.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Tuple
from decimal import Decimal
import math

from .errors import InternalError


class EndOfBlock:
    """Marker for the unit value produced by statements without a value."""
    def __eq__(self, other: Any) -> bool:
        return isinstance(other, EndOfBlock)

    def __hash__(self) -> int:
        return hash(EndOfBlock)

    def __repr__(self) -> str:
        return 'EndOfBlock'


@dataclass(frozen=True)
class FunctionVal:
    """A user-defined function: parameter names plus the body expression."""
    name: str
    params: Tuple[str, ...]
    body: Any

    def __repr__(self) -> str:
        return f"<function {self.name}>"


@dataclass(frozen=True)
class ArrayVal:
    """An ordered, immutable sequence of values.

    The language has no literal, indexing or iteration syntax for arrays
    yet, so they can only be produced by native code. They take part in
    stringification like any other value.
    """
    items: Tuple[Any, ...] = ()


NORMAL = 'normal'
RETURN = 'return'
BREAK = 'break'
CONTINUE = 'continue'


@dataclass(frozen=True)
class Completion:
    """Outcome of executing a statement.

    `kind` is one of NORMAL, RETURN, BREAK or CONTINUE. `value` is the
    statement's value for NORMAL and the returned value for RETURN.
    """
    kind: str = NORMAL
    value: Any = EndOfBlock()

    @property
    def is_abrupt(self) -> bool:
        return self.kind != NORMAL

    @staticmethod
    def normal(value: Any = None) -> 'Completion':
        return Completion(NORMAL, EndOfBlock() if value is None else value)

    @staticmethod
    def returned(value: Any) -> 'Completion':
        return Completion(RETURN, value)


def is_number(value: Any) -> bool:
    return isinstance(value, float)


def is_text(value: Any) -> bool:
    return isinstance(value, str)


def type_name(value: Any) -> str:
    """Return the Nexen type name of a runtime value."""
    if isinstance(value, bool):
        return 'Boolean'
    if isinstance(value, float):
        return 'Number'
    if isinstance(value, str):
        return 'Text'
    if isinstance(value, FunctionVal):
        return 'Function'
    if isinstance(value, ArrayVal):
        return 'Array'
    if isinstance(value, EndOfBlock):
        return 'EndOfBlock'
    return type(value).__name__


def format_number(value: float) -> str:
    """Render a number the way the language prints it.

    Integral values drop the fractional part (`3` rather than `3.0`) and
    small fractions are never written in exponent form.
    """
    if math.isnan(value):
        return 'NaN'
    if math.isinf(value):
        return 'inf' if value > 0 else '-inf'
    if value.is_integer():
        return str(int(value))
    text = repr(value)
    if 'e' in text:
        # shortest round-trip digits, positional notation
        return format(Decimal(text), 'f')
    return text


def as_number(value: Any) -> float:
    if isinstance(value, bool):
        return 1.0 if value else 0.0
    if isinstance(value, float):
        return value
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            return 0.0
    raise InternalError(f"Cannot convert {type_name(value)} to a number")


def as_boolean(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, float):
        return value != 0.0
    if isinstance(value, str):
        return value == 'true'
    raise InternalError(f"Cannot convert {type_name(value)} to a boolean")


def as_text(value: Any) -> str:
    if isinstance(value, bool):
        return 'true' if value else 'false'
    if isinstance(value, float):
        return format_number(value)
    if isinstance(value, str):
        return value
    if isinstance(value, ArrayVal):
        return '[' + ', '.join(as_text(item) for item in value.items) + ']'
    raise InternalError(f"Cannot convert {type_name(value)} to text")


def divide(a: float, b: float) -> float:
    """IEEE-754 division; a zero divisor yields an infinity or NaN."""
    if b != 0.0:
        return a / b
    if a == 0.0 or math.isnan(a):
        return math.nan
    return math.copysign(math.inf, a) * math.copysign(1.0, b)
