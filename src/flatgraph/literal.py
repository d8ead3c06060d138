"""Literal codecs: value <-> text conversion for types stored as one string."""

from __future__ import annotations

import datetime
import decimal
import enum
import fractions
import uuid
from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import Any

from .errors import LiteralConversionError
from .escape import Escape
from .typedesc import describe, is_array

# Text of a null value, for every literal type.
NULL_LITERAL = "\\N"

# Escaped inside the leaf elements of an array literal.
ARRAY_DELIMITERS = "[,]\\"

_CONVERSION_ERRORS = (ValueError, TypeError, KeyError, ArithmeticError)


class Literal(ABC):
    """Converts values of one type to text and back.

    Subclasses implement the non-null conversions only; ``None`` and
    :data:`NULL_LITERAL` are handled here.
    """

    value_type: Any = object

    def to_text(self, value: Any) -> str:
        if value is None:
            return NULL_LITERAL
        try:
            return self._to_text(value)
        except LiteralConversionError:
            raise
        except _CONVERSION_ERRORS as exc:
            raise LiteralConversionError(
                f"Cannot convert {value!r} to {describe(self.value_type)} text: {exc}"
            ) from exc

    def to_value(self, text: str | None) -> Any:
        if text is None or text == NULL_LITERAL:
            return None
        return self.parse_text(text)

    def parse_text(self, text: str) -> Any:
        """Convert *text* that is never the null literal."""
        try:
            return self._to_value(text)
        except LiteralConversionError:
            raise
        except _CONVERSION_ERRORS as exc:
            raise LiteralConversionError(
                f"Cannot convert {text!r} to {describe(self.value_type)}: {exc}"
            ) from exc

    @abstractmethod
    def _to_text(self, value: Any) -> str: ...

    @abstractmethod
    def _to_value(self, text: str) -> Any: ...

    def __repr__(self) -> str:
        return f"{type(self).__name__}({describe(self.value_type)})"


class FunctionLiteral(Literal):
    """A literal built from a pair of conversion functions."""

    def __init__(
        self,
        value_type: type,
        to_text: Callable[[Any], str],
        to_value: Callable[[str], Any],
    ) -> None:
        self.value_type = value_type
        self._text = to_text
        self._value = to_value

    def _to_text(self, value: Any) -> str:
        return self._text(value)

    def _to_value(self, text: str) -> Any:
        return self._value(text)


class ReflectiveLiteral(Literal):
    """``str(value)`` one way, ``value_type(text)`` the other."""

    def __init__(self, value_type: type) -> None:
        self.value_type = value_type

    def _to_text(self, value: Any) -> str:
        return str(value)

    def _to_value(self, text: str) -> Any:
        return self.value_type(text)


class EnumLiteral(Literal):
    """Enumeration members are written by name."""

    def __init__(self, value_type: type[enum.Enum]) -> None:
        self.value_type = value_type

    def _to_text(self, value: Any) -> str:
        if not isinstance(value, self.value_type):
            raise TypeError(f"{value!r} is not a member of {self.value_type.__name__}")
        return value.name

    def _to_value(self, text: str) -> Any:
        return self.value_type[text]


class ArrayLiteral(Literal):
    """``[e0,e1,...]`` for arrays whose leaf type is literal.

    Leaf elements are escaped, nested arrays are embedded as they are and a
    null leaf is the bare null text::

        ["", None, "["]   ->   [,\\N,\\[]
    """

    escaper = Escape(ARRAY_DELIMITERS)

    def __init__(self, value_type: Any, element: Literal) -> None:
        self.value_type = value_type
        self.element = element
        self.nested = is_array(element.value_type)

    def _to_text(self, value: Any) -> str:
        if not isinstance(value, list):
            raise TypeError(f"Expected a list, got {type(value).__name__}")
        parts: list[str] = []
        for item in value:
            text = self.element.to_text(item)
            if item is not None and not self.nested:
                text = self.escaper.escape(text)
            parts.append(text)
        return "[" + ",".join(parts) + "]"

    def _to_value(self, text: str) -> Any:
        return self._decode(self.escaper.map(text))

    def _decode(self, mapped: str) -> list:
        if len(mapped) < 2 or mapped[0] != "[" or mapped[-1] != "]":
            raise LiteralConversionError(f"Array literal must be enclosed in []: {mapped!r}")
        return [self._element(seg) for seg in _split(mapped[1:-1])]

    def _element(self, segment: str) -> Any:
        if segment == NULL_LITERAL:
            return None
        if self.nested:
            # already mapped, so decode without mapping again
            return self.element._decode(segment)
        # only the unescaped segment is null, an escaped one is text
        return self.element.parse_text(self.escaper.demap(segment))


def _split(inner: str) -> list[str]:
    """Split mapped array content at its top-level commas."""
    if not inner:
        return []
    segments: list[str] = []
    depth = 0
    start = 0
    for i, c in enumerate(inner):
        if c == "[":
            depth += 1
        elif c == "]":
            depth -= 1
            if depth < 0:
                raise LiteralConversionError(f"Unbalanced brackets in array literal: [{inner}]")
        elif c == "," and depth == 0:
            segments.append(inner[start:i])
            start = i + 1
    if depth != 0:
        raise LiteralConversionError(f"Unbalanced brackets in array literal: [{inner}]")
    segments.append(inner[start:])
    return segments


# ---------------------------------------------------------------------------
# Built-in codecs
# ---------------------------------------------------------------------------

def _bool_value(text: str) -> bool:
    lowered = text.lower()
    if lowered == "true":
        return True
    if lowered == "false":
        return False
    raise ValueError(f"Expected true or false, got {text!r}")


def _bool_text(value: Any) -> str:
    if not isinstance(value, bool):
        raise TypeError(f"Expected a bool, got {type(value).__name__}")
    return "true" if value else "false"


def _isoformat(value: Any) -> str:
    return value.isoformat()


def base_literals() -> dict[type, Literal]:
    """A fresh table of the built-in literal codecs."""
    table: list[Literal] = [
        FunctionLiteral(str, str, str),
        FunctionLiteral(int, lambda v: str(int(v)), int),
        FunctionLiteral(float, lambda v: repr(float(v)), float),
        FunctionLiteral(bool, _bool_text, _bool_value),
        FunctionLiteral(complex, lambda v: repr(complex(v)), complex),
        FunctionLiteral(decimal.Decimal, str, decimal.Decimal),
        FunctionLiteral(fractions.Fraction, str, fractions.Fraction),
        FunctionLiteral(datetime.datetime, _isoformat, datetime.datetime.fromisoformat),
        FunctionLiteral(datetime.date, _isoformat, datetime.date.fromisoformat),
        FunctionLiteral(datetime.time, _isoformat, datetime.time.fromisoformat),
        FunctionLiteral(uuid.UUID, str, uuid.UUID),
        FunctionLiteral(bytes, lambda v: bytes(v).hex(), bytes.fromhex),
    ]
    return {lit.value_type: lit for lit in table}
