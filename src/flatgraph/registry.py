"""The literal registry: which types are stored as text, and how."""

from __future__ import annotations

import enum
import logging
import threading
from typing import Any

from .errors import RegistryError, TypeResolutionError
from .literal import ArrayLiteral, EnumLiteral, Literal, ReflectiveLiteral, base_literals
from .typedesc import describe, element_type, is_array, leaf_type

logger = logging.getLogger(__name__)


class Shape(enum.Enum):
    """How the mapper stores a value of a given type."""

    LITERAL = "literal"
    LITERAL_ARRAY = "literal_array"
    REFERENCE_ARRAY = "reference_array"
    OBJECT = "object"


def _is_enum(tp: Any) -> bool:
    return isinstance(tp, type) and not is_array(tp) and issubclass(tp, enum.Enum)


class LiteralRegistry:
    """Maps types to their :class:`Literal` codecs.

    The built-in codecs, enumerations and arrays of either are protected:
    they can be neither replaced nor removed. Codecs for enumerations and
    literal arrays are created on first use and shared afterwards.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._base: dict[Any, Literal] = base_literals()
        self._custom: dict[Any, Literal] = {}
        self._derived: dict[Any, Literal] = {}
        self._shapes: dict[Any, Shape] = {}

    # -- Queries --------------------------------------------------------

    def is_base_literal(self, tp: Any) -> bool:
        leaf = leaf_type(tp)
        return leaf in self._base or _is_enum(leaf)

    def is_literal(self, tp: Any) -> bool:
        return self.literal_for(tp) is not None

    def literal_for(self, tp: Any) -> Literal | None:
        lit = self._base.get(tp) or self._custom.get(tp) or self._derived.get(tp)
        if lit is not None:
            return lit
        if _is_enum(tp):
            candidate: Literal = EnumLiteral(tp)
        elif is_array(tp):
            element = self.literal_for(element_type(tp))
            if element is None:
                return None
            candidate = ArrayLiteral(tp, element)
        else:
            return None
        with self._lock:
            lit = self._derived.setdefault(tp, candidate)
        if lit is candidate:
            logger.debug("Created literal %r", lit)
        return lit

    def shape(self, tp: Any) -> Shape:
        s = self._shapes.get(tp)
        if s is None:
            literal = self.is_literal(tp)
            if is_array(tp):
                s = Shape.LITERAL_ARRAY if literal else Shape.REFERENCE_ARRAY
            else:
                s = Shape.LITERAL if literal else Shape.OBJECT
            self._shapes[tp] = s
        return s

    # -- Conversion -----------------------------------------------------

    def to_text(self, tp: Any, value: Any) -> str:
        return self._require(tp).to_text(value)

    def to_value(self, tp: Any, text: str | None) -> Any:
        return self._require(tp).to_value(text)

    def _require(self, tp: Any) -> Literal:
        lit = self.literal_for(tp)
        if lit is None:
            name = describe(tp) if isinstance(tp, type) or is_array(tp) else repr(tp)
            raise TypeResolutionError(name, f"{name} is not a literal type")
        return lit

    # -- Registration ---------------------------------------------------

    def register(self, tp: type, literal: Literal | None = None) -> None:
        """Store values of *tp* as text using *literal*.

        Without a codec, values are written with ``str`` and read back by
        calling ``tp(text)``.
        """
        self._check_custom(tp)
        if literal is None:
            literal = ReflectiveLiteral(tp)
        with self._lock:
            self._custom[tp] = literal
            self._forget(tp)
        logger.info("Registered literal %r for %s", literal, describe(tp))

    def unregister(self, tp: type) -> bool:
        """Remove the custom codec of *tp*; returns whether one was registered."""
        self._check_custom(tp)
        with self._lock:
            removed = self._custom.pop(tp, None)
            self._forget(tp)
        if removed is not None:
            logger.info("Unregistered literal for %s", describe(tp))
        return removed is not None

    def _forget(self, tp: type) -> None:
        # array codecs and shapes built on the previous codec of tp
        for key in [k for k in list(self._derived) if leaf_type(k) is tp]:
            del self._derived[key]
        for key in [k for k in list(self._shapes) if leaf_type(k) is tp]:
            self._shapes.pop(key, None)

    def _check_custom(self, tp: Any) -> None:
        if not isinstance(tp, type) or is_array(tp):
            raise RegistryError(f"Only classes can be registered as literals, got {tp!r}")
        if self.is_base_literal(tp):
            raise RegistryError(f"{describe(tp)} is a built-in literal and cannot be changed")


default_registry = LiteralRegistry()
