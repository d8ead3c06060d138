"""Structure introspection: members, accessors and raw allocation.

The mapper never touches attributes directly; it asks an
:class:`Introspector` for the :class:`Structure` of a class, which lists the
members to flatten in declaration order:

- dataclasses: their fields (a field with ``metadata={"transient": True}``
  is skipped);
- classes with ``__slots__``: their slots, base classes first;
- other classes: annotated attributes, followed by whatever else an
  instance holds in its ``__dict__``.

Member types come from the annotations (``typing.get_type_hints``), reduced
with :func:`flatgraph.typedesc.normalize`; unannotated members are
``object``.
"""

from __future__ import annotations

import dataclasses
import logging
import typing
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, ClassVar, get_origin

from .errors import ReconstructionError
from .typedesc import describe, normalize, resolve

logger = logging.getLogger(__name__)


def _none() -> None:
    return None


@dataclass
class Member:
    name: str
    type: Any = object
    # value given to the member of a freshly allocated instance; None leaves it unset
    initial: Callable[[], Any] | None = None

    def get(self, obj: Any) -> Any:
        return getattr(obj, self.name, None)

    def set(self, obj: Any, value: Any) -> None:
        # bypasses frozen dataclasses and custom __setattr__
        object.__setattr__(obj, self.name, value)


@dataclass
class Structure:
    cls: type
    members: list[Member]
    dynamic: bool = False  # instances keep extra attributes in __dict__
    _by_name: dict[str, Member] = field(default_factory=dict, repr=False)

    def __post_init__(self) -> None:
        self._by_name = {m.name: m for m in self.members}

    def member(self, name: str) -> Member | None:
        m = self._by_name.get(name)
        if m is None and self.dynamic:
            return Member(name)
        return m

    def members_of(self, obj: Any) -> list[Member]:
        """Declared members plus the undeclared attributes *obj* carries."""
        if not self.dynamic:
            return self.members
        extra = [
            Member(name)
            for name in getattr(obj, "__dict__", {})
            if name not in self._by_name
        ]
        return self.members + extra if extra else self.members


class Introspector:
    """Computes and caches class structures, allocates raw instances and
    remembers the classes it has seen so their descriptors resolve back."""

    def __init__(self) -> None:
        self._structures: dict[type, Structure] = {}
        self._known: dict[str, type] = {}

    # -- Structures -----------------------------------------------------

    def structure(self, cls: type) -> Structure:
        s = self._structures.get(cls)
        if s is None:
            s = self._structures.setdefault(cls, _build_structure(cls))
        return s

    # -- Allocation -----------------------------------------------------

    def allocate(self, cls: type) -> Any:
        """A new instance of *cls* created without running ``__init__``.

        Declared members start out as their dataclass default, or ``None``.
        """
        try:
            instance = cls.__new__(cls)
        except Exception as exc:
            raise ReconstructionError(
                f"Could not allocate an instance of {cls!r}: {exc}"
            ) from exc
        if not isinstance(instance, cls):
            raise ReconstructionError(
                f"{cls!r}.__new__ returned {type(instance)!r} instead of an instance"
            )
        for m in self.structure(cls).members:
            if m.initial is not None:
                m.set(instance, m.initial())
        return instance

    # -- Type names -----------------------------------------------------

    def remember(self, cls: type) -> None:
        # latest definition wins
        self._known[describe(cls)] = cls

    def resolve(self, descriptor: str) -> tuple[Any, int | None]:
        """Resolve a descriptor to (type, first-dimension length)."""
        return resolve(descriptor, self._known)


default_introspector = Introspector()


# ---------------------------------------------------------------------------
# Structure construction
# ---------------------------------------------------------------------------

def _build_structure(cls: type) -> Structure:
    hints = _type_hints(cls)

    if dataclasses.is_dataclass(cls):
        members = [
            Member(f.name, normalize(hints.get(f.name, object)), _field_initial(f))
            for f in dataclasses.fields(cls)
            if not f.metadata.get("transient", False)
        ]
        return Structure(cls, members)

    slots = _slots(cls)
    if slots is not None:
        members = [
            Member(name, normalize(hints.get(name, object)), _none)
            for name in slots
        ]
        return Structure(cls, members, dynamic=_has_dict(cls))

    members = [
        Member(name, normalize(hint), None if hasattr(cls, name) else _none)
        for name, hint in hints.items()
        if get_origin(hint) is not ClassVar and hint is not ClassVar
    ]
    return Structure(cls, members, dynamic=True)


def _field_initial(f: dataclasses.Field) -> Callable[[], Any]:
    if f.default_factory is not dataclasses.MISSING:
        return f.default_factory
    if f.default is not dataclasses.MISSING:
        default = f.default
        return lambda: default
    return _none


def _type_hints(cls: type) -> dict[str, Any]:
    try:
        return typing.get_type_hints(cls)
    except (NameError, TypeError) as exc:
        logger.debug("Unresolvable annotations on %s, members are typed object: %s", cls, exc)
        hints: dict[str, Any] = {}
        for base in reversed(cls.__mro__):
            hints.update(base.__dict__.get("__annotations__", {}))
        return {name: object if isinstance(h, str) else h for name, h in hints.items()}


def _slots(cls: type) -> list[str] | None:
    """All slot names of *cls*, base classes first, or None if it declares none."""
    names: list[str] = []
    found = False
    for base in reversed(cls.__mro__):
        slots = base.__dict__.get("__slots__")
        if slots is None:
            continue
        found = True
        if isinstance(slots, str):
            slots = [slots]
        for name in slots:
            if name not in ("__dict__", "__weakref__") and name not in names:
                names.append(name)
    return names if found else None


def _has_dict(cls: type) -> bool:
    return any("__dict__" in base.__dict__ for base in cls.__mro__ if base is not object)
