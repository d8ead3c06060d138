"""Mapper: object graph <-> Mapped.

``to_map`` walks the graph depth first and gives every distinct instance
one named entry, so shared objects and cycles survive; ``from_map`` rebuilds
the graph, allocating each named object once.
"""

from __future__ import annotations

import logging
import re
import types
from typing import Any

from .errors import MalformedInputError, ReconstructionError, UnsupportedTypeError
from .introspect import Introspector, default_introspector
from .mapped import Mapped
from .names import to_identifier, uncap_first, unique_object_name
from .registry import LiteralRegistry, Shape, default_registry
from .typedesc import (
    describe,
    element_type,
    infer_type,
    is_array,
    leaf_type,
    simple_name,
)

logger = logging.getLogger(__name__)

# Root name used when a Mapped has no objects; it reconstructs as None.
UNKNOWN_ROOT = "unknown"

_SLOT_RE = re.compile(r"i(\d+)")

# Builtin containers, stored as numbered slots: i0, i1... or k0, v0, k1, v1...
_CONTAINERS = (tuple, set, frozenset, dict)

# Other values of these types cannot be flattened unless a literal is registered
# for their type.
_UNSUPPORTED = (
    tuple,
    dict,
    set,
    frozenset,
    list,
    str,
    bytes,
    bytearray,
    int,
    float,
    complex,
    type,
    types.ModuleType,
    types.FunctionType,
    types.BuiltinFunctionType,
    types.MethodType,
)


class Mapper:
    def __init__(
        self,
        registry: LiteralRegistry | None = None,
        introspector: Introspector | None = None,
    ) -> None:
        self.registry = registry if registry is not None else default_registry
        self.introspector = introspector if introspector is not None else default_introspector

    def to_map(self, root: Any) -> Mapped:
        """Flatten the graph reachable from *root*; ``None`` gives an empty Mapped."""
        mapped = Mapped()
        if root is None:
            return mapped
        _Flattener(self, mapped).reference(root, object)
        logger.debug(
            "Mapped %s into %d objects (%d referenced once)",
            type(root).__name__,
            len(mapped.objects),
            len(mapped.single_ref_objects),
        )
        return mapped

    def from_map(self, mapped: Mapped, root_name: str | None = None) -> Any:
        """Rebuild the graph rooted at *root_name*, by default the first object."""
        if root_name is None:
            root_name = mapped.root_name() or UNKNOWN_ROOT
        return _Rebuilder(self, mapped).instance(root_name)


_default_mapper = Mapper()


def to_map(root: Any) -> Mapped:
    return _default_mapper.to_map(root)


def from_map(mapped: Mapped, root_name: str | None = None) -> Any:
    return _default_mapper.from_map(mapped, root_name)


# ---------------------------------------------------------------------------
# Flattening
# ---------------------------------------------------------------------------

class _Flattener:
    """State of one ``to_map`` call."""

    def __init__(self, mapper: Mapper, mapped: Mapped) -> None:
        self.registry = mapper.registry
        self.introspector = mapper.introspector
        self.mapped = mapped
        # id -> (instance, name); holding the instance keeps its id from being reused
        self.seen: dict[int, tuple[Any, str]] = {}
        self.names: set[str] = set()

    def reference(self, value: Any, declared: Any) -> str:
        """The name of *value*, flattening it first if it is new."""
        entry = self.seen.get(id(value))
        if entry is not None:
            self.mapped.single_ref_objects.discard(entry[1])
            return entry[1]

        tp = self._type_of(value, declared)
        shape = self.registry.shape(tp)
        container = shape is Shape.OBJECT and type(value) in _CONTAINERS
        if shape is Shape.OBJECT and not container and isinstance(value, _UNSUPPORTED):
            raise UnsupportedTypeError(
                f"Cannot flatten a value of type {type(value).__name__}: {value!r:.80}"
            )
        self.introspector.remember(leaf_type(tp))

        potential = uncap_first(to_identifier(simple_name(tp)))
        if is_array(tp):
            potential += "_array"
        name = unique_object_name(potential, self.names)
        self.names.add(name)
        self.seen[id(value)] = (value, name)
        self.mapped.single_ref_objects.add(name)
        self.mapped.types[name] = describe(tp, len(value) if is_array(tp) else None)
        fields: dict[str, str | None] = {}
        # parents go in before their children
        self.mapped.objects[name] = fields

        if shape is Shape.LITERAL or shape is Shape.LITERAL_ARRAY:
            fields[potential] = self.registry.to_text(tp, value)
        elif shape is Shape.REFERENCE_ARRAY:
            element = element_type(tp)
            for i, item in enumerate(value):
                fields[f"i{i}"] = self.field_text(item, element)
        elif container:
            self._container(value, fields)
        else:
            structure = self.introspector.structure(type(value))
            for member in structure.members_of(value):
                fields[member.name] = self.field_text(member.get(value), member.type)
        return name

    def field_text(self, value: Any, declared: Any) -> str | None:
        if value is None:
            return None
        if self.registry.is_literal(declared):
            self.introspector.remember(leaf_type(declared))
            return self.registry.to_text(declared, value)
        return self.reference(value, declared)

    def _container(self, value: Any, fields: dict[str, str | None]) -> None:
        if type(value) is dict:
            for i, (key, item) in enumerate(value.items()):
                fields[f"k{i}"] = self.field_text(key, object)
                fields[f"v{i}"] = self.field_text(item, object)
        else:
            for i, item in enumerate(value):
                fields[f"i{i}"] = self.field_text(item, object)

    def _type_of(self, value: Any, declared: Any) -> Any:
        if type(value) is not list:
            return type(value)
        if is_array(declared) and leaf_type(declared) is not object:
            return declared
        return infer_type(value)


# ---------------------------------------------------------------------------
# Rebuilding
# ---------------------------------------------------------------------------

class _Rebuilder:
    """State of one ``from_map`` call."""

    def __init__(self, mapper: Mapper, mapped: Mapped) -> None:
        self.registry = mapper.registry
        self.introspector = mapper.introspector
        self.mapped = mapped
        self.instances: dict[str, Any] = {}
        # immutable containers whose items are being rebuilt
        self.pending: set[str] = set()

    def instance(self, name: str) -> Any:
        if name in self.instances:
            return self.instances[name]
        fields = self.mapped.objects.get(name)
        if fields is None:
            if name != UNKNOWN_ROOT:
                logger.warning("Dangling reference %r rebuilt as None", name)
            return None
        descriptor = self.mapped.types.get(name)
        if descriptor is None:
            raise MalformedInputError(f"Object {name!r} has no type")

        tp, length = self.introspector.resolve(descriptor)
        shape = self.registry.shape(tp)
        if shape is Shape.LITERAL or shape is Shape.LITERAL_ARRAY:
            if len(fields) != 1:
                raise MalformedInputError(
                    f"Literal object {name!r} must have exactly one field, has {len(fields)}"
                )
            value = self.registry.to_value(tp, next(iter(fields.values())))
            self.instances[name] = value
            return value
        if shape is Shape.REFERENCE_ARRAY:
            return self._array(name, tp, length or 0, fields)
        if tp in _CONTAINERS:
            return self._container(name, tp, fields)
        return self._object(name, tp, fields)

    def _array(self, name: str, tp: Any, length: int, fields: dict[str, str | None]) -> list:
        items: list[Any] = [None] * length
        self.instances[name] = items
        element = element_type(tp)
        for key, text in fields.items():
            m = _SLOT_RE.fullmatch(key)
            if m is None or int(m.group(1)) >= length:
                raise MalformedInputError(
                    f"Invalid slot {key!r} in array {name!r} of length {length}"
                )
            items[int(m.group(1))] = self._value(text, element)
        return items

    def _container(self, name: str, tp: type, fields: dict[str, str | None]) -> Any:
        if tp is dict:
            mapping: dict = {}
            self.instances[name] = mapping
            for key_text, value_text in _slots(name, fields, "kv"):
                mapping[self._value(key_text, object)] = self._value(value_text, object)
            return mapping
        if tp is set:
            members: set = set()
            self.instances[name] = members
            for (text,) in _slots(name, fields, "i"):
                members.add(self._value(text, object))
            return members

        # tuple and frozenset exist only once their items do
        if name in self.pending:
            raise ReconstructionError(
                f"Cannot rebuild {describe(tp)} {name!r}: it is part of a reference cycle"
            )
        self.pending.add(name)
        items = [self._value(text, object) for (text,) in _slots(name, fields, "i")]
        self.pending.discard(name)
        value = tp(items)
        self.instances[name] = value
        return value

    def _object(self, name: str, cls: type, fields: dict[str, str | None]) -> Any:
        obj = self.introspector.allocate(cls)
        self.instances[name] = obj
        structure = self.introspector.structure(cls)
        for key, text in fields.items():
            member = structure.member(key)
            if member is None:
                logger.debug("Skipping unknown field %r of %s", key, describe(cls))
                continue
            member.set(obj, self._value(text, member.type))
        return obj

    def _value(self, text: str | None, declared: Any) -> Any:
        if text is None:
            return None
        if self.registry.is_literal(declared):
            return self.registry.to_value(declared, text)
        return self.instance(text)


def _slots(name: str, fields: dict[str, str | None], prefixes: str) -> list[list[str | None]]:
    """The slot texts of a container object, one row per index."""
    count = len(fields) // len(prefixes)
    expected = {f"{p}{i}" for i in range(count) for p in prefixes}
    if len(fields) % len(prefixes) or set(fields) != expected:
        raise MalformedInputError(f"Invalid slots {sorted(fields)} in container {name!r}")
    return [[fields[f"{p}{i}"] for p in prefixes] for i in range(count)]
