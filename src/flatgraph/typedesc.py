"""Type descriptors.

Scalar types are plain classes. Arrays are ``list[T]`` aliases where ``T``
may itself be an array; the innermost element type is the *leaf*.

A type is written as a descriptor string:

- ``<qualifiedName>`` for a scalar, e.g. ``int`` or ``shop.models.Order``;
- ``<qualifiedName>[<length>][]...[]`` for an array, one bracket pair per
  dimension with only the length of the first dimension filled in, e.g.
  ``str[2][]`` for a two-dimensional array of strings with two rows.

The ``builtins.`` module is left out of qualified names.
"""

from __future__ import annotations

import builtins
import importlib
import re
import types
import typing
from collections.abc import Mapping
from typing import Any, Union, get_args, get_origin

from .errors import TypeResolutionError

_ARRAY_SUFFIX_RE = re.compile(r"\[(\d+)\]((?:\[\])*)")


# ---------------------------------------------------------------------------
# Array types
# ---------------------------------------------------------------------------

def is_array(tp: Any) -> bool:
    return get_origin(tp) is list


def array_of(element: Any, dimensions: int = 1) -> Any:
    tp = element
    for _ in range(dimensions):
        tp = list[tp]
    return tp


def element_type(tp: Any) -> Any:
    args = get_args(tp)
    return args[0] if args else object


def leaf_type(tp: Any) -> Any:
    while is_array(tp):
        tp = element_type(tp)
    return tp


def dimensions(tp: Any) -> int:
    n = 0
    while is_array(tp):
        n += 1
        tp = element_type(tp)
    return n


# ---------------------------------------------------------------------------
# Type hints
# ---------------------------------------------------------------------------

def normalize(hint: Any) -> Any:
    """Reduce a type hint to a class, an array type or ``object``.

    ``Optional[X]`` becomes ``X``, ``List[X]`` and bare ``list`` become
    ``list[X]`` and ``list[object]``; ``Any``, other unions and constructs
    that do not name a class become ``object``.
    """
    if hint is list:
        return list[object]
    origin = get_origin(hint)
    if origin is list:
        args = get_args(hint)
        return list[normalize(args[0])] if args else list[object]
    if origin is Union or origin is types.UnionType:
        args = [a for a in get_args(hint) if a is not type(None)]
        return normalize(args[0]) if len(args) == 1 else object
    if origin is typing.Annotated:
        return normalize(get_args(hint)[0])
    if origin is not None:
        return origin if isinstance(origin, type) else object
    if isinstance(hint, type) and hint is not type(None):
        return hint
    return object


def infer_type(value: Any) -> Any:
    """The runtime type of *value*; for lists, an array type inferred from the items."""
    if type(value) is list:
        leaf, depth = _infer_list(value, set())
        return array_of(object if leaf is None else leaf, depth)
    return type(value)


def _infer_list(items: list, visiting: set[int]) -> tuple[type | None, int]:
    """Return (leaf, depth) for *items*; a ``None`` leaf means no information."""
    visiting.add(id(items))
    current: tuple[type | None, int] | None = None
    for item in items:
        if item is None:
            continue
        if type(item) is list:
            if id(item) in visiting:
                candidate: tuple[type | None, int] = (object, 1)
            else:
                leaf, depth = _infer_list(item, visiting)
                candidate = (leaf, depth + 1)
        else:
            candidate = (type(item), 1)
        current = candidate if current is None else _merge(current, candidate)
    visiting.discard(id(items))
    return current if current is not None else (None, 1)


def _merge(
    a: tuple[type | None, int],
    b: tuple[type | None, int],
) -> tuple[type | None, int]:
    if a == b:
        return a
    # an empty list fits any array that is at least as deep
    if a[0] is None and a[1] <= b[1]:
        return b
    if b[0] is None and b[1] <= a[1]:
        return a
    return (object, 1)


# ---------------------------------------------------------------------------
# Descriptors
# ---------------------------------------------------------------------------

def type_name(cls: type) -> str:
    if cls.__module__ == "builtins":
        return cls.__qualname__
    return f"{cls.__module__}.{cls.__qualname__}"


def simple_name(tp: Any) -> str:
    leaf = leaf_type(tp)
    return getattr(leaf, "__name__", "object")


def describe(tp: Any, length: int | None = None) -> str:
    """The descriptor of *tp*; *length* is the first dimension of an array."""
    if is_array(tp):
        return (
            f"{type_name(leaf_type(tp))}[{length or 0}]"
            + "[]" * (dimensions(tp) - 1)
        )
    return type_name(tp)


def parse_descriptor(descriptor: str) -> tuple[str, int, int | None]:
    """Split a descriptor into (leaf name, dimensions, first-dimension length)."""
    pos = descriptor.find("[")
    if pos == -1:
        return descriptor, 0, None
    m = _ARRAY_SUFFIX_RE.fullmatch(descriptor, pos)
    if m is None:
        raise TypeResolutionError(
            descriptor, f"Malformed array type descriptor {descriptor!r}"
        )
    return descriptor[:pos], 1 + len(m.group(2)) // 2, int(m.group(1))


def resolve_name(name: str, known: Mapping[str, type] | None = None) -> type:
    """Load the class called *name*, checking *known* first, then builtins and modules."""
    if known is not None and name in known:
        return known[name]
    if "." not in name:
        cls = getattr(builtins, name, None)
        if isinstance(cls, type):
            return cls
        raise TypeResolutionError(name)

    parts = name.split(".")
    for i in range(len(parts) - 1, 0, -1):
        try:
            obj: Any = importlib.import_module(".".join(parts[:i]))
        except (ImportError, ValueError):
            continue
        try:
            for attr in parts[i:]:
                obj = getattr(obj, attr)
        except AttributeError:
            break
        if isinstance(obj, type):
            return obj
        break
    raise TypeResolutionError(name)


def resolve(
    descriptor: str,
    known: Mapping[str, type] | None = None,
) -> tuple[Any, int | None]:
    """Resolve *descriptor* to (type, first-dimension length)."""
    leaf_name, dims, length = parse_descriptor(descriptor)
    try:
        leaf = resolve_name(leaf_name, known)
    except TypeResolutionError:
        raise TypeResolutionError(descriptor) from None
    return array_of(leaf, dims), length
