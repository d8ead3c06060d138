"""Object names: the reserved prefix, identifiers and unique name allocation."""

from __future__ import annotations

import random
from collections.abc import Collection

OBJ_NAME_PREFIX = "obj_ref_"

_random = random.Random()


def to_identifier(name: str) -> str:
    """Turn *name* into an identifier.

    ``.`` and ``$`` become ``_``, any other character that is not a letter,
    digit or underscore is dropped. An empty result becomes ``_`` and a
    leading digit is prefixed with ``_``.
    """
    chars: list[str] = []
    for c in name:
        if c in ".$":
            chars.append("_")
        elif c.isalnum() or c == "_":
            chars.append(c)
    ident = "".join(chars)
    if not ident:
        return "_"
    if ident[0].isdigit():
        return "_" + ident
    return ident


def uncap_first(name: str) -> str:
    return name[:1].lower() + name[1:]


def unique_random_name(name: str, taken: Collection[str]) -> str:
    """Return *name*, or *name* plus a random number if it is already taken.

    The random suffix is drawn from ``range(max(len(taken), 1000))`` and
    redrawn until the result is free.
    """
    if name not in taken:
        return name
    upper = max(len(taken), 1000)
    while True:
        candidate = f"{name}{_random.randrange(upper)}"
        if candidate not in taken:
            return candidate


def object_name(proposed: str) -> str:
    """Add the reserved prefix to *proposed* if it is missing."""
    if proposed.startswith(OBJ_NAME_PREFIX):
        return proposed
    return OBJ_NAME_PREFIX + proposed


def unique_object_name(proposed: str, taken: Collection[str]) -> str:
    """A prefixed object name built from *proposed* and not in *taken*."""
    return unique_random_name(object_name(proposed), taken)


def is_object_name(text: str | None) -> bool:
    return text is not None and text.startswith(OBJ_NAME_PREFIX)
