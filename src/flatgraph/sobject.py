"""SObject: the tree every codec reader produces before building a Mapped."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Union


@dataclass
class SObject:
    """An object as written in a document: its type and its fields in order."""

    type_name: str
    entries: list["SEntry"] = field(default_factory=list)


@dataclass
class SEntry:
    key: str
    value: "SValue"  # None = null


SValue = Union[str, SObject, None]
