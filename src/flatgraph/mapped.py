"""Mapped: the flat, format-independent form of an object graph."""

from __future__ import annotations

from dataclasses import dataclass, field

from .names import is_object_name


@dataclass
class Mapped:
    """Named objects, their types and which of them are referenced only once.

    ``objects`` maps object names to field maps; a field value is literal
    text, ``None`` or the name of another object. ``types`` maps the same
    names to type descriptors. The first object is the root.
    """

    objects: dict[str, dict[str, str | None]] = field(default_factory=dict)
    types: dict[str, str] = field(default_factory=dict)
    single_ref_objects: set[str] = field(default_factory=set)

    def root_name(self) -> str | None:
        return next(iter(self.objects), None)

    @staticmethod
    def is_reference(text: str | None) -> bool:
        return is_object_name(text)

    def __len__(self) -> int:
        return len(self.objects)
