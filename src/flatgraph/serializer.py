"""Serializer contract shared by the JSON, XML and YAML codecs.

Writing walks a :class:`~flatgraph.mapped.Mapped` once and asks the codec for
the text of each piece (header, object start and end, fields, nested
objects, footer). Objects referenced from a single slot can be written
inline, inside the field that references them.

Reading goes the other way: the codec parses its text into a list of
``(name, SObject)`` pairs and :func:`build_mapped` turns that into a
Mapped, naming nested objects and recounting references.
"""

from __future__ import annotations

import codecs
import dataclasses
import io
import logging
from abc import ABC, abstractmethod
from collections import Counter
from dataclasses import dataclass
from typing import Any, ClassVar, TextIO

from .errors import MalformedInputError
from .mapped import Mapped
from .names import is_object_name, unique_object_name
from .sobject import SObject

logger = logging.getLogger(__name__)

# A parsed document: top-level object names and their objects, in order.
Tree = list[tuple[str, SObject]]


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class SerializerConfig:
    indent_spaces: int = 2
    line_separator: str = "\n"
    encoding: str = "utf-8"
    inline_single_ref_objects: bool = True

    def __post_init__(self) -> None:
        if isinstance(self.indent_spaces, bool) or not isinstance(self.indent_spaces, int):
            raise ValueError(f"indent_spaces must be an int, got {self.indent_spaces!r}")
        if self.indent_spaces < 0:
            raise ValueError(f"indent_spaces must not be negative, got {self.indent_spaces}")
        if not isinstance(self.line_separator, str):
            raise ValueError(f"line_separator must be a str, got {self.line_separator!r}")
        try:
            codecs.lookup(self.encoding)
        except (LookupError, TypeError) as exc:
            raise ValueError(f"Unknown encoding {self.encoding!r}") from exc


# ---------------------------------------------------------------------------
# Serializer base
# ---------------------------------------------------------------------------

class Serializer(ABC):
    """Base class of the codecs.

    ``Serializer(config=None, **overrides)``: keyword arguments replace the
    matching fields of *config* (or of the default configuration).
    """

    config_class: ClassVar[type[SerializerConfig]] = SerializerConfig

    def __init__(self, config: SerializerConfig | None = None, **overrides: Any) -> None:
        if config is None:
            config = self.config_class()
        if overrides:
            config = dataclasses.replace(config, **overrides)
        self.config = config

    @property
    def indent(self) -> str:
        return " " * self.config.indent_spaces

    @property
    def ls(self) -> str:
        return self.config.line_separator

    # -- Writing --------------------------------------------------------

    def write(self, mapped: Mapped, out: TextIO, *, inline: bool | None = None) -> None:
        if inline is None:
            inline = self.config.inline_single_ref_objects
        written: set[str] = set()
        out.write(self.header())
        first = True
        for name, fields in mapped.objects.items():
            if name in written:
                continue
            written.add(name)
            out.write(self.object_start(name, _type_of(mapped, name), first))
            self._write_fields(mapped, fields, 2, written, inline, out)
            out.write(self.object_end(name))
            first = False
        out.write(self.footer())

    def _write_fields(
        self,
        mapped: Mapped,
        fields: dict[str, str | None],
        level: int,
        written: set[str],
        inline: bool,
        out: TextIO,
    ) -> None:
        for key, value in fields.items():
            if value is None:
                out.write(self.null_field(key, level))
            elif (
                inline
                and value in mapped.single_ref_objects
                and value in mapped.objects
                and value not in written
            ):
                written.add(value)
                out.write(self.nested_start(key, _type_of(mapped, value), level))
                self._write_fields(mapped, mapped.objects[value], level + 1, written, inline, out)
                out.write(self.nested_end(key, level))
            else:
                out.write(self.field(key, value, level))

    def to_text(self, mapped: Mapped, *, inline: bool | None = None) -> str:
        buf = io.StringIO()
        self.write(mapped, buf, inline=inline)
        return buf.getvalue()

    def to_bytes(self, mapped: Mapped, *, inline: bool | None = None) -> bytes:
        return self.to_text(mapped, inline=inline).encode(self.config.encoding)

    # -- Reading --------------------------------------------------------

    def to_mapped(self, text: str | bytes) -> Mapped:
        if isinstance(text, bytes):
            try:
                text = text.decode(self.config.encoding)
            except UnicodeDecodeError as exc:
                raise MalformedInputError(
                    f"Input is not valid {self.config.encoding}: {exc}"
                ) from exc
        mapped = build_mapped(self.parse(text))
        logger.debug("Read %d objects with %s", len(mapped.objects), type(self).__name__)
        return mapped

    def read(self, stream: Any) -> Mapped:
        return self.to_mapped(stream.read())

    # -- Codec hooks ----------------------------------------------------

    @abstractmethod
    def parse(self, text: str) -> Tree:
        """Parse *text* into top-level ``(name, SObject)`` pairs."""

    def header(self) -> str:
        return ""

    def footer(self) -> str:
        return ""

    @abstractmethod
    def object_start(self, name: str, type_name: str, first: bool) -> str: ...

    @abstractmethod
    def object_end(self, name: str) -> str: ...

    @abstractmethod
    def field(self, key: str, value: str, level: int) -> str: ...

    @abstractmethod
    def null_field(self, key: str, level: int) -> str: ...

    @abstractmethod
    def nested_start(self, key: str, type_name: str, level: int) -> str: ...

    @abstractmethod
    def nested_end(self, key: str, level: int) -> str: ...


def _type_of(mapped: Mapped, name: str) -> str:
    type_name = mapped.types.get(name)
    if type_name is None:
        raise MalformedInputError(f"Object {name!r} has no type")
    return type_name


# ---------------------------------------------------------------------------
# Shared reader
# ---------------------------------------------------------------------------

def build_mapped(tree: Tree) -> Mapped:
    """Build a Mapped from a parsed document.

    Nested objects are given names derived from their field name, unique
    among all top-level names. Objects referenced from exactly one slot end
    up in ``single_ref_objects``; the first top-level object starts there.
    """
    counts = Counter(name for name, _ in tree)
    duplicates = sorted(name for name, n in counts.items() if n > 1)
    if duplicates:
        raise MalformedInputError(f"Duplicate object names: {', '.join(duplicates)}")

    mapped = Mapped()
    taken: set[str] = set(counts)
    multi: set[str] = set()
    if tree:
        mapped.single_ref_objects.add(tree[0][0])

    def reference(name: str) -> None:
        if name in multi:
            return
        if name in mapped.single_ref_objects:
            mapped.single_ref_objects.discard(name)
            multi.add(name)
        else:
            mapped.single_ref_objects.add(name)

    def add(name: str, sobj: SObject) -> None:
        fields: dict[str, str | None] = {}
        mapped.objects[name] = fields
        mapped.types[name] = sobj.type_name
        for entry in sobj.entries:
            if entry.key in fields:
                raise MalformedInputError(f"Duplicate field {entry.key!r} in object {name!r}")
            value = entry.value
            if isinstance(value, SObject):
                nested = unique_object_name(entry.key, taken)
                taken.add(nested)
                mapped.single_ref_objects.add(nested)
                fields[entry.key] = nested
                add(nested, value)
            else:
                fields[entry.key] = value
                if is_object_name(value):
                    reference(value)

    for name, sobj in tree:
        add(name, sobj)
    return mapped
