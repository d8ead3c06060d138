"""YAML codec.

::

    obj_ref_b:
       class: B
       a: "-10"
       c:
         class: A
         a: "Test"

Values are double-quoted so they always read back as text; ``null`` is
written plain. Reading works on PyYAML's event stream, which keeps scalars
as written instead of resolving them to Python values.
"""

from __future__ import annotations

import yaml

from .errors import MalformedInputError
from .serializer import Serializer, Tree
from .sobject import SEntry, SObject, SValue

CLASS_KEY = "class"

_NULL_TAG = "tag:yaml.org,2002:null"
_PLAIN_NULLS = {"", "~", "null", "Null", "NULL"}


def quote(text: str) -> str:
    """*text* as a YAML double-quoted scalar on one line."""
    return yaml.dump(text, default_style='"', width=float("inf"), allow_unicode=True).rstrip("\n")


class YamlSerializer(Serializer):
    # -- Writing --------------------------------------------------------

    @property
    def indent(self) -> str:
        # nested mappings need at least one column of indentation
        return " " * max(self.config.indent_spaces, 1)

    def _indentation(self, level: int) -> str:
        return self.indent * (level - 1) + " "

    def object_start(self, name: str, type_name: str, first: bool) -> str:
        return (
            f"{name}:" + self.ls
            + self._indentation(2) + f"{CLASS_KEY}: {type_name}" + self.ls
        )

    def object_end(self, name: str) -> str:
        return ""

    def field(self, key: str, value: str, level: int) -> str:
        return self._indentation(level) + f"{key}: {quote(value)}" + self.ls

    def null_field(self, key: str, level: int) -> str:
        return self._indentation(level) + f"{key}: null" + self.ls

    def nested_start(self, key: str, type_name: str, level: int) -> str:
        return (
            self._indentation(level) + f"{key}:" + self.ls
            + self._indentation(level + 1) + f"{CLASS_KEY}: {type_name}" + self.ls
        )

    def nested_end(self, key: str, level: int) -> str:
        return ""

    # -- Reading --------------------------------------------------------

    def parse(self, text: str) -> Tree:
        try:
            events = list(yaml.parse(text))
        except yaml.YAMLError as exc:
            raise MalformedInputError(f"Invalid YAML: {exc}") from exc
        return _EventReader(events).document()


class _EventReader:
    def __init__(self, events: list[yaml.Event]) -> None:
        self.events = events
        self.pos = 0

    def next(self) -> yaml.Event:
        if self.pos >= len(self.events):
            raise MalformedInputError("Unexpected end of YAML document")
        event = self.events[self.pos]
        self.pos += 1
        return event

    def peek(self) -> yaml.Event | None:
        return self.events[self.pos] if self.pos < len(self.events) else None

    def expect(self, kind: type, what: str) -> yaml.Event:
        event = self.next()
        if isinstance(event, yaml.AliasEvent):
            raise MalformedInputError("YAML aliases are not supported")
        if not isinstance(event, kind):
            raise MalformedInputError(f"Expected {what}, found {type(event).__name__}")
        return event

    def document(self) -> Tree:
        self.expect(yaml.StreamStartEvent, "start of stream")
        tree: Tree = []
        if isinstance(self.peek(), yaml.DocumentStartEvent):
            self.next()
            event = self.next()
            if isinstance(event, yaml.MappingStartEvent):
                tree = self.objects()
            elif not (isinstance(event, yaml.ScalarEvent) and _scalar(event) is None):
                raise MalformedInputError("The YAML document must be a mapping of objects")
            self.expect(yaml.DocumentEndEvent, "end of document")
        self.expect(yaml.StreamEndEvent, "a single YAML document")
        return tree

    def objects(self) -> Tree:
        tree: Tree = []
        while not isinstance(self.peek(), yaml.MappingEndEvent):
            name = self.key()
            self.expect(yaml.MappingStartEvent, f"an object for {name!r}")
            tree.append((name, self.sobject(name)))
        self.next()
        return tree

    def sobject(self, name: str) -> SObject:
        if self.key() != CLASS_KEY:
            raise MalformedInputError(f"Object {name!r} must start with {CLASS_KEY!r}")
        type_name = _scalar(self.expect(yaml.ScalarEvent, f"the type of {name!r}"))
        if type_name is None:
            raise MalformedInputError(f"Object {name!r} has a null {CLASS_KEY!r}")
        obj = SObject(type_name)
        while not isinstance(self.peek(), yaml.MappingEndEvent):
            key = self.key()
            obj.entries.append(SEntry(key, self.value(key)))
        self.next()
        return obj

    def key(self) -> str:
        return self.expect(yaml.ScalarEvent, "a key").value

    def value(self, key: str) -> SValue:
        event = self.next()
        if isinstance(event, yaml.ScalarEvent):
            return _scalar(event)
        if isinstance(event, yaml.MappingStartEvent):
            return self.sobject(key)
        if isinstance(event, yaml.AliasEvent):
            raise MalformedInputError("YAML aliases are not supported")
        raise MalformedInputError(f"Field {key!r} holds an unsupported YAML value")


def _scalar(event: yaml.ScalarEvent) -> str | None:
    if event.tag == _NULL_TAG:
        return None
    if event.style is None and event.value in _PLAIN_NULLS:
        return None
    return event.value
