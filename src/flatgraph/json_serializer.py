"""JSON codec.

::

    {
      "obj_ref_a": {
        "class": "A",
        "a": "Test",
        "b": "10"
      }
    }
"""

from __future__ import annotations

import json

from .errors import MalformedInputError
from .serializer import Serializer, Tree
from .sobject import SEntry, SObject, SValue

CLASS_KEY = "class"


class _Pairs(list):
    """A JSON object as its ordered (key, value) pairs."""


def _quote(text: str) -> str:
    return json.dumps(text, ensure_ascii=False)


class JsonSerializer(Serializer):
    # -- Writing --------------------------------------------------------

    def header(self) -> str:
        return "{"

    def footer(self) -> str:
        return self.ls + "}"

    def object_start(self, name: str, type_name: str, first: bool) -> str:
        return (
            ("" if first else ",")
            + self.ls + self.indent + _quote(name) + ": {"
            + self.ls + self.indent * 2 + _quote(CLASS_KEY) + ": " + _quote(type_name)
        )

    def object_end(self, name: str) -> str:
        return self.ls + self.indent + "}"

    def field(self, key: str, value: str, level: int) -> str:
        return "," + self.ls + self.indent * level + _quote(key) + ": " + _quote(value)

    def null_field(self, key: str, level: int) -> str:
        return "," + self.ls + self.indent * level + _quote(key) + ": null"

    def nested_start(self, key: str, type_name: str, level: int) -> str:
        return (
            "," + self.ls + self.indent * level + _quote(key) + ": {"
            + self.ls + self.indent * (level + 1) + _quote(CLASS_KEY) + ": " + _quote(type_name)
        )

    def nested_end(self, key: str, level: int) -> str:
        return self.ls + self.indent * level + "}"

    # -- Reading --------------------------------------------------------

    def parse(self, text: str) -> Tree:
        try:
            data = json.loads(text, object_pairs_hook=_Pairs)
        except json.JSONDecodeError as exc:
            raise MalformedInputError(f"Invalid JSON: {exc}") from exc
        if not isinstance(data, _Pairs):
            raise MalformedInputError("The JSON document must be an object")
        tree: Tree = []
        for name, value in data:
            if not isinstance(value, _Pairs):
                raise MalformedInputError(f"Object {name!r} must be a JSON object")
            tree.append((name, _sobject(name, value)))
        return tree


def _sobject(name: str, pairs: _Pairs) -> SObject:
    if not pairs or pairs[0][0] != CLASS_KEY:
        raise MalformedInputError(f"Object {name!r} must start with {CLASS_KEY!r}")
    type_name = pairs[0][1]
    if not isinstance(type_name, str):
        raise MalformedInputError(f"The {CLASS_KEY!r} of object {name!r} must be a string")
    return SObject(type_name, [SEntry(key, _value(key, v)) for key, v in pairs[1:]])


def _value(key: str, value: object) -> SValue:
    if value is None or isinstance(value, str):
        return value
    if isinstance(value, _Pairs):
        return _sobject(key, value)
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    raise MalformedInputError(f"Field {key!r} holds an unsupported JSON value: {value!r}")
