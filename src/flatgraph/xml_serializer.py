"""XML codec.

::

    <?xml version='1.0' encoding='UTF-8'?>
    <root>
      <obj_ref_a type='A'>
        <a>Test</a>
        <b>10</b>
      </obj_ref_a>
    </root>

Null fields hold the null literal ``\\N``. Values with markup characters are
wrapped in CDATA sections.
"""

from __future__ import annotations

import re
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from xml.sax.saxutils import escape

from .errors import MalformedInputError
from .literal import NULL_LITERAL
from .serializer import Serializer, SerializerConfig, Tree
from .sobject import SEntry, SObject

TYPE_ATTRIBUTE = "type"

_XML_NAME_RE = re.compile(r"[A-Za-z_][\w.\-]*")


@dataclass(frozen=True)
class XmlSerializerConfig(SerializerConfig):
    root_element: str = "root"

    def __post_init__(self) -> None:
        super().__post_init__()
        if not isinstance(self.root_element, str) or not _XML_NAME_RE.fullmatch(self.root_element):
            raise ValueError(f"Invalid XML element name {self.root_element!r}")


def _attribute(text: str) -> str:
    return escape(text, {"'": "&apos;"})


def _text(value: str) -> str:
    if "\r" in value:
        # CDATA would not keep a carriage return through newline normalisation
        return escape(value, {"\r": "&#13;"})
    if "<" in value or ">" in value or "&" in value:
        return "<![CDATA[" + value.replace("]]>", "]]]]><![CDATA[>") + "]]>"
    return value


class XmlSerializer(Serializer):
    config_class = XmlSerializerConfig

    # -- Writing --------------------------------------------------------

    def header(self) -> str:
        return (
            f"<?xml version='1.0' encoding='{self.config.encoding.upper()}'?>"
            + self.ls + f"<{self.config.root_element}>" + self.ls
        )

    def footer(self) -> str:
        return f"</{self.config.root_element}>"

    def object_start(self, name: str, type_name: str, first: bool) -> str:
        return self.indent + self._open(name, type_name)

    def object_end(self, name: str) -> str:
        return self.indent + f"</{name}>" + self.ls

    def field(self, key: str, value: str, level: int) -> str:
        return self.indent * level + f"<{key}>{_text(value)}</{key}>" + self.ls

    def null_field(self, key: str, level: int) -> str:
        return self.field(key, NULL_LITERAL, level)

    def nested_start(self, key: str, type_name: str, level: int) -> str:
        return self.indent * level + self._open(key, type_name)

    def nested_end(self, key: str, level: int) -> str:
        return self.indent * level + f"</{key}>" + self.ls

    def _open(self, tag: str, type_name: str) -> str:
        return f"<{tag} {TYPE_ATTRIBUTE}='{_attribute(type_name)}'>" + self.ls

    # -- Reading --------------------------------------------------------

    def parse(self, text: str) -> Tree:
        try:
            root = ET.fromstring(text)
        except ET.ParseError as exc:
            raise MalformedInputError(f"Invalid XML: {exc}") from exc
        tree: Tree = []
        for child in root:
            type_name = child.get(TYPE_ATTRIBUTE)
            if type_name is None:
                raise MalformedInputError(
                    f"Object {child.tag!r} has no {TYPE_ATTRIBUTE!r} attribute"
                )
            tree.append((child.tag, _sobject(child, type_name)))
        return tree


def _sobject(element: ET.Element, type_name: str) -> SObject:
    obj = SObject(type_name)
    for child in element:
        nested_type = child.get(TYPE_ATTRIBUTE)
        if nested_type is not None:
            obj.entries.append(SEntry(child.tag, _sobject(child, nested_type)))
            continue
        if len(child):
            raise MalformedInputError(
                f"Field {child.tag!r} has child elements but no {TYPE_ATTRIBUTE!r} attribute"
            )
        text = child.text or ""
        obj.entries.append(SEntry(child.tag, None if text == NULL_LITERAL else text))
    return obj
