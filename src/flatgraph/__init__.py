"""flatgraph: flatten object graphs to a format-independent form and back."""

from .errors import (
    FlatGraphError,
    LiteralConversionError,
    MalformedInputError,
    ReconstructionError,
    RegistryError,
    TypeResolutionError,
    UnsupportedTypeError,
)
from .escape import Escape
from .introspect import Introspector, default_introspector
from .json_serializer import JsonSerializer
from .literal import NULL_LITERAL, ArrayLiteral, EnumLiteral, Literal, ReflectiveLiteral
from .mapped import Mapped
from .mapper import Mapper, from_map, to_map
from .names import OBJ_NAME_PREFIX
from .registry import LiteralRegistry, Shape, default_registry
from .serializer import Serializer, SerializerConfig
from .sobject import SEntry, SObject
from .xml_serializer import XmlSerializer, XmlSerializerConfig
from .yaml_serializer import YamlSerializer

__all__ = [
    "to_map",
    "from_map",
    "Mapper",
    "Mapped",
    "Escape",
    "Introspector",
    "default_introspector",
    "Literal",
    "ArrayLiteral",
    "EnumLiteral",
    "ReflectiveLiteral",
    "NULL_LITERAL",
    "OBJ_NAME_PREFIX",
    "LiteralRegistry",
    "Shape",
    "default_registry",
    "Serializer",
    "SerializerConfig",
    "JsonSerializer",
    "XmlSerializer",
    "XmlSerializerConfig",
    "YamlSerializer",
    "SObject",
    "SEntry",
    "FlatGraphError",
    "MalformedInputError",
    "TypeResolutionError",
    "LiteralConversionError",
    "RegistryError",
    "ReconstructionError",
    "UnsupportedTypeError",
]
