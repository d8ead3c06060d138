"""Tests for the shared serializer machinery in flatgraph.serializer."""

import io

import pytest

from flatgraph import JsonSerializer, Mapped, XmlSerializer, YamlSerializer
from flatgraph.errors import MalformedInputError
from flatgraph.serializer import SerializerConfig, build_mapped
from flatgraph.sobject import SEntry, SObject
from flatgraph.xml_serializer import XmlSerializerConfig


SERIALIZERS = [JsonSerializer, XmlSerializer, YamlSerializer]


class TestConfig:
    def test_defaults(self):
        config = SerializerConfig()
        assert config.indent_spaces == 2
        assert config.line_separator == "\n"
        assert config.encoding == "utf-8"
        assert config.inline_single_ref_objects is True

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"indent_spaces": -1},
            {"indent_spaces": "2"},
            {"line_separator": None},
            {"encoding": "no-such-encoding"},
        ],
    )
    def test_invalid(self, kwargs):
        with pytest.raises(ValueError):
            SerializerConfig(**kwargs)

    def test_xml_root_element(self):
        assert XmlSerializerConfig().root_element == "root"
        with pytest.raises(ValueError):
            XmlSerializerConfig(root_element="1st")

    def test_overrides(self):
        s = JsonSerializer(indent_spaces=4, inline_single_ref_objects=False)
        assert s.config.indent_spaces == 4
        assert s.config.inline_single_ref_objects is False
        assert s.config.encoding == "utf-8"

    def test_overrides_on_explicit_config(self):
        s = XmlSerializer(XmlSerializerConfig(root_element="graph"), indent_spaces=1)
        assert s.config == XmlSerializerConfig(indent_spaces=1, root_element="graph")

    def test_invalid_override(self):
        with pytest.raises(ValueError):
            YamlSerializer(indent_spaces=-2)

    def test_frozen(self):
        with pytest.raises(AttributeError):
            SerializerConfig().indent_spaces = 3


class TestBuildMapped:
    def test_top_level_objects(self):
        tree = [
            ("obj_ref_b", SObject("B", [SEntry("a", "-10"), SEntry("c", "obj_ref_a")])),
            ("obj_ref_a", SObject("A", [SEntry("a", "Test")])),
        ]
        assert build_mapped(tree) == Mapped(
            objects={"obj_ref_b": {"a": "-10", "c": "obj_ref_a"}, "obj_ref_a": {"a": "Test"}},
            types={"obj_ref_b": "B", "obj_ref_a": "A"},
            single_ref_objects={"obj_ref_b", "obj_ref_a"},
        )

    def test_nested_object_named_after_field(self):
        tree = [("obj_ref_b", SObject("B", [SEntry("c", SObject("A", [SEntry("a", None)]))]))]
        mapped = build_mapped(tree)
        assert mapped.objects == {"obj_ref_b": {"c": "obj_ref_c"}, "obj_ref_c": {"a": None}}
        assert mapped.types == {"obj_ref_b": "B", "obj_ref_c": "A"}
        assert mapped.single_ref_objects == {"obj_ref_b", "obj_ref_c"}

    def test_nested_name_avoids_top_level_names(self):
        tree = [
            ("obj_ref_b", SObject("B", [SEntry("c", SObject("A"))])),
            ("obj_ref_c", SObject("A")),
        ]
        mapped = build_mapped(tree)
        nested = mapped.objects["obj_ref_b"]["c"]
        assert nested != "obj_ref_c"
        assert nested.startswith("obj_ref_c")
        assert mapped.types[nested] == "A"

    def test_reference_counting(self):
        tree = [
            ("obj_ref_root", SObject("R", [SEntry("x", "obj_ref_x"), SEntry("y", "obj_ref_x")])),
            ("obj_ref_x", SObject("X", [SEntry("back", "obj_ref_root")])),
        ]
        assert build_mapped(tree).single_ref_objects == set()

    def test_duplicate_names(self):
        tree = [("obj_ref_a", SObject("A")), ("obj_ref_a", SObject("A"))]
        with pytest.raises(MalformedInputError):
            build_mapped(tree)

    def test_duplicate_fields(self):
        tree = [("obj_ref_a", SObject("A", [SEntry("a", "1"), SEntry("a", "2")]))]
        with pytest.raises(MalformedInputError):
            build_mapped(tree)

    def test_empty(self):
        assert build_mapped([]) == Mapped()


@pytest.mark.parametrize("cls", SERIALIZERS)
class TestContract:
    def mapped(self):
        return Mapped(
            objects={
                "obj_ref_b": {"a": "-10", "c": "obj_ref_a", "n": None},
                "obj_ref_a": {"a": "Test", "b": "obj_ref_b"},
            },
            types={"obj_ref_b": "B", "obj_ref_a": "A"},
            single_ref_objects={"obj_ref_a"},
        )

    def test_inline_option(self, cls):
        s = cls()
        inline = s.to_text(self.mapped())
        flat = s.to_text(self.mapped(), inline=False)
        assert inline != flat
        assert cls(inline_single_ref_objects=False).to_text(self.mapped()) == flat

    def test_flat_roundtrip_is_exact(self, cls):
        s = cls()
        text = s.to_text(self.mapped(), inline=False)
        assert s.to_mapped(text) == self.mapped()

    def test_inline_roundtrip(self, cls):
        s = cls()
        text = s.to_text(self.mapped())
        mapped = s.to_mapped(text)
        assert mapped.objects == {
            "obj_ref_b": {"a": "-10", "c": "obj_ref_c", "n": None},
            "obj_ref_c": {"a": "Test", "b": "obj_ref_b"},
        }
        assert mapped.single_ref_objects == {"obj_ref_c"}
        assert s.to_text(mapped) == text

    def test_write_to_stream(self, cls):
        s = cls()
        out = io.StringIO()
        s.write(self.mapped(), out)
        assert out.getvalue() == s.to_text(self.mapped())
        assert s.read(io.StringIO(out.getvalue())) == s.to_mapped(out.getvalue())

    def test_bytes(self, cls):
        s = cls()
        data = s.to_bytes(self.mapped())
        assert isinstance(data, bytes)
        assert s.to_mapped(data) == s.to_mapped(data.decode("utf-8"))

    def test_invalid_bytes(self, cls):
        with pytest.raises(MalformedInputError):
            cls().to_mapped(b"\xff\xfe\xfd")

    def test_empty(self, cls):
        s = cls()
        assert s.to_mapped(s.to_text(Mapped())) == Mapped()

    def test_missing_type(self, cls):
        with pytest.raises(MalformedInputError):
            cls().to_text(Mapped(objects={"obj_ref_a": {}}))
