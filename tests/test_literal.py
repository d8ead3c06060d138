"""Tests for flatgraph.literal."""

import datetime
import math
import uuid
from decimal import Decimal
from enum import Enum
from fractions import Fraction

import pytest

from flatgraph.errors import LiteralConversionError
from flatgraph.literal import NULL_LITERAL, ArrayLiteral, EnumLiteral, ReflectiveLiteral, base_literals


class Color(Enum):
    RED = 1
    GREEN = 2


BASE = base_literals()


def array(element_type, dims=1):
    lit = BASE[element_type]
    tp = element_type
    for _ in range(dims):
        tp = list[tp]
        lit = ArrayLiteral(tp, lit)
    return lit


class TestNull:
    @pytest.mark.parametrize("tp", list(BASE))
    def test_every_base_literal(self, tp):
        lit = BASE[tp]
        assert lit.to_text(None) == NULL_LITERAL
        assert lit.to_value(NULL_LITERAL) is None
        assert lit.to_value(None) is None

    def test_enum_and_array(self):
        assert EnumLiteral(Color).to_value(NULL_LITERAL) is None
        assert array(int).to_text(None) == NULL_LITERAL


class TestBaseLiterals:
    @pytest.mark.parametrize(
        "tp, value, text",
        [
            (str, "hi", "hi"),
            (int, -10, "-10"),
            (float, 0.1, "0.1"),
            (float, 1e100, "1e+100"),
            (bool, True, "true"),
            (bool, False, "false"),
            (complex, 1 + 2j, "(1+2j)"),
            (Decimal, Decimal("1.10"), "1.10"),
            (Fraction, Fraction(1, 3), "1/3"),
            (datetime.date, datetime.date(2024, 1, 15), "2024-01-15"),
            (datetime.datetime, datetime.datetime(2024, 1, 15, 8, 30), "2024-01-15T08:30:00"),
            (datetime.time, datetime.time(8, 30, 1), "08:30:01"),
            (uuid.UUID, uuid.UUID(int=1), "00000000-0000-0000-0000-000000000001"),
            (bytes, b"\x00\xff", "00ff"),
        ],
    )
    def test_text_forms(self, tp, value, text):
        lit = BASE[tp]
        assert lit.to_text(value) == text
        assert lit.to_value(text) == value

    @pytest.mark.parametrize("text", ["TRUE", "True", "true"])
    def test_bool_case_insensitive(self, text):
        assert BASE[bool].to_value(text) is True

    def test_bool_rejects_other_text(self):
        with pytest.raises(LiteralConversionError):
            BASE[bool].to_value("yes")


class TestNumericBoundaries:
    @pytest.mark.parametrize("value", [2**63 - 1, -(2**63), 2**200, 0])
    def test_int(self, value):
        lit = BASE[int]
        assert lit.to_value(lit.to_text(value)) == value

    @pytest.mark.parametrize(
        "value",
        [1.7976931348623157e308, 5e-324, 2.2250738585072014e-308, -1.0, math.inf, -math.inf],
    )
    def test_float(self, value):
        lit = BASE[float]
        assert lit.to_value(lit.to_text(value)) == value

    def test_negative_zero(self):
        lit = BASE[float]
        assert math.copysign(1.0, lit.to_value(lit.to_text(-0.0))) == -1.0

    def test_nan(self):
        lit = BASE[float]
        assert math.isnan(lit.to_value(lit.to_text(math.nan)))


class TestConversionErrors:
    def test_wrapped_with_cause(self):
        with pytest.raises(LiteralConversionError) as exc_info:
            BASE[int].to_value("abc")
        assert isinstance(exc_info.value.__cause__, ValueError)

    def test_is_value_error(self):
        with pytest.raises(ValueError):
            BASE[Decimal].to_value("not a number")

    def test_enum_unknown_member(self):
        with pytest.raises(LiteralConversionError):
            EnumLiteral(Color).to_value("BLUE")

    def test_enum_wrong_value(self):
        with pytest.raises(LiteralConversionError):
            EnumLiteral(Color).to_text("RED")


def test_enum_by_name():
    lit = EnumLiteral(Color)
    assert lit.to_text(Color.GREEN) == "GREEN"
    assert lit.to_value("GREEN") is Color.GREEN


def test_reflective():
    lit = ReflectiveLiteral(Decimal)
    assert lit.to_text(Decimal("2.5")) == "2.5"
    assert lit.to_value("2.5") == Decimal("2.5")


class TestArrayLiteral:
    def test_escaping_scenario(self):
        lit = array(str)
        assert lit.to_text(["", None, "["]) == "[,\\N,\\[]"
        assert lit.to_value("[,\\N,\\[]") == ["", None, "["]

    def test_empty(self):
        assert array(int).to_text([]) == "[]"
        assert array(int).to_value("[]") == []

    def test_ints(self):
        assert array(int).to_text([1, -2, None]) == "[1,-2,\\N]"
        assert array(int).to_value("[1,-2,\\N]") == [1, -2, None]

    def test_trailing_empty_string(self):
        lit = array(str)
        assert lit.to_text(["a", ""]) == "[a,]"
        assert lit.to_value("[a,]") == ["a", ""]

    def test_single_empty_string_is_ambiguous(self):
        lit = array(str)
        assert lit.to_text([""]) == "[]"
        assert lit.to_value("[]") == []

    def test_null_text_as_string_element(self):
        lit = array(str)
        text = lit.to_text(["\\N", "a", None])
        assert text == "[\\\\N,a,\\N]"
        assert lit.to_value(text) == ["\\N", "a", None]

    def test_null_text_in_nested_string_array(self):
        lit = array(str, 2)
        grid = [["\\N"], None]
        assert lit.to_value(lit.to_text(grid)) == grid

    def test_escaped_element_conversion_error_is_wrapped(self):
        with pytest.raises(LiteralConversionError):
            array(int).to_value("[1,\\,]")

    def test_nested(self):
        lit = array(str, 2)
        grid = [["a,b", "[x]"], ["", None, "\\"], None, []]
        text = lit.to_text(grid)
        assert text == "[[a\\,b,\\[x\\]],[,\\N,\\\\],\\N,[]]"
        assert lit.to_value(text) == grid

    def test_three_dimensions(self):
        lit = array(int, 3)
        value = [[[1, 2], [3]], [[]]]
        assert lit.to_value(lit.to_text(value)) == value

    @pytest.mark.parametrize(
        "value",
        [
            ["plain"],
            ["a,b", "c]d", "[e"],
            ["back\\slash", "\\", "\\,"],
            [" spaced ", "x", None],
        ],
    )
    def test_string_roundtrip(self, value):
        lit = array(str)
        assert lit.to_value(lit.to_text(value)) == value

    def test_enums(self):
        lit = ArrayLiteral(list[Color], EnumLiteral(Color))
        assert lit.to_text([Color.RED, Color.GREEN]) == "[RED,GREEN]"
        assert lit.to_value("[RED,GREEN]") == [Color.RED, Color.GREEN]

    @pytest.mark.parametrize("text", ["1,2", "[1,2", "1,2]", "[[1],2", "[1]],[2]", ""])
    def test_malformed(self, text):
        with pytest.raises(LiteralConversionError):
            array(int, 2 if text.startswith("[[") else 1).to_value(text)

    def test_element_error(self):
        with pytest.raises(LiteralConversionError):
            array(int).to_value("[1,x]")

    def test_not_a_list(self):
        with pytest.raises(LiteralConversionError):
            array(int).to_text("123")
