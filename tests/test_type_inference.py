"""
Tests for per-value and per-column type inference.
"""

import math

import pytest

from applens.core.inference import TypeTag, infer_type, infer_type_from_values
from applens.core.inference.numeric import parse_float, to_number


@pytest.mark.parametrize("value", [None, ""])
def test_empty_values_are_strings(value):
    assert infer_type(value) == TypeTag.STRING


@pytest.mark.parametrize(
    "value,expected",
    [
        ("42", TypeTag.INTEGER),
        (42, TypeTag.INTEGER),
        (2.0, TypeTag.INTEGER),
        ("1e3", TypeTag.INTEGER),
        ("0x1A", TypeTag.INTEGER),
        ("-7", TypeTag.INTEGER),
        ("3.14", TypeTag.FLOAT),
        (0.5, TypeTag.FLOAT),
        ("Infinity", TypeTag.FLOAT),
    ],
)
def test_numeric_values(value, expected):
    assert infer_type(value) == expected


def test_whitespace_only_text_reads_as_zero():
    assert infer_type("   ") == TypeTag.INTEGER


@pytest.mark.parametrize("value", [True, False, "true", "false"])
def test_booleans(value):
    assert infer_type(value) == TypeTag.BOOLEAN


def test_capitalized_boolean_text_is_a_string():
    assert infer_type("True") == TypeTag.STRING


@pytest.mark.parametrize(
    "value,expected",
    [
        ("2024-01-15", TypeTag.DATE),
        ("2024-01-15T10:30:00Z", TypeTag.DATE),
        ("2024-01-15-extra", TypeTag.DATE),
        ("2024-02-30", TypeTag.STRING),
        ("15-01-2024", TypeTag.STRING),
        ("January 15", TypeTag.STRING),
    ],
)
def test_dates_need_a_leading_calendar_date(value, expected):
    assert infer_type(value) == expected


def test_nan_is_not_numeric():
    assert infer_type(float("nan")) == TypeTag.STRING


def test_majority_vote():
    assert infer_type_from_values(["1", "2", "abc"]) == TypeTag.INTEGER
    assert infer_type_from_values(["1.5", "2", "x", "y"]) == TypeTag.STRING


def test_ties_resolve_in_declaration_order():
    assert infer_type_from_values(["1", "a"]) == TypeTag.INTEGER
    assert infer_type_from_values(["true", "2024-01-01"]) == TypeTag.BOOLEAN
    assert infer_type_from_values(["1.5", "3"]) == TypeTag.INTEGER


def test_no_values_infers_string():
    assert infer_type_from_values([]) == TypeTag.STRING


def test_to_number_rejects_partial_text():
    assert to_number("12px") is None
    assert to_number("1,000") is None
    assert to_number(True) is None
    assert to_number("-Infinity") == -math.inf


def test_parse_float_reads_leading_number():
    assert parse_float("12px") == 12.0
    assert parse_float("  -3.5e2 units") == -350.0
    assert parse_float("oops") is None
    assert parse_float(True) is None
    assert parse_float(float("inf")) is None
    assert parse_float(7) == 7.0


def test_integers_beyond_double_range_infer_as_float():
    assert to_number(10 ** 400) == math.inf
    assert to_number(-(10 ** 400)) == -math.inf
    assert infer_type(10 ** 400) == TypeTag.FLOAT
    assert infer_type("0x" + "f" * 300) == TypeTag.FLOAT


def test_parse_float_drops_integers_beyond_double_range():
    assert parse_float(10 ** 400) is None
    assert parse_float("9" * 400) is None
