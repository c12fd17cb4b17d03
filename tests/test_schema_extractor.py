"""
Tests for schema extraction from sampled rows.
"""

import pytest
from pydantic import ValidationError

from applens.core.inference import FieldDescriptor, SchemaStrategy, TypeTag, infer_schema_from_rows
from applens.core.sources.file_source import parse_file


def test_empty_rows_give_empty_schema():
    assert infer_schema_from_rows([]) == []


def test_fields_follow_first_row_key_order():
    rows = [{"b": 1, "a": "x", "c": True}]
    schema = infer_schema_from_rows(rows)
    assert [f.field for f in schema] == ["b", "a", "c"]
    assert [f.type for f in schema] == [TypeTag.INTEGER, TypeTag.STRING, TypeTag.BOOLEAN]


def test_first_row_strategy_ignores_later_keys():
    rows = [{"a": 1}, {"a": 2, "b": "late"}]
    schema = infer_schema_from_rows(rows, SchemaStrategy.FIRST_ROW)
    assert [f.field for f in schema] == ["a"]


def test_union_strategy_keeps_every_key():
    rows = [{"a": 1}, {"a": 2, "b": "late"}]
    schema = infer_schema_from_rows(rows, SchemaStrategy.UNION)
    assert [f.field for f in schema] == ["a", "b"]
    assert schema[1].type == TypeTag.STRING
    assert schema[1].example_value == "late"


def test_examples_skip_empty_values():
    rows = [{"a": None}, {"a": ""}, {"a": "x"}, {"a": "y"}]
    descriptor = infer_schema_from_rows(rows)[0]
    assert descriptor.example_value == "x"
    assert descriptor.sample_values == ["x", "y"]


def test_field_with_only_empty_values():
    descriptor = infer_schema_from_rows([{"a": None}, {"a": ""}])[0]
    assert descriptor.type == TypeTag.STRING
    assert descriptor.example_value is None
    assert descriptor.sample_values == []


def test_sample_values_are_capped_at_five():
    rows = [{"n": i} for i in range(1, 9)]
    descriptor = infer_schema_from_rows(rows)[0]
    assert descriptor.sample_values == [1, 2, 3, 4, 5]
    assert descriptor.type == TypeTag.INTEGER


def test_descriptors_are_immutable():
    descriptor = infer_schema_from_rows([{"a": 1}])[0]
    with pytest.raises(ValidationError):
        descriptor.type = TypeTag.STRING


def test_descriptor_serializes_with_camel_case_keys():
    descriptor = FieldDescriptor(field="age", type=TypeTag.INTEGER, example_value=30, sample_values=[30])
    assert descriptor.model_dump(by_alias=True, mode="json") == {
        "field": "age",
        "type": "integer",
        "exampleValue": 30,
        "sampleValues": [30],
    }


def test_schema_from_csv_with_missing_cell(write_file, people_csv):
    records = parse_file(write_file("people.csv", people_csv))
    schema = infer_schema_from_rows(records)

    assert [(f.field, f.type) for f in schema] == [
        ("name", TypeTag.STRING),
        ("age", TypeTag.INTEGER),
    ]
    assert schema[0].example_value == "Alice"
    assert schema[0].sample_values == ["Alice", "Bob", "Eve"]
    assert schema[1].example_value == 30
    assert schema[1].sample_values == [30, 25]
