"""
Tests for file parsing and the file-backed source.
"""

import json

import pytest
from openpyxl import Workbook

from applens.core.aggregation import AggregationRequest, ChartKind
from applens.core.inference import TypeTag
from applens.core.sources import FileSource, SourceKind, create_source, detect_file_kind, parse_file
from applens.utils.exceptions import (
    ConnectionDetailsException,
    FileParseException,
    UnsupportedSourceException,
)


def test_csv_cells_are_dynamically_typed(write_file):
    path = write_file(
        "typed.csv",
        "id,price,active,day,note\n1,2.50,true,2024-01-15,hello\n2,3,false,2024-01-16,\n",
    )
    records = parse_file(path)

    assert records == [
        {"id": 1, "price": 2.5, "active": True, "day": "2024-01-15", "note": "hello"},
        {"id": 2, "price": 3, "active": False, "day": "2024-01-16", "note": None},
    ]


def test_csv_blank_lines_are_skipped(write_file):
    records = parse_file(write_file("blank.csv", "a,b\n1,x\n\n2,y\n"))
    assert [r["a"] for r in records] == [1, 2]


def test_csv_with_byte_order_mark(write_file):
    records = parse_file(write_file("bom.csv", "\ufeffname,age\nAlice,30\n".encode("utf-8")))
    assert list(records[0].keys()) == ["name", "age"]


def test_empty_csv_has_no_records(write_file):
    assert parse_file(write_file("empty.csv", "")) == []


def test_json_array(write_file):
    data = [{"a": 1, "b": "x"}, {"a": 2.5, "b": None}]
    assert parse_file(write_file("rows.json", json.dumps(data))) == data


def test_json_single_object_is_wrapped(write_file):
    assert parse_file(write_file("one.json", '{"a": 1}')) == [{"a": 1}]


def test_invalid_json_raises_parse_error(write_file):
    with pytest.raises(FileParseException) as exc_info:
        parse_file(write_file("bad.json", "{not json"))
    assert exc_info.value.status_code == 422


def test_json_array_of_scalars_is_rejected(write_file):
    with pytest.raises(FileParseException):
        parse_file(write_file("scalars.json", "[1, 2, 3]"))


def test_xlsx_first_sheet_as_text(tmp_path):
    workbook = Workbook()
    sheet = workbook.active
    sheet.append(["name", "age"])
    sheet.append(["Alice", 30])
    sheet.append(["Bob", None])
    workbook.create_sheet("ignored").append(["other"])
    path = tmp_path / "people.xlsx"
    workbook.save(path)

    records = parse_file(str(path))
    assert records == [{"name": "Alice", "age": "30"}, {"name": "Bob", "age": None}]


def test_unsupported_extension(write_file):
    path = write_file("notes.txt", "hello")
    with pytest.raises(UnsupportedSourceException):
        detect_file_kind(path)
    with pytest.raises(UnsupportedSourceException):
        FileSource(path)


def test_missing_file_raises_parse_error(tmp_path):
    with pytest.raises(FileParseException):
        parse_file(str(tmp_path / "gone.csv"))


@pytest.mark.asyncio
async def test_file_source_sample_fetch_count(write_file, sales_csv):
    source = FileSource(write_file("sales.csv", sales_csv))

    assert source.kind == SourceKind.CSV
    assert len(await source.sample(2)) == 2
    assert len(await source.fetch()) == 5
    assert len(await source.fetch(3)) == 3
    assert await source.count() == 5


@pytest.mark.asyncio
async def test_file_source_describe(write_file, sales_csv):
    source = FileSource(write_file("sales.csv", sales_csv))
    snapshot = await source.describe(sample_rows=2)

    assert len(snapshot.sample) == 2
    assert snapshot.records_count == 5
    assert [(f.field, f.type) for f in snapshot.schema_fields] == [
        ("region", TypeTag.STRING),
        ("amount", TypeTag.INTEGER),
        ("order_date", TypeTag.DATE),
    ]


@pytest.mark.asyncio
async def test_file_source_aggregate_is_ranked(write_file, sales_csv):
    source = FileSource(write_file("sales.csv", sales_csv))
    request = AggregationRequest(group_field="region", value_field="amount", chart_type=ChartKind.BAR)
    buckets = await source.aggregate(request)

    assert [(b.label, b.value) for b in buckets] == [
        ("South", 260.5),
        ("North", 150.0),
        ("East", 0.0),
    ]


def test_create_source_dispatch(write_file, sales_csv):
    path = write_file("sales.csv", sales_csv)
    assert isinstance(create_source("CSV", file_path=path), FileSource)

    with pytest.raises(UnsupportedSourceException):
        create_source("oracle", connection_details={"host": "db"})
    with pytest.raises(ConnectionDetailsException):
        create_source("json")
    with pytest.raises(ConnectionDetailsException):
        create_source("postgresql")


def test_only_lowercase_booleans_are_coerced(write_file):
    records = parse_file(write_file("flags.csv", "a,b,c\ntrue,True,FALSE\n"))
    assert records == [{"a": True, "b": "True", "c": "FALSE"}]


def test_csv_ids_beyond_safe_integer_range_stay_text(write_file):
    huge = "9" * 400
    records = parse_file(write_file("ids.csv", f"id,name\n{huge},Alice\n9007199254740993,Bob\n12,Eve\n"))

    assert records[0]["id"] == huge
    assert records[1]["id"] == "9007199254740993"
    assert records[2]["id"] == 12


def test_csv_is_read_with_polars(write_file, caplog):
    path = write_file("plain.csv", "region,amount\nNorth,10\nSouth,\n")
    with caplog.at_level("WARNING", logger="applens.core.sources.file_source"):
        records = parse_file(path)

    assert records == [{"region": "North", "amount": 10}, {"region": "South", "amount": None}]
    assert "approach 1 failed" not in caplog.text
