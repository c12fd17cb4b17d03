"""File-backed tabular source for CSV, JSON and XLSX uploads."""

import asyncio
import io
import json
import logging
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

import chardet
import pandas as pd
import polars as pl

from applens.config import get_settings
from applens.core.aggregation.aggregator import (
    AggregationBucket,
    AggregationMode,
    AggregationRequest,
    aggregate_records,
)
from applens.core.inference.schema_extractor import SchemaStrategy
from applens.core.sources.base import (
    Record,
    SourceKind,
    SourceSnapshot,
    TabularSource,
    infer_snapshot_schema,
)
from applens.core.sources.records import coerce_text_cell, normalize_record
from applens.utils.exceptions import FileParseException, UnsupportedSourceException

logger = logging.getLogger(__name__)
settings = get_settings()

EXTENSION_KINDS = {
    ".csv": SourceKind.CSV,
    ".json": SourceKind.JSON,
    ".xlsx": SourceKind.XLSX,
}


def detect_file_kind(file_path: str) -> SourceKind:
    """
    Detect the file format from its extension.

    Args:
        file_path: Path to the file

    Returns:
        The matching source kind
    """
    extension = Path(file_path).suffix.lower()
    kind = EXTENSION_KINDS.get(extension)
    if kind is None:
        raise UnsupportedSourceException(extension or Path(file_path).name)
    return kind


def _decode(content: bytes) -> str:
    """Decode file bytes using the detected encoding."""
    encoding = "utf-8"
    result = chardet.detect(content[:10000])  # Check first 10KB
    if result.get("encoding"):
        encoding = result["encoding"]

    try:
        text = content.decode(encoding)
    except (UnicodeDecodeError, LookupError):
        logger.warning(f"Could not decode with {encoding}, using utf-8 with replacement")
        text = content.decode("utf-8", errors="replace")

    # Drop a byte-order mark left by utf-8-sig exports
    return text.lstrip("\ufeff")


def _is_blank_row(row: Record) -> bool:
    return all(value is None or value == "" for value in row.values())


def _typed_rows(rows: List[Dict[str, Any]]) -> List[Record]:
    records = []
    for row in rows:
        record = {str(key): coerce_text_cell(value) for key, value in row.items()}
        if not _is_blank_row(record):
            records.append(record)
    return records


def parse_csv(file_path: str) -> List[Record]:
    """
    Parse a CSV file with a header row into typed records.

    Args:
        file_path: Path to the CSV file

    Returns:
        Every data row as a record
    """
    with open(file_path, "rb") as f:
        content = f.read()

    text = _decode(content)
    if not text.strip():
        return []

    # Read every column as text, then type each cell; polars reads empty cells as null
    approaches: List[Callable[[], List[Dict[str, Any]]]] = [
        lambda: pl.read_csv(
            text.encode("utf-8"),
            infer_schema_length=0,
        ).to_dicts(),
        lambda: pd.read_csv(
            io.StringIO(text),
            dtype=str,
            keep_default_na=False,
            skip_blank_lines=True,
        ).to_dict("records"),
    ]

    errors = []
    for i, approach in enumerate(approaches):
        try:
            rows = approach()
            records = _typed_rows(rows)
            logger.info(f"Parsed {len(records)} CSV rows from {file_path}")
            return records
        except Exception as e:
            logger.warning(f"CSV approach {i + 1} failed for {file_path}: {e}")
            errors.append(str(e))

    raise FileParseException(f"Unable to parse CSV file: {errors[-1]}")


def parse_json(file_path: str) -> List[Record]:
    """
    Parse a JSON file holding an array of objects or a single object.

    Args:
        file_path: Path to the JSON file

    Returns:
        Records in file order
    """
    with open(file_path, "rb") as f:
        content = f.read()

    try:
        data = json.loads(_decode(content))
    except json.JSONDecodeError as e:
        raise FileParseException(f"Invalid JSON: {e}")

    rows = data if isinstance(data, list) else [data]
    if not all(isinstance(row, dict) for row in rows):
        raise FileParseException("JSON must be an object or an array of objects")

    records = [normalize_record(row) for row in rows]
    logger.info(f"Parsed {len(records)} JSON records from {file_path}")
    return records


def parse_xlsx(file_path: str) -> List[Record]:
    """
    Parse the first sheet of a spreadsheet into text records.

    Args:
        file_path: Path to the XLSX file

    Returns:
        Records with cell text, missing cells as None
    """
    try:
        df = pd.read_excel(file_path, sheet_name=0, dtype=str, engine="openpyxl")
    except Exception as e:
        raise FileParseException(f"Unable to read spreadsheet: {e}")

    df = df.astype(object).where(pd.notna(df), None)
    records = [normalize_record(row) for row in df.to_dict("records")]
    logger.info(f"Parsed {len(records)} spreadsheet rows from {file_path}")
    return records


PARSERS: Dict[SourceKind, Callable[[str], List[Record]]] = {
    SourceKind.CSV: parse_csv,
    SourceKind.JSON: parse_json,
    SourceKind.XLSX: parse_xlsx,
}


def parse_file(file_path: str) -> List[Record]:
    """
    Parse a whole file into records, choosing the parser by extension.

    No record cap is applied here; callers slice the result.

    Args:
        file_path: Path to the file

    Returns:
        All records of the file
    """
    kind = detect_file_kind(file_path)
    if not Path(file_path).exists():
        raise FileParseException(f"File not found: {Path(file_path).name}")
    return PARSERS[kind](file_path)


class FileSource(TabularSource):
    """Tabular source over an uploaded file.

    The file is parsed in full on every call; parsing runs in the default
    executor so the event loop is not blocked.
    """

    def __init__(self, file_path: str, kind: Optional[SourceKind] = None):
        self.file_path = file_path
        self.kind = kind or detect_file_kind(file_path)

    async def _load(self) -> List[Record]:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, parse_file, self.file_path)

    async def sample(self, n: int) -> List[Record]:
        records = await self._load()
        return records[:n]

    async def fetch(self, limit: Optional[int] = None) -> List[Record]:
        records = await self._load()
        return records if limit is None else records[:limit]

    async def count(self) -> int:
        return len(await self._load())

    async def aggregate(
        self, request: AggregationRequest, limit: Optional[int] = None
    ) -> List[AggregationBucket]:
        records = await self._load()
        return aggregate_records(
            records,
            request,
            AggregationMode.RANKED,
            ranked_limit=limit or settings.ranked_bucket_limit,
        )

    async def describe(
        self,
        sample_rows: int,
        schema_rows: Optional[int] = None,
        strategy: Optional[SchemaStrategy] = None,
    ) -> SourceSnapshot:
        """Parse once and derive sample, schema and count from the same records."""
        records = await self._load()
        sample = records[:sample_rows]
        schema = infer_snapshot_schema(records, schema_rows, strategy)

        logger.info(
            f"Described {self.kind.value} file: {len(records)} records, {len(schema)} fields"
        )
        return SourceSnapshot(sample=sample, schema_fields=schema, records_count=len(records))
