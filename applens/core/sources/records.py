"""Normalization of driver-native values into plain record scalars."""

import math
import re
import uuid
from datetime import date, datetime, time
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Mapping

import numpy as np
import pandas as pd

Record = Dict[str, Any]

_INTEGER_TEXT_RE = re.compile(r"^[+-]?\d+$")
_FLOAT_TEXT_RE = re.compile(r"^[+-]?(\d+\.\d*|\.\d+|\d+)([eE][+-]?\d+)?$")

# Bound of the range where a double holds every integer exactly
MAX_SAFE_NUMBER = float(2 ** 53)


def normalize_value(value: Any) -> Any:
    """
    Convert a driver or dataframe value into a JSON-friendly scalar.

    Args:
        value: Value as returned by a driver or a dataframe

    Returns:
        str, int, float, bool or None
    """
    if value is None or isinstance(value, (bool, str, int)):
        return value

    if isinstance(value, float):
        return value if math.isfinite(value) else None

    if isinstance(value, np.generic):
        return normalize_value(value.item())

    if isinstance(value, Decimal):
        if not value.is_finite():
            return None
        return int(value) if value == value.to_integral_value() else float(value)

    if isinstance(value, pd.Timestamp):
        return None if pd.isna(value) else value.isoformat()

    if isinstance(value, (datetime, date, time)):
        return value.isoformat()

    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value).decode("utf-8", errors="replace")

    if isinstance(value, uuid.UUID):
        return str(value)

    try:
        if pd.isna(value):
            return None
    except (TypeError, ValueError):
        pass

    # ObjectId, nested documents, arrays and anything else exotic
    return str(value)


def normalize_record(row: Mapping[str, Any]) -> Record:
    """Normalize every value of one row, keeping key order."""
    return {str(key): normalize_value(value) for key, value in row.items()}


def normalize_records(rows: Iterable[Mapping[str, Any]]) -> List[Record]:
    """Normalize a batch of rows."""
    return [normalize_record(row) for row in rows]


def coerce_text_cell(value: Any) -> Any:
    """
    Apply dynamic typing to a text cell from a delimited file.

    Empty cells become None, ``true``/``false`` become booleans and numeric
    text becomes int or float; any other text is returned unchanged.

    Args:
        value: Raw cell, usually a string

    Returns:
        The typed cell value
    """
    if not isinstance(value, str):
        return normalize_value(value)

    if value == "":
        return None
    if value == "true":
        return True
    if value == "false":
        return False

    text = value.strip()
    if not _FLOAT_TEXT_RE.match(text):
        return value

    # Numbers a double cannot hold exactly (hash-like ids) stay text
    number = float(text)
    if not abs(number) < MAX_SAFE_NUMBER:
        return value
    if _INTEGER_TEXT_RE.match(text):
        return int(text)
    return number
