"""Per-value and per-column type inference."""

import re
from collections import Counter
from datetime import date
from enum import Enum
from typing import Any, Iterable

from applens.core.inference.numeric import is_integral, to_number

_DATE_PREFIX_RE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})")


class TypeTag(str, Enum):
    """Semantic type assigned to a field.

    Declaration order doubles as the tie-break order for majority voting.
    """
    INTEGER = "integer"
    FLOAT = "float"
    BOOLEAN = "boolean"
    DATE = "date"
    STRING = "string"


def is_empty(value: Any) -> bool:
    """Return True for values that carry no information for inference."""
    return value is None or value == ""


def _is_date_string(value: str) -> bool:
    match = _DATE_PREFIX_RE.match(value)
    if not match:
        return False
    year, month, day = (int(part) for part in match.groups())
    try:
        date(year, month, day)
    except ValueError:
        return False
    return True


def infer_type(value: Any) -> TypeTag:
    """
    Infer the semantic type of a single value.

    Unrecognized or empty input degrades to ``TypeTag.STRING``; this function
    never raises.

    Args:
        value: Raw cell value

    Returns:
        The inferred type tag
    """
    if is_empty(value):
        return TypeTag.STRING

    if isinstance(value, bool) or value in ("true", "false"):
        return TypeTag.BOOLEAN

    number = to_number(value)
    if number is not None:
        return TypeTag.INTEGER if is_integral(number) else TypeTag.FLOAT

    if isinstance(value, str) and _is_date_string(value):
        return TypeTag.DATE

    return TypeTag.STRING


def infer_type_from_values(values: Iterable[Any]) -> TypeTag:
    """
    Infer a column type by majority vote over sampled values.

    Ties resolve to the tag declared first on ``TypeTag``.

    Args:
        values: Sampled values for one field

    Returns:
        The most common type tag, ``TypeTag.STRING`` for no values
    """
    tally = Counter(infer_type(value) for value in values)
    if not tally:
        return TypeTag.STRING

    best = TypeTag.STRING
    best_count = 0
    for tag in TypeTag:
        if tally[tag] > best_count:
            best, best_count = tag, tally[tag]
    return best
