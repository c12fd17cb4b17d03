"""Numeric coercion helpers shared by type inference and aggregation."""

import math
import re
from typing import Any, Optional

# Whole-string numeric literal, the way a browser's Number() reads text.
_DECIMAL_RE = re.compile(r"^[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?$")
_RADIX_RE = re.compile(r"^0([xX][0-9a-fA-F]+|[oO][0-7]+|[bB][01]+)$")
_INFINITY_RE = re.compile(r"^[+-]?Infinity$")

# Leading numeric prefix, the way parseFloat() reads text ("12px" -> 12).
FLOAT_PREFIX_PATTERN = r"^[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?"
_FLOAT_PREFIX_RE = re.compile(FLOAT_PREFIX_PATTERN)


def to_number(value: Any) -> Optional[float]:
    """
    Convert a value to a number using strict whole-value rules.

    Args:
        value: Raw cell value

    Returns:
        The parsed number, or None when the value is not numeric
    """
    if isinstance(value, bool) or value is None:
        return None

    if isinstance(value, (int, float)):
        try:
            number = float(value)
        except OverflowError:
            # Integers beyond double range read as infinity, like Number()
            return -math.inf if value < 0 else math.inf
        return None if math.isnan(number) else number

    if not isinstance(value, str):
        return None

    text = value.strip()
    if not text:
        # Whitespace-only text reads as zero
        return 0.0

    if _DECIMAL_RE.match(text):
        return float(text)

    radix = _RADIX_RE.match(text)
    if radix:
        try:
            return float(int(text, 0))
        except OverflowError:
            return math.inf

    if _INFINITY_RE.match(text):
        return -math.inf if text.startswith("-") else math.inf

    return None


def parse_float(value: Any) -> Optional[float]:
    """
    Parse the leading number out of a value.

    Booleans and None never parse. Non-finite results are rejected so that
    aggregates stay finite.

    Args:
        value: Raw cell value

    Returns:
        A finite float, or None when nothing numeric leads the value
    """
    if isinstance(value, bool) or value is None:
        return None

    if isinstance(value, (int, float)):
        try:
            number = float(value)
        except OverflowError:
            return None
        return number if math.isfinite(number) else None

    match = _FLOAT_PREFIX_RE.match(str(value).lstrip())
    if not match:
        return None

    number = float(match.group(0))
    return number if math.isfinite(number) else None


def is_integral(number: float) -> bool:
    """Return True for finite numbers without a fractional part."""
    return math.isfinite(number) and number == int(number)
