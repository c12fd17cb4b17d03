"""Presentation-side shaping of aggregated buckets."""

import re
from typing import Any, List, Optional, Union

from pydantic import BaseModel

from applens.core.aggregation.aggregator import (
    AggregationBucket,
    CategoryLimit,
    ChartKind,
    parse_category_limit,
)

OTHERS_LABEL = "Others"
PIE_FOLD_THRESHOLD = 12
PIE_TOP_K = 10

_ISO_DATE_PREFIX_RE = re.compile(r"^\d{4}-\d{2}-\d{2}")


class ChartSeries(BaseModel):
    """Buckets ready to hand to a chart renderer."""
    chart_type: ChartKind
    labels: List[str]
    values: List[Union[int, float]]
    buckets: List[AggregationBucket]
    folded_count: int = 0


def fold_pie(
    buckets: List[AggregationBucket],
    threshold: int = PIE_FOLD_THRESHOLD,
    top_k: int = PIE_TOP_K,
) -> List[AggregationBucket]:
    """
    Collapse the long tail of a pie into an "Others" slice.

    The input list is left untouched; folding works on a sorted copy.

    Args:
        buckets: Buckets in any order
        threshold: Fold only when there are more buckets than this
        top_k: Number of largest buckets kept as their own slices

    Returns:
        The original buckets, or the top ``top_k`` plus one "Others" bucket
    """
    if len(buckets) <= threshold:
        return list(buckets)

    ranked = sorted(buckets, key=lambda bucket: bucket.value, reverse=True)
    rest = ranked[top_k:]
    others = AggregationBucket(
        label=OTHERS_LABEL, value=sum(bucket.value for bucket in rest)
    )
    return ranked[:top_k] + [others]


def limit_categories(
    buckets: List[AggregationBucket], category_limit: Optional[CategoryLimit] = "all"
) -> List[AggregationBucket]:
    """Keep the first ``category_limit`` buckets by position; "all" keeps every bucket."""
    limit = parse_category_limit(category_limit)
    if limit is None:
        return list(buckets)
    return buckets[:limit]


def is_date_like(value: Any) -> bool:
    """Return True for values starting with a YYYY-MM-DD date."""
    if not value:
        return False
    return bool(_ISO_DATE_PREFIX_RE.match(str(value)))


def normalize_label(label: Any) -> str:
    """Trim date-like labels to their YYYY-MM-DD part."""
    if label is None or label == "":
        return ""
    text = str(label)
    if is_date_like(text):
        return text[:10]
    return text


def _format_plain(value: Union[int, float]) -> str:
    if isinstance(value, int) or float(value).is_integer():
        return f"{int(value):,}"
    text = f"{value:,.3f}".rstrip("0").rstrip(".")
    return "0" if text in ("-0", "") else text


def format_axis_value(value: Union[int, float]) -> str:
    """
    Abbreviate a number for an axis tick.

    Args:
        value: Number to format

    Returns:
        ``1.5B``/``2.0M``/``3.4K`` style text, grouped digits below 1000
    """
    if value >= 1e9:
        return f"{value / 1e9:.1f}B"
    if value >= 1e6:
        return f"{value / 1e6:.1f}M"
    if value >= 1e3:
        return f"{value / 1e3:.1f}K"
    return _format_plain(value)


def shape_series(
    buckets: List[AggregationBucket],
    chart_type: Union[ChartKind, str] = ChartKind.BAR,
    category_limit: Optional[CategoryLimit] = "all",
    fold_threshold: int = PIE_FOLD_THRESHOLD,
    fold_top_k: int = PIE_TOP_K,
) -> ChartSeries:
    """
    Apply chart-type specific shaping to ordered buckets.

    Pie charts are folded, every other chart is limited by position.
    Labels are normalized for display; values are not touched.

    Args:
        buckets: Ordered buckets from the aggregation engine
        chart_type: Target chart type
        category_limit: Positional limit for non-pie charts
        fold_threshold: Bucket count above which pies are folded
        fold_top_k: Slices kept before folding into "Others"

    Returns:
        ChartSeries with display labels and values
    """
    chart_type = ChartKind(chart_type)
    folded_count = 0

    if chart_type == ChartKind.PIE:
        shaped = fold_pie(buckets, fold_threshold, fold_top_k)
        if len(shaped) != len(buckets):
            folded_count = len(buckets) - fold_top_k
    else:
        shaped = limit_categories(buckets, category_limit)

    shaped = [
        AggregationBucket(label=normalize_label(bucket.label), value=bucket.value)
        for bucket in shaped
    ]
    return ChartSeries(
        chart_type=chart_type,
        labels=[bucket.label for bucket in shaped],
        values=[bucket.value for bucket in shaped],
        buckets=shaped,
        folded_count=folded_count,
    )
