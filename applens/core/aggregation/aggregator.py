"""In-memory aggregation of records into chart buckets."""

import logging
import math
from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Union

from pydantic import BaseModel

from applens.core.inference.numeric import is_integral, parse_float

logger = logging.getLogger(__name__)

UNKNOWN_LABEL = "Unknown"
DEFAULT_RANKED_LIMIT = 50

CategoryLimit = Union[int, str]


class ChartKind(str, Enum):
    """Chart type hint driving the reduction function."""
    BAR = "bar"
    LINE = "line"
    PIE = "pie"
    SCATTER = "scatter"
    AREA = "area"


class AggregationMode(str, Enum):
    """Ordering policy applied to the buckets.

    RANKED sorts by value and keeps the biggest groups; CHART_BUILDER keeps
    the first-seen order of the group keys so chronological axes stay intact.
    """
    RANKED = "ranked"
    CHART_BUILDER = "chart_builder"


class Reduction(str, Enum):
    """Per-group reduction."""
    COUNT = "count"
    SUM = "sum"


class AggregationBucket(BaseModel):
    """One labelled value of an aggregated series."""
    label: str
    value: Union[int, float]


class AggregationRequest(BaseModel):
    """Grouping, value field and chart hint for one aggregation."""
    group_field: str
    value_field: Optional[str] = None
    chart_type: ChartKind = ChartKind.BAR
    category_limit: CategoryLimit = "all"

    @property
    def reduction(self) -> Reduction:
        return reduction_for(self.chart_type, self.value_field)


@dataclass
class GroupAccumulator:
    """Running count and sum for one group.

    Both are kept so a chart can switch between count and sum without
    another pass over the records.
    """
    count: int = 0
    total: float = 0.0

    def add(self, raw_value: Any = None, has_value_field: bool = False) -> None:
        self.count += 1
        if not has_value_field:
            return
        number = parse_float(raw_value)
        if number is not None:
            self.total += number

    def result(self, reduction: Reduction) -> Union[int, float]:
        if reduction == Reduction.COUNT:
            return self.count
        return self.total


def reduction_for(chart_type: Union[ChartKind, str], value_field: Optional[str]) -> Reduction:
    """Pie charts always count; other charts sum when a value field is given."""
    if ChartKind(chart_type) == ChartKind.PIE:
        return Reduction.COUNT
    if value_field:
        return Reduction.SUM
    return Reduction.COUNT


def to_label(value: Any) -> str:
    """
    Stringify a group key for display.

    Args:
        value: Raw group value

    Returns:
        The label, ``"Unknown"`` for missing values
    """
    if value is None:
        return UNKNOWN_LABEL
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        if math.isnan(value):
            return "NaN"
        if is_integral(value):
            return str(int(value))
        return repr(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return str(value)


def parse_category_limit(category_limit: Optional[CategoryLimit]) -> Optional[int]:
    """
    Read a category limit.

    Args:
        category_limit: ``"all"``, an integer or a numeric string

    Returns:
        A positive limit, or None for no truncation
    """
    if category_limit is None or isinstance(category_limit, bool):
        return None
    if isinstance(category_limit, int):
        return category_limit if category_limit > 0 else None

    text = str(category_limit).strip()
    digits = ""
    for char in text:
        if not char.isdigit():
            break
        digits += char
    if not digits:
        return None
    limit = int(digits)
    return limit if limit > 0 else None


def accumulate(
    records: Iterable[Dict[str, Any]],
    group_field: str,
    value_field: Optional[str] = None,
) -> Dict[str, GroupAccumulator]:
    """
    Group records by label, keeping first-seen key order.

    Args:
        records: Records to scan once
        group_field: Field whose stringified value names the group
        value_field: Optional field summed per group

    Returns:
        Ordered mapping of label to accumulator
    """
    groups: Dict[str, GroupAccumulator] = {}
    for record in records:
        label = to_label(record.get(group_field))
        accumulator = groups.get(label)
        if accumulator is None:
            accumulator = groups[label] = GroupAccumulator()
        if value_field:
            accumulator.add(record.get(value_field), has_value_field=True)
        else:
            accumulator.add()
    return groups


def rank_buckets(
    buckets: List[AggregationBucket], limit: int = DEFAULT_RANKED_LIMIT
) -> List[AggregationBucket]:
    """Sort buckets by value, largest first, and keep the top ``limit``."""
    ranked = sorted(buckets, key=lambda bucket: bucket.value, reverse=True)
    return ranked[:limit]


def aggregate_records(
    records: Iterable[Dict[str, Any]],
    request: AggregationRequest,
    mode: AggregationMode = AggregationMode.RANKED,
    ranked_limit: int = DEFAULT_RANKED_LIMIT,
) -> List[AggregationBucket]:
    """
    Aggregate records into ordered buckets.

    Args:
        records: Records to aggregate
        request: Grouping field, value field, chart type and category limit
        mode: RANKED for value-sorted top groups, CHART_BUILDER for
            first-seen order truncated by ``request.category_limit``
        ranked_limit: Number of buckets kept in RANKED mode

    Returns:
        List of buckets
    """
    reduction = request.reduction
    groups = accumulate(records, request.group_field, request.value_field)

    buckets = [
        AggregationBucket(label=label, value=accumulator.result(reduction))
        for label, accumulator in groups.items()
    ]

    if AggregationMode(mode) == AggregationMode.RANKED:
        buckets = rank_buckets(buckets, ranked_limit)
    else:
        limit = parse_category_limit(request.category_limit)
        if limit is not None:
            buckets = buckets[:limit]

    logger.debug(
        f"Aggregated {len(groups)} groups on '{request.group_field}' "
        f"({reduction.value}, {AggregationMode(mode).value}) into {len(buckets)} buckets"
    )
    return buckets
