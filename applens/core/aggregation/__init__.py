"""Record aggregation into chart buckets."""

from .aggregator import (
    AggregationBucket,
    AggregationMode,
    AggregationRequest,
    ChartKind,
    GroupAccumulator,
    Reduction,
    aggregate_records,
    parse_category_limit,
    rank_buckets,
    reduction_for,
    to_label,
)

__all__ = [
    'AggregationBucket',
    'AggregationMode',
    'AggregationRequest',
    'ChartKind',
    'GroupAccumulator',
    'Reduction',
    'aggregate_records',
    'parse_category_limit',
    'rank_buckets',
    'reduction_for',
    'to_label',
]
