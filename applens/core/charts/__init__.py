"""Chart-shape post-processing and schema-based chart suggestions."""

from .post_processor import (
    ChartSeries,
    fold_pie,
    format_axis_value,
    limit_categories,
    normalize_label,
    shape_series,
)
from .suggestions import analyze_schema, field_title, suggest_charts

__all__ = [
    'ChartSeries',
    'fold_pie',
    'format_axis_value',
    'limit_categories',
    'normalize_label',
    'shape_series',
    'analyze_schema',
    'field_title',
    'suggest_charts',
]
