"""Chart suggestions derived from a dataset schema."""

import re
from typing import List, Sequence

from applens.core.inference.schema_extractor import FieldDescriptor
from applens.core.inference.type_inference import TypeTag
from applens.schemas.ai import ChartSuggestion, SchemaAnalysis

NUMERIC_TYPES = (TypeTag.INTEGER, TypeTag.FLOAT)
MAX_SUGGESTIONS = 3
COUNT_AXIS = "count"


def analyze_schema(schema: Sequence[FieldDescriptor]) -> SchemaAnalysis:
    """Split field names into numeric, categorical and date fields, keeping schema order."""
    return SchemaAnalysis(
        numeric_fields=[f.field for f in schema if f.type in NUMERIC_TYPES],
        categorical_fields=[f.field for f in schema if f.type == TypeTag.STRING],
        date_fields=[f.field for f in schema if f.type == TypeTag.DATE],
    )


def field_title(field: str) -> str:
    """``order_total`` -> ``Order Total``."""
    return re.sub(r"\b\w", lambda m: m.group(0).upper(), field.replace("_", " "))


def suggest_charts(
    schema: Sequence[FieldDescriptor], limit: int = MAX_SUGGESTIONS
) -> List[ChartSuggestion]:
    """
    Propose charts from field roles alone.

    Candidates in priority order: bar (category vs number), line (date vs
    number), pie (category distribution), scatter (two numbers) and area
    (date vs second number). Only the first ``limit`` are kept.

    Args:
        schema: Dataset schema
        limit: Maximum number of suggestions

    Returns:
        Chart suggestions
    """
    analysis = analyze_schema(schema)
    numeric = analysis.numeric_fields
    categorical = analysis.categorical_fields
    dates = analysis.date_fields

    suggestions = []
    if categorical and numeric:
        x, y = categorical[0], numeric[0]
        suggestions.append(ChartSuggestion(
            chart_type="bar",
            x_axis=x,
            y_axis=y,
            title=f"{field_title(y)} by {field_title(x)}",
            description=f"Compare {y} across different {x} categories",
        ))
    if dates and numeric:
        x, y = dates[0], numeric[0]
        suggestions.append(ChartSuggestion(
            chart_type="line",
            x_axis=x,
            y_axis=y,
            title=f"{field_title(y)} Over Time",
            description=f"Track {y} trends over {x}",
        ))
    if categorical:
        x = categorical[0]
        suggestions.append(ChartSuggestion(
            chart_type="pie",
            x_axis=x,
            y_axis=COUNT_AXIS,
            title=f"Distribution of {field_title(x)}",
            description=f"Show the breakdown of records by {x}",
        ))
    if len(numeric) >= 2:
        x, y = numeric[0], numeric[1]
        suggestions.append(ChartSuggestion(
            chart_type="scatter",
            x_axis=x,
            y_axis=y,
            title=f"{field_title(x)} vs {field_title(y)}",
            description=f"Explore correlation between {x} and {y}",
        ))
    if dates and len(numeric) > 1:
        x, y = dates[0], numeric[1]
        suggestions.append(ChartSuggestion(
            chart_type="area",
            x_axis=x,
            y_axis=y,
            title=f"{field_title(y)} Trend",
            description=f"Visualize {y} changes over {x}",
        ))

    return suggestions[:limit]
