"""Schema extraction from a bounded row sample."""

import logging
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence

from pydantic import BaseModel, Field

from applens.core.inference.type_inference import TypeTag, infer_type_from_values, is_empty

logger = logging.getLogger(__name__)

Record = Dict[str, Any]

MAX_SAMPLE_VALUES = 5


class SchemaStrategy(str, Enum):
    """How the field list of a schema is derived from the sample."""
    FIRST_ROW = "first_row"
    UNION = "union"


class FieldDescriptor(BaseModel):
    """Inferred metadata for one field of a dataset."""
    field: str
    type: TypeTag
    example_value: Optional[Any] = Field(default=None, alias="exampleValue")
    sample_values: List[Any] = Field(default_factory=list, alias="sampleValues")

    class Config:
        frozen = True
        populate_by_name = True


def _field_names(rows: Sequence[Record], strategy: SchemaStrategy) -> List[str]:
    if strategy == SchemaStrategy.FIRST_ROW:
        return list(rows[0].keys())

    seen: Dict[str, None] = {}
    for row in rows:
        for key in row.keys():
            seen.setdefault(key, None)
    return list(seen)


def infer_schema_from_rows(
    rows: Sequence[Record],
    strategy: SchemaStrategy = SchemaStrategy.FIRST_ROW,
) -> List[FieldDescriptor]:
    """
    Build a schema from sampled rows.

    The rows are used as given; callers bound the sample before calling.

    Args:
        rows: Sampled records
        strategy: FIRST_ROW keeps only the first row's keys, UNION keeps
            every key seen in the sample

    Returns:
        Field descriptors in first-seen key order
    """
    if not rows:
        return []

    schema = []
    for field in _field_names(rows, SchemaStrategy(strategy)):
        values = [row.get(field) for row in rows]
        values = [value for value in values if not is_empty(value)]
        schema.append(
            FieldDescriptor(
                field=field,
                type=infer_type_from_values(values),
                example_value=values[0] if values else None,
                sample_values=values[:MAX_SAMPLE_VALUES],
            )
        )

    logger.debug(f"Inferred schema with {len(schema)} fields from {len(rows)} rows")
    return schema
