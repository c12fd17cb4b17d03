"""Type inference and schema extraction."""

from .type_inference import TypeTag, infer_type, infer_type_from_values
from .schema_extractor import FieldDescriptor, SchemaStrategy, infer_schema_from_rows

__all__ = [
    'TypeTag',
    'infer_type',
    'infer_type_from_values',
    'FieldDescriptor',
    'SchemaStrategy',
    'infer_schema_from_rows',
]
