"""Dataset-related Pydantic schemas."""

from pydantic import BaseModel, Field
from typing import Any, Dict, List, Optional
from datetime import datetime

from applens.core.inference.schema_extractor import FieldDescriptor
from applens.core.sources.base import Record, SourceKind


class DatasetDescriptor(BaseModel):
    """Registered dataset: where its records live and what they look like."""
    id: str
    name: str
    app_space_id: str
    source_kind: SourceKind
    file_path: Optional[str] = None
    original_filename: Optional[str] = None
    connection_details: Optional[Dict[str, Any]] = None
    schema_fields: List[FieldDescriptor] = Field(default_factory=list, alias="schema")
    records_count: int = 0
    created_at: datetime = Field(default_factory=datetime.utcnow)

    class Config:
        populate_by_name = True


class ConnectRequest(BaseModel):
    """Request body for connecting a live database as a dataset."""
    app_space_id: str
    name: str
    source_type: str
    connection_details: Dict[str, Any]


class DatasetSummary(BaseModel):
    """Public view of a dataset. Connection details are never echoed back."""
    id: str
    name: str
    app_space_id: str
    source_type: SourceKind
    records_count: int
    schema_fields: List[FieldDescriptor] = Field(default_factory=list, alias="schema")
    created_at: datetime

    class Config:
        populate_by_name = True

    @classmethod
    def from_descriptor(cls, descriptor: DatasetDescriptor) -> "DatasetSummary":
        return cls(
            id=descriptor.id,
            name=descriptor.name,
            app_space_id=descriptor.app_space_id,
            source_type=descriptor.source_kind,
            records_count=descriptor.records_count,
            schema_fields=descriptor.schema_fields,
            created_at=descriptor.created_at,
        )


class DatasetCreatedResponse(BaseModel):
    """Response for upload and connect."""
    dataset: DatasetSummary
    schema_preview: List[FieldDescriptor] = Field(default_factory=list)
    sample_data: List[Record] = Field(default_factory=list)
    message: str


class DatasetDataResponse(BaseModel):
    """Rows fetched from a dataset."""
    dataset_id: str
    limit: int
    count: int
    data: List[Record] = Field(default_factory=list)


class DeleteResponse(BaseModel):
    """Response for a deleted dataset."""
    dataset_id: str
    message: str
