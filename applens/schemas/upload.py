"""Upload-related Pydantic schemas."""

from pydantic import BaseModel, Field
from typing import Optional, List

from applens.core.sources.base import SourceKind


class FileValidationResponse(BaseModel):
    """Response schema for file validation."""
    is_valid: bool
    file_size: int
    source_kind: Optional[SourceKind] = None
    detected_encoding: Optional[str] = None
    error_message: Optional[str] = None
    error_code: Optional[str] = None
    warnings: List[str] = Field(default_factory=list)
