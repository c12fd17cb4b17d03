"""Custom exception classes."""

from datetime import datetime
from typing import Optional


class AppLensException(Exception):
    """Base exception class for the AppLens application."""

    def __init__(
        self,
        detail: str,
        status_code: int = 500,
        error_code: Optional[str] = None,
        timestamp: Optional[datetime] = None
    ):
        self.detail = detail
        self.status_code = status_code
        self.error_code = error_code or "INTERNAL_ERROR"
        self.timestamp = timestamp or datetime.utcnow()
        super().__init__(self.detail)


class FileValidationException(AppLensException):
    """Exception raised when an uploaded file is rejected before parsing."""

    def __init__(self, detail: str, error_code: str = "FILE_VALIDATION_ERROR"):
        super().__init__(
            detail=detail,
            status_code=400,
            error_code=error_code
        )


class FileParseException(AppLensException):
    """Exception raised when file content is malformed for its detected format."""

    def __init__(self, detail: str, error_code: str = "FILE_PARSE_ERROR"):
        super().__init__(
            detail=detail,
            status_code=422,
            error_code=error_code
        )


class SourceConnectionException(AppLensException):
    """Exception raised when a live database is unreachable or rejects a query.

    The driver's own message is embedded in ``detail``.
    """

    def __init__(self, source_kind: str, message: str, error_code: str = "SOURCE_CONNECTION_ERROR"):
        self.source_kind = source_kind
        self.native_message = message
        super().__init__(
            detail=f"{source_kind} connection failed: {message}",
            status_code=502,
            error_code=error_code
        )


class UnsupportedSourceException(AppLensException):
    """Exception raised for a source kind outside the recognized set."""

    def __init__(self, source_kind: str):
        super().__init__(
            detail=f"Unsupported source type: {source_kind}",
            status_code=400,
            error_code="UNSUPPORTED_SOURCE"
        )


class ConnectionDetailsException(AppLensException):
    """Exception raised when required connection fields are missing."""

    def __init__(self, detail: str):
        super().__init__(
            detail=detail,
            status_code=400,
            error_code="INVALID_CONNECTION_DETAILS"
        )


class LLMException(AppLensException):
    """Exception raised during LLM operations."""

    def __init__(self, detail: str, error_code: str = "LLM_ERROR"):
        super().__init__(
            detail=detail,
            status_code=503,
            error_code=error_code
        )


class DatasetNotFoundException(AppLensException):
    """Exception raised when a dataset is not found."""

    def __init__(self, dataset_id: str):
        super().__init__(
            detail=f"Dataset not found: {dataset_id}",
            status_code=404,
            error_code="DATASET_NOT_FOUND"
        )


class InsightNotFoundException(AppLensException):
    """Exception raised when no stored insight matches a lookup."""

    def __init__(self, detail: str):
        super().__init__(
            detail=detail,
            status_code=404,
            error_code="INSIGHT_NOT_FOUND"
        )


class EmptySchemaException(AppLensException):
    """Exception raised when a schema-based operation meets a dataset without fields."""

    def __init__(self, dataset_id: str):
        super().__init__(
            detail=f"Dataset {dataset_id} has no schema. Please upload data first.",
            status_code=400,
            error_code="EMPTY_SCHEMA"
        )
