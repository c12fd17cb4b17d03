"""File validation utilities."""

from pathlib import Path
from fastapi import UploadFile
import chardet
import logging

from applens.config import get_settings
from applens.core.sources.base import SourceKind
from applens.core.sources.file_source import EXTENSION_KINDS
from applens.schemas.upload import FileValidationResponse

logger = logging.getLogger(__name__)
settings = get_settings()

TEXT_KINDS = (SourceKind.CSV, SourceKind.JSON)


async def validate_upload(file: UploadFile) -> FileValidationResponse:
    """
    Validate an uploaded dataset file before it is stored.

    Args:
        file: Uploaded file to validate

    Returns:
        FileValidationResponse with validation results
    """
    warnings = []

    extension = Path(file.filename or "").suffix.lower()
    source_kind = EXTENSION_KINDS.get(extension)
    if source_kind is None:
        return FileValidationResponse(
            is_valid=False,
            file_size=0,
            error_message="Only CSV, JSON, and XLSX files are supported",
            error_code="UNSUPPORTED_FILE_TYPE"
        )

    # Reset file pointer
    await file.seek(0)
    content = await file.read()
    await file.seek(0)  # Reset for future reads

    file_size = len(content)
    if file_size == 0:
        return FileValidationResponse(
            is_valid=False,
            file_size=file_size,
            source_kind=source_kind,
            error_message="File is empty",
            error_code="EMPTY_FILE"
        )

    if file_size > settings.max_file_size:
        return FileValidationResponse(
            is_valid=False,
            file_size=file_size,
            source_kind=source_kind,
            error_message=f"File size ({file_size} bytes) exceeds maximum allowed size ({settings.max_file_size} bytes)",
            error_code="FILE_TOO_LARGE"
        )

    detected_encoding = None
    if source_kind in TEXT_KINDS:
        encoding_result = chardet.detect(content[:10000])  # Check first 10KB
        detected_encoding = encoding_result.get('encoding')
        confidence = encoding_result.get('confidence') or 0

        if not detected_encoding:
            return FileValidationResponse(
                is_valid=False,
                file_size=file_size,
                source_kind=source_kind,
                error_message="Unable to detect file encoding",
                error_code="UNKNOWN_ENCODING"
            )

        if confidence < 0.7:
            warnings.append(f"Low confidence in encoding detection ({confidence:.2f})")

    logger.info(f"Validated upload {file.filename}: {source_kind.value}, {file_size} bytes")
    return FileValidationResponse(
        is_valid=True,
        file_size=file_size,
        source_kind=source_kind,
        detected_encoding=detected_encoding,
        warnings=warnings
    )
