"""Dataset ingestion and retrieval service."""

import uuid
import logging
from typing import Any, Dict, List, Optional
from fastapi import UploadFile

from applens.config import get_settings
from applens.core.sources import SourceKind, TabularSource, create_source, resolve_source_kind
from applens.core.sources.base import Record
from applens.schemas.datasets import ConnectRequest, DatasetCreatedResponse, DatasetDescriptor, DatasetSummary
from applens.services.dataset_registry import DatasetRegistry, dataset_registry
from applens.services.file_service import FileService, file_service
from applens.services.insight_store import InsightStore, insight_store
from applens.utils.exceptions import FileValidationException, UnsupportedSourceException
from applens.utils.validation import validate_upload

logger = logging.getLogger(__name__)
settings = get_settings()

PREVIEW_SAMPLE_ROWS = 5


class DatasetService:
    """Creates datasets from uploads and live connections, and reads them back."""

    def __init__(
        self,
        registry: Optional[DatasetRegistry] = None,
        files: Optional[FileService] = None,
        insights: Optional[InsightStore] = None,
    ):
        self.registry = registry or dataset_registry
        self.files = files or file_service
        self.insights = insights or insight_store

    def source_for(self, descriptor: DatasetDescriptor) -> TabularSource:
        """Build the source a descriptor points at."""
        return create_source(
            descriptor.source_kind,
            file_path=descriptor.file_path,
            connection_details=descriptor.connection_details,
        )

    def _created_response(
        self, descriptor: DatasetDescriptor, sample: List[Record], message: str
    ) -> DatasetCreatedResponse:
        return DatasetCreatedResponse(
            dataset=DatasetSummary.from_descriptor(descriptor),
            schema_preview=descriptor.schema_fields,
            sample_data=sample[:PREVIEW_SAMPLE_ROWS],
            message=message,
        )

    async def ingest_file(
        self, app_space_id: str, name: str, file: UploadFile
    ) -> DatasetCreatedResponse:
        """
        Validate, store and parse an uploaded file, then register it.

        Args:
            app_space_id: Owning app space
            name: Dataset name
            file: Uploaded CSV, JSON or XLSX file

        Returns:
            Created dataset with schema preview and first sample rows
        """
        validation = await validate_upload(file)
        if not validation.is_valid:
            raise FileValidationException(
                validation.error_message or "Invalid file",
                error_code=validation.error_code or "FILE_VALIDATION_ERROR",
            )
        for warning in validation.warnings:
            logger.warning(f"Upload {file.filename}: {warning}")

        dataset_id = str(uuid.uuid4())
        file_path = await self.files.save_uploaded_file(file, dataset_id)

        try:
            source = create_source(validation.source_kind, file_path=file_path)
            snapshot = await source.describe(sample_rows=settings.schema_sample_rows)
        except Exception:
            # Nothing registered yet, so the stored file is orphaned
            await self.files.delete_dataset_files(dataset_id)
            raise

        descriptor = DatasetDescriptor(
            id=dataset_id,
            name=name,
            app_space_id=app_space_id,
            source_kind=validation.source_kind,
            file_path=file_path,
            original_filename=file.filename,
            schema_fields=snapshot.schema_fields,
            records_count=snapshot.records_count,
        )
        await self.registry.save(descriptor)

        logger.info(
            f"Ingested {validation.source_kind.value} dataset {dataset_id}: "
            f"{snapshot.records_count} records, {len(snapshot.schema_fields)} fields"
        )
        return self._created_response(descriptor, snapshot.sample, "File uploaded and parsed successfully")

    async def connect_database(self, request: ConnectRequest) -> DatasetCreatedResponse:
        """
        Sample and count a live table or collection, then register it.

        Args:
            request: Connection request

        Returns:
            Created dataset with schema preview and first sample rows
        """
        kind = resolve_source_kind(request.source_type)
        if kind.is_file:
            raise UnsupportedSourceException(
                f"{kind.value} (files are uploaded, not connected)"
            )

        source = create_source(kind, connection_details=request.connection_details)
        snapshot = await source.describe(sample_rows=settings.connect_sample_rows)

        descriptor = DatasetDescriptor(
            id=str(uuid.uuid4()),
            name=request.name,
            app_space_id=request.app_space_id,
            source_kind=kind,
            connection_details=request.connection_details,
            schema_fields=snapshot.schema_fields,
            records_count=snapshot.records_count,
        )
        await self.registry.save(descriptor)

        logger.info(
            f"Connected {kind.value} dataset {descriptor.id}: "
            f"{snapshot.records_count} records, {len(snapshot.schema_fields)} fields"
        )
        return self._created_response(descriptor, snapshot.sample, f"Connected to {kind.value} successfully")

    async def get_dataset(self, dataset_id: str) -> DatasetDescriptor:
        return await self.registry.get(dataset_id)

    async def list_datasets(self, app_space_id: Optional[str] = None) -> List[DatasetDescriptor]:
        return await self.registry.list_datasets(app_space_id)

    async def get_data(self, dataset_id: str, limit: Optional[int] = None) -> List[Record]:
        """
        Fetch the first rows of a dataset.

        Args:
            dataset_id: Dataset identifier
            limit: Row limit, defaults to the preview limit

        Returns:
            Up to ``limit`` records
        """
        limit = limit or settings.preview_default_limit
        descriptor = await self.registry.get(dataset_id)
        return await self.source_for(descriptor).fetch(limit)

    async def fetch_sample(self, descriptor: DatasetDescriptor, limit: Optional[int] = None) -> List[Record]:
        """Fetch the sample rows sent along with AI requests."""
        limit = limit or settings.ai_sample_rows
        return await self.source_for(descriptor).sample(limit)

    async def delete_dataset(self, dataset_id: str) -> Dict[str, Any]:
        """
        Remove a dataset and its stored file.

        Args:
            dataset_id: Dataset identifier

        Returns:
            Deletion summary
        """
        descriptor = await self.registry.get(dataset_id)
        removed_files = False
        if descriptor.source_kind.is_file:
            removed_files = await self.files.delete_dataset_files(dataset_id)
        removed_insights = await self.insights.delete_for_dataset(dataset_id)
        await self.registry.delete(dataset_id)

        logger.info(
            f"Deleted dataset {dataset_id} (files removed: {removed_files}, insights removed: {removed_insights})"
        )
        return {"dataset_id": dataset_id, "files_removed": removed_files, "insights_removed": removed_insights}


# Global dataset service instance
dataset_service = DatasetService()
