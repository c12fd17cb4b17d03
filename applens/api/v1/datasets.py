"""Dataset API endpoints."""

from fastapi import APIRouter, UploadFile, File, Form, HTTPException, Query
from typing import List, Optional
import logging

from applens.config import get_settings
from applens.schemas.datasets import (
    ConnectRequest,
    DatasetCreatedResponse,
    DatasetDataResponse,
    DatasetSummary,
    DeleteResponse,
)
from applens.schemas.upload import FileValidationResponse
from applens.services.dataset_service import dataset_service
from applens.utils.exceptions import AppLensException
from applens.utils.validation import validate_upload

router = APIRouter()
logger = logging.getLogger(__name__)
settings = get_settings()


@router.post("/upload", response_model=DatasetCreatedResponse, status_code=201)
async def upload_dataset(
    app_space_id: str = Form(...),
    name: str = Form(...),
    file: UploadFile = File(...),
):
    """
    Upload a CSV, JSON or XLSX file as a new dataset.

    Args:
        app_space_id: Owning app space
        name: Dataset name
        file: The file to upload

    Returns:
        Created dataset with schema preview and sample rows
    """
    logger.info(f"Received dataset upload: {file.filename}")

    try:
        return await dataset_service.ingest_file(app_space_id, name, file)

    except AppLensException:
        raise
    except Exception as e:
        logger.error(f"Error uploading dataset: {e}", exc_info=True)
        raise HTTPException(
            status_code=500,
            detail="Failed to upload dataset"
        )


@router.post("/validate", response_model=FileValidationResponse)
async def validate_file(file: UploadFile = File(...)):
    """
    Validate a file without storing it.

    Args:
        file: The file to validate

    Returns:
        Validation result
    """
    try:
        return await validate_upload(file)

    except Exception as e:
        logger.error(f"Error validating file: {e}", exc_info=True)
        raise HTTPException(
            status_code=500,
            detail="Failed to validate file"
        )


@router.post("/connect", response_model=DatasetCreatedResponse, status_code=201)
async def connect_dataset(request: ConnectRequest):
    """
    Connect a PostgreSQL table, MySQL table or MongoDB collection as a dataset.

    Args:
        request: Source type and connection details

    Returns:
        Created dataset with schema preview and sample rows
    """
    logger.info(f"Received {request.source_type} connection request for '{request.name}'")

    try:
        return await dataset_service.connect_database(request)

    except AppLensException:
        raise
    except Exception as e:
        logger.error(f"Error connecting dataset: {e}", exc_info=True)
        raise HTTPException(
            status_code=500,
            detail="Failed to connect dataset"
        )


@router.get("", response_model=List[DatasetSummary])
async def list_datasets(app_space_id: str = Query(...)):
    """List the datasets of an app space."""
    descriptors = await dataset_service.list_datasets(app_space_id)
    return [DatasetSummary.from_descriptor(d) for d in descriptors]


@router.get("/{dataset_id}", response_model=DatasetSummary)
async def get_dataset(dataset_id: str):
    """Get a dataset by ID."""
    descriptor = await dataset_service.get_dataset(dataset_id)
    return DatasetSummary.from_descriptor(descriptor)


@router.get("/{dataset_id}/data", response_model=DatasetDataResponse)
async def get_dataset_data(
    dataset_id: str,
    limit: Optional[int] = Query(default=None, ge=1, le=10000),
):
    """
    Fetch the first rows of a dataset.

    Args:
        dataset_id: The unique identifier for the dataset
        limit: Number of rows, defaults to the preview limit

    Returns:
        Rows in source order
    """
    limit = limit or settings.preview_default_limit

    try:
        data = await dataset_service.get_data(dataset_id, limit)
        return DatasetDataResponse(dataset_id=dataset_id, limit=limit, count=len(data), data=data)

    except AppLensException:
        raise
    except Exception as e:
        logger.error(f"Error fetching data for dataset {dataset_id}: {e}", exc_info=True)
        raise HTTPException(
            status_code=500,
            detail="Failed to fetch dataset data"
        )


@router.delete("/{dataset_id}", response_model=DeleteResponse)
async def delete_dataset(dataset_id: str):
    """
    Delete a dataset and its stored file.

    Args:
        dataset_id: The unique identifier for the dataset
    """
    await dataset_service.delete_dataset(dataset_id)
    return DeleteResponse(dataset_id=dataset_id, message="Dataset deleted successfully")
