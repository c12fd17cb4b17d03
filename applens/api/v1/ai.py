"""AI summary, chat and insight API endpoints."""

from fastapi import APIRouter, HTTPException, Query
from typing import List, Optional
import logging

from applens.schemas.ai import (
    AIInsight,
    ChartSuggestion,
    ChartSuggestionsResponse,
    ChatRequest,
    ChatResponse,
    DatasetSummaryInsight,
    InsightType,
)
from applens.services.ai_service import ai_service
from applens.utils.exceptions import AppLensException

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/summary/{dataset_id}", response_model=DatasetSummaryInsight)
async def summarize_dataset(dataset_id: str):
    """
    Summarize a dataset from its schema and a sample of rows.

    Args:
        dataset_id: The unique identifier for the dataset

    Returns:
        Summary, insights, trends and chart suggestions
    """
    try:
        return await ai_service.summarize(dataset_id)

    except AppLensException:
        raise
    except Exception as e:
        logger.error(f"Error summarizing dataset {dataset_id}: {e}", exc_info=True)
        raise HTTPException(
            status_code=500,
            detail="Failed to summarize dataset"
        )


@router.post("/chat/{dataset_id}", response_model=ChatResponse)
async def chat_about_dataset(dataset_id: str, request: ChatRequest):
    """
    Answer a question about a dataset.

    Args:
        dataset_id: The unique identifier for the dataset
        request: Question and earlier chat turns

    Returns:
        The answer
    """
    try:
        return await ai_service.chat(dataset_id, request)

    except AppLensException:
        raise
    except Exception as e:
        logger.error(f"Error in dataset chat for {dataset_id}: {e}", exc_info=True)
        raise HTTPException(
            status_code=500,
            detail="Failed to answer question"
        )


@router.get("/insights/{dataset_id}", response_model=List[AIInsight])
async def get_insights(
    dataset_id: str,
    insight_type: Optional[InsightType] = Query(None, alias="type"),
):
    """
    List stored summaries and chats of a dataset, newest first.

    Args:
        dataset_id: The unique identifier for the dataset
        insight_type: Only insights of this type
    """
    try:
        return await ai_service.list_insights(dataset_id, insight_type)

    except AppLensException:
        raise
    except Exception as e:
        logger.error(f"Error listing insights for {dataset_id}: {e}", exc_info=True)
        raise HTTPException(
            status_code=500,
            detail="Failed to list insights"
        )


@router.get("/chart-suggestions/{dataset_id}", response_model=List[ChartSuggestion])
async def get_chart_suggestions(dataset_id: str):
    """Chart suggestions from the newest stored summary."""
    try:
        return await ai_service.latest_chart_suggestions(dataset_id)

    except AppLensException:
        raise
    except Exception as e:
        logger.error(f"Error reading chart suggestions for {dataset_id}: {e}", exc_info=True)
        raise HTTPException(
            status_code=500,
            detail="Failed to read chart suggestions"
        )


@router.post(
    "/generate-chart-suggestions/{dataset_id}",
    response_model=ChartSuggestionsResponse,
    status_code=201,
)
async def generate_chart_suggestions(dataset_id: str):
    """
    Suggest up to three charts from the dataset schema.

    Args:
        dataset_id: The unique identifier for the dataset

    Returns:
        Field roles and the stored suggestions
    """
    try:
        return await ai_service.generate_chart_suggestions(dataset_id)

    except AppLensException:
        raise
    except Exception as e:
        logger.error(f"Error generating chart suggestions for {dataset_id}: {e}", exc_info=True)
        raise HTTPException(
            status_code=500,
            detail="Failed to generate chart suggestions"
        )
