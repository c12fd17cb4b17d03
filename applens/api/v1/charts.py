"""Chart API endpoints."""

from fastapi import APIRouter, HTTPException
import logging

from applens.schemas.charts import BuildChartRequest, ChartResponse, GenerateChartRequest
from applens.services.chart_service import chart_service
from applens.utils.exceptions import AppLensException

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/generate", response_model=ChartResponse)
async def generate_chart(request: GenerateChartRequest):
    """
    Aggregate a dataset into the top buckets for a chart.

    Args:
        request: Dataset, chart type, x field and optional y field / group by

    Returns:
        Labels, one dataset of values and the raw buckets
    """
    try:
        return await chart_service.generate_chart(request)

    except AppLensException:
        raise
    except Exception as e:
        logger.error(f"Chart generation error: {e}", exc_info=True)
        raise HTTPException(
            status_code=500,
            detail="Failed to generate chart"
        )


@router.post("/build", response_model=ChartResponse)
async def build_chart(request: BuildChartRequest):
    """
    Build a chart from records held by the caller.

    Groups keep their first-seen order, the category limit truncates by
    position and pie charts fold their tail into "Others".
    """
    return chart_service.build_chart(request)
