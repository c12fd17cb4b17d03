"""Chart data service."""

import logging
from typing import List, Optional

from applens.config import get_settings
from applens.core.aggregation import (
    AggregationBucket,
    AggregationMode,
    AggregationRequest,
    aggregate_records,
)
from applens.core.charts import format_axis_value, shape_series
from applens.schemas.charts import BuildChartRequest, ChartDataset, ChartResponse, GenerateChartRequest
from applens.services.dataset_service import DatasetService, dataset_service

logger = logging.getLogger(__name__)
settings = get_settings()


def _series_label(y_field: Optional[str]) -> str:
    return y_field or "Count"


class ChartService:
    """Turns datasets and record lists into chart-ready series."""

    def __init__(self, datasets: Optional[DatasetService] = None):
        self.datasets = datasets or dataset_service

    async def generate_chart(self, request: GenerateChartRequest) -> ChartResponse:
        """
        Aggregate a registered dataset in ranked mode.

        Database sources run the aggregation themselves; files are reduced
        in memory.

        Args:
            request: Dataset, chart type and fields

        Returns:
            ChartResponse with labels, one dataset and the raw buckets
        """
        descriptor = await self.datasets.get_dataset(request.dataset_id)
        group_field = request.group_by or request.x_field

        aggregation = AggregationRequest(
            group_field=group_field,
            value_field=request.y_field,
            chart_type=request.chart_type,
        )
        source = self.datasets.source_for(descriptor)
        buckets = await source.aggregate(aggregation, settings.ranked_bucket_limit)

        logger.info(
            f"Generated {request.chart_type.value} chart for dataset {descriptor.id}: "
            f"{len(buckets)} buckets on '{group_field}'"
        )
        return self._response(
            request.chart_type, request.x_field, request.y_field, group_field, buckets
        )

    def build_chart(self, request: BuildChartRequest) -> ChartResponse:
        """
        Aggregate caller-supplied records in chart-builder mode and shape them.

        Args:
            request: Records, fields, chart type and category limit

        Returns:
            ChartResponse with display labels; pies are folded
        """
        aggregation = AggregationRequest(
            group_field=request.x_field,
            value_field=request.y_field,
            chart_type=request.chart_type,
            category_limit=request.category_limit,
        )
        buckets = aggregate_records(request.records, aggregation, AggregationMode.CHART_BUILDER)
        series = shape_series(
            buckets,
            request.chart_type,
            request.category_limit,
            fold_threshold=settings.pie_fold_threshold,
            fold_top_k=settings.pie_top_k,
        )

        if series.folded_count:
            logger.info(
                f"Folded {series.folded_count} pie slices into Others "
                f"({len(buckets)} categories on '{request.x_field}')"
            )
        return self._response(
            request.chart_type,
            request.x_field,
            request.y_field,
            request.x_field,
            series.buckets,
            folded_count=series.folded_count,
        )

    def _response(
        self,
        chart_type,
        x_field: str,
        y_field: Optional[str],
        group_by: str,
        buckets: List[AggregationBucket],
        folded_count: int = 0,
    ) -> ChartResponse:
        values = [bucket.value for bucket in buckets]
        return ChartResponse(
            chart_type=chart_type,
            x_field=x_field,
            y_field=y_field or "count",
            group_by=group_by,
            labels=[bucket.label for bucket in buckets],
            datasets=[ChartDataset(label=_series_label(y_field), data=values)],
            raw_data=buckets,
            folded_count=folded_count,
            formatted_values=[format_axis_value(value) for value in values],
        )


# Global chart service instance
chart_service = ChartService()
