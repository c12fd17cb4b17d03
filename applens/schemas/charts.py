"""Chart-related Pydantic schemas."""

from pydantic import BaseModel, Field
from typing import List, Optional, Union

from applens.core.aggregation.aggregator import AggregationBucket, CategoryLimit, ChartKind
from applens.core.sources.base import Record


class GenerateChartRequest(BaseModel):
    """Chart over a registered dataset, aggregated by its source."""
    dataset_id: str
    chart_type: ChartKind
    x_field: str
    y_field: Optional[str] = None
    group_by: Optional[str] = None


class BuildChartRequest(BaseModel):
    """Chart over records already held by the caller."""
    records: List[Record] = Field(default_factory=list)
    x_field: str
    y_field: Optional[str] = None
    chart_type: ChartKind = ChartKind.BAR
    category_limit: CategoryLimit = "all"


class ChartDataset(BaseModel):
    """One plotted series."""
    label: str
    data: List[Union[int, float]] = Field(default_factory=list)


class ChartResponse(BaseModel):
    """Chart-ready series with the buckets it was built from."""
    chart_type: ChartKind
    x_field: str
    y_field: str
    group_by: str
    labels: List[str] = Field(default_factory=list)
    datasets: List[ChartDataset] = Field(default_factory=list)
    raw_data: List[AggregationBucket] = Field(default_factory=list)
    folded_count: int = 0
    formatted_values: List[str] = Field(default_factory=list)
