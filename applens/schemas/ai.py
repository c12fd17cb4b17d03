"""AI summary, chat and insight schemas."""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class TrendDirection(str, Enum):
    POSITIVE = "positive"
    NEGATIVE = "negative"
    NEUTRAL = "neutral"


class InsightType(str, Enum):
    """Kind of a stored AI insight."""
    SUMMARY = "summary"
    CHAT = "chat"


class TrendSummary(BaseModel):
    title: str
    description: str
    trend: TrendDirection = TrendDirection.NEUTRAL


class ChartSuggestion(BaseModel):
    chart_type: str = Field(alias="chartType")
    x_axis: str = Field(alias="xAxis")
    y_axis: str = Field(alias="yAxis")
    title: str
    description: Optional[str] = None

    class Config:
        populate_by_name = True


class DatasetSummaryInsight(BaseModel):
    """Summary of a dataset produced by the model or by the schema fallback."""
    summary: str
    insights: List[str] = Field(default_factory=list)
    trend_summaries: List[TrendSummary] = Field(default_factory=list, alias="trendSummaries")
    chart_suggestions: List[ChartSuggestion] = Field(default_factory=list, alias="chartSuggestions")
    generated_by: str = "fallback"
    insight_id: Optional[str] = Field(default=None, alias="insightId")

    class Config:
        populate_by_name = True


class AIInsight(BaseModel):
    """A stored summary or chat exchange about one dataset."""
    id: str
    dataset_id: str
    app_space_id: str
    type: InsightType
    summary: str
    prompt: Optional[str] = None
    chat_response: Optional[str] = None
    structured_data: Optional[Dict[str, Any]] = None
    chart_suggestions: List[ChartSuggestion] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=datetime.utcnow)


class ChatMessage(BaseModel):
    role: str
    content: str


class ChatRequest(BaseModel):
    question: str = Field(..., min_length=1)
    history: List[ChatMessage] = Field(default_factory=list)


class ChatResponse(BaseModel):
    dataset_id: str
    answer: str
    model: Optional[str] = None
    insight_id: Optional[str] = None


class SchemaAnalysis(BaseModel):
    """Field names of a schema split by role."""
    numeric_fields: List[str] = Field(default_factory=list)
    categorical_fields: List[str] = Field(default_factory=list)
    date_fields: List[str] = Field(default_factory=list)


class ChartSuggestionsResponse(BaseModel):
    dataset_id: str
    dataset_name: str
    schema_analysis: SchemaAnalysis
    chart_suggestions: List[ChartSuggestion]
    insight_id: str
