"""LLM client for dataset summaries and chat via OpenAI."""

import json
import openai
from typing import Any, Dict, List, Optional
import logging

from applens.config import get_settings
from applens.core.charts.suggestions import analyze_schema
from applens.core.inference.schema_extractor import FieldDescriptor
from applens.schemas.ai import (
    ChartSuggestion,
    ChatMessage,
    DatasetSummaryInsight,
    TrendDirection,
    TrendSummary,
)
from applens.utils.exceptions import LLMException

logger = logging.getLogger(__name__)
settings = get_settings()

PROMPT_SAMPLE_ROWS = 10
CHAT_SAMPLE_ROWS = 5


def build_fallback_summary(
    name: str, schema: List[FieldDescriptor], records_count: int
) -> DatasetSummaryInsight:
    """
    Derive a summary from the schema alone.

    Used when no API key is configured or the model call fails, so the
    result depends only on the inputs.

    Args:
        name: Dataset name
        schema: Inferred schema
        records_count: Total number of records

    Returns:
        DatasetSummaryInsight built from field type counts
    """
    analysis = analyze_schema(schema)
    numeric = analysis.numeric_fields
    categorical = analysis.categorical_fields
    dates = analysis.date_fields

    if dates:
        date_insight = (
            f"Date field(s) detected: {', '.join(dates)} "
            f"- suitable for time series analysis."
        )
    else:
        date_insight = "No date fields detected. Consider adding timestamps for trend analysis."

    insights = [
        f"The dataset has {len(numeric)} numeric field(s) suitable for aggregation and calculations.",
        f"There are {len(categorical)} categorical field(s) that can be used for grouping and filtering.",
        date_insight,
    ]

    trends = [
        TrendSummary(
            title="Data Distribution",
            description=f"The dataset contains {records_count} records across {len(schema)} columns.",
        ),
        TrendSummary(
            title="Numeric Analysis",
            description=(
                f"Fields like {numeric[0]} can be analyzed for patterns."
                if numeric else "No numeric fields available for quantitative analysis."
            ),
            trend=TrendDirection.POSITIVE if numeric else TrendDirection.NEUTRAL,
        ),
        TrendSummary(
            title="Categorization",
            description=(
                f"Group data by {categorical[0]} for segmentation insights."
                if categorical else "Limited categorical data available."
            ),
            trend=TrendDirection.POSITIVE if categorical else TrendDirection.NEUTRAL,
        ),
    ]

    suggestions = []
    if numeric and categorical:
        suggestions.append(ChartSuggestion(
            chart_type="bar",
            x_axis=categorical[0],
            y_axis=numeric[0],
            title=f"{numeric[0]} by {categorical[0]}",
        ))
    if dates and numeric:
        suggestions.append(ChartSuggestion(
            chart_type="line",
            x_axis=dates[0],
            y_axis=numeric[0],
            title=f"{numeric[0]} Over Time",
        ))
    if categorical:
        suggestions.append(ChartSuggestion(
            chart_type="pie",
            x_axis=categorical[0],
            y_axis="count",
            title=f"Distribution of {categorical[0]}",
        ))

    return DatasetSummaryInsight(
        summary=f'This dataset "{name}" contains {records_count} records with {len(schema)} fields.',
        insights=insights,
        trend_summaries=trends,
        chart_suggestions=suggestions,
        generated_by="fallback",
    )


def _describe_schema(schema: List[FieldDescriptor], with_examples: bool = True) -> str:
    lines = []
    for descriptor in schema:
        line = f"- {descriptor.field} ({descriptor.type.value})"
        if with_examples:
            line += f': example "{descriptor.example_value}"'
        lines.append(line)
    return "\n".join(lines)


class SummarizerClient:
    """Client for the generative summary and chat capability."""

    def __init__(self, api_key: Optional[str] = None, model: Optional[str] = None):
        self.api_key = api_key if api_key is not None else settings.openai_api_key
        self.model = model or settings.openai_model
        self.client = openai.AsyncOpenAI(api_key=self.api_key) if self.api_key else None

    @property
    def is_configured(self) -> bool:
        return self.client is not None

    async def summarize_dataset(
        self,
        name: str,
        schema: List[FieldDescriptor],
        records_count: int,
        sample: List[Dict[str, Any]],
    ) -> DatasetSummaryInsight:
        """
        Summarize a dataset from its schema and a sample of rows.

        Args:
            name: Dataset name
            schema: Inferred schema
            records_count: Total number of records
            sample: Sample rows; the first few are sent to the model

        Returns:
            Model summary, or the schema-derived fallback
        """
        if not self.is_configured:
            logger.info("No OpenAI API key configured, using fallback summary")
            return build_fallback_summary(name, schema, records_count)

        prompt = f"""You are a data analyst. Analyze the following dataset and provide:
1. A brief summary of what this data represents
2. 3 key insights about the data
3. 3 trend summaries with title, description, and trend (positive/negative/neutral)
4. Suggested chart types with their configurations

Dataset Name: {name}
Total Records: {records_count}

Schema:
{_describe_schema(schema)}

Sample Data (first rows):
{json.dumps(sample[:PROMPT_SAMPLE_ROWS], indent=2, default=str)}

Respond in JSON format:
{{
  "summary": "Brief description of the dataset",
  "insights": ["insight 1", "insight 2", "insight 3"],
  "trendSummaries": [
    {{ "title": "Trend title", "description": "Description of the trend", "trend": "positive|negative|neutral" }}
  ],
  "chartSuggestions": [
    {{ "chartType": "bar|line|pie|scatter", "xAxis": "field_name", "yAxis": "field_name", "title": "Chart title" }}
  ]
}}"""

        try:
            response = await self._make_llm_request(
                messages=[{"role": "user", "content": prompt}],
                json_response=True,
            )
            result = DatasetSummaryInsight.model_validate(json.loads(response))
            result.generated_by = self.model
            return result
        except Exception as e:
            logger.warning(f"Summary request failed, falling back to schema summary: {e}")
            return build_fallback_summary(name, schema, records_count)

    async def chat_about_dataset(
        self,
        question: str,
        name: str,
        schema: List[FieldDescriptor],
        sample: List[Dict[str, Any]],
        history: Optional[List[ChatMessage]] = None,
    ) -> str:
        """
        Answer a question about a dataset.

        Args:
            question: User question
            name: Dataset name
            schema: Inferred schema
            sample: Sample rows
            history: Earlier chat turns

        Returns:
            The answer text
        """
        if not self.is_configured:
            logger.info("No OpenAI API key configured, returning setup message for chat")
            return (
                f'I\'m analyzing the "{name}" dataset with {len(schema)} fields. '
                f'Based on your question "{question}", I would need an OpenAI API key to provide '
                f"a detailed analysis. Please configure OPENAI_API_KEY in your .env file for "
                f"full AI capabilities."
            )

        system_prompt = f"""You are a helpful data analyst assistant. You have access to a dataset called "{name}".

Schema:
{_describe_schema(schema, with_examples=False)}

Sample Data:
{json.dumps(sample[:CHAT_SAMPLE_ROWS], indent=2, default=str)}

Answer the user's questions about this dataset. Be concise and helpful."""

        messages = [{"role": "system", "content": system_prompt}]
        messages.extend({"role": m.role, "content": m.content} for m in history or [])
        messages.append({"role": "user", "content": question})

        return await self._make_llm_request(messages=messages)

    async def _make_llm_request(
        self,
        messages: List[Dict[str, str]],
        json_response: bool = False,
        temperature: float = 0.3,
    ) -> str:
        """
        Make a chat completion request.

        Args:
            messages: Chat messages
            json_response: Ask for a JSON object response
            temperature: Sampling temperature

        Returns:
            LLM response text
        """
        if not self.is_configured:
            raise LLMException("OpenAI API key is not configured", error_code="LLM_NOT_CONFIGURED")

        try:
            kwargs: Dict[str, Any] = {
                "model": self.model,
                "messages": messages,
                "temperature": temperature,
            }
            if json_response:
                kwargs["response_format"] = {"type": "json_object"}

            completion = await self.client.chat.completions.create(**kwargs)
            response = completion.choices[0].message.content or ""
            logger.info(f"LLM request successful with model: {self.model}")
            return response

        except Exception as e:
            logger.error(f"LLM request failed: {e}")
            raise LLMException(f"Failed to get LLM response: {str(e)}")


# Global client instance
summarizer_client = SummarizerClient()
