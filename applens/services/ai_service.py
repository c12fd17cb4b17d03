"""AI summary, chat and chart-suggestion service."""

import logging
import uuid
from typing import List, Optional

from applens.config import get_settings
from applens.core.charts import analyze_schema, suggest_charts
from applens.core.llm.client import SummarizerClient, summarizer_client
from applens.schemas.ai import (
    AIInsight,
    ChartSuggestion,
    ChartSuggestionsResponse,
    ChatMessage,
    ChatRequest,
    ChatResponse,
    DatasetSummaryInsight,
    InsightType,
)
from applens.services.dataset_service import DatasetService, dataset_service
from applens.services.insight_store import InsightStore, insight_store
from applens.utils.exceptions import EmptySchemaException, InsightNotFoundException

logger = logging.getLogger(__name__)
settings = get_settings()


def history_from_chats(chats: List[AIInsight]) -> List[ChatMessage]:
    """Turn stored chat insights, oldest first, into alternating chat turns."""
    history = []
    for chat in chats:
        history.append(ChatMessage(role="user", content=chat.prompt or chat.summary))
        history.append(ChatMessage(role="assistant", content=chat.chat_response or ""))
    return history


class AIService:
    """Runs the summarizer over datasets and keeps the results as insights."""

    def __init__(
        self,
        datasets: Optional[DatasetService] = None,
        insights: Optional[InsightStore] = None,
        client: Optional[SummarizerClient] = None,
    ):
        self.datasets = datasets or dataset_service
        self.insights = insights or insight_store
        self.client = client or summarizer_client

    async def summarize(self, dataset_id: str) -> DatasetSummaryInsight:
        """
        Summarize a dataset and store the result.

        Args:
            dataset_id: Dataset identifier

        Returns:
            Summary with the id of the stored insight
        """
        descriptor = await self.datasets.get_dataset(dataset_id)
        sample = await self.datasets.fetch_sample(descriptor)

        result = await self.client.summarize_dataset(
            name=descriptor.name,
            schema=descriptor.schema_fields,
            records_count=descriptor.records_count,
            sample=sample,
        )

        insight = await self.insights.save(AIInsight(
            id=str(uuid.uuid4()),
            dataset_id=descriptor.id,
            app_space_id=descriptor.app_space_id,
            type=InsightType.SUMMARY,
            summary=result.summary,
            structured_data={
                "insights": result.insights,
                "trendSummaries": [t.model_dump(mode="json") for t in result.trend_summaries],
            },
            chart_suggestions=result.chart_suggestions,
        ))
        result.insight_id = insight.id
        return result

    async def chat(self, dataset_id: str, request: ChatRequest) -> ChatResponse:
        """
        Answer a question about a dataset and store the exchange.

        Without history in the request, the last stored chats of the dataset
        are replayed as context.

        Args:
            dataset_id: Dataset identifier
            request: Question and optional history

        Returns:
            The answer with the id of the stored insight
        """
        descriptor = await self.datasets.get_dataset(dataset_id)
        sample = await self.datasets.fetch_sample(descriptor, settings.chat_sample_rows)

        history = request.history
        if not history:
            chats = await self.insights.list_for_dataset(dataset_id, InsightType.CHAT)
            history = history_from_chats(list(reversed(chats[:settings.chat_history_turns])))

        answer = await self.client.chat_about_dataset(
            question=request.question,
            name=descriptor.name,
            schema=descriptor.schema_fields,
            sample=sample,
            history=history,
        )

        insight = await self.insights.save(AIInsight(
            id=str(uuid.uuid4()),
            dataset_id=descriptor.id,
            app_space_id=descriptor.app_space_id,
            type=InsightType.CHAT,
            summary=request.question,
            prompt=request.question,
            chat_response=answer,
        ))

        model = self.client.model if self.client.is_configured else None
        return ChatResponse(dataset_id=dataset_id, answer=answer, model=model, insight_id=insight.id)

    async def list_insights(
        self, dataset_id: str, insight_type: Optional[InsightType] = None
    ) -> List[AIInsight]:
        descriptor = await self.datasets.get_dataset(dataset_id)
        return await self.insights.list_for_dataset(descriptor.id, insight_type)

    async def latest_chart_suggestions(self, dataset_id: str) -> List[ChartSuggestion]:
        """Chart suggestions of the newest summary insight that has any."""
        for insight in await self.list_insights(dataset_id, InsightType.SUMMARY):
            if insight.chart_suggestions:
                return insight.chart_suggestions
        raise InsightNotFoundException(
            f"No chart suggestions found for dataset {dataset_id}. Generate a summary first."
        )

    async def generate_chart_suggestions(self, dataset_id: str) -> ChartSuggestionsResponse:
        """
        Suggest charts from the dataset schema and store them as a summary insight.

        Args:
            dataset_id: Dataset identifier

        Returns:
            Field roles and up to three suggestions
        """
        descriptor = await self.datasets.get_dataset(dataset_id)
        if not descriptor.schema_fields:
            raise EmptySchemaException(dataset_id)

        suggestions = suggest_charts(descriptor.schema_fields)
        insight = await self.insights.save(AIInsight(
            id=str(uuid.uuid4()),
            dataset_id=descriptor.id,
            app_space_id=descriptor.app_space_id,
            type=InsightType.SUMMARY,
            summary=f"Generated {len(suggestions)} chart suggestions based on schema analysis.",
            chart_suggestions=suggestions,
        ))

        logger.info(f"Generated {len(suggestions)} schema chart suggestions for dataset {dataset_id}")
        return ChartSuggestionsResponse(
            dataset_id=descriptor.id,
            dataset_name=descriptor.name,
            schema_analysis=analyze_schema(descriptor.schema_fields),
            chart_suggestions=suggestions,
            insight_id=insight.id,
        )


# Global AI service instance
ai_service = AIService()
