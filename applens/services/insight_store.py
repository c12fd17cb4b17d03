"""File-based store of AI insights, grouped per dataset."""

import json
import logging
import os
import shutil
from pathlib import Path
from typing import List, Optional

import aiofiles

from applens.config import get_settings
from applens.schemas.ai import AIInsight, InsightType

logger = logging.getLogger(__name__)
settings = get_settings()


class InsightStore:
    """
    Keeps ``<insight_dir>/<dataset_id>/<insight_id>.json`` documents.

    Dataset ids reach this store only after the registry has resolved them.
    """

    def __init__(self, insight_dir: Optional[str] = None):
        self.insight_dir = Path(insight_dir or settings.insight_dir)

    def _dataset_dir(self, dataset_id: str) -> Path:
        return self.insight_dir / dataset_id

    async def save(self, insight: AIInsight) -> AIInsight:
        """
        Persist an insight.

        Args:
            insight: Insight to store

        Returns:
            The stored insight
        """
        target_dir = self._dataset_dir(insight.dataset_id)
        target_dir.mkdir(parents=True, exist_ok=True)
        path = target_dir / f"{insight.id}.json"
        tmp_path = path.with_suffix(".json.tmp")

        async with aiofiles.open(tmp_path, "w") as f:
            await f.write(json.dumps(insight.model_dump(mode="json"), indent=2))
        os.replace(tmp_path, path)

        logger.info(f"Stored {insight.type.value} insight {insight.id} for dataset {insight.dataset_id}")
        return insight

    async def list_for_dataset(
        self, dataset_id: str, insight_type: Optional[InsightType] = None
    ) -> List[AIInsight]:
        """
        List the insights of a dataset, newest first.

        Args:
            dataset_id: Dataset identifier
            insight_type: Only insights of this type when given

        Returns:
            Matching insights
        """
        target_dir = self._dataset_dir(dataset_id)
        if not target_dir.exists():
            return []

        insights = []
        for path in target_dir.glob("*.json"):
            try:
                async with aiofiles.open(path, "r") as f:
                    insight = AIInsight.model_validate(json.loads(await f.read()))
            except (OSError, ValueError) as e:
                logger.warning(f"Skipping unreadable insight document {path.name}: {e}")
                continue
            if insight_type is None or insight.type == insight_type:
                insights.append(insight)

        insights.sort(key=lambda i: i.created_at, reverse=True)
        return insights

    async def delete_for_dataset(self, dataset_id: str) -> int:
        """Remove every insight of a dataset and return how many there were."""
        target_dir = self._dataset_dir(dataset_id)
        if not target_dir.exists():
            return 0

        removed = len(list(target_dir.glob("*.json")))
        shutil.rmtree(target_dir)
        logger.info(f"Removed {removed} insights for dataset {dataset_id}")
        return removed


# Global insight store instance
insight_store = InsightStore()
