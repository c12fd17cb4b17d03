"""File-based registry of dataset descriptors."""

import json
import logging
import os
import re
from pathlib import Path
from typing import List, Optional

import aiofiles

from applens.config import get_settings
from applens.schemas.datasets import DatasetDescriptor
from applens.utils.exceptions import DatasetNotFoundException

logger = logging.getLogger(__name__)
settings = get_settings()

_DATASET_ID_RE = re.compile(r"^[A-Za-z0-9_-]+$")


class DatasetRegistry:
    """
    Stores one JSON document per dataset under the registry directory.

    Documents are written to a temporary file and renamed into place so a
    crash never leaves a half-written descriptor.
    """

    def __init__(self, registry_dir: Optional[str] = None):
        self.registry_dir = Path(registry_dir or settings.registry_dir)

    def _path(self, dataset_id: str) -> Path:
        if not _DATASET_ID_RE.match(dataset_id or ""):
            raise DatasetNotFoundException(dataset_id)
        return self.registry_dir / f"{dataset_id}.json"

    async def save(self, descriptor: DatasetDescriptor) -> DatasetDescriptor:
        """
        Persist a descriptor, replacing any earlier version.

        Args:
            descriptor: Dataset descriptor

        Returns:
            The stored descriptor
        """
        self.registry_dir.mkdir(parents=True, exist_ok=True)
        path = self._path(descriptor.id)
        tmp_path = path.with_suffix(".json.tmp")

        payload = descriptor.model_dump(mode="json", by_alias=True)
        async with aiofiles.open(tmp_path, "w") as f:
            await f.write(json.dumps(payload, indent=2))
        os.replace(tmp_path, path)

        logger.info(f"Registered dataset {descriptor.id} ({descriptor.source_kind.value})")
        return descriptor

    async def get(self, dataset_id: str) -> DatasetDescriptor:
        """
        Load a descriptor.

        Args:
            dataset_id: Dataset identifier

        Returns:
            The stored descriptor
        """
        path = self._path(dataset_id)
        if not path.exists():
            raise DatasetNotFoundException(dataset_id)

        async with aiofiles.open(path, "r") as f:
            content = await f.read()
        return DatasetDescriptor.model_validate(json.loads(content))

    async def list_datasets(self, app_space_id: Optional[str] = None) -> List[DatasetDescriptor]:
        """
        List descriptors, newest first.

        Args:
            app_space_id: Only datasets of this app space when given

        Returns:
            Matching descriptors
        """
        if not self.registry_dir.exists():
            return []

        descriptors = []
        for path in sorted(self.registry_dir.glob("*.json")):
            try:
                async with aiofiles.open(path, "r") as f:
                    descriptor = DatasetDescriptor.model_validate(json.loads(await f.read()))
            except (OSError, ValueError) as e:
                logger.warning(f"Skipping unreadable dataset document {path.name}: {e}")
                continue
            if app_space_id is None or descriptor.app_space_id == app_space_id:
                descriptors.append(descriptor)

        descriptors.sort(key=lambda d: d.created_at, reverse=True)
        return descriptors

    async def delete(self, dataset_id: str) -> None:
        """Remove a descriptor."""
        path = self._path(dataset_id)
        if not path.exists():
            raise DatasetNotFoundException(dataset_id)
        path.unlink()
        logger.info(f"Removed dataset {dataset_id} from registry")


# Global registry instance
dataset_registry = DatasetRegistry()
