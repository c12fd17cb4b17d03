"""Storage of uploaded dataset files."""

import os
import shutil
from pathlib import Path
from typing import Optional
import aiofiles
from fastapi import UploadFile
import logging

from applens.config import get_settings

logger = logging.getLogger(__name__)
settings = get_settings()

CHUNK_SIZE = 1024 * 1024
DEFAULT_FILENAME = "data"


def sanitize_filename(filename: str) -> str:
    """
    Reduce an uploaded filename to a safe basename.

    Directory parts are dropped, the stem keeps only alphanumerics, ``_``
    and ``-``, and the extension is lowercased so kind detection still works.

    Args:
        filename: Name sent by the client

    Returns:
        Safe filename with its extension
    """
    stem, extension = os.path.splitext(os.path.basename(filename))
    stem = "".join(c for c in stem if c.isalnum() or c in "_-")
    extension = "".join(c for c in extension.lower() if c.isalnum() or c == ".")
    return f"{stem or DEFAULT_FILENAME}{extension}"


class FileService:
    """Keeps each uploaded file in its own directory keyed by dataset id."""

    def __init__(self, upload_dir: Optional[str] = None):
        self.upload_dir = Path(upload_dir or settings.upload_dir)

    def dataset_dir(self, dataset_id: str) -> Path:
        return self.upload_dir / dataset_id

    async def save_uploaded_file(self, file: UploadFile, dataset_id: str) -> str:
        """
        Copy an upload to ``<upload_dir>/<dataset_id>/<filename>``.

        Args:
            file: Validated upload
            dataset_id: Dataset the file belongs to

        Returns:
            Path of the stored file
        """
        target_dir = self.dataset_dir(dataset_id)
        target_dir.mkdir(parents=True, exist_ok=True)
        file_path = target_dir / sanitize_filename(file.filename or DEFAULT_FILENAME)

        written = 0
        await file.seek(0)
        try:
            async with aiofiles.open(file_path, "wb") as out:
                while True:
                    chunk = await file.read(CHUNK_SIZE)
                    if not chunk:
                        break
                    await out.write(chunk)
                    written += len(chunk)
        except Exception as e:
            logger.error(f"Failed to store upload for dataset {dataset_id}: {e}")
            shutil.rmtree(target_dir, ignore_errors=True)
            raise

        logger.info(f"Stored {written} bytes for dataset {dataset_id} at {file_path}")
        return str(file_path)

    async def delete_dataset_files(self, dataset_id: str) -> bool:
        """
        Remove the stored file of a dataset.

        Args:
            dataset_id: Dataset identifier

        Returns:
            True if a directory was removed, False if nothing was stored
        """
        target_dir = self.dataset_dir(dataset_id)
        if not target_dir.exists():
            return False

        shutil.rmtree(target_dir)
        logger.info(f"Removed stored files for dataset {dataset_id}")
        return True


# Global file service instance
file_service = FileService()
