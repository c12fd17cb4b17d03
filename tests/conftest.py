"""
Shared pytest fixtures for the AppLens test suite.
"""

import os
import tempfile

# Settings are read once at import time; point storage at a scratch
# directory and disable the OpenAI client before the app is imported.
_TEST_ROOT = tempfile.mkdtemp(prefix="applens-tests-")
os.environ["UPLOAD_DIR"] = os.path.join(_TEST_ROOT, "uploads")
os.environ["REGISTRY_DIR"] = os.path.join(_TEST_ROOT, "datasets")
os.environ["INSIGHT_DIR"] = os.path.join(_TEST_ROOT, "insights")
os.environ["OPENAI_API_KEY"] = ""

import pytest
from pathlib import Path
from typing import Any, AsyncGenerator, Dict, List

from httpx import AsyncClient, ASGITransport
from applens.main import app
from applens.services.dataset_registry import dataset_registry
from applens.services.file_service import file_service
from applens.services.insight_store import insight_store


@pytest.fixture(autouse=True)
def isolated_storage(tmp_path: Path, monkeypatch) -> Path:
    """Give every test its own upload, registry and insight directories."""
    monkeypatch.setattr(file_service, "upload_dir", tmp_path / "uploads")
    monkeypatch.setattr(dataset_registry, "registry_dir", tmp_path / "datasets")
    monkeypatch.setattr(insight_store, "insight_dir", tmp_path / "insights")
    return tmp_path


@pytest.fixture
def write_file(tmp_path: Path):
    """Write a file under the test directory and return its path as text."""

    def _write(name: str, content: Any) -> str:
        path = tmp_path / "files" / name
        path.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(content, bytes):
            path.write_bytes(content)
        else:
            path.write_text(content, encoding="utf-8")
        return str(path)

    return _write


@pytest.fixture
def people_csv() -> str:
    """CSV with a missing trailing cell."""
    return "name,age\nAlice,30\nBob,25\nEve,\n"


@pytest.fixture
def sales_csv() -> str:
    """CSV with a category column and an amount column."""
    return (
        "region,amount,order_date\n"
        "North,100,2024-01-15\n"
        "South,250.5,2024-01-16\n"
        "North,50,2024-01-17\n"
        "East,oops,2024-01-18\n"
        "South,10,2024-01-19\n"
    )


@pytest.fixture
def sales_records() -> List[Dict[str, Any]]:
    """Records as a file source yields them."""
    return [
        {"region": "North", "amount": 100, "order_date": "2024-01-15"},
        {"region": "South", "amount": 250.5, "order_date": "2024-01-16"},
        {"region": "North", "amount": 50, "order_date": "2024-01-17"},
        {"region": "East", "amount": "oops", "order_date": "2024-01-18"},
        {"region": "South", "amount": 10, "order_date": "2024-01-19"},
    ]


@pytest.fixture
async def test_client() -> AsyncGenerator[AsyncClient, None]:
    """Provide an async HTTP client for testing FastAPI endpoints."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
