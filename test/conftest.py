"""Root conftest.py — shared fixtures for the entire test suite."""

import json
import sys
from pathlib import Path
from unittest.mock import MagicMock

import pytest

# ---------------------------------------------------------------------------
# Make project modules importable
# ---------------------------------------------------------------------------
PROJECT_ROOT = Path(__file__).resolve().parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from knowledge.commands import CommandDispatcher  # noqa: E402
from knowledge.keywords import KeywordEngine  # noqa: E402
from knowledge.models import NewDocument  # noqa: E402
from knowledge.persistence import IndexRepository, MemoryBackend  # noqa: E402
from knowledge.store import DocumentStore  # noqa: E402


# ---------------------------------------------------------------------------
# Common fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def memory_backend():
    """Empty in-memory persistence backend."""
    return MemoryBackend()


@pytest.fixture
def repository(memory_backend):
    return IndexRepository(memory_backend)


@pytest.fixture
def store(repository):
    """DocumentStore with the default limits over an in-memory backend."""
    return DocumentStore(repository, engine=KeywordEngine())


@pytest.fixture
def new_doc():
    """Factory for NewDocument payloads."""
    def _make(title="Notes", content="some content", kind="text", tags=None):
        return NewDocument(title=title, content=content, kind=kind, tags=tags or [])
    return _make


@pytest.fixture
def populated_store(store, new_doc):
    """Store holding a setup guide and an API reference."""
    store.create(new_doc(
        title="Setup Guide",
        content="Install the package, then add your first document from the menu.",
        kind="markdown",
        tags=["guide"],
    ))
    store.create(new_doc(
        title="API Reference",
        content="Endpoints for listing and removing records.",
        kind="markdown",
        tags=["api"],
    ))
    return store


@pytest.fixture
def dispatcher(store):
    return CommandDispatcher(store)


@pytest.fixture
def mock_llm():
    """Mock OllamaClient that answers every prompt with 'ok'."""
    llm = MagicMock()
    llm.default_model = "llama3.2:1b"
    llm.generate.return_value = "ok"
    llm.list_models.return_value = ["llama3.2:1b", "mistral:7b"]
    llm.check_connection.return_value = True
    return llm


@pytest.fixture
def raw_index():
    """Factory for a persisted index blob in the desktop client's format."""
    def _make(documents: list[dict], wrapped: bool = True) -> bytes:
        payload = (
            {"documents": documents, "lastUpdated": "2024-05-01T10:00:00.000Z"}
            if wrapped else documents
        )
        return json.dumps(payload).encode("utf-8")
    return _make


@pytest.fixture
def raw_document():
    """Factory for one serialized document dict."""
    def _make(doc_id: str, title: str = "Doc", content: str = "body", tags=None, kind="text"):
        return {
            "id": doc_id,
            "title": title,
            "content": content,
            "type": kind,
            "tags": tags or [],
            "createdAt": "2024-05-01T10:00:00.000Z",
            "updatedAt": "2024-05-01T10:00:00.000Z",
        }
    return _make


@pytest.fixture
def mock_env_vars(monkeypatch, tmp_path):
    """Set all config env vars to safe test values."""
    monkeypatch.setenv("DOCLLM_DATA_DIR", str(tmp_path / "data"))
    monkeypatch.setenv("DOCLLM_BACKEND", "memory")
    monkeypatch.setenv("OLLAMA_URL", "http://localhost:11434")
    monkeypatch.setenv("OLLAMA_MODEL", "llama3.2:1b")
