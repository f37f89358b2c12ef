"""Persistence adapter for the documents index.

The index is stored as one JSON blob under a single logical key. Backends
only move bytes; encoding and decoding live in ``IndexRepository``.

Backends:
    JsonFileBackend — <data dir>/documents/index.json
    SQLiteBackend   — single-row key/value table
    MemoryBackend   — process-local, for tests and throwaway sessions
"""

import json
import logging
import sqlite3
import time
from pathlib import Path
from typing import Protocol

from pydantic import ValidationError

from knowledge.config import DATA_DIR, INDEX_KEY, STORAGE_BACKEND
from knowledge.errors import PersistenceFailure
from knowledge.models import Document, DocumentIndex, utcnow

logger = logging.getLogger("docllm.persistence")


class PersistenceBackend(Protocol):
    def load(self) -> bytes | None: ...

    def save(self, data: bytes) -> bool: ...

    def describe(self) -> str: ...


# ════════════════════════════════════════════════════════════
#  BACKENDS
# ════════════════════════════════════════════════════════════

class JsonFileBackend:
    """Index kept as a pretty-printed JSON file."""

    def __init__(self, data_dir: Path = DATA_DIR):
        self.path = Path(data_dir) / "documents" / "index.json"

    def load(self) -> bytes | None:
        """Return the raw index, or None if nothing has been saved yet.

        Raises OSError if the file exists but can't be read.
        """
        if not self.path.exists():
            return None
        return self.path.read_bytes()

    def save(self, data: bytes) -> bool:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp = self.path.with_suffix(".json.tmp")
            tmp.write_bytes(data)
            tmp.replace(self.path)
        except OSError as e:
            logger.error("Error saving documents to %s: %s", self.path, e)
            return False
        return True

    def describe(self) -> str:
        return f"file ({self.path})"


class SQLiteBackend:
    """Index kept as a single row in a key/value table."""

    def __init__(self, db_path: Path | None = None, key: str = INDEX_KEY):
        self.db_path = str(db_path or DATA_DIR / "docllm.db")
        self.key = key
        self._init_db()

    def _init_db(self) -> None:
        """Create kv table if not exists."""
        Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
        with sqlite3.connect(self.db_path) as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS kv (
                    key        TEXT PRIMARY KEY,
                    value      BLOB NOT NULL,
                    updated_at REAL NOT NULL
                )
            """)
            conn.commit()

    def load(self) -> bytes | None:
        with sqlite3.connect(self.db_path) as conn:
            row = conn.execute(
                "SELECT value FROM kv WHERE key = ?", (self.key,)
            ).fetchone()
        if not row:
            return None
        value = row[0]
        return value.encode("utf-8") if isinstance(value, str) else bytes(value)

    def save(self, data: bytes) -> bool:
        try:
            with sqlite3.connect(self.db_path) as conn:
                conn.execute(
                    """
                    INSERT INTO kv (key, value, updated_at)
                    VALUES (?, ?, ?)
                    ON CONFLICT(key) DO UPDATE SET
                        value = excluded.value,
                        updated_at = excluded.updated_at
                    """,
                    (self.key, data, time.time()),
                )
                conn.commit()
        except sqlite3.Error as e:
            logger.error("Error saving documents to %s: %s", self.db_path, e)
            return False
        return True

    def describe(self) -> str:
        return f"sqlite ({self.db_path})"


class MemoryBackend:
    def __init__(self, data: bytes | None = None):
        self.data = data

    def load(self) -> bytes | None:
        return self.data

    def save(self, data: bytes) -> bool:
        self.data = data
        return True

    def describe(self) -> str:
        return "memory"


def create_backend(kind: str = STORAGE_BACKEND, data_dir: Path = DATA_DIR) -> PersistenceBackend:
    """Build the backend named by DOCLLM_BACKEND."""
    if kind == "file":
        return JsonFileBackend(data_dir)
    if kind == "sqlite":
        return SQLiteBackend(Path(data_dir) / "docllm.db")
    if kind == "memory":
        return MemoryBackend()
    raise ValueError(f"Unknown storage backend: {kind!r} (expected file, sqlite or memory)")


# ════════════════════════════════════════════════════════════
#  INDEX REPOSITORY
# ════════════════════════════════════════════════════════════

class IndexRepository:
    """Encode/decode the whole DocumentIndex through a backend."""

    def __init__(self, backend: PersistenceBackend):
        self.backend = backend

    def read(self) -> DocumentIndex:
        """Load the index. An absent blob is an empty index.

        Raises PersistenceFailure on I/O errors or an undecodable blob.
        """
        try:
            raw = self.backend.load()
        except (OSError, sqlite3.Error) as e:
            raise PersistenceFailure(f"Cannot read documents index: {e}") from e
        if raw is None or not raw.strip():
            return DocumentIndex()
        try:
            payload = json.loads(raw)
            # Older clients stored a bare list of documents
            if isinstance(payload, list):
                return DocumentIndex(
                    documents=[Document.model_validate(d) for d in payload]
                )
            return DocumentIndex.model_validate(payload)
        except (json.JSONDecodeError, UnicodeDecodeError, ValidationError) as e:
            raise PersistenceFailure(f"Corrupt documents index: {e}") from e

    def write(self, documents: list[Document]) -> bool:
        """Replace the persisted index. Returns False if the backend refused."""
        index = DocumentIndex(documents=documents, last_updated=utcnow())
        data = index.model_dump_json(by_alias=True, indent=2).encode("utf-8")
        try:
            return self.backend.save(data)
        except (OSError, sqlite3.Error) as e:
            logger.error("Error saving documents: %s", e)
            return False

    def describe(self) -> str:
        return self.backend.describe()
