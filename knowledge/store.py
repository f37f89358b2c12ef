"""Document store — CRUD over the persisted documents index.

Every operation reloads the full index from the repository and every
mutation rewrites it in full. There is no cached index and no locking: the
chat loop runs one operation at a time.

Limits (see knowledge/config.py):
    MAX_DOCUMENTS      — document count cap
    MAX_DOCUMENT_SIZE  — per-document content cap, in UTF-8 bytes
    MAX_TOTAL_STORAGE  — cap on the summed content of all documents
"""

import logging
import time
from pathlib import PurePath
from typing import Protocol

from knowledge.config import MAX_DOCUMENT_SIZE, MAX_DOCUMENTS, MAX_TOTAL_STORAGE
from knowledge.errors import (
    ImportUnavailable,
    NotFound,
    PayloadTooLarge,
    PersistenceFailure,
    QuotaExceeded,
)
from knowledge.keywords import KeywordEngine
from knowledge.models import (
    Document,
    DocumentKind,
    DocumentUpdate,
    ImportedFile,
    MutationResult,
    NewDocument,
    StoreStats,
    utcnow,
)
from knowledge.persistence import IndexRepository
from knowledge.sanitizer import sanitize_content, sanitize_tags, sanitize_title_or_tag

logger = logging.getLogger("docllm.store")

AUTO_TAG_KEYWORDS = ("guide", "tutorial", "documentation", "readme", "api", "config", "setup")

# filename substring -> tag
FILENAME_TAGS = (
    ("readme", "readme"),
    ("config", "configuration"),
    ("api", "api"),
)

SAVE_FAILED_WARNING = "Changes could not be saved to disk and will be lost on restart."


class FilePicker(Protocol):
    def pick_and_read(self) -> ImportedFile | None: ...


def _mib(n: int) -> str:
    return f"{n / 1024 / 1024:g}MB"


def file_extension(file_name: str) -> str:
    """Lowercased extension without the dot, '' if there is none."""
    return PurePath(file_name).suffix.lstrip(".").lower()


def infer_kind(file_name: str) -> DocumentKind:
    ext = file_extension(file_name)
    if ext == "md":
        return DocumentKind.MARKDOWN
    if ext == "json":
        return DocumentKind.JSON
    return DocumentKind.TEXT


def title_from_filename(file_name: str) -> str:
    name = PurePath(file_name).name
    stem, dot, _ = name.rpartition(".")
    return stem if dot and stem else name


def generate_auto_tags(file_name: str, content: str) -> list[str]:
    """Tags from the extension, well-known content keywords and filename patterns."""
    tags: list[str] = []
    ext = file_extension(file_name)
    if ext:
        tags.append(ext)

    lower_content = content.lower()
    tags.extend(keyword for keyword in AUTO_TAG_KEYWORDS if keyword in lower_content)

    lower_name = file_name.lower()
    tags.extend(tag for pattern, tag in FILENAME_TAGS if pattern in lower_name)

    # dict keeps first-seen order
    return list(dict.fromkeys(tags))


class DocumentStore:
    """Persistent document collection with quota enforcement."""

    def __init__(
        self,
        repository: IndexRepository,
        engine: KeywordEngine | None = None,
        max_documents: int = MAX_DOCUMENTS,
        max_document_size: int = MAX_DOCUMENT_SIZE,
        max_total_storage: int = MAX_TOTAL_STORAGE,
    ):
        self.repository = repository
        self.engine = engine or KeywordEngine()
        self.max_documents = max_documents
        self.max_document_size = max_document_size
        self.max_total_storage = max_total_storage
        self._last_id = 0

    # ── Reads ────────────────────────────────────────

    def load_all(self) -> list[Document]:
        """All documents in store order. Returns [] if the index can't be read."""
        try:
            return self.repository.read().documents
        except PersistenceFailure as e:
            logger.warning("Error loading documents, treating store as empty: %s", e)
            return []

    def get(self, doc_id: str) -> Document | None:
        return next((d for d in self.load_all() if d.id == doc_id), None)

    def require(self, doc_id: str) -> Document:
        doc = self.get(doc_id)
        if doc is None:
            raise NotFound(f"Document not found: {doc_id}")
        return doc

    def search(self, query: str) -> list[Document]:
        return self.engine.search(self.load_all(), query)

    def filter(self, term: str) -> list[Document]:
        """Documents whose title or any tag contains ``term``, case-insensitive."""
        needle = term.strip().lower()
        return [
            d for d in self.load_all()
            if needle in d.title.lower() or any(needle in tag.lower() for tag in d.tags)
        ]

    def stats(self) -> StoreStats:
        try:
            index = self.repository.read()
            documents, last_updated = index.documents, index.last_updated
        except PersistenceFailure as e:
            logger.warning("Error loading documents for stats: %s", e)
            documents, last_updated = [], None
        if not documents:
            last_updated = None
        return StoreStats(
            document_count=len(documents),
            total_bytes=sum(d.size for d in documents),
            max_documents=self.max_documents,
            max_total_storage=self.max_total_storage,
            last_updated=last_updated,
            backend=self.repository.describe(),
        )

    # ── Mutations ────────────────────────────────────

    def _load_for_write(self) -> list[Document]:
        # An unreadable index must not be overwritten with a near-empty one
        return self.repository.read().documents

    def _persist(self, documents: list[Document], document: Document | None) -> MutationResult:
        if self.repository.write(documents):
            return MutationResult(document=document)
        logger.error("Documents index was not persisted (%d documents)", len(documents))
        return MutationResult(document=document, persisted=False, warning=SAVE_FAILED_WARNING)

    def _check_size(self, content: str, others: list[Document]) -> None:
        size = len(content.encode("utf-8"))
        if size > self.max_document_size:
            raise PayloadTooLarge(f"Document too large. Max size: {_mib(self.max_document_size)}")
        if sum(d.size for d in others) + size > self.max_total_storage:
            raise PayloadTooLarge(
                f"Storage limit reached. Max total storage: {_mib(self.max_total_storage)}"
            )

    def _next_id(self, documents: list[Document]) -> str:
        """Nanosecond timestamp, bumped past anything already issued or stored."""
        taken = {d.id for d in documents}
        candidate = max(time.time_ns(), self._last_id + 1)
        while str(candidate) in taken:
            candidate += 1
        self._last_id = candidate
        return str(candidate)

    def create(self, new_doc: NewDocument) -> MutationResult:
        """Sanitize and append a document. Size caps apply to the sanitized content.

        Raises:
            QuotaExceeded: the store already holds max_documents
            PayloadTooLarge: the content, or the store total, is over its cap
            PersistenceFailure: the existing index can't be read
        """
        documents = self._load_for_write()

        if len(documents) >= self.max_documents:
            raise QuotaExceeded(f"Maximum number of documents ({self.max_documents}) reached")
        content = sanitize_content(new_doc.content)
        self._check_size(content, documents)

        now = utcnow()
        doc = Document(
            id=self._next_id(documents),
            title=sanitize_title_or_tag(new_doc.title),
            content=content,
            kind=new_doc.kind,
            tags=sanitize_tags(new_doc.tags),
            created_at=now,
            updated_at=now,
        )
        documents.append(doc)
        logger.info("Created document %s '%s' (%d bytes)", doc.id, doc.title, doc.size)
        return self._persist(documents, doc)

    def update(self, doc_id: str, updates: DocumentUpdate) -> MutationResult | None:
        """Merge the set fields of ``updates`` into a document.

        Returns None if no document has ``doc_id``; the index is left untouched.
        Updated fields go through the same sanitization and size checks as create.
        """
        documents = self._load_for_write()
        position = next((i for i, d in enumerate(documents) if d.id == doc_id), None)
        if position is None:
            return None

        changes = updates.changes()
        if "title" in changes:
            changes["title"] = sanitize_title_or_tag(changes["title"])
        if "content" in changes:
            changes["content"] = sanitize_content(changes["content"])
            others = documents[:position] + documents[position + 1:]
            self._check_size(changes["content"], others)
        if "tags" in changes:
            changes["tags"] = sanitize_tags(changes["tags"])
        changes["updated_at"] = utcnow()

        documents[position] = documents[position].model_copy(update=changes)
        logger.info("Updated document %s (%s)", doc_id, ", ".join(sorted(changes)))
        return self._persist(documents, documents[position])

    def delete(self, doc_id: str) -> MutationResult:
        """Remove a document. The result is falsy if there was nothing to remove."""
        documents = self._load_for_write()
        remaining = [d for d in documents if d.id != doc_id]
        if len(remaining) == len(documents):
            return MutationResult(changed=False)

        removed = next(d for d in documents if d.id == doc_id)
        logger.info("Deleted document %s '%s'", doc_id, removed.title)
        return self._persist(remaining, removed)

    # ── Import ───────────────────────────────────────

    def import_from_external_file(self, picker: FilePicker | None) -> MutationResult | None:
        """Pick a file, derive kind/title/tags from it and store it.

        Returns None if the user cancelled the pick.

        Raises:
            ImportUnavailable: no picker is configured
            InvalidImportContent: the picker rejected the file
        """
        if picker is None:
            raise ImportUnavailable("File import not available in this environment")

        imported = picker.pick_and_read()
        if imported is None:
            logger.info("Import cancelled, no file selected")
            return None
        return self.import_file(imported)

    def import_file(self, imported: ImportedFile) -> MutationResult:
        new_doc = NewDocument(
            title=title_from_filename(imported.file_name),
            content=imported.content,
            kind=infer_kind(imported.file_name),
            tags=generate_auto_tags(imported.file_name, imported.content),
        )
        logger.info("Importing %s as %s", imported.file_name, new_doc.kind.value)
        return self.create(new_doc)
