"""Pydantic models for the document knowledge store.

Field aliases keep the persisted JSON in camelCase
(``createdAt``, ``updatedAt``, ``lastUpdated``, ``type``) so an index written
by the desktop client loads unchanged.
"""

from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class DocumentKind(str, Enum):
    MARKDOWN = "markdown"
    TEXT = "text"
    JSON = "json"


class Document(BaseModel):
    """A user-stored text unit."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    title: str
    content: str
    kind: DocumentKind = Field(default=DocumentKind.TEXT, alias="type")
    tags: list[str] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=utcnow, alias="createdAt")
    updated_at: datetime = Field(default_factory=utcnow, alias="updatedAt")

    @property
    def size(self) -> int:
        """Content length in UTF-8 bytes."""
        return len(self.content.encode("utf-8"))


class NewDocument(BaseModel):
    """Caller-supplied fields for ``DocumentStore.create``."""

    model_config = ConfigDict(populate_by_name=True)

    title: str
    content: str
    kind: DocumentKind = Field(default=DocumentKind.TEXT, alias="type")
    tags: list[str] = Field(default_factory=list)


class DocumentUpdate(BaseModel):
    """Partial update; only fields explicitly set are applied."""

    model_config = ConfigDict(populate_by_name=True)

    title: str | None = None
    content: str | None = None
    kind: DocumentKind | None = Field(default=None, alias="type")
    tags: list[str] | None = None

    def changes(self) -> dict:
        return self.model_dump(exclude_unset=True, exclude_none=True)


class DocumentIndex(BaseModel):
    """Whole-store snapshot: the unit of persistence."""

    model_config = ConfigDict(populate_by_name=True)

    documents: list[Document] = Field(default_factory=list)
    last_updated: datetime = Field(default_factory=utcnow, alias="lastUpdated")


class ImportedFile(BaseModel):
    """What the file-import collaborator hands back."""

    model_config = ConfigDict(populate_by_name=True)

    content: str
    file_name: str = Field(alias="fileName")


class MutationResult(BaseModel):
    """Outcome of a store mutation.

    ``persisted`` is False (and ``warning`` is set) when the in-memory change
    could not be written back. Truthiness follows ``changed``.
    """

    document: Document | None = None
    changed: bool = True
    persisted: bool = True
    warning: str | None = None

    def __bool__(self) -> bool:
        return self.changed


class StoreStats(BaseModel):
    document_count: int
    total_bytes: int
    max_documents: int
    max_total_storage: int
    last_updated: datetime | None = None
    backend: str = ""
