"""Exceptions raised by the knowledge store and command layer."""


class KnowledgeStoreError(Exception):
    """Base class for every knowledge store failure."""


class QuotaExceeded(KnowledgeStoreError):
    """The store already holds the maximum number of documents."""


class PayloadTooLarge(KnowledgeStoreError):
    """A document, or the store as a whole, would exceed its size cap."""


class NotFound(KnowledgeStoreError):
    """No document with the requested id."""


class NotACommand(KnowledgeStoreError):
    """Text handed to the dispatcher does not start with '/'."""


class ImportUnavailable(KnowledgeStoreError):
    """No file-import collaborator is configured."""


class InvalidImportContent(KnowledgeStoreError):
    """The imported file was rejected (bad extension, size or JSON)."""


class PersistenceFailure(KnowledgeStoreError):
    """The persisted index could not be read or decoded."""
