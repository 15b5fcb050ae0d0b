"""Exception hierarchy for the document QA service.

Every port adapter translates its library's exceptions into one of the
classes below at the port boundary, so the ingestion, query and deletion
paths only ever see :class:`DocQAError` subclasses.  The HTTP layer
renders any of them as ``{"error": kind, "message": ..., "details": ...}``.
"""

from __future__ import annotations

from typing import Any


class DocQAError(Exception):
    """Base exception for all document QA errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(message)

    @property
    def kind(self) -> str:
        """Stable error kind reported to callers (the class name)."""
        return type(self).__name__

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class ValidationError(DocQAError):
    """Raised when caller-supplied input is invalid."""

    def __init__(
        self,
        message: str,
        field: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        details = details or {}
        if field:
            details["field"] = field
        super().__init__(message, details)


# ── Blob storage ──────────────────────────────────────────────────────


class StorageError(DocQAError):
    """Base class for blob-store failures."""

    def __init__(
        self,
        message: str,
        path: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        details = details or {}
        if path:
            details["path"] = path
        super().__init__(message, details)


class StorageWriteError(StorageError):
    """Raised when a blob cannot be written or deleted."""


class StorageReadError(StorageError):
    """Raised when a blob cannot be read or listed."""


# ── Metadata store ────────────────────────────────────────────────────


class MetadataStoreError(DocQAError):
    """Base class for metadata-store failures."""

    def __init__(
        self,
        message: str,
        table: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        details = details or {}
        if table:
            details["table"] = table
        super().__init__(message, details)


class MetadataWriteError(MetadataStoreError):
    """Raised when a record cannot be inserted or deleted."""


class MetadataReadError(MetadataStoreError):
    """Raised when records cannot be queried."""


# ── Processing ────────────────────────────────────────────────────────


class ExtractionError(DocQAError):
    """Raised when text cannot be extracted from an uploaded file."""


class EmbeddingError(DocQAError):
    """Raised when embedding generation fails."""


# ── Vector index ──────────────────────────────────────────────────────


class VectorIndexError(DocQAError):
    """Base class for vector-index failures."""

    def __init__(
        self,
        message: str,
        operation: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        details = details or {}
        if operation:
            details["operation"] = operation
        super().__init__(message, details)


class IndexWriteError(VectorIndexError):
    """Raised when vectors cannot be inserted or deleted."""


class IndexReadError(VectorIndexError):
    """Raised when the index cannot be searched or listed."""


class CompletionError(DocQAError):
    """Raised when the chat-completion provider fails."""


# ── Multi-stage operations ────────────────────────────────────────────


class StageError(DocQAError):
    """A multi-stage operation failed; ``stage`` names the failing step."""

    def __init__(
        self,
        message: str,
        stage: str,
        cause: BaseException | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        details = details or {}
        details["stage"] = stage
        if cause is not None:
            details["cause"] = getattr(cause, "message", None) or str(cause)
            details["cause_kind"] = type(cause).__name__
        self.stage = stage
        self.cause = cause
        super().__init__(message, details)


class UploadError(StageError):
    """Raised by ``upload_document`` when any ingestion stage fails."""


class DeletionError(StageError):
    """Raised by ``remove_doc_file_vectors`` when a deletion stage fails."""
