"""Abstract base classes for the blob-store and metadata-store backends.

Adding a backend only requires subclassing and implementing the abstract
methods; the ingestion, catalog and deletion code is backend-agnostic.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from docqa.retrieval.models import MetadataFilter
from docqa.storage.models import FileObject


class BlobStoreBase(ABC):
    """Raw-bytes store addressed by slash-separated paths.

    Write and delete failures raise :class:`~docqa.errors.StorageWriteError`;
    read and list failures raise :class:`~docqa.errors.StorageReadError`.
    """

    @abstractmethod
    def put(self, path: str, data: bytes, *, content_type: str | None = None) -> str:
        """Store *data* at *path* and return the stored path."""
        ...

    @abstractmethod
    def get(self, path: str) -> bytes:
        """Return the bytes stored at *path*."""
        ...

    @abstractmethod
    def delete(self, paths: list[str]) -> None:
        """Delete every path in *paths*.  Missing paths are ignored."""
        ...

    @abstractmethod
    def list_files(self, prefix: str) -> list[FileObject]:
        """List the blobs directly under *prefix*."""
        ...


class MetadataStoreBase(ABC):
    """Table-oriented structured-record store.

    Records are plain dicts keyed by column name.  Filters combine with AND
    semantics.  Write failures raise
    :class:`~docqa.errors.MetadataWriteError`, read failures
    :class:`~docqa.errors.MetadataReadError`.
    """

    @abstractmethod
    def insert(self, table: str, record: dict[str, Any]) -> str:
        """Insert *record* and return the identifier assigned to it."""
        ...

    @abstractmethod
    def query(
        self,
        table: str,
        filters: list[MetadataFilter] | None = None,
        *,
        order_by: str | None = None,
        descending: bool = False,
        offset: int = 0,
        limit: int | None = None,
    ) -> list[dict[str, Any]]:
        """Return the records matching *filters*."""
        ...

    @abstractmethod
    def delete(self, table: str, filters: list[MetadataFilter]) -> None:
        """Delete the records matching *filters*.  No match is not an error."""
        ...

    @abstractmethod
    def count(self, table: str, filters: list[MetadataFilter] | None = None) -> int:
        """Return the number of records matching *filters*."""
        ...
