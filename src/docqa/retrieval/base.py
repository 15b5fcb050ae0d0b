"""Abstract base class for vector-index backends.

Adding a new backend (pgvector, Qdrant, Pinecone …) only requires
subclassing :class:`VectorIndexBase` and implementing the abstract
methods.  The ingestion, query and deletion paths are backend-agnostic.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

from docqa.retrieval.models import ContextPassage, MetadataFilter, VectorRecord

if TYPE_CHECKING:
    from docqa.ingestion.models import Chunk


class VectorIndexBase(ABC):
    """Backend-agnostic vector-index interface.

    Parameters
    ----------
    collection_name:
        Logical name of the collection / table / namespace.

    Attributes
    ----------
    supports_metadata_filter:
        ``False`` when :meth:`similarity_search` ignores *filters*; callers
        then narrow the candidates themselves.
    """

    supports_metadata_filter: bool = True

    def __init__(self, collection_name: str) -> None:
        self.collection_name = collection_name

    # -- required overrides ---------------------------------------------------

    @abstractmethod
    def add(self, chunks: list[Chunk]) -> list[str]:
        """Embed and store *chunks*; return the ids the index assigned.

        Raises :class:`~docqa.errors.EmbeddingError` when embedding fails
        and :class:`~docqa.errors.IndexWriteError` when the write fails.
        """
        ...

    @abstractmethod
    def similarity_search(
        self,
        query: str,
        *,
        k: int = 2,
        filters: list[MetadataFilter] | None = None,
    ) -> list[ContextPassage]:
        """Return the top-*k* passages for *query*, most similar first.

        Parameters
        ----------
        query:
            Natural-language query; embedded by the backend.
        k:
            Number of results to return.
        filters:
            Optional metadata filters applied server-side.
        """
        ...

    @abstractmethod
    def delete(self, filters: list[MetadataFilter]) -> None:
        """Delete every record whose metadata matches *filters*.

        Deleting records that do not exist is not an error.
        """
        ...

    @abstractmethod
    def list_records(self, *, offset: int = 0, limit: int | None = None) -> list[VectorRecord]:
        """Return stored records, skipping *offset* and capped at *limit*."""
        ...

    @abstractmethod
    def count(self) -> int:
        """Return the total number of stored records."""
        ...

    # -- optional overrides ---------------------------------------------------

    def health_check(self) -> bool:
        """Return ``True`` when the backend is reachable and ready."""
        return True
