"""
Retrieval — vector index, metadata filters and retrieval result models.

This module wraps the vector index behind a clean interface so that the
ingestion and QA layers never need to know which DB is backing retrieval.

Public surface
--------------
- :class:`VectorIndexBase` — abstract backend (subclass for pgvector, etc.).
- :class:`ChromaVectorIndex` — default Chroma backend.
- :class:`MetadataFilter`, :class:`ContextPassage`, :class:`VectorRecord`,
  :class:`VectorPage`, :class:`QAResponse` — data models.
"""

from docqa.retrieval.base import VectorIndexBase
from docqa.retrieval.models import (
    ContextPassage,
    MetadataFilter,
    QAResponse,
    VectorPage,
    VectorRecord,
)

__all__ = [
    "ChromaVectorIndex",
    "ContextPassage",
    "MetadataFilter",
    "QAResponse",
    "VectorIndexBase",
    "VectorPage",
    "VectorRecord",
]


def __getattr__(name: str):  # noqa: ANN001
    """Lazy-import ChromaVectorIndex to avoid pulling in chromadb at import time."""
    if name == "ChromaVectorIndex":
        from docqa.retrieval.chroma_store import ChromaVectorIndex

        return ChromaVectorIndex
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
