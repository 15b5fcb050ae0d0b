"""Chroma implementation of the vector-index abstraction."""

from __future__ import annotations

import logging
import time
import uuid
from typing import TYPE_CHECKING, Any

import chromadb

from docqa.config import settings
from docqa.errors import EmbeddingError, IndexReadError, IndexWriteError
from docqa.retrieval.base import VectorIndexBase
from docqa.retrieval.models import ContextPassage, MetadataFilter, VectorRecord

if TYPE_CHECKING:
    from langchain_core.embeddings import Embeddings

    from docqa.ingestion.models import Chunk

logger = logging.getLogger(__name__)


def _build_chroma_where(filters: list[MetadataFilter]) -> dict[str, Any] | None:
    """Convert a list of :class:`MetadataFilter` to Chroma ``where`` syntax."""
    if not filters:
        return None

    _OP_MAP = {
        "eq": "$eq",
        "ne": "$ne",
        "in": "$in",
    }

    clauses: list[dict[str, Any]] = []
    for f in filters:
        chroma_op = _OP_MAP.get(f.operator)
        if chroma_op is None:
            raise ValueError(f"Unsupported filter operator: {f.operator!r}")
        clauses.append({f.field: {chroma_op: f.value}})

    if len(clauses) == 1:
        return clauses[0]
    return {"$and": clauses}


def _make_client(host: str, port: int, persist_dir: str) -> Any:
    if persist_dir:
        return chromadb.PersistentClient(path=persist_dir)
    return chromadb.HttpClient(host=host, port=port)


class ChromaVectorIndex(VectorIndexBase):
    """Chroma-backed vector index.

    Parameters
    ----------
    collection_name:
        Name of the Chroma collection.
    embeddings:
        LangChain embedding function used for chunks and queries.
    client:
        Pre-built Chroma client; when omitted an embedded
        ``PersistentClient`` is used if *persist_dir* is set, otherwise an
        ``HttpClient`` for *host*:*port*.
    embed_batch_size:
        Texts per ``embed_documents`` call.
    upsert_batch_size:
        Records per ``collection.add`` call.
    distance_metric:
        Distance function (``cosine`` | ``l2`` | ``ip``).
    """

    def __init__(
        self,
        collection_name: str = settings.chroma_collection,
        *,
        embeddings: Embeddings,
        client: Any = None,
        host: str = settings.chroma_host,
        port: int = settings.chroma_port,
        persist_dir: str = settings.chroma_persist_dir,
        embed_batch_size: int = settings.embed_batch_size,
        upsert_batch_size: int = settings.upsert_batch_size,
        distance_metric: str = "cosine",
    ) -> None:
        super().__init__(collection_name)
        self._client = client if client is not None else _make_client(host, port, persist_dir)
        self._collection = self._client.get_or_create_collection(
            name=collection_name,
            metadata={"hnsw:space": distance_metric},
        )
        self._embedder = embeddings
        self._embed_batch_size = embed_batch_size
        self._upsert_batch_size = upsert_batch_size

    # -- VectorIndexBase overrides --------------------------------------------

    def add(self, chunks: list[Chunk]) -> list[str]:
        if not chunks:
            return []

        documents = [c.content for c in chunks]
        metadatas = [c.metadata_dict() for c in chunks]
        embeddings = self._embed(documents)
        ids = [uuid.uuid4().hex for _ in chunks]

        t0 = time.monotonic()
        for start in range(0, len(ids), self._upsert_batch_size):
            end = start + self._upsert_batch_size
            try:
                self._collection.add(
                    ids=ids[start:end],
                    embeddings=embeddings[start:end],
                    documents=documents[start:end],
                    metadatas=metadatas[start:end],
                )
            except Exception as exc:
                raise IndexWriteError(
                    f"Failed to write vectors: {exc}",
                    operation="add",
                    details={"collection": self.collection_name},
                ) from exc
        logger.info(
            "Indexed %d vectors → collection '%s' in %.1fs",
            len(ids),
            self.collection_name,
            time.monotonic() - t0,
        )
        return ids

    def similarity_search(
        self,
        query: str,
        *,
        k: int = 2,
        filters: list[MetadataFilter] | None = None,
    ) -> list[ContextPassage]:
        where = _build_chroma_where(filters) if filters else None
        try:
            embedding = self._embedder.embed_query(query)
        except Exception as exc:
            raise EmbeddingError(f"Failed to embed query: {exc}") from exc

        try:
            results = self._collection.query(
                query_embeddings=[embedding],
                n_results=k,
                where=where,
                include=["documents", "metadatas", "distances"],
            )
        except Exception as exc:
            raise IndexReadError(f"Similarity search failed: {exc}", operation="query") from exc

        docs = (results.get("documents") or [[]])[0]
        metas = (results.get("metadatas") or [[]])[0]
        return [
            ContextPassage(content=content or "", metadata=dict(meta or {}))
            for content, meta in zip(docs, metas)
        ]

    def delete(self, filters: list[MetadataFilter]) -> None:
        where = _build_chroma_where(filters)
        if where is None:
            raise IndexWriteError("Refusing to delete without filters", operation="delete")
        try:
            self._collection.delete(where=where)
        except Exception as exc:
            raise IndexWriteError(f"Failed to delete vectors: {exc}", operation="delete") from exc

    def list_records(self, *, offset: int = 0, limit: int | None = None) -> list[VectorRecord]:
        try:
            results = self._collection.get(
                offset=offset,
                limit=limit,
                include=["documents", "metadatas"],
            )
        except Exception as exc:
            raise IndexReadError(f"Failed to list vectors: {exc}", operation="get") from exc

        ids = results.get("ids") or []
        docs = results.get("documents") or [None] * len(ids)
        metas = results.get("metadatas") or [None] * len(ids)
        return [
            VectorRecord(id=record_id, content=content or "", metadata=dict(meta or {}))
            for record_id, content, meta in zip(ids, docs, metas)
        ]

    def count(self) -> int:
        try:
            return self._collection.count()
        except Exception as exc:
            raise IndexReadError(f"Failed to count vectors: {exc}", operation="count") from exc

    def health_check(self) -> bool:
        try:
            self._client.heartbeat()
            return True
        except Exception:
            logger.warning("Chroma health-check failed", exc_info=True)
            return False

    # -- internals ------------------------------------------------------------

    def _embed(self, texts: list[str]) -> list[list[float]]:
        vectors: list[list[float]] = []
        for start in range(0, len(texts), self._embed_batch_size):
            batch = texts[start : start + self._embed_batch_size]
            try:
                vectors.extend(self._embedder.embed_documents(batch))
            except Exception as exc:
                raise EmbeddingError(
                    f"Failed to embed {len(batch)} chunk(s): {exc}",
                    details={"batch_start": start},
                ) from exc
        return vectors
