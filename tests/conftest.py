"""Shared pytest configuration, in-memory fakes and fixtures.

Tests run without Chroma, OpenAI or S3: the vector index, completion and
extractor ports are replaced by the fakes below, the metadata store runs
on in-memory SQLite and blobs live under ``tmp_path``.
"""

from __future__ import annotations

import re
import uuid
from pathlib import Path
from typing import Any

import pytest

from docqa.context import ServiceContext
from docqa.errors import CompletionError, ExtractionError, IndexWriteError
from docqa.ingestion.chunker import ChunkingEngine
from docqa.ingestion.loader import ExtractorBase
from docqa.ingestion.models import Chunk
from docqa.qa.llm import CompletionBase
from docqa.retrieval.base import VectorIndexBase
from docqa.retrieval.models import ContextPassage, MetadataFilter, VectorRecord, matches_all
from docqa.storage.blob_store import LocalBlobStore
from docqa.storage.metadata_store import SqlMetadataStore


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers."""
    config.addinivalue_line("markers", "integration: marks tests requiring external services")


# ── Fakes ───────────────────────────────────────────────────────────────


def _tokens(text: str) -> set[str]:
    return set(re.findall(r"\w+", text.lower()))


class FakeVectorIndex(VectorIndexBase):
    """In-memory index ranking records by word overlap with the query."""

    def __init__(self, *, supports_filter: bool = True) -> None:
        super().__init__("test-collection")
        self.supports_metadata_filter = supports_filter
        self.records: dict[str, VectorRecord] = {}
        self.search_calls: list[dict[str, Any]] = []
        self.fail_on_add: Exception | None = None
        self.fail_on_delete: Exception | None = None

    def add(self, chunks: list[Chunk]) -> list[str]:
        if self.fail_on_add is not None:
            raise self.fail_on_add
        ids = []
        for chunk in chunks:
            record_id = uuid.uuid4().hex
            self.records[record_id] = VectorRecord(
                id=record_id, content=chunk.content, metadata=chunk.metadata_dict()
            )
            ids.append(record_id)
        return ids

    def similarity_search(
        self,
        query: str,
        *,
        k: int = 2,
        filters: list[MetadataFilter] | None = None,
    ) -> list[ContextPassage]:
        self.search_calls.append({"query": query, "k": k, "filters": filters})
        words = _tokens(query)
        candidates = list(self.records.values())
        if filters and self.supports_metadata_filter:
            candidates = [r for r in candidates if matches_all(filters, r.metadata)]
        ranked = sorted(candidates, key=lambda r: len(words & _tokens(r.content)), reverse=True)
        return [ContextPassage(content=r.content, metadata=dict(r.metadata)) for r in ranked[:k]]

    def delete(self, filters: list[MetadataFilter]) -> None:
        if self.fail_on_delete is not None:
            raise self.fail_on_delete
        if not filters:
            raise IndexWriteError("Refusing to delete without filters", operation="delete")
        for record_id in [i for i, r in self.records.items() if matches_all(filters, r.metadata)]:
            del self.records[record_id]

    def list_records(self, *, offset: int = 0, limit: int | None = None) -> list[VectorRecord]:
        records = list(self.records.values())[offset:]
        return records if limit is None else records[:limit]

    def count(self) -> int:
        return len(self.records)


class FakeCompletion(CompletionBase):
    """Echoes the context back as the answer."""

    def __init__(self, *, fail: bool = False) -> None:
        self.fail = fail
        self.calls: list[tuple[str, str]] = []

    def complete(self, system_prompt: str, user_prompt: str) -> str:
        self.calls.append((system_prompt, user_prompt))
        if self.fail:
            raise CompletionError("model unavailable")
        context = user_prompt.split("\n\nQuestion:", 1)[0].removeprefix("Context: ")
        return context.strip() or "I don't know."


class FakeExtractor(ExtractorBase):
    """Treats the bytes as UTF-8 text with form feeds between pages."""

    def extract(self, data: bytes) -> list[str]:
        try:
            return data.decode("utf-8").split("\f")
        except UnicodeDecodeError as exc:
            raise ExtractionError("not a text document") from exc


# ── Fixtures ────────────────────────────────────────────────────────────


@pytest.fixture()
def blob_store(tmp_path: Path) -> LocalBlobStore:
    return LocalBlobStore(tmp_path / "blobs")


@pytest.fixture()
def metadata_store() -> SqlMetadataStore:
    return SqlMetadataStore(database_url="sqlite://")


@pytest.fixture()
def vector_index() -> FakeVectorIndex:
    return FakeVectorIndex()


@pytest.fixture()
def completion() -> FakeCompletion:
    return FakeCompletion()


@pytest.fixture()
def ctx(
    blob_store: LocalBlobStore,
    metadata_store: SqlMetadataStore,
    vector_index: FakeVectorIndex,
    completion: FakeCompletion,
) -> ServiceContext:
    return ServiceContext(
        blob_store=blob_store,
        metadata_store=metadata_store,
        vector_index=vector_index,
        completion=completion,
        extractor=FakeExtractor(),
        chunker=ChunkingEngine(chunk_size=200, chunk_overlap=40),
    )
