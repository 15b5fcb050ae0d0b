"""Service context — the port handles every operation is called with.

Operations take a :class:`ServiceContext` explicitly instead of reaching
for module-level clients, so the same code runs against the configured
backends in production and against in-memory fakes in tests.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from docqa.config import Settings, settings
from docqa.ingestion.chunker import ChunkingEngine
from docqa.ingestion.loader import ExtractorBase, PdfExtractor
from docqa.ingestion.progress import ProgressObserver
from docqa.qa.llm import CompletionBase
from docqa.retrieval.base import VectorIndexBase
from docqa.storage.base import BlobStoreBase, MetadataStoreBase

logger = logging.getLogger(__name__)


@dataclass
class ServiceContext:
    """Ports and tunables shared by the ingestion, query and deletion paths."""

    blob_store: BlobStoreBase
    metadata_store: MetadataStoreBase
    vector_index: VectorIndexBase
    completion: CompletionBase
    extractor: ExtractorBase = field(default_factory=PdfExtractor)
    chunker: ChunkingEngine = field(default_factory=ChunkingEngine)
    progress: ProgressObserver | None = None
    documents_table: str = "document_metadata"
    retrieval_k: int = 2


def build_blob_store(config: Settings = settings) -> BlobStoreBase:
    """Instantiate the blob store selected by ``storage_backend``."""
    backend = config.storage_backend.strip().lower()
    if backend == "local":
        from docqa.storage.blob_store import LocalBlobStore

        return LocalBlobStore(config.storage_root)
    if backend == "s3":
        from docqa.storage.blob_store import S3BlobStore

        return S3BlobStore(
            config.s3_bucket,
            region=config.s3_region,
            endpoint_url=config.s3_endpoint_url or None,
        )
    raise ValueError(f"Unsupported storage backend: {config.storage_backend!r}")


def build_context(config: Settings = settings, *, progress: ProgressObserver | None = None) -> ServiceContext:
    """Wire the production backends from *config*.

    Parameters
    ----------
    config:
        Settings to read backend locations and tunables from.
    progress:
        Optional observer notified of upload checkpoints.

    Returns
    -------
    ServiceContext
        Context backed by the configured blob store, a SQLAlchemy metadata
        store, a Chroma index and an OpenAI-compatible chat model.
    """
    from docqa.ingestion.embedder import get_embedding_function
    from docqa.qa.llm import ChatCompletion, get_llm
    from docqa.retrieval.chroma_store import ChromaVectorIndex
    from docqa.storage.metadata_store import SqlMetadataStore

    vector_index = ChromaVectorIndex(
        config.chroma_collection,
        embeddings=get_embedding_function(config.embedding_provider, config.embedding_model),
        host=config.chroma_host,
        port=config.chroma_port,
        persist_dir=config.chroma_persist_dir,
        embed_batch_size=config.embed_batch_size,
        upsert_batch_size=config.upsert_batch_size,
    )
    ctx = ServiceContext(
        blob_store=build_blob_store(config),
        metadata_store=SqlMetadataStore(
            database_url=config.database_url,
            documents_table=config.documents_table,
        ),
        vector_index=vector_index,
        completion=ChatCompletion(get_llm()),
        chunker=ChunkingEngine(config.chunk_size, config.chunk_overlap),
        progress=progress,
        documents_table=config.documents_table,
        retrieval_k=config.retrieval_k,
    )
    logger.info(
        "Service context ready (storage=%s, collection=%s)",
        config.storage_backend,
        config.chroma_collection,
    )
    return ctx
