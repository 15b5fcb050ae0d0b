"""
Ingestion — turning an uploaded document into indexed, searchable chunks.

The path is blob store → metadata record → text extraction → chunking →
embedding into the vector index.  :func:`upload_document` runs it end to
end; the other modules are the individual steps.
"""

from docqa.ingestion.chunker import ChunkingEngine, Passage
from docqa.ingestion.models import Chunk, ChunkMetadata, DocumentRecord, UploadProgress
from docqa.ingestion.pipeline import UPLOAD_PREFIX, blob_path, build_chunks, generate_file_name, upload_document
from docqa.ingestion.progress import ProgressObserver, UploadTracker

__all__ = [
    "UPLOAD_PREFIX",
    "Chunk",
    "ChunkMetadata",
    "ChunkingEngine",
    "DocumentRecord",
    "Passage",
    "ProgressObserver",
    "UploadProgress",
    "UploadTracker",
    "blob_path",
    "build_chunks",
    "generate_file_name",
    "upload_document",
]
