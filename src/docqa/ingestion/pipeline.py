"""Ingestion path: raw upload → blob → metadata record → indexed chunks.

Stages run in order and are never rolled back.  A failure after the blob
or the metadata record was written leaves them in place (an orphan); the
deletion operations in :mod:`docqa.deletion` clean those up.
"""

from __future__ import annotations

import logging
import mimetypes
import uuid
from typing import TYPE_CHECKING

from docqa.errors import ExtractionError, UploadError
from docqa.ingestion.models import Chunk, ChunkMetadata, DocumentRecord

if TYPE_CHECKING:
    from docqa.context import ServiceContext
    from docqa.ingestion.chunker import Passage
    from docqa.ingestion.progress import ProgressObserver

logger = logging.getLogger(__name__)

UPLOAD_PREFIX = "uploads"


def generate_file_name(original_name: str) -> str:
    """Return a globally unique ``<uuid4>-<original_name>`` file name."""
    return f"{uuid.uuid4()}-{original_name}"


def blob_path(file_name: str) -> str:
    """Blob-store path of an uploaded file."""
    return f"{UPLOAD_PREFIX}/{file_name}"


def build_chunks(passages: list[Passage], record: DocumentRecord) -> list[Chunk]:
    """Attach document metadata to *passages*.

    ``page`` is the running 1-based passage number across the whole
    document, not the source page.
    """
    upload_date = record.upload_date.isoformat()
    return [
        Chunk(
            content=passage.content,
            metadata=ChunkMetadata(
                doc_id=record.id,
                source=record.original_name,
                page=page,
                book_name=record.original_name,
                file_size=record.file_size,
                upload_date=upload_date,
                storage_path=record.storage_path,
            ),
        )
        for page, passage in enumerate(passages, start=1)
    ]


class _ProgressReporter:
    """Forwards checkpoints to an optional observer, never raising."""

    def __init__(self, observer: ProgressObserver | None, file_name: str) -> None:
        self._observer = observer
        self._file_name = file_name
        self.percent = 0

    def __call__(self, percent: int, status: str = "processing") -> None:
        self.percent = percent
        if self._observer is None:
            return
        try:
            self._observer.on_progress(self._file_name, percent, status)
        except Exception:
            logger.exception("Progress observer failed for %s", self._file_name)

    def fail(self) -> None:
        self(self.percent, "failed")


def upload_document(ctx: ServiceContext, file_bytes: bytes, original_name: str) -> str:
    """Store, extract, chunk, embed and index one uploaded file.

    The caller validates *original_name* (letters, digits, ``-`` and ``.``)
    before calling.  Re-uploading the same name creates an independent
    second record and blob.

    Parameters
    ----------
    ctx:
        Service context holding the ports.
    file_bytes:
        Raw file content.
    original_name:
        File name as supplied by the uploader.

    Returns
    -------
    str
        The generated ``<uuid4>-<original_name>`` file name.

    Raises
    ------
    UploadError
        When any stage fails; ``stage`` names it and ``cause`` holds the
        originating error.
    """
    file_name = generate_file_name(original_name)
    report = _ProgressReporter(ctx.progress, file_name)
    stage = "store_blob"
    try:
        content_type = mimetypes.guess_type(original_name)[0]
        storage_path = ctx.blob_store.put(blob_path(file_name), file_bytes, content_type=content_type)
        logger.info("Stored %s (%d bytes) at %s", file_name, len(file_bytes), storage_path)
        report(25)

        stage = "store_metadata"
        record = DocumentRecord(
            file_name=file_name,
            original_name=original_name,
            file_size=len(file_bytes),
            storage_path=storage_path,
        )
        doc_id = ctx.metadata_store.insert(ctx.documents_table, record.model_dump(exclude={"id"}))
        record = record.model_copy(update={"id": doc_id})
        logger.info("Recorded %s as docId=%s", file_name, doc_id)
        report(50)

        # Work from the durable copy so out-of-band reprocessing sees the
        # same input as this request.
        stage = "read_blob"
        data = ctx.blob_store.get(storage_path)

        stage = "extract"
        pages = ctx.extractor.extract(data)
        if not any(page.strip() for page in pages):
            raise ExtractionError("Document contains no extractable text")
        report(75)

        stage = "chunk"
        chunks = build_chunks(ctx.chunker.split(pages), record)
        logger.info("Split %s into %d chunk(s) from %d page(s)", file_name, len(chunks), len(pages))

        stage = "index"
        ctx.vector_index.add(chunks)
        report(100, "completed")
    except Exception as exc:
        logger.exception("Upload of %s failed at stage %s", file_name, stage)
        report.fail()
        raise UploadError("Failed to upload document", stage=stage, cause=exc) from exc

    logger.info("Ingested %s", file_name)
    return file_name
