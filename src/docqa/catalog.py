"""Read-only listings over the three stores."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from docqa.errors import ValidationError
from docqa.ingestion.models import DocumentRecord
from docqa.ingestion.pipeline import UPLOAD_PREFIX
from docqa.retrieval.models import VectorPage

if TYPE_CHECKING:
    from docqa.context import ServiceContext
    from docqa.storage.models import FileObject

logger = logging.getLogger(__name__)


def list_documents(ctx: ServiceContext) -> list[DocumentRecord]:
    """All document records, newest upload first."""
    rows = ctx.metadata_store.query(ctx.documents_table, order_by="upload_date", descending=True)
    return [DocumentRecord.model_validate(row) for row in rows]


def list_vectors(ctx: ServiceContext, start: int, end: int) -> VectorPage:
    """Vector records at positions ``start`` through ``end`` inclusive.

    ``total_size`` is the full record count, independent of the range.
    """
    if start < 0:
        raise ValidationError("start must be non-negative", field="start", details={"start": start})
    if end < start:
        raise ValidationError(
            "end must not be less than start",
            field="end",
            details={"start": start, "end": end},
        )

    records = ctx.vector_index.list_records(offset=start, limit=end - start + 1)
    total = ctx.vector_index.count()
    logger.debug("Listed %d of %d vector record(s) [%d, %d]", len(records), total, start, end)
    return VectorPage(data=records, total_size=total)


def list_files(ctx: ServiceContext) -> list[FileObject]:
    """Blobs stored under the upload prefix."""
    return ctx.blob_store.list_files(UPLOAD_PREFIX)
