"""Deletion across the blob store, metadata store and vector index.

Every operation is idempotent: deleting something that is not there is
not an error.  Nothing is transactional across stores.
"""

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING

from docqa.errors import DeletionError
from docqa.ingestion.pipeline import UPLOAD_PREFIX, blob_path
from docqa.retrieval.models import MetadataFilter

if TYPE_CHECKING:
    from docqa.context import ServiceContext

logger = logging.getLogger(__name__)

_UUID_PREFIX = r"[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}-"


def remove_document(ctx: ServiceContext, original_name: str) -> None:
    """Delete the metadata record(s) of every upload named *original_name*.

    Blobs and vectors are left untouched.
    """
    ctx.metadata_store.delete(ctx.documents_table, [MetadataFilter.equals("original_name", original_name)])
    logger.info("Removed metadata for %s", original_name)


def remove_file(ctx: ServiceContext, file_name: str) -> None:
    """Delete the blob ``uploads/<file_name>``."""
    ctx.blob_store.delete([blob_path(file_name)])
    logger.info("Removed file %s", file_name)


def remove_vector(ctx: ServiceContext, doc_id: str) -> None:
    """Delete every vector record whose ``docId`` is *doc_id*."""
    ctx.vector_index.delete([MetadataFilter.equals("docId", doc_id)])
    logger.info("Removed vectors for docId=%s", doc_id)


def _blob_paths_for(ctx: ServiceContext, file_name: str) -> list[str]:
    """Every blob that may belong to uploads of *file_name*.

    Covers the literal path, the paths recorded in the metadata store and
    listed ``<uuid4>-<file_name>`` blobs whose metadata write never happened.
    """
    paths = [blob_path(file_name)]
    rows = ctx.metadata_store.query(ctx.documents_table, [MetadataFilter.equals("original_name", file_name)])
    paths.extend(row["storage_path"] for row in rows if row.get("storage_path"))

    pattern = re.compile(_UUID_PREFIX + re.escape(file_name) + "$")
    paths.extend(blob_path(obj.name) for obj in ctx.blob_store.list_files(UPLOAD_PREFIX) if pattern.match(obj.name))

    return list(dict.fromkeys(paths))


def remove_doc_file_vectors(ctx: ServiceContext, file_name: str) -> None:
    """Remove blob(s), metadata and vectors for every upload of *file_name*.

    Stages run in order ``lookup`` → ``file`` → ``metadata`` → ``vectors``;
    the first failure aborts the rest.  Already-completed stages are not undone.

    Parameters
    ----------
    ctx:
        Service context holding the three stores.
    file_name:
        Original file name as supplied at upload.

    Raises
    ------
    DeletionError
        With ``stage`` naming the failing step and ``cause`` the
        originating error.
    """
    stage = "lookup"
    try:
        paths = _blob_paths_for(ctx, file_name)

        stage = "file"
        ctx.blob_store.delete(paths)
        logger.info("Removed %d blob(s) for %s", len(paths), file_name)

        stage = "metadata"
        ctx.metadata_store.delete(ctx.documents_table, [MetadataFilter.equals("original_name", file_name)])
        logger.info("Removed metadata for %s", file_name)

        stage = "vectors"
        ctx.vector_index.delete([MetadataFilter.equals("source", file_name)])
        logger.info("Removed vectors for %s", file_name)
    except Exception as exc:
        logger.exception("Deletion of %s failed at stage %s", file_name, stage)
        raise DeletionError("Failed to delete document", stage=stage, cause=exc) from exc
