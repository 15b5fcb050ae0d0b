"""Unit tests for deletion across the three stores."""

from __future__ import annotations

import uuid
from unittest.mock import MagicMock

import pytest

from docqa.deletion import remove_doc_file_vectors, remove_document, remove_file, remove_vector
from docqa.errors import DeletionError, EmbeddingError, IndexWriteError, MetadataReadError, UploadError
from docqa.ingestion.pipeline import blob_path, upload_document


def _upload(ctx, name: str, text: str = "Some document text.") -> str:
    return upload_document(ctx, text.encode("utf-8"), name)


class TestSingleStoreRemoval:
    def test_remove_document_deletes_every_record_with_that_name(self, ctx, metadata_store) -> None:
        _upload(ctx, "a.pdf")
        _upload(ctx, "a.pdf")
        _upload(ctx, "b.pdf")

        remove_document(ctx, "a.pdf")

        rows = metadata_store.query(ctx.documents_table)
        assert [row["original_name"] for row in rows] == ["b.pdf"]

    def test_remove_document_leaves_blobs_and_vectors(self, ctx, blob_store, vector_index) -> None:
        _upload(ctx, "a.pdf")
        remove_document(ctx, "a.pdf")

        assert len(blob_store.list_files("uploads")) == 1
        assert vector_index.count() > 0

    def test_remove_file(self, ctx, blob_store) -> None:
        file_name = _upload(ctx, "a.pdf")
        remove_file(ctx, file_name)
        assert blob_store.list_files("uploads") == []

    def test_remove_vector_by_doc_id(self, ctx, metadata_store, vector_index) -> None:
        _upload(ctx, "a.pdf")
        _upload(ctx, "b.pdf")
        doc_id = next(r["id"] for r in metadata_store.query(ctx.documents_table) if r["original_name"] == "a.pdf")

        remove_vector(ctx, doc_id)

        assert {r.metadata["bookName"] for r in vector_index.records.values()} == {"b.pdf"}

    @pytest.mark.parametrize(
        "operation, argument",
        [
            (remove_document, "missing.pdf"),
            (remove_file, "missing.pdf"),
            (remove_vector, "missing-id"),
            (remove_doc_file_vectors, "missing.pdf"),
        ],
    )
    def test_removing_absent_items_is_not_an_error(self, ctx, operation, argument) -> None:
        operation(ctx, argument)
        operation(ctx, argument)


class TestRemoveDocFileVectors:
    def test_removes_everything_for_the_name(self, ctx, blob_store, metadata_store, vector_index) -> None:
        _upload(ctx, "a.pdf")
        _upload(ctx, "a.pdf")
        kept = _upload(ctx, "b.pdf")

        remove_doc_file_vectors(ctx, "a.pdf")

        assert [f.name for f in blob_store.list_files("uploads")] == [kept]
        assert [r["original_name"] for r in metadata_store.query(ctx.documents_table)] == ["b.pdf"]
        assert {r.metadata["source"] for r in vector_index.records.values()} == {"b.pdf"}

    def test_cleans_up_after_failed_upload(self, ctx, blob_store, metadata_store, vector_index) -> None:
        vector_index.fail_on_add = EmbeddingError("down")
        with pytest.raises(UploadError):
            _upload(ctx, "broken.pdf")
        vector_index.fail_on_add = None

        remove_doc_file_vectors(ctx, "broken.pdf")

        assert blob_store.list_files("uploads") == []
        assert metadata_store.count(ctx.documents_table) == 0

    def test_removes_orphan_blob_without_metadata(self, ctx, blob_store) -> None:
        orphan = f"{uuid.uuid4()}-lost.pdf"
        blob_store.put(blob_path(orphan), b"bytes")
        blob_store.put(blob_path("other-lost.pdf"), b"bytes")

        remove_doc_file_vectors(ctx, "lost.pdf")

        assert [f.name for f in blob_store.list_files("uploads")] == ["other-lost.pdf"]

    def test_lookup_failure_is_its_own_stage(self, ctx, blob_store, metadata_store) -> None:
        file_name = _upload(ctx, "a.pdf")
        ctx.metadata_store = MagicMock(wraps=metadata_store)
        ctx.metadata_store.query.side_effect = MetadataReadError("db down", table=ctx.documents_table)

        with pytest.raises(DeletionError) as excinfo:
            remove_doc_file_vectors(ctx, "a.pdf")

        assert excinfo.value.stage == "lookup"
        assert excinfo.value.details["cause_kind"] == "MetadataReadError"
        assert [f.name for f in blob_store.list_files("uploads")] == [file_name]

    def test_aborts_at_first_failing_stage(self, ctx, metadata_store, vector_index) -> None:
        _upload(ctx, "a.pdf")
        ctx.metadata_store = MagicMock(wraps=metadata_store)
        ctx.metadata_store.delete.side_effect = RuntimeError("db down")

        with pytest.raises(DeletionError) as excinfo:
            remove_doc_file_vectors(ctx, "a.pdf")

        assert excinfo.value.stage == "metadata"
        assert isinstance(excinfo.value.cause, RuntimeError)
        # The vectors stage never ran.
        assert vector_index.count() > 0

    def test_vector_stage_failure(self, ctx, vector_index) -> None:
        _upload(ctx, "a.pdf")
        vector_index.fail_on_delete = IndexWriteError("chroma down", operation="delete")

        with pytest.raises(DeletionError) as excinfo:
            remove_doc_file_vectors(ctx, "a.pdf")

        assert excinfo.value.stage == "vectors"
        assert excinfo.value.details["cause_kind"] == "IndexWriteError"
