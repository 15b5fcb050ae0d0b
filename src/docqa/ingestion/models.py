"""Domain models produced by the ingestion pipeline.

Attribute names are snake_case; the serialised names (JSON responses and
vector-index metadata keys) are camelCase, e.g. ``docId`` / ``uploadDate``.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

_CAMEL = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class DocumentRecord(BaseModel):
    """One row of the document metadata table — one per uploaded file.

    Attributes
    ----------
    id:
        Identifier assigned by the metadata store; used as ``docId`` in
        chunk metadata.  ``None`` until inserted.
    file_name:
        Generated unique name, ``<uuid4>-<original_name>``.
    original_name:
        File name as supplied by the uploader.
    file_size:
        Size of the uploaded bytes.
    upload_date:
        UTC timestamp taken when the upload started.
    storage_path:
        Location of the raw bytes in the blob store.
    """

    model_config = _CAMEL

    id: str | None = None
    file_name: str
    original_name: str
    file_size: int
    upload_date: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    storage_path: str

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: object) -> object:
        return str(value) if value is not None else None

    @field_validator("upload_date")
    @classmethod
    def _assume_utc(cls, value: datetime) -> datetime:
        # SQLite hands back naive datetimes.
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value


class ChunkMetadata(BaseModel):
    """Metadata attached to every chunk stored in the vector index.

    All values are flat scalars so any vector backend can store them.
    """

    model_config = _CAMEL

    doc_id: str
    source: str
    page: int
    book_name: str
    file_size: int
    upload_date: str
    storage_path: str


class Chunk(BaseModel):
    """A span of extracted text plus its metadata."""

    content: str
    metadata: ChunkMetadata

    def metadata_dict(self) -> dict[str, str | int]:
        """Metadata as stored in the vector index (camelCase keys)."""
        return self.metadata.model_dump(by_alias=True)


class UploadProgress(BaseModel):
    """In-memory progress snapshot for one upload."""

    model_config = _CAMEL

    file_name: str
    progress: int
    status: Literal["processing", "completed", "failed"]
