"""
Storage — raw file bytes and document metadata records.

Public surface
--------------
- :class:`BlobStoreBase` / :class:`MetadataStoreBase` — abstract ports.
- :class:`LocalBlobStore`, :class:`S3BlobStore` — blob-store backends.
- :class:`SqlMetadataStore` — SQLAlchemy metadata-store backend.
- :class:`FileObject` — blob listing entry.
"""

from docqa.storage.base import BlobStoreBase, MetadataStoreBase
from docqa.storage.models import FileObject

__all__ = [
    "BlobStoreBase",
    "FileObject",
    "LocalBlobStore",
    "MetadataStoreBase",
    "S3BlobStore",
    "SqlMetadataStore",
]


def __getattr__(name: str):  # noqa: ANN001
    """Lazy-import backends so boto3 / SQLAlchemy load only when used."""
    if name in ("LocalBlobStore", "S3BlobStore"):
        from docqa.storage import blob_store

        return getattr(blob_store, name)
    if name == "SqlMetadataStore":
        from docqa.storage.metadata_store import SqlMetadataStore

        return SqlMetadataStore
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
