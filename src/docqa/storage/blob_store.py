"""Blob-store backends: local filesystem and S3-compatible object storage."""

from __future__ import annotations

import logging
import mimetypes
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from docqa.errors import StorageReadError, StorageWriteError, ValidationError
from docqa.storage.base import BlobStoreBase
from docqa.storage.models import FileObject

logger = logging.getLogger(__name__)

# S3 DeleteObjects accepts at most 1000 keys per call.
_S3_DELETE_BATCH = 1000


def _normalise_prefix(prefix: str) -> str:
    prefix = prefix.strip("/")
    return f"{prefix}/" if prefix else ""


class LocalBlobStore(BlobStoreBase):
    """Blob store rooted at a directory on the local filesystem.

    Parameters
    ----------
    root:
        Directory under which every blob path is resolved.
    """

    def __init__(self, root: str | Path) -> None:
        self._root = Path(root).resolve()
        self._root.mkdir(parents=True, exist_ok=True)

    def _resolve(self, path: str) -> Path:
        target = (self._root / path.lstrip("/")).resolve()
        if target != self._root and self._root not in target.parents:
            raise ValidationError(f"Path escapes the storage root: {path}", field="path")
        return target

    def put(self, path: str, data: bytes, *, content_type: str | None = None) -> str:
        target = self._resolve(path)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            # Exclusive create: an existing blob is never overwritten.
            with open(target, "xb") as fh:
                fh.write(data)
        except FileExistsError as exc:
            raise StorageWriteError("Blob already exists", path=path) from exc
        except OSError as exc:
            raise StorageWriteError(f"Failed to write blob: {exc}", path=path) from exc
        logger.debug("Stored %d bytes at %s", len(data), target)
        return path

    def get(self, path: str) -> bytes:
        target = self._resolve(path)
        try:
            return target.read_bytes()
        except FileNotFoundError as exc:
            raise StorageReadError("Blob not found", path=path) from exc
        except OSError as exc:
            raise StorageReadError(f"Failed to read blob: {exc}", path=path) from exc

    def delete(self, paths: list[str]) -> None:
        for path in paths:
            target = self._resolve(path)
            try:
                target.unlink(missing_ok=True)
            except OSError as exc:
                raise StorageWriteError(f"Failed to delete blob: {exc}", path=path) from exc

    def list_files(self, prefix: str) -> list[FileObject]:
        directory = self._resolve(_normalise_prefix(prefix) or ".")
        if not directory.is_dir():
            return []
        files: list[FileObject] = []
        try:
            for entry in sorted(directory.iterdir()):
                if not entry.is_file():
                    continue
                stat = entry.stat()
                files.append(
                    FileObject(
                        name=entry.name,
                        size=stat.st_size,
                        content_type=mimetypes.guess_type(entry.name)[0],
                        created_at=datetime.fromtimestamp(stat.st_ctime, tz=timezone.utc),
                        updated_at=datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc),
                    )
                )
        except OSError as exc:
            raise StorageReadError(f"Failed to list blobs: {exc}", path=prefix) from exc
        return files


class S3BlobStore(BlobStoreBase):
    """Blob store backed by an S3-compatible bucket.

    Parameters
    ----------
    bucket:
        Bucket name.
    region:
        AWS region for the bucket.
    endpoint_url:
        Custom endpoint for S3-compatible services (MinIO, SeaweedFS, …).
    client:
        Pre-built boto3 S3 client; created from the other arguments when
        omitted.
    """

    def __init__(
        self,
        bucket: str,
        *,
        region: str = "us-east-1",
        endpoint_url: str | None = None,
        client: Any = None,
    ) -> None:
        self._bucket = bucket
        self._client = client or boto3.client(
            "s3",
            region_name=region,
            endpoint_url=endpoint_url or None,
        )

    def put(self, path: str, data: bytes, *, content_type: str | None = None) -> str:
        extra = {"ContentType": content_type} if content_type else {}
        try:
            self._client.put_object(Bucket=self._bucket, Key=path, Body=data, **extra)
        except (ClientError, BotoCoreError) as exc:
            raise StorageWriteError(f"Failed to upload object: {exc}", path=path) from exc
        return path

    def get(self, path: str) -> bytes:
        try:
            obj = self._client.get_object(Bucket=self._bucket, Key=path)
            return obj["Body"].read()
        except ClientError as exc:
            code = exc.response.get("Error", {}).get("Code", "Unknown")
            if code in ("404", "NoSuchKey"):
                raise StorageReadError("Object not found", path=path) from exc
            raise StorageReadError(f"Failed to download object: {exc}", path=path) from exc
        except BotoCoreError as exc:
            raise StorageReadError(f"Failed to download object: {exc}", path=path) from exc

    def delete(self, paths: list[str]) -> None:
        for start in range(0, len(paths), _S3_DELETE_BATCH):
            batch = paths[start : start + _S3_DELETE_BATCH]
            try:
                response = self._client.delete_objects(
                    Bucket=self._bucket,
                    Delete={"Objects": [{"Key": key} for key in batch], "Quiet": True},
                )
            except (ClientError, BotoCoreError) as exc:
                raise StorageWriteError(f"Failed to delete objects: {exc}") from exc
            errors = response.get("Errors") or []
            if errors:
                raise StorageWriteError(
                    "Failed to delete objects",
                    path=errors[0].get("Key"),
                    details={"errors": errors},
                )

    def list_files(self, prefix: str) -> list[FileObject]:
        prefix = _normalise_prefix(prefix)
        files: list[FileObject] = []
        try:
            paginator = self._client.get_paginator("list_objects_v2")
            for page in paginator.paginate(Bucket=self._bucket, Prefix=prefix, Delimiter="/"):
                for obj in page.get("Contents", []):
                    name = obj["Key"][len(prefix) :]
                    if not name:
                        continue
                    files.append(
                        FileObject(
                            name=name,
                            id=obj.get("ETag", "").strip('"') or None,
                            size=obj.get("Size"),
                            content_type=mimetypes.guess_type(name)[0],
                            updated_at=obj.get("LastModified"),
                            metadata={"storageClass": obj.get("StorageClass")},
                        )
                    )
        except (ClientError, BotoCoreError) as exc:
            raise StorageReadError(f"Failed to list objects: {exc}", path=prefix) from exc
        return files
