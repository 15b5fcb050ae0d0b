"""Blob-store listing model."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class FileObject(BaseModel):
    """A blob listing entry; read-only from the service's point of view."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    name: str
    id: str | None = None
    size: int | None = None
    content_type: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)
