"""Domain models for vector records, retrieval results and metadata filters."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

_MISSING = object()
_OPERATORS = frozenset({"eq", "ne", "in"})


class MetadataFilter(BaseModel):
    """Declarative metadata filter for vector-index and metadata-store queries.

    Attributes
    ----------
    field:
        The metadata key to filter on (e.g. ``"docId"``, ``"source"``).
    operator:
        Comparison operator, one of ``eq``, ``ne`` or ``in``.
    value:
        The value (or list of values for ``in``) to compare against.
    """

    field: str
    operator: str = "eq"
    value: Any = None

    # -- helpers for common filters ------------------------------------------

    @classmethod
    def equals(cls, field: str, value: Any) -> MetadataFilter:
        return cls(field=field, operator="eq", value=value)

    @classmethod
    def not_equals(cls, field: str, value: Any) -> MetadataFilter:
        return cls(field=field, operator="ne", value=value)

    @classmethod
    def one_of(cls, field: str, values: list[Any]) -> MetadataFilter:
        return cls(field=field, operator="in", value=values)

    # -- client-side evaluation ----------------------------------------------

    def matches(self, metadata: dict[str, Any]) -> bool:
        """Evaluate this filter against a metadata dict.

        Used where a backend cannot filter server-side.  A missing key only
        satisfies ``ne``.
        """
        op = self.operator
        if op not in _OPERATORS:
            raise ValueError(f"Unsupported filter operator: {op!r}")
        actual = metadata.get(self.field, _MISSING)
        if op == "ne":
            return actual is _MISSING or actual != self.value
        if actual is _MISSING:
            return False
        if op == "eq":
            return actual == self.value
        return actual in self.value


def matches_all(filters: list[MetadataFilter] | None, metadata: dict[str, Any]) -> bool:
    """Return ``True`` when *metadata* satisfies every filter (AND semantics)."""
    return all(f.matches(metadata) for f in filters or [])


class ContextPassage(BaseModel):
    """A retrieved passage and the metadata stored alongside it."""

    content: str
    metadata: dict[str, Any] = Field(default_factory=dict)


class VectorRecord(BaseModel):
    """The unit stored in the vector index, as returned by listings."""

    id: str
    content: str
    metadata: dict[str, Any] = Field(default_factory=dict)


class VectorPage(BaseModel):
    """One page of vector records plus the total record count."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    data: list[VectorRecord]
    total_size: int


class QAResponse(BaseModel):
    """Structured answer returned by ``query_document``."""

    answer: str
    source: str
    context: list[ContextPassage] = Field(default_factory=list)
