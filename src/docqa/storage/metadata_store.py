"""SQLAlchemy implementation of the metadata-store abstraction."""

from __future__ import annotations

import logging
import operator
import uuid
from typing import Any

from sqlalchemy import (
    BigInteger,
    Column,
    DateTime,
    MetaData,
    String,
    Table,
    create_engine,
    func,
    select,
)
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.pool import StaticPool

from docqa.errors import MetadataReadError, MetadataWriteError
from docqa.retrieval.models import MetadataFilter
from docqa.storage.base import MetadataStoreBase

logger = logging.getLogger(__name__)

_OP_MAP = {
    "eq": operator.eq,
    "ne": operator.ne,
    "in": lambda col, value: col.in_(value),
}


def build_engine(database_url: str, *, echo: bool = False) -> Engine:
    """Create an engine; in-memory SQLite shares one connection."""
    kwargs: dict[str, Any] = {"echo": echo}
    if database_url.startswith("sqlite"):
        kwargs["connect_args"] = {"check_same_thread": False}
        if database_url in {"sqlite://", "sqlite:///:memory:"} or database_url.endswith(":memory:"):
            kwargs["poolclass"] = StaticPool
    else:
        kwargs["pool_pre_ping"] = True
    return create_engine(database_url, **kwargs)


def define_documents_table(name: str, metadata: MetaData) -> Table:
    """Declare the document-metadata table (one row per uploaded file)."""
    return Table(
        name,
        metadata,
        Column("id", String(36), primary_key=True),
        Column("file_name", String(512), nullable=False, unique=True),
        Column("original_name", String(255), nullable=False, index=True),
        Column("file_size", BigInteger, nullable=False),
        Column("upload_date", DateTime(timezone=True), nullable=False, index=True),
        Column("storage_path", String(1024), nullable=False),
    )


def _build_sql_where(table: Table, filters: list[MetadataFilter]) -> list[Any]:
    """Convert :class:`MetadataFilter` objects to SQLAlchemy clauses."""
    clauses: list[Any] = []
    for f in filters:
        op = _OP_MAP.get(f.operator)
        if op is None:
            raise ValueError(f"Unsupported filter operator: {f.operator!r}")
        if f.field not in table.c:
            raise ValueError(f"Unknown column {f.field!r} in table {table.name!r}")
        clauses.append(op(table.c[f.field], f.value))
    return clauses


class SqlMetadataStore(MetadataStoreBase):
    """Relational metadata store on any SQLAlchemy-supported database.

    Parameters
    ----------
    engine:
        SQLAlchemy engine; built from *database_url* when omitted.
    database_url:
        Database URL, e.g. ``sqlite:///./docqa.db`` or a PostgreSQL DSN.
    documents_table:
        Name of the document-metadata table.
    """

    def __init__(
        self,
        engine: Engine | None = None,
        *,
        database_url: str = "sqlite://",
        documents_table: str = "document_metadata",
    ) -> None:
        self._engine = engine or build_engine(database_url)
        self._metadata = MetaData()
        define_documents_table(documents_table, self._metadata)
        self._metadata.create_all(self._engine)

    def _table(self, name: str, error_cls: type[Exception]) -> Table:
        table = self._metadata.tables.get(name)
        if table is None:
            raise error_cls(f"Unknown table {name!r}", table=name)
        return table

    # -- MetadataStoreBase overrides ------------------------------------------

    def insert(self, table: str, record: dict[str, Any]) -> str:
        tbl = self._table(table, MetadataWriteError)
        values = dict(record)
        record_id = str(values.get("id") or uuid.uuid4())
        values["id"] = record_id
        try:
            with self._engine.begin() as conn:
                conn.execute(tbl.insert().values(**values))
        except SQLAlchemyError as exc:
            raise MetadataWriteError(f"Failed to insert record: {exc}", table=table) from exc
        logger.debug("Inserted %s row id=%s", table, record_id)
        return record_id

    def query(
        self,
        table: str,
        filters: list[MetadataFilter] | None = None,
        *,
        order_by: str | None = None,
        descending: bool = False,
        offset: int = 0,
        limit: int | None = None,
    ) -> list[dict[str, Any]]:
        tbl = self._table(table, MetadataReadError)
        try:
            stmt = select(tbl).where(*_build_sql_where(tbl, filters or []))
            if order_by is not None:
                column = tbl.c[order_by]
                stmt = stmt.order_by(column.desc() if descending else column.asc())
            if offset:
                stmt = stmt.offset(offset)
            if limit is not None:
                stmt = stmt.limit(limit)
            with self._engine.connect() as conn:
                return [dict(row._mapping) for row in conn.execute(stmt)]
        except (SQLAlchemyError, KeyError, ValueError) as exc:
            raise MetadataReadError(f"Failed to query records: {exc}", table=table) from exc

    def delete(self, table: str, filters: list[MetadataFilter]) -> None:
        tbl = self._table(table, MetadataWriteError)
        if not filters:
            raise MetadataWriteError("Refusing to delete without filters", table=table)
        try:
            with self._engine.begin() as conn:
                result = conn.execute(tbl.delete().where(*_build_sql_where(tbl, filters)))
        except (SQLAlchemyError, ValueError) as exc:
            raise MetadataWriteError(f"Failed to delete records: {exc}", table=table) from exc
        logger.debug("Deleted %d %s row(s)", result.rowcount, table)

    def count(self, table: str, filters: list[MetadataFilter] | None = None) -> int:
        tbl = self._table(table, MetadataReadError)
        try:
            stmt = select(func.count()).select_from(tbl).where(*_build_sql_where(tbl, filters or []))
            with self._engine.connect() as conn:
                return int(conn.execute(stmt).scalar_one())
        except (SQLAlchemyError, ValueError) as exc:
            raise MetadataReadError(f"Failed to count records: {exc}", table=table) from exc
