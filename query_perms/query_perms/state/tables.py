"""SQLAlchemy 2.0 ORM table definitions for the metadata store.

The metadata store backs the default catalog and saved-query collaborators:
databases, their tables (with schema), collections, and the saved queries
filed in them.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from sqlalchemy import JSON, Boolean, DateTime, ForeignKey, Index, Integer, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def _utcnow() -> datetime:
    """Return the current UTC timestamp (timezone-aware)."""
    return datetime.now(UTC)


class Base(DeclarativeBase):
    """Shared declarative base for all metadata tables."""


class DatabaseTable(Base):
    """A connected database."""

    __tablename__ = "metadata_database"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(256), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, nullable=False)


class TableMetadataTable(Base):
    """A table within a connected database."""

    __tablename__ = "metadata_table"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    db_id: Mapped[int] = mapped_column(ForeignKey("metadata_database.id", ondelete="CASCADE"), nullable=False)
    schema: Mapped[str | None] = mapped_column(String(256), nullable=True)
    name: Mapped[str] = mapped_column(String(256), nullable=False)
    active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    __table_args__ = (Index("ix_metadata_table_db", "db_id"),)


class CollectionTable(Base):
    """A collection of saved queries.  Saved queries outside any collection live in the root."""

    __tablename__ = "collection"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(256), nullable=False)


class SavedQueryTable(Base):
    """A saved query (card)."""

    __tablename__ = "saved_query"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(256), nullable=False)
    database_id: Mapped[int | None] = mapped_column(
        ForeignKey("metadata_database.id", ondelete="SET NULL"), nullable=True
    )
    collection_id: Mapped[int | None] = mapped_column(
        ForeignKey("collection.id", ondelete="SET NULL"), nullable=True
    )
    query_type: Mapped[str] = mapped_column(String(32), nullable=False)
    dataset_query: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, nullable=False)

    __table_args__ = (Index("ix_saved_query_collection", "collection_id"),)
