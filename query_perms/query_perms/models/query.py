"""Query models consumed by the permission resolver.

Queries arrive as JSON-decoded mappings and are validated into immutable
pydantic trees.  Keys may be written in ``snake_case`` or in the legacy
hyphenated form (``source-table``, ``join-tables``, ``table-id``); anything
the resolver does not need (filters, aggregations, fields, ...) is ignored.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from enum import Enum
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator

from query_perms.errors import InvalidQueryError, InvalidQueryTypeError

# A string ``source_table`` of the form ``card__123`` names a saved query.
_SOURCE_CARD_RE = re.compile(r"^card__(\d+)$")


class QueryType(str, Enum):
    """Discriminant of the outer query."""

    STRUCTURED = "structured"
    NATIVE = "native"


# Type strings written by older clients.
_LEGACY_QUERY_TYPES: dict[str, QueryType] = {"query": QueryType.STRUCTURED}


def parse_query_type(raw: object) -> QueryType:
    """Convert the outer query's ``type`` value into a :class:`QueryType`.

    Raises :class:`InvalidQueryTypeError` for anything unrecognised,
    including a missing type.
    """
    if isinstance(raw, QueryType):
        return raw
    if isinstance(raw, str):
        if raw in _LEGACY_QUERY_TYPES:
            return _LEGACY_QUERY_TYPES[raw]
        try:
            return QueryType(raw)
        except ValueError:
            pass
    raise InvalidQueryTypeError(raw)


class _FrozenModel(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")


# ---------------------------------------------------------------------------
# Databases and tables
# ---------------------------------------------------------------------------


class DatabaseRecord(_FrozenModel):
    """An already-resolved database."""

    id: int = Field(..., description="Database identifier.")


class TableRecord(_FrozenModel):
    """An already-resolved table carrying its own schema.

    ``id`` is preferred; the legacy ``table_id`` is used only when ``id`` is
    absent.
    """

    id: int | None = Field(default=None, description="Table identifier.")
    table_id: int | None = Field(
        default=None,
        validation_alias=AliasChoices("table_id", "table-id"),
        description="Legacy table identifier, used when ``id`` is absent.",
    )
    schema_name: str | None = Field(
        default=None,
        validation_alias=AliasChoices("schema", "schema_name"),
        description="Schema the table belongs to.",
    )

    @model_validator(mode="after")
    def _require_identifier(self) -> TableRecord:
        if self.id is None and self.table_id is None:
            raise ValueError("Table record needs an 'id' or a 'table_id'.")
        return self

    @property
    def resolved_id(self) -> int:
        return self.id if self.id is not None else self.table_id  # type: ignore[return-value]


TableRef = int | TableRecord


def database_id(database: int | DatabaseRecord | Mapping[str, Any] | None) -> int:
    """Return the integer id of a database given as an id or a record."""
    if isinstance(database, bool):
        raise InvalidQueryError(f"Invalid database: {database!r}")
    if isinstance(database, int):
        return database
    if isinstance(database, DatabaseRecord):
        return database.id
    if isinstance(database, Mapping) and isinstance(database.get("id"), int):
        return database["id"]
    raise InvalidQueryError(f"Invalid database: {database!r}")


# ---------------------------------------------------------------------------
# Query tree
# ---------------------------------------------------------------------------


class NativeStatement(_FrozenModel):
    """Opaque engine-specific statement.  Never inspected."""

    query: str | None = None
    params: list[Any] | dict[str, Any] | None = None

    @model_validator(mode="before")
    @classmethod
    def _wrap_bare_text(cls, data: Any) -> Any:
        if isinstance(data, str):
            return {"query": data}
        return data


class JoinTable(_FrozenModel):
    """A table joined into a structured query."""

    table_id: TableRef = Field(validation_alias=AliasChoices("table_id", "table-id"))


class StructuredQuery(_FrozenModel):
    """One level of a structured query.

    ``native`` takes precedence over every other source at the same level.
    Otherwise exactly one of ``source_query`` or ``source_table`` /
    ``source_card_id`` describes where this level reads from; naming both a
    ``source_query`` and a ``source_table`` is rejected during resolution.
    """

    source_table: int | TableRecord | str | None = Field(
        default=None,
        validation_alias=AliasChoices("source_table", "source-table"),
    )
    source_card_id: int | None = Field(
        default=None,
        validation_alias=AliasChoices("source_card_id", "source-card-id"),
    )
    source_query: StructuredQuery | None = Field(
        default=None,
        validation_alias=AliasChoices("source_query", "source-query"),
    )
    native: NativeStatement | None = None
    join_tables: tuple[JoinTable, ...] = Field(
        default=(),
        validation_alias=AliasChoices("join_tables", "join-tables"),
    )

    @property
    def source_card_reference(self) -> int | None:
        """Saved-query id this level is sourced from, if any."""
        if self.source_card_id is not None:
            return self.source_card_id
        if isinstance(self.source_table, str):
            match = _SOURCE_CARD_RE.match(self.source_table)
            if match:
                return int(match.group(1))
        return None


class OuterQuery(_FrozenModel):
    """The query envelope submitted by callers."""

    type: QueryType
    database: int | DatabaseRecord | None = None
    query: StructuredQuery | None = None
    native: NativeStatement | None = None

    @field_validator("type", mode="before")
    @classmethod
    def _coerce_type(cls, value: Any) -> QueryType:
        return parse_query_type(value)
