"""Classify the shape of a structured query.

A structured query reads from exactly one of:

* a native sub-statement (opaque -- needs whole-database native access),
* a saved query ("source card", governed by its collection), or
* a source table plus any join tables.

Nested ``source_query`` levels are followed until one of those is reached.
"""

from __future__ import annotations

from enum import Enum

from query_perms.errors import InvalidQueryError
from query_perms.models.query import StructuredQuery, TableRecord


class SourceMarker(Enum):
    """Placeholder emitted in place of a table for a native leaf."""

    NATIVE_LEAF = "native-leaf"


NATIVE_LEAF = SourceMarker.NATIVE_LEAF

SourceRef = int | TableRecord | SourceMarker


def find_source_card_id(query: StructuredQuery | None) -> int | None:
    """Return the saved-query id *query* is sourced from, if any.

    Walks nested ``source_query`` levels as written, without normalisation,
    and stops at a native leaf.
    """
    if query is None:
        return None
    card_id = query.source_card_reference
    if card_id is not None or query.native is not None:
        return card_id
    return find_source_card_id(query.source_query)


def source_references(query: StructuredQuery) -> tuple[SourceRef, ...]:
    """Return every source *query* reads from.

    The innermost level contributes its source table (or the native marker);
    every level contributes its join tables.

    Source cards are not resolved here; they change the whole permission
    model and are dispatched before shape resolution runs.
    """
    if query.native is not None:
        return (NATIVE_LEAF,)

    # Joins declared on an outer level still read their tables.
    joins = tuple(join.table_id for join in query.join_tables)
    if query.source_query is not None:
        if query.source_table is not None:
            raise InvalidQueryError("Query level names both a source table and a source query.")
        return (*source_references(query.source_query), *joins)

    source_table = query.source_table
    if source_table is None or isinstance(source_table, str):
        raise InvalidQueryError(f"Query has no resolvable source table: {source_table!r}")
    return (source_table, *joins)
