"""Collaborator protocols the permission resolver depends on.

The resolver never talks to a catalog, a saved-query store or a query
preprocessor directly; it depends on these protocols.  SQL-backed
implementations live in :mod:`query_perms.state.repository`.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Protocol, runtime_checkable

from query_perms.errors import NormalizationError
from query_perms.models.query import OuterQuery, QueryType
from query_perms.models.saved_query import SavedQuery
from query_perms.paths import collection_read_path


# ---------------------------------------------------------------------------
# Protocols
# ---------------------------------------------------------------------------


@runtime_checkable
class QueryNormalizer(Protocol):
    """Expand a structured query into its canonical form.

    Normalisation is a function of the query alone.  It takes no principal
    and must not apply or require any permissions.
    """

    def normalize(self, outer_query: OuterQuery) -> OuterQuery:
        """Return the canonical form of *outer_query* (database populated)."""
        ...


@runtime_checkable
class TableCatalog(Protocol):
    """Resolve table schemas."""

    def lookup_schemas(self, table_ids: set[int]) -> Mapping[int, str | None]:
        """Return ``{table_id: schema}`` for every known id in *table_ids*.

        Called at most once per permission computation with every bare
        table id the query references.
        """
        ...


@runtime_checkable
class SavedQueryStore(Protocol):
    """Look up saved queries used as the source of other queries."""

    def get_saved_query(self, card_id: int) -> SavedQuery | None:
        """Return the saved query, or ``None`` when it does not exist."""
        ...


@runtime_checkable
class CollectionPermissions(Protocol):
    """Derive the permissions needed to read a saved query."""

    def read_permissions_for(self, card: SavedQuery) -> frozenset[str]:
        ...


# ---------------------------------------------------------------------------
# Default implementations
# ---------------------------------------------------------------------------


class PassthroughNormalizer:
    """Normaliser for callers whose queries are already canonical.

    Checks the structural minimum the resolver needs and returns the query
    unchanged.
    """

    def normalize(self, outer_query: OuterQuery) -> OuterQuery:
        if outer_query.type is not QueryType.STRUCTURED:
            raise NormalizationError(f"Cannot normalize a {outer_query.type.value} query.")
        if outer_query.database is None:
            raise NormalizationError("Structured query has no database.")
        if outer_query.query is None:
            raise NormalizationError("Structured query has no inner query.")
        return outer_query


class CollectionReadPermissions:
    """Reading a saved query requires read access to its collection."""

    def read_permissions_for(self, card: SavedQuery) -> frozenset[str]:
        return frozenset({collection_read_path(card.collection_id)})
