"""Shared fixtures for query_perms tests.

Provides mock collaborators (catalog, saved-query store, normaliser) and a
resolver wired to them.  The catalog knows three tables in database 1:

* 10 -> ``PUBLIC``
* 11 -> ``PUBLIC``
* 12 -> ``sales``
"""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from query_perms.models import OuterQuery, SavedQuery
from query_perms.resolver import QueryPermissionResolver

CATALOG_SCHEMAS: dict[int, str | None] = {10: "PUBLIC", 11: "PUBLIC", 12: "sales"}

SAVED_QUERIES: dict[int, SavedQuery] = {
    100: SavedQuery(id=100, collection_id=7, name="Orders by day", database_id=1),
    101: SavedQuery(id=101, collection_id=None, name="Root report", database_id=1),
}


@pytest.fixture()
def catalog() -> MagicMock:
    """Catalog mock answering from :data:`CATALOG_SCHEMAS`."""
    mock = MagicMock()
    mock.lookup_schemas.side_effect = lambda ids: {i: CATALOG_SCHEMAS[i] for i in ids if i in CATALOG_SCHEMAS}
    return mock


@pytest.fixture()
def saved_queries() -> MagicMock:
    """Saved-query store mock answering from :data:`SAVED_QUERIES`."""
    mock = MagicMock()
    mock.get_saved_query.side_effect = SAVED_QUERIES.get
    return mock


@pytest.fixture()
def normalizer() -> MagicMock:
    """Normaliser mock that validates and returns the query unchanged."""
    mock = MagicMock()
    mock.normalize.side_effect = lambda q: q if isinstance(q, OuterQuery) else OuterQuery.model_validate(q)
    return mock


@pytest.fixture()
def resolver(catalog: MagicMock, saved_queries: MagicMock, normalizer: MagicMock) -> QueryPermissionResolver:
    return QueryPermissionResolver(catalog, saved_queries, normalizer=normalizer)
