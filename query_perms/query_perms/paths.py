"""Permission path construction.

Permission paths are opaque strings evaluated by an external grant checker.
Three shapes are produced here:

* ``/db/{id}/native/`` -- ad-hoc native query access to a whole database.
* ``/db/{id}/schema/{schema}/table/{table_id}/`` -- access to a single table.
* ``/collection/{id}/read/`` -- read access to a collection of saved queries.

Paths are only ever built, never parsed.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from query_perms.models.query import DatabaseRecord, database_id

# Database 0 never exists, so nobody but a superuser can hold this path.
DENY_ALL_PATH = "/db/0/"
DENY_ALL: frozenset[str] = frozenset({DENY_ALL_PATH})

_ESCAPES = {"\\": "\\\\", "/": "\\/"}


def escape_path_component(component: str) -> str:
    """Escape ``\\`` and ``/`` so a component cannot introduce extra path segments."""
    return "".join(_ESCAPES.get(char, char) for char in component)


def native_query_path(database: int | DatabaseRecord | Mapping[str, Any]) -> str:
    """Return the path granting ad-hoc native query access to *database*."""
    return f"/db/{database_id(database)}/native/"


def table_path(
    database: int | DatabaseRecord | Mapping[str, Any],
    schema: str | None,
    table_id: int,
) -> str:
    """Return the path granting access to *table_id* in *schema* of *database*.

    A table without a schema renders an empty schema segment.
    """
    return f"/db/{database_id(database)}/schema/{escape_path_component(schema or '')}/table/{table_id}/"


def collection_read_path(collection_id: int | None) -> str:
    """Return the path granting read access to a collection (``None`` is the root)."""
    if collection_id is None:
        return "/collection/root/read/"
    return f"/collection/{collection_id}/read/"
