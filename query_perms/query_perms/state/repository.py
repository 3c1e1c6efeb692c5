"""SQL-backed collaborators and seeding helpers for the metadata store.

:class:`SqlTableCatalog` and :class:`SqlSavedQueryStore` implement the
resolver's :class:`~query_perms.collaborators.TableCatalog` and
:class:`~query_perms.collaborators.SavedQueryStore` protocols.  Each call
opens its own short-lived session.

:class:`MetadataRepository` takes a ``Session`` at construction time and
operates within the caller's transaction boundary; writes call
``session.flush()`` so generated ids are populated.
"""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import Engine, select
from sqlalchemy.orm import Session

from query_perms.models.saved_query import SavedQuery
from query_perms.state.database import get_session
from query_perms.state.tables import (
    CollectionTable,
    DatabaseTable,
    SavedQueryTable,
    TableMetadataTable,
)

logger = logging.getLogger(__name__)


class SqlTableCatalog:
    """Resolve table schemas from the ``metadata_table`` table."""

    def __init__(self, engine: Engine) -> None:
        self._engine = engine

    def lookup_schemas(self, table_ids: set[int]) -> dict[int, str | None]:
        """Return ``{table_id: schema}`` for the known ids in *table_ids*, in one query.

        Inactive tables are left out, so queries over them are denied.
        """
        if not table_ids:
            return {}
        stmt = select(TableMetadataTable.id, TableMetadataTable.schema).where(
            TableMetadataTable.id.in_(sorted(table_ids)),
            TableMetadataTable.active.is_(True),
        )
        with get_session(self._engine) as session:
            rows = session.execute(stmt).all()
        logger.debug("Resolved schemas for %d of %d table(s)", len(rows), len(table_ids))
        return {row.id: row.schema for row in rows}


class SqlSavedQueryStore:
    """Look up saved queries from the ``saved_query`` table."""

    def __init__(self, engine: Engine) -> None:
        self._engine = engine

    def get_saved_query(self, card_id: int) -> SavedQuery | None:
        with get_session(self._engine) as session:
            row = session.get(SavedQueryTable, card_id)
            if row is None:
                return None
            return SavedQuery.model_validate(row)


class MetadataRepository:
    """Write access to the metadata store, used to register databases,
    tables, collections and saved queries."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def add_database(self, name: str) -> int:
        row = DatabaseTable(name=name)
        self._session.add(row)
        self._session.flush()
        return row.id

    def add_table(self, db_id: int, name: str, *, schema: str | None = None, active: bool = True) -> int:
        row = TableMetadataTable(db_id=db_id, name=name, schema=schema, active=active)
        self._session.add(row)
        self._session.flush()
        return row.id

    def add_collection(self, name: str) -> int:
        row = CollectionTable(name=name)
        self._session.add(row)
        self._session.flush()
        return row.id

    def add_saved_query(
        self,
        name: str,
        dataset_query: dict[str, Any],
        *,
        collection_id: int | None = None,
    ) -> int:
        """Save *dataset_query* under *name*; ``collection_id=None`` files it in the root collection."""
        database = dataset_query.get("database")
        row = SavedQueryTable(
            name=name,
            database_id=database if isinstance(database, int) else None,
            collection_id=collection_id,
            query_type=str(dataset_query.get("type", "")),
            dataset_query=dataset_query,
        )
        self._session.add(row)
        self._session.flush()
        return row.id
