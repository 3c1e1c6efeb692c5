"""Build a resolver wired to the SQL metadata store."""

from __future__ import annotations

import logging

from query_perms.collaborators import CollectionPermissions, QueryNormalizer
from query_perms.config import Settings
from query_perms.resolver.permissions import QueryPermissionResolver
from query_perms.state.database import create_tables, get_engine
from query_perms.state.repository import SqlSavedQueryStore, SqlTableCatalog

logger = logging.getLogger(__name__)


def build_resolver(
    settings: Settings,
    *,
    normalizer: QueryNormalizer | None = None,
    collection_permissions: CollectionPermissions | None = None,
) -> QueryPermissionResolver:
    """Create a :class:`QueryPermissionResolver` backed by ``settings.database_url``.

    Metadata tables are created if they do not exist yet.
    """
    engine = get_engine(
        settings.database_url,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
    )
    create_tables(engine)
    logger.info("Permission resolver using metadata store %s", engine.url)
    return QueryPermissionResolver(
        SqlTableCatalog(engine),
        SqlSavedQueryStore(engine),
        normalizer=normalizer,
        collection_permissions=collection_permissions,
        propagate_errors=settings.propagate_errors,
    )
