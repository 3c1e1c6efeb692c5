"""query-perms -- permissions required to run ad-hoc queries.

Given a native or structured query, computes the set of permission paths an
external grant checker must find in a principal's grants before the query
may run.

Usage:
    from query_perms import QueryPermissionResolver

    resolver = QueryPermissionResolver(catalog, saved_queries)
    resolver.compute_required_permissions(
        {"type": "structured", "database": 1, "query": {"source_table": 10}}
    )
    # frozenset({"/db/1/schema/PUBLIC/table/10/"})
"""

from query_perms.errors import (
    CatalogLookupError,
    InvalidQueryError,
    InvalidQueryTypeError,
    NormalizationError,
    QueryPermissionsError,
    SourceCardNotFoundError,
)
from query_perms.paths import DENY_ALL, DENY_ALL_PATH
from query_perms.resolver import QueryPermissionResolver, compute_required_permissions

__all__ = [
    "DENY_ALL",
    "DENY_ALL_PATH",
    "CatalogLookupError",
    "InvalidQueryError",
    "InvalidQueryTypeError",
    "NormalizationError",
    "QueryPermissionResolver",
    "QueryPermissionsError",
    "SourceCardNotFoundError",
    "compute_required_permissions",
]

__version__ = "0.1.0"
