"""Query shape resolution and permission path building."""

from query_perms.resolver.permissions import (
    QueryPermissionResolver,
    compute_required_permissions,
    tables_to_permission_set,
)
from query_perms.resolver.shape import NATIVE_LEAF, find_source_card_id, source_references

__all__ = [
    "NATIVE_LEAF",
    "QueryPermissionResolver",
    "compute_required_permissions",
    "find_source_card_id",
    "source_references",
    "tables_to_permission_set",
]
