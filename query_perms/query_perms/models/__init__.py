"""Domain models for the query permission resolver."""

from query_perms.models.query import (
    DatabaseRecord,
    JoinTable,
    NativeStatement,
    OuterQuery,
    QueryType,
    StructuredQuery,
    TableRecord,
    TableRef,
    database_id,
    parse_query_type,
)
from query_perms.models.saved_query import SavedQuery

__all__ = [
    "DatabaseRecord",
    "JoinTable",
    "NativeStatement",
    "OuterQuery",
    "QueryType",
    "SavedQuery",
    "StructuredQuery",
    "TableRecord",
    "TableRef",
    "database_id",
    "parse_query_type",
]
