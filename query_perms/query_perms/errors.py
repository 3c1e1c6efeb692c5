"""Exceptions raised while computing the permissions a query requires.

Everything except :class:`InvalidQueryTypeError` is, by default, contained at
the structured-query boundary and converted into the deny-all permission set.
"""

from __future__ import annotations


class QueryPermissionsError(Exception):
    """Base exception for all permission-computation errors."""


class InvalidQueryError(QueryPermissionsError, ValueError):
    """Raised when a query payload is malformed."""


class InvalidQueryTypeError(InvalidQueryError):
    """Raised when the outer query declares an unrecognised ``type``.

    Signals a caller bug, so it is always raised and never swallowed.
    """

    def __init__(self, query_type: object) -> None:
        super().__init__(f"Invalid query type: {query_type}")
        self.query_type = query_type


class SourceCardNotFoundError(QueryPermissionsError, LookupError):
    """Raised when a query is sourced from a saved query that does not exist."""

    def __init__(self, card_id: int) -> None:
        super().__init__(f"Card {card_id} does not exist.")
        self.card_id = card_id


class NormalizationError(QueryPermissionsError):
    """Raised when the query normaliser fails to canonicalise a query."""


class CatalogLookupError(QueryPermissionsError):
    """Raised when table schemas cannot be resolved from the catalog."""
