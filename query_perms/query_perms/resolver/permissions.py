"""Compute the permission paths required to run an ad-hoc query.

An ad-hoc query is one that has not been saved yet.  Saved queries are
governed by the collection they belong to; ad-hoc queries by the databases
and tables they read.  Resolution runs like this::

                 compute_required_permissions
                              |
          native query? <-----+-----> structured query?
                |                            |
         native_query_path       structured_query_permissions
                                             |
                       no source card <------+------> source card
                              |                           |
                  tables_to_permission_set   source_card_read_permissions

Structured resolution never raises by default.  A broken query resolves to
:data:`~query_perms.paths.DENY_ALL`, which no ordinary principal can hold,
so a single corrupt query cannot break bulk callers such as listings that
filter by readability.  Superusers bypass path checks and still see it.
"""

from __future__ import annotations

import logging
import traceback
from collections.abc import Callable, Iterable, Mapping
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from query_perms.collaborators import (
    CollectionPermissions,
    CollectionReadPermissions,
    PassthroughNormalizer,
    QueryNormalizer,
    SavedQueryStore,
    TableCatalog,
)
from query_perms.errors import (
    CatalogLookupError,
    InvalidQueryError,
    NormalizationError,
    SourceCardNotFoundError,
)
from query_perms.models.query import (
    DatabaseRecord,
    OuterQuery,
    QueryType,
    TableRecord,
    parse_query_type,
)
from query_perms.paths import DENY_ALL, native_query_path, table_path
from query_perms.resolver.shape import (
    NATIVE_LEAF,
    SourceRef,
    find_source_card_id,
    source_references,
)

logger = logging.getLogger(__name__)

_PACKAGE_ROOT = str(Path(__file__).resolve().parents[1])

QueryPayload = OuterQuery | Mapping[str, Any] | None


def _filtered_traceback(exc: BaseException) -> str:
    """Format the traceback of *exc* keeping only frames from this package."""
    frames = [frame for frame in traceback.extract_tb(exc.__traceback__) if frame.filename.startswith(_PACKAGE_ROOT)]
    return "".join(traceback.format_list(frames))


def _loggable(outer_query: OuterQuery | Mapping[str, Any]) -> Any:
    if isinstance(outer_query, OuterQuery):
        return outer_query.model_dump(mode="json")
    return dict(outer_query)


# ---------------------------------------------------------------------------
# Table paths
# ---------------------------------------------------------------------------


def tables_to_permission_set(
    database: int | DatabaseRecord | Mapping[str, Any] | None,
    refs: Iterable[SourceRef],
    catalog: TableCatalog,
) -> frozenset[str]:
    """Return the permission paths needed to read every source in *refs*.

    Schemas for bare table ids are fetched from *catalog* in a single batched
    call; table records carry their own schema and need no lookup.

    Raises
    ------
    CatalogLookupError
        If the catalog fails, or does not know one of the table ids.
    """
    refs = tuple(refs)
    table_ids = {ref for ref in refs if isinstance(ref, int)}

    schemas: Mapping[int, str | None] = {}
    if table_ids:
        try:
            schemas = catalog.lookup_schemas(table_ids)
        except Exception as exc:
            raise CatalogLookupError(f"Failed to look up schemas for tables {sorted(table_ids)}: {exc}") from exc
        missing = table_ids - set(schemas)
        if missing:
            raise CatalogLookupError(f"Tables not found in catalog: {sorted(missing)}")

    paths: set[str] = set()
    for ref in refs:
        if ref is NATIVE_LEAF:
            paths.add(native_query_path(database))
        elif isinstance(ref, int):
            paths.add(table_path(database, schemas[ref], ref))
        elif isinstance(ref, TableRecord):
            paths.add(table_path(database, ref.schema_name, ref.resolved_id))
        else:
            raise InvalidQueryError(f"Unsupported table reference: {ref!r}")
    return frozenset(paths)


# ---------------------------------------------------------------------------
# Resolver
# ---------------------------------------------------------------------------


class QueryPermissionResolver:
    """Compute the permission set required to run an ad-hoc query.

    Parameters
    ----------
    catalog:
        Resolves table ids to schemas.
    saved_queries:
        Looks up saved queries used as a query's source.
    normalizer:
        Expands structured queries into canonical form.  Defaults to
        :class:`PassthroughNormalizer`.
    collection_permissions:
        Derives the read permissions of a saved query.  Defaults to
        :class:`CollectionReadPermissions`.
    propagate_errors:
        Default failure policy for structured queries when a call does not
        choose one.
    """

    def __init__(
        self,
        catalog: TableCatalog,
        saved_queries: SavedQueryStore,
        *,
        normalizer: QueryNormalizer | None = None,
        collection_permissions: CollectionPermissions | None = None,
        propagate_errors: bool = False,
    ) -> None:
        self._catalog = catalog
        self._saved_queries = saved_queries
        self._normalizer = normalizer or PassthroughNormalizer()
        self._collection_permissions = collection_permissions or CollectionReadPermissions()
        self._propagate_errors = propagate_errors

    def source_card_read_permissions(self, card_id: int) -> frozenset[str]:
        """Return the permissions needed to read the saved query *card_id*.

        Raises :class:`SourceCardNotFoundError` if it does not exist.
        """
        card = self._saved_queries.get_saved_query(card_id)
        if card is None:
            raise SourceCardNotFoundError(card_id)
        return frozenset(self._collection_permissions.read_permissions_for(card))

    def structured_query_permissions(
        self,
        outer_query: OuterQuery | Mapping[str, Any],
        *,
        propagate_errors: bool = False,
        already_normalized: bool = False,
    ) -> frozenset[str]:
        """Return the permissions needed to run a structured query.

        Any failure resolves to :data:`DENY_ALL` and is logged, unless
        *propagate_errors* is set, in which case it is re-raised.
        """
        return self._contain_failures(
            lambda: self._resolve_structured(outer_query, already_normalized=already_normalized),
            outer_query,
            propagate_errors=propagate_errors,
        )

    def compute_required_permissions(
        self,
        outer_query: QueryPayload,
        *,
        propagate_errors: bool | None = None,
        already_normalized: bool = False,
    ) -> frozenset[str]:
        """Return the set of permission paths required to run *outer_query*.

        Parameters
        ----------
        outer_query:
            The query envelope, as a mapping or an :class:`OuterQuery`.
            ``None`` or an empty mapping requires nothing.
        propagate_errors:
            Raise structured-query resolution failures instead of returning
            the deny-all set.  ``None`` uses the resolver's default.
        already_normalized:
            Skip the normaliser; the caller guarantees canonical shape.

        Raises
        ------
        InvalidQueryTypeError
            If the query type is not recognised.  Always raised.
        InvalidQueryError
            If the payload is not a mapping, or a native query is malformed.
            Always raised.
        """
        if outer_query is None or (isinstance(outer_query, Mapping) and not outer_query):
            return frozenset()

        if isinstance(outer_query, OuterQuery):
            query_type = outer_query.type
        elif isinstance(outer_query, Mapping):
            query_type = parse_query_type(outer_query.get("type"))
        else:
            raise InvalidQueryError(f"Unsupported query payload: {type(outer_query).__name__}")

        if query_type is QueryType.STRUCTURED:
            if propagate_errors is None:
                propagate_errors = self._propagate_errors
            result = self.structured_query_permissions(
                outer_query,
                propagate_errors=propagate_errors,
                already_normalized=already_normalized,
            )
        elif query_type is QueryType.NATIVE:
            result = frozenset({native_query_path(self._validate_native(outer_query).database)})
        else:  # pragma: no cover - QueryType is exhaustive
            raise AssertionError(f"Unhandled query type: {query_type}")

        logger.debug("Computed %d required permission(s) for %s query", len(result), query_type.value)
        return result

    # -- internals ---------------------------------------------------------

    @staticmethod
    def _validate_native(outer_query: OuterQuery | Mapping[str, Any]) -> OuterQuery:
        if isinstance(outer_query, OuterQuery):
            return outer_query
        try:
            return OuterQuery.model_validate(outer_query)
        except ValidationError as exc:
            raise InvalidQueryError(f"Invalid native query: {exc}") from exc

    def _resolve_structured(
        self,
        outer_query: OuterQuery | Mapping[str, Any],
        *,
        already_normalized: bool,
    ) -> frozenset[str]:
        query = outer_query if isinstance(outer_query, OuterQuery) else OuterQuery.model_validate(outer_query)

        # A saved query as source replaces the table model with its collection's.
        card_id = find_source_card_id(query.query)
        if card_id is not None:
            return self.source_card_read_permissions(card_id)

        if not already_normalized:
            query = self._normalize(query)
        if query.query is None:
            raise InvalidQueryError("Structured query has no inner query.")
        return tables_to_permission_set(query.database, source_references(query.query), self._catalog)

    def _normalize(self, query: OuterQuery) -> OuterQuery:
        try:
            return self._normalizer.normalize(query)
        except NormalizationError:
            raise
        except Exception as exc:
            raise NormalizationError(f"Failed to normalize query: {exc}") from exc

    @staticmethod
    def _contain_failures(
        resolve: Callable[[], frozenset[str]],
        outer_query: OuterQuery | Mapping[str, Any],
        *,
        propagate_errors: bool,
    ) -> frozenset[str]:
        try:
            return resolve()
        except Exception as exc:
            if propagate_errors:
                raise
            logger.warning(
                "Error calculating permissions for query: %s\n%s",
                exc,
                _filtered_traceback(exc),
                extra={"query": _loggable(outer_query)},
            )
            return DENY_ALL


def compute_required_permissions(
    outer_query: QueryPayload,
    *,
    resolver: QueryPermissionResolver,
    propagate_errors: bool | None = None,
    already_normalized: bool = False,
) -> frozenset[str]:
    """Module-level shortcut for :meth:`QueryPermissionResolver.compute_required_permissions`."""
    return resolver.compute_required_permissions(
        outer_query,
        propagate_errors=propagate_errors,
        already_normalized=already_normalized,
    )
