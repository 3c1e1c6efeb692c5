"""Unit tests for query_perms.models."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from query_perms.errors import InvalidQueryTypeError
from query_perms.models import (
    DatabaseRecord,
    OuterQuery,
    QueryType,
    StructuredQuery,
    TableRecord,
    database_id,
    parse_query_type,
)

# ---------------------------------------------------------------------------
# Query type
# ---------------------------------------------------------------------------


class TestParseQueryType:
    def test_structured(self):
        assert parse_query_type("structured") is QueryType.STRUCTURED

    def test_native(self):
        assert parse_query_type("native") is QueryType.NATIVE

    def test_legacy_query_alias(self):
        assert parse_query_type("query") is QueryType.STRUCTURED

    def test_enum_passthrough(self):
        assert parse_query_type(QueryType.NATIVE) is QueryType.NATIVE

    @pytest.mark.parametrize("raw", ["bogus", "", None, 3, "NATIVE"])
    def test_unknown_raises(self, raw):
        with pytest.raises(InvalidQueryTypeError, match="Invalid query type"):
            parse_query_type(raw)

    def test_error_keeps_offending_value(self):
        with pytest.raises(InvalidQueryTypeError) as exc_info:
            parse_query_type("bogus")
        assert exc_info.value.query_type == "bogus"


# ---------------------------------------------------------------------------
# Tables and databases
# ---------------------------------------------------------------------------


class TestTableRecord:
    def test_id_preferred_over_legacy_table_id(self):
        record = TableRecord.model_validate({"id": 5, "table-id": 6, "schema": "PUBLIC"})
        assert record.resolved_id == 5
        assert record.schema_name == "PUBLIC"

    def test_legacy_table_id_fallback(self):
        record = TableRecord.model_validate({"table-id": 6, "schema": "PUBLIC"})
        assert record.resolved_id == 6

    def test_snake_case_table_id(self):
        assert TableRecord.model_validate({"table_id": 8}).resolved_id == 8

    def test_requires_an_identifier(self):
        with pytest.raises(ValidationError):
            TableRecord.model_validate({"schema": "PUBLIC"})

    def test_is_frozen(self):
        record = TableRecord(id=1)
        with pytest.raises(ValidationError):
            record.id = 2  # type: ignore[misc]


class TestDatabaseId:
    def test_int(self):
        assert database_id(3) == 3

    def test_record(self):
        assert database_id(DatabaseRecord(id=3)) == 3


# ---------------------------------------------------------------------------
# Query tree
# ---------------------------------------------------------------------------


class TestStructuredQuery:
    def test_hyphenated_keys(self):
        query = StructuredQuery.model_validate(
            {
                "source-query": {"source-table": 10, "join-tables": [{"table-id": 11}]},
            }
        )
        assert query.source_query is not None
        assert query.source_query.source_table == 10
        assert query.source_query.join_tables[0].table_id == 11

    def test_unknown_keys_ignored(self):
        query = StructuredQuery.model_validate({"source_table": 10, "filter": ["=", 1, 2], "limit": 5})
        assert query.source_table == 10

    def test_source_table_record(self):
        query = StructuredQuery.model_validate({"source_table": {"id": 10, "schema": "PUBLIC"}})
        assert isinstance(query.source_table, TableRecord)

    def test_native_text_is_wrapped(self):
        query = StructuredQuery.model_validate({"native": "SELECT 1"})
        assert query.native is not None
        assert query.native.query == "SELECT 1"

    def test_card_reference_from_source_table(self):
        query = StructuredQuery.model_validate({"source_table": "card__42"})
        assert query.source_card_reference == 42

    def test_explicit_card_reference(self):
        query = StructuredQuery.model_validate({"source_card_id": 42})
        assert query.source_card_reference == 42

    def test_non_card_string_is_not_a_card(self):
        query = StructuredQuery.model_validate({"source_table": "orders"})
        assert query.source_card_reference is None


class TestOuterQuery:
    def test_legacy_type_coerced(self):
        outer = OuterQuery.model_validate({"type": "query", "database": 1, "query": {"source_table": 10}})
        assert outer.type is QueryType.STRUCTURED

    def test_bad_type_is_validation_error(self):
        with pytest.raises(ValidationError):
            OuterQuery.model_validate({"type": "bogus"})

    def test_database_record(self):
        outer = OuterQuery.model_validate({"type": "native", "database": {"id": 2}})
        assert outer.database == DatabaseRecord(id=2)
