"""Unit tests for query_perms.paths."""

from __future__ import annotations

import pytest

from query_perms.errors import InvalidQueryError
from query_perms.models import DatabaseRecord
from query_perms.paths import (
    DENY_ALL,
    DENY_ALL_PATH,
    collection_read_path,
    escape_path_component,
    native_query_path,
    table_path,
)

# ---------------------------------------------------------------------------
# native_query_path
# ---------------------------------------------------------------------------


class TestNativeQueryPath:
    def test_from_id(self):
        assert native_query_path(1) == "/db/1/native/"

    def test_from_record(self):
        assert native_query_path(DatabaseRecord(id=4)) == "/db/4/native/"

    def test_from_mapping(self):
        assert native_query_path({"id": 9, "name": "warehouse"}) == "/db/9/native/"

    def test_missing_database_raises(self):
        with pytest.raises(InvalidQueryError):
            native_query_path(None)  # type: ignore[arg-type]

    def test_bool_is_not_a_database_id(self):
        with pytest.raises(InvalidQueryError):
            native_query_path(True)


# ---------------------------------------------------------------------------
# table_path
# ---------------------------------------------------------------------------


class TestTablePath:
    def test_basic(self):
        assert table_path(1, "PUBLIC", 10) == "/db/1/schema/PUBLIC/table/10/"

    def test_record_and_id_give_same_path(self):
        assert table_path(DatabaseRecord(id=1), "PUBLIC", 10) == table_path(1, "PUBLIC", 10)

    def test_no_schema_renders_empty_segment(self):
        assert table_path(1, None, 10) == "/db/1/schema//table/10/"

    def test_schema_with_slash_is_escaped(self):
        assert table_path(1, "a/b", 10) == "/db/1/schema/a\\/b/table/10/"


class TestEscapePathComponent:
    def test_plain_text_unchanged(self):
        assert escape_path_component("sales_2024") == "sales_2024"

    def test_escapes_backslash_before_slash(self):
        assert escape_path_component("a\\/b") == "a\\\\\\/b"


# ---------------------------------------------------------------------------
# collection_read_path / sentinel
# ---------------------------------------------------------------------------


class TestCollectionReadPath:
    def test_collection(self):
        assert collection_read_path(7) == "/collection/7/read/"

    def test_root_collection(self):
        assert collection_read_path(None) == "/collection/root/read/"


class TestDenyAll:
    def test_sentinel_names_database_zero(self):
        assert DENY_ALL_PATH == "/db/0/"
        assert DENY_ALL == frozenset({"/db/0/"})
