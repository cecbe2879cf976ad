"""Unit tests for DocumentCompiler and the statement builders."""

from __future__ import annotations

import pytest
from structlog.testing import capture_logs

from sqlporter import compile_document
from sqlporter.compile.base import CompiledStatements
from sqlporter.compile.builder import DocumentCompiler
from sqlporter.compile.context import CompilationContext
from sqlporter.compile.statement_builders import InsertBuilder, OtherSQLRouter
from sqlporter.errors import ParseError
from sqlporter.schema.document import Document, parse_document
from sqlporter.schema.options import PorterOptions

ARTISTS = {
    "structure": {"tables": {"Artist": "([Id] PRIMARY KEY,[Title])"}},
    "data": {
        "inserts": {
            "Artist": [{"Id": "1", "Title": "Fred"}, {"Id": "2", "Title": "Bob"}],
        }
    },
}


def _compile(payload: dict, **ctx) -> CompiledStatements:
    return DocumentCompiler(CompilationContext(**ctx)).compile(parse_document(payload))


def _rows(n: int) -> list[dict]:
    return [{"id": str(i), "name": f"row {i}"} for i in range(n)]


# ---------------------------------------------------------------------------
# Worked examples
# ---------------------------------------------------------------------------


def test_one_insert_per_row_with_batch_size_one():
    compiled = _compile(ARTISTS, batch_insert_size=1)
    assert compiled.main == [
        "DROP TABLE IF EXISTS Artist",
        "CREATE TABLE Artist([Id] PRIMARY KEY,[Title])",
        "INSERT OR REPLACE INTO Artist(Id, Title) SELECT '1' AS Id, 'Fred' AS Title",
        "INSERT OR REPLACE INTO Artist(Id, Title) SELECT '2' AS Id, 'Bob' AS Title",
    ]
    assert compiled.deferred == []
    assert compiled.total == 4


def test_rows_share_one_insert_within_batch():
    compiled = _compile(ARTISTS, batch_insert_size=500)
    inserts = [s for s in compiled.main if s.startswith("INSERT")]
    assert inserts == [
        "INSERT OR REPLACE INTO Artist(Id, Title) SELECT '1' AS Id, 'Fred' AS Title"
        " UNION SELECT '2', 'Bob'"
    ]


def test_delete_entry():
    compiled = _compile({"data": {"deletes": {"Artist": [{"Id": "5"}]}}})
    assert compiled.main == ["DELETE FROM Artist WHERE Id='5'"]


def test_update_entry():
    compiled = _compile(
        {"data": {"updates": {"Artist": [{"set": {"Title": "Susan"}, "where": {"Id": "2"}}]}}}
    )
    assert compiled.main == ["UPDATE Artist SET Title='Susan' WHERE Id='2'"]


def test_index_deferred_and_view_kept_in_main():
    compiled = _compile(
        {
            "structure": {
                "otherSQL": [
                    "CREATE INDEX IFK_Title ON Artist (Title)",
                    "CREATE VIEW v AS SELECT Title FROM Artist",
                ]
            }
        }
    )
    assert compiled.main == ["CREATE VIEW v AS SELECT Title FROM Artist"]
    assert compiled.deferred == ["CREATE INDEX IFK_Title ON Artist (Title)"]
    assert list(compiled) == compiled.main + compiled.deferred


def test_fixture_document(document: Document):
    compiled = DocumentCompiler().compile(document)
    assert len(compiled.main) == 12
    assert compiled.deferred == ["CREATE INDEX [IFK_AlbumArtistId] ON [Album] ([ArtistId])"]
    assert compiled.total == 13


# ---------------------------------------------------------------------------
# Batching
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "rows, size, expected",
    [
        (1, 1, 1),
        (10, 3, 4),
        (250, 250, 1),
        (251, 250, 2),
        (7, 1, 7),
        (9, 3, 3),
    ],
)
def test_batch_count(rows, size, expected):
    statements = list(InsertBuilder(CompilationContext(batch_insert_size=size)).build("t", _rows(rows)))
    assert len(statements) == expected
    assert sum(1 + s.count(" UNION SELECT ") for s in statements) == rows


def test_default_batch_size():
    compiled = _compile({"data": {"inserts": {"t": _rows(600)}}})
    assert len(compiled.main) == 3


def test_batch_size_from_options():
    compiled = compile_document(
        {"data": {"inserts": {"t": _rows(10)}}}, PorterOptions(batch_insert_size=5)
    )
    assert len(compiled.main) == 2


def test_different_column_set_starts_new_batch():
    compiled = _compile(
        {"data": {"inserts": {"t": [{"a": 1, "b": 2}, {"a": 3}, {"a": 4}]}}}
    )
    assert compiled.main == [
        "INSERT OR REPLACE INTO t(a, b) SELECT '1' AS a, '2' AS b",
        "INSERT OR REPLACE INTO t(a) SELECT '3' AS a UNION SELECT '4'",
    ]


def test_later_rows_follow_first_row_column_order():
    compiled = _compile({"data": {"inserts": {"t": [{"a": 1, "b": 2}, {"b": 4, "a": 3}]}}})
    assert compiled.main == [
        "INSERT OR REPLACE INTO t(a, b) SELECT '1' AS a, '2' AS b UNION SELECT '3', '4'"
    ]


def test_null_and_boolean_values():
    compiled = _compile({"data": {"inserts": {"t": [{"a": None, "b": True, "c": False}]}}})
    assert compiled.main == [
        "INSERT OR REPLACE INTO t(a, b, c) SELECT NULL AS a, 'true' AS b, 'false' AS c"
    ]


def test_quotes_are_doubled():
    compiled = _compile({"data": {"inserts": {"Artist": [{"Title": "O'Brien"}]}}})
    assert compiled.main == ["INSERT OR REPLACE INTO Artist(Title) SELECT 'O''Brien' AS Title"]


# ---------------------------------------------------------------------------
# Updates and deletes
# ---------------------------------------------------------------------------


def test_update_with_several_fields_and_null_condition():
    compiled = _compile(
        {
            "data": {
                "updates": {
                    "t": [{"set": {"a": "x", "b": None}, "where": {"id": 1, "gone": None}}]
                }
            }
        }
    )
    assert compiled.main == ["UPDATE t SET a='x', b=NULL WHERE id='1' AND gone IS NULL"]


def test_update_without_where_touches_every_row():
    compiled = _compile({"data": {"updates": {"t": [{"set": {"a": 1}}]}}})
    assert compiled.main == ["UPDATE t SET a='1'"]


def test_delete_matches_every_field():
    compiled = _compile({"data": {"deletes": {"t": [{"a": 1, "b": "two"}, {"a": None}]}}})
    assert compiled.main == [
        "DELETE FROM t WHERE a='1' AND b='two'",
        "DELETE FROM t WHERE a IS NULL",
    ]


# ---------------------------------------------------------------------------
# Ordering, escaping, routing
# ---------------------------------------------------------------------------


def test_sections_compile_in_execution_order():
    compiled = _compile(
        {
            "structure": {"tables": {"t": "(a)"}, "otherSQL": ["CREATE VIEW v AS SELECT a FROM t"]},
            "data": {
                "deletes": {"t": [{"a": 1}]},
                "updates": {"t": [{"set": {"a": 2}, "where": {"a": 3}}]},
                "inserts": {"t": [{"a": 3}]},
            },
        }
    )
    assert [s.split()[0] for s in compiled.main] == [
        "DROP",
        "CREATE",
        "CREATE",
        "INSERT",
        "UPDATE",
        "DELETE",
    ]


def test_identifiers_needing_delimiters_use_backticks():
    compiled = _compile(
        {
            "structure": {"tables": {"play_count": "(album_id)"}},
            "data": {"inserts": {"play_count": [{"album_id": 1}]}},
        }
    )
    assert compiled.main == [
        "DROP TABLE IF EXISTS `play_count`",
        "CREATE TABLE `play_count`(album_id)",
        "INSERT OR REPLACE INTO `play_count`(`album_id`) SELECT '1' AS `album_id`",
    ]


def test_reserved_tables_are_skipped():
    compiled = _compile(
        {
            "structure": {"tables": {"sqlite_sequence": "(name, seq)", "t": "(a)"}},
            "data": {
                "inserts": {"sqlite_stat1": [{"a": 1}], "fts__data": [{"a": 1}]},
                "deletes": {"SQLITE_x": [{"a": 1}]},
            },
        }
    )
    assert compiled.main == ["DROP TABLE IF EXISTS t", "CREATE TABLE t(a)"]


@pytest.mark.parametrize(
    "statement, deferred",
    [
        ("CREATE INDEX i ON t(a)", True),
        ("create index i on t(a)", True),
        ("CREATE UNIQUE INDEX i ON t(a)", True),
        ("CREATE\tINDEX i ON t(a)", True),
        ("CREATE VIEW v AS SELECT 'CREATE INDEX' AS x", False),
        ("CREATE TRIGGER tr AFTER INSERT ON t BEGIN SELECT 1; END", False),
        ("CREATE INDEXED_THINGS_TABLE(a)", False),
    ],
)
def test_index_routing(statement, deferred):
    main, later = OtherSQLRouter().route([statement])
    assert (later == [statement]) is deferred
    assert (main == [statement]) is not deferred


def test_trailing_semicolons_and_blank_entries_are_dropped():
    main, deferred = OtherSQLRouter().route(["CREATE VIEW v AS SELECT 1;", "  ", "CREATE INDEX i ON t(a) ; "])
    assert main == ["CREATE VIEW v AS SELECT 1"]
    assert deferred == ["CREATE INDEX i ON t(a)"]


# ---------------------------------------------------------------------------
# Section selection and output
# ---------------------------------------------------------------------------


def test_structure_only(document: Document):
    compiled = compile_document(document, PorterOptions(structure_only=True))
    assert len(compiled.main) == 7
    assert not any(s.startswith(("INSERT", "UPDATE", "DELETE")) for s in compiled)


def test_data_only(document: Document):
    compiled = compile_document(document, PorterOptions(data_only=True))
    assert len(compiled.main) == 5
    assert compiled.deferred == []


def test_to_sql_separates_statements():
    compiled = CompiledStatements(main=["A", "B"], deferred=["C"])
    assert compiled.to_sql() == "A;\nB;\nC;\n"


def test_compile_document_rejects_invalid_input():
    with pytest.raises(ParseError):
        compile_document('{"data": {"inserts": {"t": "nope"}}}')


def test_empty_document_compiles_to_nothing():
    assert compile_document("{}").total == 0


def test_reserved_table_skip_is_logged():
    with capture_logs() as logs:
        _compile({"data": {"inserts": {"sqlite_stat1": [{"a": 1}]}}})
    assert {
        "event": "reserved_table_skipped",
        "log_level": "warning",
        "section": "data.inserts",
        "table": "sqlite_stat1",
    } in logs
