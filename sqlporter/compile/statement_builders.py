"""Statement-level SQL builders.

Each class renders exactly one family of statements from one Document
section.  Builders yield statements lazily so a large row set is never held
as one string.

Classes
-------
TableBuilder      — ``DROP TABLE IF EXISTS`` + ``CREATE TABLE`` pairs
OtherSQLRouter    — splits ``structure.otherSQL`` into main / deferred
InsertBuilder     — batched ``INSERT OR REPLACE … SELECT … UNION SELECT …``
UpdateBuilder     — ``UPDATE … SET … WHERE …``
DeleteBuilder     — ``DELETE FROM … WHERE …``
"""
from __future__ import annotations

import re
from collections.abc import Iterable, Iterator, Mapping

from sqlporter.compile.context import CompilationContext
from sqlporter.compile.escaping import escape_identifier, sql_literal
from sqlporter.schema.document import Scalar, UpdateEntry

_INDEX_STATEMENT = re.compile(r"^\s*CREATE\s+(?:UNIQUE\s+)?INDEX\b", re.IGNORECASE)


def drop_table_sql(table: str) -> str:
    return f"DROP TABLE IF EXISTS {escape_identifier(table)}"


def _assignments(values: Mapping[str, Scalar]) -> list[str]:
    return [f"{escape_identifier(col)}={sql_literal(val)}" for col, val in values.items()]


def _conditions(values: Mapping[str, Scalar]) -> str:
    parts = []
    for col, val in values.items():
        if val is None:
            parts.append(f"{escape_identifier(col)} IS NULL")
        else:
            parts.append(f"{escape_identifier(col)}={sql_literal(val)}")
    return " AND ".join(parts)


class TableBuilder:
    """Builds the DROP / CREATE pair for each table definition."""

    def build(self, tables: Mapping[str, str]) -> Iterator[str]:
        for table, column_clause in tables.items():
            yield drop_table_sql(table)
            yield f"CREATE TABLE {escape_identifier(table)}{column_clause}"


class OtherSQLRouter:
    """Routes schema statements to the main or the deferred group.

    Index creation is deferred so bulk inserts do not pay for index
    maintenance; everything else keeps its place in the main group.
    """

    def route(self, statements: Iterable[str]) -> tuple[list[str], list[str]]:
        main: list[str] = []
        deferred: list[str] = []
        for statement in statements:
            statement = statement.strip().rstrip(";").rstrip()
            if not statement:
                continue
            if _INDEX_STATEMENT.match(statement):
                deferred.append(statement)
            else:
                main.append(statement)
        return main, deferred


class InsertBuilder:
    """Compiles insert rows into multi-row ``INSERT OR REPLACE`` statements.

    The first row of a batch is a ``SELECT <value> AS <column>, …``
    projection; later rows are appended as ``UNION SELECT <value>, …``.
    A batch closes after ``batch_insert_size`` rows, or earlier when a row
    names a different set of columns than the batch's first row.
    """

    def __init__(self, ctx: CompilationContext) -> None:
        self._ctx = ctx

    def build(self, table: str, rows: Iterable[Mapping[str, Scalar]]) -> Iterator[str]:
        target = escape_identifier(table)
        columns: tuple[str, ...] = ()
        parts: list[str] = []
        count = 0

        for row in rows:
            if parts and (
                count == self._ctx.batch_insert_size or set(row) != set(columns)
            ):
                yield "".join(parts)
                parts = []
                count = 0

            if not parts:
                columns = tuple(row)
                column_list = ", ".join(escape_identifier(c) for c in columns)
                projection = ", ".join(
                    f"{sql_literal(row[c])} AS {escape_identifier(c)}" for c in columns
                )
                parts.append(
                    f"INSERT OR REPLACE INTO {target}({column_list}) SELECT {projection}"
                )
            else:
                values = ", ".join(sql_literal(row[c]) for c in columns)
                parts.append(f" UNION SELECT {values}")
            count += 1

        if parts:
            yield "".join(parts)


class UpdateBuilder:
    """Builds one UPDATE per entry; SET and WHERE keep the entry's key order."""

    def build(self, table: str, entries: Iterable[UpdateEntry]) -> Iterator[str]:
        target = escape_identifier(table)
        for entry in entries:
            sql = f"UPDATE {target} SET {', '.join(_assignments(entry.set))}"
            if entry.where:
                sql += f" WHERE {_conditions(entry.where)}"
            yield sql


class DeleteBuilder:
    """Builds one DELETE per entry, matching every field the entry names."""

    def build(self, table: str, entries: Iterable[Mapping[str, Scalar]]) -> Iterator[str]:
        target = escape_identifier(table)
        for entry in entries:
            yield f"DELETE FROM {target} WHERE {_conditions(entry)}"
