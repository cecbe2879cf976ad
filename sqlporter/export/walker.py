"""Catalog and table content → SQL script or Document.

``ExportWalker`` reads the SQLite catalog (``sqlite_master``) and every
qualifying table through an
:class:`~sqlporter.backend.base.ExecutionBackend`.  What it emits is decided
by an accumulator owned by a single walk:

* :class:`SQLAccumulator` collects executable statements (DROP + CREATE per
  table, other schema statements, one ``INSERT OR REPLACE … VALUES`` per
  row).
* :class:`DocumentAccumulator` collects a
  :class:`~sqlporter.schema.document.Document`, recovering typed values
  from stored text.

Reserved tables and tables rejected by ``table_filter`` are never read or
emitted.
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Protocol, TypeVar

import structlog

from sqlporter.backend.base import ExecutionBackend, ResultRow
from sqlporter.compile.base import STATEMENT_SEPARATOR
from sqlporter.compile.escaping import (
    ABSENT,
    escape_identifier,
    is_reserved_table,
    recover_typed_value,
    sql_literal,
    unescape_identifier,
)
from sqlporter.compile.statement_builders import drop_table_sql
from sqlporter.errors import ExecutionError
from sqlporter.schema.document import Data, Document, Structure
from sqlporter.schema.options import PorterOptions

logger = structlog.get_logger(__name__)

CATALOG_QUERY = "SELECT type, name, tbl_name, sql FROM sqlite_master"

_CREATE_TABLE = re.compile(
    r"""^\s*CREATE\s+TABLE\s+(?:IF\s+NOT\s+EXISTS\s+)?
        ( "(?:[^"]|"")*" | `(?:[^`]|``)*` | \[[^\]]*\] | [^\s(]+ )""",
    re.IGNORECASE | re.VERBOSE,
)
_WHITESPACE = re.compile(r"\s+")


def normalize_whitespace(sql: str) -> str:
    return _WHITESPACE.sub(" ", sql).strip()


def parse_create_table(sql: str) -> tuple[str, str] | None:
    """Split a ``CREATE TABLE`` statement into table name and column clause.

    Returns:
        ``(unescaped_name, column_clause)``, or ``None`` if ``sql`` is not a
        CREATE TABLE statement.
    """
    match = _CREATE_TABLE.match(sql)
    if match is None:
        return None
    return unescape_identifier(match.group(1)), sql[match.end():].strip()


@dataclass(frozen=True)
class CatalogEntry:
    """One ``sqlite_master`` row that carries SQL text."""

    type: str
    name: str
    table: str
    sql: str

    @property
    def is_table(self) -> bool:
        return self.type == "table"


@dataclass
class SQLExport:
    """An exported SQL script and the number of statements in it."""

    sql: str
    count: int
    statements: list[str] = field(default_factory=list)


@dataclass
class JSONExport:
    """An exported Document and the number of statements it stands for."""

    document: Document
    count: int


_R = TypeVar("_R", covariant=True)


class Accumulator(Protocol[_R]):
    """What a walk feeds catalog entries and rows into."""

    def add_table(self, entry: CatalogEntry) -> None: ...
    def add_other(self, entry: CatalogEntry) -> None: ...
    def start_rows(self, table: str) -> None: ...
    def add_row(self, table: str, row: ResultRow) -> None: ...
    def result(self) -> _R: ...


class SQLAccumulator:
    """Collects statements for an SQL export."""

    def __init__(self) -> None:
        self._statements: list[str] = []

    def add_table(self, entry: CatalogEntry) -> None:
        self._statements.append(drop_table_sql(entry.name))
        self._statements.append(normalize_whitespace(entry.sql))

    def add_other(self, entry: CatalogEntry) -> None:
        self._statements.append(normalize_whitespace(entry.sql))

    def start_rows(self, table: str) -> None:
        pass

    def add_row(self, table: str, row: ResultRow) -> None:
        columns = ", ".join(escape_identifier(col) for col in row)
        values = ", ".join(_export_literal(value) for value in row.values())
        self._statements.append(
            f"INSERT OR REPLACE INTO {escape_identifier(table)}({columns}) VALUES ({values})"
        )

    def result(self) -> SQLExport:
        sql = "".join(f"{statement}{STATEMENT_SEPARATOR}" for statement in self._statements)
        return SQLExport(sql=sql, count=len(self._statements), statements=self._statements)


class DocumentAccumulator:
    """Collects a Document for a JSON export.

    Values come straight from the database, so the sections are assembled
    with ``model_construct`` rather than re-validated.
    """

    def __init__(self, include_structure: bool, include_data: bool) -> None:
        self._include_structure = include_structure
        self._include_data = include_data
        self._tables: dict[str, str] = {}
        self._other: list[str] = []
        self._inserts: dict[str, list[dict[str, Any]]] = {}
        self._count = 0

    def add_table(self, entry: CatalogEntry) -> None:
        parsed = parse_create_table(entry.sql)
        if parsed is None:
            logger.warning("unparsed_table_definition", table=entry.name)
            self.add_other(entry)
            return
        _, column_clause = parsed
        self._tables[entry.name] = normalize_whitespace(column_clause)
        self._count += 2

    def add_other(self, entry: CatalogEntry) -> None:
        self._other.append(normalize_whitespace(entry.sql))
        self._count += 1

    def start_rows(self, table: str) -> None:
        self._inserts[table] = []

    def add_row(self, table: str, row: ResultRow) -> None:
        recovered: dict[str, Any] = {}
        for col, stored in row.items():
            value = recover_typed_value(stored)
            if value is not ABSENT:
                recovered[col] = value
        if not recovered:
            # An insert row must name at least one field.
            logger.warning("empty_row_skipped", table=table)
            return
        self._inserts[table].append(recovered)
        self._count += 1

    def result(self) -> JSONExport:
        structure = None
        data = None
        if self._include_structure:
            structure = Structure.model_construct(tables=self._tables, otherSQL=self._other)
        if self._include_data:
            data = Data.model_construct(inserts=self._inserts)
        return JSONExport(
            document=Document(structure=structure, data=data),
            count=self._count,
        )


def _export_literal(value: Any) -> str:
    if isinstance(value, bytes):
        return f"X'{value.hex()}'"
    return sql_literal(value)


class ExportWalker:
    """Walks the catalog and table rows of one backend.

    Args:
        backend: Backend to read from.
        options: ``data_only``, ``structure_only`` and ``table_filter`` are
            honoured.
    """

    def __init__(self, backend: ExecutionBackend, options: PorterOptions | None = None) -> None:
        self._backend = backend
        self._options = options or PorterOptions()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def to_sql(self) -> SQLExport:
        """Export as an executable SQL script."""
        return self._walk(SQLAccumulator())

    def to_document(self) -> JSONExport:
        """Export as a Document."""
        return self._walk(
            DocumentAccumulator(
                include_structure=not self._options.data_only,
                include_data=not self._options.structure_only,
            )
        )

    def drop_statements(self) -> list[str]:
        """Return ``DROP TABLE IF EXISTS`` for every qualifying table."""
        with self._backend.unit_of_work():
            return [drop_table_sql(entry.name) for entry in self.catalog() if entry.is_table]

    def catalog(self) -> list[CatalogEntry]:
        """Return qualifying catalog entries in catalog order.

        Entries without SQL text (automatic indexes) are dropped, as are
        reserved tables and everything attached to them.
        """
        entries: list[CatalogEntry] = []
        for row in self._query(CATALOG_QUERY):
            if row["sql"] is None:
                continue
            entry = CatalogEntry(
                type=row["type"], name=row["name"], table=row["tbl_name"], sql=row["sql"]
            )
            if is_reserved_table(entry.name) or is_reserved_table(entry.table):
                continue
            if not self._options.includes_table(entry.table):
                continue
            entries.append(entry)
        return entries

    # ------------------------------------------------------------------
    # Walk
    # ------------------------------------------------------------------

    def _walk(self, acc: Accumulator[_R]) -> _R:
        with self._backend.unit_of_work():
            entries = self.catalog()
            tables = [entry.name for entry in entries if entry.is_table]

            if not self._options.data_only:
                for entry in entries:
                    if entry.is_table:
                        acc.add_table(entry)
                    else:
                        acc.add_other(entry)

            if not self._options.structure_only:
                for table in tables:
                    acc.start_rows(table)
                    for row in self._query(f"SELECT * FROM {escape_identifier(table)}"):
                        acc.add_row(table, row)

        result = acc.result()
        logger.info("export_finished", tables=len(tables), statements=result.count)
        return result

    def _query(self, statement: str) -> list[ResultRow]:
        try:
            return self._backend.run(statement)
        except self._backend.error_types as exc:
            raise ExecutionError(
                f"Failed to read from database: {exc}",
                statement=statement,
                detail=str(exc),
            ) from exc
