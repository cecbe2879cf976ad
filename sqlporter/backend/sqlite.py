"""SQLite backend over the standard ``sqlite3`` driver."""
from __future__ import annotations

import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager

from sqlporter.backend.base import ExecutionBackend, ResultRow


class SQLiteBackend(ExecutionBackend):
    """Executes statements on a caller-owned ``sqlite3.Connection``.

    Transactions are driven with explicit ``BEGIN`` / ``COMMIT`` /
    ``ROLLBACK`` so behaviour does not depend on the connection's
    ``isolation_level`` or ``autocommit`` setting.  Rows are always returned
    as dicts, whatever ``row_factory`` the caller installed.
    """

    error_types = (sqlite3.Error,)

    def __init__(self, connection: sqlite3.Connection) -> None:
        self._conn = connection

    @property
    def connection(self) -> sqlite3.Connection:
        return self._conn

    @contextmanager
    def unit_of_work(self) -> Iterator[SQLiteBackend]:
        if self._conn.in_transaction:
            yield self
            return
        self._conn.execute("BEGIN")
        try:
            yield self
        except BaseException:
            if self._conn.in_transaction:
                self._conn.execute("ROLLBACK")
            raise
        if self._conn.in_transaction:
            self._conn.execute("COMMIT")

    def run(self, statement: str) -> list[ResultRow]:
        cursor = self._conn.cursor()
        cursor.row_factory = None
        try:
            cursor.execute(statement)
            if cursor.description is None:
                return []
            columns = [d[0] for d in cursor.description]
            return [dict(zip(columns, row)) for row in cursor.fetchall()]
        finally:
            cursor.close()
