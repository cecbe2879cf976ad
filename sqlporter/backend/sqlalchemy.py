"""SQLAlchemy backend.

Install the optional dependency before using this module::

    pip install "sqlporter[sqlalchemy]"

Importing this module registers :class:`SQLAlchemyBackend` for
``sqlalchemy.Connection`` handles.

Example::

    from sqlalchemy import create_engine
    import sqlporter.backend.sqlalchemy  # noqa: F401  (registers the backend)

    engine = create_engine("sqlite:///music.db")
    with engine.connect() as conn:
        sqlporter.import_sql(conn, dump)
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy import Connection
from sqlalchemy.exc import DBAPIError

from sqlporter.backend.base import ExecutionBackend, ResultRow
from sqlporter.backend.registry import BackendFactory


@BackendFactory.register(Connection)
class SQLAlchemyBackend(ExecutionBackend):
    """Executes statements on a caller-owned SQLAlchemy ``Connection``.

    Statements are sent with ``exec_driver_sql`` so literal text such as
    ``'10:30'`` is never mistaken for a bound parameter.
    """

    error_types = (DBAPIError,)

    def __init__(self, connection: Connection) -> None:
        self._conn = connection

    @property
    def connection(self) -> Connection:
        return self._conn

    @contextmanager
    def unit_of_work(self) -> Iterator[SQLAlchemyBackend]:
        if self._conn.in_transaction():
            yield self
            return
        with self._conn.begin():
            yield self

    def run(self, statement: str) -> list[ResultRow]:
        result = self._conn.exec_driver_sql(statement)
        if not result.returns_rows:
            return []
        return [dict(row._mapping) for row in result]
