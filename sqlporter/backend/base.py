"""Execution backend abstraction.

An ``ExecutionBackend`` wraps a live, caller-owned database connection.
sqlporter never opens, pools or closes connections; it only asks the
backend for a unit of work and submits statements to it one at a time.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable
from contextlib import AbstractContextManager
from typing import Any, ClassVar

#: One result row, column name -> value, in column order.
ResultRow = dict[str, Any]


class ExecutionBackend(ABC):
    """Abstract base for statement execution against one connection.

    Subclasses implement :meth:`unit_of_work` and :meth:`run`, and list the
    driver exceptions that mean "the database rejected this statement" in
    :attr:`error_types`.  Anything else raised by :meth:`run` is treated as
    a programming error and propagates.
    """

    error_types: ClassVar[tuple[type[BaseException], ...]] = ()

    @abstractmethod
    def unit_of_work(self) -> AbstractContextManager[ExecutionBackend]:
        """Return a context manager scoping one transaction.

        The transaction commits when the block exits normally and rolls back
        when an exception escapes it.  Entering while a transaction is
        already open joins that transaction.
        """

    @abstractmethod
    def run(self, statement: str) -> list[ResultRow]:
        """Execute a single statement and return its rows (``[]`` if none).

        Raises:
            One of :attr:`error_types` if the database rejects ``statement``.
        """

    def execute(
        self,
        statement: str,
        on_success: Callable[[list[ResultRow]], Any],
        on_error: Callable[[BaseException], Any],
    ) -> None:
        """Execute ``statement`` and report the outcome to exactly one callback."""
        try:
            rows = self.run(statement)
        except self.error_types as exc:
            on_error(exc)
            return
        on_success(rows)

    @property
    def name(self) -> str:
        return type(self).__name__
