"""Core Document → statement compilation.

``DocumentCompiler`` is the top-level orchestrator.  It drives the
statement builders section by section, in the order the statements must
execute:

1. ``structure.tables``   — DROP + CREATE per table      (TableBuilder)
2. ``structure.otherSQL`` — indexes deferred, rest main  (OtherSQLRouter)
3. ``data.inserts``       — batched INSERT OR REPLACE    (InsertBuilder)
4. ``data.updates``       — one UPDATE per entry         (UpdateBuilder)
5. ``data.deletes``       — one DELETE per entry         (DeleteBuilder)

The Document is fully validated before compilation starts, so a compile
call either returns every statement or raises without returning any.
"""
from __future__ import annotations

from collections.abc import Mapping
from typing import TypeVar

import structlog

from sqlporter.compile.base import CompiledStatements
from sqlporter.compile.context import CompilationContext
from sqlporter.compile.escaping import is_reserved_table
from sqlporter.compile.statement_builders import (
    DeleteBuilder,
    InsertBuilder,
    OtherSQLRouter,
    TableBuilder,
    UpdateBuilder,
)
from sqlporter.schema.document import Data, Document, Structure

logger = structlog.get_logger(__name__)

_T = TypeVar("_T")


def _unreserved(section: str, entries: Mapping[str, _T]) -> dict[str, _T]:
    kept: dict[str, _T] = {}
    for table, value in entries.items():
        if is_reserved_table(table):
            logger.warning("reserved_table_skipped", section=section, table=table)
            continue
        kept[table] = value
    return kept


class DocumentCompiler:
    """Compiles a validated Document to ordered statement groups.

    Args:
        ctx: Batch size and section selection for this run.
    """

    def __init__(self, ctx: CompilationContext | None = None) -> None:
        self._ctx = ctx or CompilationContext()
        self._tables = TableBuilder()
        self._router = OtherSQLRouter()
        self._inserts = InsertBuilder(self._ctx)
        self._updates = UpdateBuilder()
        self._deletes = DeleteBuilder()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def compile(self, document: Document) -> CompiledStatements:
        """Compile ``document`` to main and deferred statement groups.

        Args:
            document: A Document produced by
                :func:`~sqlporter.schema.document.parse_document`.

        Returns:
            :class:`~sqlporter.compile.base.CompiledStatements`.
        """
        compiled = CompiledStatements()

        if self._ctx.include_structure and document.structure is not None:
            self._compile_structure(document.structure, compiled)

        if self._ctx.include_data and document.data is not None:
            self._compile_data(document.data, compiled)

        logger.debug(
            "document_compiled",
            main=len(compiled.main),
            deferred=len(compiled.deferred),
            batch_insert_size=self._ctx.batch_insert_size,
        )
        return compiled

    # ------------------------------------------------------------------
    # Sections
    # ------------------------------------------------------------------

    def _compile_structure(self, structure: Structure, compiled: CompiledStatements) -> None:
        tables = _unreserved("structure.tables", structure.tables)
        compiled.main.extend(self._tables.build(tables))

        main, deferred = self._router.route(structure.otherSQL)
        compiled.main.extend(main)
        compiled.deferred.extend(deferred)

    def _compile_data(self, data: Data, compiled: CompiledStatements) -> None:
        for table, rows in _unreserved("data.inserts", data.inserts).items():
            compiled.main.extend(self._inserts.build(table, rows))

        for table, updates in _unreserved("data.updates", data.updates).items():
            compiled.main.extend(self._updates.build(table, updates))

        for table, deletes in _unreserved("data.deletes", data.deletes).items():
            compiled.main.extend(self._deletes.build(table, deletes))
