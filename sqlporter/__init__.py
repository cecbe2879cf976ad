"""sqlporter – move SQLite content to and from SQL scripts and JSON documents.

Public API
----------
``import_sql``
    Split a SQL script into statements and execute them in order.

``export_sql``
    Export table structure and/or rows as a SQL script.

``import_json``
    Validate a Document, compile it to statements and execute them, with
    index creation deferred to a second unit of work.

``export_json``
    Export table structure and/or rows as a Document.

``wipe``
    Drop every non-reserved table.

``compile_document``
    Compile a Document to statements without executing anything.

Every operation accepts a backend (an
:class:`~sqlporter.backend.base.ExecutionBackend` or a raw connection of a
registered type, e.g. ``sqlite3.Connection``) and optional
:class:`~sqlporter.schema.options.PorterOptions`.

Error reporting
---------------
Failures are :class:`SQLPorterError` subclasses.  They are always logged.
When ``options.error_callback`` is set the error is passed to it and the
operation returns ``None``; otherwise the error is raised.

Extensibility
-------------
Further drivers can be registered via::

    from sqlporter.backend.registry import BackendFactory

    @BackendFactory.register(apsw.Connection)
    class APSWBackend(ExecutionBackend):
        ...
"""

from __future__ import annotations

import sqlite3
from collections.abc import Callable
from typing import Any, TypeVar

import structlog

from sqlporter.backend.base import ExecutionBackend
from sqlporter.backend.registry import BackendFactory
from sqlporter.backend.sqlite import SQLiteBackend
from sqlporter.compile.base import CompiledStatements
from sqlporter.compile.builder import DocumentCompiler
from sqlporter.compile.context import CompilationContext
from sqlporter.compile.escaping import (
    ABSENT,
    escape_identifier,
    is_reserved_table,
    recover_typed_value,
    sanitize_value,
    unescape_identifier,
)
from sqlporter.compile.tokenizer import (
    StatementTokenizer,
    split_statements,
    strip_transaction_wrapper,
)
from sqlporter.errors import (
    ExecutionError,
    InvalidBackendError,
    InvalidOptionError,
    ParseError,
    SQLPorterError,
    ValidationError,
)
from sqlporter.export.walker import ExportWalker, JSONExport, SQLExport
from sqlporter.pipeline import ImportPipeline, PipelineState, TwoPhaseImport
from sqlporter.schema.document import Document, parse_document
from sqlporter.schema.options import DEFAULT_BATCH_INSERT_SIZE, PorterOptions

# ---------------------------------------------------------------------------
# Register built-in backends with BackendFactory
# ---------------------------------------------------------------------------

BackendFactory.register_class(sqlite3.Connection, SQLiteBackend)

logger = structlog.get_logger(__name__)

_T = TypeVar("_T")

__all__ = [
    # Operations
    "import_sql",
    "export_sql",
    "import_json",
    "export_json",
    "wipe",
    "compile_document",
    # Document
    "Document",
    "parse_document",
    # Options
    "PorterOptions",
    "DEFAULT_BATCH_INSERT_SIZE",
    # Compilation
    "CompiledStatements",
    "CompilationContext",
    "DocumentCompiler",
    "StatementTokenizer",
    "split_statements",
    "strip_transaction_wrapper",
    # Escaping
    "ABSENT",
    "escape_identifier",
    "unescape_identifier",
    "sanitize_value",
    "is_reserved_table",
    "recover_typed_value",
    # Execution
    "ExecutionBackend",
    "BackendFactory",
    "SQLiteBackend",
    "ImportPipeline",
    "TwoPhaseImport",
    "PipelineState",
    # Export
    "ExportWalker",
    "SQLExport",
    "JSONExport",
    # Errors
    "SQLPorterError",
    "ValidationError",
    "InvalidBackendError",
    "InvalidOptionError",
    "ParseError",
    "ExecutionError",
]


def _reported(
    operation: str,
    options: PorterOptions,
    work: Callable[[], _T],
    success_args: Callable[[_T], tuple[Any, ...]],
) -> _T | None:
    """Run ``work`` and route its outcome to the callbacks in ``options``."""
    try:
        result = work()
    except SQLPorterError as exc:
        logger.error(
            "operation_failed",
            operation=operation,
            error_type=type(exc).__name__,
            error=str(exc),
        )
        if options.error_callback is None:
            raise
        options.error_callback(exc)
        return None

    if options.success_callback is not None:
        options.success_callback(*success_args(result))
    return result


def import_sql(
    backend: ExecutionBackend | Any,
    sql: str,
    options: PorterOptions | None = None,
) -> int | None:
    """Execute every statement of a SQL script, in order, in one unit of work.

    Args:
        backend: Backend or registered connection to import into.
        sql: SQL script; comments are ignored.  A leading ``BEGIN`` and a
            trailing ``COMMIT`` (as written by ``sqlite3 .dump``) are dropped,
            since the script already runs in a unit of work of its own.
        options: ``success_callback(count)``, ``error_callback(error)`` and
            ``progress_callback(current, total)`` are honoured.

    Returns:
        Number of statements executed, or ``None`` if an error was passed to
        ``error_callback``.

    Raises:
        ValidationError: If ``backend`` is unusable.
        ExecutionError: If a statement is rejected; the unit of work is
            rolled back.
    """
    options = options or PorterOptions()

    def work() -> int:
        target = BackendFactory.adapt(backend)
        statements = strip_transaction_wrapper(split_statements(sql))
        return ImportPipeline(target, statements, options.progress_callback).run()

    return _reported("import_sql", options, work, lambda count: (count,))


def export_sql(
    backend: ExecutionBackend | Any,
    options: PorterOptions | None = None,
) -> SQLExport | None:
    """Export the database as a SQL script.

    Args:
        backend: Backend or registered connection to export from.
        options: ``data_only``, ``structure_only``, ``table_filter``,
            ``success_callback(sql, count)`` and ``error_callback(error)``
            are honoured.

    Returns:
        :class:`~sqlporter.export.walker.SQLExport`, or ``None`` if an error
        was passed to ``error_callback``.
    """
    options = options or PorterOptions()

    def work() -> SQLExport:
        return ExportWalker(BackendFactory.adapt(backend), options).to_sql()

    return _reported("export_sql", options, work, lambda export: (export.sql, export.count))


def compile_document(
    document: Document | dict[str, Any] | str | bytes,
    options: PorterOptions | None = None,
) -> CompiledStatements:
    """Validate and compile a Document without executing it.

    Raises:
        ParseError: If ``document`` is not valid JSON or not Document-shaped.
    """
    options = options or PorterOptions()
    parsed = parse_document(document)
    return DocumentCompiler(CompilationContext.from_options(options)).compile(parsed)


def import_json(
    backend: ExecutionBackend | Any,
    document: Document | dict[str, Any] | str | bytes,
    options: PorterOptions | None = None,
) -> int | None:
    """Compile a Document to statements and execute them.

    Main statements run in one unit of work; index creation runs afterwards
    in a second one and is skipped if the main phase fails.

    Args:
        backend: Backend or registered connection to import into.
        document: Document, decoded JSON mapping or JSON text.
        options: ``batch_insert_size``, ``data_only``, ``structure_only`` and
            all three callbacks are honoured.

    Returns:
        Number of statements executed across both phases, or ``None`` if an
        error was passed to ``error_callback``.

    Raises:
        ValidationError: If ``backend`` is unusable.
        ParseError: If ``document`` is invalid; nothing is executed.
        ExecutionError: If a statement is rejected.
    """
    options = options or PorterOptions()

    def work() -> int:
        target = BackendFactory.adapt(backend)
        compiled = compile_document(document, options)
        return TwoPhaseImport(target, compiled, options.progress_callback).run()

    return _reported("import_json", options, work, lambda count: (count,))


def export_json(
    backend: ExecutionBackend | Any,
    options: PorterOptions | None = None,
) -> JSONExport | None:
    """Export the database as a Document.

    Stored ``"true"``, ``"false"``, ``"null"`` and ``"undefined"`` text is
    recovered as ``True``, ``False``, ``None`` and an omitted field.

    Args:
        backend: Backend or registered connection to export from.
        options: ``data_only``, ``structure_only``, ``table_filter``,
            ``success_callback(document, count)`` and
            ``error_callback(error)`` are honoured.

    Returns:
        :class:`~sqlporter.export.walker.JSONExport`, or ``None`` if an error
        was passed to ``error_callback``.
    """
    options = options or PorterOptions()

    def work() -> JSONExport:
        return ExportWalker(BackendFactory.adapt(backend), options).to_document()

    return _reported(
        "export_json", options, work, lambda export: (export.document, export.count)
    )


def wipe(
    backend: ExecutionBackend | Any,
    options: PorterOptions | None = None,
) -> int | None:
    """Drop every non-reserved table (restricted by ``table_filter`` if set).

    Returns:
        Number of tables dropped, or ``None`` if an error was passed to
        ``error_callback``.
    """
    options = options or PorterOptions()

    def work() -> int:
        target = BackendFactory.adapt(backend)
        drops = ExportWalker(target, options).drop_statements()
        if not drops:
            return 0
        return ImportPipeline(target, drops, options.progress_callback, phase="wipe").run()

    return _reported("wipe", options, work, lambda count: (count,))
