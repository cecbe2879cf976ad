"""Sequential statement execution.

``ImportPipeline`` drains a queue of statements against an
:class:`~sqlporter.backend.base.ExecutionBackend` inside one unit of work:
statement *i + 1* is submitted only after statement *i* reported success.
The first failure stops the run, rolls the unit of work back and raises
:class:`~sqlporter.errors.ExecutionError`.

``TwoPhaseImport`` runs compiled main statements and then, in a second unit
of work, the deferred index statements.  Progress and counts are continuous
across the two phases.

State machine::

    PENDING ──run()──> RUNNING ──> SUCCEEDED
                                └─> FAILED

No retries, no timeouts and no cancellation: a run goes to completion or to
its first failure.
"""
from __future__ import annotations

from collections import deque
from collections.abc import Callable, Iterable
from enum import Enum
from functools import partial
from typing import Any

import structlog

from sqlporter.backend.base import ExecutionBackend, ResultRow
from sqlporter.compile.base import CompiledStatements
from sqlporter.errors import ExecutionError

logger = structlog.get_logger(__name__)

ProgressCallback = Callable[[int, int], Any]


class PipelineState(str, Enum):
    PENDING = "pending"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class ImportPipeline:
    """Executes statements strictly in order, one at a time.

    Args:
        backend: Backend to execute against.
        statements: Statements in execution order.
        progress_callback: Called as ``(current, total)`` after each success.
        offset: Statements already executed by earlier phases of the same
            call; added to progress and error counts.
        total: Total reported to ``progress_callback``; defaults to
            ``offset`` plus the number of statements here.
        phase: Label used in log events.
    """

    def __init__(
        self,
        backend: ExecutionBackend,
        statements: Iterable[str],
        progress_callback: ProgressCallback | None = None,
        *,
        offset: int = 0,
        total: int | None = None,
        phase: str = "main",
    ) -> None:
        self._backend = backend
        self._queue: deque[str] = deque(statements)
        self._count = len(self._queue)
        self._progress = progress_callback
        self._offset = offset
        self._total = total if total is not None else offset + self._count
        self._phase = phase
        self._failure: ExecutionError | None = None
        self.executed = 0
        self.state = PipelineState.PENDING

    def __len__(self) -> int:
        return self._count

    def run(self) -> int:
        """Execute every statement; return how many were executed.

        Raises:
            ExecutionError: On the first statement the backend rejects, or if
                the unit of work cannot be opened or committed.
            RuntimeError: If this pipeline has already been run.
        """
        if self.state is not PipelineState.PENDING:
            raise RuntimeError(f"Pipeline already {self.state.value}.")
        self.state = PipelineState.RUNNING
        logger.info(
            "phase_started",
            phase=self._phase,
            backend=self._backend.name,
            statements=len(self),
        )

        try:
            with self._backend.unit_of_work():
                while self._queue:
                    statement = self._queue.popleft()
                    self._backend.execute(
                        statement, self._on_success, partial(self._on_error, statement)
                    )
                    if self._failure is not None:
                        raise self._failure
        except self._backend.error_types as exc:
            self.state = PipelineState.FAILED
            raise ExecutionError(
                f"Failed to complete {self._phase} unit of work: {exc}",
                statement="",
                detail=str(exc),
                executed=self._offset + self.executed,
            ) from exc
        except BaseException:
            self.state = PipelineState.FAILED
            raise

        self.state = PipelineState.SUCCEEDED
        logger.info(
            "phase_finished",
            phase=self._phase,
            backend=self._backend.name,
            executed=self.executed,
        )
        return self.executed

    def _on_success(self, rows: list[ResultRow]) -> None:
        self.executed += 1
        if self._progress is not None:
            self._progress(self._offset + self.executed, self._total)

    def _on_error(self, statement: str, exc: BaseException) -> None:
        executed = self._offset + self.executed
        self._failure = ExecutionError(
            f"Failed to execute statement {executed + 1}: {exc}",
            statement=statement,
            detail=str(exc),
            executed=executed,
        )
        self._failure.__cause__ = exc


class TwoPhaseImport:
    """Runs compiled main statements, then deferred index statements.

    The deferred phase is a separate unit of work and is never attempted
    when the main phase fails.

    Args:
        backend: Backend to execute against.
        compiled: Output of :class:`~sqlporter.compile.builder.DocumentCompiler`.
        progress_callback: Called as ``(current, total)`` with ``total``
            covering both phases.
    """

    def __init__(
        self,
        backend: ExecutionBackend,
        compiled: CompiledStatements,
        progress_callback: ProgressCallback | None = None,
    ) -> None:
        self._backend = backend
        self._compiled = compiled
        self._progress = progress_callback

    def run(self) -> int:
        total = self._compiled.total
        executed = ImportPipeline(
            self._backend, self._compiled.main, self._progress, total=total
        ).run()
        if self._compiled.deferred:
            executed += ImportPipeline(
                self._backend,
                self._compiled.deferred,
                self._progress,
                offset=executed,
                total=total,
                phase="deferred",
            ).run()
        return executed
