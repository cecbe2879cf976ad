"""Test fixtures: sample Document JSON, sample SQL dump, and a recording backend."""

from __future__ import annotations

import json
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any

from sqlporter.backend.base import ExecutionBackend, ResultRow
from sqlporter.schema.document import Document

_FIXTURES_DIR = Path(__file__).parent


def load_document_json() -> str:
    """Return the raw text of the canonical sample Document."""
    return (_FIXTURES_DIR / "document.json").read_text()


def load_document() -> Document:
    """Load the canonical sample Document from document.json."""
    return Document.model_validate(json.loads(load_document_json()))


def load_dump() -> str:
    """Return the sample SQL dump (comments, quoted semicolons, no final ``;``)."""
    return (_FIXTURES_DIR / "dump.sql").read_text()


class StatementRejected(Exception):
    """Stands in for a driver error in :class:`RecordingBackend`."""


class RecordingBackend(ExecutionBackend):
    """In-memory backend that records statements and transaction events.

    Args:
        fail_on: Any statement containing this text is rejected.
        rows: Rows returned for statements containing a given text.
    """

    error_types = (StatementRejected,)

    def __init__(
        self,
        fail_on: str | None = None,
        rows: dict[str, list[dict[str, Any]]] | None = None,
    ) -> None:
        self.fail_on = fail_on
        self.rows = rows or {}
        self.executed: list[str] = []
        self.events: list[str] = []

    @contextmanager
    def unit_of_work(self) -> Iterator[RecordingBackend]:
        self.events.append("begin")
        try:
            yield self
        except BaseException:
            self.events.append("rollback")
            raise
        self.events.append("commit")

    def run(self, statement: str) -> list[ResultRow]:
        if self.fail_on is not None and self.fail_on in statement:
            raise StatementRejected(f"rejected: {statement}")
        self.executed.append(statement)
        for marker, rows in self.rows.items():
            if marker in statement:
                return [dict(row) for row in rows]
        return []
