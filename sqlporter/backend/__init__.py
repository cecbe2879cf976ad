"""sqlporter execution backends."""
from sqlporter.backend.base import ExecutionBackend, ResultRow
from sqlporter.backend.registry import BackendFactory
from sqlporter.backend.sqlite import SQLiteBackend

__all__ = [
    "ExecutionBackend",
    "ResultRow",
    "BackendFactory",
    "SQLiteBackend",
]
