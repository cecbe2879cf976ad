"""Per-call options shared by every sqlporter operation.

Runtime behaviour is configured entirely in :class:`PorterOptions`.  Every
field is optional; ``PorterOptions()`` reproduces the defaults.

Example, a bulk load with progress reporting::

    options = PorterOptions(
        batch_insert_size=500,
        progress_callback=lambda done, total: print(f"{done}/{total}"),
    )
    sqlporter.import_json(conn, document_json, options)
"""

from __future__ import annotations

import dataclasses
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from sqlporter.errors import InvalidOptionError

#: Rows per INSERT statement when the caller does not choose.
DEFAULT_BATCH_INSERT_SIZE = 250


@dataclass
class PorterOptions:
    """Options recognised by the import, export and wipe operations.

    Attributes:
        success_callback: Called once the operation completes.  Imports and
            wipes pass the executed statement count; exports pass the exported
            payload and its statement count.
        error_callback: Called with the :class:`~sqlporter.errors.SQLPorterError`
            that ended the operation.  When omitted, the error is raised.
        progress_callback: Called as ``(current, total)`` after every
            successfully executed statement.
        data_only: Skip table structure (export and compile).
        structure_only: Skip row data (export and compile).
        table_filter: Restrict export and wipe to these table names.
            ``None`` means every non-reserved table.
        batch_insert_size: Maximum rows compiled into one INSERT statement.
            ``1`` disables batching.
    """

    success_callback: Callable[..., Any] | None = None
    error_callback: Callable[[Exception], Any] | None = None
    progress_callback: Callable[[int, int], Any] | None = None
    data_only: bool = False
    structure_only: bool = False
    table_filter: list[str] | None = field(default=None)
    batch_insert_size: int = DEFAULT_BATCH_INSERT_SIZE

    def __post_init__(self) -> None:
        if isinstance(self.batch_insert_size, bool) or not isinstance(
            self.batch_insert_size, int
        ):
            raise InvalidOptionError(
                "batch_insert_size", self.batch_insert_size, "must be an integer"
            )
        if self.batch_insert_size < 1:
            raise InvalidOptionError(
                "batch_insert_size", self.batch_insert_size, "must be at least 1"
            )
        if self.data_only and self.structure_only:
            raise InvalidOptionError(
                "structure_only", True, "cannot be combined with data_only"
            )
        if self.table_filter is not None:
            self.table_filter = list(self.table_filter)

    def merged(self, **overrides: Any) -> PorterOptions:
        """Return a copy of these options with ``overrides`` applied."""
        return dataclasses.replace(self, **overrides)

    def includes_table(self, name: str) -> bool:
        """Whether ``name`` passes :attr:`table_filter`."""
        return self.table_filter is None or name in self.table_filter
