"""Compilation context value object.

Packages the settings every statement builder consults into one immutable
object, built once per compile call.
"""
from __future__ import annotations

from dataclasses import dataclass

from sqlporter.schema.options import DEFAULT_BATCH_INSERT_SIZE, PorterOptions


@dataclass(frozen=True)
class CompilationContext:
    """Immutable context for a single compilation run.

    Attributes:
        batch_insert_size: Maximum rows per INSERT statement.
        include_structure: Compile ``structure`` (false for data-only).
        include_data: Compile ``data`` (false for structure-only).
    """

    batch_insert_size: int = DEFAULT_BATCH_INSERT_SIZE
    include_structure: bool = True
    include_data: bool = True

    @classmethod
    def from_options(cls, options: PorterOptions) -> CompilationContext:
        return cls(
            batch_insert_size=options.batch_insert_size,
            include_structure=not options.data_only,
            include_data=not options.structure_only,
        )
