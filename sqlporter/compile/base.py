"""Compiler output: CompiledStatements."""
from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field

#: Separator placed after every statement when statements are rendered as text.
STATEMENT_SEPARATOR = ";\n"


@dataclass
class CompiledStatements:
    """The output of compiling a Document.

    Attributes:
        main: Table structure, non-index schema statements, inserts, updates
            and deletes, in execution order.
        deferred: Index-creation statements, run after ``main`` has
            succeeded, in a separate unit of work.
    """

    main: list[str] = field(default_factory=list)
    deferred: list[str] = field(default_factory=list)

    @property
    def total(self) -> int:
        """Number of statements across both groups."""
        return len(self.main) + len(self.deferred)

    def __iter__(self) -> Iterator[str]:
        yield from self.main
        yield from self.deferred

    def to_sql(self) -> str:
        """Render every statement as one SQL script (main, then deferred)."""
        return "".join(f"{statement}{STATEMENT_SEPARATOR}" for statement in self)
