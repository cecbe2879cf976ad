"""Splits raw SQL text into individual statements.

:class:`StatementTokenizer` is a single-pass state machine over the states
normal, single-quoted, double-quoted, back-ticked, line comment and block
comment.  Comments are dropped and line breaks outside literals become
spaces; text inside a literal is copied verbatim, so neither ``;`` nor
``--`` nor ``/*`` inside quotes has any effect.

Unterminated quotes or comments are not reported: the rest of the input is
treated as part of the open literal (or discarded, for a comment).
"""
from __future__ import annotations

import re
from collections.abc import Iterator
from enum import Enum


class _State(Enum):
    NORMAL = "normal"
    SINGLE_QUOTE = "'"
    DOUBLE_QUOTE = '"'
    BACKTICK = "`"
    LINE_COMMENT = "--"
    BLOCK_COMMENT = "/*"


_QUOTE_STATES = {
    "'": _State.SINGLE_QUOTE,
    '"': _State.DOUBLE_QUOTE,
    "`": _State.BACKTICK,
}

_LINE_BREAKS = "\r\n"


class StatementTokenizer:
    """Iterates over the statements in a SQL text.

    Each call to ``iter()`` starts a fresh scan, so one tokenizer can be
    consumed any number of times.  Yielded statements are trimmed, never
    empty, and carry no terminating semicolon.

    e.g. ``"CREATE TABLE t(a); -- note\\nINSERT INTO t VALUES ('x;y')"``
    yields ``"CREATE TABLE t(a)"`` and ``"INSERT INTO t VALUES ('x;y')"``.
    """

    def __init__(self, text: str) -> None:
        self.text = text

    def __iter__(self) -> Iterator[str]:
        text = self.text
        length = len(text)
        state = _State.NORMAL
        current: list[str] = []
        pos = 0

        while pos < length:
            char = text[pos]
            pair = text[pos : pos + 2]

            if state is _State.NORMAL:
                if pair == "--":
                    state = _State.LINE_COMMENT
                    pos += 2
                    continue
                if pair == "/*":
                    state = _State.BLOCK_COMMENT
                    pos += 2
                    continue
                if char == ";":
                    statement = "".join(current).strip()
                    if statement:
                        yield statement
                    current = []
                elif char in _LINE_BREAKS:
                    current.append(" ")
                else:
                    current.append(char)
                    state = _QUOTE_STATES.get(char, _State.NORMAL)

            elif state is _State.LINE_COMMENT:
                if char in _LINE_BREAKS:
                    current.append(" ")
                    state = _State.NORMAL

            elif state is _State.BLOCK_COMMENT:
                if pair == "*/":
                    current.append(" ")
                    state = _State.NORMAL
                    pos += 2
                    continue

            else:
                # Inside a literal; a doubled quote closes and immediately
                # reopens, which leaves the literal intact.
                current.append(char)
                if char == state.value:
                    state = _State.NORMAL

            pos += 1

        leftover = "".join(current).strip()
        if leftover:
            yield leftover

    def __repr__(self) -> str:
        return f"StatementTokenizer({len(self.text)} chars)"


def split_statements(text: str) -> list[str]:
    """Return every statement in ``text`` as a list."""
    return list(StatementTokenizer(text))


_BEGIN = re.compile(
    r"^BEGIN(?:\s+(?:DEFERRED|IMMEDIATE|EXCLUSIVE))?(?:\s+TRANSACTION)?$", re.IGNORECASE
)
_COMMIT = re.compile(r"^(?:COMMIT|END)(?:\s+TRANSACTION)?$", re.IGNORECASE)


def strip_transaction_wrapper(statements: list[str]) -> list[str]:
    """Drop a leading ``BEGIN`` and a trailing ``COMMIT`` / ``END``.

    Scripts written by ``sqlite3 .dump`` (or ``Connection.iterdump()``) wrap
    their content in a transaction of their own, which cannot be opened
    inside the unit of work an import already runs in.
    """
    start, end = 0, len(statements)
    if end and _BEGIN.match(statements[0]):
        start = 1
    if end > start and _COMMIT.match(statements[-1]):
        end -= 1
    return statements[start:end]
