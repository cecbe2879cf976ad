"""Value and identifier escaping.

Values are embedded as single-quoted literals with quotes doubled.
Identifiers are wrapped in back-ticks only when they contain a character
outside ``[A-Za-z0-9]`` (or start with a digit), so ``Artist`` stays bare
while ``track_id`` becomes ```track_id```.  :func:`unescape_identifier`
reverses :func:`escape_identifier` exactly and also accepts the other SQLite
delimiters (``"name"`` and ``[name]``) that appear in catalog text.
"""
from __future__ import annotations

import re
from typing import Any

from sqlporter.schema.document import Scalar

_BARE_IDENTIFIER = re.compile(r"[A-Za-z][A-Za-z0-9]*")

# Prefix SQLite reserves for its own tables (sqlite_sequence, sqlite_stat1, ...).
_ENGINE_PREFIX = "sqlite_"
# Marker used by auxiliary/shadow tables (e.g. full-text index internals).
_INTERNAL_MARKER = "__"

_DELIMITERS = {"`": "`", '"': '"', "[": "]"}


class _Absent:
    """Marker for a stored value that recovers to "no value at all"."""

    _instance: _Absent | None = None

    def __new__(cls) -> _Absent:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "ABSENT"

    def __bool__(self) -> bool:
        return False


#: Returned by :func:`recover_typed_value` for the stored text ``"undefined"``.
ABSENT = _Absent()


def sanitize_value(value: Scalar | _Absent) -> str | None:
    """Return ``value`` as text safe to place between single quotes.

    ``None`` and :data:`ABSENT` return ``None`` (rendered as SQL ``NULL``),
    which is distinct from the string ``"null"``.  Booleans become
    ``"true"`` / ``"false"`` so :func:`recover_typed_value` restores them.
    """
    if value is None or value is ABSENT:
        return None
    if isinstance(value, bool):
        text = "true" if value else "false"
    else:
        text = str(value)
    return text.replace("'", "''")


def sql_literal(value: Scalar | _Absent) -> str:
    """Render ``value`` as a complete SQL literal: ``'text'`` or ``NULL``."""
    sanitized = sanitize_value(value)
    return "NULL" if sanitized is None else f"'{sanitized}'"


def escape_identifier(name: str) -> str:
    """Delimit ``name`` with back-ticks if it needs delimiting."""
    if _BARE_IDENTIFIER.fullmatch(name):
        return name
    escaped = name.replace("`", "``")
    return f"`{escaped}`"


def unescape_identifier(token: str) -> str:
    """Strip identifier delimiters from ``token`` if present."""
    token = token.strip()
    if len(token) >= 2:
        close = _DELIMITERS.get(token[0])
        if close is not None and token[-1] == close:
            inner = token[1:-1]
            if close != "]":
                inner = inner.replace(close * 2, close)
            return inner
    return token


def is_reserved_table(name: str) -> bool:
    """Whether ``name`` is a storage-engine-internal or auxiliary table."""
    return name.lower().startswith(_ENGINE_PREFIX) or _INTERNAL_MARKER in name


def recover_typed_value(stored: Any) -> Scalar | _Absent:
    """Recover the caller's intended type from a value stored as text.

    ``"true"`` / ``"false"`` become booleans, ``"null"`` becomes ``None`` and
    ``"undefined"`` becomes :data:`ABSENT`; everything else is returned
    unchanged.  Blob values are decoded as UTF-8.
    """
    if isinstance(stored, bytes):
        stored = stored.decode("utf-8", errors="replace")
    if not isinstance(stored, str):
        return stored
    if stored == "true":
        return True
    if stored == "false":
        return False
    if stored == "null":
        return None
    if stored == "undefined":
        return ABSENT
    return stored
