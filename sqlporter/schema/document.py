"""Pydantic models for the interchange Document.

A Document describes table shape, other schema statements, and row changes::

    {
      "structure": {"tables": {"Artist": "([Id] PRIMARY KEY,[Title])"},
                    "otherSQL": ["CREATE INDEX ..."]},
      "data": {"inserts": {"Artist": [{"Id": 1, "Title": "Fred"}]},
               "updates": {"Artist": [{"set": {"Title": "Bob"},
                                       "where": {"Id": 1}}]},
               "deletes": {"Artist": [{"Id": 2}]}}
    }

Every key is optional.  :func:`parse_document` is the only way untrusted
input becomes a :class:`Document`; it raises
:class:`~sqlporter.errors.ParseError` before any statement is compiled.
"""
from __future__ import annotations

import json
from typing import Annotated, Any

from pydantic import BaseModel, ConfigDict, Field

from sqlporter.errors import ParseError

_FORBID = ConfigDict(extra="forbid")

#: A single JSON-representable column value.
Scalar = bool | int | float | str | None

#: One row: field name -> value.  Must name at least one field.
Row = Annotated[dict[str, Scalar], Field(min_length=1)]


class Structure(BaseModel):
    """Table definitions and other schema statements.

    Attributes:
        tables: Table name -> column-definition clause, in creation order.
        otherSQL: Raw statements unrelated to table shape (indexes, views,
            triggers), in execution order.
    """

    model_config = _FORBID

    tables: dict[str, str] = Field(default_factory=dict)
    otherSQL: list[str] = Field(default_factory=list)


class UpdateEntry(BaseModel):
    """One UPDATE: ``{"set": {...}, "where": {...}}``.

    An empty ``where`` updates every row of the table.
    """

    model_config = _FORBID

    set: dict[str, Scalar] = Field(min_length=1)
    where: dict[str, Scalar] = Field(default_factory=dict)


class Data(BaseModel):
    """Row changes keyed by table name."""

    model_config = _FORBID

    inserts: dict[str, list[Row]] = Field(default_factory=dict)
    updates: dict[str, list[UpdateEntry]] = Field(default_factory=dict)
    deletes: dict[str, list[Row]] = Field(default_factory=dict)


class Document(BaseModel):
    """Top-level interchange document."""

    model_config = _FORBID

    structure: Structure | None = None
    data: Data | None = None

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON-ready form, omitting sections that were not set.

        ``None`` row values are kept: they are SQL NULLs, not missing keys.
        """
        out: dict[str, Any] = {}
        if self.structure is not None:
            out["structure"] = self.structure.model_dump()
        if self.data is not None:
            out["data"] = {
                section: entries
                for section, entries in self.data.model_dump().items()
                if entries or section == "inserts"
            }
        return out

    def to_json(self, indent: int | None = None) -> str:
        """Serialise :meth:`to_dict` to a JSON string."""
        return json.dumps(self.to_dict(), indent=indent)


def parse_document(source: Document | dict[str, Any] | str | bytes) -> Document:
    """Parse ``source`` into a validated :class:`Document`.

    Args:
        source: A Document, a decoded JSON mapping, or raw JSON text.

    Returns:
        The validated Document.

    Raises:
        ParseError: If ``source`` is not valid JSON or not Document-shaped.
    """
    if isinstance(source, Document):
        return source

    raw: str | None = None
    if isinstance(source, (str, bytes)):
        if isinstance(source, bytes):
            try:
                source = source.decode("utf-8")
            except UnicodeDecodeError as exc:
                raise ParseError(f"Invalid JSON: {exc}") from exc
        raw = source
        try:
            source = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise ParseError(f"Invalid JSON: {exc}", raw=raw) from exc

    if not isinstance(source, dict):
        raise ParseError(
            f"Document must be a JSON object, got {type(source).__name__}.",
            raw=raw,
        )

    try:
        return Document.model_validate(source)
    except Exception as exc:
        raise ParseError(f"Document structure is invalid: {exc}", raw=raw) from exc
