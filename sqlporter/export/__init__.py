"""sqlporter export layer: database → SQL script or Document."""
from sqlporter.export.walker import (
    CatalogEntry,
    ExportWalker,
    JSONExport,
    SQLExport,
    parse_create_table,
)

__all__ = [
    "CatalogEntry",
    "ExportWalker",
    "JSONExport",
    "SQLExport",
    "parse_create_table",
]
