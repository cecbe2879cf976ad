"""sqlporter schema models: Document and PorterOptions."""
from sqlporter.schema.document import (
    Data,
    Document,
    Row,
    Scalar,
    Structure,
    UpdateEntry,
    parse_document,
)
from sqlporter.schema.options import DEFAULT_BATCH_INSERT_SIZE, PorterOptions

__all__ = [
    "Data",
    "Document",
    "Row",
    "Scalar",
    "Structure",
    "UpdateEntry",
    "parse_document",
    "DEFAULT_BATCH_INSERT_SIZE",
    "PorterOptions",
]
