"""sqlporter compilation layer: SQL text and Documents → statements."""
from sqlporter.compile.base import STATEMENT_SEPARATOR, CompiledStatements
from sqlporter.compile.builder import DocumentCompiler
from sqlporter.compile.context import CompilationContext
from sqlporter.compile.tokenizer import (
    StatementTokenizer,
    split_statements,
    strip_transaction_wrapper,
)

__all__ = [
    "STATEMENT_SEPARATOR",
    "CompiledStatements",
    "CompilationContext",
    "DocumentCompiler",
    "StatementTokenizer",
    "split_statements",
    "strip_transaction_wrapper",
]
