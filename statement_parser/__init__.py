"""
Bank statement PDF to transaction list.

Clusters positioned text tokens from a statement's PDF text layer into table rows,
calibrates column bands from the header row of each page block and extracts one
validated transaction per data row.
"""

__version__ = "1.0.0"

from .core.runner import parse_statement, parse_tokens, StatementParser
from .core.detectors import detect_pattern, get_pattern, list_patterns, PatternRegistry
from .core.errors import StatementParseError, StructureNotFound, NoValidRows, UnknownPattern
from .core.export import to_csv, to_cashew_csv
from .models.schema import Token, ColumnBand, ColumnLayout, Transaction, StatementData

__all__ = [
    "parse_statement",
    "parse_tokens",
    "StatementParser",
    "detect_pattern",
    "get_pattern",
    "list_patterns",
    "PatternRegistry",
    "StatementParseError",
    "StructureNotFound",
    "NoValidRows",
    "UnknownPattern",
    "to_csv",
    "to_cashew_csv",
    "Token",
    "ColumnBand",
    "ColumnLayout",
    "Transaction",
    "StatementData"
]
