"""
Statement Ledger Package

Turns bank statements from any bank (PDF, CSV, XLSX/XLS) into a normalized,
signed transaction ledger without any external inference service.
"""

from .converter import StatementConverter, parse_statement
from .errors import ColumnMappingError, StatementError, UnreadableDocumentError, UnsupportedFormatError
from .models import Currency, DocumentFormat, ParsedResult, Transaction, TransactionType

__version__ = "1.0.0"
__author__ = "Statement Ledger Team"

__all__ = [
    "StatementConverter",
    "parse_statement",
    "ParsedResult",
    "Transaction",
    "TransactionType",
    "Currency",
    "DocumentFormat",
    "StatementError",
    "UnsupportedFormatError",
    "UnreadableDocumentError",
    "ColumnMappingError",
]
