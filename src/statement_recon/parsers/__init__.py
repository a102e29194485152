"""Parsers for bank statement spreadsheets and ledger CSV exports."""

from .ledger_parser import LedgerCsvParser
from .statement_parser import StatementGrid, StatementParser, read_grid, scan_row

__all__ = ["LedgerCsvParser", "StatementGrid", "StatementParser", "read_grid", "scan_row"]
