"""Utility modules."""

from .exceptions import (
    ReconciliationError,
    InvalidFileFormatError,
    NoTransactionsFoundError,
    LedgerParseError,
    ConfigurationError,
    InvalidConfigurationError,
    ValidationError,
    ReportGenerationError,
)
from .logging_config import setup_logging

__all__ = [
    "ReconciliationError",
    "InvalidFileFormatError",
    "NoTransactionsFoundError",
    "LedgerParseError",
    "ConfigurationError",
    "InvalidConfigurationError",
    "ValidationError",
    "ReportGenerationError",
    "setup_logging",
]
