"""Custom exceptions for the statement reconciliation engine."""


class ReconciliationError(Exception):
    """Base exception for reconciliation errors."""

    pass


class InvalidFileFormatError(ReconciliationError):
    """The supplied bytes cannot be opened as a spreadsheet workbook."""

    pass


class NoTransactionsFoundError(ReconciliationError):
    """The statement was read, but no row yielded both a date and an amount."""

    pass


class LedgerParseError(ReconciliationError):
    """Error parsing a ledger CSV export."""

    pass


class ConfigurationError(ReconciliationError):
    """Error in configuration."""

    pass


class InvalidConfigurationError(ConfigurationError):
    """Matching options outside their allowed range."""

    pass


class ValidationError(ReconciliationError):
    """Data validation error."""

    pass


class ReportGenerationError(ReconciliationError):
    """Error generating Excel report."""

    pass
