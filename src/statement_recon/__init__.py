"""Bank statement extraction and ledger reconciliation."""

__version__ = "0.1.0"
