"""Shared fixtures for the statement reconciliation tests."""

from datetime import date
from decimal import Decimal
import io

import openpyxl
from openpyxl.utils.datetime import CALENDAR_MAC_1904
import pytest

from statement_recon.config import ReconConfig
from statement_recon.models.transaction import BankTransaction, LedgerTransaction


def workbook_bytes(rows, extra_sheets=None, date1904=False):
    """Build an xlsx file in memory; None cells are left empty."""
    wb = openpyxl.Workbook()
    if date1904:
        wb.epoch = CALENDAR_MAC_1904
    ws = wb.active
    ws.title = "Movimenti"
    for r, row in enumerate(rows, start=1):
        for c, value in enumerate(row, start=1):
            if value is not None:
                ws.cell(row=r, column=c, value=value)
    for name, sheet_rows in (extra_sheets or {}).items():
        extra = wb.create_sheet(name)
        for sheet_row in sheet_rows:
            extra.append(sheet_row)
    buf = io.BytesIO()
    wb.save(buf)
    wb.close()
    return buf.getvalue()


def bank_txn(txn_id, on, amount, description="Bank transaction"):
    return BankTransaction(id=txn_id, date=on, amount=Decimal(amount), description=description)


def ledger_txn(txn_id, on, amount, description=""):
    return LedgerTransaction(id=txn_id, amount=Decimal(amount), date=on, description=description)


@pytest.fixture
def config():
    return ReconConfig()


@pytest.fixture
def statement_rows():
    """A typical Italian bank export: header block, transactions, footer."""
    return [
        ["Lista operazioni", None, None, None],
        ["Conto", "IT60X0542811101000000123456", None, None],
        [None, None, None, None],
        ["Data", "Descrizione", "Importo", "Divisa"],
        ["15/01/2026", "PAGAMENTO POS SUPERMERCATO", "-45,00", "EUR"],
        ["16/01/2026", "BONIFICO STIPENDIO", "2100,50", "EUR"],
        ["20/01/2026", "COMMISSIONI", "0", "EUR"],
        ["Saldo finale", None, "2055,50", "EUR"],
    ]


@pytest.fixture
def sample_day():
    return date(2026, 1, 15)


def xls_bytes(rows):
    """Build a legacy .xls file in memory with xlwt."""
    xlwt = pytest.importorskip("xlwt")
    wb = xlwt.Workbook()
    ws = wb.add_sheet("Movimenti")
    for r, row in enumerate(rows):
        for c, value in enumerate(row):
            if value is not None:
                ws.write(r, c, value)
    buf = io.BytesIO()
    wb.save(buf)
    return buf.getvalue()
