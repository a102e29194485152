from datetime import date, datetime
from decimal import Decimal

import pytest

from statement_recon.config import ColumnMappingConfig, ReconConfig
from statement_recon.parsers.statement_parser import StatementParser, scan_row
from statement_recon.utils.exceptions import (
    InvalidFileFormatError,
    NoTransactionsFoundError,
)

from conftest import workbook_bytes, xls_bytes


class TestScanRow:
    def test_finds_all_three_signals(self):
        txn_date, amount, description = scan_row(
            ["15/01/2026", "PAGAMENTO POS", "-45,00", "EUR"]
        )
        assert txn_date == date(2026, 1, 15)
        assert amount == Decimal("-45.00")
        assert description == "PAGAMENTO POS"

    def test_order_of_columns_does_not_matter(self):
        txn_date, amount, description = scan_row(["EUR", "-45,00", "PAGAMENTO POS", "15/01/2026"])
        assert txn_date == date(2026, 1, 15)
        assert amount == Decimal("-45.00")
        assert description == "PAGAMENTO POS"

    def test_first_amount_wins(self):
        _, amount, _ = scan_row(["15/01/2026", "-45,00", "1200,00"])
        assert amount == Decimal("-45.00")

    def test_second_date_cell_takes_description_slot(self):
        # Value-date columns are not skipped: the first remaining text cell is the description
        _, _, description = scan_row(["15/01/2026", "16/01/2026", "PAGAMENTO POS", "-45,00"])
        assert description == "16/01/2026"

    def test_serial_date_cell(self):
        txn_date, amount, _ = scan_row([46037, -45.5])
        assert txn_date == date(2026, 1, 15)
        assert amount == Decimal("-45.5")

    def test_zero_cells_are_ignored(self):
        txn_date, amount, _ = scan_row(["15/01/2026", 0, "0,00"])
        assert txn_date == date(2026, 1, 15)
        assert amount is None


class TestStatementParser:
    def test_extracts_transactions_in_row_order(self, config, statement_rows):
        parser = StatementParser(config)
        txns = parser.parse_bytes(workbook_bytes(statement_rows), run_timestamp=1700000000000)

        assert [t.date for t in txns] == [date(2026, 1, 15), date(2026, 1, 16)]
        assert [t.amount for t in txns] == [Decimal("-45.00"), Decimal("2100.50")]
        assert [t.description for t in txns] == [
            "PAGAMENTO POS SUPERMERCATO",
            "BONIFICO STIPENDIO",
        ]

    def test_ids_are_unique_within_a_run(self, config, statement_rows):
        txns = StatementParser(config).parse_bytes(
            workbook_bytes(statement_rows), run_timestamp=1700000000000
        )
        ids = [t.id for t in txns]
        assert len(set(ids)) == len(ids)
        assert all(i.startswith("bank_") and i.endswith("_1700000000000") for i in ids)

    def test_raw_row_is_kept(self, config, statement_rows):
        txns = StatementParser(config).parse_bytes(workbook_bytes(statement_rows))
        assert "PAGAMENTO POS SUPERMERCATO" in txns[0].raw

    def test_zero_amount_row_is_skipped(self, config):
        rows = [["20/01/2026", "COMMISSIONI", "0", "EUR"]]
        assert StatementParser(config).parse_bytes(workbook_bytes(rows)) == []

    def test_day_month_convention(self, config):
        rows = [["05/03/2026", "Spesa", "-10,00"]]
        txns = StatementParser(config).parse_bytes(workbook_bytes(rows))
        assert txns[0].date == date(2026, 3, 5)

    def test_native_date_and_number_cells(self, config):
        rows = [[datetime(2026, 1, 15), "Farmacia", -23.4]]
        txns = StatementParser(config).parse_bytes(workbook_bytes(rows))
        assert len(txns) == 1
        assert txns[0].date == date(2026, 1, 15)
        assert txns[0].amount == Decimal("-23.4")

    def test_default_description(self, config):
        rows = [["15/01/2026", "-45,00", "EUR"]]
        txns = StatementParser(config).parse_bytes(workbook_bytes(rows))
        assert txns[0].description == "Bank transaction"

    def test_only_first_sheet_is_read(self, config):
        data = workbook_bytes(
            [["15/01/2026", "Spesa", "-10,00"]],
            extra_sheets={"Other": [["16/01/2026", "Ignored", "-99,00"]]},
        )
        txns = StatementParser(config).parse_bytes(data)
        assert [t.description for t in txns] == ["Spesa"]

    def test_empty_result_is_not_an_error(self, config):
        rows = [["Lista operazioni"], ["Nessun movimento nel periodo"]]
        assert StatementParser(config).parse_bytes(workbook_bytes(rows)) == []

    def test_require_transactions_raises_no_transactions_found(self, config):
        rows = [["Lista operazioni"]]
        with pytest.raises(NoTransactionsFoundError):
            StatementParser(config).parse_bytes(workbook_bytes(rows), require_transactions=True)

    def test_corrupt_file_raises_invalid_format(self, config):
        with pytest.raises(InvalidFileFormatError):
            StatementParser(config).parse_bytes(b"this is not a spreadsheet")

    def test_empty_and_corrupt_are_distinguishable(self, config):
        assert not issubclass(NoTransactionsFoundError, InvalidFileFormatError)
        assert not issubclass(InvalidFileFormatError, NoTransactionsFoundError)

    def test_parses_identically_twice(self, config, statement_rows):
        parser = StatementParser(config)
        data = workbook_bytes(statement_rows)
        first = parser.parse_bytes(data, run_timestamp=1)
        second = parser.parse_bytes(data, run_timestamp=1)
        assert first == second

    def test_parse_file(self, config, statement_rows, tmp_path):
        path = tmp_path / "statement.xlsx"
        path.write_bytes(workbook_bytes(statement_rows))
        assert len(StatementParser(config).parse_file(path)) == 2

    def test_missing_file_raises_invalid_format(self, config, tmp_path):
        with pytest.raises(InvalidFileFormatError):
            StatementParser(config).parse_file(tmp_path / "missing.xlsx")

    def test_serials_follow_1904_workbook_epoch(self, config):
        data = workbook_bytes([[44575, "Spesa", "-10,00"]], date1904=True)
        txns = StatementParser(config).parse_bytes(data)
        assert [t.date for t in txns] == [date(2026, 1, 15)]

    def test_serials_default_to_1900_epoch(self, config):
        txns = StatementParser(config).parse_bytes(workbook_bytes([[46037, "Spesa", "-10,00"]]))
        assert [t.date for t in txns] == [date(2026, 1, 15)]

    def test_legacy_xls_statement(self, config, statement_rows):
        txns = StatementParser(config).parse_bytes(xls_bytes(statement_rows))

        assert [t.date for t in txns] == [date(2026, 1, 15), date(2026, 1, 16)]
        assert [t.amount for t in txns] == [Decimal("-45.00"), Decimal("2100.50")]
        assert txns[0].description == "PAGAMENTO POS SUPERMERCATO"


class TestFixedColumnMode:
    @pytest.fixture
    def fixed_config(self):
        config = ReconConfig()
        config.extraction.mode = "fixed_columns"
        config.extraction.column_mapping = ColumnMappingConfig(
            date_column=0,
            description_column=2,
            amount_column=3,
            balance_column=4,
            skip_rows=1,
        )
        return config

    def test_reads_mapped_columns(self, fixed_config):
        rows = [
            ["Data", "Valuta", "Descrizione", "Importo", "Saldo"],
            ["15/01/2026", "16/01/2026", "PAGAMENTO POS", "-45,00", "955,00"],
            ["16/01/2026", "16/01/2026", None, "100", "1055,00"],
        ]
        txns = StatementParser(fixed_config).parse_bytes(workbook_bytes(rows))

        assert len(txns) == 2
        assert txns[0].description == "PAGAMENTO POS"
        assert txns[0].amount == Decimal("-45.00")
        assert txns[0].balance == Decimal("955.00")
        assert txns[1].description == "Bank transaction"

    def test_skips_rows_without_date_or_amount(self, fixed_config):
        rows = [
            ["Data", "Valuta", "Descrizione", "Importo", "Saldo"],
            ["15/01/2026", None, "COMMISSIONI", "0", "955,00"],
            ["Totale", None, None, "-45,00", None],
        ]
        assert StatementParser(fixed_config).parse_bytes(workbook_bytes(rows)) == []

    def test_mapped_serial_date_uses_1904_epoch(self, fixed_config):
        rows = [
            ["Data", "Valuta", "Descrizione", "Importo", "Saldo"],
            [44575, None, "PAGAMENTO POS", "-45,00", None],
        ]
        data = workbook_bytes(rows, date1904=True)
        txns = StatementParser(fixed_config).parse_bytes(data)
        assert [t.date for t in txns] == [date(2026, 1, 15)]
