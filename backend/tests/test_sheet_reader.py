"""
Unit tests for the employee sheet reader.
Tests row mapping, cell coercion, malformed rows, and fetch errors.
"""

import pytest
from unittest.mock import MagicMock, Mock

from lettergen.services.sheet_reader import (
    GoogleSheetsTable,
    MalformedRowError,
    SheetReadError,
    WorkbookTable,
    _cell_to_str,
    build_record_index,
    fetch_records,
)


HEADER = [
    "Employee ID", "Preferred Name", "Email", "Department", "Base Currency",
    "Base Pay", "Change Base Pay Request", "Raise Effective Date",
    "Stock Quantity", "Vesting Date", "Bonus Structure Change", "Bonus Effective Date",
]


def _make_row(
    employee_id="E-001",
    name="Jane Doe",
    email="jane@example.com",
    department="Engineering",
    base_currency="USD",
    base_pay="100000",
    change_base_pay="110000",
    raise_date="2026-01-01",
    stock="500",
    vesting="2027-01-01",
    bonus_change="10% target",
    bonus_date="2026-04-01",
) -> list:
    return [
        employee_id, name, email, department, base_currency, base_pay,
        change_base_pay, raise_date, stock, vesting, bonus_change, bonus_date,
    ]


def _table_returning(rows):
    table = Mock()
    table.get_rows.return_value = rows
    return table


class TestBuildRecordIndex:
    """Test positional row mapping into EmployeeRecord."""

    def test_header_row_is_skipped(self):
        """The first row is treated as a header and never becomes a record."""
        index, malformed = build_record_index([HEADER, _make_row()])

        assert list(index.keys()) == ["jane@example.com"]
        assert "Email" not in index
        assert malformed == []

    def test_columns_map_by_position(self):
        """Each of the 12 columns lands in the matching record field."""
        index, _ = build_record_index([HEADER, _make_row()])
        record = index["jane@example.com"]

        assert record.employee_id == "E-001"
        assert record.name == "Jane Doe"
        assert record.department == "Engineering"
        assert record.base_currency == "USD"
        assert record.base_pay == "100000"
        assert record.change_base_pay == "110000"
        assert record.raise_effective_date == "2026-01-01"
        assert record.stock_quantity == "500"
        assert record.vesting_date == "2027-01-01"
        assert record.bonus_structure_change == "10% target"
        assert record.bonus_effective_date == "2026-04-01"

    def test_duplicate_email_last_row_wins(self):
        """When an email repeats, the later row overwrites the earlier one."""
        rows = [
            HEADER,
            _make_row(employee_id="E-001"),
            _make_row(employee_id="E-999"),
        ]

        index, _ = build_record_index(rows)

        assert len(index) == 1
        assert index["jane@example.com"].employee_id == "E-999"

    def test_short_row_is_reported_not_raised(self):
        """A row with fewer than 12 cells is skipped and reported as malformed."""
        rows = [
            HEADER,
            ["E-002", "Short Row", "short@example.com"],
            _make_row(),
        ]

        index, malformed = build_record_index(rows)

        assert "short@example.com" not in index
        assert "jane@example.com" in index
        assert len(malformed) == 1
        assert isinstance(malformed[0], MalformedRowError)
        assert malformed[0].row_number == 2
        assert malformed[0].cell_count == 3
        assert malformed[0].error_code == "malformed_row"

    def test_blank_rows_are_ignored(self):
        """Fully blank rows are skipped without being reported."""
        rows = [HEADER, [], ["", None, ""], _make_row()]

        index, malformed = build_record_index(rows)

        assert list(index.keys()) == ["jane@example.com"]
        assert malformed == []

    def test_extra_cells_are_ignored(self):
        """Cells beyond the 12th column do not affect the record."""
        rows = [HEADER, _make_row() + ["notes", "more notes"]]

        index, _ = build_record_index(rows)

        assert index["jane@example.com"].bonus_effective_date == "2026-04-01"

    def test_header_only_yields_empty_index(self):
        index, malformed = build_record_index([HEADER])

        assert index == {}
        assert malformed == []


class TestCellToStr:
    """Cell values of any type become strings without parsing."""

    def test_none_becomes_empty_string(self):
        assert _cell_to_str(None) == ""

    def test_booleans_become_lowercase(self):
        assert _cell_to_str(True) == "true"
        assert _cell_to_str(False) == "false"

    def test_integral_float_drops_decimal_point(self):
        assert _cell_to_str(5000.0) == "5000"

    def test_fractional_float_kept(self):
        assert _cell_to_str(12.5) == "12.5"

    def test_int_and_string_pass_through(self):
        assert _cell_to_str(42) == "42"
        assert _cell_to_str(" $1,000 ") == " $1,000 "

    def test_numeric_cells_in_row_are_coerced(self):
        """Numbers coming from a workbook row end up as text in the record."""
        row = _make_row(employee_id=1001, base_pay=95000.0, stock=250)

        index, _ = build_record_index([HEADER, row])
        record = index["jane@example.com"]

        assert record.employee_id == "1001"
        assert record.base_pay == "95000"
        assert record.stock_quantity == "250"


class TestFetchRecords:
    """Test fetch_records error handling and indexing."""

    def test_returns_index_from_table_rows(self):
        table = _table_returning([HEADER, _make_row()])

        records = fetch_records(table, "sheet-id", "Sheet1")

        assert "jane@example.com" in records
        table.get_rows.assert_called_once_with("sheet-id", "Sheet1")

    def test_empty_source_raises_no_data(self):
        """A source with no rows at all raises SheetReadError('no_data')."""
        table = _table_returning([])

        with pytest.raises(SheetReadError) as exc_info:
            fetch_records(table, "sheet-id", "Sheet1")

        assert exc_info.value.error_code == "no_data"
        assert "No data found" in str(exc_info.value)

    def test_transport_failure_is_wrapped(self):
        """Errors from the source call are wrapped with the original as cause."""
        table = Mock()
        cause = ConnectionError("connection reset")
        table.get_rows.side_effect = cause

        with pytest.raises(SheetReadError) as exc_info:
            fetch_records(table, "sheet-id", "Sheet1")

        assert exc_info.value.error_code == "transport_error"
        assert "connection reset" in str(exc_info.value)
        assert exc_info.value.__cause__ is cause

    def test_sheet_read_error_from_source_passes_through(self):
        table = Mock()
        table.get_rows.side_effect = SheetReadError("missing", "sheet_not_found")

        with pytest.raises(SheetReadError) as exc_info:
            fetch_records(table, "book.xlsx", "Nope")

        assert exc_info.value.error_code == "sheet_not_found"

    def test_malformed_rows_logged_and_skipped(self, caplog):
        table = _table_returning([HEADER, ["E-9", "Bad"], _make_row()])

        with caplog.at_level("WARNING"):
            records = fetch_records(table, "sheet-id", "Sheet1")

        assert list(records.keys()) == ["jane@example.com"]
        assert "Row 2 has 2 cells" in caplog.text


class TestGoogleSheetsTable:
    """Test the Sheets API adapter."""

    def test_get_rows_calls_values_get(self):
        service = MagicMock()
        values_api = service.spreadsheets.return_value.values.return_value
        values_api.get.return_value.execute.return_value = {
            "range": "Sheet1!A1:L2",
            "values": [HEADER, _make_row()],
        }

        rows = GoogleSheetsTable(service).get_rows("sheet-id", "Sheet1")

        assert rows == [HEADER, _make_row()]
        values_api.get.assert_called_once_with(spreadsheetId="sheet-id", range="Sheet1")

    def test_missing_values_key_returns_empty(self):
        """The Sheets API omits 'values' entirely for an empty range."""
        service = MagicMock()
        service.spreadsheets.return_value.values.return_value \
            .get.return_value.execute.return_value = {"range": "Sheet1"}

        assert GoogleSheetsTable(service).get_rows("sheet-id", "Sheet1") == []

    def test_trailing_blank_cells_are_restored(self):
        """Sheets drops trailing empty cells; rows are padded back to the header width."""
        service = MagicMock()
        service.spreadsheets.return_value.values.return_value \
            .get.return_value.execute.return_value = {
                "values": [HEADER, _make_row()[:11], _make_row()[:9]],
            }

        rows = GoogleSheetsTable(service).get_rows("sheet-id", "Sheet1")

        assert rows[0] == HEADER
        assert [len(row) for row in rows[1:]] == [12, 12]
        assert rows[1][11] == ""
        assert rows[2][9:] == ["", "", ""]

    def test_row_with_blank_last_column_is_indexed(self):
        """An employee with no Bonus Effective Date is still found by email."""
        service = MagicMock()
        service.spreadsheets.return_value.values.return_value \
            .get.return_value.execute.return_value = {
                "values": [HEADER, _make_row(email="ann@x.com")[:11]],
            }

        records = fetch_records(GoogleSheetsTable(service), "sheet-id", "Sheet1")

        assert "ann@x.com" in records
        assert records["ann@x.com"].bonus_effective_date == ""
        assert records["ann@x.com"].bonus_structure_change == "10% target"

    def test_rows_short_of_narrow_header_still_malformed(self):
        """Padding stops at the header width, so a too-narrow sheet is still rejected."""
        service = MagicMock()
        service.spreadsheets.return_value.values.return_value \
            .get.return_value.execute.return_value = {
                "values": [HEADER[:3], ["E-1", "Ann", "ann@x.com"]],
            }

        records = fetch_records(GoogleSheetsTable(service), "sheet-id", "Sheet1")

        assert records == {}


class TestWorkbookTable:
    """Test the local .xlsx adapter."""

    def test_reads_rows_from_named_sheet(self, tmp_path):
        import openpyxl

        path = tmp_path / "employees.xlsx"
        wb = openpyxl.Workbook()
        ws = wb.active
        ws.title = "Sheet1"
        ws.append(HEADER)
        ws.append(_make_row(employee_id=7, base_pay=120000))
        wb.save(path)

        records = fetch_records(WorkbookTable(), str(path), "Sheet1")

        record = records["jane@example.com"]
        assert record.employee_id == "7"
        assert record.base_pay == "120000"

    def test_missing_sheet_raises_sheet_not_found(self, tmp_path):
        import openpyxl

        path = tmp_path / "employees.xlsx"
        wb = openpyxl.Workbook()
        wb.active.title = "Other"
        wb.save(path)

        with pytest.raises(SheetReadError) as exc_info:
            fetch_records(WorkbookTable(), str(path), "Sheet1")

        assert exc_info.value.error_code == "sheet_not_found"

    def test_missing_file_is_transport_error(self, tmp_path):
        with pytest.raises(SheetReadError) as exc_info:
            fetch_records(WorkbookTable(), str(tmp_path / "nope.xlsx"), "Sheet1")

        assert exc_info.value.error_code == "transport_error"
