"""
Employee sheet reader.

Fetches the compensation-change sheet and indexes its rows by email.

Public API:
  fetch_records(table, source_id, range_name) -> dict[str, EmployeeRecord]
  build_record_index(rows)                    -> (index, malformed_rows)

Tabular sources:
  GoogleSheetsTable  - Google Sheets API (spreadsheets.values.get)
  WorkbookTable      - local .xlsx workbook read with openpyxl
"""

import logging
from typing import Any, Optional

from lettergen.models.letter import EmployeeRecord, RECORD_COLUMNS

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------

class SheetReadError(Exception):
    """Raised when employee rows cannot be fetched from the tabular source."""
    def __init__(self, message: str, error_code: str):
        super().__init__(message)
        self.error_code = error_code
        self.message = message


class MalformedRowError(SheetReadError):
    """Raised for a data row that has fewer cells than the record needs."""
    def __init__(self, row_number: int, cell_count: int):
        super().__init__(
            f"Row {row_number} has {cell_count} cells, expected {len(RECORD_COLUMNS)}",
            "malformed_row",
        )
        self.row_number = row_number
        self.cell_count = cell_count


# ---------------------------------------------------------------------------
# Tabular sources
# ---------------------------------------------------------------------------

class GoogleSheetsTable:
    """Reads rows through a Google Sheets v4 discovery client."""

    def __init__(self, service):
        self.service = service

    def get_rows(self, source_id: str, range_name: str) -> list[list]:
        """
        Return the range's rows, padded to the header width.

        The Sheets API drops trailing empty cells from each row, so a row
        whose last columns are blank comes back shorter than the header.
        """
        response = (
            self.service.spreadsheets()
            .values()
            .get(spreadsheetId=source_id, range=range_name)
            .execute()
        )
        rows = response.get("values", [])
        if not rows:
            return rows

        width = len(rows[0])
        return [rows[0]] + [
            list(row) + [""] * (width - len(row)) for row in rows[1:]
        ]


class WorkbookTable:
    """Reads rows from a local .xlsx file; source_id is the file path."""

    def get_rows(self, source_id: str, range_name: str) -> list[list]:
        import openpyxl

        wb = openpyxl.load_workbook(source_id, read_only=True, data_only=True)
        try:
            if range_name not in wb.sheetnames:
                raise SheetReadError(
                    f"Worksheet '{range_name}' not found in {source_id}",
                    "sheet_not_found",
                )
            ws = wb[range_name]
            return [list(row) for row in ws.iter_rows(values_only=True)]
        finally:
            wb.close()


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _cell_to_str(value: Any) -> str:
    """Convert a cell value to its text form without trimming or parsing."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _row_is_blank(row: list) -> bool:
    return all(_cell_to_str(cell).strip() == "" for cell in row)


def _row_to_record(row: list, row_number: int) -> EmployeeRecord:
    if len(row) < len(RECORD_COLUMNS):
        raise MalformedRowError(row_number, len(row))
    values = {
        field: _cell_to_str(row[idx]) for idx, field in enumerate(RECORD_COLUMNS)
    }
    return EmployeeRecord(**values)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def build_record_index(
    rows: list[list],
) -> tuple[dict[str, EmployeeRecord], list[MalformedRowError]]:
    """
    Map sheet rows to records keyed by email.

    The first row is the header and is skipped. Rows are mapped by column
    position. When an email appears more than once the later row wins.

    Returns:
        (index, malformed) where malformed lists the rows that were skipped
        because they were too short. Row numbers are 1-based sheet rows.
    """
    index: dict[str, EmployeeRecord] = {}
    malformed: list[MalformedRowError] = []

    for row_number, row in enumerate(rows[1:], start=2):
        row = list(row or [])
        if _row_is_blank(row):
            continue
        try:
            record = _row_to_record(row, row_number)
        except MalformedRowError as e:
            malformed.append(e)
            continue
        index[record.email] = record

    return index, malformed


def fetch_records(table, source_id: str, range_name: str) -> dict[str, EmployeeRecord]:
    """
    Fetch the employee sheet and index it by email.

    Args:
        table: Tabular source exposing get_rows(source_id, range_name).
        source_id: Spreadsheet ID (or workbook path for WorkbookTable).
        range_name: Sheet name or A1 range.

    Returns:
        Mapping of email -> EmployeeRecord.

    Raises:
        SheetReadError: "transport_error" if the source call fails,
            "no_data" if the source returned no rows.
    """
    try:
        rows: Optional[list[list]] = table.get_rows(source_id, range_name)
    except SheetReadError:
        raise
    except Exception as e:
        raise SheetReadError(
            f"Unable to retrieve data from sheet: {e}", "transport_error"
        ) from e

    if not rows:
        raise SheetReadError("No data found", "no_data")

    index, malformed = build_record_index(rows)
    for err in malformed:
        logger.warning("Skipping malformed sheet row: %s", err.message)

    logger.info(
        "Loaded %d employee records from %s (%d malformed rows skipped)",
        len(index), range_name, len(malformed),
    )
    return index
