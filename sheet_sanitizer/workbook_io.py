from __future__ import annotations

import io
import os
import tempfile
import zipfile
from collections import defaultdict
from pathlib import Path

from openpyxl import Workbook, load_workbook
from openpyxl.utils import get_column_letter

from sheet_sanitizer.errors import EmptyInputError, InvalidWorkbookError
from sheet_sanitizer.model import Cell, CellKind, Row

XLSX_CONTENT_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
XLSM_CONTENT_TYPE = "application/vnd.ms-excel.sheet.macroEnabled.12"
XLS_CONTENT_TYPE = "application/vnd.ms-excel"
EXCEL_CONTENT_TYPES = {item.lower() for item in (XLSX_CONTENT_TYPE, XLSM_CONTENT_TYPE, XLS_CONTENT_TYPE)}
SUPPORTED_SUFFIXES = {".xlsx", ".xlsm"}
OLE2_MAGIC = b"\xd0\xcf\x11\xe0\xa1\xb1\x1a\xe1"

STRING_TYPES = {"s", "inlineStr", "str"}
NUMERIC_TYPES = {"n", "d"}


def normalize_content_type(content_type: str | None) -> str:
    return (content_type or "").split(";")[0].strip().lower()


def is_encrypted_ooxml(file_path: Path) -> bool:
    if file_path.suffix.lower() not in SUPPORTED_SUFFIXES:
        return False
    try:
        with zipfile.ZipFile(file_path) as archive:
            names = set(archive.namelist())
    except zipfile.BadZipFile:
        return False
    return {"EncryptedPackage", "EncryptionInfo"}.issubset(names)


def check_workbook_bytes(data: bytes) -> None:
    if not data:
        raise EmptyInputError()
    if data.startswith(OLE2_MAGIC):
        # Both legacy .xls files and encrypted .xlsx files are OLE2 containers.
        raise InvalidWorkbookError(
            "Legacy .xls and password-protected / encrypted workbooks are not supported. "
            "Save the workbook as an unprotected .xlsx first."
        )


def check_workbook_path(input_path: Path) -> None:
    suffix = input_path.suffix.lower()
    if suffix == ".xls":
        raise InvalidWorkbookError(".xls is not supported by sheet-sanitizer. Convert the workbook to .xlsx first.")
    if suffix not in SUPPORTED_SUFFIXES:
        raise InvalidWorkbookError(f"Expected an .xlsx/.xlsm file, got: {input_path.suffix or '[missing extension]'}")
    if is_encrypted_ooxml(input_path):
        raise InvalidWorkbookError("Password-protected / encrypted OOXML workbooks are not supported")
    with input_path.open("rb") as handle:
        check_workbook_bytes(handle.read(len(OLE2_MAGIC)))


def open_workbook(input_path: Path) -> Workbook:
    check_workbook_path(input_path)
    keep_vba = input_path.suffix.lower() == ".xlsm"
    try:
        return load_workbook(input_path, keep_vba=keep_vba)
    except Exception as exc:
        raise InvalidWorkbookError(f"Could not read workbook: {exc}") from exc


def open_workbook_bytes(data: bytes, *, keep_vba: bool = False) -> Workbook:
    check_workbook_bytes(data)
    try:
        return load_workbook(io.BytesIO(data), keep_vba=keep_vba)
    except Exception as exc:
        raise InvalidWorkbookError(f"Could not read workbook: {exc}") from exc


def save_workbook_atomic(workbook: Workbook, output_path: Path) -> None:
    output_path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{output_path.stem}.", suffix=output_path.suffix, dir=str(output_path.parent))
    os.close(fd)
    temp_path = Path(tmp_name)
    try:
        workbook.save(temp_path)
        os.replace(temp_path, output_path)
    finally:
        if temp_path.exists():
            temp_path.unlink()


def workbook_to_bytes(workbook: Workbook) -> bytes:
    buffer = io.BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()


def to_model_cell(xl_cell) -> Cell:
    value = xl_cell.value
    if value is None:
        return Cell.blank()
    data_type = xl_cell.data_type
    if data_type in STRING_TYPES:
        return Cell.string(str(value))
    if data_type == "f":
        return Cell.formula(value)
    if data_type == "b":
        return Cell.boolean(bool(value))
    if data_type in NUMERIC_TYPES:
        return Cell.numeric(value)
    return Cell(CellKind.OTHER, value)


def unmerge_all(sheet) -> int:
    merged_ranges = list(sheet.merged_cells.ranges)
    for merged in merged_ranges:
        sheet.unmerge_cells(str(merged))
    return len(merged_ranges)


def stored_cells_by_row(sheet) -> dict[int, dict[int, object]]:
    """Group the cells physically stored in ``sheet`` by row, without creating any."""
    # iter_rows, sheet.cell and sheet[...] all create missing cells, which would
    # turn absent positions into blank ones; only the private store tells them apart.
    rows: dict[int, dict[int, object]] = defaultdict(dict)
    for (row_idx, col_idx), xl_cell in sorted(sheet._cells.items()):
        rows[row_idx][col_idx] = xl_cell
    return dict(rows)


def read_row(stored: dict[int, object]) -> Row:
    if not stored:
        return []
    width = max(stored)
    row: Row = []
    for col_idx in range(1, width + 1):
        xl_cell = stored.get(col_idx)
        row.append(None if xl_cell is None else to_model_cell(xl_cell))
    return row


def delete_cell(sheet, row_idx: int, col_idx: int) -> None:
    del sheet[f"{get_column_letter(col_idx)}{row_idx}"]


def write_row(sheet, row_idx: int, row: Row, original_width: int) -> None:
    """Write a compacted row back from column A and drop the columns it no longer reaches.

    Every cell left after compaction is a valid string or number, so plain
    value assignment rebinds the destination cell's type and keeps its style.
    """
    for col_idx, cell in enumerate(row, start=1):
        sheet.cell(row=row_idx, column=col_idx).value = cell.value
    for col_idx in range(len(row) + 1, original_width + 1):
        delete_cell(sheet, row_idx, col_idx)
