from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

from sheet_sanitizer import __version__ as TOOL_VERSION
from sheet_sanitizer.compactor import SHIFT, compact
from sheet_sanitizer.config import SanitizerConfig
from sheet_sanitizer.contracts import SANITIZE_SUMMARY, build_contract, build_run_summary
from sheet_sanitizer.errors import EmptySheetError, InvalidWorkbookError
from sheet_sanitizer.reporter import write_statistics_sheet
from sheet_sanitizer.stats import Statistics
from sheet_sanitizer.workbook_io import (
    open_workbook,
    open_workbook_bytes,
    read_row,
    save_workbook_atomic,
    stored_cells_by_row,
    unmerge_all,
    workbook_to_bytes,
    write_row,
)


@dataclass
class RowResult:
    row: int
    cells_before: int
    cells_after: int
    stats: Statistics

    def as_dict(self) -> dict[str, int]:
        return {
            "row": self.row,
            "cells_before": self.cells_before,
            "cells_after": self.cells_after,
            **self.stats.as_dict(),
        }


@dataclass
class SanitizeResult:
    sheet: str
    compaction: str
    statistics_sheet: str
    stats: Statistics = field(default_factory=Statistics)
    rows: list[RowResult] = field(default_factory=list)
    merged_ranges_unmerged: int = 0
    replaced_sheet: Optional[str] = None


def select_data_sheet(workbook, sheet_index: int = 0):
    sheets = workbook.worksheets
    if not sheets:
        raise EmptySheetError()
    if sheet_index >= len(sheets):
        raise InvalidWorkbookError(f"Workbook has {len(sheets)} sheet(s); no sheet at index {sheet_index}")
    return sheets[sheet_index]


def sanitize_sheet(sheet, strategy: str = SHIFT) -> tuple[Statistics, list[RowResult]]:
    totals = Statistics()
    results: list[RowResult] = []
    for row_idx, stored in stored_cells_by_row(sheet).items():
        row = read_row(stored)
        width = len(row)
        row_stats = compact(row, strategy)
        write_row(sheet, row_idx, row, width)
        totals.merge(row_stats)
        results.append(RowResult(row=row_idx, cells_before=width, cells_after=len(row), stats=row_stats))
    return totals, results


def sanitize_workbook(workbook, config: Optional[SanitizerConfig] = None) -> SanitizeResult:
    """Clean the data sheet in place and append the statistics sheet.

    Raises ``EmptySheetError`` before touching anything when the workbook
    has no worksheets.
    """
    config = config or SanitizerConfig()
    sheet = select_data_sheet(workbook, config.sheet_index)
    unmerged = unmerge_all(sheet)
    stats, rows = sanitize_sheet(sheet, config.compaction)
    title = config.statistics_sheet
    replaced = title if title in workbook.sheetnames and workbook[title] is not sheet else None
    stats_sheet = write_statistics_sheet(workbook, stats, title, data_sheet=sheet)
    return SanitizeResult(
        sheet=sheet.title,
        compaction=config.compaction,
        statistics_sheet=stats_sheet.title,
        stats=stats,
        rows=rows,
        merged_ranges_unmerged=unmerged,
        replaced_sheet=replaced,
    )


def execute_sanitizing(
    input_path: Path,
    output_path: Path,
    config: Optional[SanitizerConfig] = None,
    *,
    dry_run: bool = False,
) -> SanitizeResult:
    workbook = open_workbook(input_path)
    result = sanitize_workbook(workbook, config)
    if not dry_run:
        save_workbook_atomic(workbook, output_path)
    return result


def sanitize_bytes(
    data: bytes,
    config: Optional[SanitizerConfig] = None,
    *,
    keep_vba: bool = False,
) -> tuple[bytes, SanitizeResult]:
    workbook = open_workbook_bytes(data, keep_vba=keep_vba)
    result = sanitize_workbook(workbook, config)
    return workbook_to_bytes(workbook), result


def build_structured_summary(
    result: SanitizeResult,
    *,
    input_path: Optional[Path],
    output_path: Optional[Path],
) -> dict[str, Any]:
    contract = build_contract(SANITIZE_SUMMARY)
    stats = result.stats
    warnings = []
    if stats.corrupted_cells > 0:
        warnings.append("Corrupted cells were removed, not repaired. Only letters, digits, whitespace and numbers survive.")
    if result.merged_ranges_unmerged > 0:
        warnings.append(f"{result.merged_ranges_unmerged} merged range(s) were unmerged before compaction.")
    if result.replaced_sheet:
        warnings.append(f"The existing sheet '{result.replaced_sheet}' was replaced by the statistics sheet.")
    assumptions = [
        f"Only the sheet '{result.sheet}' is cleaned; other sheets are left as they are, except a previous '{result.statistics_sheet}' sheet, which is replaced",
        "Boolean, formula and error cells are treated as corrupted",
        "An empty text cell is valid; only missing or blank cells count as empty",
    ]
    if result.compaction == SHIFT:
        assumptions.append("Counts are taken per classification attempt; a blank or error cell shifted onto other content leaves that content in place to be classified again")
    else:
        assumptions.append("total_cells counts each original cell position once")
    return {
        "contract": contract,
        "schema_version": contract["version"],
        "tool_version": TOOL_VERSION,
        "input_file": str(input_path) if input_path else None,
        "output_file": str(output_path) if output_path else None,
        "sheet": result.sheet,
        "statistics_sheet": result.statistics_sheet,
        "compaction": result.compaction,
        "stats": stats.as_dict(),
        "balanced": stats.is_balanced,
        "rows_processed": len(result.rows),
        "rows": [item.as_dict() for item in result.rows],
        "warnings": warnings,
        "assumptions": assumptions,
        "run_summary": build_run_summary(
            command="sanitize",
            stats=stats,
            input_path=input_path,
            output_path=output_path,
            warnings=warnings,
            metrics={"rows_processed": len(result.rows), "compaction": result.compaction},
        ),
    }
