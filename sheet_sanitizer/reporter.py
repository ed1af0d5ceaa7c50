"""Statistics sheet and human-readable summaries for a sanitize run."""

from __future__ import annotations

from typing import Any

from sheet_sanitizer.config import STATISTICS_SHEET
from sheet_sanitizer.stats import Statistics

STATISTICS_LABELS = (
    ("Total Cells Processed", "total_cells"),
    ("Valid Cells", "valid_cells"),
    ("Empty Cells", "empty_cells"),
    ("Corrupted Cells", "corrupted_cells"),
)


def write_statistics_sheet(workbook, stats: Statistics, title: str = STATISTICS_SHEET, *, data_sheet=None):
    """Append the summary sheet: one ``(label, count)`` row per counter.

    A sheet already carrying ``title`` is replaced, unless it is the sheet that
    was just cleaned, in which case openpyxl picks a de-duplicated title.
    """
    if title in workbook.sheetnames:
        existing = workbook[title]
        if existing is not data_sheet:
            workbook.remove(existing)
    ws = workbook.create_sheet(title)
    for label, key in STATISTICS_LABELS:
        ws.append([label, getattr(stats, key)])
    ws.column_dimensions["A"].width = max(len(label) for label, _ in STATISTICS_LABELS) + 2
    return ws


def render_text_summary(summary: dict[str, Any]) -> str:
    stats = summary.get("stats", {})
    lines = [
        "sheet-sanitizer sanitize",
        f"Input: {summary.get('input_file', '[unknown]')}",
        f"Output: {summary.get('output_file', '[unknown]')}",
        f"Sheet: {summary.get('sheet', '[unknown]')}",
        f"Compaction: {summary.get('compaction', '[unknown]')}",
        f"Rows processed: {summary.get('rows_processed', 0)}",
    ]
    for label, key in STATISTICS_LABELS:
        lines.append(f"{label}: {stats.get(key, 0)}")
    if summary.get("warnings"):
        lines.append("Warnings:")
        lines.extend(f"- {warning}" for warning in summary["warnings"])
    return "\n".join(lines) + "\n"


def render_row_details(rows: list[dict[str, Any]]) -> str:
    lines = []
    for item in rows:
        lines.append(
            f"Row {item['row']}: {item['cells_before']} -> {item['cells_after']} cells "
            f"(valid {item['valid_cells']}, empty {item['empty_cells']}, corrupted {item['corrupted_cells']})"
        )
    return "\n".join(lines) + ("\n" if lines else "")
