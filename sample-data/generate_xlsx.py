#!/usr/bin/env python3
"""
Generates sample-data/messy_sample.xlsx with deliberate cell problems for
testing sheet-sanitizer.

Run from the repo root:
    python sample-data/generate_xlsx.py

Problems baked in:
  Sheet "Orders"
    - Punctuation and non-ASCII text ("C-001", "Café", "N/A")
    - Missing cells inside rows and explicitly blank cells
    - Boolean and formula cells (always treated as corrupted)
    - Error values (#DIV/0!)
    - Ragged rows of different lengths
  Sheet "Archive"
    - Left untouched; only the first sheet is cleaned
"""

from pathlib import Path

import openpyxl
from openpyxl.styles import Font

OUTPUT = Path(__file__).parent / "messy_sample.xlsx"


def build_sample_workbook() -> openpyxl.Workbook:
    wb = openpyxl.Workbook()

    # ── Sheet 1: Orders ──────────────────────────────────────────────────────
    ws = wb.active
    ws.title = "Orders"
    ws.append(["order id", "customer", "city", "amount", "status"])
    ws.append([1001, "Smith", "London", 250.0, "active"])
    ws.append([1002, "C-001", "Café Row", 180.5, True])           # punctuation, non-ASCII, boolean
    ws.append([1003, None, "Leeds", "=D2*2", "active"])                 # missing cell, formula
    ws.append([1004, "Wilson", "Hull", "#DIV/0!", "N/A"])               # error, slash
    ws.append([1005, "Taylor"])                                         # short row
    ws.cell(row=7, column=1, value="Brown")
    ws.cell(row=7, column=4, value=99)                                  # gap at B7:C7
    ws["C8"].font = Font(bold=True)                                     # styled blank cell
    ws["A8"] = "Moore"
    ws["D8"] = 12.5

    # ── Sheet 2: Archive ─────────────────────────────────────────────────────
    archive = wb.create_sheet("Archive")
    archive.append(["order_id", "note"])
    archive.append([999, "kept as-is!"])
    return wb


def main() -> None:
    wb = build_sample_workbook()
    wb.save(OUTPUT)
    print(f"Written: {OUTPUT}")


if __name__ == "__main__":
    main()
