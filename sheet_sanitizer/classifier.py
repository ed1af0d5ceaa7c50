from __future__ import annotations

import re
from enum import Enum
from typing import Optional

from sheet_sanitizer.model import Cell, CellKind

# ASCII letters, digits and whitespace only; the whole value must match.
VALID_PATTERN = re.compile(r"[a-zA-Z0-9\s]*", re.ASCII)


class CellStatus(str, Enum):
    VALID = "valid"
    EMPTY = "empty"
    CORRUPTED = "corrupted"


def is_valid_text(value: str) -> bool:
    return VALID_PATTERN.fullmatch(value) is not None


def classify_cell(cell: Optional[Cell]) -> CellStatus:
    """Classify one cell as valid, empty or corrupted.

    Absent and blank cells are empty. Strings are valid only when they match
    ``VALID_PATTERN`` (an empty string matches). Numbers are always valid.
    Every other kind, booleans and formulas included, is corrupted.
    """
    if cell is None or cell.kind is CellKind.BLANK:
        return CellStatus.EMPTY
    if cell.kind is CellKind.STRING:
        return CellStatus.VALID if is_valid_text(cell.value or "") else CellStatus.CORRUPTED
    if cell.kind is CellKind.NUMERIC:
        return CellStatus.VALID
    return CellStatus.CORRUPTED
