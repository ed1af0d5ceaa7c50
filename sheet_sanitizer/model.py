"""In-memory cell model the sanitizer works on.

A row is a plain ``list`` whose items are either a :class:`Cell` or ``None``
for a position that has no stored cell at all.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional


class CellKind(str, Enum):
    BLANK = "blank"
    STRING = "string"
    NUMERIC = "numeric"
    BOOLEAN = "boolean"
    FORMULA = "formula"
    OTHER = "other"


# Kinds whose content survives being copied into another slot during a shift.
COPYABLE_KINDS = frozenset({CellKind.STRING, CellKind.NUMERIC, CellKind.BOOLEAN, CellKind.FORMULA})


@dataclass
class Cell:
    kind: CellKind
    value: Any = None

    @classmethod
    def blank(cls) -> "Cell":
        return cls(CellKind.BLANK)

    @classmethod
    def string(cls, value: str) -> "Cell":
        return cls(CellKind.STRING, value)

    @classmethod
    def numeric(cls, value) -> "Cell":
        return cls(CellKind.NUMERIC, value)

    @classmethod
    def boolean(cls, value: bool) -> "Cell":
        return cls(CellKind.BOOLEAN, value)

    @classmethod
    def formula(cls, expression: str) -> "Cell":
        return cls(CellKind.FORMULA, expression)


Row = list[Optional[Cell]]
