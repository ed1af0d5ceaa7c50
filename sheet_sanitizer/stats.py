from __future__ import annotations

from dataclasses import asdict, dataclass

from sheet_sanitizer.classifier import CellStatus


@dataclass
class Statistics:
    total_cells: int = 0
    valid_cells: int = 0
    empty_cells: int = 0
    corrupted_cells: int = 0

    def record(self, status: CellStatus) -> None:
        self.total_cells += 1
        if status is CellStatus.VALID:
            self.valid_cells += 1
        elif status is CellStatus.EMPTY:
            self.empty_cells += 1
        else:
            self.corrupted_cells += 1

    def merge(self, other: "Statistics") -> None:
        self.total_cells += other.total_cells
        self.valid_cells += other.valid_cells
        self.empty_cells += other.empty_cells
        self.corrupted_cells += other.corrupted_cells

    @property
    def removed_cells(self) -> int:
        return self.empty_cells + self.corrupted_cells

    @property
    def is_balanced(self) -> bool:
        return self.total_cells == self.valid_cells + self.empty_cells + self.corrupted_cells

    def as_dict(self) -> dict[str, int]:
        return asdict(self)
