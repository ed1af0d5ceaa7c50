"""Remove empty and corrupted cells from a row and close the gaps.

Two strategies produce the compacted row:

``compact_row``
    The shift-per-removal scan. Every removal copies the content of each
    following cell one slot to the left, drops the trailing slot and
    re-examines the same index. Counts are taken per classification attempt.
    A blank or error cell never overwrites the slot it is shifted into, so
    the stale content left there is classified again and, when valid, kept
    a second time.

``filter_row``
    A single left-to-right pass that keeps valid cells in order and counts
    each original position exactly once.

Both mutate the row in place and return the row's :class:`Statistics`.
"""

from __future__ import annotations

from sheet_sanitizer.classifier import CellStatus, classify_cell
from sheet_sanitizer.model import COPYABLE_KINDS, Cell, Row
from sheet_sanitizer.stats import Statistics

SHIFT = "shift"
FILTER = "filter"
STRATEGIES = (SHIFT, FILTER)


def clone_cell(target: Cell, source: Cell) -> None:
    """Copy the content of ``source`` into ``target``.

    Only string, numeric, boolean and formula content is copied. For any
    other source kind ``target`` keeps whatever it held before.
    """
    if source.kind in COPYABLE_KINDS:
        target.kind = source.kind
        target.value = source.value


def shift_cells_left(row: Row, start: int, last: int) -> None:
    for idx in range(start, last - 1):
        current = row[idx]
        following = row[idx + 1]
        if following is not None:
            if current is None:
                current = Cell(following.kind)
                row[idx] = current
            clone_cell(current, following)
        elif current is not None:
            row[idx] = None
    if last - 1 >= 0:
        row[last - 1] = None


def compact_row(row: Row) -> Statistics:
    stats = Statistics()
    last = len(row)
    idx = 0
    while idx < last:
        status = classify_cell(row[idx])
        stats.record(status)
        if status is CellStatus.VALID:
            idx += 1
            continue
        shift_cells_left(row, idx, last)
        last -= 1
    del row[last:]
    return stats


def filter_row(row: Row) -> Statistics:
    stats = Statistics()
    write = 0
    for cell in row:
        status = classify_cell(cell)
        stats.record(status)
        if status is CellStatus.VALID:
            row[write] = cell
            write += 1
    del row[write:]
    return stats


def compact(row: Row, strategy: str = SHIFT) -> Statistics:
    if strategy == SHIFT:
        return compact_row(row)
    if strategy == FILTER:
        return filter_row(row)
    raise ValueError(f"Unknown compaction strategy: {strategy}")
