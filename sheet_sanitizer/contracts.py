"""Versioned JSON contracts for sheet-sanitizer summaries.

Consumers key on ``contract.name`` and ``contract.version``. Bump the version
whenever a field of the summary is renamed, removed or changes meaning.
"""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterable, Optional

from sheet_sanitizer.stats import Statistics

TOOL_NAME = "sheet-sanitizer"
SANITIZE_SUMMARY = "sheet_sanitizer.sanitize_summary"
CONTRACT_VERSIONS = {
    SANITIZE_SUMMARY: "1.0.0",
}
FROZEN_TIMESTAMP = "1970-01-01T00:00:00Z"


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).replace(microsecond=0).isoformat().replace("+00:00", "Z")


def build_contract(name: str = SANITIZE_SUMMARY) -> dict[str, str]:
    if name not in CONTRACT_VERSIONS:
        raise ValueError(f"Unknown contract: {name}")
    return {"name": name, "version": CONTRACT_VERSIONS[name]}


def run_status(stats: Statistics) -> str:
    """``empty`` when no cell was seen, ``clean`` when nothing was removed, else ``cleaned``."""
    if stats.total_cells == 0:
        return "empty"
    if stats.removed_cells == 0:
        return "clean"
    return "cleaned"


def build_run_summary(
    *,
    command: str,
    stats: Statistics,
    input_path: Optional[Path] = None,
    output_path: Optional[Path] = None,
    warnings: Iterable[str] = (),
    metrics: Optional[dict[str, Any]] = None,
) -> dict[str, Any]:
    warnings = list(warnings)
    return {
        "tool": TOOL_NAME,
        "command": command,
        "status": run_status(stats),
        "generated_at": utc_now_iso(),
        "input_file": str(input_path) if input_path else None,
        "output_file": str(output_path) if output_path else None,
        "warnings_count": len(warnings),
        "warnings": warnings,
        "metrics": {
            **stats.as_dict(),
            "cells_removed": stats.removed_cells,
            **(metrics or {}),
        },
    }


def freeze_timestamps(value: Any) -> Any:
    """Replace every ``generated_at`` with a fixed value so summaries diff cleanly."""
    if isinstance(value, dict):
        return {key: FROZEN_TIMESTAMP if key == "generated_at" else freeze_timestamps(item) for key, item in value.items()}
    if isinstance(value, list):
        return [freeze_timestamps(item) for item in value]
    return value
