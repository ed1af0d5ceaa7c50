from __future__ import annotations

import json
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any

from sheet_sanitizer.compactor import SHIFT, STRATEGIES
from sheet_sanitizer.errors import ConfigError

DEFAULT_CONFIG_NAME = "sheet-sanitizer.json"
SUPPORTED_CONFIG_SUFFIXES = {".json", ".yml", ".yaml"}
STATISTICS_SHEET = "Statistics"


@dataclass(frozen=True)
class SanitizerConfig:
    compaction: str = SHIFT
    statistics_sheet: str = STATISTICS_SHEET
    sheet_index: int = 0

    def __post_init__(self) -> None:
        if self.compaction not in STRATEGIES:
            raise ConfigError(f"compaction must be one of: {', '.join(STRATEGIES)}")
        if not isinstance(self.statistics_sheet, str) or not self.statistics_sheet.strip():
            raise ConfigError("statistics_sheet must be a non-empty string")
        if len(self.statistics_sheet) > 31:
            raise ConfigError("statistics_sheet must be at most 31 characters (Excel sheet title limit)")
        if isinstance(self.sheet_index, bool) or not isinstance(self.sheet_index, int) or self.sheet_index < 0:
            raise ConfigError("sheet_index must be a non-negative integer")

    def with_overrides(self, **overrides: Any) -> "SanitizerConfig":
        values = asdict(self)
        values.update({key: value for key, value in overrides.items() if value is not None})
        return SanitizerConfig(**values)

    def as_dict(self) -> dict[str, Any]:
        return asdict(self)


def config_from_mapping(payload: dict[str, Any]) -> SanitizerConfig:
    known = {item.name for item in fields(SanitizerConfig)}
    unknown = sorted(set(payload) - known)
    if unknown:
        raise ConfigError(f"Unknown config keys: {', '.join(unknown)}")
    return SanitizerConfig(**payload)


def load_config(path: Path | None) -> SanitizerConfig:
    if path is None:
        return SanitizerConfig()
    if not path.exists():
        raise ConfigError(f"Config not found: {path}")
    suffix = path.suffix.lower()
    if suffix not in SUPPORTED_CONFIG_SUFFIXES:
        raise ConfigError("Config must be .json, .yml, or .yaml")
    if suffix in {".yml", ".yaml"}:
        raise ConfigError("YAML configs are not supported yet. Use JSON for now.")
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except Exception as exc:
        raise ConfigError(f"Could not read config: {exc}") from exc
    if not isinstance(payload, dict):
        raise ConfigError("Config root must be a JSON object.")
    return config_from_mapping(payload)


def default_config_text() -> str:
    return json.dumps(SanitizerConfig().as_dict(), indent=2) + "\n"
