from __future__ import annotations

import argparse
import json
import os
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from sheet_sanitizer import __version__ as TOOL_VERSION
from sheet_sanitizer.compactor import STRATEGIES
from sheet_sanitizer.config import DEFAULT_CONFIG_NAME, default_config_text, load_config
from sheet_sanitizer.contracts import freeze_timestamps
from sheet_sanitizer.errors import ConfigError, EmptyInputError, EmptySheetError, SanitizerError
from sheet_sanitizer.reporter import render_row_details, render_text_summary
from sheet_sanitizer.sanitizer import build_structured_summary, execute_sanitizing

EXIT_SUCCESS = 0
EXIT_COMMAND_ERROR = 1
EXIT_PARSE_FAILED = 2
EXIT_EMPTY_WORKBOOK = 3
EXIT_CORRUPTED_FOUND = 4

SUMMARY_NAME = "sanitize-summary.json"


class CliError(Exception):
    def __init__(self, message: str, code: int = EXIT_COMMAND_ERROR) -> None:
        super().__init__(message)
        self.code = code


class SheetSanitizerArgumentParser(argparse.ArgumentParser):
    def error(self, message: str) -> None:
        raise CliError(message, EXIT_COMMAND_ERROR)


def eprint(message: str) -> None:
    print(message, file=sys.stderr)


def emit_human(message: str, *, quiet: bool = False) -> None:
    if not quiet:
        eprint(message)


def json_dumps(payload: Any) -> str:
    return json.dumps(payload, indent=2, ensure_ascii=False, sort_keys=True)


def timestamp_token() -> str:
    override = os.environ.get("SHEET_SANITIZER_OUTPUT_STAMP")
    if override:
        return override
    return datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%SZ")


def default_output_dir(input_path: Path) -> Path:
    return Path.cwd() / "sheet-sanitizer-output" / f"{input_path.stem}-{timestamp_token()}"


def write_text(path: Path, payload: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(payload, encoding="utf-8")


def write_json(path: Path, payload: Any) -> None:
    write_text(path, json_dumps(payload))


def classify_exception(exc: Exception) -> int:
    if isinstance(exc, CliError):
        return exc.code
    if isinstance(exc, ConfigError):
        return EXIT_COMMAND_ERROR
    if isinstance(exc, (EmptySheetError, EmptyInputError)):
        return EXIT_EMPTY_WORKBOOK
    if isinstance(exc, SanitizerError):
        return EXIT_PARSE_FAILED
    return EXIT_COMMAND_ERROR


def safe_output_path(path: Path) -> Path:
    if path.exists():
        raise CliError(f"Refusing to overwrite existing output: {path}", EXIT_COMMAND_ERROR)
    return path


def sanitize_default_paths(args: argparse.Namespace, input_path: Path) -> tuple[Path, Path]:
    if args.output_positional and args.output_flag:
        raise CliError("Use either positional output or --output, not both.", EXIT_COMMAND_ERROR)
    explicit = args.output_positional or args.output_flag
    out_dir = Path(args.out_dir) if args.out_dir else default_output_dir(input_path)
    if explicit:
        output_path = Path(explicit)
    else:
        output_path = out_dir / f"{input_path.stem}_cleaned{input_path.suffix}"
    summary_path = Path(args.json_summary) if args.json_summary else out_dir / SUMMARY_NAME
    return output_path, summary_path


def build_parser() -> argparse.ArgumentParser:
    parser = SheetSanitizerArgumentParser(
        prog="sheet-sanitizer",
        description="Remove empty and corrupted cells from the first sheet of an Excel workbook and append a Statistics sheet.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    sanitize = subparsers.add_parser("sanitize", help="Clean a workbook")
    sanitize.add_argument("input", help="Input .xlsx/.xlsm file")
    sanitize.add_argument("output_positional", nargs="?", default=None, help="Optional output path")
    sanitize.add_argument("-o", "--out", dest="out_dir", help="Output directory")
    sanitize.add_argument("--output", dest="output_flag", help="Explicit output path")
    sanitize.add_argument("--config", help="JSON config path")
    sanitize.add_argument("--compaction", choices=list(STRATEGIES), help="Row compaction strategy (overrides config)")
    sanitize.add_argument("--json", action="store_true", help="Write machine JSON to stdout")
    sanitize.add_argument("--json-summary", dest="json_summary", help="Explicit JSON summary output path")
    sanitize.add_argument("--dry-run", action="store_true", help="Run the cleanup without writing outputs")
    sanitize.add_argument("--fail-on-corrupted", action="store_true", help="Return exit code 4 when corrupted cells were removed")
    sanitize.add_argument("-q", "--quiet", action="store_true", help="Minimal human logs")
    sanitize.add_argument("-v", "--verbose", action="store_true", help="Per-row details")

    config = subparsers.add_parser("config", help="Config helpers")
    config_subparsers = config.add_subparsers(dest="config_command", required=True)
    config_init = config_subparsers.add_parser("init", help="Write a default config file")
    config_init.add_argument("--path", default=DEFAULT_CONFIG_NAME, help="Config output path")

    subparsers.add_parser("version", help="Print the tool version")
    return parser


def run_sanitize(args: argparse.Namespace) -> int:
    input_path = Path(args.input)
    if not input_path.exists():
        eprint(f"File not found: {input_path}")
        return EXIT_COMMAND_ERROR

    try:
        config = load_config(Path(args.config) if args.config else None)
        config = config.with_overrides(compaction=args.compaction)
        output_path, summary_path = sanitize_default_paths(args, input_path)
        if not args.dry_run:
            output_path = safe_output_path(output_path)
            summary_path = safe_output_path(summary_path)

        result = execute_sanitizing(input_path, output_path, config, dry_run=args.dry_run)
        summary = build_structured_summary(result, input_path=input_path, output_path=None if args.dry_run else output_path)
        summary = freeze_timestamps(summary)
        if not args.dry_run:
            write_json(summary_path, summary)

        if args.json:
            print(json_dumps(summary))
        else:
            emit_human(render_text_summary(summary).rstrip(), quiet=args.quiet)
            if args.verbose and not args.quiet:
                eprint(render_row_details(summary["rows"]).rstrip())
            if not args.dry_run:
                emit_human(f"Cleaned workbook: {output_path}", quiet=args.quiet)
                emit_human(f"Sanitize summary: {summary_path}", quiet=args.quiet)

        if args.fail_on_corrupted and result.stats.corrupted_cells > 0:
            return EXIT_CORRUPTED_FOUND
        return EXIT_SUCCESS
    except Exception as exc:
        eprint(str(exc))
        return classify_exception(exc)


def run_config_init(args: argparse.Namespace) -> int:
    config_path = Path(args.path)
    if config_path.exists():
        eprint(f"Refusing to overwrite existing config: {config_path}")
        return EXIT_COMMAND_ERROR
    write_text(config_path, default_config_text())
    emit_human(f"Config written: {config_path}")
    return EXIT_SUCCESS


def run_version() -> int:
    print(TOOL_VERSION)
    return EXIT_SUCCESS


def main(argv: list[str] | None = None) -> int:
    try:
        parser = build_parser()
        args = parser.parse_args(argv)
        if args.command == "sanitize":
            return run_sanitize(args)
        if args.command == "config":
            if args.config_command == "init":
                return run_config_init(args)
        if args.command == "version":
            return run_version()
        raise CliError(f"Unknown command: {args.command}", EXIT_COMMAND_ERROR)
    except CliError as exc:
        eprint(str(exc))
        return exc.code


if __name__ == "__main__":
    raise SystemExit(main())
