from __future__ import annotations

import io
import json
import os
import subprocess
import sys
import tempfile
import unittest
from contextlib import redirect_stderr, redirect_stdout
from pathlib import Path

from openpyxl import Workbook, load_workbook

from sheet_sanitizer import __version__
from sheet_sanitizer.cli import (
    EXIT_COMMAND_ERROR,
    EXIT_CORRUPTED_FOUND,
    EXIT_EMPTY_WORKBOOK,
    EXIT_PARSE_FAILED,
    EXIT_SUCCESS,
    classify_exception,
    main,
)
from sheet_sanitizer.errors import ConfigError, EmptyInputError, EmptySheetError, InvalidWorkbookError


ROOT = Path(__file__).resolve().parents[1]
CLI = [sys.executable, "-m", "sheet_sanitizer.cli"]
FIXED_STAMP = "20260301T010203Z"


def run_cli(*args: str, cwd: Path = ROOT, env: dict[str, str] | None = None) -> subprocess.CompletedProcess[str]:
    merged_env = dict(os.environ)
    merged_env["SHEET_SANITIZER_OUTPUT_STAMP"] = FIXED_STAMP
    merged_env["PYTHONPATH"] = os.pathsep.join(filter(None, [str(ROOT), merged_env.get("PYTHONPATH")]))
    if env:
        merged_env.update(env)
    return subprocess.run(
        [*CLI, *args],
        cwd=cwd,
        capture_output=True,
        text=True,
        env=merged_env,
    )


def run_main(*args: str) -> tuple[int, str, str]:
    stdout = io.StringIO()
    stderr = io.StringIO()
    with redirect_stdout(stdout), redirect_stderr(stderr):
        code = main(list(args))
    return code, stdout.getvalue(), stderr.getvalue()


def write_messy_workbook(path: Path) -> Path:
    workbook = Workbook()
    sheet = workbook.active
    sheet.append(["Valid1", "bad!", None, "123abc"])
    sheet.append([1234, None, "ok", 5.5])
    workbook.save(path)
    return path


def write_clean_workbook(path: Path) -> Path:
    workbook = Workbook()
    workbook.active.append(["alpha", "beta", 3])
    workbook.save(path)
    return path


class SheetSanitizerCliTests(unittest.TestCase):
    def test_sanitize_writes_workbook_and_summary_into_out_dir(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            input_path = write_messy_workbook(Path(tmpdir) / "messy.xlsx")
            out_dir = Path(tmpdir) / "out"
            proc = run_cli("sanitize", str(input_path), "--out", str(out_dir))
            self.assertEqual(proc.returncode, 0, proc.stderr)
            self.assertIn("Cleaned workbook:", proc.stderr)
            self.assertIn("Corrupted Cells: 1", proc.stderr)

            cleaned = load_workbook(out_dir / "messy_cleaned.xlsx")
            self.assertEqual(cleaned.sheetnames, ["Sheet", "Statistics"])
            self.assertEqual([cell.value for cell in cleaned["Sheet"][1] if cell.value is not None], ["Valid1", "123abc"])

            summary = json.loads((out_dir / "sanitize-summary.json").read_text(encoding="utf-8"))
            self.assertEqual(summary["contract"]["name"], "sheet_sanitizer.sanitize_summary")
            self.assertEqual(
                summary["stats"],
                {"total_cells": 8, "valid_cells": 5, "empty_cells": 2, "corrupted_cells": 1},
            )
            self.assertEqual(summary["run_summary"]["generated_at"], "1970-01-01T00:00:00Z")

    def test_sanitize_json_stdout_contains_only_json(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            input_path = write_messy_workbook(Path(tmpdir) / "messy.xlsx")
            proc = run_cli("sanitize", str(input_path), "--out", tmpdir, "--json")
            self.assertEqual(proc.returncode, 0, proc.stderr)
            summary = json.loads(proc.stdout)
            self.assertEqual(summary["stats"]["total_cells"], 8)
            self.assertEqual(proc.stderr.strip(), "")

    def test_default_output_directory_uses_stamp(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            input_path = write_clean_workbook(Path(tmpdir) / "clean.xlsx")
            proc = run_cli("sanitize", str(input_path), cwd=Path(tmpdir))
            self.assertEqual(proc.returncode, 0, proc.stderr)
            output_dir = Path(tmpdir) / "sheet-sanitizer-output" / f"clean-{FIXED_STAMP}"
            self.assertTrue((output_dir / "clean_cleaned.xlsx").exists())
            self.assertTrue((output_dir / "sanitize-summary.json").exists())

    def test_fail_on_corrupted_returns_exit_4(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            input_path = write_messy_workbook(Path(tmpdir) / "messy.xlsx")
            code, _, _ = run_main("sanitize", str(input_path), "--out", tmpdir, "--fail-on-corrupted", "-q")
            self.assertEqual(code, EXIT_CORRUPTED_FOUND)

    def test_fail_on_corrupted_is_quiet_for_clean_input(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            input_path = write_clean_workbook(Path(tmpdir) / "clean.xlsx")
            code, _, stderr = run_main("sanitize", str(input_path), "--out", tmpdir, "--fail-on-corrupted", "-q")
            self.assertEqual(code, EXIT_SUCCESS, stderr)
            self.assertEqual(stderr, "")

    def test_unreadable_input_returns_exit_2(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            input_path = Path(tmpdir) / "corrupt.xlsx"
            input_path.write_bytes(b"\x50\x4B\x03\x04")
            proc = run_cli("sanitize", str(input_path), "--out", tmpdir)
            self.assertEqual(proc.returncode, EXIT_PARSE_FAILED)
            self.assertIn("Could not read workbook", proc.stderr)

    def test_empty_input_file_returns_exit_3(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            input_path = Path(tmpdir) / "empty.xlsx"
            input_path.write_bytes(b"")
            code, _, stderr = run_main("sanitize", str(input_path), "--out", tmpdir)
            self.assertEqual(code, EXIT_EMPTY_WORKBOOK)
            self.assertIn("empty", stderr)

    def test_missing_input_returns_exit_1(self):
        code, _, stderr = run_main("sanitize", "does-not-exist.xlsx")
        self.assertEqual(code, EXIT_COMMAND_ERROR)
        self.assertIn("File not found", stderr)

    def test_refuses_to_overwrite_existing_output(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            input_path = write_clean_workbook(Path(tmpdir) / "clean.xlsx")
            output_path = Path(tmpdir) / "taken.xlsx"
            output_path.write_bytes(b"keep me")
            code, _, stderr = run_main("sanitize", str(input_path), str(output_path))
            self.assertEqual(code, EXIT_COMMAND_ERROR)
            self.assertIn("Refusing to overwrite", stderr)
            self.assertEqual(output_path.read_bytes(), b"keep me")

    def test_positional_output_and_flag_conflict(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            input_path = write_clean_workbook(Path(tmpdir) / "clean.xlsx")
            code, _, stderr = run_main(
                "sanitize", str(input_path), str(Path(tmpdir) / "a.xlsx"), "--output", str(Path(tmpdir) / "b.xlsx")
            )
            self.assertEqual(code, EXIT_COMMAND_ERROR)
            self.assertIn("not both", stderr)

    def test_dry_run_writes_nothing(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            input_path = write_messy_workbook(Path(tmpdir) / "messy.xlsx")
            out_dir = Path(tmpdir) / "out"
            code, _, stderr = run_main("sanitize", str(input_path), "--out", str(out_dir), "--dry-run")
            self.assertEqual(code, EXIT_SUCCESS, stderr)
            self.assertFalse(out_dir.exists())
            self.assertIn("Valid Cells: 5", stderr)
            self.assertNotIn("Cleaned workbook:", stderr)

    def test_compaction_flag_overrides_config(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            input_path = write_messy_workbook(Path(tmpdir) / "messy.xlsx")
            config_path = Path(tmpdir) / "sheet-sanitizer.json"
            config_path.write_text(json.dumps({"compaction": "shift", "statistics_sheet": "Report"}), encoding="utf-8")
            summary_path = Path(tmpdir) / "summary.json"
            code, _, stderr = run_main(
                "sanitize",
                str(input_path),
                "--output",
                str(Path(tmpdir) / "cleaned.xlsx"),
                "--json-summary",
                str(summary_path),
                "--config",
                str(config_path),
                "--compaction",
                "filter",
                "-q",
            )
            self.assertEqual(code, EXIT_SUCCESS, stderr)
            summary = json.loads(summary_path.read_text(encoding="utf-8"))
            self.assertEqual(summary["compaction"], "filter")
            self.assertEqual(summary["statistics_sheet"], "Report")

    def test_invalid_config_returns_exit_1(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            input_path = write_clean_workbook(Path(tmpdir) / "clean.xlsx")
            config_path = Path(tmpdir) / "sheet-sanitizer.yaml"
            config_path.write_text("compaction: filter\n", encoding="utf-8")
            code, _, stderr = run_main("sanitize", str(input_path), "--config", str(config_path), "--dry-run")
            self.assertEqual(code, EXIT_COMMAND_ERROR)
            self.assertIn("YAML configs are not supported yet", stderr)

    def test_verbose_lists_rows(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            input_path = write_messy_workbook(Path(tmpdir) / "messy.xlsx")
            code, _, stderr = run_main("sanitize", str(input_path), "--dry-run", "-v")
            self.assertEqual(code, EXIT_SUCCESS, stderr)
            self.assertIn("Row 1: 4 -> 2 cells", stderr)

    def test_config_init_writes_default_and_refuses_overwrite(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            config_path = Path(tmpdir) / "sheet-sanitizer.json"
            code, _, stderr = run_main("config", "init", "--path", str(config_path))
            self.assertEqual(code, EXIT_SUCCESS, stderr)
            self.assertEqual(json.loads(config_path.read_text(encoding="utf-8"))["compaction"], "shift")
            code, _, stderr = run_main("config", "init", "--path", str(config_path))
            self.assertEqual(code, EXIT_COMMAND_ERROR)
            self.assertIn("Refusing to overwrite", stderr)

    def test_version(self):
        code, stdout, _ = run_main("version")
        self.assertEqual(code, EXIT_SUCCESS)
        self.assertEqual(stdout.strip(), __version__)

    def test_bad_arguments_return_exit_1(self):
        code, _, stderr = run_main("sanitize")
        self.assertEqual(code, EXIT_COMMAND_ERROR)
        self.assertTrue(stderr.strip())

    def test_classify_exception(self):
        self.assertEqual(classify_exception(EmptySheetError()), EXIT_EMPTY_WORKBOOK)
        self.assertEqual(classify_exception(EmptyInputError()), EXIT_EMPTY_WORKBOOK)
        self.assertEqual(classify_exception(InvalidWorkbookError("x")), EXIT_PARSE_FAILED)
        self.assertEqual(classify_exception(ConfigError("x")), EXIT_COMMAND_ERROR)
        self.assertEqual(classify_exception(RuntimeError("x")), EXIT_COMMAND_ERROR)


if __name__ == "__main__":
    unittest.main()
