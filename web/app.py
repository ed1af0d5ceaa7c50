#!/usr/bin/env python3
from __future__ import annotations

import io
import sys
from pathlib import Path
from typing import Optional

import pandas as pd
import streamlit as st

ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT))

from sheet_sanitizer.compactor import STRATEGIES
from sheet_sanitizer.config import SanitizerConfig
from sheet_sanitizer.errors import EmptyInputError, InvalidWorkbookError, SanitizerError
from sheet_sanitizer.reporter import STATISTICS_LABELS
from sheet_sanitizer.sanitizer import build_structured_summary, sanitize_bytes
from sheet_sanitizer.workbook_io import (
    EXCEL_CONTENT_TYPES,
    SUPPORTED_SUFFIXES,
    XLS_CONTENT_TYPE,
    normalize_content_type,
)

DOWNLOAD_NAME = "cleaned_file.xlsx"
DOWNLOAD_MIME = "application/octet-stream"
PREVIEW_ROWS = 50


def ensure_state() -> None:
    st.session_state.setdefault("result", None)
    st.session_state.setdefault("error", None)


def validate_upload(name: str, content_type: Optional[str], data: Optional[bytes]) -> str:
    if not data:
        raise EmptyInputError()
    suffix = Path(name or "").suffix.lower()
    content_type = normalize_content_type(content_type)
    if content_type not in EXCEL_CONTENT_TYPES:
        raise InvalidWorkbookError("Uploaded file is not an Excel file.")
    if content_type == XLS_CONTENT_TYPE or suffix == ".xls":
        raise InvalidWorkbookError(".xls is not supported. Save the workbook as .xlsx first.")
    if suffix not in SUPPORTED_SUFFIXES:
        raise InvalidWorkbookError(f"Expected an .xlsx/.xlsm file, got: {suffix or '[missing extension]'}")
    return suffix


def sheet_preview(data: bytes, sheet_name: str, limit: int = PREVIEW_ROWS) -> pd.DataFrame:
    frame = pd.read_excel(io.BytesIO(data), sheet_name=sheet_name, header=None, engine="openpyxl")
    return frame.head(limit).fillna("").astype(str)


def clean_upload(name: str, content_type: Optional[str], data: Optional[bytes], compaction: str = "shift") -> dict:
    suffix = validate_upload(name, content_type, data)
    config = SanitizerConfig(compaction=compaction)
    cleaned, result = sanitize_bytes(data, config, keep_vba=suffix == ".xlsm")
    summary = build_structured_summary(result, input_path=Path(name), output_path=Path(DOWNLOAD_NAME))
    return {
        "name": name,
        "bytes": cleaned,
        "summary": summary,
        "preview": sheet_preview(cleaned, result.sheet),
    }


def render_metrics(summary: dict) -> None:
    stats = summary["stats"]
    columns = st.columns(len(STATISTICS_LABELS))
    for column, (label, key) in zip(columns, STATISTICS_LABELS):
        column.metric(label, stats[key])


def render_result(item: dict) -> None:
    summary = item["summary"]
    st.success(f"Cleaned sheet '{summary['sheet']}' of {item['name']}.")
    render_metrics(summary)
    for warning in summary["warnings"]:
        st.warning(warning)
    st.subheader("Cleaned sheet preview")
    st.dataframe(item["preview"], width="stretch")
    st.download_button(
        "Download cleaned workbook",
        data=item["bytes"],
        file_name=DOWNLOAD_NAME,
        mime=DOWNLOAD_MIME,
        type="primary",
    )


def main() -> None:
    st.set_page_config(page_title="sheet-sanitizer", layout="centered")
    ensure_state()

    st.title("sheet-sanitizer")
    st.caption("Upload a workbook. Empty and corrupted cells in the first sheet are removed, rows are compacted, and a Statistics sheet is appended.")

    upload = st.file_uploader("Upload Excel file", type=[suffix.lstrip(".") for suffix in sorted(SUPPORTED_SUFFIXES)])
    compaction = st.radio("Compaction", options=list(STRATEGIES), index=0, horizontal=True)
    submit = st.button("Clean", type="primary", disabled=upload is None)

    if submit and upload is not None:
        try:
            st.session_state["result"] = clean_upload(upload.name, upload.type, upload.getvalue(), compaction)
            st.session_state["error"] = None
        except SanitizerError as exc:
            st.session_state["result"] = None
            st.session_state["error"] = str(exc)

    if st.session_state["error"]:
        st.error(st.session_state["error"])
    elif st.session_state["result"]:
        render_result(st.session_state["result"])


if __name__ == "__main__":
    main()
