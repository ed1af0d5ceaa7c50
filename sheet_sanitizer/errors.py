"""Errors raised by sheet-sanitizer.

They all derive from ``ValueError`` so callers that only care about "this
input cannot be cleaned" can catch one type.
"""

from __future__ import annotations


class SanitizerError(ValueError):
    pass


class EmptySheetError(SanitizerError):
    def __init__(self, message: str = "The Excel file is empty.") -> None:
        super().__init__(message)


class EmptyInputError(SanitizerError):
    def __init__(self, message: str = "Uploaded Excel file is empty.") -> None:
        super().__init__(message)


class InvalidWorkbookError(SanitizerError):
    pass


class ConfigError(SanitizerError):
    pass
