"""Structural import failures.

These abort a run before any row is processed. Per-row problems are never
raised; they are collected as `RowError` values instead.
"""

from __future__ import annotations

from typing import Sequence


class StructuralImportError(Exception):
    """Base exception for failures that stop a whole import."""

    def __init__(self, message: str, details: Sequence[str] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = tuple(details or ())

    def render(self) -> str:
        if not self.details:
            return self.message
        return self.message + ": " + "; ".join(self.details)


class UnreadableFileError(StructuralImportError):
    """Raised when the file cannot be read or decoded."""

    def __init__(self, reason: str) -> None:
        super().__init__("cannot read file", [reason])


class MissingHeaderError(StructuralImportError):
    """Raised when the file is empty or its first line holds no column names."""

    def __init__(self) -> None:
        super().__init__("no header row")


class MissingRequiredFieldsError(StructuralImportError):
    """Raised when a required field matches none of the header columns."""

    def __init__(self, missing: Sequence[str]) -> None:
        self.missing = tuple(missing)
        super().__init__(
            "missing required fields: " + ", ".join(self.missing),
            [f"Missing field: {name}" for name in self.missing],
        )
