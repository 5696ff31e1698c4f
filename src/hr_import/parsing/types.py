from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping


class RejectCode(str, Enum):
    """Typed rejection classifications."""
    missing_required = "missing_required"
    insufficient_columns = "insufficient_columns"
    invalid_enum = "invalid_enum"
    invalid_numeric = "invalid_numeric"
    invalid_date = "invalid_date"
    invalid_email = "invalid_email"
    duplicate_key = "duplicate_key"     # only raised by reconciliation, never by the row parser


@dataclass(frozen=True, slots=True)
class CanonicalRecord:
    """Accepted row, keyed by canonical field name."""
    values: Mapping[str, Any]
    source_row: int                     # 1-based, header not counted
    raw_payload: Mapping[str, Any] = field(default_factory=dict, compare=False)

    def __post_init__(self) -> None:
        # read-only view so records can be shared with the reconciler safely
        object.__setattr__(self, "values", MappingProxyType(dict(self.values)))

    def to_mapping(self) -> dict[str, Any]:
        """A mutable copy of `values`, ready for merging or inserting."""
        return dict(self.values)

    def get(self, name: str, default: Any = None) -> Any:
        return self.values.get(name, default)


@dataclass(frozen=True, slots=True)
class RowIssue:
    """One reason a row was rejected."""
    code: RejectCode
    detail: str


@dataclass(frozen=True, slots=True)
class RowError:
    """Rejected row's contents, with every reason collected for it."""
    source_row: int
    issues: tuple[RowIssue, ...]
    raw_payload: Mapping[str, Any] = field(default_factory=dict, compare=False)

    @property
    def reasons(self) -> tuple[str, ...]:
        """Human-readable reasons, in the order they were found."""
        return tuple(i.detail for i in self.issues)

    @property
    def codes(self) -> tuple[RejectCode, ...]:
        return tuple(i.code for i in self.issues)

    def render(self) -> str:
        return f"Row {self.source_row}: " + "; ".join(self.reasons)


@dataclass(frozen=True, slots=True)
class ImportResult:
    """
    Outcome of one parse pass.

    `accepted` and `errors` partition the non-blank data rows: every such row
    lands in exactly one of them. Blank rows are only counted.
    """
    accepted: tuple[CanonicalRecord, ...]
    errors: tuple[RowError, ...]
    blank_rows: int = 0

    @property
    def total(self) -> int:
        return len(self.accepted) + len(self.errors)
