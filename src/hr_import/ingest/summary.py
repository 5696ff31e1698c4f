from __future__ import annotations

import csv
from dataclasses import dataclass
from pathlib import Path
from typing import Sequence

from hr_import.ingest.pipeline import ImportOutcome
from hr_import.parsing.types import RowError


@dataclass(frozen=True)
class ImportSummary:
    """Schema for all summary data that will be reported."""
    kind: str
    input_path: str
    total: int
    accepted: int
    rejected: int
    blank: int
    created: int | None = None
    updated: int | None = None
    skipped: int | None = None
    archived: int | None = None

    @classmethod
    def from_outcome(cls, outcome: ImportOutcome, *, input_path: str) -> "ImportSummary":
        res = outcome.result
        rec = outcome.reconciliation
        return cls(
            kind=outcome.kind,
            input_path=input_path,
            total=res.total,
            accepted=len(res.accepted),
            rejected=len(res.errors),
            blank=res.blank_rows,
            created=rec.created if rec else None,
            updated=rec.updated if rec else None,
            skipped=rec.skipped if rec else None,
            archived=rec.archived if rec else None,
        )

    def render_one_line(self) -> str:
        """How each line of summary is formatted for the terminal."""
        line = f"{self.kind}: total={self.total} accepted={self.accepted} rejected={self.rejected} blank={self.blank}"
        if self.created is not None:
            line += f" created={self.created} updated={self.updated} skipped={self.skipped} archived={self.archived}"
        return line


def render_row_errors(errors: Sequence[RowError]) -> list[str]:
    """One line per rejected row, every reason included."""
    return [e.render() for e in errors]


def write_rejects_csv(path: Path, errors: Sequence[RowError]) -> int:
    """
    Write rejected rows as `source_row,code,reason`, one line per reason.
    Returns the number of lines written (header excluded).
    """
    n = 0
    with path.open("w", encoding="utf-8", newline="") as f:
        writer = csv.writer(f)
        writer.writerow(["source_row", "code", "reason"])
        for err in errors:
            for issue in err.issues:
                writer.writerow([err.source_row, issue.code.value, issue.detail])
                n += 1
    return n
