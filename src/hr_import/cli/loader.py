from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from uuid import UUID

from psycopg import Connection

from hr_import.db.import_runs import insert_import_run, update_import_run_status
from hr_import.db.snapshots import fetch_snapshot
from hr_import.db.writers import ApplyResult, apply_changes
from hr_import.ingest.pipeline import ImportOutcome, run_import
from hr_import.ingest.readers import read_import_file
from hr_import.ingest.summary import ImportSummary
from hr_import.reconcile.reporter import ReconcileOptions

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LoadResult:
    """Everything a `load` produced, for printing in the terminal."""
    run_id: UUID
    summary: ImportSummary
    outcome: ImportOutcome
    applied: ApplyResult | None     # `None` when the run was aborted on row errors

    @property
    def was_applied(self) -> bool:
        return self.applied is not None

    def render_one_line(self) -> str:
        line = f"{self.summary.render_one_line()} run_id={self.run_id}"
        if self.applied is None:
            return line + " (not applied)"
        if self.applied.unmatched:
            line += f" unmatched={len(self.applied.unmatched)}"
        return line


def load_file(
    conn: Connection,
    *,
    input_path: Path,
    kind: str,
    options: ReconcileOptions | None = None,
    allow_errors: bool = False,
) -> LoadResult:
    """
    End-to-end import orchestrator:
      - Read the file (unreadable files raise before anything is recorded),
      - Create an `import_runs` row (which is committed immediately),
      - Parse and validate every row,
      - Snapshot the existing records and reconcile the accepted ones against it,
      - Apply creates/updates/archives, unless rows were rejected and
        `allow_errors` is off,
      - And record the counts and final `status` on the run.

    Raises on structural problems with the file and on infra errors (DB issues,
    bad connection). Rejected rows never raise.
    """
    options = options or ReconcileOptions()
    content = read_import_file(input_path)

    ## -- create run ledger, committed immediately
    run_id = insert_import_run(conn, input_path=input_path, kind=kind)
    conn.commit()

    try:
        snapshot = fetch_snapshot(conn, kind=kind)
        outcome = run_import(content, kind, snapshot=snapshot, options=options)
        summary = ImportSummary.from_outcome(outcome, input_path=str(input_path))
        counts = {"accepted": summary.accepted, "rejected": summary.rejected}

        ## -- partial imports are opt-in
        if outcome.result.errors and not allow_errors:
            logger.warning(
                "%s: %d row(s) rejected, nothing written (use --allow-errors to import the rest)",
                input_path, summary.rejected,
            )
            update_import_run_status(
                conn, run_id=run_id, status="failed", counts=counts, detail="aborted: rows rejected",
            )
            conn.commit()
            return LoadResult(run_id=run_id, summary=summary, outcome=outcome, applied=None)

        assert outcome.reconciliation is not None
        applied = apply_changes(
            conn, kind=kind, summary=outcome.reconciliation, replace_existing=options.replace_existing,
        )

        ## -- run success!
        counts.update(
            created=applied.inserted,
            updated=applied.updated,
            skipped=summary.skipped,
            archived=applied.archived,
        )
        detail = f"unmatched: {len(applied.unmatched)}" if applied.unmatched else None
        update_import_run_status(conn, run_id=run_id, status="succeeded", counts=counts, detail=detail)
        conn.commit()

        return LoadResult(run_id=run_id, summary=summary, outcome=outcome, applied=applied)

    except Exception as e:
        # revert all changes (excluding run ledger)
        conn.rollback()
        ## -- Update that the run failed (and separate txn)
        update_import_run_status(conn, run_id=run_id, status="failed", detail=str(e))
        conn.commit()
        raise
