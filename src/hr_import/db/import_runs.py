from __future__ import annotations

from pathlib import Path
from typing import Literal, Mapping
from uuid import UUID

from psycopg import Connection

RunStatus = Literal["running", "succeeded", "failed"]

# count columns on `import_runs`, filled when a run finishes
_COUNT_COLS = ("accepted", "rejected", "created", "updated", "skipped", "archived")


def insert_import_run(conn: Connection, *, input_path: Path, kind: str) -> UUID:
    """
    Create an `import_runs` row, returns `run_id`.

    The caller commits immediately so the ledger persists even if later steps error.
    """
    row = conn.execute(
        """
        INSERT INTO import_runs (input_path, kind, status)
        VALUES (%s, %s, 'running')
        RETURNING run_id
        """,
        (str(input_path), kind),
    ).fetchone()
    assert row is not None
    return row[0]


def update_import_run_status(
    conn: Connection,
    *,
    run_id: UUID,
    status: RunStatus,
    counts: Mapping[str, int | None] | None = None,
    detail: str | None = None,
) -> None:
    """Updates `status` (and any known counts) of the run with `run_id`."""
    counts = counts or {}
    values = [counts.get(c) for c in _COUNT_COLS]
    conn.execute(
        """
        UPDATE import_runs
        SET status = %s,
            finished_at = CASE WHEN %s THEN now() ELSE NULL END,
            accepted = COALESCE(%s, accepted),
            rejected = COALESCE(%s, rejected),
            created  = COALESCE(%s, created),
            updated  = COALESCE(%s, updated),
            skipped  = COALESCE(%s, skipped),
            archived = COALESCE(%s, archived),
            detail   = COALESCE(%s, detail)
        WHERE run_id = %s
        """,
        (status, status != "running", *values, detail, run_id),
    )
