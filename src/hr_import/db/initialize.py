from __future__ import annotations

import logging
from pathlib import Path

import psycopg

from hr_import.db.connect import connect

logger = logging.getLogger(__name__)


def run_sql_file(conn: psycopg.Connection, sql_path: Path) -> None:
    """Read and execute a `.sql` file, then commit."""
    script = sql_path.read_text(encoding="utf-8")

    # split on semicolons so a failing statement can be surfaced on its own
    statements = [s.strip() for s in script.split(";") if s.strip()]

    with conn.cursor() as cur:
        for i, stmt in enumerate(statements, 1):
            try:
                cur.execute(stmt)
            except psycopg.Error as e:
                raise RuntimeError(
                    f"DB init failed in {sql_path} on statement #{i}\n"
                    f"Postgres raised with: {e}\n"
                    f"--- statement ---\n{stmt}\n--- end ---\n"
                ) from e
    conn.commit()
    logger.info("ran %d statement(s) from %s", len(statements), sql_path)


def sql_files(sql_path: Path) -> list[Path]:
    """
    - If `sql_path` is a dir, all `*.sql` files in ASC order.
    - If `sql_path` is just one file, only that file.
    """
    if sql_path.is_dir():
        return sorted(sql_path.glob("*.sql"))
    return [sql_path]


def db_init(*, sql_path: Path, database_url: str | None = None) -> list[Path]:
    """Initialize (or re-initialize) the HR schema. Returns the files that ran."""
    files = sql_files(sql_path)
    if not files:
        raise FileNotFoundError(f"No .sql files found in {sql_path}")

    with connect(database_url) as conn:
        for p in files:
            run_sql_file(conn, p)
    return files
