from __future__ import annotations

from typing import Any

from psycopg import Connection
from psycopg.rows import dict_row


def fetch_employee_snapshot(conn: Connection) -> list[dict[str, Any]]:
    """
    Existing, non-archived employees keyed by canonical field names.
    `id` is included so updates and archives can target the row directly.
    """
    with conn.cursor(row_factory=dict_row) as cur:
        cur.execute(
            """
            SELECT id, employee_code, first_name, last_name, id_number, company,
                   department, position, email, status, date_joined
            FROM employees
            WHERE archived_at IS NULL
            ORDER BY id
            """
        )
        return list(cur.fetchall())


def fetch_policy_snapshot(conn: Connection) -> list[dict[str, Any]]:
    """
    Existing, non-archived insurance policies with their employee's code and
    names, keyed by canonical field names.
    """
    with conn.cursor(row_factory=dict_row) as cur:
        cur.execute(
            """
            SELECT p.id, e.employee_code, e.first_name, e.last_name, p.company,
                   p.policy_number, p.amount, p.status, p.notes
            FROM insurance_policies p
            JOIN employees e ON e.id = p.employee_id
            WHERE p.archived_at IS NULL
            ORDER BY p.id
            """
        )
        return list(cur.fetchall())


def fetch_snapshot(conn: Connection, *, kind: str) -> list[dict[str, Any]]:
    """Snapshot of the existing records an import of `kind` reconciles against."""
    if kind == "employees":
        return fetch_employee_snapshot(conn)
    if kind == "policies":
        return fetch_policy_snapshot(conn)
    raise ValueError(f"Unknown import kind: {kind}")
