from __future__ import annotations

from hr_import.db.snapshots import fetch_employee_snapshot


def test_tables_exist(conn) -> None:
    """`sql/000_init.sql` created every table the loader writes to."""
    rows = conn.execute(
        """
        SELECT table_name FROM information_schema.tables
        WHERE table_schema = 'public'
        ORDER BY table_name
        """
    ).fetchall()
    names = {r[0] for r in rows}
    assert {"employees", "insurance_policies", "import_runs"} <= names


def test_snapshots_exclude_archived(conn) -> None:
    """Archived employees are not part of the snapshot."""
    conn.execute(
        "INSERT INTO employees (employee_code, first_name, last_name, position) VALUES ('E1', 'A', 'B', 'Guard')"
    )
    conn.execute(
        "INSERT INTO employees (employee_code, first_name, last_name, position, archived_at) "
        "VALUES ('E2', 'C', 'D', 'Guard', now())"
    )
    snap = fetch_employee_snapshot(conn)
    assert [r["employee_code"] for r in snap] == ["E1"]
    assert snap[0]["company"] == "Butters"
