from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Mapping

from psycopg import Connection, sql

from hr_import.reconcile.reporter import ClassifiedRecord, ReconciliationSummary

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TableWriteSpec:
    """Whitelisted table contract used for safe SQL generation.

    Notes:
    - `columns` are the canonical fields an import may write. Anything else on a
      record (`id`, names carried by a policy row, ...) is ignored.
    - `insert_defaults` fill columns a new row must have but the file may omit.
    """
    table_name: str
    columns: tuple[str, ...]
    insert_defaults: Mapping[str, Any] = field(default_factory=dict)

    def writable(self, values: Mapping[str, Any]) -> dict[str, Any]:
        return {c: values[c] for c in self.columns if c in values}

    def replacement(self, values: Mapping[str, Any]) -> dict[str, Any]:
        """Every column: absent ones fall back to the insert default, else NULL."""
        return {c: values.get(c, self.insert_defaults.get(c)) for c in self.columns}


TABLE_SPECS: dict[str, TableWriteSpec] = {
    "employees": TableWriteSpec(
        table_name="employees",
        columns=(
            "employee_code",
            "first_name",
            "last_name",
            "id_number",
            "company",
            "department",
            "position",
            "email",
            "status",
            "date_joined",
        ),
        # every imported employee without these is a Butters security guard
        insert_defaults={"company": "Butters", "department": "Security"},
    ),
    "insurance_policies": TableWriteSpec(
        table_name="insurance_policies",
        columns=("company", "policy_number", "amount", "status", "notes"),
    ),
}


@dataclass
class ApplyResult:
    """What actually reached the database."""
    inserted: int = 0
    updated: int = 0
    archived: int = 0
    unmatched: list[ClassifiedRecord] = field(default_factory=list)    # policies whose employee was not found


def _insert_employee(conn: Connection, spec: TableWriteSpec, values: Mapping[str, Any]) -> None:
    row = {**spec.insert_defaults, **spec.writable(values)}
    cols = list(row)
    query = sql.SQL("INSERT INTO {tbl} ({cols}) VALUES ({vals})").format(
        tbl=sql.Identifier(spec.table_name),
        cols=sql.SQL(", ").join(sql.Identifier(c) for c in cols),
        vals=sql.SQL(", ").join(sql.Placeholder() for _ in cols),
    )
    conn.execute(query, [row[c] for c in cols])


def _update_by_id_or_key(
    conn: Connection,
    spec: TableWriteSpec,
    rec: ClassifiedRecord,
    *,
    key_where: sql.Composable,
    key_params: list[Any],
    replace: bool = False,
) -> int:
    """UPDATE the writable columns of `rec.values`. Targets `existing['id']` when known, else the natural key."""
    values = spec.replacement(rec.values) if replace else spec.writable(rec.values)
    if not values:
        return 0
    assignments = sql.SQL(", ").join(
        sql.SQL("{c} = {p}").format(c=sql.Identifier(c), p=sql.Placeholder()) for c in values
    )
    existing_id = (rec.existing or {}).get("id")
    if existing_id is not None:
        where, params = sql.SQL("id = {p}").format(p=sql.Placeholder()), [existing_id]
    else:
        where, params = key_where, key_params

    query = sql.SQL("UPDATE {tbl} SET {assign}, updated_at = now() WHERE {where} AND archived_at IS NULL").format(
        tbl=sql.Identifier(spec.table_name),
        assign=assignments,
        where=where,
    )
    cur = conn.execute(query, [*values.values(), *params])
    return cur.rowcount


def _archive_by_id_or_key(
    conn: Connection,
    spec: TableWriteSpec,
    rec: ClassifiedRecord,
    *,
    key_where: sql.Composable,
    key_params: list[Any],
) -> int:
    existing_id = (rec.existing or {}).get("id")
    if existing_id is not None:
        where, params = sql.SQL("id = {p}").format(p=sql.Placeholder()), [existing_id]
    else:
        where, params = key_where, key_params
    query = sql.SQL("UPDATE {tbl} SET archived_at = now() WHERE {where} AND archived_at IS NULL").format(
        tbl=sql.Identifier(spec.table_name),
        where=where,
    )
    return conn.execute(query, params).rowcount


_EMPLOYEE_KEY_WHERE = sql.SQL("lower(employee_code) = lower({p})").format(p=sql.Placeholder())

_POLICY_KEY_WHERE = sql.SQL(
    "lower(policy_number) = lower({p}) AND employee_id IN "
    "(SELECT id FROM employees WHERE lower(employee_code) = lower({p}))"
).format(p=sql.Placeholder())


def apply_employee_changes(
    conn: Connection, summary: ReconciliationSummary, *, replace_existing: bool = False
) -> ApplyResult:
    """
    Write an employee reconciliation: insert creates, update updates, stamp
    `archived_at` on archives. Skips are not written.

    Does NOT commit.
    """
    spec = TABLE_SPECS["employees"]
    result = ApplyResult()

    for rec in summary.to_create:
        _insert_employee(conn, spec, rec.values)
        result.inserted += 1

    for rec in summary.to_update:
        code = rec.values.get("employee_code")
        result.updated += _update_by_id_or_key(
            conn, spec, rec, key_where=_EMPLOYEE_KEY_WHERE, key_params=[code], replace=replace_existing
        )

    for rec in summary.to_archive:
        code = rec.values.get("employee_code")
        result.archived += _archive_by_id_or_key(conn, spec, rec, key_where=_EMPLOYEE_KEY_WHERE, key_params=[code])

    logger.info(
        "employees applied: inserted=%d updated=%d archived=%d",
        result.inserted, result.updated, result.archived,
    )
    return result


def apply_policy_changes(
    conn: Connection, summary: ReconciliationSummary, *, replace_existing: bool = False
) -> ApplyResult:
    """
    Write a policy reconciliation. New policies attach to the active employee
    with the record's `employee_code`; when there is none the policy is
    reported in `unmatched` and not written.

    Does NOT commit.
    """
    spec = TABLE_SPECS["insurance_policies"]
    result = ApplyResult()

    for rec in summary.to_create:
        values = spec.writable(rec.values)
        cols = list(values)
        query = sql.SQL(
            "INSERT INTO {tbl} (employee_id, {cols}) "
            "SELECT e.id, {vals} FROM employees e "
            "WHERE lower(e.employee_code) = lower({code}) AND e.archived_at IS NULL "
            "RETURNING id"
        ).format(
            tbl=sql.Identifier(spec.table_name),
            cols=sql.SQL(", ").join(sql.Identifier(c) for c in cols),
            vals=sql.SQL(", ").join(sql.Placeholder() for _ in cols),
            code=sql.Placeholder(),
        )
        row = conn.execute(query, [*values.values(), rec.values.get("employee_code")]).fetchone()
        if row is None:
            logger.warning(
                "could not find employee %r for policy %r (row %s)",
                rec.values.get("employee_code"), rec.values.get("policy_number"), rec.source_row,
            )
            result.unmatched.append(rec)
            continue
        result.inserted += 1

    for rec in summary.to_update:
        params = [rec.values.get("policy_number"), rec.values.get("employee_code")]
        result.updated += _update_by_id_or_key(
            conn, spec, rec, key_where=_POLICY_KEY_WHERE, key_params=params, replace=replace_existing
        )

    for rec in summary.to_archive:
        params = [rec.values.get("policy_number"), rec.values.get("employee_code")]
        result.archived += _archive_by_id_or_key(conn, spec, rec, key_where=_POLICY_KEY_WHERE, key_params=params)

    logger.info(
        "policies applied: inserted=%d updated=%d archived=%d unmatched=%d",
        result.inserted, result.updated, result.archived, len(result.unmatched),
    )
    return result


def apply_changes(
    conn: Connection, *, kind: str, summary: ReconciliationSummary, replace_existing: bool = False
) -> ApplyResult:
    """Dispatch to the writer for `kind`. Does NOT commit."""
    if kind == "employees":
        return apply_employee_changes(conn, summary, replace_existing=replace_existing)
    if kind == "policies":
        return apply_policy_changes(conn, summary, replace_existing=replace_existing)
    raise ValueError(f"Unknown import kind: {kind}")
