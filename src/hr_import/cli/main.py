from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path

from hr_import.cli.loader import load_file
from hr_import.db.connect import connect
from hr_import.db.initialize import db_init
from hr_import.ingest.pipeline import run_import
from hr_import.ingest.readers import load_snapshot_file, read_import_file
from hr_import.ingest.summary import ImportSummary, render_row_errors, write_rejects_csv
from hr_import.parsing.errors import StructuralImportError
from hr_import.parsing.registry import IMPORT_KINDS
from hr_import.reconcile.reporter import ReconcileOptions

EXIT_OK = 0
EXIT_ROW_ERRORS = 1
EXIT_STRUCTURAL = 2


def _add_import_args(p: argparse.ArgumentParser) -> None:
    """Flags shared by `check` and `load`."""
    p.add_argument("--input", required=True, help="Path to the CSV file to import.")
    p.add_argument("--kind", required=True, choices=IMPORT_KINDS, help="What the file holds.")
    p.add_argument(
        "--no-update-existing", dest="update_existing", action="store_false",
        help="Leave records that already exist untouched.",
    )
    p.add_argument(
        "--no-add-new", dest="add_new", action="store_false",
        help="Do not create records that do not exist yet.",
    )
    p.add_argument(
        "--archive-missing", action="store_true",
        help="Archive existing records that are absent from the file.",
    )
    p.add_argument(
        "--replace", dest="replace_existing", action="store_true",
        help="Replace matched records instead of merging the file's fields into them.",
    )
    p.add_argument("--rejects-out", default=None, help="Write rejected rows to this CSV file.")


def _options(args: argparse.Namespace) -> ReconcileOptions:
    return ReconcileOptions(
        update_existing=args.update_existing,
        add_new=args.add_new,
        archive_missing=args.archive_missing,
        replace_existing=args.replace_existing,
    )


def _report_rejects(errors, rejects_out: str | None) -> None:
    for line in render_row_errors(errors):
        print(line)
    if rejects_out:
        n = write_rejects_csv(Path(rejects_out), errors)
        print(f"Wrote {n} reject reason(s) to {rejects_out}")


def main(argv: list[str] | None = None) -> int:
    """
    A CLI for validating and importing HR spreadsheets (employees and their
    insurance policies) into Postgres.

    The `cmd` options are:
    ## check:
    Parse and validate a file without touching the database. With `--snapshot`
    (a CSV with canonical headers, or JSONL, of existing records) it also
    reports what an import would create, update, skip, and archive.

    ### Example check usage:
    - `hr-import check --input data/employees.csv --kind employees`
    - `hr-import check --input data/policies.csv --kind policies --snapshot existing.jsonl --archive-missing`

    ## load:
    Snapshot the existing records from Postgres, reconcile, and apply.
    Nothing is written when a row was rejected, unless `--allow-errors`.

    ### Example load usage:
    - `hr-import load --input data/employees.csv --kind employees`
    - `hr-import load --input data/policies.csv --kind policies --allow-errors --rejects-out rejects.csv`

    ## db:
    Database controlling commands, includes DB initalization functionality.
    - `init` is the command to reinitalize the DB
    - `--sql` is an optional pointer to which dir contains the SQL file(s) you want to use.

    Exit codes: 0 clean, 1 when any row was rejected, 2 when the file could not
    be imported at all.
    """
    p = argparse.ArgumentParser(prog="hr-import")
    p.add_argument(
        "--log-level",
        default=os.getenv("HR_IMPORT_LOG_LEVEL", "WARNING"),
        help="Logging level (default: $HR_IMPORT_LOG_LEVEL or WARNING).",
    )
    sub = p.add_subparsers(dest="cmd", required=True)

    # check cmd
    check = sub.add_parser("check", help="Validate a file (and optionally reconcile it) without a database.")
    _add_import_args(check)
    check.add_argument("--snapshot", default=None, help="Existing records to reconcile against (CSV or JSONL).")

    # load cmd
    load = sub.add_parser("load", help="Import a file into Postgres.")
    _add_import_args(load)
    load.add_argument(
        "--allow-errors", action="store_true",
        help="Import the accepted rows even when some rows were rejected.",
    )

    # db cmd
    db = sub.add_parser("db", help="Database utilities.")
    db_sub = db.add_subparsers(dest="db_cmd", required=True)

    db_init_p = db_sub.add_parser("init", help="Initialize DB schema from SQL file(s).")
    db_init_p.add_argument("--sql", default="sql", help="Path to schema SQL file OR a directory of `.sql` files.")

    args = p.parse_args(argv)
    logging.basicConfig(
        level=str(args.log_level).upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.cmd == "check":
        try:
            content = read_import_file(Path(args.input))
            snapshot = load_snapshot_file(Path(args.snapshot)) if args.snapshot else None
            outcome = run_import(content, args.kind, snapshot=snapshot, options=_options(args))
        except StructuralImportError as e:
            print(f"error: {args.input}: {e.render()}", file=sys.stderr)
            return EXIT_STRUCTURAL

        print(ImportSummary.from_outcome(outcome, input_path=args.input).render_one_line())
        _report_rejects(outcome.result.errors, args.rejects_out)
        return EXIT_ROW_ERRORS if outcome.result.errors else EXIT_OK

    if args.cmd == "load":
        try:
            with connect() as conn:
                result = load_file(
                    conn,
                    input_path=Path(args.input),
                    kind=args.kind,
                    options=_options(args),
                    allow_errors=args.allow_errors,
                )
        except StructuralImportError as e:
            print(f"error: {args.input}: {e.render()}", file=sys.stderr)
            return EXIT_STRUCTURAL

        print(result.render_one_line())
        _report_rejects(result.outcome.result.errors, args.rejects_out)
        return EXIT_ROW_ERRORS if result.outcome.result.errors else EXIT_OK

    if args.cmd == "db" and args.db_cmd == "init":
        files = db_init(sql_path=Path(args.sql))
        print(f"Initialized schema from {args.sql} ({len(files)} file(s))")
        return EXIT_OK

    return EXIT_STRUCTURAL


if __name__ == "__main__":
    raise SystemExit(main())
