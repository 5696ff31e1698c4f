from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Iterable, Mapping

from hr_import.ingest.readers import decode_content, tokenize_csv
from hr_import.parsing.headers import resolve_headers
from hr_import.parsing.registry import ImportSpec, get_import_spec
from hr_import.parsing.schema import RowParser, is_blank_row
from hr_import.parsing.types import CanonicalRecord, ImportResult, RowError
from hr_import.reconcile.reporter import ReconcileOptions, ReconciliationSummary, reconcile

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ImportOutcome:
    """What one import run hands back to its caller."""
    kind: str
    result: ImportResult
    reconciliation: ReconciliationSummary | None = None     # only when a snapshot was supplied


def parse_rows(content: str | bytes, parser: RowParser) -> ImportResult:
    """
    Tokenize, resolve headers, and validate every data row.

    Raises a `StructuralImportError` subclass (unreadable file, no header, a
    required field with no column) before any row is looked at. Once rows are
    being processed nothing raises: each row is accepted or rejected.
    """
    config = parser.config
    table = tokenize_csv(decode_content(content))

    resolution = resolve_headers(table.header, config.header_mapping)
    resolution.require(config.required_fields)

    accepted: list[CanonicalRecord] = []
    errors: list[RowError] = []
    blank = 0

    for source_row, cells in table.rows:
        if is_blank_row(cells):
            blank += 1
            continue

        res = parser.parse(cells, source_row=source_row, resolution=resolution)
        if isinstance(res, RowError):
            errors.append(res)
        else:
            accepted.append(res)

    logger.info(
        "%s: parsed %d rows (accepted=%d rejected=%d blank=%d)",
        config.name, len(accepted) + len(errors), len(accepted), len(errors), blank,
    )
    return ImportResult(accepted=tuple(accepted), errors=tuple(errors), blank_rows=blank)


def run_import(
    content: str | bytes,
    kind: str | ImportSpec,
    *,
    snapshot: Iterable[Mapping[str, Any]] | None = None,
    options: ReconcileOptions | None = None,
) -> ImportOutcome:
    """
    One full import run: parse and validate the file, then, when `snapshot`
    is given, classify the accepted records against it.

    Row errors do not stop reconciliation; whether to act on the accepted
    subset is the caller's decision.
    """
    spec = kind if isinstance(kind, ImportSpec) else get_import_spec(kind)
    result = parse_rows(content, spec.parser)

    summary = None
    if snapshot is not None:
        summary = reconcile(result.accepted, snapshot, key_fields=spec.key_fields, options=options)

    return ImportOutcome(kind=spec.kind, result=result, reconciliation=summary)
