from __future__ import annotations

import logging
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from enum import Enum
from types import MappingProxyType
from typing import Any, Iterable, Mapping, Sequence

from hr_import.parsing.types import CanonicalRecord, RejectCode

logger = logging.getLogger(__name__)

NaturalKey = tuple[str, ...]


class Action(str, Enum):
    """What the caller should do with a record."""
    create = "create"
    update = "update"
    skip = "skip"
    archive = "archive"


@dataclass(frozen=True, slots=True)
class ReconcileOptions:
    """Caller switches for one reconciliation."""
    update_existing: bool = True        # matched records overwrite existing ones
    add_new: bool = True                # unmatched records become creates
    archive_missing: bool = False       # existing records absent from the file are flagged
    replace_existing: bool = False      # updates replace the whole record instead of merging fields


@dataclass(frozen=True, slots=True)
class ClassifiedRecord:
    """
    One reconciliation decision.

    `values` is what the caller would write: the new record for creates, the
    merged record for updates, the existing record for archives. Skips keep
    the incoming record so they can be shown to the user.
    """
    action: Action
    key: NaturalKey
    values: Mapping[str, Any]
    source_row: int | None = None                   # `None` for archives (no row in the file)
    existing: Mapping[str, Any] | None = None
    changed_fields: tuple[str, ...] = ()
    note: str = ""

    def __post_init__(self) -> None:
        object.__setattr__(self, "values", MappingProxyType(dict(self.values)))
        if self.existing is not None:
            object.__setattr__(self, "existing", MappingProxyType(dict(self.existing)))


@dataclass(frozen=True)
class ReconciliationSummary:
    """Counts per action, plus every classified record in file order (archives last)."""
    records: tuple[ClassifiedRecord, ...] = field(default_factory=tuple)

    def _with(self, action: Action) -> tuple[ClassifiedRecord, ...]:
        return tuple(r for r in self.records if r.action is action)

    @property
    def to_create(self) -> tuple[ClassifiedRecord, ...]:
        return self._with(Action.create)

    @property
    def to_update(self) -> tuple[ClassifiedRecord, ...]:
        return self._with(Action.update)

    @property
    def skipped_records(self) -> tuple[ClassifiedRecord, ...]:
        return self._with(Action.skip)

    @property
    def to_archive(self) -> tuple[ClassifiedRecord, ...]:
        return self._with(Action.archive)

    @property
    def created(self) -> int:
        return len(self.to_create)

    @property
    def updated(self) -> int:
        return len(self.to_update)

    @property
    def skipped(self) -> int:
        return len(self.skipped_records)

    @property
    def archived(self) -> int:
        return len(self.to_archive)

    def counts(self) -> dict[str, int]:
        return {"created": self.created, "updated": self.updated, "skipped": self.skipped, "archived": self.archived}


def _key_part(v: Any) -> str | None:
    if v is None:
        return None
    s = str(v).strip()
    return s.casefold() if s else None


def natural_key(values: Mapping[str, Any], key_fields: Sequence[str]) -> NaturalKey | None:
    """
    Comparable key for a record: trimmed, case-folded text per key field.
    `None` when any key field is missing or blank.
    """
    parts = [_key_part(values.get(f)) for f in key_fields]
    if any(p is None for p in parts):
        return None
    return tuple(parts)  # type: ignore[arg-type]


def _values_equal(new: Any, old: Any) -> bool:
    """Loose equality across the types a snapshot may hold (DB floats, CSV text, dates)."""
    if new == old:
        return True
    if old is None or new is None:
        return False
    if isinstance(new, Decimal):
        try:
            return new == Decimal(str(old).strip())
        except (InvalidOperation, ValueError):
            return False
    return str(new).strip() == str(old).strip()


def _changed_fields(new: Mapping[str, Any], existing: Mapping[str, Any]) -> tuple[str, ...]:
    return tuple(k for k, v in new.items() if not _values_equal(v, existing.get(k)))


def index_snapshot(snapshot: Iterable[Mapping[str, Any]], key_fields: Sequence[str]) -> dict[NaturalKey, Mapping[str, Any]]:
    """
    Key existing records by natural key. Records without a usable key cannot
    match anything and are left out; with duplicate keys the first record wins.
    """
    index: dict[NaturalKey, Mapping[str, Any]] = {}
    for rec in snapshot:
        key = natural_key(rec, key_fields)
        if key is None:
            logger.debug("snapshot record without natural key %s ignored: %r", list(key_fields), dict(rec))
            continue
        if key in index:
            logger.warning("duplicate natural key %s in snapshot, keeping the first record", key)
            continue
        index[key] = rec
    return index


def reconcile(
    accepted: Sequence[CanonicalRecord],
    snapshot: Iterable[Mapping[str, Any]],
    *,
    key_fields: Sequence[str],
    options: ReconcileOptions | None = None,
) -> ReconciliationSummary:
    """
    Classify accepted records against existing ones.

    - key not in the snapshot -> `create` (or `skip` when `add_new` is off)
    - key in the snapshot -> `update` with the existing fields overlaid by the
      record's fields (or `skip` when `update_existing` is off)
    - a key repeated within the file -> later occurrences `skip`
    - `archive_missing`: snapshot records whose key no accepted record carries -> `archive`

    The snapshot is only read. Nothing here writes anywhere.
    """
    opts = options or ReconcileOptions()
    existing_by_key = index_snapshot(snapshot, key_fields)

    out: list[ClassifiedRecord] = []
    first_row_for_key: dict[NaturalKey, int] = {}

    for rec in accepted:
        key = natural_key(rec.values, key_fields)
        if key is None:
            # profiles require every key field, so this means a misconfigured profile
            raise ValueError(f"row {rec.source_row}: accepted record has no natural key {list(key_fields)}")

        if key in first_row_for_key:
            out.append(ClassifiedRecord(
                action=Action.skip,
                key=key,
                values=rec.values,
                source_row=rec.source_row,
                note=f"{RejectCode.duplicate_key.value}: same key as row {first_row_for_key[key]}",
            ))
            continue
        first_row_for_key[key] = rec.source_row

        existing = existing_by_key.get(key)
        if existing is None:
            if opts.add_new:
                out.append(ClassifiedRecord(Action.create, key, rec.values, rec.source_row))
            else:
                out.append(ClassifiedRecord(Action.skip, key, rec.values, rec.source_row, note="new record, adding disabled"))
            continue

        if not opts.update_existing:
            out.append(ClassifiedRecord(
                Action.skip, key, rec.values, rec.source_row, existing=existing,
                note="existing record, updating disabled",
            ))
            continue

        if opts.replace_existing:
            merged = rec.to_mapping()
        else:
            merged = {**existing, **rec.values}
        out.append(ClassifiedRecord(
            action=Action.update,
            key=key,
            values=merged,
            source_row=rec.source_row,
            existing=existing,
            changed_fields=_changed_fields(rec.values, existing),
        ))

    if opts.archive_missing:
        for key, existing in existing_by_key.items():
            if key not in first_row_for_key:
                out.append(ClassifiedRecord(Action.archive, key, existing, existing=existing))

    summary = ReconciliationSummary(records=tuple(out))
    logger.info("reconciled %d accepted records: %s", len(accepted), summary.counts())
    return summary
