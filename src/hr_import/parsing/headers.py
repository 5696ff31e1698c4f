from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Iterable, Mapping, Sequence

from hr_import.parsing.errors import MissingHeaderError, MissingRequiredFieldsError

logger = logging.getLogger(__name__)

# canonical field -> synonyms, in match-precedence order
HeaderMapping = Mapping[str, Sequence[str]]

_MULTI_WS = re.compile(r"\s+")


def normalize_header(h: str | None) -> str:
    """Comparison form of a header: BOM and outer whitespace dropped, inner runs collapsed, lower-cased."""
    s = (h or "").lstrip("\ufeff").strip()
    return _MULTI_WS.sub(" ", s).lower()


@dataclass(frozen=True, slots=True)
class HeaderResolution:
    """
    Which column each canonical field reads from.

    `columns` holds the normalized header cells, `indexes` maps every field of
    the header mapping to its zero-based column, or `None` when unresolved.
    """
    columns: tuple[str, ...]
    indexes: Mapping[str, int | None]

    @property
    def width(self) -> int:
        return len(self.columns)

    def index_of(self, field: str) -> int | None:
        return self.indexes.get(field)

    def resolved(self) -> dict[str, int]:
        """Only the fields that found a column."""
        return {k: v for k, v in self.indexes.items() if v is not None}

    def unresolved(self) -> list[str]:
        return [k for k, v in self.indexes.items() if v is None]

    def require(self, required_fields: Iterable[str]) -> None:
        """
        Fail fast when a required field has no column at all.
        Raises `MissingRequiredFieldsError` naming every such field.
        """
        required = set(required_fields)
        missing = [name for name in self.indexes if name in required and self.indexes[name] is None]
        # required names absent from the mapping entirely can never resolve
        missing += sorted(required - set(self.indexes))
        if missing:
            raise MissingRequiredFieldsError(missing)


def resolve_headers(header_cells: Sequence[str], header_mapping: HeaderMapping) -> HeaderResolution:
    """
    Map canonical fields onto header columns.

    For each field, synonyms are tried in declared order and the first synonym
    that equals any column (case-insensitively) wins, whatever that column's
    position. With duplicate column names the leftmost one is used.

    Raises `MissingHeaderError` if the header line is empty.
    """
    columns = tuple(normalize_header(h) for h in header_cells)
    if not any(columns):
        raise MissingHeaderError()

    # leftmost position of each distinct column name
    first_pos: dict[str, int] = {}
    for i, col in enumerate(columns):
        if col and col not in first_pos:
            first_pos[col] = i

    indexes: dict[str, int | None] = {}
    for field, synonyms in header_mapping.items():
        indexes[field] = None
        for synonym in synonyms:
            pos = first_pos.get(normalize_header(synonym))
            if pos is not None:
                indexes[field] = pos
                break

    resolution = HeaderResolution(columns=columns, indexes=indexes)
    logger.debug("resolved headers %s -> %s", list(columns), resolution.resolved())
    return resolution
