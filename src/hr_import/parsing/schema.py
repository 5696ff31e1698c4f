from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Callable, Mapping, Sequence

from .headers import HeaderMapping, HeaderResolution
from .primitives import ParseError, normalize_cell, parse_optional_text
from .types import CanonicalRecord, RejectCode, RowError, RowIssue

# Typing:
# Parser turns one trimmed, non-blank cell into a typed value (raises `ParseError`).
# PostProcess derives or cross-checks fields on the whole extracted row.
Parser = Callable[[Any], Any]
PostProcess = Callable[[dict[str, Any]], dict[str, Any]]


@dataclass(frozen=True, slots=True)
class FieldSpec:
    """Any given field's configurable expectations."""
    out_name: str                       # canonical name of this field.
    parser: Parser = parse_optional_text
    default: Any = None                 # used when the cell is absent or blank (optional fields only).


@dataclass(frozen=True)
class ParseConfig:
    """
    Everything one import type needs to parse a file. Built once per import
    type and shared read-only between runs.

    - `header_mapping`: canonical field -> ordered header synonyms.
    - `required_fields`: fields that must resolve to a column, and be non-blank on every row.
    - `fields`: per-field parsing rules. Fields of the mapping without a spec are optional text.
    - `post_process`: optional whole-row derivation, may raise `ParseError`.
    """
    name: str
    header_mapping: HeaderMapping
    required_fields: frozenset[str]
    fields: tuple[FieldSpec, ...] = ()
    post_process: PostProcess | None = None

    def __post_init__(self) -> None:
        mapping = {k: tuple(v) for k, v in self.header_mapping.items()}
        object.__setattr__(self, "header_mapping", MappingProxyType(mapping))
        object.__setattr__(self, "required_fields", frozenset(self.required_fields))
        object.__setattr__(self, "fields", tuple(self.fields))

        unknown_required = sorted(self.required_fields - set(mapping))
        if unknown_required:
            raise ValueError(f"{self.name}: required fields missing from header mapping: {unknown_required}")
        unknown_specs = sorted({f.out_name for f in self.fields} - set(mapping))
        if unknown_specs:
            raise ValueError(f"{self.name}: field specs missing from header mapping: {unknown_specs}")
        for f in self.fields:
            if f.out_name in self.required_fields and f.default is not None:
                raise ValueError(f"{self.name}: required field {f.out_name!r} cannot have a default")

    def field_specs(self) -> tuple[FieldSpec, ...]:
        """One spec per mapped field, in header-mapping order."""
        by_name = {f.out_name: f for f in self.fields}
        return tuple(by_name.get(name, FieldSpec(name)) for name in self.header_mapping)


def is_blank_row(cells: Sequence[Any]) -> bool:
    """
    An empty line: no cells, or a single cell that is blank after trimming.
    A line of separators (`,,,`) has cells and is validated like any other row.
    """
    return len(cells) <= 1 and all(normalize_cell(c) is None for c in cells)


@dataclass(frozen=True)
class RowParser:
    """
    Parse a single data row into a `CanonicalRecord`, or reject it as a `RowError`.

    Never raises for bad data: every problem found on the row is collected, and
    the row is rejected with all of them. Issue order is:
    - 1st: `insufficient_columns` (alone, nothing else is checked)
    - 2nd: value errors, in header-mapping field order
    - 3rd: one `missing_required` issue naming every blank required field
    - 4th: whatever `post_process` rejects
    """
    config: ParseConfig

    def parse(self, cells: Sequence[Any], *, source_row: int, resolution: HeaderResolution) -> CanonicalRecord | RowError:
        raw_payload = {"cells": list(cells)}

        if len(cells) < resolution.width:
            return RowError(
                source_row=source_row,
                issues=(RowIssue(
                    RejectCode.insufficient_columns,
                    f"Insufficient columns: expected {resolution.width}, got {len(cells)}",
                ),),
                raw_payload=raw_payload,
            )

        issues: list[RowIssue] = []
        missing: list[str] = []
        out: dict[str, Any] = {}

        ## -- extraction and parsing loop
        for spec in self.config.field_specs():
            idx = resolution.index_of(spec.out_name)
            raw_v = normalize_cell(cells[idx]) if idx is not None else None

            if raw_v is None:
                if spec.out_name in self.config.required_fields:
                    missing.append(spec.out_name)
                elif spec.default is not None:
                    out[spec.out_name] = spec.default
                # optional and blank: left out, so a merge keeps the existing value
                continue

            try:
                out[spec.out_name] = spec.parser(raw_v)
            except ParseError as e:
                issues.append(RowIssue(e.code, e.detail))

        if missing:
            issues.append(RowIssue(RejectCode.missing_required, "Missing required fields: " + ", ".join(missing)))

        if self.config.post_process is not None:
            try:
                out = self.config.post_process(dict(out))
            except ParseError as e:
                issues.append(RowIssue(e.code, e.detail))

        if issues:
            return RowError(source_row=source_row, issues=tuple(issues), raw_payload=raw_payload)
        return CanonicalRecord(values=out, source_row=source_row, raw_payload=raw_payload)
