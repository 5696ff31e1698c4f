from __future__ import annotations

import csv
import io
import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterator, Mapping

from hr_import.parsing.errors import MissingHeaderError, UnreadableFileError


@dataclass(frozen=True, slots=True)
class CsvTable:
    """A tokenized import file: header cells plus `(source_row, cells)` data rows."""
    header: list[str]
    rows: list[tuple[int, list[str]]]


def decode_content(raw: str | bytes) -> str:
    """
    Accept raw file content (bytes or str) and return text without a UTF-8 BOM.
    Raises `UnreadableFileError` when bytes are not valid UTF-8.
    """
    if isinstance(raw, bytes):
        try:
            text = raw.decode("utf-8")
        except UnicodeDecodeError as e:
            raise UnreadableFileError(f"not valid UTF-8 ({e.reason} at byte {e.start})") from e
    else:
        text = raw
    return text[1:] if text.startswith("\ufeff") else text


def read_import_file(path: Path) -> str:
    """Read a whole import file as text. Any read or decode failure is terminal for the run."""
    try:
        raw = path.read_bytes()
    except OSError as e:
        raise UnreadableFileError(f"{path}: {e.strerror or e}") from e
    return decode_content(raw)


def tokenize_csv(text: str) -> CsvTable:
    """
    Split CSV text into a header and data rows. Quoted fields (embedded commas,
    quotes, newlines) are honored.

    `source_row` is 1-based for the first data record, the header is not counted.
    Blank lines are still counted so numbers stay a stable pointer into the file.

    Raises `MissingHeaderError` for empty input or an empty first line.
    """
    if not text or not text.strip():
        raise MissingHeaderError()

    reader = csv.reader(io.StringIO(text))
    try:
        records = list(reader)
    except csv.Error as e:
        raise UnreadableFileError(f"malformed CSV near line {reader.line_num}: {e}") from e

    header = records[0] if records else []
    if not any(h.strip() for h in header):
        raise MissingHeaderError()

    rows = [(i, row) for i, row in enumerate(records[1:], start=1)]
    return CsvTable(header=header, rows=rows)


## -- snapshot files (existing records for offline reconciliation)

def stream_csv_dict_rows(path: Path) -> Iterator[tuple[int, Mapping[str, Any]]]:
    """
    Yields `(source_row, dict)` for CSV data rows.

    `source_row` is 1-based for the first real data row encountered, header is not counted.
    """
    with path.open("r", encoding="utf-8-sig", newline="") as f:
        reader = csv.DictReader(f)
        for i, row in enumerate(reader, start=1):
            yield i, row


def stream_jsonl_dict_rows(path: Path) -> Iterator[tuple[int, Mapping[str, Any]]]:
    """
    Yields `(source_row, dict)` for JSONL lines.

    `source_row` is 1-based by physical line number (blank lines skipped but still counted
    by enumerate, so stable pointer into the file's data rows).
    """
    with path.open("r", encoding="utf-8") as f:
        for i, line in enumerate(f, start=1):
            s = line.strip()
            if not s:
                continue
            obj = json.loads(s)
            if not isinstance(obj, dict):
                raise ValueError(f"JSONL line {i} is not an object")
            yield i, obj


def load_snapshot_file(path: Path) -> list[dict[str, Any]]:
    """
    Load existing records from a `.jsonl` file, or from a CSV whose headers are
    canonical field names. Blank CSV cells are dropped so they read as "not set".

    Raises `UnreadableFileError` when the file is missing, not UTF-8, or malformed.
    """
    try:
        if path.suffix.lower() in (".jsonl", ".ndjson"):
            return [dict(obj) for _, obj in stream_jsonl_dict_rows(path)]
        return _snapshot_csv_records(path)
    except OSError as e:
        raise UnreadableFileError(f"{path}: {e.strerror or e}") from e
    except (ValueError, csv.Error) as e:
        # json.JSONDecodeError and UnicodeDecodeError are ValueErrors
        raise UnreadableFileError(f"{path}: {e}") from e


def _snapshot_csv_records(path: Path) -> list[dict[str, Any]]:
    out: list[dict[str, Any]] = []
    for _, row in stream_csv_dict_rows(path):
        rec = {
            str(k).strip(): v.strip()
            for k, v in row.items()
            if k is not None and isinstance(v, str) and v.strip() != ""
        }
        if rec:
            out.append(rec)
    return out
