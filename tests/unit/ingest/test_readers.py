from __future__ import annotations

from pathlib import Path

import pytest

from hr_import.ingest.readers import load_snapshot_file, read_import_file, tokenize_csv
from hr_import.parsing.errors import UnreadableFileError


def test_tokenize_numbers_rows_from_one() -> None:
    table = tokenize_csv("a,b\n1,2\n\n3,4\n")
    assert table.header == ["a", "b"]
    assert table.rows == [(1, ["1", "2"]), (2, []), (3, ["3", "4"])]


def test_tokenize_quoted_newline_is_one_cell() -> None:
    table = tokenize_csv('a,b\n"line one\nline two",x\n')
    assert table.rows == [(1, ["line one\nline two", "x"])]


def test_read_import_file_missing_path(tmp_path: Path) -> None:
    with pytest.raises(UnreadableFileError) as e:
        read_import_file(tmp_path / "nope.csv")
    assert e.value.message == "cannot read file"


def test_load_snapshot_csv_drops_blank_cells(tmp_path: Path) -> None:
    """Blank snapshot cells read as not set."""
    p = tmp_path / "existing.csv"
    p.write_text("employee_code,first_name,email\nE001,Jane,\n,,\n", encoding="utf-8")
    assert load_snapshot_file(p) == [{"employee_code": "E001", "first_name": "Jane"}]


def test_load_snapshot_jsonl(tmp_path: Path) -> None:
    p = tmp_path / "existing.jsonl"
    p.write_text('{"employee_code": "E001", "first_name": "Jane"}\n\n{"employee_code": "E002"}\n', encoding="utf-8")
    assert [r["employee_code"] for r in load_snapshot_file(p)] == ["E001", "E002"]


def test_load_snapshot_missing_file_is_unreadable(tmp_path: Path) -> None:
    with pytest.raises(UnreadableFileError) as e:
        load_snapshot_file(tmp_path / "nope.jsonl")
    assert "nope.jsonl" in e.value.render()


def test_load_snapshot_bad_json_is_unreadable(tmp_path: Path) -> None:
    p = tmp_path / "existing.jsonl"
    p.write_text('{"employee_code": "E001"}\n{not json\n', encoding="utf-8")
    with pytest.raises(UnreadableFileError):
        load_snapshot_file(p)


def test_load_snapshot_jsonl_non_object_is_unreadable(tmp_path: Path) -> None:
    p = tmp_path / "existing.jsonl"
    p.write_text('["E001"]\n', encoding="utf-8")
    with pytest.raises(UnreadableFileError):
        load_snapshot_file(p)
