from __future__ import annotations

import pytest

from hr_import.parsing.errors import MissingHeaderError, MissingRequiredFieldsError
from hr_import.parsing.headers import normalize_header, resolve_headers


MAPPING = {
    "employee_code": ("employee_code", "code", "id"),
    "first_name": ("first_name", "first name", "name"),
    "last_name": ("last_name", "surname"),
}


def test_normalize_header_trims_lowercases_and_collapses_whitespace() -> None:
    """Headers compare trimmed, lower-cased, with inner whitespace collapsed."""
    assert normalize_header("  First   Name ") == "first name"
    assert normalize_header("\ufeffCode") == "code"
    assert normalize_header(None) == ""


def test_resolution_is_case_insensitive() -> None:
    """`CODE` and `Surname` resolve to their fields."""
    res = resolve_headers(["CODE", "First Name", "Surname"], MAPPING)
    assert res.index_of("employee_code") == 0
    assert res.index_of("first_name") == 1
    assert res.index_of("last_name") == 2
    assert res.unresolved() == []


def test_synonym_order_beats_column_order() -> None:
    """
    `id` and `code` both match `employee_code`. `code` is declared first,
    so it wins even though `id` is the leftmost column.
    """
    res = resolve_headers(["id", "name", "code"], MAPPING)
    assert res.index_of("employee_code") == 2


def test_duplicate_columns_use_leftmost() -> None:
    """Two `code` columns -> the first one is read."""
    res = resolve_headers(["code", "first_name", "code"], MAPPING)
    assert res.index_of("employee_code") == 0


def test_unmatched_field_is_unresolved_not_an_error() -> None:
    """Optional fields may be missing from the header entirely."""
    res = resolve_headers(["code", "first_name"], MAPPING)
    assert res.index_of("last_name") is None
    assert res.unresolved() == ["last_name"]
    assert res.width == 2


def test_require_names_every_unresolved_required_field() -> None:
    """Structural error lists all required fields with no column."""
    res = resolve_headers(["notes"], MAPPING)
    with pytest.raises(MissingRequiredFieldsError) as e:
        res.require({"employee_code", "last_name"})

    assert e.value.missing == ("employee_code", "last_name")
    assert "Missing field: employee_code" in e.value.details
    assert "Missing field: last_name" in e.value.details


def test_require_passes_when_all_required_resolve() -> None:
    res = resolve_headers(["code", "surname"], MAPPING)
    res.require({"employee_code", "last_name"})


def test_empty_header_line_is_structural() -> None:
    """A header of only blank cells cannot be resolved."""
    with pytest.raises(MissingHeaderError):
        resolve_headers(["", "  "], MAPPING)
