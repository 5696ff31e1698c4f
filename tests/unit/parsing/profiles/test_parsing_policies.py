from __future__ import annotations

from decimal import Decimal

from hr_import.parsing.headers import resolve_headers
from hr_import.parsing.profiles.policies import POLICY_CONFIG, POLICY_PARSER, extract_policy_number
from hr_import.parsing.types import CanonicalRecord, RejectCode, RowError


HEADER = ["Employee", "Surname", "First Name", "Company", "Value", "Comment", "Status"]


def _parse(cells: list[str], header: list[str] = HEADER) -> CanonicalRecord | RowError:
    res = resolve_headers(header, POLICY_CONFIG.header_mapping)
    return POLICY_PARSER.parse(cells, source_row=1, resolution=res)


def test_policy_happy_path_derives_policy_number_from_notes() -> None:
    """`R 1500.00` -> `Decimal('1500.00')`, policy number pulled from the comment."""
    res = _parse(["E001", "Doe", "Jane", "Sanlam Sky", "R 1500.00", "SANLAM POLICY NUMBER: 12345678, monthly", "Active"])
    assert isinstance(res, CanonicalRecord)
    assert res.get("employee_code") == "E001"
    assert res.get("amount") == Decimal("1500.00")
    assert res.get("policy_number") == "12345678"
    assert res.get("company") == "Sanlam Sky"
    assert res.get("notes") == "SANLAM POLICY NUMBER: 12345678, monthly"


def test_policy_amount_not_a_number_rejected() -> None:
    res = _parse(["E001", "Doe", "Jane", "Avbob", "abc", "POLICY NUMBER: 1", "Active"])
    assert isinstance(res, RowError)
    assert res.codes == (RejectCode.invalid_numeric,)
    assert '"abc"' in res.reasons[0]


def test_policy_company_misspelling_is_corrected() -> None:
    res = _parse(["E001", "Doe", "Jane", "Old Mutul", "200", "POLICY NUMBER: OM-9", "Pending"])
    assert isinstance(res, CanonicalRecord)
    assert res.get("company") == "Old Mutual"


def test_policy_number_column_wins_over_notes() -> None:
    header = [*HEADER, "Policy Number"]
    res = _parse(["E001", "Doe", "Jane", "Avbob", "10", "POLICY NUMBER: FROM-NOTES", "Active", "P-1"], header)
    assert isinstance(res, CanonicalRecord)
    assert res.get("policy_number") == "P-1"


def test_policy_without_any_policy_number_rejected() -> None:
    res = _parse(["E001", "Doe", "Jane", "Avbob", "10", "monthly debit", "Active"])
    assert isinstance(res, RowError)
    assert res.codes == (RejectCode.missing_required,)
    assert "policy number" in res.reasons[0].lower()


def test_extract_policy_number() -> None:
    assert extract_policy_number("policy number 778899 paid") == "778899"
    assert extract_policy_number("nothing here") is None
    assert extract_policy_number(None) is None
