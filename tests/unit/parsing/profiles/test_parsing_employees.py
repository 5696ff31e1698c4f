from __future__ import annotations

from datetime import date

from hr_import.parsing.headers import resolve_headers
from hr_import.parsing.profiles.employees import EMPLOYEE_CONFIG, EMPLOYEE_PARSER
from hr_import.parsing.types import CanonicalRecord, RejectCode, RowError


def _parse(header: list[str], cells: list[str], source_row: int = 1) -> CanonicalRecord | RowError:
    res = resolve_headers(header, EMPLOYEE_CONFIG.header_mapping)
    return EMPLOYEE_PARSER.parse(cells, source_row=source_row, resolution=res)


HEADER = ["Employee Code", "First Name", "Last Name", "Position"]


def test_employee_happy_path_defaults_status() -> None:
    """Minimal row is accepted, `status` defaults to `Active`."""
    res = _parse(HEADER, ["E001", "Jane", "Doe", "Guard"])
    assert isinstance(res, CanonicalRecord)
    assert res.to_mapping() == {
        "employee_code": "E001",
        "first_name": "Jane",
        "last_name": "Doe",
        "position": "Guard",
        "status": "Active",
    }


def test_employee_missing_last_name_rejected() -> None:
    """Blank required cell -> rejected, reason names the field."""
    res = _parse(HEADER, ["E002", "John", "", "Guard"], source_row=2)
    assert isinstance(res, RowError)
    assert res.codes == (RejectCode.missing_required,)
    assert res.reasons == ("Missing required fields: last_name",)


def test_employee_several_missing_fields_are_one_reason() -> None:
    res = _parse(HEADER, ["E003", "", "", "Guard"])
    assert isinstance(res, RowError)
    assert res.reasons == ("Missing required fields: first_name, last_name",)


def test_employee_invalid_company_rejected_with_allowed_set() -> None:
    """`Acme` is not a company, even when everything else is valid."""
    res = _parse([*HEADER, "Company"], ["E004", "Jane", "Doe", "Guard", "Acme"])
    assert isinstance(res, RowError)
    assert res.codes == (RejectCode.invalid_enum,)
    assert '"Acme"' in res.reasons[0]
    assert "Butters, Makana" in res.reasons[0]


def test_employee_collects_every_problem_on_a_row() -> None:
    """Bad enum, bad email, bad date and a missing field are all reported."""
    header = [*HEADER, "Company", "Email", "Date Joined"]
    res = _parse(header, ["E005", "Jane", "", "Guard", "Acme", "nope", "yesterday"])
    assert isinstance(res, RowError)
    assert res.codes == (
        RejectCode.invalid_enum,
        RejectCode.invalid_email,
        RejectCode.invalid_date,
        RejectCode.missing_required,
    )
    assert res.reasons[-1] == "Missing required fields: last_name"


def test_employee_optional_fields_parse() -> None:
    header = [*HEADER, "Company", "Dept", "Status", "Email", "ID Number", "Start Date"]
    res = _parse(
        header,
        ["E006", "Jane", "Doe", "Guard", "Makana", "Operations", "On Leave", "jane@example.com", "8001015009087", "2023-07-01"],
    )
    assert isinstance(res, CanonicalRecord)
    assert res.get("company") == "Makana"
    assert res.get("department") == "Operations"
    assert res.get("status") == "On Leave"
    assert res.get("email") == "jane@example.com"
    assert res.get("id_number") == "8001015009087"
    assert res.get("date_joined") == date(2023, 7, 1)


def test_employee_blank_optional_field_is_left_out() -> None:
    """A blank optional cell must not overwrite an existing value on merge."""
    res = _parse([*HEADER, "Email"], ["E007", "Jane", "Doe", "Guard", "  "])
    assert isinstance(res, CanonicalRecord)
    assert "email" not in res.values


def test_employee_short_row_is_insufficient_columns() -> None:
    res = _parse(HEADER, ["E008", "Jane"])
    assert isinstance(res, RowError)
    assert res.codes == (RejectCode.insufficient_columns,)
    assert res.reasons == ("Insufficient columns: expected 4, got 2",)
