from __future__ import annotations

from hr_import.parsing.primitives import (
    parse_date_yyyy_mm_dd,
    parse_email,
    parse_enum,
    parse_optional_text,
    parse_required_text,
)
from hr_import.parsing.schema import FieldSpec, ParseConfig, RowParser

COMPANIES = ("Butters", "Makana")
DEPARTMENTS = ("Security", "Administration", "Operations")
EMPLOYEE_STATUSES = ("Active", "On Leave", "Terminated")

# Allowed header synonyms per canonical field. Order is match precedence.
EMPLOYEE_HEADER_MAPPING: dict[str, tuple[str, ...]] = {
    "employee_code": ("employee_code", "employee code", "employeecode", "code", "id", "employee id", "employee_id", "employeeid"),
    "first_name": ("first_name", "firstname", "fname", "first name", "name"),
    "last_name": ("last_name", "lastname", "lname", "last name", "surname"),
    "company": ("company", "organization", "org"),
    "department": ("department", "dept", "division"),
    "position": ("position", "title", "job title", "job_title", "jobtitle", "role"),
    "status": ("status", "employee status", "employee_status", "employeestatus"),
    "email": ("email", "email address", "e-mail"),
    "id_number": ("id number", "id_number", "idnumber", "national id"),
    "date_joined": ("date joined", "date_joined", "start date", "hire date"),
}

# company and department are defaulted by whoever stores new employees, not here
EMPLOYEE_REQUIRED = frozenset({"employee_code", "first_name", "last_name", "position"})

EMPLOYEE_KEY_FIELDS = ("employee_code",)


EMPLOYEE_CONFIG = ParseConfig(
    name="employees",
    header_mapping=EMPLOYEE_HEADER_MAPPING,
    required_fields=EMPLOYEE_REQUIRED,
    fields=(
        FieldSpec("employee_code", lambda v: parse_required_text(v, field="employee_code")),
        FieldSpec("first_name", lambda v: parse_required_text(v, field="first_name")),
        FieldSpec("last_name", lambda v: parse_required_text(v, field="last_name")),
        FieldSpec("company", lambda v: parse_enum(v, field="company", allowed=COMPANIES)),
        FieldSpec("department", lambda v: parse_enum(v, field="department", allowed=DEPARTMENTS)),
        FieldSpec("position", lambda v: parse_required_text(v, field="position")),
        FieldSpec("status", lambda v: parse_enum(v, field="status", allowed=EMPLOYEE_STATUSES), default="Active"),
        FieldSpec("email", lambda v: parse_email(v, field="email")),
        FieldSpec("id_number", parse_optional_text),
        FieldSpec("date_joined", lambda v: parse_date_yyyy_mm_dd(v, field="date_joined")),
    ),
)

# import
EMPLOYEE_PARSER = RowParser(EMPLOYEE_CONFIG)
