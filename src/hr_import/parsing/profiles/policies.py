from __future__ import annotations

import re
from typing import Any

from hr_import.parsing.primitives import ParseError, parse_amount, parse_enum, parse_required_text
from hr_import.parsing.schema import FieldSpec, ParseConfig, RowParser
from hr_import.parsing.types import RejectCode

INSURANCE_COMPANIES = ("Sanlam Sky", "Avbob", "Old Mutual", "Provident Fund")
POLICY_STATUSES = ("Active", "Cancelled", "Pending", "Suspended")

# spellings seen in provider exports
_COMPANY_ALIASES = {"Old Mutul": "Old Mutual"}

# Allowed header synonyms per canonical field. Order is match precedence.
POLICY_HEADER_MAPPING: dict[str, tuple[str, ...]] = {
    "employee_code": ("employee", "employee_code", "employee code", "employeecode", "code", "id", "employee id", "employee_id", "employeeid"),
    "last_name": ("last name", "lastname", "lname", "last_name", "surname"),
    "first_name": ("first name", "firstname", "fname", "first_name", "name"),
    "company": ("company", "insurance company", "insurance_company", "insurancecompany", "provider"),
    "amount": ("value", "amount", "premium", "fee"),
    "policy_number": ("policy number", "policy_number", "policynumber", "policy no"),
    "notes": ("comment", "notes", "description", "details"),
    "status": ("status", "policy status", "policy_status", "policystatus"),
}

POLICY_REQUIRED = frozenset({"employee_code", "company", "amount", "status"})

POLICY_KEY_FIELDS = ("employee_code", "policy_number")

# e.g. "SANLAM POLICY NUMBER: 12345678, monthly"
_POLICY_NUMBER_IN_NOTES = re.compile(r"POLICY\s+NUMBER[:\s]+([^\s,]+)", re.IGNORECASE)


def extract_policy_number(notes: str | None) -> str | None:
    """Pull a policy number out of free-text notes, if one is written there."""
    if not notes:
        return None
    m = _POLICY_NUMBER_IN_NOTES.search(notes)
    return m.group(1) if m else None


def _derive_policy_number(canon: dict[str, Any]) -> dict[str, Any]:
    """
    Fills `policy_number` from `notes` when no dedicated column supplied one.
    Raises if neither source has it, since it is half of the natural key.
    """
    if canon.get("policy_number") is None:
        found = extract_policy_number(canon.get("notes"))
        if found is None:
            raise ParseError(
                RejectCode.missing_required,
                "Missing policy number (no policy number column value and none found in notes)",
            )
        canon["policy_number"] = found
    return canon


POLICY_CONFIG = ParseConfig(
    name="policies",
    header_mapping=POLICY_HEADER_MAPPING,
    required_fields=POLICY_REQUIRED,
    fields=(
        FieldSpec("employee_code", lambda v: parse_required_text(v, field="employee_code")),
        FieldSpec("company", lambda v: parse_enum(v, field="company", allowed=INSURANCE_COMPANIES, aliases=_COMPANY_ALIASES)),
        FieldSpec("amount", lambda v: parse_amount(v, field="amount")),
        FieldSpec("status", lambda v: parse_enum(v, field="status", allowed=POLICY_STATUSES)),
    ),
    post_process=_derive_policy_number,
)

# import
POLICY_PARSER = RowParser(POLICY_CONFIG)
