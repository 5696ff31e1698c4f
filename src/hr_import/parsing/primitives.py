from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Mapping, Sequence

from .types import RejectCode


@dataclass(frozen=True, slots=True)
class ParseError(Exception):
    """A single field failed to parse; becomes one issue on the row."""
    code: RejectCode            # classifies the rejection type encountered
    detail: str                 # human-readable reason shown to the caller


def normalize_cell(v: Any) -> Any:
    """Trim text cells. Blank text becomes `None`."""
    if v is None:
        return None
    if isinstance(v, str):
        s = v.strip()
        return s if s else None
    return v


## -- text / str fields

def parse_required_text(v: Any, *, field: str) -> str:
    """
    Required text for a row.
    Raises on `None` or on text that is empty after trimming.
    """
    v = normalize_cell(v)
    if v is None:
        raise ParseError(RejectCode.missing_required, f"Missing required fields: {field}")
    return str(v)


def parse_optional_text(v: Any) -> str | None:
    """Trimmed text, or `None` when blank."""
    v = normalize_cell(v)
    if v is None:
        return None
    return str(v)


## -- constrained fields

def _allowed_text(allowed: Sequence[str]) -> str:
    return ", ".join(allowed)


def parse_enum(
    v: Any,
    *,
    field: str,
    allowed: Sequence[str],
    aliases: Mapping[str, str] | None = None,
) -> str:
    """
    Match `v` exactly against `allowed`.

    `aliases` maps known misspellings onto an allowed value before matching
    (e.g. `"Old Mutul" -> "Old Mutual"`).
    """
    v = normalize_cell(v)
    if v is None:
        raise ParseError(RejectCode.missing_required, f"Missing required fields: {field}")
    s = str(v)
    if aliases:
        s = aliases.get(s, s)
    if s not in allowed:
        raise ParseError(
            RejectCode.invalid_enum,
            f'Invalid {field} "{v}" (must be one of: {_allowed_text(allowed)})',
        )
    return s


# leading currency marker: a symbol, or a short code like `R` / `ZAR` / `USD`
_CURRENCY_PREFIX = re.compile(r"^(?:[$€£¥]|[A-Za-z]{1,3}\b|[A-Za-z]{1,3}(?=[\d.]))\s*")

# commas only as thousands separators: `1,500` and `12,345,678.90`, not `1,5`
_GROUPED_DIGITS = re.compile(r"^-?\d{1,3}(?:,\d{3})+(?:\.\d*)?$")


def parse_amount(v: Any, *, field: str) -> Decimal:
    """
    Parse a non-negative money amount to 2 decimal places.

    Accepts a bare number (`1500`, `1500.00`) or a currency-prefixed string
    (`R 1500.00`, `R1,500.00`, `$12`). Thousands separators are dropped.
    Raises on blank, unparsable, negative, or oversized input.
    """
    v = normalize_cell(v)
    if v is None:
        raise ParseError(RejectCode.missing_required, f"Missing required fields: {field}")

    s = str(v)
    s = _CURRENCY_PREFIX.sub("", s, count=1).replace(" ", "")
    if "," in s:
        if not _GROUPED_DIGITS.match(s):
            raise ParseError(RejectCode.invalid_numeric, f'Invalid {field} "{v}" (expected a number)')
        s = s.replace(",", "")
    try:
        d = Decimal(s)
    except (InvalidOperation, ValueError):
        raise ParseError(RejectCode.invalid_numeric, f'Invalid {field} "{v}" (expected a number)')

    # Decimal accepts "NaN" and "Infinity"
    if not d.is_finite():
        raise ParseError(RejectCode.invalid_numeric, f'Invalid {field} "{v}" (expected a number)')
    if d < 0:
        raise ParseError(RejectCode.invalid_numeric, f'Invalid {field} "{v}" (must not be negative)')

    d2 = d.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)

    # numeric(12,2) in the database
    if len(d2.as_tuple().digits) > 12:
        raise ParseError(RejectCode.invalid_numeric, f'Invalid {field} "{v}" (too large)')
    return d2


def parse_date_yyyy_mm_dd(v: Any, *, field: str) -> date:
    """Parse an ISO date. Raises on blank or on anything `date.fromisoformat` refuses."""
    v = normalize_cell(v)
    if v is None:
        raise ParseError(RejectCode.missing_required, f"Missing required fields: {field}")
    try:
        return date.fromisoformat(str(v))
    except ValueError:
        raise ParseError(RejectCode.invalid_date, f'Invalid {field} "{v}" (expected YYYY-MM-DD)')


_EMAIL = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def parse_email(v: Any, *, field: str) -> str:
    """Basic shape check only: `local@domain.tld`."""
    v = normalize_cell(v)
    if v is None:
        raise ParseError(RejectCode.missing_required, f"Missing required fields: {field}")
    s = str(v)
    if not _EMAIL.match(s):
        raise ParseError(RejectCode.invalid_email, f'Invalid {field} "{v}" (expected an email address)')
    return s
