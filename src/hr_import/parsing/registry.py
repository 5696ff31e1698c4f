from __future__ import annotations

from dataclasses import dataclass

from hr_import.parsing.schema import RowParser


IMPORT_KINDS: tuple[str, ...] = ("employees", "policies")


@dataclass(frozen=True)
class ImportSpec:
    """Contains one import type's expectations."""
    kind: str
    parser: RowParser               # which row parser this import expects
    key_fields: tuple[str, ...]     # natural key used to match existing records


def get_import_spec(kind: str) -> ImportSpec:
    """
    A registry that assigns an import type its parser and natural key.
    `FieldSpec` defines parsing rules inside the profile modules.
    """
    if kind == "employees":
        from .profiles.employees import EMPLOYEE_KEY_FIELDS, EMPLOYEE_PARSER
        return ImportSpec(kind="employees", parser=EMPLOYEE_PARSER, key_fields=EMPLOYEE_KEY_FIELDS)

    if kind == "policies":
        from .profiles.policies import POLICY_KEY_FIELDS, POLICY_PARSER
        return ImportSpec(kind="policies", parser=POLICY_PARSER, key_fields=POLICY_KEY_FIELDS)

    raise ValueError(f"Unknown import kind: {kind}")
