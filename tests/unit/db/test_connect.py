from __future__ import annotations

import pytest

from hr_import.db.connect import DEFAULT_DSN, get_database_url


def test_database_url_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("HR_IMPORT_DSN", "postgresql://u:p@db:5432/other")
    assert get_database_url() == "postgresql://u:p@db:5432/other"


def test_database_url_default_when_unset_or_empty(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("HR_IMPORT_DSN", raising=False)
    assert get_database_url() == DEFAULT_DSN
    monkeypatch.setenv("HR_IMPORT_DSN", "")
    assert get_database_url() == DEFAULT_DSN
