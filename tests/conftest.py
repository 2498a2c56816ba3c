from __future__ import annotations

import pytest

from wealthtrack.infrastructure.db.sqlite import SQLiteRepository


@pytest.fixture()
def repository(tmp_path) -> SQLiteRepository:
    return SQLiteRepository(f"sqlite:///{tmp_path / 'wealthtrack.db'}")


@pytest.fixture()
def app_env(tmp_path, monkeypatch):
    """Point the CLI at throwaway storage and disable the LLM."""
    monkeypatch.setenv("WEALTHTRACK_DB", str(tmp_path / "data" / "cli.db"))
    monkeypatch.setenv("OUTPUT_DIR", str(tmp_path / "reports"))
    monkeypatch.delenv("POE_API_KEY", raising=False)
    return tmp_path
