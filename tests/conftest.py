from __future__ import annotations

from pathlib import Path

import pytest

from amber.store import ContextStore


@pytest.fixture(autouse=True)
def _isolate_amber_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("AMBER_CONFIG", str(tmp_path / "config.json"))
    monkeypatch.setenv("AMBER_BASE_DIR", str(tmp_path / "amber"))
    monkeypatch.setenv("AMBER_AGENTS_HOME", str(tmp_path / "home"))
    for var in ("AMBER_SEARCH_LIMIT", "AMBER_PREVIEW_LIMIT", "AMBER_DAILY_HOUR"):
        monkeypatch.delenv(var, raising=False)


@pytest.fixture
def store(tmp_path: Path) -> ContextStore:
    context_store = ContextStore(tmp_path / "amber")
    context_store.ensure_dirs()
    return context_store
