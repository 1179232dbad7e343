from __future__ import annotations

import json
import os
import time
from pathlib import Path

import pytest

from amber.ingest import importer
from amber.ingest.importer import MAX_IMPORT_BATCH, ImportProgress, iter_import, run_import
from amber.store import ContextStore

HOUR = 60 * 60
DAY = 24 * HOUR


def _touch(path: Path, age_seconds: float) -> float:
    mtime = time.time() - age_seconds
    os.utime(path, (mtime, mtime))
    return mtime


def _codex_session(home: Path, name: str, message: str, age_seconds: float) -> Path:
    path = home / ".codex" / "sessions" / "2025" / "01" / "15" / f"{name}.jsonl"
    path.parent.mkdir(parents=True, exist_ok=True)
    records = [
        {"type": "session_meta", "payload": {"cwd": "/Users/me/work/amber"}},
        {"type": "event_msg", "payload": {"type": "user_message", "message": message}},
        {
            "type": "response_item",
            "payload": {"role": "assistant", "content": [{"type": "output_text", "text": "ok"}]},
        },
    ]
    path.write_text("\n".join(json.dumps(record) for record in records) + "\n")
    _touch(path, age_seconds)
    return path


def _events(store: ContextStore) -> list[dict]:
    return [
        json.loads(line)
        for date in store.list_event_dates()
        for line in store.read_events(date)
    ]


def test_codex_import_respects_cutoff_and_builds_session_event(
    tmp_path: Path, store: ContextStore
) -> None:
    home = tmp_path / "home"
    _codex_session(home, "recent", "Need to compact this memory import flow", 12 * HOUR)
    _codex_session(home, "stale", "old work", 7 * DAY + HOUR)
    seen: list[ImportProgress] = []

    result = run_import("codex", 7, store, seen.append, home=home)

    assert (result.total, result.processed, result.imported) == (1, 1, 1)
    assert [progress.processed for progress in seen] == [1]
    events = _events(store)
    assert len(events) == 1
    event = events[0]
    assert event["source"] == "codex"
    assert event["kind"] == "session"
    assert event["data"]["title"] == "Codex session: amber"
    assert event["data"]["project"] == "amber"
    assert event["data"]["imported"] is True
    assert "User: Need to compact this memory import flow" in event["data"]["summary"]
    assert result.dates == store.list_event_dates()


def test_import_rejects_bad_requests_before_touching_disk(
    tmp_path: Path, store: ContextStore
) -> None:
    home = tmp_path / "home"
    _codex_session(home, "recent", "hello", HOUR)

    with pytest.raises(ValueError, match="Unknown agent"):
        run_import("nope", 7, store, home=home)
    with pytest.raises(ValueError, match="Invalid cutoff"):
        iter_import("codex", 999, store, home=home)
    with pytest.raises(ValueError, match="Invalid cutoff"):
        iter_import("codex", True, store, home=home)
    assert _events(store) == []


def test_claude_code_import_falls_back_to_project_directory(
    tmp_path: Path, store: ContextStore
) -> None:
    project_dir = tmp_path / "home" / ".claude" / "projects" / "-Users-me-work-amber"
    project_dir.mkdir(parents=True)
    session = project_dir / "abc.jsonl"
    session.write_text(
        json.dumps({"type": "user", "message": {"role": "user", "content": "add pins"}}) + "\n"
    )
    _touch(session, HOUR)

    result = run_import("claude_code", 1, store, home=tmp_path / "home")

    assert result.imported == 1
    event = _events(store)[0]
    assert event["data"]["title"] == "Claude Code session: amber"
    assert event["data"]["summary"] == "User: add pins"


def test_gemini_import_uses_generic_project_and_skips_bin(
    tmp_path: Path, store: ContextStore
) -> None:
    gemini_tmp = tmp_path / "home" / ".gemini" / "tmp"
    chats = gemini_tmp / "abc123" / "chats"
    chats.mkdir(parents=True)
    session = chats / "session-1.json"
    session.write_text(
        json.dumps(
            {
                "messages": [
                    {"role": "user", "content": "summarize the diff"},
                    {"role": "model", "content": "Done"},
                ]
            }
        )
    )
    _touch(session, HOUR)
    bin_chats = gemini_tmp / "bin" / "chats"
    bin_chats.mkdir(parents=True)
    bin_session = bin_chats / "session-2.json"
    bin_session.write_text(json.dumps({"messages": [{"role": "user", "content": "x"}]}))

    result = run_import("gemini", 7, store, home=tmp_path / "home")

    assert (result.total, result.imported) == (1, 1)
    event = _events(store)[0]
    assert event["data"]["title"] == "Gemini session: gemini-session"
    assert event["data"]["summary"] == "User: summarize the diff\nAssistant: Done"


def test_empty_sessions_are_processed_but_not_imported(
    tmp_path: Path, store: ContextStore
) -> None:
    path = tmp_path / "home" / ".codex" / "sessions" / "empty.jsonl"
    path.parent.mkdir(parents=True)
    path.write_text("\n")
    _touch(path, HOUR)

    result = run_import("codex", 1, store, home=tmp_path / "home")

    assert (result.total, result.processed, result.imported) == (1, 1, 0)
    assert result.dates == []
    assert _events(store) == []


def test_session_with_odd_content_block_is_still_imported(
    tmp_path: Path, store: ContextStore
) -> None:
    path = _codex_session(tmp_path / "home", "odd", "ship the release", HOUR)
    odd_line = {
        "type": "response_item",
        "payload": {"role": "assistant", "content": [{"type": "output_text", "text": {"x": 1}}]},
    }
    with path.open("a") as handle:
        handle.write(json.dumps(odd_line) + "\n")
    _touch(path, HOUR)

    result = run_import("codex", 1, store, home=tmp_path / "home")

    assert (result.total, result.processed, result.imported) == (1, 1, 1)
    summary = _events(store)[0]["data"]["summary"]
    assert summary == "User: ship the release\nAssistant: ok"


def test_cursor_sessions_are_never_imported(tmp_path: Path, store: ContextStore) -> None:
    session_dir = tmp_path / "home" / ".cursor" / "chats" / "hash" / "session"
    session_dir.mkdir(parents=True)
    (session_dir / "store.db").write_bytes(b"SQLite format 3\x00")

    result = run_import("cursor", 7, store, home=tmp_path / "home")

    assert (result.total, result.processed, result.imported) == (1, 1, 0)
    assert _events(store) == []


def test_batch_is_capped_and_newest_first(tmp_path: Path, store: ContextStore) -> None:
    home = tmp_path / "home"
    for index in range(MAX_IMPORT_BATCH + 5):
        _codex_session(home, f"s{index:03d}", f"message {index}", HOUR + index * 60)

    result = run_import("codex", 1, store, home=home)

    assert result.total == MAX_IMPORT_BATCH
    assert result.imported == MAX_IMPORT_BATCH
    summaries = " ".join(event["data"]["summary"] for event in _events(store))
    assert "message 0\n" in summaries
    assert f"message {MAX_IMPORT_BATCH + 4}\n" not in summaries


def test_iter_import_is_lazy(tmp_path: Path, store: ContextStore) -> None:
    home = tmp_path / "home"
    _codex_session(home, "a", "first", HOUR)
    _codex_session(home, "b", "second", 2 * HOUR)

    progress = iter_import("codex", 1, store, home=home)
    assert _events(store) == []

    first = next(progress)

    assert (first.total, first.processed) == (2, 1)
    assert len(_events(store)) == 1


def test_failing_session_is_skipped_and_batch_continues(
    tmp_path: Path, store: ContextStore, monkeypatch: pytest.MonkeyPatch
) -> None:
    home = tmp_path / "home"
    _codex_session(home, "good", "keep me", 2 * HOUR)
    bad = _codex_session(home, "bad", "explode", HOUR)
    original = importer.SESSION_IMPORTERS["codex"]

    def flaky(store, agent, session):
        if session.path == bad:
            raise RuntimeError("boom")
        return original(store, agent, session)

    monkeypatch.setitem(importer.SESSION_IMPORTERS, "codex", flaky)

    result = run_import("codex", 1, store, home=home)

    assert (result.total, result.processed, result.imported) == (2, 2, 1)
    assert "keep me" in _events(store)[0]["data"]["summary"]


def test_missing_agent_directory_imports_nothing(tmp_path: Path, store: ContextStore) -> None:
    result = run_import("codex", 30, store, home=tmp_path / "nobody")

    assert (result.total, result.processed, result.imported) == (0, 0, 0)
