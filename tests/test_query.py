from __future__ import annotations

import pytest

from amber.query import (
    build_pin,
    entries_for_date,
    entry_counts,
    find_entry,
    search_entries,
)
from amber.store import ContextEntry, ContextStore, PinRecord, RawEvent


def _append(store: ContextStore, date: str, source: str, timestamp: str, data: dict) -> None:
    kind = "commit" if source == "git" else "memory"
    store.append_event(date, RawEvent(source=source, timestamp=timestamp, kind=kind, data=data))


def test_entries_are_newest_first_with_formatted_titles(store: ContextStore) -> None:
    _append(
        store,
        "2025-01-15",
        "git",
        "2025-01-15T09:00:00Z",
        {
            "repo": "amber",
            "subject": "fix import",
            "author": "ada",
            "hash": "abcdef123456",
            "repo_path": "/work/amber",
        },
    )
    _append(
        store,
        "2025-01-15",
        "codex",
        "2025-01-15T11:00:00Z",
        {"title": "Codex session: amber", "summary": "User: ship it\nAssistant: done"},
    )
    _append(
        store,
        "2025-01-15",
        "feedback",
        "2025-01-15T10:00:00Z",
        {"feedback_type": "outdated", "message": "old note"},
    )
    store.append_event("2025-01-15", RawEvent(source="x", timestamp="", kind="note"))

    entries = entries_for_date(store, "2025-01-15")

    assert [entry.title for entry in entries] == [
        "Codex session: amber",
        "Feedback: outdated - old note",
        "amber: fix import",
        "x event",
    ]
    codex, _feedback, git, untimed = entries
    assert codex.detail == "ship it"
    assert git.detail == "ada - abcdef12"
    assert git.project_path == "/work/amber"
    assert git.id == "staging-2025-01-15-0"
    assert untimed.timestamp == "2025-01-15"


def test_entries_skip_malformed_lines(store: ContextStore) -> None:
    path = store.base_dir / "staging" / "2025-01-15.jsonl"
    path.write_text('{"source": "user", "data": {"title": "ok"}}\n{broken\n[1, 2]\n')

    entries = entries_for_date(store, "2025-01-15")

    assert [entry.title for entry in entries] == ["ok"]
    assert entries[0].kind == "commit"


def test_entries_reject_bad_date(store: ContextStore) -> None:
    with pytest.raises(ValueError, match="Invalid date"):
        entries_for_date(store, "2025-13-45")


def test_pins_mark_the_exact_entry_first(store: ContextStore) -> None:
    for hour in ("09", "10"):
        _append(store, "2025-01-15", "user", f"2025-01-15T{hour}:00:00Z", {"title": "standup"})
    later = entries_for_date(store, "2025-01-15")[0]
    pin = build_pin(later, "2025-01-15", "keep")
    store.append_pin(pin)

    entries = entries_for_date(store, "2025-01-15")

    assert [(entry.timestamp, entry.pinned) for entry in entries] == [
        ("2025-01-15T10:00:00Z", True),
        ("2025-01-15T09:00:00Z", None),
    ]
    assert entries[0].pin_id == pin.id
    assert pin.data["timestamp"] == "2025-01-15T10:00:00Z"
    assert pin.date == "2025-01-15"
    assert pin.note == "keep"


def test_pin_uses_log_date_not_utc_timestamp_date(store: ContextStore) -> None:
    # Logged on the local evening of the 15th, stamped in UTC on the 16th.
    _append(store, "2025-01-15", "user", "2025-01-16T02:00:00+00:00", {"title": "late fix"})
    entry = find_entry(store, "staging-2025-01-15-0")
    assert entry is not None

    pin = build_pin(entry, "2025-01-15")
    store.append_pin(pin)

    assert pin.date == "2025-01-15"
    assert [p.id for p in store.read_pins_for_date("2025-01-15")] == [pin.id]
    [pinned] = entries_for_date(store, "2025-01-15")
    assert pinned.pinned is True
    assert pinned.pin_id == pin.id


def test_pin_without_fingerprint_marks_one_entry_by_title(store: ContextStore) -> None:
    for hour in ("09", "10", "11"):
        _append(store, "2025-01-15", "user", f"2025-01-15T{hour}:00:00Z", {"title": "standup"})
    store.append_pin(
        PinRecord(
            id="p1",
            timestamp="2025-01-15T12:00:00Z",
            source="user",
            kind="memory",
            date="2025-01-15",
            title="standup",
        )
    )

    entries = entries_for_date(store, "2025-01-15")

    assert sum(1 for entry in entries if entry.pinned) == 1


def test_collectors_add_same_day_entries_and_failures_are_skipped(store: ContextStore) -> None:
    _append(store, "2025-01-15", "user", "2025-01-15T09:00:00Z", {"title": "local"})

    def browser(date: str) -> list[ContextEntry]:
        return [
            ContextEntry("b1", "browser", f"{date}T10:00:00Z", "browse", "docs"),
            ContextEntry("b2", "browser", "2025-01-14T10:00:00Z", "browse", "old"),
        ]

    def broken(date: str) -> list[ContextEntry]:
        raise OSError("vault missing")

    entries = entries_for_date(store, "2025-01-15", collectors=[broken, browser])

    assert [entry.title for entry in entries] == ["docs", "local"]


def test_search_is_newest_first_and_stops_at_limit(store: ContextStore) -> None:
    for date in ("2025-01-13", "2025-01-14", "2025-01-15"):
        for index in range(3):
            _append(store, date, "user", f"{date}T0{index}:00:00Z", {"title": f"Deploy {index}"})
    _append(store, "2025-01-15", "user", "2025-01-15T05:00:00Z", {"title": "unrelated"})

    hits = search_entries(store, "DEPLOY", limit=4)

    assert [hit.date for hit in hits] == ["2025-01-15"] * 3 + ["2025-01-14"]
    assert search_entries(store, "d") == []
    assert search_entries(store, "") == []
    assert len(search_entries(store, "deploy", limit=0)) == 9


def test_entry_counts(store: ContextStore) -> None:
    _append(store, "2025-01-14", "user", "2025-01-14T09:00:00Z", {"title": "a"})
    _append(store, "2025-01-15", "user", "2025-01-15T09:00:00Z", {"title": "b"})
    _append(store, "2025-01-15", "user", "2025-01-15T10:00:00Z", {"title": "c"})

    assert entry_counts(store) == {"2025-01-14": 1, "2025-01-15": 2}


def test_find_entry(store: ContextStore) -> None:
    _append(store, "2025-01-15", "user", "2025-01-15T09:00:00Z", {"title": "a"})

    entry = find_entry(store, "staging-2025-01-15-0")

    assert entry is not None
    assert entry.title == "a"
    assert find_entry(store, "staging-2025-01-15-7") is None
    with pytest.raises(ValueError):
        find_entry(store, "pin-2025-01-15-0")
