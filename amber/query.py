from __future__ import annotations

import json
import logging
from collections.abc import Callable, Iterable, Iterator, Sequence
from dataclasses import dataclass
from typing import Any
from uuid import uuid4

from .ingest.transcript import first_user_message
from .store import ContextEntry, ContextStore, PinRecord, RawEvent
from .store.utils import now_iso
from .validate import clamp_limit, validate_date

logger = logging.getLogger(__name__)

AGENT_SOURCES = frozenset({"claude_code", "clawdbot", "codex", "opencode", "gemini"})
MIN_QUERY_CHARS = 2
DEFAULT_SEARCH_LIMIT = 50
MAX_SEARCH_LIMIT = 200

# Produces entries for a date from outside the event log (browser history,
# note vaults). Collectors are owned by the caller.
EntryCollector = Callable[[str], Iterable[ContextEntry]]


@dataclass
class SearchHit:
    date: str
    entry: ContextEntry

    def to_dict(self) -> dict[str, Any]:
        return {"date": self.date, "entry": self.entry.to_dict()}


def format_event_title(event: RawEvent) -> str:
    data = event.data
    if event.source == "git":
        return f"{data.get('repo')}: {data.get('subject')}"
    if event.source in AGENT_SOURCES:
        return str(data.get("title") or "Agent session")
    if event.source == "obsidian":
        return str(data.get("title") or "Obsidian note")
    if event.source == "feedback":
        return f"Feedback: {data.get('feedback_type')} - {data.get('message')}"
    return str(data.get("title") or f"{event.source} event")


def format_event_detail(event: RawEvent) -> str | None:
    data = event.data
    if event.source == "git":
        return f"{data.get('author')} - {str(data.get('hash') or '')[:8]}"
    if event.source in AGENT_SOURCES:
        summary = data.get("summary")
        if isinstance(summary, str) and summary:
            return first_user_message(summary)
    detail = data.get("detail")
    if detail:
        return str(detail)
    return None


def event_to_entry(date: str, index: int, event: RawEvent) -> ContextEntry:
    project_path = event.data.get("repo_path") or event.data.get("project_path")
    return ContextEntry(
        id=f"staging-{date}-{index}",
        source=event.source,
        timestamp=event.timestamp or date,
        kind=event.kind,
        title=format_event_title(event),
        detail=format_event_detail(event),
        project_path=str(project_path) if project_path else None,
        data=event.data,
    )


def parse_entry(date: str, index: int, line: str) -> ContextEntry | None:
    try:
        payload = json.loads(line)
    except json.JSONDecodeError:
        logger.debug("skipping malformed event %s:%d", date, index)
        return None
    if not isinstance(payload, dict):
        return None
    return event_to_entry(date, index, RawEvent.from_dict(payload))


def entry_fingerprint(source: str, timestamp: str, kind: str) -> str:
    return f"{source}|{timestamp}|{kind}"


def pin_fingerprint(pin: PinRecord) -> str:
    timestamp = pin.data.get("timestamp") or pin.timestamp
    return entry_fingerprint(pin.source, str(timestamp), pin.kind)


def annotate_pins(entries: Sequence[ContextEntry], pins: Sequence[PinRecord]) -> None:
    """Mark pinned entries in place.

    A pin whose fingerprint (source, timestamp, kind) matches an entry claims
    that entry. Pins with no exact match fall back to source+title+kind.
    Each pin marks at most one entry, so a title shared by many entries is
    never marked pinned more than once per pin.
    """

    if not pins:
        return
    unclaimed = list(pins)
    by_fingerprint = {
        entry_fingerprint(entry.source, entry.timestamp, entry.kind): entry for entry in entries
    }
    for pin in list(unclaimed):
        entry = by_fingerprint.get(pin_fingerprint(pin))
        if entry is not None and not entry.pinned:
            entry.pinned = True
            entry.pin_id = pin.id
            unclaimed.remove(pin)
    for pin in unclaimed:
        for entry in entries:
            if entry.pinned:
                continue
            if (entry.source, entry.title, entry.kind) == (pin.source, pin.title, pin.kind):
                entry.pinned = True
                entry.pin_id = pin.id
                break


def entries_for_date(
    store: ContextStore,
    date: str,
    collectors: Iterable[EntryCollector] = (),
) -> list[ContextEntry]:
    validate_date(date)
    entries: list[ContextEntry] = []
    for index, line in enumerate(store.read_events(date)):
        entry = parse_entry(date, index, line)
        if entry is not None:
            entries.append(entry)

    for collector in collectors:
        try:
            collected = list(collector(date))
        except Exception as exc:
            logger.warning("entry collector failed for %s", date, exc_info=exc)
            continue
        entries.extend(entry for entry in collected if entry.timestamp[:10] == date)

    entries.sort(key=lambda entry: entry.timestamp, reverse=True)
    annotate_pins(entries, store.read_pins_for_date(date))
    return entries


def search_entries(
    store: ContextStore, query: str, limit: int | None = DEFAULT_SEARCH_LIMIT
) -> list[SearchHit]:
    """Newest-first substring scan over raw event lines.

    Stops as soon as ``limit`` hits are collected; older dates are not read.
    """

    if not query or len(query) < MIN_QUERY_CHARS:
        return []
    limit = clamp_limit(limit, default=DEFAULT_SEARCH_LIMIT, maximum=MAX_SEARCH_LIMIT)
    hits: list[SearchHit] = []
    for date, index, line in iter_matching_lines(store, query):
        entry = parse_entry(date, index, line)
        if entry is None:
            continue
        hits.append(SearchHit(date=date, entry=entry))
        if len(hits) >= limit:
            break
    return hits


def iter_matching_lines(store: ContextStore, query: str) -> Iterator[tuple[str, int, str]]:
    """Yield ``(date, line index, raw line)`` for case-insensitive matches, newest date first.

    Dates are read lazily, one log at a time.
    """

    needle = query.lower()
    for date in sorted(store.list_event_dates(), reverse=True):
        for index, line in enumerate(store.read_events(date)):
            if needle in line.lower():
                yield date, index, line


def entry_counts(store: ContextStore) -> dict[str, int]:
    return {date: len(store.read_events(date)) for date in store.list_event_dates()}


def build_pin(entry: ContextEntry, date: str, note: str | None = None) -> PinRecord:
    """Pin ``entry`` under the log date it was read from."""

    data = dict(entry.data)
    # Keep the entry's own timestamp so the pin matches it by fingerprint.
    data.setdefault("timestamp", entry.timestamp)
    return PinRecord(
        id=str(uuid4()),
        timestamp=now_iso(),
        source=entry.source,
        kind=entry.kind,
        date=validate_date(date),
        title=entry.title,
        detail=entry.detail,
        project_path=entry.project_path,
        data=data,
        note=note,
    )


def parse_entry_id(entry_id: str) -> tuple[str, int]:
    """Split a ``staging-<date>-<index>`` entry id into its date and line index."""

    prefix, _, rest = entry_id.partition("-")
    date, index = rest[:10], rest[11:]
    if prefix != "staging" or rest[10:11] != "-" or not index.isdigit():
        raise ValueError(f"Invalid entry id: {entry_id!r}")
    return validate_date(date), int(index)


def find_entry(store: ContextStore, entry_id: str) -> ContextEntry | None:
    date, position = parse_entry_id(entry_id)
    lines = store.read_events(date)
    if position >= len(lines):
        return None
    return parse_entry(date, position, lines[position])
