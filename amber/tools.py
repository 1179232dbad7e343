from __future__ import annotations

import logging
from typing import Any
from uuid import uuid4

from .app_state import AppState, AppStatus
from .knowledge import upsert_from_observation
from .query import iter_matching_lines
from .store import ContextStore, KnowledgeEntity, PinRecord, RawEvent
from .store.entities import entity_matches
from .store.utils import now_iso, today_local
from .validate import (
    clamp_limit,
    validate_date,
    validate_entity_type,
    validate_event_kind,
    validate_feedback,
    validate_memory_input,
    validate_month,
    validate_search_query,
    validate_title,
)

logger = logging.getLogger(__name__)

DEFAULT_TOOL_SEARCH_LIMIT = 20
MAX_TOOL_SEARCH_LIMIT = 100
DEFAULT_PINS_LIMIT = 50
DEFAULT_KNOWLEDGE_LIMIT = 50
MAX_LISTING_LIMIT = 200


def _plural(count: int, singular: str, plural: str) -> str:
    return singular if count == 1 else plural


def _list_field(metadata: dict[str, Any], key: str) -> list[str]:
    value = metadata.get(key)
    if not isinstance(value, list):
        return []
    return [str(item) for item in value]


def format_pin_line(pin: PinRecord) -> str:
    line = f"[{pin.date}] [{pin.source}] {pin.title}"
    if pin.note:
        line += f" (note: {pin.note})"
    if pin.detail:
        line += f"\n  {pin.detail}"
    return line


def format_entity_line(entity: KnowledgeEntity) -> str:
    line = f"[{entity.type}] {entity.name} ({entity.mention_count}x, last: {entity.last_seen})"
    paths = _list_field(entity.metadata, "paths")
    if entity.type == "project" and paths:
        line += f"\n  path: {', '.join(paths)}"
    projects = _list_field(entity.metadata, "associated_projects")
    if projects:
        line += f"\n  projects: {', '.join(projects)}"
    return line


def format_processing_entity_line(entity: KnowledgeEntity) -> str:
    line = (
        f"[{entity.type}] {entity.name} "
        f"(seen {entity.mention_count}x, last: {entity.last_seen})"
    )
    paths = _list_field(entity.metadata, "paths")
    if entity.type == "project" and paths:
        line += f"\n  path: {paths[0]}"
    return line


class AmberTools:
    """Text-in, text-out operations behind the MCP servers.

    Every method validates its arguments before touching the store and raises
    ``ValueError`` on bad input. "Today" is the local calendar date.
    """

    def __init__(self, store: ContextStore, state: AppState | None = None):
        self.store = store
        self.state = state or AppState()

    # Agent-facing tools

    def read_entries(self, date: str | None = None) -> str:
        date = validate_date(date or today_local())
        events = self.store.read_events(date)
        if not events:
            return f"No entries found for {date}."
        return f"{len(events)} entries for {date}:\n\n" + "\n".join(events)

    def read_daily_note(self, date: str | None = None) -> str:
        date = validate_date(date or today_local())
        note = self.store.read_note(date)
        if not note:
            return f"No daily note for {date}. The note may not have been generated yet."
        return note

    def append_memory(
        self,
        source: str,
        title: str,
        detail: str | None = None,
        project_path: str | None = None,
        kind: str | None = None,
        tags: list[str] | None = None,
    ) -> str:
        validate_memory_input(source=source, title=title, detail=detail, kind=kind)
        data: dict[str, Any] = {"title": title}
        if detail:
            data["detail"] = detail
        if project_path:
            data["project_path"] = project_path
        if tags:
            data["tags"] = list(tags)
        event = RawEvent(
            source=source,
            timestamp=now_iso(),
            kind=validate_event_kind(kind) if kind else "memory",
            data=data,
        )
        date = today_local()
        self.store.append_event(date, event)
        self.state.record_events()
        return f'Memory appended for {date}: "{title}"'

    def list_dates(self) -> str:
        dates = self.store.list_dates()
        if not dates:
            return "No dates with entries found."
        return f"Available dates ({len(dates)}):\n" + "\n".join(dates)

    def search_entries(self, query: str, limit: int = DEFAULT_TOOL_SEARCH_LIMIT) -> str:
        query = validate_search_query(query)
        limit = clamp_limit(limit, default=DEFAULT_TOOL_SEARCH_LIMIT, maximum=MAX_TOOL_SEARCH_LIMIT)
        results: list[str] = []
        for date, _index, line in iter_matching_lines(self.store, query):
            results.append(f"[{date}] {line}")
            if len(results) >= limit:
                break
        if not results:
            return f'No entries matching "{query}".'
        noun = _plural(len(results), "result", "results")
        return f'{len(results)} {noun} for "{query}":\n\n' + "\n".join(results)

    def pin_entry(
        self,
        source: str,
        title: str,
        detail: str | None = None,
        project_path: str | None = None,
        kind: str | None = None,
        note: str | None = None,
        date: str | None = None,
    ) -> str:
        if not source or not source.strip():
            raise ValueError("'source' and 'title' are required.")
        validate_title(title)
        date = validate_date(date or today_local())
        data: dict[str, Any] = {"title": title}
        if detail:
            data["detail"] = detail
        if project_path:
            data["project_path"] = project_path
        pin = PinRecord(
            id=str(uuid4()),
            timestamp=now_iso(),
            source=source,
            kind=validate_event_kind(kind) if kind else "memory",
            date=date,
            title=title,
            detail=detail or None,
            project_path=project_path or None,
            data=data,
            note=note or None,
        )
        self.store.append_pin(pin)
        suffix = f" (note: {pin.note})" if pin.note else ""
        return f'Pinned for {date}: "{title}"{suffix}'

    def read_pins(
        self,
        date: str | None = None,
        month: str | None = None,
        limit: int = DEFAULT_PINS_LIMIT,
    ) -> str:
        if date:
            pins = self.store.read_pins_for_date(validate_date(date))
        elif month:
            pins = self.store.read_pins_for_month(validate_month(month))
        else:
            pins = self.store.read_pins()
        pins = pins[: clamp_limit(limit, default=DEFAULT_PINS_LIMIT, maximum=MAX_LISTING_LIMIT)]
        if not pins:
            return "No pinned entries found."
        noun = _plural(len(pins), "entry", "entries")
        return f"{len(pins)} pinned {noun}:\n\n" + "\n".join(format_pin_line(pin) for pin in pins)

    def provide_feedback(
        self,
        feedback_type: str,
        message: str,
        date: str | None = None,
        entry_id: str | None = None,
    ) -> str:
        validate_feedback(feedback_type, message)
        if date:
            validate_date(date)
        data: dict[str, Any] = {"feedback_type": feedback_type, "message": message}
        if date:
            data["target_date"] = date
        if entry_id:
            data["target_entry_id"] = entry_id
        event = RawEvent(source="feedback", timestamp=now_iso(), kind="memory", data=data)
        self.store.append_event(today_local(), event)
        self.state.record_events()
        return f"Feedback recorded: [{feedback_type}] {message}"

    def read_knowledge(
        self,
        type: str | None = None,
        query: str | None = None,
        limit: int = DEFAULT_KNOWLEDGE_LIMIT,
    ) -> str:
        if type:
            validate_entity_type(type)
            entities = self.store.read_entities_by_type(type)
        else:
            entities = self.store.read_entities()
        if query:
            entities = [entity for entity in entities if entity_matches(entity, query)]
        entities.sort(key=lambda entity: entity.last_seen, reverse=True)
        entities = entities[
            : clamp_limit(limit, default=DEFAULT_KNOWLEDGE_LIMIT, maximum=MAX_LISTING_LIMIT)
        ]
        if not entities:
            return "No knowledge entities found."
        noun = _plural(len(entities), "entity", "entities")
        lines = "\n".join(format_entity_line(entity) for entity in entities)
        return f"{len(entities)} {noun}:\n\n{lines}"

    # Processing tools

    def write_daily_note(self, date: str, content: str) -> str:
        if not date or not content:
            raise ValueError("'date' and 'content' are required.")
        validate_date(date)
        self.store.write_note(date, content)
        self.state.mark_summarized(date)
        logger.info("daily note written for %s", date)
        return f"Daily note written for {date}"

    def upsert_knowledge(
        self,
        type: str,
        name: str,
        source: str,
        date: str,
        metadata: dict[str, Any] | None = None,
    ) -> str:
        if not type or not name or not source or not date:
            raise ValueError("'type', 'name', 'source', and 'date' are required.")
        entity = upsert_from_observation(
            self.store,
            entity_type=type,
            name=name,
            source=source,
            date=date,
            metadata=metadata,
        )
        return f"Upserted {entity.type}: {entity.name}"

    def read_processing_knowledge(self, type: str | None = None) -> str:
        if type:
            validate_entity_type(type)
            entities = self.store.read_entities_by_type(type)
        else:
            entities = self.store.read_entities()
        if not entities:
            return "No knowledge entities found."
        return "\n".join(format_processing_entity_line(entity) for entity in entities)

    def status(self) -> AppStatus:
        return self.state.status()
