from __future__ import annotations

from pathlib import Path

from ..config import resolve_base_dir
from . import entities as store_entities
from . import events as store_events
from . import pins as store_pins
from .types import KnowledgeEntity, PinRecord, RawEvent


class ContextStore:
    """File-backed store rooted at ``base_dir``.

    Layout::

        staging/<date>.jsonl   append-only event log per calendar date
        daily/<date>.md        daily note per calendar date
        pins.jsonl             pin records
        knowledge.jsonl        knowledge entities

    Pins and entities are mutated by read-all / filter / rewrite-all, so a
    base directory must have a single writer at a time. Two processes
    upserting entities concurrently lose updates (last rewrite wins).
    Appends to an event log are single writes and do not have this problem.
    """

    def __init__(self, base_dir: Path | str | None = None):
        self.base_dir = resolve_base_dir(base_dir)

    def ensure_dirs(self) -> None:
        (self.base_dir / store_events.DAILY_DIR).mkdir(parents=True, exist_ok=True)
        (self.base_dir / store_events.STAGING_DIR).mkdir(parents=True, exist_ok=True)

    # Events and notes

    def append_event(self, date: str, event: RawEvent) -> None:
        store_events.append_event(self, date, event)

    def read_events(self, date: str) -> list[str]:
        return store_events.read_events(self, date)

    def clear_events(self, date: str) -> None:
        store_events.clear_events(self, date)

    def write_note(self, date: str, content: str) -> None:
        store_events.write_note(self, date, content)

    def read_note(self, date: str) -> str | None:
        return store_events.read_note(self, date)

    def list_event_dates(self) -> list[str]:
        return store_events.list_event_dates(self)

    def list_note_dates(self) -> list[str]:
        return store_events.list_note_dates(self)

    def list_dates(self) -> list[str]:
        return store_events.list_dates(self)

    # Pins

    def append_pin(self, pin: PinRecord) -> None:
        store_pins.append_pin(self, pin)

    def read_pins(self) -> list[PinRecord]:
        return store_pins.read_pins(self)

    def read_pins_for_date(self, date: str) -> list[PinRecord]:
        return store_pins.read_pins_for_date(self, date)

    def read_pins_for_month(self, month: str) -> list[PinRecord]:
        return store_pins.read_pins_for_month(self, month)

    def remove_pin(self, pin_id: str) -> bool:
        return store_pins.remove_pin(self, pin_id)

    # Knowledge entities

    def read_entities(self) -> list[KnowledgeEntity]:
        return store_entities.read_entities(self)

    def read_entities_by_type(self, entity_type: str) -> list[KnowledgeEntity]:
        return store_entities.read_entities_by_type(self, entity_type)

    def write_entities(self, entities: list[KnowledgeEntity]) -> None:
        store_entities.write_entities(self, entities)

    def upsert_entity(self, entity: KnowledgeEntity) -> KnowledgeEntity:
        return store_entities.upsert_entity(self, entity)

    def remove_entity(self, entity_id: str) -> bool:
        return store_entities.remove_entity(self, entity_id)

    def search_entities(self, query: str) -> list[KnowledgeEntity]:
        return store_entities.search_entities(self, query)

    def entity_stats(self) -> dict[str, int]:
        return store_entities.entity_stats(self)
