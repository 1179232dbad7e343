from __future__ import annotations

from ._store import ContextStore
from .entities import merge_entities
from .types import ContextEntry, EntityType, EventKind, KnowledgeEntity, PinRecord, RawEvent

__all__ = [
    "ContextEntry",
    "ContextStore",
    "EntityType",
    "EventKind",
    "KnowledgeEntity",
    "PinRecord",
    "RawEvent",
    "merge_entities",
]
