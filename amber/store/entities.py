from __future__ import annotations

import json
import logging
from collections import Counter
from collections.abc import Iterable
from pathlib import Path
from typing import TYPE_CHECKING, Any

from .types import KnowledgeEntity
from .utils import read_json_lines, write_json_lines

if TYPE_CHECKING:
    from ._store import ContextStore

logger = logging.getLogger(__name__)

KNOWLEDGE_FILE = "knowledge.jsonl"


def knowledge_path(store: ContextStore) -> Path:
    return store.base_dir / KNOWLEDGE_FILE


def _union(existing: Iterable[Any], incoming: Iterable[Any]) -> list[Any]:
    """Order-preserving union; unhashable items compare by their JSON form."""

    seen: set[Any] = set()
    merged: list[Any] = []
    for item in [*existing, *incoming]:
        try:
            key: Any = ("h", item)
            hash(key)
        except TypeError:
            key = ("j", json.dumps(item, sort_keys=True, default=str))
        if key in seen:
            continue
        seen.add(key)
        merged.append(item)
    return merged


def merge_entities(existing: KnowledgeEntity, incoming: KnowledgeEntity) -> KnowledgeEntity:
    metadata = dict(existing.metadata)
    for key, value in incoming.metadata.items():
        current = metadata.get(key)
        if isinstance(current, list) and isinstance(value, list):
            metadata[key] = _union(current, value)
        else:
            metadata[key] = value
    return KnowledgeEntity(
        id=existing.id,
        type=existing.type,
        slug=existing.slug,
        name=existing.name,
        first_seen=min(existing.first_seen, incoming.first_seen),
        last_seen=max(existing.last_seen, incoming.last_seen),
        mention_count=existing.mention_count + incoming.mention_count,
        sources=_union(existing.sources, incoming.sources),
        metadata=metadata,
    )


def read_entities(store: ContextStore) -> list[KnowledgeEntity]:
    entities: list[KnowledgeEntity] = []
    for record in read_json_lines(knowledge_path(store)):
        try:
            entities.append(KnowledgeEntity.from_dict(record))
        except (KeyError, TypeError, ValueError):
            logger.debug("skipping malformed knowledge entity")
            continue
    return entities


def write_entities(store: ContextStore, entities: Iterable[KnowledgeEntity]) -> None:
    write_json_lines(knowledge_path(store), (entity.to_dict() for entity in entities))


def upsert_entity(store: ContextStore, entity: KnowledgeEntity) -> KnowledgeEntity:
    entities = read_entities(store)
    for index, current in enumerate(entities):
        if current.slug == entity.slug:
            merged = merge_entities(current, entity)
            entities[index] = merged
            break
    else:
        merged = entity
        entities.append(entity)
    write_entities(store, entities)
    return merged


def read_entities_by_type(store: ContextStore, entity_type: str) -> list[KnowledgeEntity]:
    return [entity for entity in read_entities(store) if entity.type == entity_type]


def remove_entity(store: ContextStore, entity_id: str) -> bool:
    entities = read_entities(store)
    remaining = [entity for entity in entities if entity.id != entity_id]
    if len(remaining) == len(entities):
        return False
    write_entities(store, remaining)
    return True


def entity_matches(entity: KnowledgeEntity, query: str) -> bool:
    needle = query.lower()
    return (
        needle in entity.name.lower()
        or needle in entity.slug
        or needle in json.dumps(entity.metadata, ensure_ascii=False).lower()
    )


def search_entities(store: ContextStore, query: str) -> list[KnowledgeEntity]:
    if not query:
        return []
    return [entity for entity in read_entities(store) if entity_matches(entity, query)]


def entity_stats(store: ContextStore) -> dict[str, int]:
    counts = Counter(entity.type for entity in read_entities(store))
    return {
        "projects": counts.get("project", 0),
        "people": counts.get("person", 0),
        "topics": counts.get("topic", 0),
    }
