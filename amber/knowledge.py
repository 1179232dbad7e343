from __future__ import annotations

import datetime as dt
import logging
import re
from collections.abc import Iterable
from typing import Any
from uuid import uuid4

import yaml

from .store import ContextStore, KnowledgeEntity
from .store.utils import project_basename
from .validate import validate_date, validate_entity_type

logger = logging.getLogger(__name__)

FRONTMATTER_RE = re.compile(r"^---\n(.*?)\n---", re.DOTALL)
_WHITESPACE_RE = re.compile(r"\s+")


def build_slug(entity_type: str, name: str) -> str:
    return f"{entity_type}:{_WHITESPACE_RE.sub('-', name.lower())}"


def make_entity(
    entity_type: str,
    name: str,
    date: str,
    source: str,
    metadata: dict[str, Any] | None = None,
) -> KnowledgeEntity:
    return KnowledgeEntity(
        id=str(uuid4()),
        type=entity_type,
        slug=build_slug(entity_type, name),
        name=name,
        first_seen=date,
        last_seen=date,
        mention_count=1,
        sources=[source],
        metadata=dict(metadata or {}),
    )


def upsert_from_observation(
    store: ContextStore,
    *,
    entity_type: str,
    name: str,
    source: str,
    date: str,
    metadata: dict[str, Any] | None = None,
) -> KnowledgeEntity:
    """Record one observation of an entity and merge it into the store.

    Callers never build merged entities themselves: each call contributes a
    fresh entity with ``mention_count=1`` and the store reconciles it with
    whatever already exists under the same slug.
    """

    validate_entity_type(entity_type)
    name = (name or "").strip()
    if not name:
        raise ValueError("name is required.")
    if not source or not source.strip():
        raise ValueError("source is required.")
    validate_date(date)
    if metadata is not None and not isinstance(metadata, dict):
        raise ValueError("metadata must be an object.")
    entity = make_entity(entity_type, name, date, source.strip(), metadata)
    return store.upsert_entity(entity)


def ingest_entities(store: ContextStore, entities: Iterable[KnowledgeEntity]) -> None:
    for entity in entities:
        store.upsert_entity(entity)


def parse_frontmatter(content: str) -> dict[str, Any] | None:
    match = FRONTMATTER_RE.match(content)
    if not match:
        return None
    try:
        parsed = yaml.safe_load(match.group(1))
    except yaml.YAMLError:
        return None
    if isinstance(parsed, dict):
        return parsed
    return None


def _names(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, str) and item.strip()]


def _frontmatter_date(value: Any, fallback: str) -> str:
    # YAML turns a bare 2025-01-15 into a date object.
    if isinstance(value, dt.date):
        return value.isoformat()[:10]
    if isinstance(value, str) and value.strip():
        return value.strip()
    return fallback


def entities_from_frontmatter(content: str, *, fallback_date: str) -> list[KnowledgeEntity]:
    frontmatter = parse_frontmatter(content)
    if not frontmatter:
        return []

    date = _frontmatter_date(frontmatter.get("date"), fallback_date)
    entities: list[KnowledgeEntity] = []
    project_slugs: list[str] = []

    for path in _names(frontmatter.get("projects")):
        name = project_basename(path) or path
        project_slugs.append(build_slug("project", name))
        entities.append(
            make_entity(
                "project",
                name,
                date,
                "daily_note",
                {"paths": [path], "repo_names": [name], "branches": []},
            )
        )

    for person in _names(frontmatter.get("people")):
        entities.append(
            make_entity(
                "person",
                person,
                date,
                "daily_note",
                {"aliases": [], "associated_projects": list(project_slugs)},
            )
        )

    for topic in _names(frontmatter.get("topics")):
        entities.append(
            make_entity(
                "topic",
                topic,
                date,
                "daily_note",
                {"keywords": [], "associated_projects": list(project_slugs)},
            )
        )
    return entities


def backfill_from_daily_notes(store: ContextStore) -> dict[str, int]:
    """Rebuild entities from daily-note frontmatter.

    Only the ``projects``/``people``/``topics`` lists are read; the event log
    is not consulted. Returns the number of notes scanned and the net number
    of new entities.
    """

    before = len(store.read_entities())
    processed = 0
    for date in store.list_note_dates():
        content = store.read_note(date)
        if not content:
            continue
        ingest_entities(store, entities_from_frontmatter(content, fallback_date=date))
        processed += 1
    after = len(store.read_entities())
    logger.info("knowledge backfill scanned %d notes", processed)
    return {"processed": processed, "entities": after - before}
