from __future__ import annotations

import pytest

from amber.knowledge import (
    backfill_from_daily_notes,
    build_slug,
    entities_from_frontmatter,
    make_entity,
    parse_frontmatter,
    upsert_from_observation,
)
from amber.store import ContextStore, merge_entities


def test_build_slug_lowercases_and_dashes_whitespace() -> None:
    assert build_slug("project", "My  Cool\tProject") == "project:my-cool-project"
    assert build_slug("person", "Ada") == "person:ada"


def test_merge_combines_dates_counts_sources_and_lists() -> None:
    a = make_entity(
        "project", "amber", "2025-01-10", "git", {"paths": ["/a"], "branch": "main"}
    )
    b = make_entity(
        "project", "amber", "2025-01-05", "session", {"paths": ["/a", "/b"], "branch": "dev"}
    )

    merged = merge_entities(a, b)

    assert merged.id == a.id
    assert merged.first_seen == "2025-01-05"
    assert merged.last_seen == "2025-01-10"
    assert merged.mention_count == 2
    assert merged.sources == ["git", "session"]
    assert merged.metadata == {"paths": ["/a", "/b"], "branch": "dev"}


def test_merge_is_order_independent_for_dates_counts_and_source_sets() -> None:
    a = make_entity("topic", "rust", "2025-01-10", "git", {"keywords": ["x"]})
    b = make_entity("topic", "rust", "2025-01-12", "session", {"keywords": ["y"]})

    ab = merge_entities(a, b)
    ba = merge_entities(b, a)

    assert (ab.first_seen, ab.last_seen, ab.mention_count) == (
        ba.first_seen,
        ba.last_seen,
        ba.mention_count,
    )
    assert set(ab.sources) == set(ba.sources)
    assert set(ab.metadata["keywords"]) == set(ba.metadata["keywords"])


def test_merge_with_itself_doubles_count_only() -> None:
    a = make_entity(
        "person", "Ada", "2025-01-10", "git", {"aliases": ["ada"], "extra": [{"k": 1}]}
    )

    merged = merge_entities(a, a)

    assert merged.mention_count == 2
    assert merged.sources == ["git"]
    assert merged.metadata == {"aliases": ["ada"], "extra": [{"k": 1}]}
    assert (merged.first_seen, merged.last_seen) == ("2025-01-10", "2025-01-10")


def test_upsert_from_observation_merges_by_slug(store: ContextStore) -> None:
    first = upsert_from_observation(
        store,
        entity_type="project",
        name="Amber App",
        source="git",
        date="2025-01-15",
        metadata={"paths": ["/work/amber"]},
    )
    second = upsert_from_observation(
        store,
        entity_type="project",
        name="amber   app",
        source="session",
        date="2025-01-16",
        metadata={"paths": ["/work/amber", "/tmp/amber"]},
    )

    entities = store.read_entities()
    assert len(entities) == 1
    assert second.id == first.id
    assert entities[0].name == "Amber App"
    assert entities[0].mention_count == 2
    assert entities[0].sources == ["git", "session"]
    assert entities[0].metadata["paths"] == ["/work/amber", "/tmp/amber"]


@pytest.mark.parametrize(
    ("kwargs", "message"),
    [
        ({"entity_type": "place"}, "Invalid entity type"),
        ({"name": "   "}, "name is required"),
        ({"date": "15-01-2025"}, "Invalid date"),
        ({"metadata": ["not", "a", "dict"]}, "metadata must be an object"),
    ],
)
def test_upsert_from_observation_rejects_bad_input(
    store: ContextStore, kwargs: dict, message: str
) -> None:
    params = {
        "entity_type": "project",
        "name": "amber",
        "source": "git",
        "date": "2025-01-15",
    }
    params.update(kwargs)

    with pytest.raises(ValueError, match=message):
        upsert_from_observation(store, **params)
    assert store.read_entities() == []


def test_store_search_and_stats(store: ContextStore) -> None:
    upsert_from_observation(
        store, entity_type="project", name="amber", source="git", date="2025-01-15"
    )
    upsert_from_observation(
        store,
        entity_type="topic",
        name="memory",
        source="session",
        date="2025-01-15",
        metadata={"keywords": ["Recall"]},
    )

    assert [entity.name for entity in store.search_entities("recall")] == ["memory"]
    assert store.entity_stats() == {"projects": 1, "people": 0, "topics": 1}


def test_remove_entity(store: ContextStore) -> None:
    entity = upsert_from_observation(
        store, entity_type="person", name="Ada", source="git", date="2025-01-15"
    )

    assert store.remove_entity(entity.id) is True
    assert store.remove_entity(entity.id) is False
    assert store.read_entities() == []


NOTE = """---
date: 2025-01-15
projects:
  - /work/amber
people:
  - Ada Lovelace
topics:
  - session import
---
# Wednesday
"""


def test_parse_frontmatter_reads_yaml_block() -> None:
    frontmatter = parse_frontmatter(NOTE)

    assert frontmatter is not None
    assert frontmatter["projects"] == ["/work/amber"]
    assert parse_frontmatter("# no frontmatter") is None


def test_entities_from_frontmatter_links_people_and_topics_to_projects() -> None:
    entities = entities_from_frontmatter(NOTE, fallback_date="2025-01-01")

    by_type = {entity.type: entity for entity in entities}
    assert by_type["project"].name == "amber"
    assert by_type["project"].metadata["paths"] == ["/work/amber"]
    assert by_type["person"].metadata["associated_projects"] == ["project:amber"]
    assert by_type["topic"].slug == "topic:session-import"
    assert all(entity.first_seen == "2025-01-15" for entity in entities)
    assert all(entity.sources == ["daily_note"] for entity in entities)


def test_backfill_from_daily_notes(store: ContextStore) -> None:
    store.write_note("2025-01-15", NOTE)
    store.write_note("2025-01-16", NOTE.replace("date: 2025-01-15\n", ""))
    store.write_note("2025-01-17", "no frontmatter here")

    result = backfill_from_daily_notes(store)

    assert result == {"processed": 3, "entities": 3}
    project = store.read_entities_by_type("project")[0]
    assert project.mention_count == 2
    assert (project.first_seen, project.last_seen) == ("2025-01-15", "2025-01-16")
