from __future__ import annotations

import typer
from rich import print, print_json

from ..knowledge import backfill_from_daily_notes, upsert_from_observation
from ..tools import format_entity_line
from ..validate import validate_entity_type
from .common import exit_on_value_error, parse_metadata_or_exit, print_line


def knowledge_list_cmd(
    *,
    store_from_path,
    base_dir: str | None,
    entity_type: str | None,
    json_out: bool,
) -> None:
    """List knowledge entities, most recently seen first."""

    store = store_from_path(base_dir)
    with exit_on_value_error():
        if entity_type:
            entities = store.read_entities_by_type(validate_entity_type(entity_type))
        else:
            entities = store.read_entities()
    entities.sort(key=lambda entity: entity.last_seen, reverse=True)
    if json_out:
        print_json(data=[entity.to_dict() for entity in entities])
        return
    if not entities:
        print("[yellow]No knowledge entities[/yellow]")
        return
    for entity in entities:
        print_line(format_entity_line(entity))


def knowledge_upsert_cmd(
    *,
    store_from_path,
    base_dir: str | None,
    entity_type: str,
    name: str,
    source: str,
    date: str,
    metadata: str | None,
) -> None:
    """Record one observation of a project, person or topic."""

    store = store_from_path(base_dir)
    parsed = parse_metadata_or_exit(metadata)
    with exit_on_value_error():
        entity = upsert_from_observation(
            store,
            entity_type=entity_type,
            name=name,
            source=source,
            date=date,
            metadata=parsed,
        )
    print_line(f"Upserted {entity.slug} (seen {entity.mention_count}x)")


def knowledge_remove_cmd(*, store_from_path, base_dir: str | None, entity_id: str) -> None:
    store = store_from_path(base_dir)
    if not store.remove_entity(entity_id):
        print(f"[red]Entity {entity_id} not found[/red]")
        raise typer.Exit(code=1)
    print(f"Entity {entity_id} removed")


def knowledge_backfill_cmd(*, store_from_path, base_dir: str | None) -> None:
    """Rebuild entities from daily-note frontmatter."""

    result = backfill_from_daily_notes(store_from_path(base_dir))
    print(
        f"Scanned {result['processed']} daily notes, "
        f"{result['entities']} new entities"
    )


def knowledge_stats_cmd(*, store_from_path, base_dir: str | None) -> None:
    stats = store_from_path(base_dir).entity_stats()
    print("[bold]Knowledge[/bold]")
    print(f"- Projects: {stats['projects']}")
    print(f"- People: {stats['people']}")
    print(f"- Topics: {stats['topics']}")


def knowledge_search_cmd(*, store_from_path, base_dir: str | None, query: str) -> None:
    entities = store_from_path(base_dir).search_entities(query)
    if not entities:
        print_line(f"No entities matching {query!r}", style="yellow")
        return
    for entity in entities:
        print_line(format_entity_line(entity))
