from __future__ import annotations

import logging
from pathlib import Path

import typer
from rich import print

from . import __version__
from .commands.common import agents_home, store_from_path
from .commands.entries_cmds import (
    counts_cmd,
    dates_cmd,
    entries_cmd,
    note_cmd,
    remember_cmd,
    search_cmd,
)
from .commands.import_cmds import import_cmd, preview_cmd, scan_cmd
from .commands.knowledge_cmds import (
    knowledge_backfill_cmd,
    knowledge_list_cmd,
    knowledge_remove_cmd,
    knowledge_search_cmd,
    knowledge_stats_cmd,
    knowledge_upsert_cmd,
)
from .commands.pins_cmds import pins_add_cmd, pins_list_cmd, pins_remove_cmd
from .config import load_config
from .store.utils import today_local

app = typer.Typer(help="amber: a local memory of your day for coding agents")
pins_app = typer.Typer(help="Manage pinned entries")
knowledge_app = typer.Typer(help="Projects, people and topics")
app.add_typer(pins_app, name="pins")
app.add_typer(knowledge_app, name="knowledge")

BASE_DIR_HELP = "Amber data directory (defaults to config / AMBER_BASE_DIR)"
HOME_HELP = "Directory holding the agents' dot-folders (defaults to your home)"


@app.callback()
def _root(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log debug output to stderr"),
) -> None:
    logging.basicConfig(level=logging.DEBUG if verbose else logging.WARNING)


@app.command()
def scan(
    cutoff: int = typer.Option(None, help="Only count sessions from the last N days (1/7/30/90)"),
    home: str = typer.Option(None, help=HOME_HELP),
    json_out: bool = typer.Option(False, "--json", help="Print JSON"),
) -> None:
    """Show which coding agents have session history on this machine."""

    scan_cmd(home=agents_home(home), cutoff_days=cutoff, json_out=json_out)


@app.command()
def preview(
    agent: str = typer.Argument(..., help="claude_code, codex, gemini, cursor or openclaw"),
    cutoff: int = typer.Option(None, help="Only sessions from the last N days (1/7/30/90)"),
    limit: int = typer.Option(None, help="Max sessions to preview"),
    home: str = typer.Option(None, help=HOME_HELP),
    json_out: bool = typer.Option(False, "--json", help="Print JSON"),
) -> None:
    """Preview recent sessions of one agent."""

    preview_cmd(
        home=agents_home(home),
        agent_id=agent,
        cutoff_days=cutoff,
        limit=limit or load_config().preview_limit,
        json_out=json_out,
    )


@app.command("import")
def import_sessions(
    agent: str = typer.Argument(..., help="claude_code, codex or gemini"),
    cutoff: int = typer.Option(7, help="Import sessions from the last N days (1/7/30/90)"),
    base_dir: str = typer.Option(None, help=BASE_DIR_HELP),
    home: str = typer.Option(None, help=HOME_HELP),
) -> None:
    """Import recent agent sessions as events."""

    import_cmd(
        store_from_path=store_from_path,
        base_dir=base_dir,
        home=agents_home(home),
        agent_id=agent,
        cutoff_days=cutoff,
    )


@app.command()
def entries(
    date: str = typer.Argument(None, help="YYYY-MM-DD (defaults to today)"),
    base_dir: str = typer.Option(None, help=BASE_DIR_HELP),
    json_out: bool = typer.Option(False, "--json", help="Print JSON"),
) -> None:
    """Show the entries recorded for a date."""

    entries_cmd(store_from_path=store_from_path, base_dir=base_dir, date=date, json_out=json_out)


@app.command()
def search(
    query: str = typer.Argument(...),
    limit: int = typer.Option(None, help="Max results"),
    base_dir: str = typer.Option(None, help=BASE_DIR_HELP),
) -> None:
    """Search all events, newest first."""

    search_cmd(
        store_from_path=store_from_path,
        base_dir=base_dir,
        query=query,
        limit=limit or load_config().search_limit,
    )


@app.command()
def counts(base_dir: str = typer.Option(None, help=BASE_DIR_HELP)) -> None:
    """Show how many events each date holds."""

    counts_cmd(store_from_path=store_from_path, base_dir=base_dir)


@app.command()
def dates(base_dir: str = typer.Option(None, help=BASE_DIR_HELP)) -> None:
    """List dates with events or a daily note."""

    dates_cmd(store_from_path=store_from_path, base_dir=base_dir)


@app.command()
def note(
    date: str = typer.Argument(None, help="YYYY-MM-DD (defaults to today)"),
    write: Path = typer.Option(
        None, exists=True, dir_okay=False, readable=True, help="Replace the note with this file"
    ),
    base_dir: str = typer.Option(None, help=BASE_DIR_HELP),
) -> None:
    """Print or write the daily note for a date."""

    note_cmd(store_from_path=store_from_path, base_dir=base_dir, date=date, write_from=write)


@app.command()
def remember(
    title: str = typer.Option(..., help="Short title"),
    detail: str = typer.Option(None, help="Longer description"),
    source: str = typer.Option("user", help="Who is recording this"),
    kind: str = typer.Option(None, help="Event kind (defaults to memory)"),
    project_path: str = typer.Option(None, help="Related project path"),
    tags: list[str] = typer.Option(None, "--tag", help="Tag (repeatable)"),
    base_dir: str = typer.Option(None, help=BASE_DIR_HELP),
) -> None:
    """Record a memory for today."""

    remember_cmd(
        store_from_path=store_from_path,
        base_dir=base_dir,
        title=title,
        detail=detail,
        source=source,
        kind=kind,
        project_path=project_path,
        tags=tags or None,
    )


@pins_app.command("list")
def pins_list(
    date: str = typer.Option(None, help="YYYY-MM-DD"),
    month: str = typer.Option(None, help="YYYY-MM"),
    base_dir: str = typer.Option(None, help=BASE_DIR_HELP),
    json_out: bool = typer.Option(False, "--json", help="Print JSON"),
) -> None:
    """List pinned entries."""

    pins_list_cmd(
        store_from_path=store_from_path,
        base_dir=base_dir,
        date=date,
        month=month,
        json_out=json_out,
    )


@pins_app.command("add")
def pins_add(
    entry_id: str = typer.Argument(..., help="Entry id, e.g. staging-2025-01-15-0"),
    note: str = typer.Option(None, help="Why this is pinned"),
    base_dir: str = typer.Option(None, help=BASE_DIR_HELP),
) -> None:
    """Pin an entry."""

    pins_add_cmd(store_from_path=store_from_path, base_dir=base_dir, entry_id=entry_id, note=note)


@pins_app.command("remove")
def pins_remove(
    pin_id: str = typer.Argument(...),
    base_dir: str = typer.Option(None, help=BASE_DIR_HELP),
) -> None:
    """Remove a pin by id."""

    pins_remove_cmd(store_from_path=store_from_path, base_dir=base_dir, pin_id=pin_id)


@knowledge_app.command("list")
def knowledge_list(
    entity_type: str = typer.Option(None, "--type", help="project, person or topic"),
    base_dir: str = typer.Option(None, help=BASE_DIR_HELP),
    json_out: bool = typer.Option(False, "--json", help="Print JSON"),
) -> None:
    """List known entities."""

    knowledge_list_cmd(
        store_from_path=store_from_path,
        base_dir=base_dir,
        entity_type=entity_type,
        json_out=json_out,
    )


@knowledge_app.command("upsert")
def knowledge_upsert(
    entity_type: str = typer.Argument(..., help="project, person or topic"),
    name: str = typer.Argument(...),
    source: str = typer.Option("user", help="Where this was observed"),
    date: str = typer.Option(None, help="YYYY-MM-DD (defaults to today)"),
    metadata: str = typer.Option(None, help="JSON object merged into the entity metadata"),
    base_dir: str = typer.Option(None, help=BASE_DIR_HELP),
) -> None:
    """Add or update an entity."""

    knowledge_upsert_cmd(
        store_from_path=store_from_path,
        base_dir=base_dir,
        entity_type=entity_type,
        name=name,
        source=source,
        date=date or today_local(),
        metadata=metadata,
    )


@knowledge_app.command("remove")
def knowledge_remove(
    entity_id: str = typer.Argument(...),
    base_dir: str = typer.Option(None, help=BASE_DIR_HELP),
) -> None:
    """Remove an entity by id."""

    knowledge_remove_cmd(store_from_path=store_from_path, base_dir=base_dir, entity_id=entity_id)


@knowledge_app.command("backfill")
def knowledge_backfill(base_dir: str = typer.Option(None, help=BASE_DIR_HELP)) -> None:
    """Rebuild entities from daily-note frontmatter."""

    knowledge_backfill_cmd(store_from_path=store_from_path, base_dir=base_dir)


@knowledge_app.command("stats")
def knowledge_stats(base_dir: str = typer.Option(None, help=BASE_DIR_HELP)) -> None:
    """Count entities per type."""

    knowledge_stats_cmd(store_from_path=store_from_path, base_dir=base_dir)


@knowledge_app.command("search")
def knowledge_search(
    query: str = typer.Argument(...),
    base_dir: str = typer.Option(None, help=BASE_DIR_HELP),
) -> None:
    """Search entities by name, slug or metadata."""

    knowledge_search_cmd(store_from_path=store_from_path, base_dir=base_dir, query=query)


@app.command()
def mcp() -> None:
    """Run the amber MCP server over stdio."""

    from .mcp_server import run as mcp_run

    mcp_run()


@app.command("mcp-processing")
def mcp_processing() -> None:
    """Run the daily-processing MCP server over stdio."""

    from .mcp_server import run_processing

    run_processing()


def main() -> None:
    app()


@app.command("version")
def version() -> None:
    """Print version."""

    print(__version__)
