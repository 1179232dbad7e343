from __future__ import annotations

from pathlib import Path

import typer
from rich import print, print_json

from ..ingest import list_agent_session_previews, run_import, scan_agent_sources
from ..ingest.importer import ImportProgress
from .common import exit_on_value_error, print_line


def scan_cmd(*, home: Path, cutoff_days: int | None, json_out: bool) -> None:
    """Report which agent session stores exist and how many sessions they hold."""

    with exit_on_value_error():
        statuses = scan_agent_sources(cutoff_days, home=home)
    if json_out:
        print_json(data=[status.to_dict() for status in statuses])
        return
    for status in statuses:
        if not status.found:
            print(f"[dim]- {status.name}: not found ({status.dir})[/dim]")
            continue
        span = ""
        if status.oldest and status.newest:
            span = f" ({status.oldest} .. {status.newest})"
        preview_only = "" if status.importable else " [dim](preview only)[/dim]"
        print(
            f"- [bold]{status.name}[/bold]: {status.session_count} sessions{span}{preview_only}"
        )


def preview_cmd(
    *,
    home: Path,
    agent_id: str,
    cutoff_days: int | None,
    limit: int,
    json_out: bool,
) -> None:
    """List recent sessions of one agent with their first user message."""

    with exit_on_value_error():
        previews = list_agent_session_previews(agent_id, cutoff_days, limit=limit, home=home)
    if json_out:
        print_json(data=[preview.to_dict() for preview in previews])
        return
    if not previews:
        print(f"[yellow]No {agent_id} sessions found[/yellow]")
        return
    for preview in previews:
        project = f" ({preview.project})" if preview.project else ""
        print_line(f"[{preview.date}]{project} {preview.first_message}")


def import_cmd(
    *,
    store_from_path,
    base_dir: str | None,
    home: Path,
    agent_id: str,
    cutoff_days: int,
) -> None:
    """Import recent sessions of one agent into the event log."""

    store = store_from_path(base_dir)

    def on_progress(progress: ImportProgress) -> None:
        print(f"[dim]{progress.processed}/{progress.total} processed[/dim]")

    with exit_on_value_error():
        result = run_import(agent_id, cutoff_days, store, on_progress, home=home)
    if result.total == 0:
        print(f"[yellow]No {agent_id} sessions in the last {cutoff_days} days[/yellow]")
        raise typer.Exit(code=0)
    print(
        f"Imported {result.imported}/{result.total} {agent_id} sessions"
        + (f" across {len(result.dates)} dates" if result.dates else "")
    )
