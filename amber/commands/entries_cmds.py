from __future__ import annotations

from pathlib import Path

import typer
from rich import print, print_json

from ..query import entries_for_date, entry_counts, search_entries
from ..store.utils import today_local
from ..tools import AmberTools
from ..validate import validate_date
from .common import exit_on_value_error, print_line


def entries_cmd(*, store_from_path, base_dir: str | None, date: str | None, json_out: bool) -> None:
    """Show the entries for a date, newest first, with pins marked."""

    store = store_from_path(base_dir)
    date = date or today_local()
    with exit_on_value_error():
        entries = entries_for_date(store, date)
    if json_out:
        print_json(data=[entry.to_dict() for entry in entries])
        return
    if not entries:
        print(f"[yellow]No entries for {date}[/yellow]")
        return
    for entry in entries:
        marker = "* " if entry.pinned else ""
        print_line(f"{marker}{entry.timestamp} [{entry.source}/{entry.kind}] {entry.title}")
        if entry.detail:
            print_line(f"    {entry.detail}", style="dim")


def search_cmd(*, store_from_path, base_dir: str | None, query: str, limit: int) -> None:
    """Search the event log for a substring."""

    store = store_from_path(base_dir)
    hits = search_entries(store, query, limit)
    if not hits:
        print_line(f"No entries matching {query!r}", style="yellow")
        return
    for hit in hits:
        print_line(f"[{hit.date}] ({hit.entry.source}) {hit.entry.title}")


def counts_cmd(*, store_from_path, base_dir: str | None) -> None:
    """Event counts per date."""

    counts = entry_counts(store_from_path(base_dir))
    if not counts:
        print("[yellow]No events recorded yet[/yellow]")
        return
    for date in sorted(counts, reverse=True):
        print(f"{date}  {counts[date]}")


def dates_cmd(*, store_from_path, base_dir: str | None) -> None:
    store = store_from_path(base_dir)
    for date in store.list_dates():
        print(date)


def note_cmd(
    *,
    store_from_path,
    base_dir: str | None,
    date: str | None,
    write_from: Path | None,
) -> None:
    """Print a daily note, or replace it with the contents of a file."""

    store = store_from_path(base_dir)
    date = date or today_local()
    with exit_on_value_error():
        validate_date(date)
    if write_from is not None:
        store.write_note(date, write_from.read_text(encoding="utf-8"))
        print(f"Daily note written for {date}")
        return
    note = store.read_note(date)
    if note is None:
        print(f"[yellow]No daily note for {date}[/yellow]")
        raise typer.Exit(code=1)
    print_line(note)


def remember_cmd(
    *,
    store_from_path,
    base_dir: str | None,
    title: str,
    detail: str | None,
    source: str,
    kind: str | None,
    project_path: str | None,
    tags: list[str] | None,
) -> None:
    """Append a memory event for today."""

    tools = AmberTools(store_from_path(base_dir))
    with exit_on_value_error():
        message = tools.append_memory(
            source,
            title,
            detail=detail,
            project_path=project_path,
            kind=kind,
            tags=tags,
        )
    print_line(message)
