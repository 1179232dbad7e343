from __future__ import annotations

import typer
from rich import print, print_json

from ..query import build_pin, find_entry, parse_entry_id
from ..tools import format_pin_line
from ..validate import validate_date, validate_month
from .common import exit_on_value_error, print_line


def pins_list_cmd(
    *,
    store_from_path,
    base_dir: str | None,
    date: str | None,
    month: str | None,
    json_out: bool,
) -> None:
    """List pins, optionally for one date or month."""

    store = store_from_path(base_dir)
    with exit_on_value_error():
        if date:
            pins = store.read_pins_for_date(validate_date(date))
        elif month:
            pins = store.read_pins_for_month(validate_month(month))
        else:
            pins = store.read_pins()
    if json_out:
        print_json(data=[pin.to_dict() for pin in pins])
        return
    if not pins:
        print("[yellow]No pinned entries[/yellow]")
        return
    for pin in pins:
        print_line(f"{pin.id} {format_pin_line(pin)}")


def pins_add_cmd(
    *,
    store_from_path,
    base_dir: str | None,
    entry_id: str,
    note: str | None,
) -> None:
    """Pin an existing entry by its id (``staging-<date>-<index>``)."""

    store = store_from_path(base_dir)
    with exit_on_value_error():
        date, _ = parse_entry_id(entry_id)
        entry = find_entry(store, entry_id)
    if entry is None:
        print(f"[red]Entry {entry_id} not found[/red]")
        raise typer.Exit(code=1)
    pin = build_pin(entry, date, note)
    store.append_pin(pin)
    print(f"Pinned {entry_id} as {pin.id}")


def pins_remove_cmd(*, store_from_path, base_dir: str | None, pin_id: str) -> None:
    store = store_from_path(base_dir)
    if not store.remove_pin(pin_id):
        print(f"[red]Pin {pin_id} not found[/red]")
        raise typer.Exit(code=1)
    print(f"Pin {pin_id} removed")
