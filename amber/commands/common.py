from __future__ import annotations

import json
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any

import typer
from rich import print
from rich.markup import escape

from amber.config import load_config
from amber.store import ContextStore


def store_from_path(base_dir: str | None) -> ContextStore:
    return ContextStore(base_dir or load_config().base_dir)


def agents_home(home: str | None) -> Path:
    if home:
        return Path(home).expanduser().resolve()
    return load_config().resolved_agents_home()


@contextmanager
def exit_on_value_error() -> Iterator[None]:
    try:
        yield
    except ValueError as exc:
        print(f"[red]{escape(str(exc))}[/red]")
        raise typer.Exit(code=1) from exc


def parse_metadata_or_exit(raw: str | None) -> dict[str, Any] | None:
    if not raw:
        return None
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        print(f"[red]Invalid metadata json: {exc}[/red]")
        raise typer.Exit(code=1) from exc
    if not isinstance(data, dict):
        print("[red]metadata must be a JSON object[/red]")
        raise typer.Exit(code=1)
    return data


def print_line(text: str, style: str | None = None) -> None:
    """Print user data verbatim; brackets in titles are not Rich markup."""

    line = escape(text)
    print(f"[{style}]{line}[/{style}]" if style else line)
