from __future__ import annotations

import logging
import os
import sys
from typing import Any

try:
    from mcp.server.fastmcp import FastMCP
except Exception as exc:  # pragma: no cover
    raise SystemExit(
        "mcp package is required for the MCP server. Install with `pip install -e .`"
    ) from exc

from .app_state import AppState
from .config import load_config
from .store import ContextStore
from .tools import AmberTools


def build_store(base_dir: str | None = None) -> ContextStore:
    if base_dir is None:
        base_dir = load_config().base_dir
    return ContextStore(base_dir)


def build_server(tools: AmberTools | None = None) -> FastMCP:
    mcp = FastMCP("amber")
    tools = tools or AmberTools(build_store(), AppState())

    @mcp.tool()
    def read_entries(date: str | None = None) -> str:
        """Read raw context events (commits, agent sessions, notes, feedback) for a date.

        ``date`` is YYYY-MM-DD and defaults to today.
        """

        return tools.read_entries(date)

    @mcp.tool()
    def read_daily_note(date: str | None = None) -> str:
        """Read the daily summary note for a date (defaults to today)."""

        return tools.read_daily_note(date)

    @mcp.tool()
    def append_memory(
        source: str,
        title: str,
        detail: str | None = None,
        project_path: str | None = None,
        kind: str | None = None,
        tags: list[str] | None = None,
    ) -> str:
        """Record a memory for today: what you are working on or found worth keeping.

        ``source`` names the writer (claude_code, cursor, codex, user, ...).
        ``kind`` is one of session, commit, note, browse, chat, memory and
        defaults to memory.
        """

        return tools.append_memory(
            source,
            title,
            detail=detail,
            project_path=project_path,
            kind=kind,
            tags=tags,
        )

    @mcp.tool()
    def list_dates() -> str:
        """List dates that have events or a daily note, newest first."""

        return tools.list_dates()

    @mcp.tool()
    def search_entries(query: str, limit: int = 20) -> str:
        """Case-insensitive substring search over all events, newest dates first."""

        return tools.search_entries(query, limit=limit)

    @mcp.tool()
    def pin_entry(
        source: str,
        title: str,
        detail: str | None = None,
        project_path: str | None = None,
        kind: str | None = None,
        note: str | None = None,
        date: str | None = None,
    ) -> str:
        """Pin an important entry so it stands out and weighs more in daily summaries."""

        return tools.pin_entry(
            source,
            title,
            detail=detail,
            project_path=project_path,
            kind=kind,
            note=note,
            date=date,
        )

    @mcp.tool()
    def read_pins(date: str | None = None, month: str | None = None, limit: int = 50) -> str:
        """Read pinned entries, optionally for one date (YYYY-MM-DD) or month (YYYY-MM)."""

        return tools.read_pins(date=date, month=month, limit=limit)

    @mcp.tool()
    def provide_feedback(
        feedback_type: str,
        message: str,
        date: str | None = None,
        entry_id: str | None = None,
    ) -> str:
        """Flag an entry or note as outdated, incorrect, useful or irrelevant, or correct it."""

        return tools.provide_feedback(feedback_type, message, date=date, entry_id=entry_id)

    @mcp.tool()
    def read_knowledge(
        type: str | None = None,
        query: str | None = None,
        limit: int = 50,
    ) -> str:
        """Read known projects, people and topics, most recently seen first."""

        return tools.read_knowledge(type=type, query=query, limit=limit)

    return mcp


def build_processing_server(tools: AmberTools | None = None) -> FastMCP:
    mcp = FastMCP("amber-processing")
    tools = tools or AmberTools(build_store(os.environ.get("AMBER_BASE_DIR")), AppState())

    @mcp.tool()
    def write_daily_note(date: str, content: str) -> str:
        """Write the daily note for a date.

        ``content`` is markdown with YAML frontmatter listing ``date``,
        ``projects``, ``people`` and ``topics``.
        """

        return tools.write_daily_note(date, content)

    @mcp.tool()
    def upsert_knowledge(
        type: str,
        name: str,
        source: str,
        date: str,
        metadata: dict[str, Any] | None = None,
    ) -> str:
        """Add or update a project, person or topic. Slugs and merging are handled here."""

        return tools.upsert_knowledge(type, name, source, date, metadata=metadata)

    @mcp.tool()
    def read_knowledge(type: str | None = None) -> str:
        """Read known entities. Reuse existing names rather than inventing variations."""

        return tools.read_processing_knowledge(type)

    return mcp


def _configure_logging() -> None:
    # stdout carries the protocol.
    logging.basicConfig(level=logging.WARNING, stream=sys.stderr)


def run() -> None:
    _configure_logging()
    store = build_store()
    store.ensure_dirs()
    server = build_server(AmberTools(store, AppState()))
    server.run()


def run_processing() -> None:
    _configure_logging()
    store = build_store(os.environ.get("AMBER_BASE_DIR"))
    store.ensure_dirs()
    server = build_processing_server(AmberTools(store, AppState()))
    server.run()


if __name__ == "__main__":
    run()
