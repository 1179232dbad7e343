from __future__ import annotations

import json
import logging
from collections.abc import Callable, Iterator
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any

from ..store import ContextStore, RawEvent
from ..store.utils import utc_iso_from_mtime
from ..validate import validate_cutoff_days
from .agents import AgentDef, SessionFile, filter_by_cutoff, get_agent, newest_first
from .preview import jsonl_project_fallback, read_head, scan_jsonl_head
from .transcript import (
    SENTINEL_SUMMARIES,
    extract_session_summary,
    gemini_messages,
    summarize_gemini_messages,
)

logger = logging.getLogger(__name__)

MAX_IMPORT_BATCH = 100
MAX_EVENT_SUMMARY_CHARS = 2000


@dataclass
class ImportProgress:
    agent_id: str
    total: int = 0
    processed: int = 0
    imported: int = 0
    dates: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "agentId": self.agent_id,
            "total": self.total,
            "processed": self.processed,
            "imported": self.imported,
            "dates": list(self.dates),
        }


def session_event(agent: AgentDef, session: SessionFile, summary: str, project: str) -> RawEvent:
    return RawEvent(
        source=agent.id,
        timestamp=utc_iso_from_mtime(session.mtime),
        kind="session",
        data={
            "title": f"{agent.name} session: {project}",
            "summary": summary[:MAX_EVENT_SUMMARY_CHARS],
            "project": project,
            "imported": True,
        },
    )


def resolve_jsonl_project(agent: AgentDef, session: SessionFile) -> str:
    chunk = read_head(session.path)
    project, _first_message = scan_jsonl_head(chunk)
    if not project:
        project = jsonl_project_fallback(agent.id, session, chunk)
    return project or f"{agent.id}-session"


def import_jsonl_session(store: ContextStore, agent: AgentDef, session: SessionFile) -> bool:
    summary = extract_session_summary(session.path)
    if not summary or summary in SENTINEL_SUMMARIES:
        return False
    project = resolve_jsonl_project(agent, session)
    store.append_event(session.date, session_event(agent, session, summary, project))
    return True


def import_gemini_session(store: ContextStore, agent: AgentDef, session: SessionFile) -> bool:
    try:
        data = json.loads(session.path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        logger.debug("skipping gemini session %s: %s", session.path, exc)
        return False
    summary = summarize_gemini_messages(gemini_messages(data))
    if summary in SENTINEL_SUMMARIES:
        return False
    store.append_event(session.date, session_event(agent, session, summary, f"{agent.id}-session"))
    return True


SESSION_IMPORTERS: dict[str, Callable[[ContextStore, AgentDef, SessionFile], bool]] = {
    "claude_code": import_jsonl_session,
    "codex": import_jsonl_session,
    "gemini": import_gemini_session,
}


def import_session(store: ContextStore, agent: AgentDef, session: SessionFile) -> bool:
    importer = SESSION_IMPORTERS.get(agent.id)
    if importer is None:
        # cursor (sqlite) and openclaw (logs) are scan/preview only.
        return False
    return importer(store, agent, session)


def iter_import(
    agent_id: str,
    cutoff_days: int,
    store: ContextStore,
    *,
    home: Path | None = None,
) -> Iterator[ImportProgress]:
    """Validate the request, then return an iterator of progress snapshots.

    Validation runs immediately, before any filesystem access. Each session
    file is imported only when the consumer asks for the next snapshot, so a
    consumer that stops iterating stops the batch.
    """

    agent = get_agent(agent_id)
    cutoff_days = validate_cutoff_days(cutoff_days)
    return _import_batch(agent, cutoff_days, store, home)


def _import_batch(
    agent: AgentDef,
    cutoff_days: int,
    store: ContextStore,
    home: Path | None,
) -> Iterator[ImportProgress]:
    root = agent.root(home)
    sessions = agent.list_sessions(root) if root.is_dir() else []
    batch = newest_first(filter_by_cutoff(sessions, cutoff_days))[:MAX_IMPORT_BATCH]

    progress = ImportProgress(agent_id=agent.id, total=len(batch))
    imported_dates: set[str] = set()
    for session in batch:
        try:
            if import_session(store, agent, session):
                progress.imported += 1
                imported_dates.add(session.date)
        except Exception as exc:
            logger.warning("session import failed: %s", session.path, exc_info=exc)
        progress.processed += 1
        progress.dates = sorted(imported_dates)
        yield replace(progress, dates=list(progress.dates))


def run_import(
    agent_id: str,
    cutoff_days: int,
    store: ContextStore,
    on_progress: Callable[[ImportProgress], None] | None = None,
    *,
    home: Path | None = None,
) -> ImportProgress:
    agent = get_agent(agent_id)
    final = ImportProgress(agent_id=agent.id)
    for snapshot in iter_import(agent_id, cutoff_days, store, home=home):
        final = snapshot
        if on_progress is not None:
            on_progress(snapshot)
    if final.total == 0 and final.processed == 0:
        logger.info("no %s sessions inside %s-day cutoff", agent_id, cutoff_days)
    return final
