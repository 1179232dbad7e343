from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from ..store.utils import project_basename
from ..validate import validate_cutoff_days
from .agents import AGENTS_BY_ID, SessionFile, filter_by_cutoff, newest_first
from .transcript import extract_content, gemini_message_text, gemini_messages

logger = logging.getLogger(__name__)

PREVIEW_READ_BYTES = 32 * 1024
LOG_PREVIEW_READ_BYTES = 4 * 1024
DEFAULT_PREVIEW_LIMIT = 50
FIRST_MESSAGE_CHARS = 200

NO_USER_MESSAGE = "(No user message found)"
UNPARSEABLE_SESSION = "(Could not parse session)"
EMPTY_LOG = "(Empty log)"
CURSOR_PLACEHOLDER = "(Cursor session, SQLite store)"

_GEMINI_USER_CONTENT_RE = re.compile(r'"role"\s*:\s*"user"[^}]*"content"\s*:\s*"([^"]{1,200})"')


@dataclass
class SessionPreview:
    id: str
    date: str
    first_message: str
    project: str | None = None

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "id": self.id,
            "date": self.date,
            "firstMessage": self.first_message,
        }
        if self.project:
            payload["project"] = self.project
        return payload


def read_head(path: Path, limit: int = PREVIEW_READ_BYTES) -> str:
    """Read at most ``limit`` bytes from the start of ``path``."""

    with path.open("rb") as handle:
        chunk = handle.read(limit)
    return chunk.decode("utf-8", errors="ignore")


def _json_lines(chunk: str) -> list[dict[str, Any]]:
    records: list[dict[str, Any]] = []
    for line in chunk.split("\n"):
        if not line:
            continue
        try:
            record = json.loads(line)
        except json.JSONDecodeError:
            continue
        if isinstance(record, dict):
            records.append(record)
    return records


def record_cwd(record: dict[str, Any]) -> str | None:
    cwd = record.get("cwd")
    if not cwd:
        payload = record.get("payload")
        cwd = payload.get("cwd") if isinstance(payload, dict) else None
    return cwd if isinstance(cwd, str) and cwd else None


def first_user_message_from_record(record: dict[str, Any]) -> str | None:
    """First user message carried by one JSONL line, or None when it is not a user turn."""

    record_type = record.get("type")
    message = record.get("message") if isinstance(record.get("message"), dict) else {}
    payload = record.get("payload") if isinstance(record.get("payload"), dict) else {}

    if record_type == "user" and message.get("content") is not None:
        return extract_content(message["content"])
    if record_type == "event_msg" and payload.get("type") == "user_message":
        return extract_content(payload.get("message"))
    if record_type in {"response_item", "event_msg"}:
        return None
    if record.get("role") == "user":
        return extract_content(record.get("content")) or extract_content(record.get("text"))
    if message.get("role") == "user":
        return extract_content(message.get("content"))
    return None


def claude_code_project_label(session_path: Path) -> str:
    project_dir = session_path.parent.name
    segments = [segment for segment in project_dir.split("-") if segment]
    return segments[-1] if segments else project_dir


def scan_jsonl_head(chunk: str) -> tuple[str | None, str]:
    """Return ``(project, first user message)`` found in a JSONL head chunk."""

    project: str | None = None
    first_message = ""
    for record in _json_lines(chunk):
        if project is None:
            cwd = record_cwd(record)
            if cwd:
                project = project_basename(cwd)
        if first_message:
            continue
        found = first_user_message_from_record(record)
        if found:
            first_message = found
    return project, first_message


def jsonl_project_fallback(agent_id: str, session: SessionFile, chunk: str) -> str | None:
    if agent_id == "claude_code":
        return claude_code_project_label(session.path)
    if agent_id == "codex":
        first_line = chunk.split("\n", 1)[0]
        try:
            first = json.loads(first_line)
        except json.JSONDecodeError:
            return None
        cwd = record_cwd(first) if isinstance(first, dict) else None
        return project_basename(cwd) if cwd else None
    return None


def preview_jsonl(agent_id: str, session: SessionFile) -> SessionPreview:
    chunk = read_head(session.path)
    project, first_message = scan_jsonl_head(chunk)
    if not project:
        project = jsonl_project_fallback(agent_id, session, chunk)
    return SessionPreview(
        id=str(session.path),
        date=session.date,
        project=project,
        first_message=(first_message or NO_USER_MESSAGE)[:FIRST_MESSAGE_CHARS],
    )


def preview_gemini(session: SessionFile) -> SessionPreview:
    chunk = read_head(session.path)
    try:
        data = json.loads(chunk)
    except json.JSONDecodeError:
        # Large sessions are cut off by the read bound; salvage from raw text.
        match = _GEMINI_USER_CONTENT_RE.search(chunk)
        return SessionPreview(
            id=str(session.path),
            date=session.date,
            first_message=match.group(1) if match else UNPARSEABLE_SESSION,
        )
    for message in gemini_messages(data):
        if message.get("role") != "user":
            continue
        text = gemini_message_text(message)
        if text:
            return SessionPreview(
                id=str(session.path), date=session.date, first_message=text[:FIRST_MESSAGE_CHARS]
            )
    return SessionPreview(id=str(session.path), date=session.date, first_message=NO_USER_MESSAGE)


def preview_openclaw(session: SessionFile) -> SessionPreview:
    chunk = read_head(session.path, LOG_PREVIEW_READ_BYTES)
    first_line = chunk.split("\n", 1)[0] or EMPTY_LOG
    return SessionPreview(
        id=str(session.path), date=session.date, first_message=first_line[:FIRST_MESSAGE_CHARS]
    )


def preview_cursor(session: SessionFile) -> SessionPreview:
    return SessionPreview(id=str(session.path), date=session.date, first_message=CURSOR_PLACEHOLDER)


def extract_session_preview(agent_id: str, session: SessionFile) -> SessionPreview | None:
    if agent_id in {"claude_code", "codex"}:
        return preview_jsonl(agent_id, session)
    if agent_id == "gemini":
        return preview_gemini(session)
    if agent_id == "cursor":
        return preview_cursor(session)
    if agent_id == "openclaw":
        return preview_openclaw(session)
    return None


def list_agent_session_previews(
    agent_id: str,
    cutoff_days: int | None = None,
    *,
    limit: int = DEFAULT_PREVIEW_LIMIT,
    home: Path | None = None,
) -> list[SessionPreview]:
    if cutoff_days is not None:
        validate_cutoff_days(cutoff_days)
    agent = AGENTS_BY_ID.get(agent_id)
    if agent is None:
        return []
    root = agent.root(home)
    if not root.is_dir():
        return []

    sessions = newest_first(filter_by_cutoff(agent.list_sessions(root), cutoff_days))
    previews: list[SessionPreview] = []
    for session in sessions[: max(limit, 0)]:
        try:
            preview = extract_session_preview(agent_id, session)
        except (OSError, ValueError) as exc:
            logger.debug("skipping preview for %s: %s", session.path, exc)
            continue
        if preview is not None:
            previews.append(preview)
    return previews
