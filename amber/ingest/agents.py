from __future__ import annotations

import logging
import os
import time
from collections.abc import Callable, Iterator
from dataclasses import dataclass
from pathlib import Path

from ..store.utils import utc_date_from_mtime
from ..validate import validate_cutoff_days

logger = logging.getLogger(__name__)

DAY_SECONDS = 24 * 60 * 60


@dataclass(frozen=True)
class SessionFile:
    path: Path
    mtime: float
    date: str


@dataclass(frozen=True)
class AgentDef:
    id: str
    name: str
    rel_dir: str
    list_sessions: Callable[[Path], list[SessionFile]]
    importable: bool

    def root(self, home: Path | None = None) -> Path:
        return (home or Path.home()) / self.rel_dir


@dataclass
class AgentStatus:
    id: str
    name: str
    dir: str
    importable: bool = False
    found: bool = False
    session_count: int = 0
    oldest: str | None = None
    newest: str | None = None

    def to_dict(self) -> dict[str, object]:
        payload: dict[str, object] = {
            "id": self.id,
            "name": self.name,
            "dir": self.dir,
            "importable": self.importable,
            "found": self.found,
            "sessionCount": self.session_count,
        }
        if self.oldest:
            payload["oldest"] = self.oldest
        if self.newest:
            payload["newest"] = self.newest
        return payload


def _session_file(path: Path) -> SessionFile | None:
    try:
        mtime = path.stat().st_mtime
    except OSError:
        return None
    return SessionFile(path=path, mtime=mtime, date=utc_date_from_mtime(mtime))


def _subdirs(directory: Path) -> Iterator[Path]:
    try:
        entries = sorted(directory.iterdir())
    except OSError:
        return
    for entry in entries:
        if entry.is_dir():
            yield entry


def _files(directory: Path) -> Iterator[Path]:
    try:
        entries = sorted(directory.iterdir())
    except OSError:
        return
    for entry in entries:
        if entry.is_file():
            yield entry


def _collect(paths: Iterator[Path]) -> list[SessionFile]:
    results: list[SessionFile] = []
    for path in paths:
        session = _session_file(path)
        if session is not None:
            results.append(session)
    return results


def list_claude_code_sessions(root: Path) -> list[SessionFile]:
    """``projects/<encoded-project>/*.jsonl``"""

    return _collect(
        path
        for project_dir in _subdirs(root / "projects")
        for path in _files(project_dir)
        if path.name.endswith(".jsonl")
    )


def list_codex_sessions(root: Path) -> list[SessionFile]:
    """``sessions/YYYY/MM/DD/*.jsonl``, walked recursively."""

    sessions_dir = root / "sessions"
    if not sessions_dir.is_dir():
        return []

    def walk() -> Iterator[Path]:
        for dirpath, _dirnames, filenames in os.walk(sessions_dir):
            for filename in sorted(filenames):
                if filename.endswith(".jsonl"):
                    yield Path(dirpath) / filename

    return _collect(walk())


def list_gemini_sessions(root: Path) -> list[SessionFile]:
    """``tmp/<hash>/chats/session-*.json``"""

    return _collect(
        path
        for hash_dir in _subdirs(root / "tmp")
        if hash_dir.name != "bin"
        for path in _files(hash_dir / "chats")
        if path.name.startswith("session-") and path.name.endswith(".json")
    )


def list_cursor_sessions(root: Path) -> list[SessionFile]:
    """``chats/<hash>/<session>/store.db``; the sqlite content is not parsed."""

    return _collect(
        session_dir / "store.db"
        for group_dir in _subdirs(root / "chats")
        for session_dir in _subdirs(group_dir)
        if (session_dir / "store.db").is_file()
    )


def list_openclaw_sessions(root: Path) -> list[SessionFile]:
    """Flat ``logs/*.log``."""

    return _collect(path for path in _files(root / "logs") if path.name.endswith(".log"))


AGENT_DEFS: tuple[AgentDef, ...] = (
    AgentDef("claude_code", "Claude Code", ".claude", list_claude_code_sessions, True),
    AgentDef("codex", "Codex", ".codex", list_codex_sessions, True),
    AgentDef("gemini", "Gemini", ".gemini", list_gemini_sessions, True),
    AgentDef("cursor", "Cursor", ".cursor", list_cursor_sessions, False),
    AgentDef("openclaw", "OpenClaw", ".openclaw", list_openclaw_sessions, False),
)

AGENTS_BY_ID: dict[str, AgentDef] = {agent.id: agent for agent in AGENT_DEFS}


def get_agent(agent_id: str) -> AgentDef:
    agent = AGENTS_BY_ID.get(agent_id)
    if agent is None:
        raise ValueError(f"Unknown agent: {agent_id}")
    return agent


def cutoff_timestamp(cutoff_days: int | None, *, now: float | None = None) -> float:
    if not cutoff_days:
        return 0.0
    return (now if now is not None else time.time()) - cutoff_days * DAY_SECONDS


def filter_by_cutoff(sessions: list[SessionFile], cutoff_days: int | None) -> list[SessionFile]:
    threshold = cutoff_timestamp(cutoff_days)
    if threshold <= 0:
        return list(sessions)
    return [session for session in sessions if session.mtime >= threshold]


def newest_first(sessions: list[SessionFile]) -> list[SessionFile]:
    return sorted(sessions, key=lambda session: session.mtime, reverse=True)


def scan_agent_sources(
    cutoff_days: int | None = None, *, home: Path | None = None
) -> list[AgentStatus]:
    if cutoff_days is not None:
        validate_cutoff_days(cutoff_days)
    results: list[AgentStatus] = []
    for agent in AGENT_DEFS:
        root = agent.root(home)
        status = AgentStatus(
            id=agent.id, name=agent.name, dir=str(root), importable=agent.importable
        )
        results.append(status)
        if not root.is_dir():
            continue
        status.found = True
        sessions = filter_by_cutoff(agent.list_sessions(root), cutoff_days)
        status.session_count = len(sessions)
        if sessions:
            ordered = sorted(sessions, key=lambda session: session.mtime)
            status.oldest = ordered[0].date
            status.newest = ordered[-1].date
    return results
