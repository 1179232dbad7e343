from __future__ import annotations

from dataclasses import dataclass


@dataclass
class AppStatus:
    buffered_events: int = 0
    last_summarized: str | None = None

    def to_dict(self) -> dict[str, object]:
        return {
            "buffered_events": self.buffered_events,
            "last_summarized": self.last_summarized,
        }


class AppState:
    """In-memory status for one running process.

    Owned by whoever serves the store (an MCP server, a desktop shell) and
    passed in explicitly. A new instance starts empty; nothing is persisted.
    """

    def __init__(self) -> None:
        self._status = AppStatus()

    def record_events(self, count: int = 1) -> None:
        self._status.buffered_events += count

    def mark_summarized(self, date: str) -> None:
        self._status.last_summarized = date
        self._status.buffered_events = 0

    def status(self) -> AppStatus:
        return AppStatus(
            buffered_events=self._status.buffered_events,
            last_summarized=self._status.last_summarized,
        )
