from __future__ import annotations

import datetime as dt
import re
from typing import Any, Final

DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
MONTH_RE = re.compile(r"^\d{4}-\d{2}$")

ALLOWED_CUTOFF_DAYS: Final[tuple[int, ...]] = (1, 7, 30, 90)

ALLOWED_EVENT_KINDS: Final[tuple[str, ...]] = (
    "commit",
    "session",
    "browse",
    "chat",
    "note",
    "memory",
)

ALLOWED_ENTITY_TYPES: Final[tuple[str, ...]] = ("project", "person", "topic")

ALLOWED_MEMORY_SOURCES: Final[tuple[str, ...]] = (
    "claude_code",
    "cursor",
    "codex",
    "opencode",
    "user",
    "clawdbot",
    "gemini",
    "aider",
    "copilot",
)

ALLOWED_FEEDBACK_TYPES: Final[tuple[str, ...]] = (
    "outdated",
    "incorrect",
    "correction",
    "useful",
    "irrelevant",
)

MAX_TITLE_CHARS = 500
MAX_DETAIL_CHARS = 10_000
MAX_FEEDBACK_CHARS = 5_000
MAX_QUERY_CHARS = 500


def validate_date(date: str) -> str:
    if not isinstance(date, str) or not DATE_RE.match(date):
        raise ValueError(f'Invalid date format: "{date}". Expected YYYY-MM-DD.')
    try:
        dt.date.fromisoformat(date)
    except ValueError as exc:
        raise ValueError(f'Invalid date value: "{date}".') from exc
    return date


def validate_month(month: str) -> str:
    if not isinstance(month, str) or not MONTH_RE.match(month):
        raise ValueError(f'Invalid month: "{month}". Expected YYYY-MM.')
    return month


def validate_cutoff_days(cutoff_days: Any) -> int:
    # bool is an int subclass; True must not pass as 1 day.
    if isinstance(cutoff_days, bool) or cutoff_days not in ALLOWED_CUTOFF_DAYS:
        allowed = ", ".join(str(value) for value in ALLOWED_CUTOFF_DAYS)
        raise ValueError(f"Invalid cutoff: {cutoff_days!r}. Allowed: {allowed}")
    return int(cutoff_days)


def validate_event_kind(kind: str) -> str:
    normalized = (kind or "").strip().lower()
    if normalized in ALLOWED_EVENT_KINDS:
        return normalized
    raise ValueError(f'Invalid kind: "{kind}". Allowed: {", ".join(ALLOWED_EVENT_KINDS)}')


def validate_entity_type(entity_type: str) -> str:
    if entity_type in ALLOWED_ENTITY_TYPES:
        return entity_type
    raise ValueError(
        f'Invalid entity type: "{entity_type}". Allowed: {", ".join(ALLOWED_ENTITY_TYPES)}'
    )


def validate_title(title: str | None) -> str:
    if not title or not title.strip():
        raise ValueError("title is required.")
    if len(title) > MAX_TITLE_CHARS:
        raise ValueError(f"title too long ({len(title)} chars, max {MAX_TITLE_CHARS}).")
    return title


def validate_memory_input(
    *,
    source: str | None,
    title: str | None,
    detail: str | None = None,
    kind: str | None = None,
) -> None:
    if not source or source not in ALLOWED_MEMORY_SOURCES:
        raise ValueError(
            f'Invalid source: "{source}". Allowed: {", ".join(ALLOWED_MEMORY_SOURCES)}'
        )
    validate_title(title)
    if detail and len(detail) > MAX_DETAIL_CHARS:
        raise ValueError(f"detail too long ({len(detail)} chars, max {MAX_DETAIL_CHARS}).")
    if kind:
        validate_event_kind(kind)


def validate_feedback(feedback_type: str | None, message: str | None) -> None:
    if not feedback_type or not message:
        raise ValueError("'feedback_type' and 'message' are required.")
    if feedback_type not in ALLOWED_FEEDBACK_TYPES:
        raise ValueError(
            f'Invalid feedback_type: "{feedback_type}". '
            f"Allowed: {', '.join(ALLOWED_FEEDBACK_TYPES)}"
        )
    if len(message) > MAX_FEEDBACK_CHARS:
        raise ValueError(f"message too long (max {MAX_FEEDBACK_CHARS} chars).")


def validate_search_query(query: str | None, max_length: int = MAX_QUERY_CHARS) -> str:
    if not query or not isinstance(query, str):
        raise ValueError("query is required.")
    return query[:max_length]


def clamp_limit(limit: int | None, *, default: int, maximum: int) -> int:
    return min(max(limit or default, 1), maximum)
