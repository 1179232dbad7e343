from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

from .types import RawEvent
from .utils import append_json_line, list_stems, read_lines

if TYPE_CHECKING:
    from ._store import ContextStore

logger = logging.getLogger(__name__)

STAGING_DIR = "staging"
DAILY_DIR = "daily"
EVENT_SUFFIX = ".jsonl"
NOTE_SUFFIX = ".md"


def staging_path(store: ContextStore, date: str) -> Path:
    return store.base_dir / STAGING_DIR / f"{date}{EVENT_SUFFIX}"


def note_path(store: ContextStore, date: str) -> Path:
    return store.base_dir / DAILY_DIR / f"{date}{NOTE_SUFFIX}"


def append_event(store: ContextStore, date: str, event: RawEvent) -> None:
    append_json_line(staging_path(store, date), event.to_dict())


def read_events(store: ContextStore, date: str) -> list[str]:
    return read_lines(staging_path(store, date))


def clear_events(store: ContextStore, date: str) -> None:
    staging_path(store, date).unlink(missing_ok=True)


def write_note(store: ContextStore, date: str, content: str) -> None:
    path = note_path(store, date)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")


def read_note(store: ContextStore, date: str) -> str | None:
    path = note_path(store, date)
    try:
        return path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return None
    except OSError as exc:
        logger.warning("failed to read daily note %s", path, exc_info=exc)
        return None


def list_event_dates(store: ContextStore) -> list[str]:
    return list_stems(store.base_dir / STAGING_DIR, EVENT_SUFFIX)


def list_note_dates(store: ContextStore) -> list[str]:
    return list_stems(store.base_dir / DAILY_DIR, NOTE_SUFFIX)


def list_dates(store: ContextStore) -> list[str]:
    return sorted(set(list_event_dates(store)) | set(list_note_dates(store)), reverse=True)
