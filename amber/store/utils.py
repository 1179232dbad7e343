from __future__ import annotations

import datetime as dt
import json
import logging
from collections.abc import Iterable
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)


def now_iso() -> str:
    return dt.datetime.now(dt.UTC).isoformat()


def today_local() -> str:
    return dt.date.today().isoformat()


def utc_iso_from_mtime(mtime: float) -> str:
    return dt.datetime.fromtimestamp(mtime, dt.UTC).isoformat()


def utc_date_from_mtime(mtime: float) -> str:
    return dt.datetime.fromtimestamp(mtime, dt.UTC).date().isoformat()


def project_basename(value: str) -> str:
    normalized = value.replace("\\", "/").rstrip("/")
    if not normalized:
        return ""
    return normalized.split("/")[-1]


def to_json_line(payload: dict[str, Any]) -> str:
    return json.dumps(payload, ensure_ascii=False) + "\n"


def read_lines(path: Path) -> list[str]:
    """Return the non-empty lines of a text file, or [] when it cannot be read."""

    try:
        raw = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return []
    except OSError as exc:
        logger.warning("failed to read %s", path, exc_info=exc)
        return []
    return [line for line in raw.strip().split("\n") if line]


def read_json_lines(path: Path) -> list[dict[str, Any]]:
    records: list[dict[str, Any]] = []
    for line in read_lines(path):
        try:
            record = json.loads(line)
        except json.JSONDecodeError:
            logger.debug("skipping malformed line in %s", path)
            continue
        if isinstance(record, dict):
            records.append(record)
    return records


def write_json_lines(path: Path, records: Iterable[dict[str, Any]]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("".join(to_json_line(record) for record in records), encoding="utf-8")


def append_json_line(path: Path, payload: dict[str, Any]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    # A single write per record keeps concurrent appends line-atomic.
    with path.open("a", encoding="utf-8") as handle:
        handle.write(to_json_line(payload))


def list_stems(directory: Path, suffix: str) -> list[str]:
    try:
        return sorted(
            entry.name[: -len(suffix)]
            for entry in directory.iterdir()
            if entry.is_file() and entry.name.endswith(suffix)
        )
    except FileNotFoundError:
        return []
    except OSError as exc:
        logger.warning("failed to list %s", directory, exc_info=exc)
        return []
