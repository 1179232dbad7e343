from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

from .types import PinRecord
from .utils import append_json_line, read_json_lines, write_json_lines

if TYPE_CHECKING:
    from ._store import ContextStore

logger = logging.getLogger(__name__)

PINS_FILE = "pins.jsonl"


def pins_path(store: ContextStore) -> Path:
    return store.base_dir / PINS_FILE


def append_pin(store: ContextStore, pin: PinRecord) -> None:
    append_json_line(pins_path(store), pin.to_dict())


def read_pins(store: ContextStore) -> list[PinRecord]:
    pins: list[PinRecord] = []
    for record in read_json_lines(pins_path(store)):
        try:
            pins.append(PinRecord.from_dict(record))
        except KeyError:
            logger.debug("skipping pin without id")
            continue
    return pins


def read_pins_for_date(store: ContextStore, date: str) -> list[PinRecord]:
    return [pin for pin in read_pins(store) if pin.date == date]


def read_pins_for_month(store: ContextStore, month: str) -> list[PinRecord]:
    return [pin for pin in read_pins(store) if pin.date.startswith(month)]


def remove_pin(store: ContextStore, pin_id: str) -> bool:
    """Rewrite the pin file without ``pin_id``; other records keep their order."""

    records = read_json_lines(pins_path(store))
    remaining = [record for record in records if record.get("id") != pin_id]
    if len(remaining) == len(records):
        return False
    write_json_lines(pins_path(store), remaining)
    return True
