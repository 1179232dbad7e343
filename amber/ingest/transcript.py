from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

MAX_SUMMARY_MESSAGES = 20
MAX_MESSAGE_CHARS = 500

EMPTY_SESSION_SUMMARY = "Empty or unreadable session."
UNREADABLE_SESSION_SUMMARY = "Could not read session file."
SENTINEL_SUMMARIES = frozenset({EMPTY_SESSION_SUMMARY, UNREADABLE_SESSION_SUMMARY})

TEXT_BLOCK_TYPES = frozenset({"text", "input_text", "output_text"})


def _as_dict(value: Any) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


def extract_text_from_content(content: Any) -> str | None:
    """Return a string as-is, or the first text block of a content-block list."""

    if isinstance(content, str):
        return content
    if isinstance(content, list):
        for block in content:
            if (
                isinstance(block, dict)
                and isinstance(block.get("text"), str)
                and block.get("type") in TEXT_BLOCK_TYPES
            ):
                return block["text"]
    return None


def extract_content(content: Any) -> str:
    """Join every text block; fall back to the first plain string element."""

    if isinstance(content, str):
        return content.strip()
    if isinstance(content, list):
        text = " ".join(
            block["text"]
            for block in content
            if isinstance(block, dict)
            and block.get("type") in TEXT_BLOCK_TYPES
            and isinstance(block.get("text"), str)
        ).strip()
        if text:
            return text
        for part in content:
            if isinstance(part, str):
                return part.strip()
    return ""


def attribute_message(record: dict[str, Any]) -> tuple[str, str] | None:
    """Map one session line to ``(role label, text)``.

    Shapes are tried in a fixed order; several formats carry both a ``type``
    and a ``role`` so the first matching shape decides.
    """

    record_type = record.get("type")
    message = _as_dict(record.get("message"))
    payload = _as_dict(record.get("payload"))

    if record_type in {"user", "assistant"} and message.get("content") is not None:
        text = extract_text_from_content(message["content"])
        label = "User" if record_type == "user" else "Assistant"
        return (label, text) if text else None
    if record_type == "event_msg" and payload.get("type") == "user_message":
        text = payload.get("message")
        return ("User", text) if isinstance(text, str) and text else None
    if record_type == "response_item" and payload.get("role") == "assistant":
        text = extract_text_from_content(payload.get("content"))
        return ("Assistant", text) if text else None
    role = record.get("role")
    if role == "user" and isinstance(record.get("content"), str):
        return "User", record["content"]
    if role == "assistant":
        text = extract_text_from_content(record.get("content"))
        return ("Assistant", text) if text else None
    return None


def format_message(label: str, text: str) -> str:
    return f"{label}: {text[:MAX_MESSAGE_CHARS]}"


def extract_session_summary(path: Path) -> str:
    """Role-labelled transcript of the first 20 attributed messages of a JSONL session."""

    parts: list[str] = []
    try:
        with path.open(encoding="utf-8", errors="replace") as handle:
            for line in handle:
                if len(parts) >= MAX_SUMMARY_MESSAGES:
                    break
                line = line.strip()
                if not line:
                    continue
                try:
                    record = json.loads(line)
                except json.JSONDecodeError:
                    continue
                if not isinstance(record, dict):
                    continue
                try:
                    attributed = attribute_message(record)
                    if attributed:
                        parts.append(format_message(*attributed))
                except (TypeError, ValueError) as exc:
                    logger.debug("skipping session line in %s: %s", path, exc)
    except OSError as exc:
        logger.debug("session file unreadable: %s (%s)", path, exc)
        return UNREADABLE_SESSION_SUMMARY
    return "\n".join(parts) if parts else EMPTY_SESSION_SUMMARY


def gemini_message_text(message: dict[str, Any]) -> str:
    content = message.get("content")
    if isinstance(content, str):
        return content
    parts = message.get("parts")
    if isinstance(parts, list):
        return " ".join(
            part["text"]
            for part in parts
            if isinstance(part, dict) and isinstance(part.get("text"), str) and part["text"]
        )
    return ""


def gemini_messages(data: Any) -> list[dict[str, Any]]:
    if not isinstance(data, dict):
        return []
    messages = data.get("messages") or data.get("history") or []
    if not isinstance(messages, list):
        return []
    return [message for message in messages if isinstance(message, dict)]


GEMINI_ROLE_LABELS = {"user": "User", "model": "Assistant", "assistant": "Assistant"}


def summarize_gemini_messages(messages: list[dict[str, Any]]) -> str:
    parts: list[str] = []
    for message in messages:
        if len(parts) >= MAX_SUMMARY_MESSAGES:
            break
        label = GEMINI_ROLE_LABELS.get(str(message.get("role") or message.get("author") or ""))
        if label is None:
            continue
        text = gemini_message_text(message)
        if text:
            parts.append(format_message(label, text))
    return "\n".join(parts) if parts else EMPTY_SESSION_SUMMARY


def first_user_message(summary: str, *, max_chars: int = 200) -> str:
    """Pull the first ``User:`` turn out of a rendered summary."""

    message = summary
    if summary.startswith("User:"):
        body = summary[len("User:") :]
        end = body.find("\nAssistant:")
        message = body if end < 0 else body[:end]
    message = message.strip()
    if len(message) > max_chars:
        return message[:max_chars] + "..."
    return message
