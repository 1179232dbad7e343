from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal

EventKind = Literal["commit", "session", "browse", "chat", "note", "memory"]
EntityType = Literal["project", "person", "topic"]


def _drop_none(payload: dict[str, Any]) -> dict[str, Any]:
    return {key: value for key, value in payload.items() if value is not None}


@dataclass(frozen=True)
class RawEvent:
    source: str
    timestamp: str
    kind: str
    data: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "source": self.source,
            "timestamp": self.timestamp,
            "kind": self.kind,
            "data": dict(self.data),
        }

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> RawEvent:
        data = payload.get("data")
        return cls(
            source=str(payload.get("source") or "unknown"),
            timestamp=str(payload.get("timestamp") or ""),
            kind=str(payload.get("kind") or "commit"),
            data=data if isinstance(data, dict) else {},
        )


@dataclass
class ContextEntry:
    id: str
    source: str
    timestamp: str
    kind: str
    title: str
    detail: str | None = None
    project_path: str | None = None
    data: dict[str, Any] = field(default_factory=dict)
    pinned: bool | None = None
    pin_id: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return _drop_none(
            {
                "id": self.id,
                "source": self.source,
                "timestamp": self.timestamp,
                "kind": self.kind,
                "title": self.title,
                "detail": self.detail,
                "projectPath": self.project_path,
                "data": self.data,
                "pinned": self.pinned,
                "pinId": self.pin_id,
            }
        )


@dataclass
class PinRecord:
    id: str
    timestamp: str
    source: str
    kind: str
    date: str
    title: str
    detail: str | None = None
    project_path: str | None = None
    data: dict[str, Any] = field(default_factory=dict)
    note: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return _drop_none(
            {
                "id": self.id,
                "timestamp": self.timestamp,
                "source": self.source,
                "kind": self.kind,
                "date": self.date,
                "title": self.title,
                "detail": self.detail,
                "projectPath": self.project_path,
                "data": self.data,
                "note": self.note,
            }
        )

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> PinRecord:
        data = payload.get("data")
        return cls(
            id=str(payload["id"]),
            timestamp=str(payload.get("timestamp") or ""),
            source=str(payload.get("source") or ""),
            kind=str(payload.get("kind") or "memory"),
            date=str(payload.get("date") or ""),
            title=str(payload.get("title") or ""),
            detail=payload.get("detail"),
            project_path=payload.get("projectPath"),
            data=data if isinstance(data, dict) else {},
            note=payload.get("note"),
        )


@dataclass
class KnowledgeEntity:
    id: str
    type: str
    slug: str
    name: str
    first_seen: str
    last_seen: str
    mention_count: int = 1
    sources: list[str] = field(default_factory=list)
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type,
            "slug": self.slug,
            "name": self.name,
            "first_seen": self.first_seen,
            "last_seen": self.last_seen,
            "mention_count": self.mention_count,
            "sources": list(self.sources),
            "metadata": dict(self.metadata),
        }

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> KnowledgeEntity:
        sources = payload.get("sources")
        metadata = payload.get("metadata")
        return cls(
            id=str(payload["id"]),
            type=str(payload["type"]),
            slug=str(payload["slug"]),
            name=str(payload.get("name") or ""),
            first_seen=str(payload.get("first_seen") or ""),
            last_seen=str(payload.get("last_seen") or ""),
            mention_count=int(payload.get("mention_count") or 0),
            sources=[str(s) for s in sources] if isinstance(sources, list) else [],
            metadata=metadata if isinstance(metadata, dict) else {},
        )
