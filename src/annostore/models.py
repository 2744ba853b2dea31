"""Core data models for the annotation store.

Framework-agnostic: the storage backends, the query coordinator and the
HTTP layer all pass these around.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass
class Annotation:
    """A tagged, timestamped text record.

    Attributes:
        created_at: Unix seconds when stored. Records returned from a range
            query carry milliseconds instead.
        message: The annotation text.
        tags: Tags in input order. Duplicates are kept.
    """

    created_at: int = 0
    message: str = ""
    tags: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Client-facing shape. Zero ``created_at`` and empty ``tags`` are omitted."""
        data: dict[str, Any] = {}
        if self.created_at:
            data["created_at"] = self.created_at
        data["message"] = self.message
        if self.tags:
            data["tags"] = list(self.tags)
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Annotation:
        return cls(
            created_at=int(data.get("created_at") or 0),
            message=data.get("message", ""),
            tags=list(data.get("tags") or []),
        )


@dataclass
class Posts:
    """Envelope for query results: ``{"posts": [...]}``."""

    posts: list[Annotation] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.posts)

    def __iter__(self):
        return iter(self.posts)

    def extend(self, annotations: list[Annotation]) -> None:
        self.posts.extend(annotations)

    def to_dict(self) -> dict[str, Any]:
        return {"posts": [a.to_dict() for a in self.posts]}
