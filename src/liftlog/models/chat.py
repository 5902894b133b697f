"""Coaching conversation models."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from ..utils import format_timestamp, new_id, parse_timestamp, utcnow


class ChatRole(str, Enum):
    """Author of a chat message."""

    USER = "user"
    ASSISTANT = "assistant"


@dataclass
class ChatMessage:
    """A single role-tagged message."""

    role: ChatRole
    content: str
    timestamp: datetime = field(default_factory=utcnow)
    id: str = field(default_factory=new_id)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "role": self.role.value,
            "content": self.content,
            "timestamp": format_timestamp(self.timestamp),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ChatMessage":
        # The sync server reports the row's creation time as createdAt
        stamp = data.get("timestamp") or data.get("createdAt")
        return cls(
            id=data.get("id") or new_id(),
            role=ChatRole(data["role"]),
            content=data["content"],
            timestamp=parse_timestamp(stamp) if stamp else utcnow(),
        )


@dataclass
class Conversation:
    """An insertion-ordered group of chat messages."""

    title: str = "Coaching chat"
    messages: list[ChatMessage] = field(default_factory=list)
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)
    id: str = field(default_factory=new_id)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "messages": [m.to_dict() for m in self.messages],
            "createdAt": format_timestamp(self.created_at),
            "updatedAt": format_timestamp(self.updated_at),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Conversation":
        created_at = parse_timestamp(data["createdAt"]) if data.get("createdAt") else utcnow()
        return cls(
            id=data.get("id") or new_id(),
            title=data.get("title") or "Coaching chat",
            messages=[ChatMessage.from_dict(m) for m in data.get("messages") or []],
            created_at=created_at,
            updated_at=(
                parse_timestamp(data["updatedAt"]) if data.get("updatedAt") else created_at
            ),
        )
