"""Conversation data models."""

import time
from dataclasses import dataclass, field
from typing import Literal

Direction = Literal["inbound", "outbound"]


def now_ms() -> int:
    """Current time as epoch milliseconds."""
    return int(time.time() * 1000)


@dataclass
class User:
    """A chat user identified by their channel address (phone number)."""

    id: str
    name: str
    credits: int = 1
    created_at: int = field(default_factory=now_ms)
    updated_at: int = field(default_factory=now_ms)


@dataclass
class Message:
    """A single message in a conversation.

    Outbound messages are always read. Inbound messages stay unread until
    the conversation is fetched for display.
    """

    user_id: str
    direction: Direction
    content: str
    timestamp: int = field(default_factory=now_ms)
    read: bool = False
    media_kind: str | None = None  # "audio"
    id: int | None = None

    def __post_init__(self) -> None:
        if self.direction == "outbound":
            self.read = True

    @classmethod
    def inbound(cls, user_id: str, content: str, timestamp: int | None = None) -> "Message":
        return cls(
            user_id=user_id,
            direction="inbound",
            content=content,
            timestamp=timestamp if timestamp is not None else now_ms(),
        )

    @classmethod
    def outbound(
        cls, user_id: str, content: str, media_kind: str | None = None
    ) -> "Message":
        return cls(
            user_id=user_id,
            direction="outbound",
            content=content,
            media_kind=media_kind,
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "from": "me" if self.direction == "outbound" else self.user_id,
            "direction": self.direction,
            "text": self.content,
            "timestamp": self.timestamp,
            "read": self.read,
            "type": self.media_kind or "text",
        }


@dataclass
class Conversation:
    """A user's ordered message history."""

    user: User
    messages: list[Message] = field(default_factory=list)

    @property
    def unread(self) -> int:
        return sum(
            1 for msg in self.messages if msg.direction == "inbound" and not msg.read
        )

    @property
    def last_message(self) -> Message | None:
        return self.messages[-1] if self.messages else None

    def summary(self) -> dict:
        last = self.last_message
        return {
            "phone": self.user.id,
            "name": self.user.name,
            "credits": self.user.credits,
            "lastMessage": last.to_dict() if last else None,
            "unread": self.unread,
        }

    def to_dict(self) -> dict:
        return {
            "phone": self.user.id,
            "name": self.user.name,
            "credits": self.user.credits,
            "messages": [msg.to_dict() for msg in self.messages],
        }
