"""Live event models."""

from dataclasses import dataclass, field
from enum import Enum

from .messages import now_ms


class EventKind(str, Enum):
    """Kinds of events pushed to live subscribers."""

    MESSAGE = "message"
    CONVERSATION_UPDATE = "conversation_update"
    STATUS = "status"


@dataclass
class Event:
    """A state change broadcast to subscribers."""

    kind: EventKind
    payload: dict
    timestamp: int = field(default_factory=now_ms)
