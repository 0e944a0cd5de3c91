"""Core data models for Songline."""

from .dialogue import TurnOutcome
from .events import Event, EventKind
from .generation import ArtifactResult, ErrorKind, GenerationRequest
from .messages import Conversation, Direction, Message, User, now_ms

__all__ = [
    # Messages
    "User",
    "Message",
    "Conversation",
    "Direction",
    "now_ms",
    # Dialogue
    "TurnOutcome",
    # Generation
    "GenerationRequest",
    "ArtifactResult",
    "ErrorKind",
    # Events
    "Event",
    "EventKind",
]
