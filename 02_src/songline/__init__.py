"""Songline: WhatsApp song generation bot."""

from .app import Application, IApplication
from .config import Settings
from .conversation import ConversationStore, IConversationStore
from .dialogue import DialogueEngine, IDialogueEngine
from .events import EventBroadcaster, IEventBroadcaster, Subscriber
from .generation import ArtifactPipeline, GenerationGate, MiniMaxGenerator
from .llm import ILLMProvider, LLMProvider, LLMResponse, ToolCall
from .messaging import Outbox, WhatsAppTransport
from .models import (
    ArtifactResult,
    Conversation,
    ErrorKind,
    Event,
    EventKind,
    GenerationRequest,
    Message,
    TurnOutcome,
    User,
)
from .storage import IStorage, Storage

__all__ = [
    # Application
    "Application",
    "IApplication",
    "Settings",
    # Models
    "User",
    "Message",
    "Conversation",
    "GenerationRequest",
    "ArtifactResult",
    "ErrorKind",
    "Event",
    "EventKind",
    "TurnOutcome",
    # Components
    "IStorage",
    "Storage",
    "IConversationStore",
    "ConversationStore",
    "IEventBroadcaster",
    "EventBroadcaster",
    "Subscriber",
    "GenerationGate",
    "ArtifactPipeline",
    "MiniMaxGenerator",
    "ILLMProvider",
    "LLMProvider",
    "LLMResponse",
    "ToolCall",
    "IDialogueEngine",
    "DialogueEngine",
    "Outbox",
    "WhatsAppTransport",
]
