"""Live event broadcasting module."""

from .broadcaster import EventBroadcaster, IEventBroadcaster, Subscriber, format_sse

__all__ = ["EventBroadcaster", "IEventBroadcaster", "Subscriber", "format_sse"]
