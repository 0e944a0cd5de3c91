"""Messaging transport module."""

from .whatsapp import DeliveryResult, IMessagingTransport, WhatsAppTransport
from .outbox import AUDIO_PLACEHOLDER, Outbox
from .webhook import InboundMessage, StatusUpdate, WebhookBatch, parse_webhook

__all__ = [
    "DeliveryResult",
    "IMessagingTransport",
    "WhatsAppTransport",
    "Outbox",
    "AUDIO_PLACEHOLDER",
    "InboundMessage",
    "StatusUpdate",
    "WebhookBatch",
    "parse_webhook",
]
