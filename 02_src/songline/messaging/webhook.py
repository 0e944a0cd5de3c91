"""WhatsApp webhook payload parsing."""

from dataclasses import dataclass, field

from ..models import now_ms

MEDIA_PLACEHOLDER = "[media]"


@dataclass
class InboundMessage:
    """A user message extracted from a webhook."""

    user_id: str
    name: str
    text: str
    timestamp: int
    has_text: bool
    message_id: str | None = None


@dataclass
class StatusUpdate:
    """A delivery status change for a message we sent."""

    message_id: str
    status: str
    recipient: str | None = None

    def to_dict(self) -> dict:
        return {"messageId": self.message_id, "status": self.status, "recipient": self.recipient}


@dataclass
class WebhookBatch:
    messages: list[InboundMessage] = field(default_factory=list)
    statuses: list[StatusUpdate] = field(default_factory=list)


def _parse_timestamp(raw) -> int:
    # WhatsApp sends epoch seconds as a string
    try:
        return int(raw) * 1000
    except (TypeError, ValueError):
        return now_ms()


def _objects(items) -> list[dict]:
    """The dict elements of a list field; anything else is skipped."""
    if not isinstance(items, list):
        return []
    return [item for item in items if isinstance(item, dict)]


def _nested(obj: dict, section: str, key: str):
    nested = obj.get(section)
    return nested.get(key) if isinstance(nested, dict) else None


def parse_webhook(payload: dict) -> WebhookBatch:
    """Extract messages and status updates from every entry and change."""
    batch = WebhookBatch()

    for entry in _objects(payload.get("entry")):
        for change in _objects(entry.get("changes")):
            value = change.get("value")
            if not isinstance(value, dict):
                continue

            contacts = _objects(value.get("contacts"))
            names = {
                contact.get("wa_id"): _nested(contact, "profile", "name")
                for contact in contacts
                if isinstance(contact.get("wa_id"), str)
            }
            fallback_name = _nested(contacts[0], "profile", "name") if contacts else None

            for msg in _objects(value.get("messages")):
                sender = msg.get("from")
                if not isinstance(sender, str) or not sender:
                    continue
                body = _nested(msg, "text", "body")
                if not isinstance(body, str):
                    body = None
                batch.messages.append(
                    InboundMessage(
                        user_id=sender,
                        name=names.get(sender) or fallback_name or sender,
                        text=body or MEDIA_PLACEHOLDER,
                        timestamp=_parse_timestamp(msg.get("timestamp")),
                        has_text=bool(body),
                        message_id=msg.get("id"),
                    )
                )

            for status in _objects(value.get("statuses")):
                if not status.get("id"):
                    continue
                batch.statuses.append(
                    StatusUpdate(
                        message_id=status["id"],
                        status=status.get("status", "unknown"),
                        recipient=status.get("recipient_id"),
                    )
                )

    return batch
