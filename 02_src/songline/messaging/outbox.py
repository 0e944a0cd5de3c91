"""Outbox: send to a user, then record what was actually delivered."""

import asyncio

from ..conversation import IConversationStore
from ..logging_config import get_logger
from ..models import Message
from .whatsapp import DeliveryResult, IMessagingTransport

logger = get_logger(__name__)

AUDIO_PLACEHOLDER = "🎵 [Audio]"


class Outbox:
    """Serializes outbound sends per user.

    The per-user lock is FIFO, so history is appended in the order sends
    were started. A failed send is logged and never appended.
    """

    def __init__(self, transport: IMessagingTransport, store: IConversationStore):
        self._transport = transport
        self._store = store
        self._locks: dict[str, asyncio.Lock] = {}

    def _lock_for(self, user_id: str) -> asyncio.Lock:
        return self._locks.setdefault(user_id, asyncio.Lock())

    async def send_text(self, user_id: str, text: str) -> Message | None:
        """Send text. Returns the recorded message, or None if delivery failed."""
        async with self._lock_for(user_id):
            result = await self._transport.send_text(user_id, text)
            return await self._record(
                user_id, result, Message.outbound(user_id, text)
            )

    async def send_audio(self, user_id: str, media_id: str) -> Message | None:
        """Send uploaded audio. Returns the recorded message, or None if delivery failed."""
        async with self._lock_for(user_id):
            result = await self._transport.send_audio(user_id, media_id)
            return await self._record(
                user_id,
                result,
                Message.outbound(user_id, AUDIO_PLACEHOLDER, media_kind="audio"),
            )

    async def _record(
        self, user_id: str, result: DeliveryResult, message: Message
    ) -> Message | None:
        if not result.ok:
            logger.warning(
                "Delivery failed, not recording message: %s", result.error,
                extra={"user_id": user_id},
            )
            return None

        await self._store.get_or_create(user_id)
        return await self._store.append_message(user_id, message)
