"""ConversationStore: in-memory conversations mirrored to Storage."""

import asyncio
from typing import Protocol

from ..errors import ConversationNotFound
from ..events import IEventBroadcaster
from ..logging_config import get_logger
from ..models import Conversation, EventKind, Message, User, now_ms
from ..storage import IStorage

logger = get_logger(__name__)


class IConversationStore(Protocol):
    """Per-user conversation history, profile and credits."""

    async def get_or_create(
        self, user_id: str, display_name: str | None = None
    ) -> Conversation:
        """Return the user's conversation, creating user and conversation if new."""
        ...

    async def append_message(self, user_id: str, message: Message) -> Message:
        """Persist a message and append it to the in-memory history."""
        ...

    async def mark_read(self, user_id: str) -> None:
        """Mark all inbound messages of the conversation as read."""
        ...

    async def debit_credit(self, user_id: str) -> int:
        """Take one credit. Returns remaining credits."""
        ...

    async def add_credits(self, user_id: str, amount: int) -> int:
        """Administrative top-up. Returns remaining credits."""
        ...

    def recent_history(self, user_id: str, limit: int) -> list[Message]:
        """Last `limit` messages, oldest first."""
        ...

    def credits(self, user_id: str) -> int:
        """Current credits (0 for unknown users)."""
        ...


class ConversationStore:
    """Owns every conversation of the process.

    The in-memory map is the read path. Every mutation is written to Storage
    first and mirrored only after the write commits, so a failed write never
    leaves memory ahead of the database.
    """

    def __init__(
        self,
        storage: IStorage,
        broadcaster: IEventBroadcaster,
        default_credits: int = 1,
    ):
        self._storage = storage
        self._broadcaster = broadcaster
        self._default_credits = default_credits

        self._conversations: dict[str, Conversation] = {}
        self._locks: dict[str, asyncio.Lock] = {}

    def _lock_for(self, user_id: str) -> asyncio.Lock:
        return self._locks.setdefault(user_id, asyncio.Lock())

    def _require(self, user_id: str) -> Conversation:
        conversation = self._conversations.get(user_id)
        if conversation is None:
            raise ConversationNotFound(user_id)
        return conversation

    def _emit_update(self, conversation: Conversation) -> None:
        self._broadcaster.emit(
            EventKind.CONVERSATION_UPDATE,
            {
                "phone": conversation.user.id,
                "name": conversation.user.name,
                "credits": conversation.user.credits,
                "unread": conversation.unread,
            },
        )

    async def load(self) -> None:
        """Replay persisted users and messages into memory."""
        self._conversations.clear()

        for user in await self._storage.list_users():
            self._conversations[user.id] = Conversation(user=user)

        for message in await self._storage.get_messages():
            conversation = self._conversations.get(message.user_id)
            if conversation is None:
                logger.warning(
                    "Skipping message %s of unknown user", message.id,
                    extra={"user_id": message.user_id},
                )
                continue
            conversation.messages.append(message)

        logger.info("Loaded %d conversations", len(self._conversations))

    async def get_or_create(
        self, user_id: str, display_name: str | None = None
    ) -> Conversation:
        """Return the user's conversation, creating user and conversation if new.

        Safe under concurrent first contact: creation for one user_id is
        serialized and the insert is an upsert, so only one row exists.
        """
        async with self._lock_for(user_id):
            conversation = self._conversations.get(user_id)

            if conversation is None:
                user = User(
                    id=user_id,
                    name=display_name or user_id,
                    credits=self._default_credits,
                )
                await self._storage.upsert_user(user)
                conversation = Conversation(user=user)
                self._conversations[user_id] = conversation
                logger.info("Created conversation", extra={"user_id": user_id})
                self._emit_update(conversation)

            elif display_name and display_name != conversation.user.name:
                timestamp = now_ms()
                renamed = User(
                    id=user_id,
                    name=display_name,
                    credits=conversation.user.credits,
                    created_at=conversation.user.created_at,
                    updated_at=timestamp,
                )
                await self._storage.upsert_user(renamed)
                conversation.user.name = display_name
                conversation.user.updated_at = timestamp
                self._emit_update(conversation)

            return conversation

    async def append_message(self, user_id: str, message: Message) -> Message:
        """Persist a message and append it to the in-memory history.

        Raises:
            ConversationNotFound: if get_or_create was never called for the user.
            PersistenceFailure: if the message could not be stored.
        """
        conversation = self._require(user_id)
        if message.user_id != user_id:
            raise ValueError(
                f"Message belongs to {message.user_id}, not {user_id}"
            )

        message.id = await self._storage.save_message(message)
        conversation.messages.append(message)

        self._broadcaster.emit(
            EventKind.MESSAGE, {"phone": user_id, "message": message.to_dict()}
        )
        return message

    async def mark_read(self, user_id: str) -> None:
        """Mark all inbound messages of the conversation as read."""
        conversation = self._require(user_id)
        if conversation.unread == 0:
            return

        await self._storage.mark_read(user_id)
        for message in conversation.messages:
            if message.direction == "inbound":
                message.read = True

        self._emit_update(conversation)

    async def debit_credit(self, user_id: str) -> int:
        """Take one credit, floored at zero. Returns remaining credits."""
        return await self._change_credits(user_id, -1)

    async def add_credits(self, user_id: str, amount: int) -> int:
        """Administrative top-up. Returns remaining credits."""
        if amount < 0:
            raise ValueError("amount must be non-negative")
        return await self._change_credits(user_id, amount)

    async def _change_credits(self, user_id: str, delta: int) -> int:
        async with self._lock_for(user_id):
            conversation = self._require(user_id)
            user = conversation.user

            remaining = max(0, user.credits + delta)
            timestamp = now_ms()
            await self._storage.set_credits(user_id, remaining, timestamp)

            user.credits = remaining
            user.updated_at = timestamp

        logger.info(
            "Credits changed by %d, %d remaining", delta, remaining,
            extra={"user_id": user_id},
        )
        self._emit_update(conversation)
        return remaining

    def recent_history(self, user_id: str, limit: int) -> list[Message]:
        """Last `limit` messages, oldest first. Unknown users have none."""
        conversation = self._conversations.get(user_id)
        if conversation is None or limit <= 0:
            return []
        return list(conversation.messages[-limit:])

    def credits(self, user_id: str) -> int:
        """Current credits (0 for unknown users)."""
        conversation = self._conversations.get(user_id)
        return conversation.user.credits if conversation else 0

    def get(self, user_id: str) -> Conversation | None:
        """Get a conversation without creating it."""
        return self._conversations.get(user_id)

    def list_conversations(self) -> list[Conversation]:
        """All conversations in first-contact order."""
        return list(self._conversations.values())
