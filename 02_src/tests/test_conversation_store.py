"""Tests for ConversationStore."""

import asyncio
from unittest.mock import AsyncMock

import pytest

from songline.conversation import ConversationStore
from songline.errors import ConversationNotFound, PersistenceFailure
from songline.models import EventKind, Message


class TestGetOrCreate:
    """Tests for ConversationStore.get_or_create()."""

    async def test_creates_user_with_default_credits(self, store, storage):
        """Test that first contact creates and persists a user."""
        conversation = await store.get_or_create("15550001", "Alice")

        assert conversation.user.name == "Alice"
        assert conversation.user.credits == 1
        assert conversation.messages == []

        persisted = await storage.get_user("15550001")
        assert persisted is not None
        assert persisted.credits == 1

    async def test_name_defaults_to_user_id(self, store):
        conversation = await store.get_or_create("15550001")
        assert conversation.user.name == "15550001"

    async def test_second_call_returns_same_conversation(self, store, storage):
        """Test idempotence: one row, one conversation object."""
        first = await store.get_or_create("u1", "Alice")
        second = await store.get_or_create("u1")

        assert first is second
        assert len(await storage.list_users()) == 1

    async def test_concurrent_first_contact_creates_one_user(self, store, storage):
        """Test that racing first contacts yield a single user row."""
        results = await asyncio.gather(
            *[store.get_or_create("u1", f"Name {i}") for i in range(5)]
        )

        assert all(conv is results[0] for conv in results)
        assert len(await storage.list_users()) == 1

    async def test_display_name_last_writer_wins(self, store, storage):
        await store.get_or_create("u1", "Alice")
        await store.get_or_create("u1", "Alicia")

        assert store.get("u1").user.name == "Alicia"
        assert (await storage.get_user("u1")).name == "Alicia"

    async def test_emits_conversation_update(self, store, broadcaster):
        subscriber = broadcaster.subscribe()

        await store.get_or_create("u1", "Alice")

        event = await subscriber.get()
        assert event.kind == EventKind.CONVERSATION_UPDATE
        assert event.payload["phone"] == "u1"
        assert event.payload["name"] == "Alice"


class TestAppendMessage:
    """Tests for ConversationStore.append_message()."""

    async def test_append_persists_and_mirrors(self, store, storage):
        await store.get_or_create("u1")

        message = await store.append_message("u1", Message.inbound("u1", "Hello"))

        assert message.id is not None
        assert store.get("u1").messages == [message]
        assert [m.content for m in await storage.get_messages("u1")] == ["Hello"]

    async def test_append_unknown_user_raises_not_found(self, store):
        with pytest.raises(ConversationNotFound):
            await store.append_message("ghost", Message.inbound("ghost", "Hello"))

    async def test_append_rejects_foreign_message(self, store):
        await store.get_or_create("u1")

        with pytest.raises(ValueError):
            await store.append_message("u1", Message.inbound("u2", "Hello"))

    async def test_persistence_failure_propagates_and_leaves_memory(self, store, storage):
        """Test that a failed write is not mirrored and is not 'not found'."""
        await store.get_or_create("u1")
        storage.save_message = AsyncMock(side_effect=PersistenceFailure("disk full"))

        with pytest.raises(PersistenceFailure):
            await store.append_message("u1", Message.inbound("u1", "Hello"))

        assert store.get("u1").messages == []

    async def test_append_emits_message_event(self, store, broadcaster):
        await store.get_or_create("u1")
        subscriber = broadcaster.subscribe()

        await store.append_message("u1", Message.outbound("u1", "Hi"))

        event = await subscriber.get()
        assert event.kind == EventKind.MESSAGE
        assert event.payload["phone"] == "u1"
        assert event.payload["message"]["text"] == "Hi"
        assert event.payload["message"]["from"] == "me"


class TestMarkRead:
    """Tests for ConversationStore.mark_read()."""

    async def test_mark_read_sets_inbound_read(self, store, storage):
        await store.get_or_create("u1")
        await store.append_message("u1", Message.inbound("u1", "one"))
        await store.append_message("u1", Message.outbound("u1", "reply"))
        await store.append_message("u1", Message.inbound("u1", "two"))
        assert store.get("u1").unread == 2

        await store.mark_read("u1")

        assert store.get("u1").unread == 0
        assert all(m.read for m in await storage.get_messages("u1"))

    async def test_mark_read_unknown_user(self, store):
        with pytest.raises(ConversationNotFound):
            await store.mark_read("ghost")


class TestCredits:
    """Tests for debit_credit() and add_credits()."""

    async def test_debit_decrements_and_persists(self, store, storage):
        await store.get_or_create("u1")

        remaining = await store.debit_credit("u1")

        assert remaining == 0
        assert store.credits("u1") == 0
        assert (await storage.get_user("u1")).credits == 0

    async def test_debit_floors_at_zero(self, store):
        await store.get_or_create("u1")
        await store.debit_credit("u1")

        assert await store.debit_credit("u1") == 0
        assert store.credits("u1") == 0

    async def test_debit_failure_leaves_mirror_unchanged(self, store, storage):
        """Test that memory and database never disagree after a failed write."""
        await store.get_or_create("u1")
        storage.set_credits = AsyncMock(side_effect=PersistenceFailure("locked"))

        with pytest.raises(PersistenceFailure):
            await store.debit_credit("u1")

        assert store.credits("u1") == 1

    async def test_add_credits(self, store, storage):
        await store.get_or_create("u1")

        assert await store.add_credits("u1", 3) == 4
        assert (await storage.get_user("u1")).credits == 4

    async def test_add_credits_rejects_negative(self, store):
        await store.get_or_create("u1")

        with pytest.raises(ValueError):
            await store.add_credits("u1", -1)
        assert store.credits("u1") == 1

    async def test_add_zero_credits_is_noop(self, store):
        await store.get_or_create("u1")
        assert await store.add_credits("u1", 0) == 1

    async def test_credits_of_unknown_user_is_zero(self, store):
        assert store.credits("ghost") == 0

    async def test_credits_unknown_user_raises(self, store):
        with pytest.raises(ConversationNotFound):
            await store.debit_credit("ghost")


class TestRecentHistory:
    """Tests for recent_history()."""

    async def test_returns_last_messages_oldest_first(self, store):
        await store.get_or_create("u1")
        for i in range(20):
            await store.append_message("u1", Message.inbound("u1", f"m{i}"))

        history = store.recent_history("u1", 15)

        assert len(history) == 15
        assert history[0].content == "m5"
        assert history[-1].content == "m19"

    async def test_history_is_a_copy(self, store):
        await store.get_or_create("u1")
        await store.append_message("u1", Message.inbound("u1", "m"))

        store.recent_history("u1", 15).clear()

        assert len(store.recent_history("u1", 15)) == 1

    async def test_unknown_user_has_no_history(self, store):
        assert store.recent_history("ghost", 15) == []


class TestReplay:
    """Tests for load() reconstructing state after a restart."""

    async def test_load_reconstructs_identical_history(self, store, storage, broadcaster):
        await store.get_or_create("u1", "Alice")
        await store.get_or_create("u2", "Bob")
        await store.append_message("u1", Message.inbound("u1", "hi", 1000))
        await store.append_message("u2", Message.inbound("u2", "yo", 2000))
        await store.append_message("u1", Message.outbound("u1", "hello"))
        await store.debit_credit("u2")

        restarted = ConversationStore(storage, broadcaster)
        await restarted.load()

        for user_id in ("u1", "u2"):
            before = store.get(user_id)
            after = restarted.get(user_id)
            assert after.user.name == before.user.name
            assert after.user.credits == before.user.credits
            assert [
                (m.id, m.direction, m.content, m.timestamp) for m in after.messages
            ] == [(m.id, m.direction, m.content, m.timestamp) for m in before.messages]

    async def test_list_conversations_summary(self, store):
        await store.get_or_create("u1", "Alice")
        await store.append_message("u1", Message.inbound("u1", "hi"))

        [summary] = [c.summary() for c in store.list_conversations()]
        assert summary["phone"] == "u1"
        assert summary["unread"] == 1
        assert summary["lastMessage"]["text"] == "hi"
