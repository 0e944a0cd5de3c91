"""Tests for Application."""

from unittest.mock import AsyncMock, Mock

import pytest

from conftest import make_settings, tool_response
from songline.app import Application
from songline.dialogue.prompts import ACK_TEXT, CLOSING_TEXT
from songline.llm import LLMResponse
from songline.messaging import DeliveryResult, InboundMessage, StatusUpdate
from songline.models import EventKind, TurnOutcome


def make_app(mock_llm, mock_transport, generator=None, **settings) -> Application:
    return Application(
        settings=make_settings(**settings),
        llm_provider=mock_llm,
        transport=mock_transport,
        generator=generator or Mock(),
    )


def inbound(text="Hi there", user_id="15550001", name="Alice", has_text=True):
    return InboundMessage(
        user_id=user_id, name=name, text=text, timestamp=1700000000000, has_text=has_text
    )


@pytest.fixture
def generator():
    gen = Mock()
    gen.synthesize = AsyncMock(
        return_value=Mock(ok=True, locator="https://cdn.example.com/a.mp3", error_message=None)
    )
    gen.download = AsyncMock(return_value=b"ID3audio")
    gen.close = AsyncMock()
    return gen


@pytest.fixture
async def app(mock_llm, mock_transport, generator):
    application = make_app(mock_llm, mock_transport, generator)
    await application.start()
    yield application
    await application.stop()


class TestApplicationStart:
    """Tests for Application.start()."""

    async def test_start_initializes_components(self, app):
        """Test that start initializes all components."""
        assert app.storage is not None
        assert app.broadcaster is not None
        assert app.store is not None
        assert app.gate is not None
        assert app.outbox is not None
        assert app.engine is not None

    async def test_components_share_dependencies(self, app):
        """Test that components are wired to the same instances."""
        assert app.store._storage is app.storage
        assert app.store._broadcaster is app.broadcaster
        assert app.engine._store is app.store
        assert app.engine._gate is app.gate
        assert app.engine._outbox is app.outbox

    def test_properties_before_start_raise(self, mock_llm, mock_transport):
        application = make_app(mock_llm, mock_transport)

        with pytest.raises(RuntimeError, match="not started"):
            _ = application.store

    async def test_settings_come_from_config(self, mock_llm, mock_transport):
        application = make_app(mock_llm, mock_transport, history_limit=3, default_credits=4)
        await application.start()
        try:
            assert application.engine._history_limit == 3
            assert application.store._default_credits == 4
        finally:
            await application.stop()

    async def test_stop_leaves_injected_backends_open(self, mock_llm, mock_transport, generator):
        application = make_app(mock_llm, mock_transport, generator)
        await application.start()
        await application.stop()

        generator.close.assert_not_awaited()

    async def test_builds_backends_from_settings(self, mock_llm):
        from songline.generation import MiniMaxGenerator
        from songline.messaging import WhatsAppTransport

        application = Application(settings=make_settings(), llm_provider=mock_llm)
        await application.start()
        try:
            assert isinstance(application._transport, WhatsAppTransport)
            assert isinstance(application._generator, MiniMaxGenerator)
        finally:
            await application.stop()

        assert application._owned_backends == []


class TestHandleInbound:
    """Tests for Application.handle_inbound()."""

    async def test_inbound_creates_conversation_and_replies(self, app, mock_transport):
        outcome = await app.handle_inbound(inbound())

        assert outcome == TurnOutcome.REPLIED
        conversation = app.store.get("15550001")
        assert conversation.user.name == "Alice"
        assert [(m.direction, m.content) for m in conversation.messages] == [
            ("inbound", "Hi there"),
            ("outbound", "Test response"),
        ]
        assert conversation.messages[0].timestamp == 1700000000000
        mock_transport.send_text.assert_awaited_once_with("15550001", "Test response")

    async def test_bot_disabled_records_but_does_not_reply(self, app, mock_llm, mock_transport):
        app.set_bot_enabled(False)

        outcome = await app.handle_inbound(inbound())

        assert outcome is None
        assert len(app.store.get("15550001").messages) == 1
        mock_llm.complete.assert_not_awaited()
        mock_transport.send_text.assert_not_awaited()

    async def test_media_only_message_runs_no_turn(self, app, mock_llm):
        outcome = await app.handle_inbound(inbound(text="[media]", has_text=False))

        assert outcome is None
        assert app.store.get("15550001").messages[0].content == "[media]"
        mock_llm.complete.assert_not_awaited()

    async def test_new_display_name_renames_user(self, app):
        await app.handle_inbound(inbound(name="Alice"))
        await app.handle_inbound(inbound(name="Alice B."))

        assert app.store.get("15550001").user.name == "Alice B."

    async def test_song_generated_end_to_end(self, app, mock_llm, mock_transport, generator):
        mock_llm.complete.return_value = tool_response()

        outcome = await app.handle_inbound(inbound(text="Yes, make it!"))

        assert outcome == TurnOutcome.GENERATED
        generator.synthesize.assert_awaited_once_with(
            "upbeat pop", "[verse] la la [chorus] na na"
        )
        mock_transport.upload_media.assert_awaited_once_with(b"ID3audio", "audio/mpeg")
        mock_transport.send_audio.assert_awaited_once_with("15550001", "media-1")
        sent = [call.args[1] for call in mock_transport.send_text.await_args_list]
        assert sent == [ACK_TEXT, CLOSING_TEXT]
        assert app.store.credits("15550001") == 0


class TestStatusAndEvents:
    """Tests for live events emitted by the application."""

    async def test_status_is_broadcast(self, app):
        subscriber = app.broadcaster.subscribe()

        app.handle_status(StatusUpdate(message_id="wamid.1", status="read", recipient="15550001"))

        event = await subscriber.get()
        assert event.kind == EventKind.STATUS
        assert event.payload == {"messageId": "wamid.1", "status": "read", "recipient": "15550001"}

    async def test_inbound_emits_conversation_and_message_events(self, app, mock_llm):
        mock_llm.complete.return_value = LLMResponse()
        subscriber = app.broadcaster.subscribe()

        await app.handle_inbound(inbound())

        kinds = []
        while subscriber.pending():
            kinds.append((await subscriber.get()).kind)
        assert kinds == [EventKind.CONVERSATION_UPDATE, EventKind.MESSAGE]


class TestManualSend:
    """Tests for operator sends."""

    async def test_send_manual_records_outbound(self, app):
        message = await app.send_manual("15550002", "Hello from the team")

        assert message is not None
        assert message.direction == "outbound"
        assert app.store.get("15550002").messages == [message]

    async def test_send_manual_failure_returns_none(self, app, mock_transport):
        mock_transport.send_text.side_effect = None
        mock_transport.send_text.return_value = DeliveryResult(error="Recipient not allowed")

        assert await app.send_manual("15550002", "Hello") is None
        assert app.store.get("15550002").messages == []

    async def test_send_manual_audio(self, app, mock_transport):
        message = await app.send_manual_audio("15550002", b"ID3", "audio/mpeg")

        assert message.media_kind == "audio"
        mock_transport.upload_media.assert_awaited_once_with(b"ID3", "audio/mpeg")
        mock_transport.send_audio.assert_awaited_once_with("15550002", "media-1")

    async def test_send_manual_audio_upload_failure(self, app, mock_transport):
        mock_transport.upload_media.return_value = DeliveryResult(error="too large")

        assert await app.send_manual_audio("15550002", b"ID3") is None
        mock_transport.send_audio.assert_not_awaited()


class TestReplay:
    """Tests for restart from a file database."""

    async def test_state_survives_restart(self, tmp_path, mock_llm, mock_transport):
        db_file = str(tmp_path / "songline.db")

        first = make_app(mock_llm, mock_transport, database_url=db_file)
        await first.start()
        await first.handle_inbound(inbound())
        await first.store.add_credits("15550001", 2)
        await first.stop()

        second = make_app(mock_llm, mock_transport, database_url=db_file)
        await second.start()
        try:
            conversation = second.store.get("15550001")
            assert conversation.user.name == "Alice"
            assert conversation.user.credits == 3
            assert [m.content for m in conversation.messages] == ["Hi there", "Test response"]
            assert conversation.unread == 1
        finally:
            await second.stop()
