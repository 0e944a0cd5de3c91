"""Pytest configuration and fixtures."""

import sys
from pathlib import Path
from unittest.mock import AsyncMock, Mock

import pytest
import pytest_asyncio

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from songline.config import Settings  # noqa: E402
from songline.llm import LLMResponse, ToolCall  # noqa: E402
from songline.messaging import DeliveryResult  # noqa: E402
from songline.models import ArtifactResult  # noqa: E402


def make_settings(**overrides) -> Settings:
    """Settings with dummy credentials."""
    values = dict(
        wa_verify_token="verify-me",
        wa_access_token="wa-token",
        wa_phone_number_id="1234567890",
        anthropic_api_key="test-key",
        minimax_api_key="minimax-key",
        database_url=":memory:",
        generation_timeout=5.0,
    )
    values.update(overrides)
    return Settings(**values)


def song_call(lyrics="[verse] la la [chorus] na na", style="upbeat pop") -> ToolCall:
    """A generate_song tool call."""
    return ToolCall(name="generate_song", arguments={"lyrics": lyrics, "style": style}, id="toolu_1")


def tool_response(*calls: ToolCall) -> LLMResponse:
    return LLMResponse(text=None, tool_calls=list(calls or [song_call()]))


@pytest.fixture
def settings():
    return make_settings()


@pytest_asyncio.fixture
async def storage():
    """Create in-memory storage for testing."""
    from songline.storage import Storage

    st = Storage(":memory:")
    await st.init()
    yield st
    await st.close()


@pytest.fixture
def broadcaster():
    """Create EventBroadcaster."""
    from songline.events import EventBroadcaster

    return EventBroadcaster()


@pytest_asyncio.fixture
async def store(storage, broadcaster):
    """Create ConversationStore backed by in-memory storage."""
    from songline.conversation import ConversationStore

    cs = ConversationStore(storage, broadcaster, default_credits=1)
    await cs.load()
    return cs


@pytest.fixture
def mock_transport():
    """Create mock messaging transport where every call succeeds."""
    counter = {"n": 0}

    def _sent(*args, **kwargs):
        counter["n"] += 1
        return DeliveryResult(message_id=f"wamid.{counter['n']}")

    transport = Mock()
    transport.send_text = AsyncMock(side_effect=_sent)
    transport.send_audio = AsyncMock(side_effect=_sent)
    transport.upload_media = AsyncMock(return_value=DeliveryResult(media_id="media-1"))
    return transport


@pytest.fixture
def mock_llm():
    """Create mock LLM provider."""
    llm = Mock()
    llm.complete = AsyncMock(return_value=LLMResponse(text="Test response"))
    return llm


@pytest.fixture
def mock_pipeline():
    """Create mock artifact pipeline that always succeeds."""
    pipeline = Mock()
    pipeline.produce = AsyncMock(return_value=ArtifactResult.success("media-1", b"ID3audio"))
    return pipeline


@pytest.fixture
def gate(store):
    from songline.generation import GenerationGate

    return GenerationGate(store.credits)


@pytest.fixture
def outbox(mock_transport, store):
    from songline.messaging import Outbox

    return Outbox(mock_transport, store)


@pytest.fixture
def engine(mock_llm, store, gate, mock_pipeline, outbox):
    """Create DialogueEngine for testing."""
    from songline.dialogue import DialogueEngine

    return DialogueEngine(
        llm_provider=mock_llm,
        store=store,
        gate=gate,
        pipeline=mock_pipeline,
        outbox=outbox,
        generation_timeout=5.0,
    )


@pytest.fixture
def sent_texts(mock_transport):
    """Texts passed to the transport, in call order."""

    def _texts() -> list[str]:
        return [call.args[1] for call in mock_transport.send_text.await_args_list]

    return _texts
