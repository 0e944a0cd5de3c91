"""Application bootstrap and lifecycle management."""

from typing import Protocol

from .config import Settings, resolve_db_path
from .conversation import ConversationStore
from .dialogue import DialogueEngine
from .events import EventBroadcaster
from .generation import (
    AUDIO_MIME_TYPE,
    ArtifactPipeline,
    GenerationGate,
    IMusicGenerator,
    MiniMaxGenerator,
)
from .llm import ILLMProvider, LLMProvider
from .logging_config import get_logger
from .messaging import (
    IMessagingTransport,
    InboundMessage,
    Outbox,
    StatusUpdate,
    WhatsAppTransport,
)
from .models import EventKind, Message, TurnOutcome
from .storage import IStorage, Storage

logger = get_logger(__name__)


class IApplication(Protocol):
    """Bootstrap and lifecycle."""

    async def start(self) -> None:
        """Initialize components in dependency order."""
        ...

    async def stop(self) -> None:
        """Shutdown in reverse order."""
        ...


class Application:
    """Owns all process-scoped state.

    Constructed once at startup and handed to the HTTP routers. Backends can
    be injected (tests); anything not injected is built from settings.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        db_path: str | None = None,
        llm_provider: ILLMProvider | None = None,
        transport: IMessagingTransport | None = None,
        generator: IMusicGenerator | None = None,
    ):
        self._settings = settings or Settings.from_env()
        self._db_path = resolve_db_path(
            db_path if db_path is not None else self._settings.database_url
        )

        self._llm = llm_provider
        self._transport = transport
        self._generator = generator
        self._bot_enabled = True
        self._owned_backends: list = []

        # Components (will be initialized in start())
        self._storage: IStorage | None = None
        self._broadcaster: EventBroadcaster | None = None
        self._store: ConversationStore | None = None
        self._gate: GenerationGate | None = None
        self._pipeline: ArtifactPipeline | None = None
        self._outbox: Outbox | None = None
        self._engine: DialogueEngine | None = None

    async def start(self) -> None:
        """Initialize components in dependency order."""
        logger.info("Starting application")
        settings = self._settings

        # 1. Storage and live events (no dependencies)
        self._storage = Storage(self._db_path)
        await self._storage.init()
        self._broadcaster = EventBroadcaster()
        logger.info("Storage initialized")

        # 2. ConversationStore (Storage + EventBroadcaster), replayed from disk
        self._store = ConversationStore(
            self._storage, self._broadcaster, default_credits=settings.default_credits
        )
        await self._store.load()

        # 3. External backends
        if self._llm is None:
            self._llm = LLMProvider(api_key=settings.anthropic_api_key, model=settings.llm_model)
        if self._transport is None:
            self._transport = WhatsAppTransport(
                access_token=settings.wa_access_token,
                phone_number_id=settings.wa_phone_number_id,
                api_version=settings.graph_api_version,
            )
            self._owned_backends.append(self._transport)
        if self._generator is None:
            self._generator = MiniMaxGenerator(
                api_key=settings.minimax_api_key,
                model=settings.minimax_model,
                timeout=settings.generation_timeout,
            )
            self._owned_backends.append(self._generator)
        logger.info("Backends initialized")

        # 4. Generation guard and pipeline
        self._gate = GenerationGate(self._store.credits)
        self._pipeline = ArtifactPipeline(self._generator, self._transport)

        # 5. Outbox and DialogueEngine
        self._outbox = Outbox(self._transport, self._store)
        self._engine = DialogueEngine(
            llm_provider=self._llm,
            store=self._store,
            gate=self._gate,
            pipeline=self._pipeline,
            outbox=self._outbox,
            history_limit=settings.history_limit,
            generation_timeout=settings.generation_timeout,
        )
        logger.info("All components initialized successfully")

    async def stop(self) -> None:
        """Shutdown in reverse order. Injected backends are left to their owner."""
        for backend in reversed(self._owned_backends):
            await backend.close()
        self._owned_backends.clear()
        if self._storage:
            await self._storage.close()
            logger.info("Storage closed")

    # Inbound
    async def handle_inbound(self, inbound: InboundMessage) -> TurnOutcome | None:
        """Record an inbound message and run a dialogue turn for it.

        Returns the turn outcome, or None when no turn ran (bot disabled or
        the message has no text).
        """
        await self.store.get_or_create(inbound.user_id, inbound.name)
        await self.store.append_message(
            inbound.user_id,
            Message.inbound(inbound.user_id, inbound.text, inbound.timestamp),
        )
        logger.info("Message from %s: %s", inbound.name, inbound.text[:100],
                    extra={"user_id": inbound.user_id})

        if not (self._bot_enabled and inbound.has_text):
            return None

        outcome = await self.engine.run_turn(inbound.user_id)
        logger.info("Turn finished: %s", outcome.value, extra={"user_id": inbound.user_id})
        return outcome

    def handle_status(self, status: StatusUpdate) -> None:
        """Forward a delivery status update to live subscribers."""
        self.broadcaster.emit(EventKind.STATUS, status.to_dict())

    # Administrative
    @property
    def bot_enabled(self) -> bool:
        return self._bot_enabled

    def set_bot_enabled(self, enabled: bool) -> None:
        self._bot_enabled = enabled
        logger.info("Bot %s", "enabled" if enabled else "disabled")

    async def send_manual(self, user_id: str, text: str) -> Message | None:
        """Send text on behalf of the operator."""
        await self.store.get_or_create(user_id)
        return await self.outbox.send_text(user_id, text)

    async def send_manual_audio(
        self, user_id: str, payload: bytes, mime_type: str = AUDIO_MIME_TYPE
    ) -> Message | None:
        """Upload and send an audio file on behalf of the operator."""
        upload = await self._transport.upload_media(payload, mime_type)
        if not upload.ok:
            logger.error("Manual audio upload failed: %s", upload.error, extra={"user_id": user_id})
            return None
        await self.store.get_or_create(user_id)
        return await self.outbox.send_audio(user_id, upload.media_id)

    @property
    def settings(self) -> Settings:
        return self._settings

    @property
    def storage(self) -> IStorage:
        """Get storage instance."""
        if not self._storage:
            raise RuntimeError("Application not started")
        return self._storage

    @property
    def store(self) -> ConversationStore:
        """Get conversation store instance."""
        if not self._store:
            raise RuntimeError("Application not started")
        return self._store

    @property
    def broadcaster(self) -> EventBroadcaster:
        """Get event broadcaster instance."""
        if not self._broadcaster:
            raise RuntimeError("Application not started")
        return self._broadcaster

    @property
    def gate(self) -> GenerationGate:
        if not self._gate:
            raise RuntimeError("Application not started")
        return self._gate

    @property
    def outbox(self) -> Outbox:
        if not self._outbox:
            raise RuntimeError("Application not started")
        return self._outbox

    @property
    def engine(self) -> DialogueEngine:
        """Get dialogue engine instance."""
        if not self._engine:
            raise RuntimeError("Application not started")
        return self._engine
