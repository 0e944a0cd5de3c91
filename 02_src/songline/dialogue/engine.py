"""DialogueEngine implementation."""

import asyncio
from typing import Protocol

from ..conversation import IConversationStore
from ..errors import AlreadyGenerating, LLMError, MalformedToolArguments, QuotaExhausted
from ..generation import GenerationGate, IArtifactPipeline
from ..llm import ILLMProvider
from ..logging_config import get_logger
from ..messaging import Outbox
from ..models import ArtifactResult, ErrorKind, GenerationRequest, Message, TurnOutcome
from .prompts import (
    ACK_TEXT,
    APOLOGY_PROMPT,
    CLOSING_TEXT,
    FALLBACK_APOLOGY_TEXT,
    QUOTA_EXHAUSTED_TEXT,
    SYSTEM_PROMPT,
)
from .tools import GENERATE_SONG_TOOL, first_generation_call, parse_generation_request

logger = get_logger(__name__)

HISTORY_LIMIT = 15


def build_transcript(history: list[Message]) -> list[dict]:
    """Map messages to model roles: ours are assistant, the user's are user."""
    return [
        {
            "role": "assistant" if msg.direction == "outbound" else "user",
            "content": msg.content,
        }
        for msg in history
    ]


class IDialogueEngine(Protocol):
    """Runs one dialogue turn per inbound message."""

    async def run_turn(self, user_id: str) -> TurnOutcome:
        """Ask the model what to do next for this user, and do it."""
        ...


class DialogueEngine:
    """Decides between replying and generating a song, and carries it out.

    A turn keeps no state of its own beyond the stored conversation. Model
    and backend failures end the turn; PersistenceFailure propagates.
    """

    def __init__(
        self,
        llm_provider: ILLMProvider,
        store: IConversationStore,
        gate: GenerationGate,
        pipeline: IArtifactPipeline,
        outbox: Outbox,
        history_limit: int = HISTORY_LIMIT,
        generation_timeout: float = 300.0,
    ):
        self._llm = llm_provider
        self._store = store
        self._gate = gate
        self._pipeline = pipeline
        self._outbox = outbox
        self._history_limit = history_limit
        self._generation_timeout = generation_timeout

    async def run_turn(self, user_id: str) -> TurnOutcome:
        """Ask the model what to do next for this user, and do it."""
        history = self._store.recent_history(user_id, self._history_limit)
        transcript = build_transcript(history)

        try:
            response = await self._llm.complete(
                messages=transcript,
                system=SYSTEM_PROMPT,
                tools=[GENERATE_SONG_TOOL],
            )
        except LLMError as e:
            logger.error("Model call failed: %s", e, extra={"user_id": user_id})
            return TurnOutcome.MODEL_ERROR

        call = first_generation_call(response.tool_calls)
        if call is not None:
            if len(response.tool_calls) > 1:
                logger.warning(
                    "Model returned %d tool calls, honoring the first generate_song",
                    len(response.tool_calls),
                    extra={"user_id": user_id},
                )
            try:
                request = parse_generation_request(call.arguments)
            except MalformedToolArguments as e:
                logger.warning("Ignoring tool call: %s", e, extra={"user_id": user_id})
                return TurnOutcome.MALFORMED_TOOL_CALL
            return await self._generate(user_id, request)

        if response.text:
            sent = await self._outbox.send_text(user_id, response.text)
            return TurnOutcome.REPLIED if sent else TurnOutcome.DELIVERY_FAILED

        logger.info("Empty model response, nothing sent", extra={"user_id": user_id})
        return TurnOutcome.NO_RESPONSE

    async def _generate(self, user_id: str, request: GenerationRequest) -> TurnOutcome:
        try:
            with self._gate.hold(user_id):
                return await self._produce_and_deliver(user_id, request)
        except AlreadyGenerating:
            # The running job sends its own result
            logger.info("Generation already in flight", extra={"user_id": user_id})
            return TurnOutcome.ALREADY_GENERATING
        except QuotaExhausted:
            logger.info("Generation denied, no credits", extra={"user_id": user_id})
            await self._outbox.send_text(user_id, QUOTA_EXHAUSTED_TEXT)
            return TurnOutcome.QUOTA_EXHAUSTED

    async def _produce_and_deliver(
        self, user_id: str, request: GenerationRequest
    ) -> TurnOutcome:
        await self._outbox.send_text(user_id, ACK_TEXT)

        try:
            result = await asyncio.wait_for(
                self._pipeline.produce(request), timeout=self._generation_timeout
            )
        except asyncio.TimeoutError:
            logger.error(
                "Generation timed out after %.0fs", self._generation_timeout,
                extra={"user_id": user_id},
            )
            result = ArtifactResult.failure(
                ErrorKind.GENERATION_FAILED, "Generation timed out"
            )

        if result.ok:
            delivered = await self._outbox.send_audio(user_id, result.media_id)
            if delivered is not None:
                remaining = await self._store.debit_credit(user_id)
                await self._outbox.send_text(user_id, CLOSING_TEXT)
                logger.info(
                    "Song delivered, %d credits left", remaining,
                    extra={"user_id": user_id},
                )
                return TurnOutcome.GENERATED
            result = ArtifactResult.failure(
                ErrorKind.DELIVERY_FAILED, "Audio message could not be sent"
            )

        await self._apologize(user_id, result)
        if result.error_kind == ErrorKind.DELIVERY_FAILED:
            return TurnOutcome.DELIVERY_FAILED
        return TurnOutcome.GENERATION_FAILED

    async def _apologize(self, user_id: str, result: ArtifactResult) -> None:
        """Send a short model-written apology, or a fixed one if that fails."""
        text = None
        try:
            response = await self._llm.complete(
                messages=[{"role": "user", "content": f"Error: {result.error_message}"}],
                system=APOLOGY_PROMPT,
                max_tokens=200,
            )
            text = response.text
        except LLMError as e:
            logger.error("Apology model call failed: %s", e, extra={"user_id": user_id})

        await self._outbox.send_text(user_id, text or FALLBACK_APOLOGY_TEXT)
