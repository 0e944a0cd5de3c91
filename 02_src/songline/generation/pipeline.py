"""ArtifactPipeline: lyrics and style in, uploaded audio out."""

from typing import Protocol

import httpx

from ..logging_config import get_logger
from ..messaging import IMessagingTransport
from ..models import ArtifactResult, ErrorKind, GenerationRequest
from .minimax import AUDIO_MIME_TYPE, IMusicGenerator

logger = get_logger(__name__)


class IArtifactPipeline(Protocol):
    """Produce a song and stage it for delivery."""

    async def produce(self, request: GenerationRequest) -> ArtifactResult:
        """Synthesize, download and upload. Never raises for backend errors."""
        ...


class ArtifactPipeline:
    """Runs synthesis, download and media upload once, without retries."""

    def __init__(self, generator: IMusicGenerator, transport: IMessagingTransport):
        self._generator = generator
        self._transport = transport

    async def produce(self, request: GenerationRequest) -> ArtifactResult:
        """Synthesize, download and upload. Never raises for backend errors."""
        try:
            synthesis = await self._generator.synthesize(request.style, request.lyrics)
        except httpx.HTTPError as e:
            logger.error("Music backend request failed: %s", e)
            return ArtifactResult.failure(ErrorKind.GENERATION_FAILED, str(e))

        if not synthesis.ok:
            logger.warning("Music backend declined: %s", synthesis.error_message)
            return ArtifactResult.failure(
                ErrorKind.GENERATION_FAILED,
                synthesis.error_message or "No audio returned",
            )

        try:
            payload = await self._generator.download(synthesis.locator)
        except httpx.HTTPError as e:
            logger.error("Audio download failed: %s", e)
            return ArtifactResult.failure(ErrorKind.GENERATION_FAILED, str(e))

        if not payload:
            return ArtifactResult.failure(ErrorKind.GENERATION_FAILED, "Empty audio payload")

        upload = await self._transport.upload_media(payload, AUDIO_MIME_TYPE)
        if not upload.ok:
            logger.error("Audio upload failed: %s", upload.error)
            return ArtifactResult.failure(ErrorKind.DELIVERY_FAILED, upload.error)

        logger.info("Song ready: %d bytes, media %s", len(payload), upload.media_id)
        return ArtifactResult.success(upload.media_id, payload)
