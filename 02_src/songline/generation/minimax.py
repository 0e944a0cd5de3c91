"""MiniMax music generation client."""

from dataclasses import dataclass
from typing import Protocol

import httpx

from ..logging_config import get_logger

logger = get_logger(__name__)

MINIMAX_URL = "https://api.minimax.io/v1/music_generation"

# Fixed output: 44.1 kHz, 256 kbps mp3
AUDIO_SETTING = {"sample_rate": 44100, "bitrate": 256000, "format": "mp3"}
AUDIO_MIME_TYPE = "audio/mpeg"


@dataclass
class SynthesisResult:
    """Either a downloadable locator or the backend's error message."""

    locator: str | None = None
    error_message: str | None = None

    @property
    def ok(self) -> bool:
        return bool(self.locator) and self.locator.startswith("http")


def _field(body: dict, section: str, key: str):
    """body[section][key], or None when either level is not an object."""
    nested = body.get(section)
    if not isinstance(nested, dict):
        return None
    return nested.get(key)


class IMusicGenerator(Protocol):
    """Audio generation backend."""

    async def synthesize(self, style: str, lyrics: str) -> SynthesisResult:
        """Request a song. Raises httpx.HTTPError on transport failure."""
        ...

    async def download(self, locator: str) -> bytes:
        """Fetch the generated audio. Raises httpx.HTTPError on failure."""
        ...


class MiniMaxGenerator:
    """MiniMax music-generation API client."""

    def __init__(
        self,
        api_key: str,
        model: str = "music-2.5",
        client: httpx.AsyncClient | None = None,
        timeout: float = 300.0,
    ):
        self._api_key = api_key
        self._model = model
        self._client = client or httpx.AsyncClient(timeout=timeout)

    async def synthesize(self, style: str, lyrics: str) -> SynthesisResult:
        """Request a song. Raises httpx.HTTPError on transport failure."""
        logger.info("Generating music: style=%r lyrics=%r", style, lyrics[:50])

        response = await self._client.post(
            MINIMAX_URL,
            headers={"Authorization": f"Bearer {self._api_key}"},
            json={
                "model": self._model,
                "prompt": style,
                "lyrics": lyrics,
                "audio_setting": AUDIO_SETTING,
                "output_format": "url",
            },
        )

        try:
            data = response.json()
        except ValueError:
            return SynthesisResult(
                error_message=f"Invalid response from music backend (HTTP {response.status_code})"
            )

        if not isinstance(data, dict):
            return SynthesisResult(error_message="Unexpected response from music backend")

        audio_url = _field(data, "data", "audio")
        if isinstance(audio_url, str) and audio_url.startswith("http"):
            return SynthesisResult(locator=audio_url)

        status_msg = _field(data, "base_resp", "status_msg")
        if not isinstance(status_msg, str) or not status_msg:
            status_msg = "Failed to generate music"
        return SynthesisResult(error_message=status_msg)

    async def download(self, locator: str) -> bytes:
        """Fetch the generated audio. Raises httpx.HTTPError on failure."""
        response = await self._client.get(locator)
        response.raise_for_status()
        return response.content

    async def close(self) -> None:
        await self._client.aclose()
