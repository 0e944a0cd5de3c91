"""WhatsApp Cloud API transport."""

from dataclasses import dataclass, field
from typing import Protocol

import httpx

from ..logging_config import get_logger

logger = get_logger(__name__)

GRAPH_URL = "https://graph.facebook.com"


@dataclass
class DeliveryResult:
    """Outcome of one transport call."""

    message_id: str | None = None
    media_id: str | None = None
    error: str | None = None
    response: dict = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.error is None and bool(self.message_id or self.media_id)


class IMessagingTransport(Protocol):
    """Outbound side of the messaging channel."""

    async def send_text(self, to: str, text: str, channel: str | None = None) -> DeliveryResult:
        """Send a text message."""
        ...

    async def upload_media(
        self, payload: bytes, mime_type: str, channel: str | None = None
    ) -> DeliveryResult:
        """Upload media and return its handle in media_id."""
        ...

    async def send_audio(
        self, to: str, media_id: str, channel: str | None = None
    ) -> DeliveryResult:
        """Send previously uploaded audio."""
        ...


def _error_from(data: dict, status_code: int) -> str:
    error = data.get("error")
    if isinstance(error, dict):
        return error.get("message") or f"HTTP {status_code}"
    return f"HTTP {status_code}"


class WhatsAppTransport:
    """WhatsApp Cloud API client.

    Transport failures are returned as DeliveryResult.error, never raised.
    `channel` is the sending phone-number ID; it defaults to the configured one.
    """

    def __init__(
        self,
        access_token: str,
        phone_number_id: str,
        api_version: str = "v21.0",
        client: httpx.AsyncClient | None = None,
    ):
        self._phone_number_id = phone_number_id
        self._base_url = f"{GRAPH_URL}/{api_version}"
        self._headers = {"Authorization": f"Bearer {access_token}"}
        self._client = client or httpx.AsyncClient(timeout=30.0)

    def _url(self, channel: str | None, endpoint: str) -> str:
        return f"{self._base_url}/{channel or self._phone_number_id}/{endpoint}"

    async def _post(self, url: str, **kwargs) -> tuple[dict, str | None]:
        try:
            response = await self._client.post(url, headers=self._headers, **kwargs)
        except httpx.HTTPError as e:
            return {}, f"Transport error: {e}"

        try:
            data = response.json()
        except ValueError:
            data = {}

        if response.is_error or "error" in data:
            return data, _error_from(data, response.status_code)
        return data, None

    async def _send_message(self, to: str, body: dict, channel: str | None) -> DeliveryResult:
        data, error = await self._post(
            self._url(channel, "messages"),
            json={"messaging_product": "whatsapp", "to": to, **body},
        )
        if error:
            logger.error("Send to %s failed: %s", to, error)
            return DeliveryResult(error=error, response=data)

        messages = data.get("messages") or [{}]
        message_id = messages[0].get("id")
        if not message_id:
            return DeliveryResult(error="No message id in response", response=data)

        logger.debug("Sent %s to %s: %s", body.get("type"), to, message_id)
        return DeliveryResult(message_id=message_id, response=data)

    async def send_text(self, to: str, text: str, channel: str | None = None) -> DeliveryResult:
        """Send a text message."""
        return await self._send_message(
            to, {"type": "text", "text": {"body": text}}, channel
        )

    async def upload_media(
        self, payload: bytes, mime_type: str, channel: str | None = None
    ) -> DeliveryResult:
        """Upload media and return its handle in media_id."""
        extension = "mp3" if mime_type == "audio/mpeg" else mime_type.split("/")[-1]
        data, error = await self._post(
            self._url(channel, "media"),
            data={"messaging_product": "whatsapp", "type": mime_type},
            files={"file": (f"audio.{extension}", payload, mime_type)},
        )
        if error:
            logger.error("Media upload failed: %s", error)
            return DeliveryResult(error=error, response=data)

        media_id = data.get("id")
        if not media_id:
            return DeliveryResult(error="No media id in response", response=data)
        return DeliveryResult(media_id=media_id, response=data)

    async def send_audio(
        self, to: str, media_id: str, channel: str | None = None
    ) -> DeliveryResult:
        """Send previously uploaded audio."""
        return await self._send_message(
            to, {"type": "audio", "audio": {"id": media_id}}, channel
        )

    async def close(self) -> None:
        await self._client.aclose()
