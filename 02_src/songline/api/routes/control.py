"""Control API routes: bot switch and manual sends."""

from fastapi import APIRouter, File, Form, UploadFile
from fastapi.responses import JSONResponse
from pydantic import BaseModel, StrictBool

from ...app import Application
from ...errors import DeliveryFailed
from ...generation import AUDIO_MIME_TYPE


class BotState(BaseModel):
    """Bot enabled flag."""

    enabled: StrictBool


class SendRequest(BaseModel):
    """Request model for a manual text send."""

    to: str
    text: str


def _missing(message: str) -> JSONResponse:
    return JSONResponse(status_code=400, content={"error": message, "reason": "invalid_input"})


def create_control_router(app: Application) -> APIRouter:
    """Create control router."""
    router = APIRouter(prefix="/api", tags=["control"])

    @router.get("/bot", response_model=BotState)
    async def get_bot() -> dict:
        return {"enabled": app.bot_enabled}

    @router.post("/bot", response_model=BotState)
    async def set_bot(state: BotState) -> dict:
        app.set_bot_enabled(state.enabled)
        return {"enabled": app.bot_enabled}

    @router.post("/send")
    async def send(request: SendRequest):
        """Send a text message as the operator."""
        if not request.to or not request.text:
            return _missing("Missing 'to' or 'text'")

        message = await app.send_manual(request.to, request.text)
        if message is None:
            raise DeliveryFailed(f"Could not deliver message to {request.to}")
        return {"phone": request.to, "message": message.to_dict()}

    @router.post("/send-audio")
    async def send_audio(to: str = Form(""), audio: UploadFile | None = File(None)):
        """Upload and send an audio file as the operator."""
        if not to or audio is None:
            return _missing("Missing 'to' or audio file")

        payload = await audio.read()
        message = await app.send_manual_audio(
            to, payload, audio.content_type or AUDIO_MIME_TYPE
        )
        if message is None:
            raise DeliveryFailed(f"Could not deliver audio to {to}")
        return {"phone": to, "message": message.to_dict()}

    return router
