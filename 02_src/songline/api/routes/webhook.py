"""WhatsApp webhook routes."""

import hmac

from fastapi import APIRouter, BackgroundTasks, Query, Request, Response

from ...app import Application
from ...errors import PersistenceFailure
from ...logging_config import get_logger
from ...messaging import WebhookBatch, parse_webhook

logger = get_logger(__name__)


def create_webhook_router(app: Application) -> APIRouter:
    """Create webhook router."""
    router = APIRouter(tags=["webhook"])

    async def process_batch(batch: WebhookBatch) -> None:
        for inbound in batch.messages:
            try:
                await app.handle_inbound(inbound)
            except PersistenceFailure as e:
                # Nothing was sent for this turn; the next message retries
                logger.error(
                    "Turn aborted, storage unavailable: %s", e,
                    extra={"user_id": inbound.user_id},
                )
            except Exception:
                logger.exception(
                    "Turn failed", extra={"user_id": inbound.user_id}
                )

        for status in batch.statuses:
            app.handle_status(status)

    @router.get("/wa")
    async def verify(
        mode: str | None = Query(None, alias="hub.mode"),
        token: str | None = Query(None, alias="hub.verify_token"),
        challenge: str | None = Query(None, alias="hub.challenge"),
    ) -> Response:
        """Webhook subscription handshake."""
        expected = app.settings.wa_verify_token
        if mode == "subscribe" and token and hmac.compare_digest(token, expected):
            return Response(content=challenge or "", media_type="text/plain")
        return Response(status_code=403)

    @router.post("/wa")
    async def receive(request: Request, background_tasks: BackgroundTasks) -> Response:
        """Acknowledge at once; process messages after the response is sent."""
        try:
            payload = await request.json()
        except ValueError:
            logger.warning("Webhook body is not JSON")
            return Response(status_code=200)

        if not isinstance(payload, dict):
            return Response(status_code=200)

        batch = parse_webhook(payload)
        logger.debug(
            "Webhook: %d messages, %d statuses", len(batch.messages), len(batch.statuses)
        )
        background_tasks.add_task(process_batch, batch)
        return Response(status_code=200)

    return router
