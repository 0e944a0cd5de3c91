"""Conversation dashboard routes."""

from fastapi import APIRouter
from pydantic import BaseModel, Field

from ...app import Application


class CreditsRequest(BaseModel):
    """Request model for a credit top-up."""

    amount: int = Field(ge=0)


class CreditsResponse(BaseModel):
    """Response model for credits."""

    phone: str
    credits: int


def create_conversations_router(app: Application) -> APIRouter:
    """Create conversations router."""
    router = APIRouter(prefix="/api/conversations", tags=["conversations"])

    @router.get("")
    async def list_conversations() -> list[dict]:
        """Summaries with last message and unread count."""
        return [conv.summary() for conv in app.store.list_conversations()]

    @router.get("/{user_id}")
    async def get_conversation(user_id: str) -> dict:
        """Full history; marks inbound messages read."""
        conversation = app.store.get(user_id)
        if conversation is None:
            return {"phone": user_id, "name": user_id, "messages": []}

        await app.store.mark_read(user_id)
        return conversation.to_dict()

    @router.post("/{user_id}/credits", response_model=CreditsResponse)
    async def add_credits(user_id: str, request: CreditsRequest) -> dict:
        """Administrative credit top-up."""
        await app.store.get_or_create(user_id)
        remaining = await app.store.add_credits(user_id, request.amount)
        return {"phone": user_id, "credits": remaining}

    return router
