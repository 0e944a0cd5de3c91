"""FastAPI application setup."""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from ..app import Application
from ..errors import SonglineError
from ..logging_config import get_logger
from .routes import control, conversations, events, webhook

logger = get_logger(__name__)


def error_payload(message: str, reason: str) -> dict:
    """Structured error body for dashboard callers."""
    return {"error": message, "reason": reason}


def create_fastapi_app(application: Application | None = None) -> FastAPI:
    """Create and configure FastAPI application.

    The Application instance is created here (unless given) and passed by
    reference to every router.
    """
    application = application or Application()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Manage application lifespan."""
        await application.start()
        yield
        await application.stop()

    fastapi_app = FastAPI(
        title="Songline API",
        description="WhatsApp song generation bot",
        version="0.1.0",
        lifespan=lifespan,
    )
    fastapi_app.state.application = application

    fastapi_app.add_middleware(
        CORSMiddleware,
        allow_origins=["http://localhost:5173", "http://localhost:5174"],  # Vite default
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @fastapi_app.exception_handler(SonglineError)
    async def songline_error_handler(request: Request, exc: SonglineError) -> JSONResponse:
        logger.error("%s on %s: %s", exc.reason, request.url.path, exc.message)
        return JSONResponse(
            status_code=exc.status_code, content=error_payload(exc.message, exc.reason)
        )

    @fastapi_app.exception_handler(RequestValidationError)
    async def validation_error_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        fields = ", ".join(".".join(str(p) for p in err["loc"]) for err in exc.errors())
        return JSONResponse(
            status_code=422,
            content=error_payload(f"Invalid request: {fields}", "invalid_input"),
        )

    @fastapi_app.get("/health")
    async def health() -> dict:
        return {"status": "ok"}

    fastapi_app.include_router(webhook.create_webhook_router(application))
    fastapi_app.include_router(conversations.create_conversations_router(application))
    fastapi_app.include_router(control.create_control_router(application))
    fastapi_app.include_router(events.create_events_router(application))

    return fastapi_app
