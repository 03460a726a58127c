"""
Support chat API entry point.

Run with:
    uvicorn supportchat.main:app
or
    supportchat serve
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from supportchat.config import settings
from supportchat.core.errors import SupportChatError
from supportchat.core.errors.middleware import supportchat_error_handler, validation_error_handler
from supportchat.core.errors.registry import error_registry
from supportchat.core.log_middleware import CorrelationMiddleware
from supportchat.core.structured_logging import APP_VERSION, setup_logging
from supportchat.routers import chat, contact, embeddings, health
from supportchat.services.embedding_service import close_embedding_service
from supportchat.services.knowledge_service import close_knowledge_service
from supportchat.services.llm_providers import close_http_client

# Initialize structured logging before any logger calls
setup_logging(settings)

logger = logging.getLogger(__name__)

API_TITLE = "Support Chat API"

TAGS_METADATA = [
    {"name": "health", "description": "Liveness probe. No authentication required."},
    {"name": "chat", "description": "Streaming chat for the website widget (normalized SSE frames)."},
    {"name": "embeddings", "description": "Store and search website content for chat enrichment."},
    {"name": "contact", "description": "Lead-capture form submissions."},
]


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.
    Handles startup and shutdown events.
    """
    logger.info(
        "Starting %s v%s (provider=%s, knowledge=%s)",
        API_TITLE, APP_VERSION, settings.llm_provider, settings.knowledge_enabled,
    )
    error_registry.load()
    if not settings.provider_api_key():
        logger.warning("No API key configured for provider %s; chat requests will fail", settings.llm_provider)

    yield

    await close_http_client()
    await close_knowledge_service()
    await close_embedding_service()
    logger.info("Shutdown complete")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""

    app = FastAPI(
        title=API_TITLE,
        version=APP_VERSION,
        openapi_tags=TAGS_METADATA,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # request_id + correlation_id in every log line
    app.add_middleware(CorrelationMiddleware)

    app.add_exception_handler(SupportChatError, supportchat_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)

    # Catch-all handler so unhandled exceptions return JSON (not bare text)
    @app.exception_handler(Exception)
    async def _unhandled_exception_handler(request: Request, exc: Exception):
        logger.error("Unhandled exception on %s %s: %s", request.method, request.url.path, exc, exc_info=True)
        return JSONResponse(
            status_code=500,
            content={"error": "Internal server error"},
        )

    app.include_router(health.router, prefix="/api", tags=["health"])
    app.include_router(chat.router, prefix="/api/chat", tags=["chat"])
    app.include_router(embeddings.router, prefix="/api/embeddings", tags=["embeddings"])
    app.include_router(contact.router, prefix="/api/contact", tags=["contact"])

    return app


# Create the app instance
app = create_app()
