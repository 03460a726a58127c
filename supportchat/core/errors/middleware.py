"""
Exception handlers that turn errors into ``{"error": ..., "code": ...}``.

The safe message and HTTP status come from the registry. Internal detail
and context are logged at the registry severity and never returned.
"""

import logging
from typing import Dict, Tuple

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from supportchat.core.errors import SupportChatError
from supportchat.core.errors.registry import error_registry

logger = logging.getLogger(__name__)

FALLBACK_MESSAGE = "An unexpected error occurred."


def render_error(exc: SupportChatError, path: str) -> Tuple[int, Dict[str, str]]:
    """Log the error and return (status, body) for it."""
    fields = {
        "error.code": exc.code,
        "error.detail": exc.detail,
        "http.path": path,
        **{f"error.ctx.{key}": value for key, value in exc.context.items()},
    }

    entry = error_registry.get(exc.code)
    if entry is None:
        logger.error("unregistered_error_code", extra=fields)
        return 500, {"error": FALLBACK_MESSAGE, "code": exc.code}

    fields["error.retryable"] = entry.retryable
    logger.log(entry.log_level, entry.title, extra=fields)
    return entry.http_status, {"error": entry.safe_message, "code": entry.code}


async def supportchat_error_handler(request: Request, exc: SupportChatError) -> JSONResponse:
    status_code, body = render_error(exc, request.url.path)
    return JSONResponse(status_code=status_code, content=body)


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Body validation failures are SC-API-001 (400), not FastAPI's 422."""
    problems = "; ".join(
        f"{'.'.join(str(part) for part in err.get('loc', ()))}: {err.get('msg', 'invalid')}"
        for err in exc.errors()
    )
    return await supportchat_error_handler(request, SupportChatError("SC-API-001", detail=problems))
