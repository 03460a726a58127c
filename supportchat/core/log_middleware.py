"""
Request correlation for the chat API.

Each request gets a request_id and a correlation_id (taken from the
x-request-id / x-correlation-id headers when the widget sends them),
bound into contextvars for the duration of the request and echoed back as
response headers.

Streamed chat bodies are produced after `dispatch` returns, so their body
iterator is wrapped: the ids stay bound while frames are relayed, and the
`request_completed` line is written when the stream ends, with the full
duration and the number of bytes sent.
"""
from __future__ import annotations

import logging
import time
import uuid
from typing import AsyncIterator, Optional, Tuple

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from supportchat.core.structured_logging import correlation_id_var, request_id_var

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "x-request-id"
CORRELATION_ID_HEADER = "x-correlation-id"

Ids = Tuple[Optional[str], Optional[str]]


def _bind(ids: Ids) -> Ids:
    """Set both ids; return the previous values for `_bind(previous)`."""
    previous = (request_id_var.get(), correlation_id_var.get())
    request_id_var.set(ids[0])
    correlation_id_var.set(ids[1])
    return previous


def _log_completed(request: Request, status_code: Optional[int], started: float, **fields) -> None:
    logger.info(
        "request_completed",
        extra={
            "http.method": request.method,
            "http.path": request.url.path,
            "http.status_code": status_code,
            "duration_ms": round((time.perf_counter() - started) * 1000, 2),
            **fields,
        },
    )


class CorrelationMiddleware(BaseHTTPMiddleware):
    """Bind request ids into logging context and log one line per request."""

    async def dispatch(self, request: Request, call_next) -> Response:
        ids = (
            request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex,
            request.headers.get(CORRELATION_ID_HEADER) or uuid.uuid4().hex,
        )
        started = time.perf_counter()

        previous = _bind(ids)
        try:
            response = await call_next(request)
        except Exception:
            _log_completed(request, 500, started)
            raise
        finally:
            _bind(previous)

        response.headers[REQUEST_ID_HEADER] = ids[0]
        response.headers[CORRELATION_ID_HEADER] = ids[1]

        if response.headers.get("content-type", "").startswith("text/event-stream"):
            response.body_iterator = self._relay(response.body_iterator, request, response.status_code, ids, started)
        else:
            _log_completed(request, response.status_code, started)
        return response

    async def _relay(
        self,
        body: AsyncIterator[bytes],
        request: Request,
        status_code: int,
        ids: Ids,
        started: float,
    ) -> AsyncIterator[bytes]:
        sent = 0
        completed = False
        previous = _bind(ids)
        try:
            async for chunk in body:
                sent += len(chunk)
                yield chunk
            completed = True
        finally:
            _log_completed(
                request,
                status_code,
                started,
                **{"stream.bytes": sent, "stream.completed": completed},
            )
            _bind(previous)
