from __future__ import annotations

import logging
import re
import time
from typing import Optional
from uuid import uuid4

from starlette.datastructures import Headers
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from chessreview.core.logging import correlation_id_ctx, get_logger, request_id_ctx

logger = get_logger("chessreview.request")

REQUEST_ID_HEADER = "X-Request-ID"
CORRELATION_ID_HEADER = "X-Correlation-ID"

# Caller ids end up in every log line; anything else is replaced.
_ID_PATTERN = re.compile(r"^[A-Za-z0-9._:-]{1,128}$")


def _clean_id(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value if _ID_PATTERN.match(value) else None


def resolve_ids(headers: Headers) -> tuple[str, str]:
    request_id = _clean_id(headers.get(REQUEST_ID_HEADER)) or uuid4().hex
    correlation_id = _clean_id(headers.get(CORRELATION_ID_HEADER)) or request_id
    return request_id, correlation_id


def _level_for(status_code: int) -> int:
    if status_code >= 500:
        return logging.ERROR
    if status_code >= 400:
        return logging.WARNING
    return logging.INFO


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Tags every request with request and correlation ids and logs its outcome."""

    async def dispatch(self, request: Request, call_next) -> Response:
        request_id, correlation_id = resolve_ids(request.headers)
        tokens = (request_id_ctx.set(request_id), correlation_id_ctx.set(correlation_id))
        request.state.request_id = request_id

        started = time.perf_counter()
        route = {"method": request.method, "path": request.url.path}
        try:
            response = await call_next(request)
        except Exception:
            logger.exception(
                "request.error",
                extra={"event": "request.error", "duration_ms": _elapsed_ms(started), **route},
            )
            raise
        else:
            response.headers[REQUEST_ID_HEADER] = request_id
            response.headers[CORRELATION_ID_HEADER] = correlation_id
            logger.log(
                _level_for(response.status_code),
                "request.complete",
                extra={
                    "event": "request.complete",
                    "status_code": response.status_code,
                    "duration_ms": _elapsed_ms(started),
                    **route,
                },
            )
            return response
        finally:
            request_id_ctx.reset(tokens[0])
            correlation_id_ctx.reset(tokens[1])


def _elapsed_ms(started: float) -> int:
    return int((time.perf_counter() - started) * 1000)
