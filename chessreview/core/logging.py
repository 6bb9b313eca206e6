from __future__ import annotations

import contextvars
import json
import logging
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Iterator

request_id_ctx: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "request_id", default=None
)
correlation_id_ctx: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "correlation_id", default=None
)
review_id_ctx: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "review_id", default=None
)

_CONTEXT_FIELDS = ("request_id", "correlation_id", "review_id")

# Attributes every LogRecord carries; anything else came in through `extra`.
_RECORD_ATTRS = set(
    logging.LogRecord("", logging.INFO, "", 0, "", None, None).__dict__
) | {"message", "asctime"}


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for field in _CONTEXT_FIELDS:
            payload[field] = getattr(record, field, None)

        payload.update(
            {
                key: value
                for key, value in record.__dict__.items()
                if key not in _RECORD_ATTRS
                and key not in _CONTEXT_FIELDS
                and not key.startswith("_")
            }
        )
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=True, default=str)


def configure_logging(level: int = logging.INFO) -> None:
    base_factory = logging.getLogRecordFactory()
    if getattr(base_factory, "_chessreview", False):
        base_factory = base_factory._base  # type: ignore[attr-defined]

    def record_factory(*args, **kwargs):
        record = base_factory(*args, **kwargs)
        record.request_id = request_id_ctx.get()
        record.correlation_id = correlation_id_ctx.get()
        record.review_id = review_id_ctx.get()
        return record

    record_factory._chessreview = True  # type: ignore[attr-defined]
    record_factory._base = base_factory  # type: ignore[attr-defined]
    logging.setLogRecordFactory(record_factory)

    logger = logging.getLogger()
    if logger.handlers:
        logger.setLevel(level)
        return

    handler = logging.StreamHandler()
    handler.setFormatter(JsonFormatter())
    logger.addHandler(handler)
    logger.setLevel(level)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


@contextmanager
def bind_review(review_id: str) -> Iterator[None]:
    token = review_id_ctx.set(review_id)
    try:
        yield
    finally:
        review_id_ctx.reset(token)
