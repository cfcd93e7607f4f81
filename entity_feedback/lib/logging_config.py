"""Logging setup for the Entity Feedback backend.

Everything goes to a single stdout handler. Records are rendered as one JSON
object per line unless LOG_FORMAT=simple, which gives plain text for local
runs. The calling user's ref and the request id are attached to every record
from contextvars, so service code can log with a bare message:

    logger = logging.getLogger(__name__)
    logger.info("Recorded rating", extra={"entity_ref": entity_ref})

``extra`` keys show up as top-level JSON fields.
"""

import json
import logging
import sys
import time
import uuid
from datetime import datetime, timezone
from typing import Any, Dict

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from entity_feedback.config import get_log_format, get_log_level
from entity_feedback.lib.context import (
    get_current_request_id,
    get_current_user_ref,
    set_current_request_id,
    set_current_user_ref,
)

REQUEST_ID_HEADER = "X-Request-ID"

CONTEXT_FIELDS = ("request_id", "user_ref")

_CONTEXT_GETTERS = {
    "request_id": get_current_request_id,
    "user_ref": get_current_user_ref,
}

# Attributes every LogRecord carries; anything else on a record came from ``extra``
_RESERVED_ATTRS = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime"} | set(CONTEXT_FIELDS)

_QUIET_LOGGERS = ("httpcore", "httpx", "botocore", "urllib3", "uvicorn.access")


class ContextFilter(logging.Filter):
    """Copy request context onto records that do not already carry it."""

    def filter(self, record: logging.LogRecord) -> bool:
        for field in CONTEXT_FIELDS:
            if getattr(record, field, None) is None:
                setattr(record, field, _CONTEXT_GETTERS[field]())
        return True


def _record_time(record: logging.LogRecord) -> datetime:
    return datetime.fromtimestamp(record.created, tz=timezone.utc)


class JsonFormatter(logging.Formatter):
    """One JSON object per record."""

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": _record_time(record).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for field in CONTEXT_FIELDS:
            entry[field] = getattr(record, field, None)

        if record.exc_info and record.exc_info[1] is not None:
            entry["exc_info"] = self.formatException(record.exc_info)

        for key, value in vars(record).items():
            if key in _RESERVED_ATTRS or key in entry:
                continue
            entry[key] = value if _is_json_safe(value) else str(value)

        return json.dumps(entry, default=str)


def _is_json_safe(value: Any) -> bool:
    try:
        json.dumps(value)
    except (TypeError, ValueError):
        return False
    return True


class SimpleFormatter(logging.Formatter):
    """``<utc time> <LEVEL> <logger> - <message> [context]`` for terminals."""

    def format(self, record: logging.LogRecord) -> str:
        context = ", ".join(
            f"{field}={getattr(record, field)}"
            for field in CONTEXT_FIELDS
            if getattr(record, field, None)
        )
        line = "{} {:<8} {} - {}".format(
            _record_time(record).strftime("%Y-%m-%d %H:%M:%S"),
            record.levelname,
            record.name,
            record.getMessage(),
        )
        if context:
            line += f" [{context}]"

        if record.exc_info and record.exc_info[1] is not None:
            line += "\n" + self.formatException(record.exc_info)

        return line


def configure_logging() -> None:
    """Install the stdout handler on the root logger.

    Safe to call more than once; earlier root handlers are replaced.
    """
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(SimpleFormatter() if get_log_format() == "simple" else JsonFormatter())
    handler.addFilter(ContextFilter())

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(getattr(logging, get_log_level(), logging.INFO))

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Tag each request with an id, taken from X-Request-ID or generated."""

    async def dispatch(self, request: Request, call_next) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex[:8]
        set_current_request_id(request_id)
        set_current_user_ref(None)

        started = time.perf_counter()
        response = await call_next(request)
        logging.getLogger(__name__).debug(
            '%s %s -> %s', request.method, request.url.path, response.status_code,
            extra={"duration_ms": round((time.perf_counter() - started) * 1000, 1)},
        )

        response.headers[REQUEST_ID_HEADER] = request_id
        return response


def create_request_context_middleware(app) -> None:
    """Register RequestContextMiddleware on a FastAPI app."""
    app.add_middleware(RequestContextMiddleware)
