"""
JSON logging for the API and the Celery workers.
Services log event names as the message ("payment_reconciled") and put
identifiers in ``extra``; only the whitelisted keys below are emitted.
"""
import json
import logging
import time
import uuid
from contextvars import ContextVar
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from homexrei.core.config import settings

request_id_var: ContextVar[str | None] = ContextVar("request_id", default=None)

# Third-party loggers that log every HTTP call at INFO
_NOISY_LOGGERS = ("stripe", "httpx", "httpcore")


class RequestIdFilter(logging.Filter):
    """Stamps the current request id on records that do not carry one."""

    def filter(self, record: logging.LogRecord) -> bool:
        if getattr(record, "request_id", None) is None:
            record.request_id = request_id_var.get()
        return True


class JsonFormatter(logging.Formatter):
    EXTRA_FIELDS = (
        # http
        "request_id", "path", "method", "status_code", "latency_ms",
        # payments / credits
        "user_id", "session_id", "payment_type", "payment_ref", "payment_status",
        "credits", "amount", "new_balance", "invoice_ids", "event_type",
        # marketplace records
        "deal_id", "insight_id", "offer_id", "booking_id", "outbox_id", "attempt",
        # circuit breaker
        "breaker_name", "old_state", "new_state",
        "error",
    )

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "env": settings.app_env,
        }
        entry.update(
            (name, getattr(record, name))
            for name in self.EXTRA_FIELDS
            if getattr(record, name, None) is not None
        )
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False, default=str)


def configure_logging(level: str | None = None) -> None:
    """Route the root logger to stderr (and LOG_FILE when set) as JSON lines."""
    formatter = JsonFormatter()
    request_filter = RequestIdFilter()

    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if settings.log_file:
        handlers.append(
            RotatingFileHandler(
                settings.log_file,
                maxBytes=settings.log_max_bytes,
                backupCount=settings.log_backup_count,
            )
        )
    for handler in handlers:
        handler.setFormatter(formatter)
        handler.addFilter(request_filter)

    root = logging.getLogger()
    root.setLevel((level or settings.log_level).upper())
    root.handlers = handlers
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Propagate (or mint) a request id and log one line per request."""

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get(settings.request_id_header) or uuid.uuid4().hex
        token = request_id_var.set(request_id)
        started = time.perf_counter()
        try:
            response = await call_next(request)
        finally:
            request_id_var.reset(token)
        response.headers[settings.request_id_header] = request_id
        logging.getLogger("homexrei.http").info(
            "request_completed",
            extra={
                "request_id": request_id,
                "path": request.url.path,
                "method": request.method,
                "status_code": response.status_code,
                "latency_ms": round((time.perf_counter() - started) * 1000, 1),
            },
        )
        return response
