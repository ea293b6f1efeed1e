"""Structured logging for the purchase path.

- The request correlation id is kept in a contextvar and stamped on every
  record emitted while the request is being handled.
- Secrets (API keys, connection URLs) are replaced with ``[REDACTED]``.
- Buyer identifiers (user ids, client addresses) are replaced with a short
  SHA-256 digest, so one buyer's requests can still be followed across log
  lines without the raw value ever being written.
- Records are rendered as one JSON object per line (or plain text), to
  stdout or a rotating file.
"""

from __future__ import annotations

import hashlib
import json
import logging
import sys
from contextvars import ContextVar
from datetime import datetime, timezone
from logging import LogRecord
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Iterable, Mapping

from app.core.config import LogSettings, settings

REDACTED = "[REDACTED]"

_request_id_var: ContextVar[str | None] = ContextVar("request_id", default=None)

# Fields whose values are dropped entirely
SENSITIVE_KEYS_DEFAULT: set[str] = {
    "api_key",
    "x-api-key",
    "authorization",
    "token",
    "secret",
    "password",
    "app_api_keys",
    "cookie",
    "set-cookie",
    "database_url",
    "db_url",
    "redis_url",
    "dsn",
}

# Fields whose values are replaced by their digest
IDENTIFIER_KEYS_DEFAULT: set[str] = {
    "user_id",
    "userid",
    "client_ip",
    "x-forwarded-for",
    "x-real-ip",
}

# Standard LogRecord attributes that are not structured payload
_RESERVED_ATTRS = frozenset(
    {
        "name",
        "msg",
        "args",
        "levelname",
        "levelno",
        "pathname",
        "filename",
        "module",
        "exc_info",
        "exc_text",
        "stack_info",
        "lineno",
        "funcName",
        "created",
        "msecs",
        "relativeCreated",
        "thread",
        "threadName",
        "processName",
        "process",
        "taskName",
        "stack",
    }
)


def set_request_id(request_id: str | None) -> None:
    _request_id_var.set(request_id)


def get_request_id() -> str | None:
    return _request_id_var.get()


def clear_request_id() -> None:
    _request_id_var.set(None)


def hash_identifier(value: str) -> str:
    """Return a short, stable digest of an identifier for safe logging.

    Args:
        value: Raw identifier (user id, IP address, rate limit key).

    Returns:
        First 16 hex characters of the SHA-256 digest.
    """

    return hashlib.sha256(value.encode()).hexdigest()[:16]


class _Scrubber:
    """Applies the redaction and hashing rules to structured values."""

    def __init__(
        self,
        sensitive_keys: Iterable[str] | None = None,
        identifier_keys: Iterable[str] | None = None,
    ) -> None:
        self.sensitive_keys = {k.lower() for k in (sensitive_keys or SENSITIVE_KEYS_DEFAULT)}
        self.identifier_keys = {k.lower() for k in (identifier_keys or IDENTIFIER_KEYS_DEFAULT)}

    def field(self, key: str, value: Any) -> Any:
        lowered = key.lower()
        if lowered in self.sensitive_keys:
            return REDACTED
        if lowered in self.identifier_keys and isinstance(value, str) and value:
            return hash_identifier(value)
        return self.value(value)

    def value(self, value: Any) -> Any:
        if isinstance(value, Mapping):
            return {k: self.field(str(k), v) for k, v in value.items()}
        if isinstance(value, (list, tuple)):
            return type(value)(self.value(v) for v in value)
        return value

    def record_extras(self, record: LogRecord) -> dict[str, Any]:
        # Records already scrubbed by SensitiveDataFilter are not hashed twice
        scrub = not getattr(record, "_scrubbed", False)
        return {
            key: self.field(key, value) if scrub else value
            for key, value in record.__dict__.items()
            if key not in _RESERVED_ATTRS and not key.startswith("_")
        }


class RequestIdFilter(logging.Filter):
    """Attach request_id from context when absent on the record."""

    def filter(self, record: LogRecord) -> bool:  # noqa: D401
        if getattr(record, "request_id", None) is None:
            request_id = get_request_id()
            if request_id:
                record.request_id = request_id
        return True


class SensitiveDataFilter(logging.Filter):
    """Scrub secrets and buyer identifiers on the record before formatting.

    Runs as a handler filter so that plain-text output is scrubbed too.
    """

    def __init__(
        self,
        sensitive_keys: Iterable[str] | None = None,
        identifier_keys: Iterable[str] | None = None,
    ) -> None:
        super().__init__()
        self._scrubber = _Scrubber(sensitive_keys, identifier_keys)

    def filter(self, record: LogRecord) -> bool:  # noqa: D401
        for key, value in self._scrubber.record_extras(record).items():
            setattr(record, key, value)
        record._scrubbed = True
        return True


class JsonFormatter(logging.Formatter):
    """Render a record as a single JSON line."""

    def __init__(
        self,
        *,
        sensitive_keys: Iterable[str] | None = None,
        identifier_keys: Iterable[str] | None = None,
        ensure_ascii: bool = True,
    ) -> None:
        super().__init__()
        self._scrubber = _Scrubber(sensitive_keys, identifier_keys)
        self.ensure_ascii = ensure_ascii

    def format(self, record: LogRecord) -> str:  # noqa: D401
        payload: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname.lower(),
            "logger": record.name,
            "message": record.getMessage(),
        }

        request_id = getattr(record, "request_id", None) or get_request_id()
        if request_id:
            payload["request_id"] = request_id

        payload.update(self._scrubber.record_extras(record))

        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)

        return json.dumps(payload, default=str, ensure_ascii=self.ensure_ascii)


def _build_handler(cfg: LogSettings) -> logging.Handler:
    if cfg.output.lower() != "file":
        return logging.StreamHandler(sys.stdout)

    file_path = Path(cfg.file_path or "logs/flash_sale.log")
    file_path.parent.mkdir(parents=True, exist_ok=True)
    if cfg.max_bytes:
        return RotatingFileHandler(
            file_path,
            maxBytes=cfg.max_bytes,
            backupCount=cfg.backup_count,
            encoding="utf-8",
        )
    return logging.FileHandler(file_path, encoding="utf-8")


def configure_logging(log_settings: LogSettings | None = None) -> None:
    """Install the scrubbing handler on the root logger.

    Args:
        log_settings: Optional log settings; defaults to ``settings.log``.
    """

    cfg = log_settings or settings.log

    handler = _build_handler(cfg)
    handler.addFilter(RequestIdFilter())
    handler.addFilter(SensitiveDataFilter())

    if cfg.format.lower() == "plain":
        handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s")
        )
    else:
        handler.setFormatter(JsonFormatter())

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(getattr(logging, cfg.level.upper(), logging.INFO))

    # Avoid double logging from uvicorn if it gets re-configured
    logging.getLogger("uvicorn").propagate = False
    logging.getLogger("uvicorn.access").propagate = False

    # SQL echo is controlled by DB_ECHO, not by the root level
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
