"""Structured logging for the engine: request correlation, timing and masking of lead contact data."""

import logging
import time
import uuid
import re
import hashlib
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Iterator, Optional, Dict

from src.utils.logging_config import LoggingConfig, get_logger


_correlation_id_var: ContextVar[Optional[str]] = ContextVar('correlation_id', default=None)

# Attributes LogRecord already owns; ``extra`` keys with these names raise KeyError
_RESERVED_FIELDS = frozenset(vars(logging.LogRecord("", 0, "", 0, "", (), None))) | {"message", "asctime"}

_EMAIL_PATTERN = re.compile(r'[A-Z0-9._%+-]+@[A-Z0-9.-]+\.[A-Z]{2,}', re.IGNORECASE)
# Supabase anon and service keys are JWTs
_JWT_PATTERN = re.compile(r'eyJ[A-Za-z0-9_-]+\.[A-Za-z0-9_-]+\.[A-Za-z0-9_-]+')
_SECRET_PAIR_PATTERN = re.compile(
    r'(?i)(api[_-]?key|apikey|token|secret|password)[\s:=]+([A-Za-z0-9_-]{20,})'
)


def generate_correlation_id() -> str:
    return f"req_{uuid.uuid4().hex[:12]}"


def get_correlation_id() -> Optional[str]:
    return _correlation_id_var.get()


@contextmanager
def correlation_context(correlation_id: Optional[str] = None) -> Iterator[str]:
    """Tag every record logged inside the block with one request ID."""
    correlation_id = correlation_id or generate_correlation_id()
    token = _correlation_id_var.set(correlation_id)
    try:
        yield correlation_id
    finally:
        _correlation_id_var.reset(token)


def mask_email(email: Optional[str]) -> Optional[str]:
    """Keep the first letter and domain of a routing email, hash the rest."""
    if not email or not LoggingConfig.LOG_MASK_SENSITIVE:
        return email
    local, sep, domain = email.partition("@")
    if not sep:
        return "[REDACTED_EMAIL]"
    digest = hashlib.sha256(local.encode()).hexdigest()[:6]
    return f"{local[:1]}***{digest}@{domain}"


def mask_sensitive_data(text: str) -> str:
    """Scrub emails and credentials out of error strings before they are logged."""
    if not text or not LoggingConfig.LOG_MASK_SENSITIVE:
        return text
    text = _EMAIL_PATTERN.sub('[REDACTED_EMAIL]', text)
    text = _JWT_PATTERN.sub('[REDACTED_KEY]', text)
    return _SECRET_PAIR_PATTERN.sub(r'\1=[REDACTED]', text)


class StructuredLogger:
    """
    Wraps a stdlib logger so keyword arguments become record fields.

    Field names that clash with LogRecord attributes are prefixed with
    ``field_`` instead of failing the log call.
    """

    def __init__(self, logger: logging.Logger):
        self.logger = logger

    def _get_extra(self, **fields: Any) -> Dict[str, Any]:
        extra: Dict[str, Any] = {"timestamp": datetime.now(timezone.utc).isoformat()}
        correlation_id = get_correlation_id()
        if correlation_id:
            extra["correlation_id"] = correlation_id
        for key, value in fields.items():
            extra[f"field_{key}" if key in _RESERVED_FIELDS else key] = value
        return extra

    def debug(self, message: str, **fields: Any) -> None:
        self.logger.debug(message, extra=self._get_extra(**fields))

    def info(self, message: str, **fields: Any) -> None:
        self.logger.info(message, extra=self._get_extra(**fields))

    def warning(self, message: str, **fields: Any) -> None:
        self.logger.warning(message, extra=self._get_extra(**fields))

    def error(self, message: str, exc_info: bool = False, **fields: Any) -> None:
        self.logger.error(message, extra=self._get_extra(**fields), exc_info=exc_info)

    def exception(self, message: str, **fields: Any) -> None:
        self.logger.exception(message, extra=self._get_extra(**fields))


def get_structured_logger(name: str) -> StructuredLogger:
    return StructuredLogger(get_logger(name))


@contextmanager
def log_timing(operation_name: str, logger: Optional[StructuredLogger] = None, **context: Any):
    """Debug-log the duration of a block; warn when it passes the slow threshold."""
    log = logger or get_structured_logger(__name__)
    threshold_ms = LoggingConfig.LOG_SLOW_OPERATION_THRESHOLD_MS
    log.debug(f"Starting {operation_name}", operation=operation_name, **context)

    started = time.perf_counter()
    try:
        yield
    finally:
        elapsed_ms = round((time.perf_counter() - started) * 1000, 2)
        log.debug(
            f"Completed {operation_name}",
            operation=operation_name, processing_time_ms=elapsed_ms, **context,
        )
        if elapsed_ms > threshold_ms:
            log.warning(
                f"Slow operation: {operation_name}",
                operation=operation_name,
                processing_time_ms=elapsed_ms,
                threshold_ms=threshold_ms,
                **context,
            )


def setup_logging() -> logging.Logger:
    """Configure the root logger and return the engine's package logger."""
    LoggingConfig.setup_logging()
    return get_logger("src")
