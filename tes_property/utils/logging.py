"""
Structured logging for inquiry, calendar and storage operations.

Keyword arguments passed to a `StructuredLogger` call become JSON fields.
Every record made inside `correlation_context()` carries the same
`correlation_id`, so one cron run or one inquiry submission can be followed
across modules. Customer contact details go through `mask_email` /
`mask_phone` before they are logged.
"""

import logging
import re
import time
import uuid
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any, Dict, Iterator, Optional

from tes_property.utils.logging_config import LoggingConfig, get_logger

_correlation_id: ContextVar[Optional[str]] = ContextVar("correlation_id", default=None)

EMAIL_PATTERN = re.compile(r"[A-Z0-9._%+-]+@[A-Z0-9.-]+\.[A-Z]{2,}", re.IGNORECASE)
# Local (0917 123 4567) and international (+63 917 123 4567) mobile numbers
PHONE_PATTERN = re.compile(r"(?<!\d)\+?\d[\d\s().-]{7,}\d")


def generate_correlation_id() -> str:
    """New request id such as req_1a2b3c4d5e6f."""
    return f"req_{uuid.uuid4().hex[:12]}"


def get_correlation_id() -> Optional[str]:
    """Id of the enclosing correlation_context, if any."""
    return _correlation_id.get()


def set_correlation_id(correlation_id: Optional[str]) -> None:
    """Set the id without a context manager; prefer correlation_context."""
    _correlation_id.set(correlation_id)


@contextmanager
def correlation_context(correlation_id: Optional[str] = None) -> Iterator[str]:
    """Tag every log record in the block with one id, restoring the previous id afterwards."""
    correlation_id = correlation_id or generate_correlation_id()
    token = _correlation_id.set(correlation_id)
    try:
        yield correlation_id
    finally:
        _correlation_id.reset(token)


def mask_sensitive_data(text: Optional[str]) -> Optional[str]:
    """Replace email addresses and phone numbers in free text."""
    if not text or not LoggingConfig.LOG_MASK_SENSITIVE:
        return text
    text = EMAIL_PATTERN.sub("[REDACTED_EMAIL]", text)
    return PHONE_PATTERN.sub("[REDACTED_PHONE]", text)


def mask_email(email: Optional[str]) -> Optional[str]:
    """j***@example.com"""
    if not email or not LoggingConfig.LOG_MASK_SENSITIVE:
        return email

    local, at, domain = email.partition("@")
    if not at:
        return "[REDACTED_EMAIL]"
    return f"{local[:1]}***@{domain}"


def mask_phone(phone: Optional[str]) -> Optional[str]:
    """Keep only the last four digits: ***-4567."""
    if not phone or not LoggingConfig.LOG_MASK_SENSITIVE:
        return phone

    digits = re.sub(r"\D", "", phone)
    if len(digits) < 4:
        return "[REDACTED_PHONE]"
    return f"***-{digits[-4:]}"


def sanitize_message_text(text: Optional[str], max_length: int = 200) -> Optional[str]:
    """Shortened, masked preview of customer-written text, or None when previews are off."""
    if not text or not LoggingConfig.LOG_INQUIRY_MESSAGES:
        return None
    if len(text) > max_length:
        text = text[:max_length] + "..."
    return mask_sensitive_data(text)


class StructuredLogger:
    """Wraps a stdlib logger; keyword arguments are attached as `extra` fields."""

    def __init__(self, logger: logging.Logger):
        self.logger = logger

    def _fields(self, **kwargs: Any) -> Dict[str, Any]:
        fields: Dict[str, Any] = {}
        correlation_id = get_correlation_id()
        if correlation_id:
            fields["correlation_id"] = correlation_id
        fields.update(kwargs)
        return fields

    def debug(self, message: str, **kwargs: Any) -> None:
        """Log at debug level with keyword fields."""
        self.logger.debug(message, extra=self._fields(**kwargs))

    def info(self, message: str, **kwargs: Any) -> None:
        """Log at info level with keyword fields."""
        self.logger.info(message, extra=self._fields(**kwargs))

    def warning(self, message: str, **kwargs: Any) -> None:
        """Log at warning level with keyword fields."""
        self.logger.warning(message, extra=self._fields(**kwargs))

    def error(self, message: str, exc_info: bool = False, **kwargs: Any) -> None:
        """Log at error level; pass exc_info=True to attach the active traceback."""
        self.logger.error(message, exc_info=exc_info, extra=self._fields(**kwargs))

    def exception(self, message: str, **kwargs: Any) -> None:
        """Log at error level with the active traceback, from an except block."""
        self.logger.exception(message, extra=self._fields(**kwargs))


def get_structured_logger(name: str) -> StructuredLogger:
    """Structured logger for a module, usually called with `__name__`."""
    return StructuredLogger(get_logger(name))


@contextmanager
def log_timing(operation_name: str, logger: Optional[StructuredLogger] = None, **context: Any) -> Iterator[None]:
    """
    Time a block such as a storage read or an expiry scan.

    Start and finish are logged at debug level. Blocks slower than
    LOG_SLOW_OPERATION_THRESHOLD_MS also produce a warning.
    """
    logger = logger or get_structured_logger(__name__)
    started = time.perf_counter()
    logger.debug(f"Starting {operation_name}", operation=operation_name, **context)

    try:
        yield
    finally:
        elapsed_ms = round((time.perf_counter() - started) * 1000, 2)
        logger.debug(
            f"Completed {operation_name}",
            operation=operation_name,
            processing_time_ms=elapsed_ms,
            **context
        )
        threshold_ms = LoggingConfig.LOG_SLOW_OPERATION_THRESHOLD_MS
        if elapsed_ms > threshold_ms:
            logger.warning(
                f"Slow operation: {operation_name}",
                operation=operation_name,
                processing_time_ms=elapsed_ms,
                threshold_ms=threshold_ms,
                **context
            )
