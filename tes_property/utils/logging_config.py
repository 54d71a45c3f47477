"""Logging settings for the inquiry and calendar services, read from the environment."""

import os
import logging
import sys
from pythonjsonlogger import jsonlogger

# Loggers of the supabase-py HTTP stack; only warnings get through
THIRD_PARTY_LOGGERS = ("httpx", "httpcore", "hpack", "urllib3", "postgrest", "supabase")

TEXT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
JSON_FORMAT = "%(timestamp)s %(levelname)s %(name)s %(message)s"


def _env_flag(name: str, default: str = "true") -> bool:
    return os.environ.get(name, default).strip().lower() in ("1", "true", "yes")


class LoggingConfig:
    """Process-wide logging settings.

    LOG_MASK_SENSITIVE hides customer emails and phone numbers.
    LOG_INQUIRY_MESSAGES controls whether previews of customer-written
    inquiry text appear in log lines at all.
    """

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()
    LOG_FORMAT = os.environ.get("LOG_FORMAT", "json").lower()
    LOG_MASK_SENSITIVE = _env_flag("LOG_MASK_SENSITIVE")
    LOG_INQUIRY_MESSAGES = _env_flag("LOG_INQUIRY_MESSAGES")
    LOG_SLOW_OPERATION_THRESHOLD_MS = int(os.environ.get("LOG_SLOW_OPERATION_THRESHOLD_MS", "1000"))

    @classmethod
    def build_formatter(cls) -> logging.Formatter:
        if cls.LOG_FORMAT == "json":
            return jsonlogger.JsonFormatter(JSON_FORMAT, timestamp=True)
        return logging.Formatter(TEXT_FORMAT)

    @classmethod
    def setup_logging(cls) -> None:
        """Send every record to stdout, where the serverless runtime collects it."""
        level = getattr(logging, cls.LOG_LEVEL, logging.INFO)

        handler = logging.StreamHandler(sys.stdout)
        handler.setLevel(level)
        handler.setFormatter(cls.build_formatter())

        root_logger = logging.getLogger()
        root_logger.setLevel(level)
        root_logger.handlers.clear()
        root_logger.addHandler(handler)

        for name in THIRD_PARTY_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
