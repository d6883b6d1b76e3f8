"""Root logger setup for the listings engine, driven by environment variables."""

import os
import logging
import sys
from pythonjsonlogger import jsonlogger

SERVICE_NAME = "listings-engine"

# Client libraries that log every HTTP round trip at INFO
QUIET_LOGGERS = ("httpx", "httpcore", "hpack", "urllib3", "supabase", "postgrest", "gotrue")


class ListingsJsonFormatter(jsonlogger.JsonFormatter):
    """JSON lines with the service name and a lowercase level on every record."""

    def add_fields(self, log_record, record, message_dict):
        super().add_fields(log_record, record, message_dict)
        log_record.setdefault("service", SERVICE_NAME)
        log_record["level"] = record.levelname.lower()


class LoggingConfig:
    """Settings read once at import; tests patch the class attributes."""

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()
    LOG_FORMAT = os.environ.get("LOG_FORMAT", "json").lower()
    LOG_MASK_SENSITIVE = os.environ.get("LOG_MASK_SENSITIVE", "true").lower() == "true"
    LOG_SLOW_OPERATION_THRESHOLD_MS = int(os.environ.get("LOG_SLOW_OPERATION_THRESHOLD_MS", "1000"))

    @classmethod
    def level(cls) -> int:
        return getattr(logging, cls.LOG_LEVEL, logging.INFO)

    @classmethod
    def build_formatter(cls) -> logging.Formatter:
        if cls.LOG_FORMAT == "json":
            return ListingsJsonFormatter("%(timestamp)s %(name)s %(message)s", timestamp=True)
        return logging.Formatter("%(asctime)s %(levelname)-7s [%(name)s] %(message)s")

    @classmethod
    def setup_logging(cls) -> None:
        """Send every record to stdout, where the serverless runtime collects it."""
        stream = logging.StreamHandler(sys.stdout)
        stream.setLevel(cls.level())
        stream.setFormatter(cls.build_formatter())

        root = logging.getLogger()
        root.handlers.clear()
        root.setLevel(cls.level())
        root.addHandler(stream)

        for name in QUIET_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
