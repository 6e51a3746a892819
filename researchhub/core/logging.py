"""
Logging setup - one place to get a configured logger.

Every record carries the current request id (set by the HTTP
middleware in main.py) so log lines from one request can be grepped
together.

Usage:
    from researchhub.core.logging import get_logger
    logger = get_logger(__name__)
    logger.info("Generated 12 recommendations")
"""

import logging
from contextvars import ContextVar
from pathlib import Path

from researchhub.core.config import get_settings

settings = get_settings()

# Request id for the request currently being handled ("-" outside requests)
request_id_ctx: ContextVar[str] = ContextVar("request_id", default="-")


class RequestIdFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = request_id_ctx.get()
        return True


def _build_formatter() -> logging.Formatter:
    fmt = "%(asctime)s %(levelname)s %(name)s [req=%(request_id)s] %(message)s"
    return logging.Formatter(fmt)


def get_logger(name: str = "researchhub") -> logging.Logger:
    """
    Return a logger with the request-id filter attached.

    Writes to the console, and also to LOG_FILE when one is configured.
    Handlers are attached once per logger name.
    """
    logger = logging.getLogger(name)

    if not logger.handlers:
        formatter = _build_formatter()
        req_filter = RequestIdFilter()

        console_handler = logging.StreamHandler()
        console_handler.setFormatter(formatter)
        console_handler.addFilter(req_filter)
        logger.addHandler(console_handler)

        if settings.log_file:
            log_path = Path(settings.log_file)
            log_path.parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(log_path, encoding="utf-8")
            file_handler.setFormatter(formatter)
            file_handler.addFilter(req_filter)
            logger.addHandler(file_handler)

        logger.setLevel(settings.log_level.upper())
        logger.propagate = False

    return logger
