"""Root logger configuration.

Modules log through ``logging.getLogger(__name__)``; this module only wires the
root handler once at startup from ``settings.log_level`` and ``settings.log_format``.
"""

import json
import logging
import sys
from datetime import UTC, datetime

from app.core.config import LogFormatEnum, settings

SIMPLE_FORMAT = "%(asctime)s - %(name)s - [%(levelname)s] - %(message)s"


class JsonFormatter(logging.Formatter):
    """Render each record as a single JSON line."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": datetime.fromtimestamp(record.created, UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


def setup_logging(level: str | None = None, log_format: LogFormatEnum | None = None) -> None:
    """Configure the root logger. Call once at startup."""
    handler = logging.StreamHandler(sys.stdout)
    if (log_format or settings.log_format) == LogFormatEnum.json:
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(logging.Formatter(SIMPLE_FORMAT))

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level or settings.log_level.value)

    # Silence noisy libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
