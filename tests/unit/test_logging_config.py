"""
Unit tests for logging setup.
"""

import json
import logging

import pytest

from app.core.config import LogFormatEnum
from app.core.logging_config import JsonFormatter, setup_logging


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield root
    root.handlers[:] = handlers
    root.setLevel(level)


class TestLoggingConfig:
    def test_json_formatter(self):
        record = logging.LogRecord("app.test", logging.WARNING, __file__, 1, "Stored %s", ("nda.pdf",), None)

        payload = json.loads(JsonFormatter().format(record))

        assert payload["level"] == "WARNING"
        assert payload["logger"] == "app.test"
        assert payload["message"] == "Stored nda.pdf"

    def test_setup_installs_single_handler(self, restore_root_logger):
        setup_logging(level="DEBUG", log_format=LogFormatEnum.json)
        setup_logging(level="DEBUG", log_format=LogFormatEnum.json)

        assert len(restore_root_logger.handlers) == 1
        assert isinstance(restore_root_logger.handlers[0].formatter, JsonFormatter)
        assert restore_root_logger.level == logging.DEBUG
        assert logging.getLogger("httpx").level == logging.WARNING
