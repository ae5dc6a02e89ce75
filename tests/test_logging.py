import json
import logging
from unittest.mock import patch

import pytest

from billbook.logging import NOISY_LOGGERS, TEXT_FORMAT, build_formatter, configure_logging


@pytest.fixture(autouse=True)
def _restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    noisy = {name: logging.getLogger(name).level for name in NOISY_LOGGERS}
    for name in noisy:
        logging.getLogger(name).setLevel(logging.NOTSET)
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
    for name, saved in noisy.items():
        logging.getLogger(name).setLevel(saved)


class TestConfigureLogging:
    def test_json_format(self):
        with patch("billbook.logging.settings") as mock_settings:
            mock_settings.log_level = "INFO"
            mock_settings.log_json = True
            mock_settings.debug = False
            configure_logging()

        root = logging.getLogger()
        assert len(root.handlers) == 1
        from pythonjsonlogger.json import JsonFormatter

        assert isinstance(root.handlers[0].formatter, JsonFormatter)

    def test_text_format(self):
        with patch("billbook.logging.settings") as mock_settings:
            mock_settings.log_level = "debug"
            mock_settings.log_json = False
            mock_settings.debug = False
            configure_logging()

        root = logging.getLogger()
        assert root.level == logging.DEBUG
        assert root.handlers[0].formatter._fmt == TEXT_FORMAT

    def test_unknown_level_falls_back_to_info(self):
        with patch("billbook.logging.settings") as mock_settings:
            mock_settings.log_level = "chatty"
            mock_settings.log_json = False
            mock_settings.debug = False
            configure_logging()

        assert logging.getLogger().level == logging.INFO

    def test_repeated_calls_keep_one_handler(self):
        with patch("billbook.logging.settings") as mock_settings:
            mock_settings.log_level = "INFO"
            mock_settings.log_json = False
            mock_settings.debug = False
            configure_logging()
            configure_logging()

        assert len(logging.getLogger().handlers) == 1

    def test_quiets_noisy_loggers(self):
        with patch("billbook.logging.settings") as mock_settings:
            mock_settings.log_level = "INFO"
            mock_settings.log_json = False
            mock_settings.debug = False
            configure_logging()

        assert logging.getLogger("uvicorn.access").level == logging.WARNING
        assert logging.getLogger("sqlalchemy.engine").level == logging.WARNING
        assert logging.getLogger("sqlalchemy.pool").level == logging.WARNING

    def test_debug_keeps_sql_echo(self):
        with patch("billbook.logging.settings") as mock_settings:
            mock_settings.log_level = "DEBUG"
            mock_settings.log_json = False
            mock_settings.debug = True
            configure_logging()

        assert logging.getLogger("sqlalchemy.engine").level == logging.NOTSET
        assert logging.getLogger("sqlalchemy.pool").level == logging.NOTSET
        assert logging.getLogger("uvicorn.access").level == logging.WARNING


class TestBuildFormatter:
    def test_text(self):
        assert build_formatter(False)._fmt == TEXT_FORMAT

    def test_json_renames_fields(self):
        record = logging.LogRecord("billbook", logging.WARNING, __file__, 1, "bill %s saved", ("EST-1",), None)
        payload = json.loads(build_formatter(True).format(record))
        assert payload["level"] == "WARNING"
        assert payload["name"] == "billbook"
        assert payload["message"] == "bill EST-1 saved"
        assert "timestamp" in payload
