"""Tests for wren.log — handler installation and the JSON formatter."""

import json
import logging
import sys
from collections.abc import Iterator

import pytest

from wren.log import JSONFormatter, configure_logging


@pytest.fixture
def wren_logger() -> Iterator[logging.Logger]:
    logger = logging.getLogger("wren")
    handlers, level = list(logger.handlers), logger.level
    yield logger
    logger.handlers[:] = handlers
    logger.setLevel(level)


def _record(msg: str = "hello %s", *args: object, **extra: object) -> logging.LogRecord:
    record = logging.LogRecord("wren.access", logging.INFO, __file__, 1, msg, args or ("world",), None)
    record.__dict__.update(extra)
    return record


class TestJSONFormatter:
    def test_fields(self) -> None:
        payload = json.loads(JSONFormatter().format(_record()))
        assert payload["level"] == "info"
        assert payload["logger"] == "wren.access"
        assert payload["message"] == "hello world"
        assert payload["time"].endswith("Z")
        assert "request_id" not in payload

    def test_request_id(self) -> None:
        payload = json.loads(JSONFormatter().format(_record(request_id="abc")))
        assert payload["request_id"] == "abc"

    def test_exc_info(self) -> None:
        try:
            raise ValueError("bad")
        except ValueError:
            record = logging.LogRecord(
                "wren.server", logging.ERROR, __file__, 1, "boom", (), sys.exc_info()
            )
        payload = json.loads(JSONFormatter().format(record))
        assert "ValueError: bad" in payload["exc_info"]


class TestConfigureLogging:
    def test_installs_one_handler(self, wren_logger: logging.Logger) -> None:
        configure_logging("debug")
        configure_logging("warning")
        named = [h for h in wren_logger.handlers if h.get_name() == "wren"]
        assert len(named) == 1
        assert wren_logger.level == logging.WARNING

    def test_json_format(self, wren_logger: logging.Logger) -> None:
        configure_logging("info", "json")
        (handler,) = [h for h in wren_logger.handlers if h.get_name() == "wren"]
        assert isinstance(handler.formatter, JSONFormatter)

    def test_unknown_level(self, wren_logger: logging.Logger) -> None:
        with pytest.raises(ValueError, match="log level"):
            configure_logging("loud")

    def test_unknown_format(self, wren_logger: logging.Logger) -> None:
        with pytest.raises(ValueError, match="log format"):
            configure_logging("info", "xml")
