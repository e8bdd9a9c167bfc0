"""Tests for wren.config — AppConfig defaults and immutability."""

import dataclasses

import pytest

from wren.config import AppConfig


class TestAppConfig:
    def test_defaults(self) -> None:
        config = AppConfig()
        assert config.host == "127.0.0.1"
        assert config.port == 9999
        assert config.debug is False
        assert config.request_id_header == "X-Request-Id"
        assert config.handle_method_not_allowed is False
        assert config.template_dir is None
        assert config.autoescape is True

    def test_frozen(self) -> None:
        config = AppConfig()
        with pytest.raises(dataclasses.FrozenInstanceError):
            config.port = 1  # type: ignore[misc]

    def test_replace(self) -> None:
        config = dataclasses.replace(AppConfig(), debug=True, port=3000)
        assert (config.debug, config.port) == (True, 3000)
