"""Tests for wren.cli — app resolution, ``wren run`` and ``wren routes``."""

import sys
import types
from unittest.mock import MagicMock, patch

import pytest

from wren.app import App
from wren.cli import main
from wren.cli._resolve import resolve_app
from wren.config import AppConfig


def index(ctx):
    return "index"


def user(ctx):
    return "user"


@pytest.fixture
def fake_app(monkeypatch: pytest.MonkeyPatch) -> App:
    """Register a fake module with a wren App instance."""
    app = App(config=AppConfig(host="127.0.0.1", port=8000))
    app.get("/", index)
    app.route("/user/:name", methods=["GET", "POST"], name="user")(user)

    mod = types.ModuleType("_fake_wren_app")
    mod.app = app  # type: ignore[attr-defined]
    mod.empty = App()  # type: ignore[attr-defined]
    mod.factory = lambda: app  # type: ignore[attr-defined]
    mod.broken_factory = lambda: 1 / 0  # type: ignore[attr-defined]
    mod.not_an_app = "just a string"  # type: ignore[attr-defined]
    monkeypatch.setitem(sys.modules, "_fake_wren_app", mod)
    return app


class TestResolveApp:
    def test_explicit_attribute(self, fake_app: App) -> None:
        assert resolve_app("_fake_wren_app:app") is fake_app

    def test_default_attribute(self, fake_app: App) -> None:
        """Omitting :attr defaults to 'app'."""
        assert resolve_app("_fake_wren_app") is fake_app

    def test_factory(self, fake_app: App) -> None:
        assert resolve_app("_fake_wren_app:factory") is fake_app

    @pytest.mark.usefixtures("fake_app")
    def test_broken_factory(self) -> None:
        with pytest.raises(TypeError, match="raised an error"):
            resolve_app("_fake_wren_app:broken_factory")

    @pytest.mark.usefixtures("fake_app")
    def test_not_an_app(self) -> None:
        with pytest.raises(TypeError, match="not a wren.App"):
            resolve_app("_fake_wren_app:not_an_app")

    @pytest.mark.usefixtures("fake_app")
    def test_missing_attribute(self) -> None:
        with pytest.raises(AttributeError):
            resolve_app("_fake_wren_app:nope")

    def test_missing_module(self) -> None:
        with pytest.raises(ModuleNotFoundError):
            resolve_app("_no_such_wren_module:app")


class TestRoutesCommand:
    def test_table(self, fake_app: App, capsys: pytest.CaptureFixture[str]) -> None:
        main(["routes", "_fake_wren_app:app"])
        lines = capsys.readouterr().out.splitlines()

        assert lines[0].split() == ["METHOD", "PATH", "HANDLER"]
        assert set(lines[1]) == {"-"}
        assert lines[2].split() == ["GET", "/", "index"]
        assert lines[3].split() == ["GET,", "POST", "/user/:name", "user", "(user)"]

    @pytest.mark.usefixtures("fake_app")
    def test_empty(self, capsys: pytest.CaptureFixture[str]) -> None:
        main(["routes", "_fake_wren_app:empty"])
        assert capsys.readouterr().out == "No routes registered.\n"

    @pytest.mark.usefixtures("fake_app")
    def test_bad_import_exits(self, capsys: pytest.CaptureFixture[str]) -> None:
        with pytest.raises(SystemExit) as excinfo:
            main(["routes", "_fake_wren_app:not_an_app"])
        assert excinfo.value.code == 1
        assert capsys.readouterr().err.startswith("Error: ")


@patch("wren.log.configure_logging")
@patch("wren.server.serve.run_server")
class TestRunCommand:
    def test_default_host_and_port(
        self, mock_server: MagicMock, mock_logging: MagicMock, fake_app: App
    ) -> None:
        """run uses app config defaults when --host/--port are omitted."""
        main(["run", "_fake_wren_app:app"])
        mock_server.assert_called_once()
        args = mock_server.call_args[0]
        assert args[0] is fake_app
        assert args[1] == "127.0.0.1"
        assert args[2] == 8000
        mock_logging.assert_called_once_with("info", "text")

    def test_overrides(
        self, mock_server: MagicMock, mock_logging: MagicMock, fake_app: App
    ) -> None:
        main(["run", "_fake_wren_app:app", "--host", "0.0.0.0", "--port", "3000", "--workers", "4"])
        args, kwargs = mock_server.call_args
        assert args[1:] == ("0.0.0.0", 3000)
        assert kwargs["workers"] == 4
        assert kwargs["reload"] is False

    def test_freezes_before_serving(
        self, mock_server: MagicMock, mock_logging: MagicMock, fake_app: App
    ) -> None:
        main(["run", "_fake_wren_app:app"])
        with pytest.raises(RuntimeError):
            fake_app.get("/late", index)

    def test_bad_import_exits(self, mock_server: MagicMock, mock_logging: MagicMock) -> None:
        with pytest.raises(SystemExit):
            main(["run", "_no_such_wren_module:app"])
        mock_server.assert_not_called()


class TestMain:
    def test_no_command_prints_help(self, capsys: pytest.CaptureFixture[str]) -> None:
        with pytest.raises(SystemExit) as excinfo:
            main([])
        assert excinfo.value.code == 0
        assert "usage: wren" in capsys.readouterr().out
