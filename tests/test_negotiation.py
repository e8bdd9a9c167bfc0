"""Tests for wren.server.negotiation — handler return value dispatch."""

import pytest
from kida import DictLoader, Environment

from wren.errors import ConfigurationError
from wren.http.response import Response
from wren.server.negotiation import negotiate
from wren.templating.returns import Template


@pytest.fixture
def kida_env() -> Environment:
    return Environment(loader=DictLoader({"page.html": "<h1>{{ title }}</h1>"}))


class TestNegotiatePassthrough:
    def test_response_passthrough(self) -> None:
        original = Response(body="hello", status=201)
        assert negotiate(original) is original

    def test_none_is_empty_200(self) -> None:
        result = negotiate(None)
        assert result.status == 200
        assert result.body_bytes == b""


class TestNegotiateScalars:
    def test_str(self) -> None:
        result = negotiate("hello")
        assert result.text == "hello"
        assert result.content_type.startswith("text/plain")

    def test_bytes(self) -> None:
        result = negotiate(b"\x00\x01")
        assert result.body_bytes == b"\x00\x01"
        assert result.content_type == "application/octet-stream"

    def test_dict_is_json(self) -> None:
        result = negotiate({"message": "ok", "nick": "ken"})
        assert result.content_type.startswith("application/json")
        assert result.json() == {"message": "ok", "nick": "ken"}

    def test_list_is_json(self) -> None:
        assert negotiate([1, 2, 3]).text == "[1,2,3]"

    def test_non_ascii_json(self) -> None:
        assert negotiate({"name": "Zoë"}).text == '{"name":"Zoë"}'


class TestNegotiateTuples:
    def test_status_override(self) -> None:
        result = negotiate(("created", 201))
        assert result.status == 201
        assert result.text == "created"

    def test_status_and_headers(self) -> None:
        result = negotiate(({"id": 1}, 201, {"Location": "/items/1"}))
        assert result.status == 201
        assert result.header("Location") == "/items/1"
        assert result.json() == {"id": 1}

    def test_nested_response(self) -> None:
        result = negotiate((Response("x"), 418))
        assert result.status == 418


class TestNegotiateTemplate:
    def test_template_rendering(self, kida_env: Environment) -> None:
        result = negotiate(Template("page.html", title="Home"), kida_env=kida_env)
        assert result.status == 200
        assert "text/html" in result.content_type
        assert result.text == "<h1>Home</h1>"

    def test_template_status(self, kida_env: Environment) -> None:
        result = negotiate(Template("page.html", status=404, title="Gone"), kida_env=kida_env)
        assert result.status == 404

    def test_template_autoescape(self) -> None:
        env = Environment(loader=DictLoader({"t.html": "{{ v }}"}), autoescape=True)
        result = negotiate(Template("t.html", v="<b>"), kida_env=env)
        assert "<b>" not in result.text

    def test_template_without_environment(self) -> None:
        with pytest.raises(ConfigurationError, match="no template environment"):
            negotiate(Template("page.html"))


class TestNegotiateErrors:
    @pytest.mark.parametrize("value", [42, 3.5, object(), ("x", "200")])
    def test_unsupported_type(self, value: object) -> None:
        with pytest.raises(TypeError, match="Cannot convert"):
            negotiate(value)
