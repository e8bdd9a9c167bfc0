"""Tests for wren.server.sender response emission rules."""

import pytest

from wren.http.response import Response
from wren.server.sender import send_response


async def _send(response: Response, *, method: str = "GET") -> list[dict]:
    messages: list[dict] = []

    async def send(message: dict) -> None:
        messages.append(message)

    await send_response(response, send, method=method)
    return messages


class TestSendResponseNoBodyStatuses:
    @pytest.mark.parametrize("status", [204, 304])
    async def test_drops_body_and_sets_zero_content_length(self, status: int) -> None:
        # Even if a handler attaches body content, no-body statuses send none.
        messages = await _send(Response("unexpected-body").with_status(status))

        assert messages[0]["type"] == "http.response.start"
        headers = dict(messages[0]["headers"])
        assert headers[b"content-length"] == b"0"

        assert messages[1]["type"] == "http.response.body"
        assert messages[1]["body"] == b""

    async def test_200_preserves_body(self) -> None:
        messages = await _send(Response("ok"))

        headers = dict(messages[0]["headers"])
        assert headers[b"content-length"] == b"2"
        assert messages[1]["body"] == b"ok"

    async def test_content_length_counts_bytes(self) -> None:
        messages = await _send(Response("héllo"))
        headers = dict(messages[0]["headers"])
        assert headers[b"content-length"] == b"6"


class TestSendResponseHeaders:
    async def test_names_lowercased(self) -> None:
        messages = await _send(Response("x").with_header("X-Request-Id", "abc"))
        assert (b"x-request-id", b"abc") in messages[0]["headers"]

    async def test_content_type_first(self) -> None:
        messages = await _send(Response.json_body(200, {}))
        assert messages[0]["headers"][0] == (
            b"content-type",
            b"application/json; charset=utf-8",
        )

    async def test_repeated_headers_kept(self) -> None:
        response = Response("x").with_header("Vary", "Accept").with_header("Vary", "Cookie")
        messages = await _send(response)
        values = [v for k, v in messages[0]["headers"] if k == b"vary"]
        assert values == [b"Accept", b"Cookie"]


class TestSendResponseHead:
    async def test_head_keeps_length_without_body(self) -> None:
        messages = await _send(Response("hello"), method="HEAD")
        headers = dict(messages[0]["headers"])
        assert headers[b"content-length"] == b"5"
        assert messages[1]["body"] == b""


class TestSendResponseDisconnect:
    async def test_oserror_is_swallowed(self, caplog: pytest.LogCaptureFixture) -> None:
        async def send(message: dict) -> None:
            raise ConnectionResetError("peer gone")

        with caplog.at_level("DEBUG", logger="wren.server"):
            await send_response(Response("x"), send)

        assert any("Client gone" in r.getMessage() for r in caplog.records)
