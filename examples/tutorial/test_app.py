"""Tests for the tutorial example — routes, forms, groups, uploads, templates."""

import logging
import uuid

from wren.testing import TestClient

_FORM_CT = {"Content-Type": "application/x-www-form-urlencoded"}


def _request_id(response) -> str:
    values = response.header_list("X-Request-Id")
    assert len(values) == 1
    return values[0]


class TestBasics:
    async def test_index(self, example_app) -> None:
        async with TestClient(example_app) as client:
            response = await client.get("/")
            assert response.status == 200
            assert response.text == "Hello, World"

    async def test_user_param(self, example_app) -> None:
        async with TestClient(example_app) as client:
            response = await client.get("/user/karen")
            assert response.text == "Hello, karen"

    async def test_users_default_role(self, example_app) -> None:
        async with TestClient(example_app) as client:
            response = await client.get("/users?name=Tom")
            assert response.text == "Tom is a engineer"

    async def test_users_explicit_role(self, example_app) -> None:
        async with TestClient(example_app) as client:
            response = await client.get("/users?name=Tom&role=manager")
            assert response.text == "Tom is a manager"


class TestRequestId:
    async def test_every_response_carries_one_uuid4(self, example_app) -> None:
        async with TestClient(example_app) as client:
            first = _request_id(await client.get("/"))
            second = _request_id(await client.get("/"))
        assert uuid.UUID(first).version == 4
        assert uuid.UUID(second).version == 4
        assert first != second

    async def test_not_found_still_has_request_id(self, example_app) -> None:
        async with TestClient(example_app) as client:
            response = await client.get("/nowhere")
        assert response.status == 404
        assert uuid.UUID(_request_id(response)).version == 4

    async def test_reroute_keeps_single_request_id(self, example_app) -> None:
        async with TestClient(example_app) as client:
            response = await client.get("/goindex")
        assert response.text == "Hello, World"
        _request_id(response)


class TestForms:
    async def test_form_default_password(self, example_app) -> None:
        async with TestClient(example_app) as client:
            response = await client.post("/form", form={"username": "abc"})
        assert response.json() == {"username": "abc", "password": "000000"}
        assert response.text == '{"username":"abc","password":"000000"}'

    async def test_form_with_password(self, example_app) -> None:
        async with TestClient(example_app) as client:
            response = await client.post(
                "/form", headers=_FORM_CT, body=b"username=abc&password=secret"
            )
        assert response.json() == {"username": "abc", "password": "secret"}

    async def test_posts_query_and_form(self, example_app) -> None:
        async with TestClient(example_app) as client:
            response = await client.post(
                "/posts?id=1234&page=1", form={"username": "geektutu", "password": "1234"}
            )
        assert response.json() == {
            "id": "1234",
            "page": "1",
            "username": "geektutu",
            "password": "1234",
        }

    async def test_posts_defaults(self, example_app) -> None:
        async with TestClient(example_app) as client:
            response = await client.post("/posts?id=9", form={"username": "geektutu"})
        assert response.json() == {
            "id": "9",
            "page": "0",
            "username": "geektutu",
            "password": "000000",
        }

    async def test_post_maps(self, example_app) -> None:
        async with TestClient(example_app) as client:
            response = await client.post(
                "/post?ids[b]=hello&ids[a]=1234",
                form={"names[a]": "Sam", "names[b]": "David"},
            )
        assert response.json() == {
            "ids": {"a": "1234", "b": "hello"},
            "names": {"a": "Sam", "b": "David"},
        }


class TestRedirects:
    async def test_redirect(self, example_app) -> None:
        async with TestClient(example_app) as client:
            response = await client.get("/redirect")
        assert response.status == 301
        assert response.header("Location") == "/index"

    async def test_goindex_serves_index(self, example_app) -> None:
        async with TestClient(example_app) as client:
            response = await client.get("/goindex")
        assert response.status == 200
        assert response.text == "Hello, World"


class TestGroups:
    async def test_v1_reports_full_path(self, example_app) -> None:
        async with TestClient(example_app) as client:
            assert (await client.get("/v1/posts")).json() == {"path": "/v1/posts"}
            assert (await client.get("/v1/series")).json() == {"path": "/v1/series"}

    async def test_v2_reports_full_path(self, example_app) -> None:
        async with TestClient(example_app) as client:
            assert (await client.get("/v2/posts")).json() == {"path": "/v2/posts"}

    async def test_group_middleware_sets_value(self, example_app) -> None:
        async with TestClient(example_app) as client:
            response = await client.get("/timed/greeting")
        assert response.json() == {"geektutu": "1111"}

    async def test_group_middleware_logs_latency(self, example_app, caplog) -> None:
        with caplog.at_level(logging.INFO, logger="wren.tutorial"):
            async with TestClient(example_app) as client:
                await client.get("/timed/greeting")
        assert any("/timed/greeting took" in r.getMessage() for r in caplog.records)

    async def test_v2_has_no_group_middleware(self, example_app, caplog) -> None:
        with caplog.at_level(logging.INFO, logger="wren.tutorial"):
            async with TestClient(example_app) as client:
                await client.get("/v2/posts")
        assert not any("took" in r.getMessage() for r in caplog.records)


class TestUploads:
    async def test_single_upload(self, example_app) -> None:
        async with TestClient(example_app) as client:
            response = await client.post(
                "/upload1", files={"file": ("notes.txt", b"hello", "text/plain")}
            )
        assert response.status == 200
        assert response.text == "notes.txt uploaded!"

    async def test_multiple_uploads(self, example_app) -> None:
        async with TestClient(example_app) as client:
            response = await client.post(
                "/upload2",
                files={"upload[]": [("a.txt", b"a"), ("b.txt", b"bb"), ("c.txt", b"ccc")]},
            )
        assert response.text == "3 files uploaded!"

    async def test_missing_file_is_500(self, example_app) -> None:
        async with TestClient(example_app) as client:
            response = await client.post("/upload1", form={"other": "x"})
        assert response.status == 500


class TestTemplates:
    async def test_arr_renders_students(self, example_app) -> None:
        async with TestClient(example_app) as client:
            response = await client.get("/arr")
        assert response.status == 200
        assert "text/html" in response.content_type
        assert "hello, Guest" in response.text
        assert "Karen: 25" in response.text
        assert "Mickey: 18" in response.text

    async def test_template_return_value(self, example_app) -> None:
        async with TestClient(example_app) as client:
            response = await client.get("/arr2")
        assert "Mickey: 18" in response.text


class TestAccessLog:
    async def test_access_line_has_status_and_id(self, example_app, caplog) -> None:
        with caplog.at_level(logging.INFO, logger="wren.access"):
            async with TestClient(example_app) as client:
                response = await client.get("/user/karen")
        request_id = _request_id(response)
        lines = [r.getMessage() for r in caplog.records if r.name == "wren.access"]
        assert any(
            line.startswith("200 GET /user/karen") and request_id in line for line in lines
        )
