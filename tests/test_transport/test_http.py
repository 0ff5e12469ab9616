"""Tests for restez.transport.http -- request building, retry, error mapping, dry run."""

from __future__ import annotations

import json
from typing import Any
from unittest.mock import patch

import httpx
import pytest

from restez.exceptions import DispatchError
from restez.exit_codes import (
    EXIT_AUTH_FAILURE,
    EXIT_CONNECTION_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_NOT_FOUND,
    EXIT_SERVER_ERROR,
)
from restez.models import RequestConfig, SchemaTree
from restez.output import OutputManager, set_output
from restez.schema import SchemaBuilder, compile_schema
from restez.transport import HttpxDispatcher


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _dispatcher(handler, max_retries: int = 0, **kwargs: Any) -> HttpxDispatcher:
    """Create an HttpxDispatcher backed by an httpx.MockTransport."""
    client = httpx.Client(transport=httpx.MockTransport(handler))
    return HttpxDispatcher(client=client, request=RequestConfig(max_retries=max_retries), **kwargs)


def _json_response(data: Any, status_code: int = 200) -> httpx.Response:
    return httpx.Response(status_code=status_code, json=data)


@pytest.fixture(autouse=True)
def _clean_output():
    """Install a quiet, colourless output manager for every test."""
    set_output(OutputManager(no_color=True, quiet=True))
    yield


@pytest.fixture
def api_tree() -> SchemaTree:
    builder = SchemaBuilder("https://svc.com", headers={"X-Api-Key": "K"})
    with builder.route("forum"):
        builder.endpoint("{thread_id}", "view_thread", query={"format": "full"})
        builder.endpoint("{thread_id}/posts", "create_post", method="POST")
    return builder.build()


# ---------------------------------------------------------------------------
# Request building
# ---------------------------------------------------------------------------


class TestRequestBuilding:
    def test_get_through_generated_client(self, api_tree: SchemaTree) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return _json_response({"id": 7})

        with _dispatcher(handler) as dispatcher:
            client = compile_schema(api_tree).client(dispatcher)
            result = client.view_thread({"thread_id": 7, "page": 2})

        assert result.is_ok
        assert result.value.json() == {"id": 7}
        (request,) = seen
        assert request.method == "GET"
        assert request.url.path == "/forum/7"
        assert dict(request.url.params) == {"format": "full", "page": "2"}
        assert request.headers["X-Api-Key"] == "K"
        assert request.headers["Accept"] == "application/json"

    def test_post_with_json_body(self, api_tree: SchemaTree) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return _json_response({"ok": True}, status_code=201)

        with _dispatcher(handler) as dispatcher:
            client = compile_schema(api_tree).client(dispatcher)
            result = client.create_post(
                {"thread_id": 7},
                {"json": {"text": "hi"}, "headers": {"X-Trace": "abc"}},
            )

        assert result.unwrap().status_code == 201
        (request,) = seen
        assert request.method == "POST"
        assert request.url.path == "/forum/7/posts"
        assert json.loads(request.content) == {"text": "hi"}
        assert request.headers["X-Trace"] == "abc"
        assert request.url.params.get("thread_id") is None

    def test_none_params_not_sent(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return _json_response([])

        with _dispatcher(handler) as dispatcher:
            dispatcher.endpoint(
                "search", {"method": "GET", "path_template": "https://svc.com/search"},
                "https://svc.com/search", {"q": "x", "page": None}, {},
            )

        assert dict(seen[0].url.params) == {"q": "x"}

    def test_custom_pattern_separates_path_params(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return _json_response({})

        with _dispatcher(handler, parameter_pattern=r":(\w+)") as dispatcher:
            dispatcher.endpoint(
                "get_user", {"path_template": "https://svc.com/users/:id"},
                "https://svc.com/users/3", {"id": 3, "expand": "all"}, {},
            )

        assert dict(seen[0].url.params) == {"expand": "all"}


# ---------------------------------------------------------------------------
# Error mapping
# ---------------------------------------------------------------------------


class TestErrorMapping:
    @pytest.mark.parametrize(
        "status, exit_code",
        [
            (400, EXIT_GENERIC_FAILURE),
            (401, EXIT_AUTH_FAILURE),
            (403, EXIT_AUTH_FAILURE),
            (404, EXIT_NOT_FOUND),
            (500, EXIT_SERVER_ERROR),
            (503, EXIT_SERVER_ERROR),
        ],
    )
    def test_status_codes(self, api_tree: SchemaTree, status: int, exit_code: int) -> None:
        with _dispatcher(lambda r: _json_response({"message": "nope"}, status)) as dispatcher:
            result = compile_schema(api_tree).client(dispatcher).view_thread({"thread_id": 1})

        assert not result.is_ok
        err = result.error
        assert isinstance(err, DispatchError)
        assert err.status_code == status
        assert err.exit_code == exit_code
        assert str(err) == f"view_thread: HTTP {status}: nope"
        assert err.response.status_code == status

    def test_text_body_in_message(self) -> None:
        with _dispatcher(lambda r: httpx.Response(422, text="bad input")) as dispatcher:
            result = dispatcher.endpoint("x", {}, "https://svc.com/x", {}, {})
        assert str(result.error) == "x: HTTP 422: bad input"

    def test_empty_body(self) -> None:
        with _dispatcher(lambda r: httpx.Response(404)) as dispatcher:
            result = dispatcher.endpoint("x", {}, "https://svc.com/x", {}, {})
        assert str(result.error) == "x: HTTP 404"

    def test_connection_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused")

        with _dispatcher(handler) as dispatcher:
            result = dispatcher.endpoint("x", {}, "https://svc.com/x", {}, {})

        assert result.error.status_code is None
        assert result.error.exit_code == EXIT_CONNECTION_ERROR
        assert "connection failed after 1 attempt(s)" in str(result.error)


# ---------------------------------------------------------------------------
# Retry
# ---------------------------------------------------------------------------


class TestRetry:
    def test_retries_server_errors(self) -> None:
        attempts = {"n": 0}

        def handler(request: httpx.Request) -> httpx.Response:
            attempts["n"] += 1
            if attempts["n"] < 3:
                return httpx.Response(502)
            return _json_response({"ok": True})

        with patch("restez.transport.http.time.sleep") as sleep:
            with _dispatcher(handler, max_retries=3) as dispatcher:
                result = dispatcher.endpoint("x", {}, "https://svc.com/x", {}, {})

        assert result.is_ok
        assert attempts["n"] == 3
        assert [c.args[0] for c in sleep.call_args_list] == [1, 2]

    def test_gives_up_after_max_retries(self) -> None:
        attempts = {"n": 0}

        def handler(request: httpx.Request) -> httpx.Response:
            attempts["n"] += 1
            return httpx.Response(500)

        with patch("restez.transport.http.time.sleep"):
            with _dispatcher(handler, max_retries=2) as dispatcher:
                result = dispatcher.endpoint("x", {}, "https://svc.com/x", {}, {})

        assert attempts["n"] == 3
        assert result.error.status_code == 500

    def test_retries_network_errors(self) -> None:
        attempts = {"n": 0}

        def handler(request: httpx.Request) -> httpx.Response:
            attempts["n"] += 1
            if attempts["n"] == 1:
                raise httpx.ReadTimeout("slow")
            return _json_response({})

        with patch("restez.transport.http.time.sleep"):
            with _dispatcher(handler, max_retries=1) as dispatcher:
                result = dispatcher.endpoint("x", {}, "https://svc.com/x", {}, {})

        assert result.is_ok
        assert attempts["n"] == 2

    def test_client_errors_not_retried(self) -> None:
        attempts = {"n": 0}

        def handler(request: httpx.Request) -> httpx.Response:
            attempts["n"] += 1
            return httpx.Response(400)

        with patch("restez.transport.http.time.sleep") as sleep:
            with _dispatcher(handler, max_retries=3) as dispatcher:
                dispatcher.endpoint("x", {}, "https://svc.com/x", {}, {})

        assert attempts["n"] == 1
        sleep.assert_not_called()


# ---------------------------------------------------------------------------
# Dry run and lifecycle
# ---------------------------------------------------------------------------


class TestDryRun:
    def test_no_request_sent(self, capsys: pytest.CaptureFixture[str]) -> None:
        set_output(OutputManager(no_color=True))

        def handler(request: httpx.Request) -> httpx.Response:
            raise AssertionError("request should not be sent")

        with _dispatcher(handler, dry_run=True) as dispatcher:
            result = dispatcher.endpoint(
                "create_post", {"method": "POST"}, "https://svc.com/forum/7/posts",
                {}, {"json": {"text": "hi"}},
            )

        assert result.unwrap().json()["dry_run"] is True
        err = capsys.readouterr().err
        assert "[dry-run] POST https://svc.com/forum/7/posts" in err
        assert '"text": "hi"' in err


class TestLifecycle:
    def test_external_client_left_open(self) -> None:
        client = httpx.Client(transport=httpx.MockTransport(lambda r: _json_response({})))
        with HttpxDispatcher(client=client):
            pass
        assert not client.is_closed
        client.close()

    def test_owned_client_closed(self) -> None:
        dispatcher = HttpxDispatcher()
        dispatcher.close()
        assert dispatcher._client.is_closed
