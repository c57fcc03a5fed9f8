"""Test the Slack API gateway against httpx.MockTransport."""

import httpx
import pytest

from ircslack import __version__
from ircslack.api import SlackClient
from ircslack.core.errors import (
    SlackAPIError,
    SlackNotConfiguredError,
    SlackRemoteError,
    SlackTransportError,
)


def make_client(handler, token="xoxp-1"):
    """Client whose requests go to ``handler``; records requests in the returned list."""
    seen: list[httpx.Request] = []

    def record(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return handler(request)

    client = SlackClient(lambda: token, transport=httpx.MockTransport(record))
    return client, seen


class TestSlackClientRequests:
    def test_get_puts_params_and_token_in_query(self):
        # Arrange
        client, seen = make_client(lambda r: httpx.Response(200, json={"ok": True, "messages": []}))

        # Act
        payload = client.call("GET", "channels.history", {"channel": "C1", "count": 20})

        # Assert
        assert payload == {"ok": True, "messages": []}
        request = seen[0]
        assert request.method == "GET"
        assert request.url.path == "/api/channels.history"
        assert request.url.host == "slack.com"
        assert request.url.params["channel"] == "C1"
        assert request.url.params["count"] == "20"
        assert request.url.params["token"] == "xoxp-1"

    def test_post_also_uses_query_string(self):
        client, seen = make_client(lambda r: httpx.Response(200, json={"ok": True}))

        client.call("POST", "channels.mark", {"channel": "C1", "ts": "1.000000"})

        assert seen[0].method == "POST"
        assert seen[0].url.params["ts"] == "1.000000"
        assert seen[0].url.params["token"] == "xoxp-1"

    def test_bool_params_rendered_as_digits(self):
        client, seen = make_client(lambda r: httpx.Response(200, json={"ok": True}))

        client.call("GET", "groups.list", {"exclude_archived": True})

        assert seen[0].url.params["exclude_archived"] == "1"

    def test_token_is_read_on_every_call(self):
        tokens = iter(["first", "second"])
        seen: list[httpx.Request] = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json={"ok": True})

        client = SlackClient(lambda: next(tokens), transport=httpx.MockTransport(handler))
        client.call("GET", "users.list")
        client.call("GET", "users.list")

        assert [r.url.params["token"] for r in seen] == ["first", "second"]

    def test_user_agent_names_plugin(self):
        client, seen = make_client(lambda r: httpx.Response(200, json={"ok": True}))

        client.call("GET", "users.list")

        assert seen[0].headers["User-Agent"] == f"ircslack/{__version__}"

    def test_custom_base_url_without_trailing_slash(self):
        seen: list[httpx.Request] = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json={"ok": True})

        client = SlackClient(
            lambda: "t",
            base_url="http://localhost:8080/api",
            transport=httpx.MockTransport(handler),
        )
        client.call("GET", "users.list")

        assert str(seen[0].url).startswith("http://localhost:8080/api/users.list?")


class TestSlackClientErrors:
    def test_not_ok_raises_remote_error_with_code(self):
        client, _ = make_client(
            lambda r: httpx.Response(200, json={"ok": False, "error": "channel_not_found"})
        )

        with pytest.raises(SlackRemoteError) as excinfo:
            client.call("GET", "channels.history", {"channel": "C1"})

        assert excinfo.value.code == "channel_not_found"

    def test_missing_ok_field_is_remote_error(self):
        client, _ = make_client(lambda r: httpx.Response(200, json={"messages": []}))

        with pytest.raises(SlackRemoteError) as excinfo:
            client.call("GET", "channels.history")

        assert excinfo.value.code == "unknown_error"

    def test_http_status_raises_transport_error(self):
        client, _ = make_client(lambda r: httpx.Response(503, text="unavailable"))

        with pytest.raises(SlackTransportError) as excinfo:
            client.call("GET", "users.list")

        assert excinfo.value.code == "http_status"
        assert excinfo.value.details["status"] == 503
        assert excinfo.value.details["reason"] == "Service Unavailable"

    def test_non_json_body_raises_transport_error(self):
        client, _ = make_client(lambda r: httpx.Response(200, text="<html>"))

        with pytest.raises(SlackTransportError) as excinfo:
            client.call("GET", "users.list")

        assert excinfo.value.code == "invalid_json"

    def test_timeout_raises_transport_error(self):
        def handler(request):
            raise httpx.ReadTimeout("Read timed out", request=request)

        client, _ = make_client(handler)

        with pytest.raises(SlackTransportError) as excinfo:
            client.call("GET", "users.list")

        assert excinfo.value.code == "timeout"
        assert isinstance(excinfo.value.original_error, httpx.ReadTimeout)

    def test_connect_error_raises_transport_error(self):
        def handler(request):
            raise httpx.ConnectError("Connection refused", request=request)

        client, _ = make_client(handler)

        with pytest.raises(SlackTransportError) as excinfo:
            client.call("GET", "users.list")

        assert excinfo.value.code == "transport"

    def test_all_failures_share_base_class(self):
        client, _ = make_client(lambda r: httpx.Response(200, json={"ok": False, "error": "ratelimited"}))

        with pytest.raises(SlackAPIError):
            client.call("GET", "users.list")

    def test_no_token_sends_nothing(self):
        client, seen = make_client(lambda r: httpx.Response(200, json={"ok": True}), token="")

        with pytest.raises(SlackNotConfiguredError):
            client.call("GET", "users.list")

        assert seen == []
        assert client.enabled is False

    def test_failures_are_logged(self):
        from loguru import logger

        messages: list[str] = []
        sink_id = logger.add(lambda m: messages.append(m.record["message"]), level="ERROR")
        try:
            client, _ = make_client(
                lambda r: httpx.Response(200, json={"ok": False, "error": "invalid_auth"})
            )
            with pytest.raises(SlackRemoteError):
                client.call("GET", "users.list")
        finally:
            logger.remove(sink_id)

        assert any("invalid_auth" in m for m in messages)
