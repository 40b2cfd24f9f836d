"""Tests for TelegramClient delivery and retry behaviour."""

import json

import httpx

from crypto_scanner.alerting.telegram_client import TelegramClient


def _client(handler, enabled=True) -> TelegramClient:
    return TelegramClient(
        bot_token="123:abc",
        chat_id="42",
        enabled=enabled,
        transport=httpx.MockTransport(handler),
        retry_backoff=[0, 0, 0],
    )


class TestTelegramClient:

    def test_send_posts_to_configured_chat(self):
        requests = []

        def handler(request):
            requests.append(request)
            return httpx.Response(200, json={"ok": True})

        assert _client(handler).send("hello") is True

        assert len(requests) == 1
        assert requests[0].url.path == "/bot123:abc/sendMessage"
        body = json.loads(requests[0].content)
        assert body == {"chat_id": "42", "text": "hello", "parse_mode": "HTML"}

    def test_reply_targets_given_chat(self):
        bodies = []

        def handler(request):
            bodies.append(json.loads(request.content))
            return httpx.Response(200, json={"ok": True})

        _client(handler).reply("777", "pong")

        assert bodies[0]["chat_id"] == "777"

    def test_disabled_client_does_not_send(self):
        def handler(request):
            raise AssertionError("should not be called")

        assert _client(handler, enabled=False).send("hello") is False

    def test_retries_server_errors_then_gives_up(self):
        calls = []

        def handler(request):
            calls.append(1)
            return httpx.Response(502, text="bad gateway")

        assert _client(handler).send("hello") is False
        assert len(calls) == 3

    def test_retries_network_errors_until_success(self):
        calls = []

        def handler(request):
            calls.append(1)
            if len(calls) < 2:
                raise httpx.ConnectError("refused", request=request)
            return httpx.Response(200, json={"ok": True})

        assert _client(handler).send("hello") is True
        assert len(calls) == 2

    def test_client_error_not_retried(self):
        calls = []

        def handler(request):
            calls.append(1)
            return httpx.Response(400, json={"ok": False, "description": "can't parse entities"})

        assert _client(handler).send("<b>broken") is False
        assert len(calls) == 1
