"""Telegram Notifier — sendMessage payload and failure handling.

Tests cover:
    - Successful send posts HTML-mode payload to the bot URL and returns True
    - HTTP error status, ok=false body, and transport errors all return False
    - A notifier built from Settings closes its own client
"""

import json

import httpx

from miniapp.config import Settings
from miniapp.infrastructure.telegram_client import TelegramNotifier


def _notifier(handler) -> TelegramNotifier:
    return TelegramNotifier(
        "TEST_TOKEN",
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
    )


async def test_send_message_success():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"ok": True, "result": {"message_id": 1}})

    notifier = _notifier(handler)
    assert await notifier.send_message(42, "<b>hi</b>") is True
    await notifier.aclose()

    request = seen[0]
    assert str(request.url) == "https://api.telegram.org/botTEST_TOKEN/sendMessage"
    body = json.loads(request.content)
    assert body == {
        "chat_id": 42,
        "text": "<b>hi</b>",
        "parse_mode": "HTML",
        "disable_web_page_preview": True,
    }


async def test_send_message_http_error_returns_false():
    notifier = _notifier(
        lambda request: httpx.Response(
            403, json={"ok": False, "description": "bot was blocked by the user"},
        ),
    )
    assert await notifier.send_message(42, "hi") is False


async def test_send_message_not_ok_returns_false():
    notifier = _notifier(lambda request: httpx.Response(200, json={"ok": False}))
    assert await notifier.send_message(42, "hi") is False


async def test_send_message_non_json_body_returns_false():
    notifier = _notifier(lambda request: httpx.Response(200, text="<html>"))
    assert await notifier.send_message(42, "hi") is False


async def test_send_message_transport_error_returns_false():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    notifier = _notifier(handler)
    assert await notifier.send_message(42, "hi") is False


def test_custom_api_base_is_used():
    notifier = TelegramNotifier("T", api_base="http://localhost:8081/")
    assert notifier._url == "http://localhost:8081/botT/sendMessage"


async def test_notifier_built_from_settings_owns_and_closes_its_client():
    settings = Settings(
        telegram_bot_token="T",
        telegram_api_base="http://localhost:8081",
        telegram_timeout_seconds=3.0,
    )
    notifier = TelegramNotifier(
        settings.telegram_bot_token,
        api_base=settings.telegram_api_base,
        timeout_seconds=settings.telegram_timeout_seconds,
    )
    assert notifier._client.timeout.read == 3.0
    await notifier.aclose()
    assert notifier._client.is_closed
