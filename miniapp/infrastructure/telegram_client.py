"""Telegram Notifier — outbound sendMessage calls to the Bot API.

Invariants:
    - send_message never raises: transport errors and API refusals return False and are logged
    - Messages are sent as HTML with link previews disabled
    - The bot token only appears in the request URL, never in log lines

Design Decisions:
    - Standalone collaborator: not wired into the request path or the app
      lifespan. Callers that push notifications (jobs, admin scripts) build one
      from Settings and close it with aclose()
    - One shared httpx.AsyncClient per notifier (connection reuse)
    - http_client injectable so tests can use httpx.MockTransport
"""

import logging

import httpx

logger = logging.getLogger(__name__)


class TelegramNotifier:
    """Sends plain notifications to users through the bot."""

    def __init__(
        self,
        bot_token: str,
        api_base: str = "https://api.telegram.org",
        timeout_seconds: float = 10.0,
        http_client: httpx.AsyncClient | None = None,
    ):
        self._url = f"{api_base.rstrip('/')}/bot{bot_token}/sendMessage"
        self._client = http_client or httpx.AsyncClient(timeout=timeout_seconds)

    async def send_message(self, user_id: int, text: str) -> bool:
        """Send text to a user's private chat. Returns True when Telegram accepted it."""
        payload = {
            "chat_id": user_id,
            "text": text,
            "parse_mode": "HTML",
            "disable_web_page_preview": True,
        }
        try:
            response = await self._client.post(self._url, json=payload)
        except httpx.HTTPError as e:
            logger.error(
                f"Telegram sendMessage transport error: {type(e).__name__}",
                extra={"user_id": user_id},
            )
            return False

        if response.status_code != 200 or not _is_ok(response):
            logger.error(
                f"Telegram sendMessage rejected (HTTP {response.status_code})",
                extra={"user_id": user_id},
            )
            return False

        logger.info("Message sent", extra={"user_id": user_id})
        return True

    async def aclose(self) -> None:
        await self._client.aclose()


def _is_ok(response: httpx.Response) -> bool:
    try:
        return bool(response.json().get("ok"))
    except ValueError:
        return False
