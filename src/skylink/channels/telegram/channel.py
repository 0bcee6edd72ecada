"""
Telegram notification channel.

Sends HTML-formatted messages through the Bot API ``sendMessage`` method.
SkyLink only talks *to* Telegram: there is no polling and no reply path.

Each send is bounded by ``timeout`` seconds so that one slow chat cannot
stall a rotation tick.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import httpx

from skylink.channels.base import BaseChannel
from skylink.core.constants import DEFAULT_NOTIFY_TIMEOUT_SECONDS, TELEGRAM_API_BASE
from skylink.core.exceptions import ChannelError

logger = logging.getLogger(__name__)


class TelegramChannel(BaseChannel):
    """Telegram Bot API sender."""

    channel_name = "telegram"

    def __init__(
        self,
        bot_token: str,
        timeout: float = DEFAULT_NOTIFY_TIMEOUT_SECONDS,
        api_base: str = TELEGRAM_API_BASE,
    ) -> None:
        self._token = bot_token
        self._timeout = timeout
        self._base = f"{api_base}/bot{bot_token}"
        self._client: httpx.AsyncClient | None = None
        self._sent = 0
        self._failed = 0

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> None:
        self._open_client()

    def _open_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._timeout)
        return self._client

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    # ------------------------------------------------------------------
    # Sending
    # ------------------------------------------------------------------

    async def send(self, destination: str, text: str) -> None:
        payload = {"chat_id": destination, "text": text, "parse_mode": "HTML"}
        try:
            await asyncio.wait_for(self._api("sendMessage", payload), timeout=self._timeout)
        except ChannelError:
            self._failed += 1
            raise
        except TimeoutError as exc:
            self._failed += 1
            raise ChannelError(f"sendMessage to {destination} timed out") from exc
        self._sent += 1
        logger.info("Telegram sent → %s", destination)

    async def _api(self, method: str, payload: dict[str, Any]) -> Any:
        """Call a Bot API method and return its ``result``; raise ChannelError otherwise."""
        client = self._open_client()
        try:
            resp = await client.post(f"{self._base}/{method}", json=payload)
            data = resp.json()
        except httpx.HTTPError as exc:
            raise ChannelError(f"Telegram {method} failed: {type(exc).__name__}: {exc}") from exc
        except ValueError as exc:
            raise ChannelError(f"Telegram {method} returned a non-JSON response") from exc

        if not data.get("ok"):
            code = data.get("error_code", "?")
            description = data.get("description", "unknown error")
            raise ChannelError(f"Telegram {method} error {code}: {description}")
        return data.get("result")

    # ------------------------------------------------------------------
    # Health
    # ------------------------------------------------------------------

    def healthcheck(self) -> dict[str, Any]:
        return {
            "status": "ok" if self._client is not None else "stopped",
            "channel": self.channel_name,
            "sent": self._sent,
            "failed": self._failed,
        }
