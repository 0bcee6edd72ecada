"""Telegram bot token verification via ``getMe``."""

from __future__ import annotations

import httpx

from skylink.core.constants import TELEGRAM_API_BASE


def verify_telegram_token(token: str, timeout: float = 10.0) -> tuple[bool, str]:
    """
    Check a bot token against the Bot API.

    Returns ``(ok, detail)``; *detail* is the bot username on success or a
    human-readable reason on failure. Never raises for network errors.
    """
    try:
        resp = httpx.get(f"{TELEGRAM_API_BASE}/bot{token}/getMe", timeout=timeout)
        data = resp.json()
    except httpx.TimeoutException:
        return False, "Request to Telegram timed out"
    except httpx.HTTPError as exc:
        return False, f"Could not connect to Telegram: {exc}"
    except ValueError:
        return False, "Telegram returned a non-JSON response"

    if not data.get("ok"):
        return False, f"Telegram rejected the token: {data.get('description', 'unknown error')}"
    username = data.get("result", {}).get("username", "?")
    return True, f"Bot: @{username}"
