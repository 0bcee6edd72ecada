"""HTML message templates for Telegram notifications."""

from __future__ import annotations

from html import escape

_RULE = "━━━━━━━━━━━━━━━━━━"


def deploy_message(region: str, protocol: str, url: str, uri: str, started: str) -> str:
    return "\n".join(
        [
            "✅ <b>SkyLinkVPN Deploy Success</b>",
            _RULE,
            f"🌍 <b>Region:</b> {escape(region)}",
            f"⚙️ <b>Protocol:</b> {escape(protocol)}",
            f"🔗 <b>URL:</b> {escape(url)}",
            "🔑 <b>Initial Config URI:</b>",
            f"<pre><code>{escape(uri)}</code></pre>",
            f"🕒 <b>Start:</b> {escape(started)}",
            _RULE,
        ]
    )


def rotation_message(when: str, uri: str) -> str:
    return "\n".join(
        [
            "🔁 <b>SkyLinkVPN Key Rotated</b>",
            _RULE,
            f"🕒 <b>Time:</b> {escape(when)}",
            "🔑 <b>New Config URI:</b>",
            f"<pre><code>{escape(uri)}</code></pre>",
            _RULE,
        ]
    )
