"""skylink setup — save Telegram notification settings."""

from __future__ import annotations

import os
import re
import sys

from rich.console import Console
from rich.prompt import Prompt

_TOKEN_RE = re.compile(r"\d{8,12}:[A-Za-z0-9_\-]{35,}")
_CHAT_ID_RE = re.compile(r"-?\d+|@[A-Za-z][A-Za-z0-9_]{4,}")


def _validate_token(token: str) -> bool:
    return bool(_TOKEN_RE.fullmatch(token.strip()))


def _validate_chat_ids(chat_ids: str) -> list[str] | None:
    ids = [c.strip() for c in chat_ids.split(",") if c.strip()]
    if not ids or not all(_CHAT_ID_RE.fullmatch(c) for c in ids):
        return None
    return ids


def run_setup(
    non_interactive: bool,
    console: Console,
    token: str = "",  # nosec B107
    chat_ids: str = "",
) -> None:
    """Run the SkyLink setup wizard."""
    from skylink.core.config import _config_file_path, save_config
    from skylink.core.exceptions import ConfigError

    console.print("[bold]SkyLink Setup[/bold]")
    console.print("\nConfiguring Telegram notifications\n")

    # -----------------------------------------------------------------------
    # Collect bot token
    # -----------------------------------------------------------------------
    if not token:
        token = os.environ.get("TELEGRAM_TOKEN", "")

    if not token and not non_interactive:
        console.print("Get your bot token from @BotFather on Telegram.\n")
        while True:
            token = Prompt.ask("[bold]Telegram bot token[/bold]").strip()
            if _validate_token(token):
                break
            console.print(
                "[red]Invalid token format.[/red] Expected: [dim]12345678:ABCDEFGHIJKLMNOPQRSTUVWXYZab...[/dim]"
            )

    if not token:
        console.print("[red]No bot token provided. Set TELEGRAM_TOKEN or run interactively.[/red]")
        sys.exit(1)

    if not _validate_token(token):
        console.print("[red]Invalid bot token format.[/red]")
        console.print("Expected format: [dim]<8-12 digits>:<35+ alphanumeric chars>[/dim]")
        sys.exit(1)

    # -----------------------------------------------------------------------
    # Collect chat IDs
    # -----------------------------------------------------------------------
    if not chat_ids:
        chat_ids = os.environ.get("TELEGRAM_CHAT_IDS", "") or os.environ.get("TELEGRAM_CHAT_ID", "")

    if not chat_ids and not non_interactive:
        console.print("\nChat or channel IDs to announce rotations to (e.g. -1001234567890 or @mychannel).\n")
        while True:
            chat_ids = Prompt.ask("[bold]Telegram chat ID(s)[/bold] (comma-separated)").strip()
            if _validate_chat_ids(chat_ids):
                break
            console.print("[red]Please enter numeric chat IDs or @channel names separated by commas.[/red]")

    if not chat_ids:
        console.print("[red]No chat IDs provided. Set TELEGRAM_CHAT_IDS or run interactively.[/red]")
        sys.exit(1)

    parsed = _validate_chat_ids(chat_ids)
    if not parsed:
        console.print(f"[red]Invalid chat IDs: {chat_ids!r}[/red]")
        sys.exit(1)

    # -----------------------------------------------------------------------
    # Write config
    # -----------------------------------------------------------------------
    config_data = {"telegram": {"bot_token": token, "chat_ids": parsed}}
    cfg_path = _config_file_path()
    if cfg_path.exists():
        import tomllib

        try:
            with open(cfg_path, "rb") as f:
                existing = tomllib.load(f)
        except (OSError, tomllib.TOMLDecodeError) as exc:
            console.print(f"[red]Cannot read existing config {cfg_path}: {exc}[/red]")
            sys.exit(1)
        existing.update(config_data)
        config_data = existing

    try:
        cfg_path = save_config(config_data, cfg_path)
    except ConfigError as exc:
        console.print(f"[red]Failed to save config: {exc}[/red]")
        sys.exit(1)

    console.print(f"\n[green]Config saved:[/green] {cfg_path}")
    console.print("\n[green]Setup complete.[/green]")
    console.print("Run [cyan]skylink deploy[/cyan] to deploy and start key rotation.")
