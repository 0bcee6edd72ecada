"""skylink rotate — run the key rotation loop for a deployed service."""

from __future__ import annotations

import asyncio
import sys
from zoneinfo import ZoneInfo

from rich.console import Console

from skylink.cli._common import load_config_or_exit, open_run_log
from skylink.cli._ui import ok
from skylink.core.config import SkylinkConfig
from skylink.core.credentials import CredentialSet
from skylink.core.keylog import KeyLog
from skylink.core.rotation import RotationResult, RotationSettings


def cmd_rotate(
    protocol: str,
    host: str,
    interval: float | None,
    log_file: str,
    pid_file: bool,
    max_ticks: int | None,
    console: Console,
) -> None:
    """Load config and run the rotator in the foreground."""
    from skylink.core.daemon.manager import read_pid
    from skylink.core.rotation import rotation_settings

    config = load_config_or_exit(console)
    key_log = open_run_log(config, log_file)

    if pid_file and (pid := read_pid(config.pid_path)) is not None:
        console.print(f"[red]A rotator is already running (pid {pid}).[/red]")
        console.print("Stop it first with [cyan]skylink stop[/cyan].")
        sys.exit(1)

    destinations = config.telegram.chat_ids if config.telegram and config.notifications_enabled else []
    settings = rotation_settings(
        protocol,
        host,
        interval or config.rotation.interval_seconds,
        destinations,
    )
    if not destinations:
        console.print("[yellow]Telegram not configured; rotations are only written to the log.[/yellow]")
    console.print(f"[bold]SkyLink[/bold] rotating [cyan]{settings.protocol}[/cyan] keys for {host}")
    console.print(f"Every {settings.interval_seconds:g}s · log: {key_log.path}")
    console.print("Press Ctrl+C to stop.\n")

    run_rotator(settings, config, key_log, console, pid_file=pid_file, max_ticks=max_ticks)


def run_rotator(
    settings: RotationSettings,
    config: SkylinkConfig,
    key_log: KeyLog,
    console: Console,
    initial: CredentialSet | None = None,
    pid_file: bool = True,
    max_ticks: int | None = None,
) -> None:
    from skylink.core.daemon.manager import RotationDaemon, build_channel
    from skylink.core.rotation import SystemClock

    def _report(result: RotationResult) -> None:
        ok(console, f"Keys rotated and notified ({result.delivered}/{len(result.deliveries)} delivered).")

    daemon = RotationDaemon(
        settings,
        build_channel(config),
        key_log=key_log,
        pid_path=config.pid_path if pid_file else None,
        clock=SystemClock(ZoneInfo(config.deploy.timezone)),
        initial=initial,
        on_rotate=_report,
    )
    try:
        asyncio.run(daemon.start(max_ticks=max_ticks))
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted.[/yellow]")
