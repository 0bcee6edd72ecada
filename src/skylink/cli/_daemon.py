"""skylink stop / status — background rotator lifecycle commands."""

from __future__ import annotations

import json
import os
import signal
import sys

from rich.console import Console

from skylink.cli._common import load_config_or_exit


def cmd_stop(console: Console) -> None:
    from skylink.core.daemon.manager import read_pid

    config = load_config_or_exit(console)
    pid = read_pid(config.pid_path)
    if pid is None:
        console.print("[yellow]No rotator is running.[/yellow]")
        return

    try:
        os.kill(pid, signal.SIGTERM)
    except ProcessLookupError:
        config.pid_path.unlink(missing_ok=True)
        console.print("[yellow]Rotator already exited.[/yellow]")
        return
    except PermissionError:
        console.print(f"[red]Not allowed to stop pid {pid}.[/red]")
        sys.exit(1)
    console.print(f"[green]Sent SIGTERM to rotator (pid {pid}).[/green]")


def cmd_status(as_json: bool, console: Console) -> None:
    from skylink.core.daemon.manager import read_pid

    config = load_config_or_exit(console)
    pid = read_pid(config.pid_path)
    status = {
        "running": pid is not None,
        "pid": pid,
        "pid_file": str(config.pid_path),
        "telegram": config.notifications_enabled,
        "interval_seconds": config.rotation.interval_seconds,
    }
    if as_json:
        print(json.dumps(status, indent=2))
        return

    if pid is None:
        console.print("Rotator: [dim]not running[/dim]")
    else:
        console.print(f"Rotator: [green]running[/green] (pid {pid})")
    telegram = "[green]enabled[/green]" if config.notifications_enabled else "[dim]disabled[/dim]"
    console.print(f"Telegram: {telegram}")
    console.print(f"Interval: {config.rotation.interval_seconds:g}s")
