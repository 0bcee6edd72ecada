"""skylink service install — keep the rotator running under systemd."""

from __future__ import annotations

import shutil
import sys

from rich.console import Console


def cmd_service_install(
    protocol: str,
    host: str,
    interval: float | None,
    enable: bool,
    console: Console,
) -> None:
    from skylink.core.config import _config_file_path
    from skylink.os.systemd.service import (
        SERVICE_NAME,
        enable_service,
        generate_unit_file,
        install_service,
        is_systemd_available,
        reload_daemon,
    )

    skylink_bin = shutil.which("skylink") or "skylink"
    unit = generate_unit_file(
        exec_path=skylink_bin,
        config_path=str(_config_file_path()),
        protocol=protocol,
        host=host,
        interval_seconds=interval,
    )
    unit_path = install_service(unit)
    console.print(f"[green]Service installed:[/green] {unit_path}")

    if not enable:
        console.print(f"Start with: [cyan]systemctl --user enable --now {SERVICE_NAME}[/cyan]")
        return
    if not is_systemd_available():
        console.print("[yellow]systemd user session not available; unit written but not enabled.[/yellow]")
        return
    try:
        reload_daemon()
        enable_service(now=True)
    except RuntimeError as exc:
        console.print(f"[red]{exc}[/red]")
        sys.exit(1)
    console.print(f"[green]Enabled and started[/green] {SERVICE_NAME}")
    console.print("Stop any rotator started by 'skylink deploy' first: [cyan]skylink stop[/cyan]")
