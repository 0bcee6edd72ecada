"""
SkyLink CLI entry point.

Commands:
  skylink deploy            — interactive Cloud Run deploy + start key rotation
  skylink rotate            — run the key rotation loop for a deployed service
  skylink stop              — stop the background rotator
  skylink status            — show whether the rotator is running
  skylink uri               — print a connection URI with fresh keys
  skylink delete            — delete the Cloud Run service
  skylink setup             — save Telegram notification settings
  skylink doctor            — environment and configuration health check
  skylink service install   — install a systemd user unit for the rotator
  skylink version           — show version information
"""

from __future__ import annotations

import click
from rich.console import Console

from skylink import __version__
from skylink.core.constants import (
    CPU_CHOICES,
    DEFAULT_REGION,
    DEFAULT_SERVICE_NAME,
    MEMORY_CHOICES,
    MIN_ROTATION_INTERVAL_SECONDS,
)
from skylink.core.protocols import REGION_MENU, Protocol

console = Console()
err_console = Console(stderr=True)

_PROTOCOLS = click.Choice([p.value for p in Protocol])
_REGIONS = click.Choice([r.code for r in REGION_MENU])
_INTERVAL = click.FloatRange(min=MIN_ROTATION_INTERVAL_SECONDS)


# ---------------------------------------------------------------------------
# Root group
# ---------------------------------------------------------------------------


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(__version__, "--version", "-V", message="skylink %(version)s")
def cli() -> None:
    """SkyLink — Cloud Run tunnel deployer with scheduled key rotation."""


# ---------------------------------------------------------------------------
# deploy
# ---------------------------------------------------------------------------


@cli.command()
@click.option("--protocol", type=_PROTOCOLS, default=None, help="Tunnel protocol (prompted if omitted)")
@click.option("--region", type=_REGIONS, default=None, help="Cloud Run region (prompted if omitted)")
@click.option("--cpu", type=click.Choice(CPU_CHOICES), default=None)
@click.option("--memory", type=click.Choice(MEMORY_CHOICES), default=None)
@click.option("--telegram-token", "token", default="", help="Telegram bot token")
@click.option("--chat-ids", default="", help="Comma-separated Telegram chat IDs")
@click.option("--interval", type=_INTERVAL, default=None, help="Rotation interval in seconds")
@click.option("--foreground", "-f", is_flag=True, default=False, help="Rotate in this process")
@click.option("--non-interactive", is_flag=True, default=False, help="Use defaults for unanswered prompts")
def deploy(
    protocol: str | None,
    region: str | None,
    cpu: str | None,
    memory: str | None,
    token: str,
    chat_ids: str,
    interval: float | None,
    foreground: bool,
    non_interactive: bool,
) -> None:
    """Deploy the tunnel service to Cloud Run and start key rotation."""
    from skylink.cli._deploy import cmd_deploy

    cmd_deploy(
        protocol=protocol or "",
        region=region or "",
        cpu=cpu or "",
        memory=memory or "",
        token=token,
        chat_ids=chat_ids,
        interval=interval,
        foreground=foreground,
        non_interactive=non_interactive,
        console=console,
    )


# ---------------------------------------------------------------------------
# rotate / stop / status
# ---------------------------------------------------------------------------


@cli.command()
@click.option("--protocol", type=_PROTOCOLS, required=True)
@click.option("--host", required=True, help="Canonical host of the deployed service")
@click.option("--interval", type=_INTERVAL, default=None, help="Rotation interval in seconds")
@click.option("--log-file", default="", help="Append to this run log instead of a new one")
@click.option("--pid-file/--no-pid-file", default=True, help="Track this rotator in the PID file")
@click.option("--max-ticks", type=click.IntRange(min=1), default=None, hidden=True)
def rotate(
    protocol: str,
    host: str,
    interval: float | None,
    log_file: str,
    pid_file: bool,
    max_ticks: int | None,
) -> None:
    """Run the key rotation loop (foreground)."""
    from skylink.cli._rotate import cmd_rotate

    cmd_rotate(
        protocol=protocol,
        host=host,
        interval=interval,
        log_file=log_file,
        pid_file=pid_file,
        max_ticks=max_ticks,
        console=console,
    )


@cli.command()
def stop() -> None:
    """Stop the background key rotator."""
    from skylink.cli._daemon import cmd_stop

    cmd_stop(console=console)


@cli.command()
@click.option("--json", "as_json", is_flag=True, default=False)
def status(as_json: bool) -> None:
    """Show rotator status."""
    from skylink.cli._daemon import cmd_status

    cmd_status(as_json=as_json, console=console)


# ---------------------------------------------------------------------------
# uri / delete
# ---------------------------------------------------------------------------


@cli.command()
@click.option("--protocol", type=_PROTOCOLS, required=True)
@click.option("--host", required=True, help="Canonical host of the deployed service")
@click.option("--decode", is_flag=True, default=False, help="Also print the decoded vmess record")
def uri(protocol: str, host: str, decode: bool) -> None:
    """Print a connection URI with freshly generated keys."""
    from skylink.cli._uri import cmd_uri

    cmd_uri(protocol=protocol, host=host, decode=decode, console=err_console)


@cli.command()
@click.option("--service", default=DEFAULT_SERVICE_NAME, show_default=True)
@click.option("--region", type=_REGIONS, default=DEFAULT_REGION, show_default=True)
@click.option("--yes", "-y", is_flag=True, default=False, help="Do not ask for confirmation")
def delete(service: str, region: str, yes: bool) -> None:
    """Delete the Cloud Run service."""
    from skylink.cli._cloud import cmd_delete

    cmd_delete(service=service, region=region, yes=yes, console=console)


# ---------------------------------------------------------------------------
# setup / doctor
# ---------------------------------------------------------------------------


@cli.command()
@click.option("--token", default="", help="Telegram bot token")
@click.option("--chat-ids", default="", help="Comma-separated Telegram chat IDs")
@click.option("--non-interactive", is_flag=True, default=False, help="Read from options/env vars only")
def setup(token: str, chat_ids: str, non_interactive: bool) -> None:
    """Save Telegram notification settings."""
    from skylink.cli._setup import run_setup

    run_setup(non_interactive=non_interactive, console=console, token=token, chat_ids=chat_ids)


@cli.command()
@click.option("--json", "as_json", is_flag=True, default=False)
@click.option("--offline", is_flag=True, default=False, help="Skip the Telegram token check")
def doctor(as_json: bool, offline: bool) -> None:
    """Environment and configuration health check."""
    from skylink.cli._doctor import cmd_doctor

    cmd_doctor(as_json=as_json, offline=offline, console=console)


# ---------------------------------------------------------------------------
# service
# ---------------------------------------------------------------------------


@cli.group()
def service() -> None:
    """systemd user service management (Linux)."""


@service.command("install")
@click.option("--protocol", type=_PROTOCOLS, required=True)
@click.option("--host", required=True, help="Canonical host of the deployed service")
@click.option("--interval", type=_INTERVAL, default=None)
@click.option("--enable/--no-enable", default=True, help="Enable and start the unit right away")
def service_install(protocol: str, host: str, interval: float | None, enable: bool) -> None:
    """Install a systemd user unit that runs the rotator."""
    from skylink.cli._service import cmd_service_install

    cmd_service_install(protocol=protocol, host=host, interval=interval, enable=enable, console=console)


# ---------------------------------------------------------------------------
# version
# ---------------------------------------------------------------------------


@cli.command()
@click.option("--json", "as_json", is_flag=True, default=False)
def version(as_json: bool) -> None:
    """Show version information."""
    import platform
    import sys as _sys

    if as_json:
        import json

        click.echo(
            json.dumps(
                {
                    "skylink": __version__,
                    "python": _sys.version.split()[0],
                    "platform": _sys.platform,
                    "arch": platform.machine(),
                    "protocols": [p.value for p in Protocol],
                },
                indent=2,
            )
        )
    else:
        console.print(f"skylink {__version__}")
        console.print(f"Python {_sys.version.split()[0]}")
        console.print(f"Platform: {_sys.platform} {platform.machine()}")
        console.print(f"Protocols: {', '.join(p.value for p in Protocol)}")


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
