"""skylink deploy — interactive Cloud Run deployment wizard."""

from __future__ import annotations

import asyncio
import os
from collections.abc import Sequence
from datetime import datetime
from pathlib import Path
from zoneinfo import ZoneInfo

from rich.console import Console
from rich.prompt import Prompt

from skylink.channels.base import BaseChannel, DeliveryResult
from skylink.cli._common import fail, load_config_or_exit, open_run_log
from skylink.cli._ui import banner, hr, kv, ok, warn
from skylink.core.config import SkylinkConfig, TelegramConfig
from skylink.core.constants import (
    CPU_CHOICES,
    DEFAULT_CPU,
    DEFAULT_MEMORY,
    DEFAULT_REGION,
    DISPLAY_TIME_FORMAT,
    MEMORY_CHOICES,
    ExitCode,
)
from skylink.core.protocols import (
    PROTOCOL_MENU,
    REGION_MENU,
    Protocol,
    protocol_from_menu,
    region_from_menu,
)
from skylink.core.rotation import RotationSettings, interval_arg


def _ask(label: str, non_interactive: bool, default: str = "") -> str:
    if non_interactive:
        return default
    return Prompt.ask(label, default=default, show_default=False).strip()


def cmd_deploy(
    protocol: str,
    region: str,
    cpu: str,
    memory: str,
    token: str,
    chat_ids: str,
    interval: float | None,
    foreground: bool,
    non_interactive: bool,
    console: Console,
) -> None:
    """Run the deploy wizard, then start key rotation."""
    from skylink.channels.telegram.templates import deploy_message
    from skylink.cloud.gcloud import DeploySpec, Gcloud, canonical_host
    from skylink.core.credentials import CredentialSet
    from skylink.core.daemon.manager import build_channel, read_pid
    from skylink.core.exceptions import DeployError, GcloudNotFoundError
    from skylink.core.rotation import rotation_settings
    from skylink.core.uri import build_uri

    config = load_config_or_exit(console)
    key_log = open_run_log(config)

    if (running := read_pid(config.pid_path)) is not None:
        fail(
            console,
            f"A key rotator is already running (pid {running}). Stop it first with: skylink stop",
            key_log,
            code=ExitCode.ERROR,
        )

    console.print("\n[bold cyan]🚀 SkyLinkVPN — Cloud Run Deploy + Key-Rotate[/bold cyan]")
    hr(console)

    # -----------------------------------------------------------------------
    # Step 1: Telegram (optional)
    # -----------------------------------------------------------------------
    banner(console, "Step 1 — Telegram Setup (optional)")
    if not token:
        token = _ask("🤖 Telegram Bot Token (enter to skip)", non_interactive)
    if not chat_ids:
        chat_ids = _ask("👥 Telegram Chat ID(s) comma-separated (enter to skip)", non_interactive)

    if token or chat_ids:
        config = _with_telegram(config, token, chat_ids)
    if config.telegram is None or not config.telegram.bot_token.get_secret_value():
        warn(console, "Telegram token empty; Telegram notifications disabled.")
    else:
        ok(console, "Telegram token set.")
    destinations = config.telegram.chat_ids if config.telegram and config.notifications_enabled else []

    # -----------------------------------------------------------------------
    # Step 2: GCP project
    # -----------------------------------------------------------------------
    banner(console, "Step 2 — GCP Project")
    gcloud = Gcloud(log_path=key_log.path)
    try:
        project = gcloud.active_project()
        project_number = gcloud.project_number(project)
    except GcloudNotFoundError as exc:
        fail(console, str(exc), key_log, code=ExitCode.DEPENDENCY_MISSING)
    except DeployError as exc:
        fail(console, str(exc), key_log, code=ExitCode.ENV_ERROR)
    ok(console, f"Project Loaded: {project} ({project_number})")

    # -----------------------------------------------------------------------
    # Step 3: Protocol
    # -----------------------------------------------------------------------
    banner(console, "Step 3 — Select Protocol")
    if protocol:
        proto = Protocol(protocol)
    else:
        for i, p in enumerate(PROTOCOL_MENU, start=1):
            console.print(f"  {i}) {p.title}")
        proto = protocol_from_menu(_ask("Choose [1-4, default 1]", non_interactive, "1"))
    ok(console, f"Protocol selected: {proto}")

    # -----------------------------------------------------------------------
    # Step 4: Region
    # -----------------------------------------------------------------------
    banner(console, "Step 4 — Region")
    if not region:
        for i, r in enumerate(REGION_MENU, start=1):
            console.print(f"{i}) {r.label} ({r.code})")
        region = region_from_menu(_ask("Choose [1-4, default 2]", non_interactive, "2"), DEFAULT_REGION)
    ok(console, f"Region: {region}")

    # -----------------------------------------------------------------------
    # Step 5: Resources
    # -----------------------------------------------------------------------
    banner(console, "Step 5 — Resources")
    if not cpu:
        cpu = _ask(f"CPU [{'/'.join(CPU_CHOICES)}, default {DEFAULT_CPU}]", non_interactive) or DEFAULT_CPU
    if not memory:
        memory = (
            _ask(f"Memory [{'/'.join(MEMORY_CHOICES)}, default {DEFAULT_MEMORY}]", non_interactive)
            or DEFAULT_MEMORY
        )
    ok(console, f"CPU/Mem: {cpu} vCPU / {memory}")

    # -----------------------------------------------------------------------
    # Step 6: Service name & timezone
    # -----------------------------------------------------------------------
    banner(console, "Step 6 — Service Name & Timezone")
    service = config.deploy.service
    ok(console, f"Service: {service}")
    tz = ZoneInfo(config.deploy.timezone)
    started = datetime.now(tz).strftime(DISPLAY_TIME_FORMAT)
    kv(console, "Start:", started)

    # -----------------------------------------------------------------------
    # Step 7: Enable APIs (best-effort)
    # -----------------------------------------------------------------------
    banner(console, "Step 7 — Enable APIs")
    gcloud.enable_apis()
    ok(console, "Requested enabling Cloud Run & Cloud Build APIs (if not already).")

    # -----------------------------------------------------------------------
    # Step 8: Deploy
    # -----------------------------------------------------------------------
    banner(console, "Step 8 — Deploying to Cloud Run")
    console.print(f"Deploying {service} to {region} ...")
    spec = DeploySpec(
        image=proto.image,
        region=region,
        memory=memory,
        cpu=cpu,
        service=service,
        request_timeout=config.deploy.request_timeout,
        port=config.deploy.port,
        min_instances=config.deploy.min_instances,
    )
    try:
        gcloud.deploy(spec)
    except DeployError as exc:
        fail(console, str(exc), key_log, code=ExitCode.DEPLOY_ERROR)
    ok(console, "gcloud run deploy finished.")

    host = canonical_host(service, project_number, region)
    url = f"https://{host}"
    banner(console, "Result")
    kv(console, "URL:", url)

    # -----------------------------------------------------------------------
    # Initial keys + deploy notification
    # -----------------------------------------------------------------------
    initial = CredentialSet.generate(datetime.now(tz))
    uri = build_uri(proto, initial, host)

    banner(console, "Deploy Complete — Notification")
    channel = build_channel(config)
    message = deploy_message(region=region, protocol=str(proto), url=url, uri=uri, started=started)
    for result in asyncio.run(_announce(channel, destinations, message)):
        if result.ok:
            ok(console, f"Telegram sent → {result.destination}")
        else:
            key_log.write(f"telegram delivery to {result.destination} failed: {result.error}")
            warn(console, f"Telegram failed → {result.destination}")

    console.print(f"\n[bold green]✨ SkyLinkVPN deployed — service running at {url}[/bold green]")
    console.print(f"[grey50]📄 Log: {key_log.path}[/grey50]")
    hr(console)

    # -----------------------------------------------------------------------
    # Rotation
    # -----------------------------------------------------------------------
    interval_seconds = interval or config.rotation.interval_seconds
    settings = rotation_settings(proto, host, interval_seconds, destinations)
    if foreground:
        ok(console, f"Auto-rotate loop running in foreground (every {_human(interval_seconds)}).")
    else:
        pid = _start_detached(settings, config, key_log.path)
        ok(console, f"Auto-rotate background process started (pid {pid}, every {_human(interval_seconds)}).")

    # -----------------------------------------------------------------------
    # Final info
    # -----------------------------------------------------------------------
    banner(console, "Info / Next Steps")
    kv(console, "Service URL:", url)
    kv(console, "Protocol:", str(proto))
    kv(console, "Current Config URI:", uri)
    kv(console, "To stop auto-rotate:", "skylink stop")
    kv(console, "Rotate after reboot:", f"skylink service install --protocol {proto} --host {host}")
    console.print()
    ok(console, f"Manual delete (if needed): skylink delete --service {service} --region {region}")

    if foreground:
        from skylink.cli._rotate import run_rotator

        run_rotator(settings, config, key_log, console, initial=initial)


def _with_telegram(config: SkylinkConfig, token: str, chat_ids: str) -> SkylinkConfig:
    """Return a copy of *config* with the Telegram values typed into the wizard."""
    current = config.telegram
    bot_token = token or (current.bot_token.get_secret_value() if current else "")
    ids = chat_ids or (",".join(current.chat_ids) if current else "")
    if not bot_token:
        return config.model_copy(update={"telegram": None})
    return config.model_copy(update={"telegram": TelegramConfig(bot_token=bot_token, chat_ids=ids)})


async def _announce(
    channel: BaseChannel, destinations: Sequence[str], message: str
) -> list[DeliveryResult]:
    async with channel:
        return await channel.broadcast(destinations, message)


def _start_detached(settings: RotationSettings, config: SkylinkConfig, log_path: Path) -> int:
    from skylink.core.daemon.manager import spawn_detached

    args = [
        "rotate",
        "--protocol",
        str(settings.protocol),
        "--host",
        settings.canonical_host,
        "--interval",
        interval_arg(settings.interval_seconds),
        "--log-file",
        str(log_path),
    ]
    # Pass wizard-entered Telegram values on to the child process
    env = dict(os.environ)
    if config.telegram is not None and config.notifications_enabled:
        env["TELEGRAM_TOKEN"] = config.telegram.bot_token.get_secret_value()
        env["TELEGRAM_CHAT_IDS"] = ",".join(config.telegram.chat_ids)
    return spawn_detached(args, log_path, env=env)


def _human(seconds: float) -> str:
    if seconds >= 3600 and seconds % 3600 == 0:
        return f"{int(seconds // 3600)} hours"
    if seconds >= 60 and seconds % 60 == 0:
        return f"{int(seconds // 60)} minutes"
    return f"{seconds:g} seconds"
