"""skylink doctor — environment and configuration health check."""

from __future__ import annotations

import json
import sys

from rich.console import Console


def cmd_doctor(as_json: bool, offline: bool, console: Console) -> None:
    from skylink.cloud.gcloud import Gcloud
    from skylink.core.config import load_config
    from skylink.core.exceptions import ConfigError, DeployError

    checks = [
        {
            "name": "Python version",
            "status": "pass" if sys.version_info >= (3, 11) else "fail",
            "detail": sys.version.split()[0],
        },
        {"name": "Platform", "status": "pass", "detail": sys.platform},
    ]

    gcloud = Gcloud()
    if gcloud.available:
        checks.append({"name": "gcloud CLI", "status": "pass", "detail": "found on PATH"})
        try:
            project = gcloud.active_project()
            checks.append({"name": "gcloud project", "status": "pass", "detail": project})
        except DeployError as exc:
            checks.append({"name": "gcloud project", "status": "fail", "detail": str(exc)})
    else:
        checks.append({"name": "gcloud CLI", "status": "fail", "detail": "not found on PATH"})

    try:
        config = load_config()
    except ConfigError as exc:
        checks.append({"name": "Config", "status": "fail", "detail": str(exc)})
        config = None

    if config is not None:
        telegram = config.telegram
        if telegram is None or not config.notifications_enabled:
            checks.append({"name": "Telegram", "status": "warn", "detail": "not configured"})
        elif offline:
            detail = f"{len(telegram.chat_ids)} chat(s), not verified"
            checks.append({"name": "Telegram", "status": "pass", "detail": detail})
        else:
            from skylink.channels.telegram.verify import verify_telegram_token

            token_ok, detail = verify_telegram_token(telegram.bot_token.get_secret_value())
            checks.append({"name": "Telegram", "status": "pass" if token_ok else "fail", "detail": detail})

    all_pass = all(c["status"] != "fail" for c in checks)

    if as_json:
        print(json.dumps({"checks": checks, "all_pass": all_pass}, indent=2))
    else:
        console.print("[bold]SkyLink Doctor[/bold]\n")
        icons = {"pass": "[green]PASS[/green]", "warn": "[yellow]WARN[/yellow]", "fail": "[red]FAIL[/red]"}
        for c in checks:
            console.print(f"  {icons[c['status']]}  {c['name']}: {c['detail']}")

        console.print()
        if all_pass:
            console.print("[green]All checks passed.[/green]")
        else:
            console.print("[red]Some checks failed.[/red]")

    if not all_pass:
        sys.exit(1)
