"""skylink delete — remove the Cloud Run service."""

from __future__ import annotations

import sys

from rich.console import Console
from rich.prompt import Confirm

from skylink.core.constants import ExitCode


def cmd_delete(service: str, region: str, yes: bool, console: Console) -> None:
    from skylink.cloud.gcloud import Gcloud
    from skylink.core.exceptions import DeployError, GcloudNotFoundError

    question = f"Delete Cloud Run service [bold]{service}[/bold] in {region}?"
    if not yes and not Confirm.ask(question, default=False):
        console.print("[dim]Aborted.[/dim]")
        return

    try:
        Gcloud().delete_service(service, region)
    except GcloudNotFoundError as exc:
        console.print(f"[red]{exc}[/red]")
        sys.exit(ExitCode.DEPENDENCY_MISSING)
    except DeployError as exc:
        console.print(f"[red]{exc}[/red]")
        sys.exit(ExitCode.DEPLOY_ERROR)
    console.print(f"[green]Deleted {service} ({region}).[/green]")
    console.print("[dim]Stop the rotator too: skylink stop[/dim]")
