"""skylink uri — print a connection URI with freshly generated keys."""

from __future__ import annotations

import json
from datetime import datetime

import click
from rich.console import Console


def cmd_uri(protocol: str, host: str, decode: bool, console: Console) -> None:
    from skylink.core.credentials import CredentialSet
    from skylink.core.protocols import Protocol
    from skylink.core.uri import build_uri, decode_vmess

    proto = Protocol(protocol)
    uri = build_uri(proto, CredentialSet.generate(datetime.now().astimezone()), host)
    click.echo(uri)
    if decode:
        if proto is not Protocol.VMESS_WS:
            console.print("[yellow]--decode only applies to vmess-ws URIs.[/yellow]")
            return
        click.echo(json.dumps(decode_vmess(uri), indent=2))
