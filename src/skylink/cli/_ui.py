"""Terminal output helpers for the deploy wizard."""

from __future__ import annotations

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel


def hr(console: Console) -> None:
    console.print("─" * 46, style="grey50", highlight=False)


def banner(console: Console, title: str) -> None:
    console.print()
    console.print(Panel(f"[bold]{escape(title)}[/bold]", border_style="bold blue", width=50))


def ok(console: Console, message: str) -> None:
    console.print(f"[green]✔[/green] {escape(message)}", highlight=False)


def warn(console: Console, message: str) -> None:
    console.print(f"[dark_orange]⚠[/dark_orange] {escape(message)}", highlight=False)


def kv(console: Console, key: str, value: str) -> None:
    console.print(f"   [grey50]{escape(key)}[/grey50]  {escape(value)}", highlight=False, soft_wrap=True)
