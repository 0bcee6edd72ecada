"""Shared CLI plumbing: config loading, run log, and fatal error reporting."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import NoReturn

from rich.console import Console

from skylink.core.config import SkylinkConfig
from skylink.core.constants import ERROR_TAIL_LINES, ExitCode
from skylink.core.keylog import KeyLog, new_log_path


def load_config_or_exit(console: Console) -> SkylinkConfig:
    from skylink.core.config import load_config
    from skylink.core.exceptions import ConfigError

    try:
        return load_config()
    except ConfigError as exc:
        console.print(f"[red]Config error:[/red] {exc}")
        sys.exit(ExitCode.CONFIG_ERROR)


def open_run_log(config: SkylinkConfig, log_file: str = "") -> KeyLog:
    """Open the run log (a new timestamped file unless *log_file* is given) and route logging to it."""
    from skylink.core.log_setup import configure_logging

    path = Path(log_file).expanduser() if log_file else new_log_path(config.log_dir)
    key_log = KeyLog(path)
    configure_logging(config.logging.level, config.logging.format, key_log.path)
    return key_log


def fail(console: Console, message: str, key_log: KeyLog | None, code: int = ExitCode.ERROR) -> NoReturn:
    """Report a fatal setup error with the recent log context, then exit."""
    console.print()
    console.print(f"[bold red]❌ ERROR:[/bold red] {message}")
    if key_log is not None:
        key_log.write(f"ERROR: {message}")
        console.print(f"[grey50]—— LOG (last {ERROR_TAIL_LINES} lines) ——[/grey50]")
        for line in key_log.tail(ERROR_TAIL_LINES):
            console.print(line, markup=False, highlight=False)
        console.print(f"📄 Log File: {key_log.path}")
    sys.exit(code)
