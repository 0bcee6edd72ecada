"""
systemd user service integration for Linux.

Generates and installs a systemd user unit that keeps the key rotator
running for an already deployed service, so rotation survives logouts
and reboots instead of living in a terminal's background job.

Service lifecycle::

    skylink service install --protocol vless-ws --host <canonical host>
    systemctl --user start skylink-rotator
    systemctl --user status skylink-rotator
    journalctl --user -u skylink-rotator -f

The unit file is written to: ~/.config/systemd/user/skylink-rotator.service
(respects $XDG_CONFIG_HOME).
"""

from __future__ import annotations

import os
import shlex
import subprocess
import sys
from pathlib import Path

from skylink.core.rotation import interval_arg

SERVICE_NAME = "skylink-rotator"
_UNIT_FILENAME = f"{SERVICE_NAME}.service"

_UNIT_TEMPLATE = """\
[Unit]
Description=SkyLink — Cloud Run tunnel key rotator ({protocol})
After=network-online.target
Wants=network-online.target

[Service]
Type=simple
ExecStart={exec_start}
Restart=on-failure
RestartSec=30s
Environment="SKYLINK_CONFIG={config_path}"
StandardOutput=journal
StandardError=journal
SyslogIdentifier=skylink

[Install]
WantedBy=default.target
"""


def generate_unit_file(
    exec_path: str,
    config_path: str,
    protocol: str,
    host: str,
    interval_seconds: float | None = None,
) -> str:
    """
    Generate a systemd user service unit file.

    Args:
        exec_path:        Absolute path to the ``skylink`` binary.
        config_path:      Absolute path to the SkyLink config TOML file.
        protocol:         Protocol of the deployed service.
        host:             Canonical host of the deployed service.
        interval_seconds: Rotation interval override (config value if None).

    Returns:
        Unit file content as a string.
    """
    args = [exec_path, "rotate", "--protocol", protocol, "--host", host, "--no-pid-file"]
    if interval_seconds is not None:
        args += ["--interval", interval_arg(interval_seconds)]
    exec_start = " ".join(_systemd_quote(a) for a in args)
    return _UNIT_TEMPLATE.format(
        protocol=protocol,
        exec_start=exec_start,
        config_path=config_path,
    )


def _systemd_quote(arg: str) -> str:
    if any(c.isspace() for c in arg) or '"' in arg:
        return '"' + arg.replace("\\", "\\\\").replace('"', '\\"') + '"'
    return arg


def systemd_user_dir() -> Path:
    """Return the systemd user unit directory (~/.config/systemd/user/)."""
    xdg_config = os.environ.get("XDG_CONFIG_HOME", str(Path.home() / ".config"))
    return Path(xdg_config) / "systemd" / "user"


def install_service(unit_content: str) -> Path:
    """
    Write the unit file to the systemd user directory.

    Creates ``~/.config/systemd/user/`` if it does not exist.

    Returns:
        Path where the unit file was written.
    """
    unit_dir = systemd_user_dir()
    unit_dir.mkdir(parents=True, exist_ok=True)
    unit_path = unit_dir / _UNIT_FILENAME
    unit_path.write_text(unit_content, encoding="utf-8")
    unit_path.chmod(0o644)
    return unit_path


def _systemctl(*args: str) -> None:
    cmd = ["systemctl", "--user", *args]
    try:
        subprocess.run(cmd, check=True, capture_output=True, text=True)  # nosec B603 B607
    except subprocess.CalledProcessError as exc:
        raise RuntimeError(f"{shlex.join(cmd)} failed: {exc.stderr.strip()}") from exc


def reload_daemon() -> None:
    """Run ``systemctl --user daemon-reload`` to pick up the new unit file."""
    _systemctl("daemon-reload")


def enable_service(now: bool = False) -> None:
    """Run ``systemctl --user enable [--now] skylink-rotator``."""
    if now:
        _systemctl("enable", "--now", SERVICE_NAME)
    else:
        _systemctl("enable", SERVICE_NAME)


def is_systemd_available() -> bool:
    """
    Return True if systemd user sessions are available on the current system.

    Always returns False on non-Linux platforms.
    """
    if not sys.platform.startswith("linux"):
        return False
    try:
        result = subprocess.run(  # nosec B603 B607
            ["systemctl", "--user", "status"],
            capture_output=True,
            timeout=3.0,
        )
        # 0 = running, 3 = degraded or unit not found; systemd is present either way
        return result.returncode in (0, 3)
    except (FileNotFoundError, subprocess.TimeoutExpired):
        return False
