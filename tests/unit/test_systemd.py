"""
Unit tests for the systemd user service module.

Tests unit file generation, directory resolution and systemctl error
reporting. systemctl itself is never invoked; subprocess.run is patched.
"""

from __future__ import annotations

import os
import subprocess
from unittest.mock import patch

import pytest

from skylink.os.systemd.service import (
    generate_unit_file,
    install_service,
    reload_daemon,
    systemd_user_dir,
)

_CFG = "/home/user/.skylink/config.toml"
_BIN = "/usr/bin/skylink"
_HOST = "skylinkvpn-123456789012.us-central1.run.app"


def _unit(**kwargs) -> str:
    params = {"exec_path": _BIN, "config_path": _CFG, "protocol": "vless-ws", "host": _HOST}
    params.update(kwargs)
    return generate_unit_file(**params)


class TestGenerateUnitFile:
    def test_required_sections_present(self) -> None:
        unit = _unit()
        assert "[Unit]" in unit
        assert "[Service]" in unit
        assert "[Install]" in unit

    def test_exec_start_runs_rotate(self) -> None:
        unit = _unit()
        assert f"ExecStart={_BIN} rotate --protocol vless-ws --host {_HOST} --no-pid-file" in unit

    def test_interval_override(self) -> None:
        unit = _unit(interval_seconds=900.0)
        assert "--interval 900" in unit

    def test_long_interval_keeps_every_digit(self) -> None:
        unit = _unit(interval_seconds=1234567)
        assert "--interval 1234567\n" in unit
        assert "e+" not in unit

    def test_fractional_interval_keeps_every_digit(self) -> None:
        assert "--interval 1234567.5" in _unit(interval_seconds=1234567.5)

    def test_config_path_in_environment(self) -> None:
        assert f"SKYLINK_CONFIG={_CFG}" in _unit()

    def test_no_unresolved_placeholders(self) -> None:
        unit = _unit()
        assert "{exec_start}" not in unit
        assert "{config_path}" not in unit
        assert "{protocol}" not in unit

    def test_restart_on_failure(self) -> None:
        assert "Restart=on-failure" in _unit()

    def test_wantedby_default_target(self) -> None:
        assert "WantedBy=default.target" in _unit()

    def test_paths_with_spaces_quoted(self) -> None:
        unit = _unit(exec_path="/home/my user/bin/skylink")
        assert 'ExecStart="/home/my user/bin/skylink" rotate' in unit


class TestSystemdUserDir:
    def test_default_dir_under_home(self) -> None:
        env_backup = os.environ.pop("XDG_CONFIG_HOME", None)
        try:
            d = systemd_user_dir()
            assert d.parts[-2:] == ("systemd", "user")
            assert ".config" in str(d)
        finally:
            if env_backup is not None:
                os.environ["XDG_CONFIG_HOME"] = env_backup

    def test_respects_xdg_config_home(self, tmp_path, monkeypatch) -> None:
        monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path))
        assert systemd_user_dir() == tmp_path / "systemd" / "user"


class TestInstallService:
    def test_writes_unit_file(self, tmp_path, monkeypatch) -> None:
        monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path))
        unit = _unit()
        path = install_service(unit)
        assert path.read_text(encoding="utf-8") == unit
        assert path.name == "skylink-rotator.service"
        assert path.parent == tmp_path / "systemd" / "user"

    def test_file_permissions(self, tmp_path, monkeypatch) -> None:
        monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path))
        path = install_service(_unit())
        assert oct(path.stat().st_mode)[-3:] == "644"

    def test_overwrites_existing_file(self, tmp_path, monkeypatch) -> None:
        monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path))
        install_service(_unit(protocol="trojan-ws"))
        path = install_service(_unit(protocol="vmess-ws"))
        assert "--protocol vmess-ws" in path.read_text(encoding="utf-8")


class TestSystemctl:
    def test_failure_message_is_decoded_text(self) -> None:
        err = subprocess.CalledProcessError(1, ["systemctl"], stderr="Failed to connect to bus\n")
        with patch("skylink.os.systemd.service.subprocess.run", side_effect=err) as run:
            with pytest.raises(RuntimeError, match="failed: Failed to connect to bus$"):
                reload_daemon()
        assert run.call_args.kwargs["text"] is True
