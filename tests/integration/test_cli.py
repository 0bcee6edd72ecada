"""Integration tests for the skylink CLI commands."""

from __future__ import annotations

import json
import os
import tomllib
from pathlib import Path
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from skylink import __version__
from skylink.cli.main import cli
from skylink.core.exceptions import DeployError, ProjectNotSelectedError

_TOKEN = "123456789:ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghi"
_HOST = "skylinkvpn-123456789012.us-central1.run.app"


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def log_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    d = tmp_path / "logs"
    d.mkdir()
    monkeypatch.setenv("SKYLINK_LOG_DIR", str(d))
    return d


class TestVersion:
    def test_version_flag(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert f"skylink {__version__}" in result.output

    def test_version_json(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["version", "--json"])
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["skylink"] == __version__
        assert "vmess-ws" in data["protocols"]


class TestUri:
    def test_trojan_uri(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["uri", "--protocol", "trojan-ws", "--host", _HOST])
        assert result.exit_code == 0
        line = result.stdout.strip().splitlines()[0]
        assert line.startswith("trojan://Trojan-")
        assert f"host={_HOST}" in line
        assert line.endswith("#SkyLink-Trojan")

    def test_vmess_decode(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["uri", "--protocol", "vmess-ws", "--host", _HOST, "--decode"])
        assert result.exit_code == 0
        lines = result.stdout.strip().splitlines()
        assert lines[0].startswith("vmess://")
        record = json.loads("\n".join(lines[1:]))
        assert record["host"] == _HOST
        assert record["sni"] == "vpn.googleapis.com"

    def test_unknown_protocol_rejected(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["uri", "--protocol", "shadowsocks", "--host", _HOST])
        assert result.exit_code == 2


class TestSetup:
    def test_non_interactive_from_env(self, runner: CliRunner, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("TELEGRAM_TOKEN", _TOKEN)
        monkeypatch.setenv("TELEGRAM_CHAT_ID", "-1001234567890")
        result = runner.invoke(cli, ["setup", "--non-interactive"])
        assert result.exit_code == 0, result.output

        cfg_path = Path.home() / ".skylink" / "config.toml"
        with open(cfg_path, "rb") as f:
            data = tomllib.load(f)
        assert data["telegram"]["bot_token"] == _TOKEN
        assert data["telegram"]["chat_ids"] == ["-1001234567890"]

    def test_missing_token_fails(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["setup", "--non-interactive", "--chat-ids", "123"])
        assert result.exit_code == 1
        assert "No bot token" in result.output

    def test_invalid_chat_ids_fail(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["setup", "--non-interactive", "--token", _TOKEN, "--chat-ids", "abc"])
        assert result.exit_code == 1


class TestStatusAndStop:
    def test_status_json_not_running(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["status", "--json"])
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["running"] is False
        assert data["telegram"] is False
        assert data["interval_seconds"] == 21600

    def test_stop_when_nothing_running(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["stop"])
        assert result.exit_code == 0
        assert "No rotator is running" in result.output


class TestRotate:
    def test_single_tick_writes_key_log(self, runner: CliRunner, log_dir: Path) -> None:
        log_file = log_dir / "run.log"
        result = runner.invoke(
            cli,
            [
                "rotate",
                "--protocol",
                "vless-ws",
                "--host",
                _HOST,
                "--interval",
                "1",
                "--no-pid-file",
                "--max-ticks",
                "1",
                "--log-file",
                str(log_file),
            ],
        )
        assert result.exit_code == 0, result.output
        assert "Telegram not configured" in result.output
        text = log_file.read_text(encoding="utf-8")
        assert "===== Key rotation at" in text
        assert "URI=vless://" in text

    def test_sub_second_interval_rejected(self, runner: CliRunner) -> None:
        result = runner.invoke(
            cli, ["rotate", "--protocol", "trojan-ws", "--host", _HOST, "--interval", "0.5", "--no-pid-file"]
        )
        assert result.exit_code == 2
        assert "--interval" in result.output


class TestDeploy:
    def test_no_project_exits_with_env_error(self, runner: CliRunner, log_dir: Path) -> None:
        missing = ProjectNotSelectedError("No GCP project selected")
        with patch("skylink.cloud.gcloud.Gcloud.active_project", side_effect=missing):
            result = runner.invoke(cli, ["deploy", "--non-interactive"])
        assert result.exit_code == 3
        assert "ERROR:" in result.output
        assert "Log File:" in result.output

    def test_missing_gcloud_exits_with_dependency_code(self, runner: CliRunner, log_dir: Path) -> None:
        with patch("skylink.cloud.gcloud.shutil.which", return_value=None):
            result = runner.invoke(cli, ["deploy", "--non-interactive"])
        assert result.exit_code == 7
        assert "gcloud" in result.output

    def test_deploy_failure_exits_with_deploy_error(self, runner: CliRunner, log_dir: Path) -> None:
        with (
            patch("skylink.cloud.gcloud.Gcloud.active_project", return_value="demo"),
            patch("skylink.cloud.gcloud.Gcloud.project_number", return_value="123456789012"),
            patch("skylink.cloud.gcloud.Gcloud.enable_apis", return_value=True),
            patch("skylink.cloud.gcloud.Gcloud.deploy", side_effect=DeployError("deploy failed (exit 1)")),
        ):
            result = runner.invoke(cli, ["deploy", "--non-interactive"])
        assert result.exit_code == 6

    def test_success_starts_detached_rotator(self, runner: CliRunner, log_dir: Path) -> None:
        with (
            patch("skylink.cloud.gcloud.Gcloud.active_project", return_value="demo"),
            patch("skylink.cloud.gcloud.Gcloud.project_number", return_value="123456789012"),
            patch("skylink.cloud.gcloud.Gcloud.enable_apis", return_value=True),
            patch("skylink.cloud.gcloud.Gcloud.deploy") as deploy,
            patch("skylink.core.daemon.manager.spawn_detached", return_value=4242) as spawn,
        ):
            result = runner.invoke(cli, ["deploy", "--non-interactive", "--protocol", "vless-grpc"])

        assert result.exit_code == 0, result.output
        spec = deploy.call_args.args[0]
        assert spec.image == "docker.io/n4pro/vlessgrpc:latest"
        assert spec.region == "us-central1"
        assert spec.cpu == "2"
        assert spec.memory == "2Gi"

        args = spawn.call_args.args[0]
        assert args[:3] == ["rotate", "--protocol", "vless-grpc"]
        assert _HOST in args
        assert "21600" in args
        assert "4242" in result.output
        assert "disabled" in result.output


    @pytest.mark.parametrize("extra", [[], ["--foreground"]])
    def test_refuses_while_rotator_running(self, runner: CliRunner, log_dir: Path, extra: list[str]) -> None:
        pid_path = Path.home() / ".skylink" / "rotator.pid"
        pid_path.parent.mkdir(parents=True, exist_ok=True)
        pid_path.write_text(str(os.getpid()))

        with (
            patch("skylink.cloud.gcloud.Gcloud.active_project", return_value="demo") as project,
            patch("skylink.cloud.gcloud.Gcloud.deploy") as deploy,
            patch("skylink.core.daemon.manager.spawn_detached") as spawn,
        ):
            result = runner.invoke(cli, ["deploy", "--non-interactive", *extra])

        assert result.exit_code == 1
        assert "already running" in result.output
        assert str(os.getpid()) in result.output
        project.assert_not_called()
        deploy.assert_not_called()
        spawn.assert_not_called()
        assert pid_path.read_text() == str(os.getpid())

    def test_long_interval_passed_to_rotator_exactly(self, runner: CliRunner, log_dir: Path) -> None:
        with (
            patch("skylink.cloud.gcloud.Gcloud.active_project", return_value="demo"),
            patch("skylink.cloud.gcloud.Gcloud.project_number", return_value="123456789012"),
            patch("skylink.cloud.gcloud.Gcloud.enable_apis", return_value=True),
            patch("skylink.cloud.gcloud.Gcloud.deploy"),
            patch("skylink.core.daemon.manager.spawn_detached", return_value=4242) as spawn,
        ):
            result = runner.invoke(cli, ["deploy", "--non-interactive", "--interval", "1234567"])

        assert result.exit_code == 0, result.output
        args = spawn.call_args.args[0]
        assert args[args.index("--interval") + 1] == "1234567"


class TestDelete:
    def test_missing_gcloud_exits_with_dependency_code(self, runner: CliRunner) -> None:
        with patch("skylink.cloud.gcloud.shutil.which", return_value=None):
            result = runner.invoke(cli, ["delete", "--yes"])
        assert result.exit_code == 7

    def test_delete_failure_exits_with_deploy_error(self, runner: CliRunner) -> None:
        with patch("skylink.cloud.gcloud.Gcloud.delete_service", side_effect=DeployError("delete failed (exit 1)")):
            result = runner.invoke(cli, ["delete", "--yes"])
        assert result.exit_code == 6


class TestDoctor:
    def test_offline_without_gcloud(self, runner: CliRunner) -> None:
        with patch("skylink.cloud.gcloud.shutil.which", return_value=None):
            result = runner.invoke(cli, ["doctor", "--json", "--offline"])
        data = json.loads(result.output)
        names = {c["name"]: c for c in data["checks"]}
        assert names["gcloud CLI"]["status"] == "fail"
        assert names["Telegram"]["status"] == "warn"
        assert data["all_pass"] is False
        assert result.exit_code == 1
