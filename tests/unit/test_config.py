"""Unit tests for config loading: TOML file, .env, and environment overlays."""

from __future__ import annotations

from pathlib import Path

import pytest

from skylink.core.config import SkylinkConfig, load_config, save_config
from skylink.core.exceptions import ConfigError

_TOKEN = "123456789:ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghi"


def _write(path: Path, text: str) -> Path:
    path.write_text(text, encoding="utf-8")
    return path


class TestDefaults:
    def test_missing_file_gives_defaults(self, tmp_path: Path) -> None:
        cfg = load_config(tmp_path / "absent.toml")
        assert cfg.telegram is None
        assert cfg.notifications_enabled is False
        assert cfg.rotation.interval_seconds == 6 * 3600
        assert cfg.deploy.service == "skylinkvpn"
        assert cfg.deploy.request_timeout == 3600
        assert cfg.deploy.port == 8080
        assert cfg.deploy.min_instances == 1
        assert cfg.deploy.timezone == "Asia/Yangon"
        assert cfg.log_dir is None

    def test_toml_values(self, tmp_path: Path) -> None:
        path = _write(
            tmp_path / "config.toml",
            f'[telegram]\nbot_token = "{_TOKEN}"\nchat_ids = ["-1001", "@news_channel"]\n'
            "[rotation]\ninterval_seconds = 900\n"
            '[paths]\nlog_dir = "~/skylink-logs"\n',
        )
        cfg = load_config(path)
        assert cfg.telegram is not None
        assert cfg.telegram.chat_ids == ["-1001", "@news_channel"]
        assert cfg.notifications_enabled is True
        assert cfg.rotation.interval_seconds == 900
        assert cfg.log_dir == Path.home() / "skylink-logs"

    def test_invalid_toml_raises(self, tmp_path: Path) -> None:
        path = _write(tmp_path / "config.toml", "[telegram\n")
        with pytest.raises(ConfigError, match="Cannot read"):
            load_config(path)

    def test_invalid_values_raise(self, tmp_path: Path) -> None:
        path = _write(tmp_path / "config.toml", "[rotation]\ninterval_seconds = 0\n")
        with pytest.raises(ConfigError, match="Invalid config"):
            load_config(path)

    def test_sub_second_interval_rejected(self, tmp_path: Path) -> None:
        path = _write(tmp_path / "config.toml", "[rotation]\ninterval_seconds = 0.5\n")
        with pytest.raises(ConfigError, match="Invalid config"):
            load_config(path)

    def test_unknown_timezone_rejected(self, tmp_path: Path) -> None:
        path = _write(tmp_path / "config.toml", '[deploy]\ntimezone = "Mars/Olympus"\n')
        with pytest.raises(ConfigError):
            load_config(path)


class TestEnvironment:
    def test_telegram_env_vars(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("TELEGRAM_TOKEN", _TOKEN)
        monkeypatch.setenv("TELEGRAM_CHAT_IDS", "111, 222")
        cfg = load_config(tmp_path / "absent.toml")
        assert cfg.telegram is not None
        assert cfg.telegram.bot_token.get_secret_value() == _TOKEN
        assert cfg.telegram.chat_ids == ["111", "222"]

    def test_single_chat_id_fallback(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("TELEGRAM_TOKEN", _TOKEN)
        monkeypatch.setenv("TELEGRAM_CHAT_ID", "333")
        cfg = load_config(tmp_path / "absent.toml")
        assert cfg.telegram.chat_ids == ["333"]  # type: ignore[union-attr]

    def test_env_overrides_file(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        path = _write(tmp_path / "config.toml", f'[telegram]\nbot_token = "{_TOKEN}"\nchat_ids = ["1"]\n')
        monkeypatch.setenv("TELEGRAM_CHAT_IDS", "9,8")
        cfg = load_config(path)
        assert cfg.telegram.chat_ids == ["9", "8"]  # type: ignore[union-attr]

    def test_chat_ids_without_token_disable_telegram(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("TELEGRAM_CHAT_IDS", "9")
        cfg = load_config(tmp_path / "absent.toml")
        assert cfg.telegram is None

    def test_token_without_chat_ids_is_not_enabled(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("TELEGRAM_TOKEN", _TOKEN)
        cfg = load_config(tmp_path / "absent.toml")
        assert cfg.telegram is not None
        assert cfg.notifications_enabled is False

    def test_timeout_and_port(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("TIMEOUT", "900")
        monkeypatch.setenv("PORT", "9090")
        monkeypatch.setenv("SKYLINK_ROTATION_INTERVAL_SECONDS", "120")
        cfg = load_config(tmp_path / "absent.toml")
        assert cfg.deploy.request_timeout == 900
        assert cfg.deploy.port == 9090
        assert cfg.rotation.interval_seconds == 120

    def test_config_path_from_env(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        path = _write(tmp_path / "alt.toml", "[rotation]\ninterval_seconds = 30\n")
        monkeypatch.setenv("SKYLINK_CONFIG", str(path))
        assert load_config().rotation.interval_seconds == 30


class TestDotenv:
    def test_dotenv_used_when_env_missing(self, tmp_path: Path) -> None:
        dotenv = _write(tmp_path / ".env", f"TELEGRAM_TOKEN={_TOKEN}\nTELEGRAM_CHAT_IDS=5,6\n")
        cfg = load_config(tmp_path / "absent.toml", dotenv_path=dotenv)
        assert cfg.notifications_enabled is True
        assert cfg.telegram.chat_ids == ["5", "6"]  # type: ignore[union-attr]

    def test_dotenv_in_working_directory(self) -> None:
        _write(Path.cwd() / ".env", f"TELEGRAM_TOKEN={_TOKEN}\nTELEGRAM_CHAT_ID=77\n")
        cfg = load_config(Path.cwd() / "absent.toml")
        assert cfg.telegram.chat_ids == ["77"]  # type: ignore[union-attr]

    def test_environment_beats_dotenv(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        dotenv = _write(tmp_path / ".env", "TELEGRAM_TOKEN=from-dotenv\nTELEGRAM_CHAT_IDS=5\n")
        monkeypatch.setenv("TELEGRAM_TOKEN", _TOKEN)
        cfg = load_config(tmp_path / "absent.toml", dotenv_path=dotenv)
        assert cfg.telegram.bot_token.get_secret_value() == _TOKEN  # type: ignore[union-attr]
        assert cfg.telegram.chat_ids == ["5"]  # type: ignore[union-attr]

    def test_dotenv_ignored_when_env_complete(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        dotenv = _write(tmp_path / ".env", "TELEGRAM_CHAT_IDS=5\nSKYLINK_LOG_LEVEL=DEBUG\n")
        monkeypatch.setenv("TELEGRAM_TOKEN", _TOKEN)
        monkeypatch.setenv("TELEGRAM_CHAT_IDS", "1")
        cfg = load_config(tmp_path / "absent.toml", dotenv_path=dotenv)
        assert cfg.telegram.chat_ids == ["1"]  # type: ignore[union-attr]
        assert cfg.logging.level == "INFO"


class TestSaveConfig:
    def test_round_trip_and_permissions(self, tmp_path: Path) -> None:
        path = save_config({"telegram": {"bot_token": _TOKEN, "chat_ids": ["1"]}}, tmp_path / "c" / "config.toml")
        assert oct(path.stat().st_mode)[-3:] == "600"
        cfg = load_config(path)
        assert isinstance(cfg, SkylinkConfig)
        assert cfg.telegram.chat_ids == ["1"]  # type: ignore[union-attr]
        assert not path.with_suffix(".tmp").exists()
