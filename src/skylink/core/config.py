"""SkyLink configuration: Pydantic model, load, and save."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, SecretStr, field_validator

from skylink.core.constants import (
    CONFIG_FILENAME,
    DEFAULT_MIN_INSTANCES,
    DEFAULT_NOTIFY_TIMEOUT_SECONDS,
    DEFAULT_PORT,
    DEFAULT_REQUEST_TIMEOUT,
    DEFAULT_ROTATION_INTERVAL_SECONDS,
    DEFAULT_SERVICE_NAME,
    DEFAULT_TIMEZONE,
    DOTENV_FILENAME,
    MIN_ROTATION_INTERVAL_SECONDS,
    PID_FILENAME,
    SKYLINK_DIR_NAME,
)
from skylink.core.exceptions import ConfigError


def skylink_dir() -> Path:
    """Return the SkyLink config directory (~/.skylink), creating it if needed."""
    d = Path.home() / SKYLINK_DIR_NAME
    d.mkdir(mode=0o700, parents=True, exist_ok=True)
    return d


# ---------------------------------------------------------------------------
# Sub-models
# ---------------------------------------------------------------------------


class TelegramConfig(BaseModel):
    bot_token: SecretStr
    chat_ids: list[str] = Field(default_factory=list)

    @field_validator("chat_ids", mode="before")
    @classmethod
    def parse_chat_ids(cls, v: Any) -> Any:
        """Accept both list and comma-separated string."""
        if isinstance(v, str):
            return [cid.strip() for cid in v.split(",") if cid.strip()]
        if isinstance(v, list):
            return [str(cid).strip() for cid in v if str(cid).strip()]
        return v

    @property
    def enabled(self) -> bool:
        return bool(self.bot_token.get_secret_value() and self.chat_ids)


class RotationConfig(BaseModel):
    interval_seconds: float = DEFAULT_ROTATION_INTERVAL_SECONDS
    notify_timeout_seconds: float = DEFAULT_NOTIFY_TIMEOUT_SECONDS

    @field_validator("interval_seconds")
    @classmethod
    def validate_interval(cls, v: float) -> float:
        if v < MIN_ROTATION_INTERVAL_SECONDS:
            raise ValueError(f"must be at least {MIN_ROTATION_INTERVAL_SECONDS} second(s)")
        return v

    @field_validator("notify_timeout_seconds")
    @classmethod
    def validate_positive(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("must be greater than zero")
        return v


class DeployConfig(BaseModel):
    service: str = DEFAULT_SERVICE_NAME
    request_timeout: int = DEFAULT_REQUEST_TIMEOUT
    port: int = DEFAULT_PORT
    min_instances: int = DEFAULT_MIN_INSTANCES
    timezone: str = DEFAULT_TIMEZONE

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, v: str) -> str:
        from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ValueError(f"Unknown timezone: {v!r}") from exc
        return v


class LoggingConfig(BaseModel):
    level: str = "INFO"
    format: str = "text"  # "text" | "json"

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        allowed = {"DEBUG", "INFO", "WARNING", "ERROR"}
        if v.upper() not in allowed:
            raise ValueError(f"Log level must be one of: {allowed}")
        return v.upper()

    @field_validator("format")
    @classmethod
    def validate_format(cls, v: str) -> str:
        if v.lower() not in ("text", "json"):
            raise ValueError("Log format must be 'text' or 'json'")
        return v.lower()


class PathsConfig(BaseModel):
    log_dir: str = ""  # empty → system temp dir


# ---------------------------------------------------------------------------
# Root config
# ---------------------------------------------------------------------------


class SkylinkConfig(BaseModel):
    """Root SkyLink configuration model."""

    telegram: TelegramConfig | None = None
    rotation: RotationConfig = Field(default_factory=RotationConfig)
    deploy: DeployConfig = Field(default_factory=DeployConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    paths: PathsConfig = Field(default_factory=PathsConfig)

    @property
    def notifications_enabled(self) -> bool:
        return self.telegram is not None and self.telegram.enabled

    @property
    def log_dir(self) -> Path | None:
        if self.paths.log_dir:
            return Path(self.paths.log_dir).expanduser()
        return None

    @property
    def pid_path(self) -> Path:
        return skylink_dir() / PID_FILENAME


# ---------------------------------------------------------------------------
# Load / save
# ---------------------------------------------------------------------------


def _config_file_path() -> Path:
    if env_path := os.environ.get("SKYLINK_CONFIG"):
        return Path(env_path)
    return skylink_dir() / CONFIG_FILENAME


def load_config(path: Path | None = None, dotenv_path: Path | None = None) -> SkylinkConfig:
    """
    Load SkylinkConfig from the TOML file, overlaid with .env and environment.

    Priority (highest to lowest):
      1. Environment variables (TELEGRAM_*, SKYLINK_*)
      2. ./.env (only consulted when the Telegram values are not in the env)
      3. Config file (~/.skylink/config.toml), optional

    A missing config file is not an error: every setting has a default and
    Telegram notifications are simply disabled.
    """
    import tomllib

    cfg_path = path or _config_file_path()

    data: dict[str, Any] = {}
    if cfg_path.exists():
        try:
            with open(cfg_path, "rb") as f:
                data = tomllib.load(f)
        except Exception as exc:
            raise ConfigError(f"Cannot read config file {cfg_path}: {exc}") from exc

    env = dict(os.environ)
    if not (env.get("TELEGRAM_TOKEN") and _env_chat_ids(env)):
        env = {**_read_dotenv(dotenv_path or Path.cwd() / DOTENV_FILENAME), **env}

    _apply_env_overrides(data, env)

    try:
        return SkylinkConfig.model_validate(data)
    except Exception as exc:
        raise ConfigError(f"Invalid config at {cfg_path}: {exc}") from exc


def _read_dotenv(path: Path) -> dict[str, str]:
    if not path.is_file():
        return {}
    from dotenv import dotenv_values

    return {k: v for k, v in dotenv_values(path).items() if v is not None}


def _env_chat_ids(env: dict[str, str]) -> str:
    return env.get("TELEGRAM_CHAT_IDS") or env.get("TELEGRAM_CHAT_ID") or ""


def _apply_env_overrides(data: dict[str, Any], env: dict[str, str]) -> None:
    """Overlay environment variables onto the parsed TOML data."""
    if token := env.get("SKYLINK_TELEGRAM_BOT_TOKEN") or env.get("TELEGRAM_TOKEN"):
        data.setdefault("telegram", {})["bot_token"] = token
    if chat_ids := env.get("SKYLINK_TELEGRAM_CHAT_IDS") or _env_chat_ids(env):
        data.setdefault("telegram", {})["chat_ids"] = chat_ids
    if "telegram" in data and "bot_token" not in data["telegram"]:
        # Chat IDs without a token cannot be used
        del data["telegram"]
    if interval := env.get("SKYLINK_ROTATION_INTERVAL_SECONDS"):
        data.setdefault("rotation", {})["interval_seconds"] = float(interval)
    if timeout := env.get("TIMEOUT"):
        data.setdefault("deploy", {})["request_timeout"] = int(timeout)
    if port := env.get("PORT"):
        data.setdefault("deploy", {})["port"] = int(port)
    if level := env.get("SKYLINK_LOG_LEVEL"):
        data.setdefault("logging", {})["level"] = level
    if log_dir := env.get("SKYLINK_LOG_DIR"):
        data.setdefault("paths", {})["log_dir"] = log_dir


def save_config(config_data: dict[str, Any], path: Path | None = None) -> Path:
    """Write config dict to TOML file with secure permissions (0600)."""
    import tomli_w

    cfg_path = path or _config_file_path()
    cfg_path.parent.mkdir(mode=0o700, parents=True, exist_ok=True)

    # Write atomically
    tmp_path = cfg_path.with_suffix(".tmp")
    try:
        with open(tmp_path, "wb") as f:
            tomli_w.dump(config_data, f)
        tmp_path.rename(cfg_path)
    except Exception as exc:
        tmp_path.unlink(missing_ok=True)
        raise ConfigError(f"Cannot write config to {cfg_path}: {exc}") from exc

    # Secure permissions
    cfg_path.chmod(0o600)
    return cfg_path
