"""Shared fixtures: every test gets an isolated HOME and a clean environment."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from datetime import datetime, timedelta
from pathlib import Path

import pytest

_ENV_VARS = (
    "TELEGRAM_TOKEN",
    "TELEGRAM_CHAT_IDS",
    "TELEGRAM_CHAT_ID",
    "SKYLINK_CONFIG",
    "SKYLINK_TELEGRAM_BOT_TOKEN",
    "SKYLINK_TELEGRAM_CHAT_IDS",
    "SKYLINK_ROTATION_INTERVAL_SECONDS",
    "SKYLINK_LOG_LEVEL",
    "SKYLINK_LOG_DIR",
    "TIMEOUT",
    "PORT",
)


@pytest.fixture(autouse=True)
def _isolated_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    for var in _ENV_VARS:
        monkeypatch.delenv(var, raising=False)
    work = tmp_path / "work"
    work.mkdir()
    monkeypatch.chdir(work)
    yield
    # CLI commands route the skylink logger to a file; undo that for caplog
    logger = logging.getLogger("skylink")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)


class FakeClock:
    """Virtual clock: sleep() advances time instantly."""

    def __init__(self, start: datetime | None = None) -> None:
        self.current = start or datetime(2025, 1, 1, 12, 0, 0).astimezone()
        self.sleeps: list[float] = []

    def now(self) -> datetime:
        return self.current

    async def sleep(self, seconds: float) -> None:
        import asyncio

        self.sleeps.append(seconds)
        self.current += timedelta(seconds=seconds)
        await asyncio.sleep(0)


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()
