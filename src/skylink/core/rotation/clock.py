"""Clock abstraction for the rotation timer."""

from __future__ import annotations

import asyncio
from datetime import datetime, tzinfo
from typing import Protocol


class Clock(Protocol):
    def now(self) -> datetime: ...

    async def sleep(self, seconds: float) -> None: ...


class SystemClock:
    """Wall clock in a fixed timezone; sleeps with ``asyncio.sleep``."""

    def __init__(self, tz: tzinfo | None = None) -> None:
        self._tz = tz

    def now(self) -> datetime:
        return datetime.now(self._tz).astimezone(self._tz)

    async def sleep(self, seconds: float) -> None:
        await asyncio.sleep(seconds)
