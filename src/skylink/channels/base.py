"""
Notification channel interface.

A channel delivers a formatted text message to one destination at a time.
``broadcast()`` fans a message out to many destinations: every attempt is
independent, failures are collected rather than raised, and nothing is
retried.
"""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DeliveryResult:
    """Outcome of one delivery attempt to one destination."""

    destination: str
    ok: bool
    error: str = ""


class BaseChannel(ABC):
    """Abstract notification channel."""

    channel_name: str = "base"

    @abstractmethod
    async def start(self) -> None:
        """Open any underlying connections."""

    @abstractmethod
    async def close(self) -> None:
        """Release underlying connections."""

    @abstractmethod
    async def send(self, destination: str, text: str) -> None:
        """Deliver *text* to *destination*. Raises ChannelError on failure."""

    async def broadcast(self, destinations: Sequence[str], text: str) -> list[DeliveryResult]:
        """Send *text* to every destination concurrently; one result per destination."""
        results = await asyncio.gather(
            *[self.send(dest, text) for dest in destinations],
            return_exceptions=True,
        )
        outcomes: list[DeliveryResult] = []
        for dest, result in zip(destinations, results, strict=True):
            if isinstance(result, BaseException):
                if isinstance(result, asyncio.CancelledError):
                    raise result
                logger.warning("%s delivery to %s failed: %s", self.channel_name, dest, result)
                outcomes.append(DeliveryResult(destination=dest, ok=False, error=str(result)))
            else:
                outcomes.append(DeliveryResult(destination=dest, ok=True))
        return outcomes

    def healthcheck(self) -> dict[str, Any]:
        return {"status": "ok", "channel": self.channel_name}

    async def __aenter__(self) -> BaseChannel:
        await self.start()
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.close()


class NullChannel(BaseChannel):
    """Channel used when notifications are not configured. Delivers nothing."""

    channel_name = "null"

    async def start(self) -> None:
        pass

    async def close(self) -> None:
        pass

    async def send(self, destination: str, text: str) -> None:
        pass

    async def broadcast(self, destinations: Sequence[str], text: str) -> list[DeliveryResult]:
        return []

    def healthcheck(self) -> dict[str, Any]:
        return {"status": "disabled", "channel": self.channel_name}
