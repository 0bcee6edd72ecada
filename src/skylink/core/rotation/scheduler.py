"""
Key rotation scheduler.

One long-lived asyncio task. It waits ``interval`` seconds, then runs a
rotation tick, forever:

  1. regenerate the whole credential set
  2. build the connection URI for the active protocol
  3. announce the URI to every configured destination (independent,
     bounded, never retried)
  4. append a record to the run log

A tick that fails for any reason is logged and the loop carries on with
the next interval. There is no persisted "time until next tick": a
restart starts the interval again from zero.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from datetime import datetime

from skylink.channels.base import BaseChannel, DeliveryResult
from skylink.channels.telegram.templates import rotation_message
from skylink.core.constants import (
    DEFAULT_ROTATION_INTERVAL_SECONDS,
    DISPLAY_TIME_FORMAT,
    MIN_ROTATION_INTERVAL_SECONDS,
)
from skylink.core.credentials import CredentialSet
from skylink.core.keylog import KeyLog
from skylink.core.protocols import Protocol
from skylink.core.rotation.clock import Clock, SystemClock
from skylink.core.uri import build_uri

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RotationSettings:
    """Immutable inputs to the scheduler, fixed for the process lifetime."""

    protocol: Protocol
    canonical_host: str
    interval_seconds: float = DEFAULT_ROTATION_INTERVAL_SECONDS
    destinations: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if self.interval_seconds < MIN_ROTATION_INTERVAL_SECONDS:
            raise ValueError(f"interval_seconds must be at least {MIN_ROTATION_INTERVAL_SECONDS}")


@dataclass(frozen=True)
class RotationResult:
    """Everything one tick produced."""

    rotated_at: datetime
    credentials: CredentialSet
    uri: str
    deliveries: list[DeliveryResult] = field(default_factory=list)

    @property
    def delivered(self) -> int:
        return sum(1 for d in self.deliveries if d.ok)


class RotationScheduler:
    """
    Periodic credential rotation.

    Usage::

        scheduler = RotationScheduler(settings, channel, key_log)
        await scheduler.run()          # until stop() or cancellation
        await scheduler.run(max_ticks=1)
    """

    def __init__(
        self,
        settings: RotationSettings,
        channel: BaseChannel,
        key_log: KeyLog | None = None,
        clock: Clock | None = None,
        initial: CredentialSet | None = None,
        on_rotate: Callable[[RotationResult], None] | None = None,
    ) -> None:
        self._settings = settings
        self._channel = channel
        self._key_log = key_log
        self._clock: Clock = clock or SystemClock()
        self._credentials = initial or CredentialSet.generate(self._clock.now())
        self._on_rotate = on_rotate
        self._stop_event = asyncio.Event()
        self._ticks = 0

    @property
    def settings(self) -> RotationSettings:
        return self._settings

    @property
    def credentials(self) -> CredentialSet:
        return self._credentials

    @property
    def current_uri(self) -> str:
        return build_uri(self._settings.protocol, self._credentials, self._settings.canonical_host)

    @property
    def ticks(self) -> int:
        return self._ticks

    # ------------------------------------------------------------------
    # Loop
    # ------------------------------------------------------------------

    async def run(self, max_ticks: int | None = None) -> None:
        """Sleep-then-rotate until stopped, cancelled, or *max_ticks* ticks ran."""
        logger.info(
            "Rotation loop started: protocol=%s interval=%ss destinations=%d",
            self._settings.protocol,
            self._settings.interval_seconds,
            len(self._settings.destinations),
        )
        while not self._stop_event.is_set():
            if max_ticks is not None and self._ticks >= max_ticks:
                break
            await self._wait_interval()
            if self._stop_event.is_set():
                break
            try:
                await self.rotate_once()
            except asyncio.CancelledError:
                raise
            except Exception:  # noqa: BLE001
                logger.exception("Key rotation tick failed; next tick is unaffected")
        logger.info("Rotation loop stopped after %d tick(s)", self._ticks)

    def stop(self) -> None:
        """Request the loop to exit before its next tick."""
        self._stop_event.set()

    async def _wait_interval(self) -> None:
        sleeper = asyncio.ensure_future(self._clock.sleep(self._settings.interval_seconds))
        stopper = asyncio.ensure_future(self._stop_event.wait())
        try:
            await asyncio.wait({sleeper, stopper}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            for fut in (sleeper, stopper):
                if not fut.done():
                    fut.cancel()
            await asyncio.gather(sleeper, stopper, return_exceptions=True)

    # ------------------------------------------------------------------
    # Tick
    # ------------------------------------------------------------------

    async def rotate_once(self) -> RotationResult:
        """Run one rotation tick and return what it produced."""
        now = self._clock.now()
        self._credentials = CredentialSet.generate(now)
        self._ticks += 1
        uri = self.current_uri

        deliveries: list[DeliveryResult] = []
        if self._settings.destinations:
            text = rotation_message(now.strftime(DISPLAY_TIME_FORMAT), uri)
            deliveries = await self._channel.broadcast(self._settings.destinations, text)

        result = RotationResult(rotated_at=now, credentials=self._credentials, uri=uri, deliveries=deliveries)

        if self._key_log is not None:
            self._key_log.append_rotation(now, self._credentials, uri)
            for d in deliveries:
                if not d.ok:
                    self._key_log.write(f"telegram delivery to {d.destination} failed: {d.error}")

        logger.info(
            "Keys rotated (tick %d): %d/%d notification(s) delivered",
            self._ticks,
            result.delivered,
            len(deliveries),
        )
        if self._on_rotate is not None:
            self._on_rotate(result)
        return result


def rotation_settings(
    protocol: Protocol,
    canonical_host: str,
    interval_seconds: float,
    destinations: Sequence[str] = (),
) -> RotationSettings:
    return RotationSettings(
        protocol=Protocol(protocol),
        canonical_host=canonical_host,
        interval_seconds=interval_seconds,
        destinations=tuple(destinations),
    )


def interval_arg(seconds: float) -> str:
    """Render *seconds* for a child command line without losing precision."""
    value = float(seconds)
    return str(int(value)) if value.is_integer() else repr(value)
