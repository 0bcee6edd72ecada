"""
Rotation daemon.

The RotationDaemon owns one rotator process lifetime:
  - Writes the PID file (so ``skylink stop`` / ``skylink status`` work)
  - Starts the notification channel
  - Runs the RotationScheduler until SIGTERM/SIGINT
  - Closes the channel and removes the PID file on the way out

``skylink deploy`` launches ``skylink rotate`` as a detached process, so
the wizard can exit while rotation continues. ``skylink rotate`` can also
be run by hand or from a systemd unit.
"""

from __future__ import annotations

import asyncio
import logging
import os
import signal
import subprocess
import sys
from collections.abc import Callable
from pathlib import Path

from skylink.channels.base import BaseChannel, NullChannel
from skylink.core.config import SkylinkConfig
from skylink.core.credentials import CredentialSet
from skylink.core.keylog import KeyLog
from skylink.core.rotation import RotationResult, RotationScheduler, RotationSettings
from skylink.core.rotation.clock import Clock

logger = logging.getLogger(__name__)


def build_channel(config: SkylinkConfig) -> BaseChannel:
    """Return the configured notification channel (NullChannel when disabled)."""
    telegram = config.telegram
    if telegram is None or not config.notifications_enabled:
        return NullChannel()
    from skylink.channels.telegram.channel import TelegramChannel

    return TelegramChannel(
        bot_token=telegram.bot_token.get_secret_value(),
        timeout=config.rotation.notify_timeout_seconds,
    )


class RotationDaemon:
    """
    Top-level orchestrator for the key rotator.

    Lifecycle::

        daemon = RotationDaemon(settings, channel, key_log, pid_path)
        await daemon.start()    # blocks until shutdown signal
        await daemon.stop()
    """

    def __init__(
        self,
        settings: RotationSettings,
        channel: BaseChannel,
        key_log: KeyLog | None = None,
        pid_path: Path | None = None,
        clock: Clock | None = None,
        initial: CredentialSet | None = None,
        on_rotate: Callable[[RotationResult], None] | None = None,
    ) -> None:
        self._channel = channel
        self._pid_path = pid_path
        self._scheduler = RotationScheduler(
            settings,
            channel,
            key_log=key_log,
            clock=clock,
            initial=initial,
            on_rotate=on_rotate,
        )

    @property
    def scheduler(self) -> RotationScheduler:
        return self._scheduler

    async def start(self, max_ticks: int | None = None) -> None:
        """Start the channel and run the scheduler until shutdown."""
        logger.info("SkyLink rotator starting (pid %d)", os.getpid())
        self._write_pid_file()
        try:
            await self._channel.start()
            self._setup_signal_handlers()
            await self._scheduler.run(max_ticks=max_ticks)
        finally:
            await self._cleanup()
            self._remove_pid_file()
            logger.info("SkyLink rotator stopped")

    async def stop(self) -> None:
        """Request graceful shutdown."""
        self._scheduler.stop()

    # ------------------------------------------------------------------
    # Signal handling
    # ------------------------------------------------------------------

    def _setup_signal_handlers(self) -> None:
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGTERM, signal.SIGINT):
            try:
                loop.add_signal_handler(sig, self._scheduler.stop)
            except (NotImplementedError, RuntimeError):
                # Not supported on this platform or outside the main thread
                pass

    # ------------------------------------------------------------------
    # PID file
    # ------------------------------------------------------------------

    def _write_pid_file(self) -> None:
        if self._pid_path is None:
            return
        self._pid_path.parent.mkdir(parents=True, exist_ok=True)
        self._pid_path.write_text(str(os.getpid()))

    def _remove_pid_file(self) -> None:
        if self._pid_path is None:
            return
        try:
            if self._pid_path.read_text().strip() == str(os.getpid()):
                self._pid_path.unlink()
        except FileNotFoundError:
            pass

    # ------------------------------------------------------------------
    # Cleanup
    # ------------------------------------------------------------------

    async def _cleanup(self) -> None:
        try:
            await self._channel.close()
        except Exception as exc:  # noqa: BLE001
            logger.warning("Error closing channel %s: %s", self._channel.channel_name, exc)


# ---------------------------------------------------------------------------
# PID helpers used by the CLI
# ---------------------------------------------------------------------------


def read_pid(pid_path: Path) -> int | None:
    """Return the PID of a live rotator, or None. Stale PID files are removed."""
    try:
        pid = int(pid_path.read_text().strip())
    except (FileNotFoundError, ValueError):
        return None
    if not _pid_alive(pid):
        pid_path.unlink(missing_ok=True)
        return None
    return pid


def _pid_alive(pid: int) -> bool:
    try:
        os.kill(pid, 0)
    except ProcessLookupError:
        return False
    except PermissionError:
        return True
    return True


def spawn_detached(args: list[str], log_path: Path, env: dict[str, str] | None = None) -> int:
    """
    Launch ``python -m skylink <args>`` in a new session, detached from the
    terminal. stdout/stderr go to *log_path*. Returns the child PID.
    """
    cmd = [sys.executable, "-m", "skylink", *args]
    with open(log_path, "a", encoding="utf-8") as out:
        proc = subprocess.Popen(  # nosec B603
            cmd,
            stdin=subprocess.DEVNULL,
            stdout=out,
            stderr=subprocess.STDOUT,
            start_new_session=True,
            close_fds=True,
            env=env,
        )
    logger.info("Detached rotator started: pid=%d cmd=%s", proc.pid, cmd)
    return proc.pid
