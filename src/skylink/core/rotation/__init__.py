"""Credential rotation: scheduler and clock."""

from skylink.core.rotation.clock import Clock, SystemClock
from skylink.core.rotation.scheduler import (
    RotationResult,
    RotationScheduler,
    RotationSettings,
    interval_arg,
    rotation_settings,
)

__all__ = [
    "Clock",
    "RotationResult",
    "RotationScheduler",
    "RotationSettings",
    "SystemClock",
    "interval_arg",
    "rotation_settings",
]
