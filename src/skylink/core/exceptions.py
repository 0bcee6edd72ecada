"""SkyLink exception hierarchy."""

from __future__ import annotations


class SkylinkError(Exception):
    """Base exception for all SkyLink errors."""


class ConfigError(SkylinkError):
    """Raised when the configuration is invalid or cannot be read."""


class ChannelError(SkylinkError):
    """Raised when a notification channel fails to deliver a message."""


class DeployError(SkylinkError):
    """Raised when a Cloud Run deployment step fails."""


class GcloudNotFoundError(DeployError):
    """Raised when the gcloud CLI is not installed or not on PATH."""


class ProjectNotSelectedError(DeployError):
    """Raised when gcloud has no active project."""


class UnknownProtocolError(SkylinkError):
    """Raised when a descriptor is requested for an unsupported protocol."""
