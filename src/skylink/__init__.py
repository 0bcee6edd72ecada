"""
SkyLink — Cloud Run tunnel deployer with scheduled key rotation.

SkyLink deploys a single Cloud Run service from a prebuilt tunnel image,
hands you a client connection URI, and then keeps rotating the keys on a
fixed interval. Every rotation is announced to your Telegram chat(s) and
appended to a local log.

Package layout (src/skylink/):
  core/       — config, credentials, URI builder, rotation scheduler, key log
  cloud/      — gcloud CLI wrapper (Cloud Run deploy / delete)
  channels/   — notification channels (Telegram)
  os/         — systemd user service integration
  cli/        — Click CLI entry point
"""

__version__ = "0.3.0"
__all__ = ["__version__"]
