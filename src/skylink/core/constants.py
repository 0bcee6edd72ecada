"""SkyLink constants: filesystem layout, endpoints, timeouts, and defaults."""

from __future__ import annotations

from enum import IntEnum

# ---------------------------------------------------------------------------
# Exit codes
# ---------------------------------------------------------------------------


class ExitCode(IntEnum):
    SUCCESS = 0
    ERROR = 1
    CONFIG_ERROR = 2
    ENV_ERROR = 3
    DEPLOY_ERROR = 6
    DEPENDENCY_MISSING = 7


# ---------------------------------------------------------------------------
# Filesystem layout
# ---------------------------------------------------------------------------

SKYLINK_DIR_NAME = ".skylink"
CONFIG_FILENAME = "config.toml"
PID_FILENAME = "rotator.pid"
LOG_PREFIX = "skylink_"
DOTENV_FILENAME = ".env"

# ---------------------------------------------------------------------------
# Tunnel endpoint
# ---------------------------------------------------------------------------

RENDEZVOUS_HOST = "vpn.googleapis.com"
RENDEZVOUS_PORT = 443
CHANNEL_PATH = "/skylinkvpnchannel"
GRPC_SERVICE_NAME = "n4-grpc"
TROJAN_PASSWORD_PREFIX = "Trojan-"
SHORT_HASH_LENGTH = 8
KERNEL_UUID_SOURCE = "/proc/sys/kernel/random/uuid"

# ---------------------------------------------------------------------------
# Cloud Run defaults
# ---------------------------------------------------------------------------

DEFAULT_SERVICE_NAME = "skylinkvpn"
DEFAULT_REGION = "us-central1"
DEFAULT_CPU = "2"
DEFAULT_MEMORY = "2Gi"
DEFAULT_REQUEST_TIMEOUT = 3600  # seconds, gcloud --timeout
DEFAULT_PORT = 8080
DEFAULT_MIN_INSTANCES = 1
REQUIRED_APIS = ("run.googleapis.com", "cloudbuild.googleapis.com")

CPU_CHOICES = ("1", "2", "4", "6")
MEMORY_CHOICES = ("512Mi", "1Gi", "2Gi", "4Gi", "8Gi")

# ---------------------------------------------------------------------------
# Rotation and notification
# ---------------------------------------------------------------------------

DEFAULT_ROTATION_INTERVAL_SECONDS = 6 * 60 * 60
# The Trojan password hashes whole epoch seconds
MIN_ROTATION_INTERVAL_SECONDS = 1
DEFAULT_NOTIFY_TIMEOUT_SECONDS = 10.0
DEFAULT_TIMEZONE = "Asia/Yangon"
DISPLAY_TIME_FORMAT = "%d.%m.%Y %I:%M %p"
ERROR_TAIL_LINES = 80

TELEGRAM_API_BASE = "https://api.telegram.org"
