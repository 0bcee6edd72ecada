"""
Run log: append-only plain-text file shared by gcloud output, delivery
failures, and key rotation records.

The log is written for the operator. SkyLink never parses it back, except
to show the last lines after a fatal setup error.
"""

from __future__ import annotations

import tempfile
import time
from collections import deque
from datetime import datetime
from pathlib import Path

from skylink.core.constants import ERROR_TAIL_LINES, LOG_PREFIX
from skylink.core.credentials import CredentialSet


def new_log_path(log_dir: Path | None = None) -> Path:
    """Return ``<log_dir>/skylink_<epoch>.log`` (system temp dir by default)."""
    base = log_dir or Path(tempfile.gettempdir())
    base.mkdir(parents=True, exist_ok=True)
    return base / f"{LOG_PREFIX}{int(time.time())}.log"


class KeyLog:
    """Append-only text sink."""

    def __init__(self, path: Path) -> None:
        self.path = path
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.touch(exist_ok=True)

    def write(self, text: str) -> None:
        with open(self.path, "a", encoding="utf-8") as f:
            f.write(text)
            if not text.endswith("\n"):
                f.write("\n")

    def append_rotation(self, when: datetime, credentials: CredentialSet, uri: str) -> None:
        lines = [f"===== Key rotation at {when.strftime('%a %b %d %H:%M:%S %Z %Y')} ====="]
        lines.extend(credentials.as_env_lines())
        lines.append(f"URI={uri}")
        lines.append("")
        self.write("\n".join(lines) + "\n")

    def tail(self, n: int = ERROR_TAIL_LINES) -> list[str]:
        if not self.path.exists():
            return []
        with open(self.path, encoding="utf-8", errors="replace") as f:
            return [line.rstrip("\n") for line in deque(f, maxlen=n)]
