"""
Credential set generation.

A credential set holds one secret per supported protocol. All four values
are regenerated together on every rotation, regardless of which protocol
the deployment actually uses.
"""

from __future__ import annotations

import hashlib
import logging
import uuid
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

from skylink.core.constants import (
    KERNEL_UUID_SOURCE,
    SHORT_HASH_LENGTH,
    TROJAN_PASSWORD_PREFIX,
)
from skylink.core.protocols import Protocol

logger = logging.getLogger(__name__)


def short_hash(epoch_seconds: int) -> str:
    """First 8 hex chars of sha256 over the epoch as ``date +%s`` prints it."""
    digest = hashlib.sha256(f"{epoch_seconds}\n".encode("ascii")).hexdigest()
    return digest[:SHORT_HASH_LENGTH]


def trojan_password(now: datetime) -> str:
    return f"{TROJAN_PASSWORD_PREFIX}{short_hash(int(now.timestamp()))}"


def random_uuid(kernel_source: Path = Path(KERNEL_UUID_SOURCE)) -> str:
    """Return a random UUID4 string, falling back to the kernel entropy source."""
    try:
        return str(uuid.uuid4())
    except Exception as exc:  # noqa: BLE001
        logger.debug("uuid4 unavailable (%s); reading %s", exc, kernel_source)
        return kernel_source.read_text(encoding="ascii").strip()


@dataclass(frozen=True)
class CredentialSet:
    """One secret per protocol. Replaced wholesale, never mutated."""

    trojan_password: str
    vless_uuid: str
    vless_grpc_uuid: str
    vmess_uuid: str

    @classmethod
    def generate(cls, now: datetime) -> CredentialSet:
        return cls(
            trojan_password=trojan_password(now),
            vless_uuid=random_uuid(),
            vless_grpc_uuid=random_uuid(),
            vmess_uuid=random_uuid(),
        )

    def credential_for(self, protocol: Protocol) -> str:
        """Return the single value consumed by *protocol*."""
        return {
            Protocol.TROJAN_WS: self.trojan_password,
            Protocol.VLESS_WS: self.vless_uuid,
            Protocol.VLESS_GRPC: self.vless_grpc_uuid,
            Protocol.VMESS_WS: self.vmess_uuid,
        }[protocol]

    def as_env_lines(self) -> list[str]:
        return [
            f"TROJAN_PASS={self.trojan_password}",
            f"VLESS_UUID={self.vless_uuid}",
            f"VLESS_UUID_GRPC={self.vless_grpc_uuid}",
            f"VMESS_UUID={self.vmess_uuid}",
        ]
