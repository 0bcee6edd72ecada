"""Supported tunnel protocols and Cloud Run regions."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum


class Protocol(StrEnum):
    """Tunnel protocol variant, fixed for the lifetime of a deployment."""

    TROJAN_WS = "trojan-ws"
    VLESS_WS = "vless-ws"
    VLESS_GRPC = "vless-grpc"
    VMESS_WS = "vmess-ws"

    @property
    def image(self) -> str:
        return _IMAGES[self]

    @property
    def title(self) -> str:
        return _TITLES[self]


_IMAGES: dict[Protocol, str] = {
    Protocol.TROJAN_WS: "docker.io/n4pro/tr:latest",
    Protocol.VLESS_WS: "docker.io/n4pro/vl:latest",
    Protocol.VLESS_GRPC: "docker.io/n4pro/vlessgrpc:latest",
    Protocol.VMESS_WS: "docker.io/n4pro/vmess:latest",
}

_TITLES: dict[Protocol, str] = {
    Protocol.TROJAN_WS: "Trojan WS",
    Protocol.VLESS_WS: "VLESS WS",
    Protocol.VLESS_GRPC: "VLESS gRPC",
    Protocol.VMESS_WS: "VMess WS",
}

# Menu order shown by the deploy wizard (1-based)
PROTOCOL_MENU: tuple[Protocol, ...] = (
    Protocol.TROJAN_WS,
    Protocol.VLESS_WS,
    Protocol.VLESS_GRPC,
    Protocol.VMESS_WS,
)
DEFAULT_PROTOCOL = Protocol.TROJAN_WS


@dataclass(frozen=True)
class Region:
    code: str
    label: str


REGION_MENU: tuple[Region, ...] = (
    Region("asia-southeast1", "Singapore"),
    Region("us-central1", "US - Iowa"),
    Region("asia-southeast2", "Indonesia"),
    Region("asia-northeast1", "Japan"),
)


def protocol_from_menu(choice: str) -> Protocol:
    """Map a menu answer ("1".."4") to a protocol; anything else is the default."""
    try:
        index = int(choice.strip())
    except ValueError:
        return DEFAULT_PROTOCOL
    if 1 <= index <= len(PROTOCOL_MENU):
        return PROTOCOL_MENU[index - 1]
    return DEFAULT_PROTOCOL


def region_from_menu(choice: str, default: str = "us-central1") -> str:
    """Map a menu answer ("1".."4") to a region code; anything else is *default*."""
    try:
        index = int(choice.strip())
    except ValueError:
        return default
    if 1 <= index <= len(REGION_MENU):
        return REGION_MENU[index - 1].code
    return default
