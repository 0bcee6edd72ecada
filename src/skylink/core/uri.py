"""
Connection URI builder.

Maps (protocol, credential set, canonical host) to the client connection
URI for that protocol. Pure and deterministic: the same inputs always
produce byte-identical output.

Formats::

    trojan://PASS@vpn.googleapis.com:443?path=...&security=tls&host=HOST&type=ws#SkyLink-Trojan
    vless://UUID@vpn.googleapis.com:443?path=...&security=tls&encryption=none&host=HOST&type=ws#...
    vless://UUID@vpn.googleapis.com:443?mode=gun&security=tls&encryption=none&type=grpc&...
    vmess://BASE64(compact JSON record)
"""

from __future__ import annotations

import base64
import json
from typing import Any
from urllib.parse import quote

from skylink.core.constants import (
    CHANNEL_PATH,
    GRPC_SERVICE_NAME,
    RENDEZVOUS_HOST,
    RENDEZVOUS_PORT,
)
from skylink.core.credentials import CredentialSet
from skylink.core.exceptions import UnknownProtocolError
from skylink.core.protocols import Protocol

VMESS_SCHEME = "vmess://"

_ENCODED_PATH = quote(CHANNEL_PATH, safe="")  # %2Fskylinkvpnchannel
_ENDPOINT = f"{RENDEZVOUS_HOST}:{RENDEZVOUS_PORT}"


def build_uri(protocol: Protocol, credentials: CredentialSet, canonical_host: str) -> str:
    """Return the connection URI for *protocol* using the matching credential."""
    try:
        protocol = Protocol(protocol)
    except ValueError:
        raise UnknownProtocolError(f"No URI format for protocol {protocol!r}") from None

    secret = credentials.credential_for(protocol)
    if protocol == Protocol.TROJAN_WS:
        return (
            f"trojan://{secret}@{_ENDPOINT}"
            f"?path={_ENCODED_PATH}&security=tls&host={canonical_host}&type=ws"
            "#SkyLink-Trojan"
        )
    if protocol == Protocol.VLESS_WS:
        return (
            f"vless://{secret}@{_ENDPOINT}"
            f"?path={_ENCODED_PATH}&security=tls&encryption=none"
            f"&host={canonical_host}&type=ws"
            "#SkyLink-Vless-WS"
        )
    if protocol == Protocol.VLESS_GRPC:
        return (
            f"vless://{secret}@{_ENDPOINT}"
            f"?mode=gun&security=tls&encryption=none&type=grpc"
            f"&serviceName={GRPC_SERVICE_NAME}&sni={canonical_host}"
            "#SkyLink-VLESS-gRPC"
        )
    if protocol == Protocol.VMESS_WS:
        return encode_vmess(vmess_record(str(secret), canonical_host))
    raise UnknownProtocolError(f"No URI format for protocol {protocol!r}")


def vmess_record(uuid: str, canonical_host: str) -> dict[str, str]:
    """Build the VMess share record. Key order is part of the output format."""
    return {
        "v": "2",
        "ps": "SkyLinkVMess",
        "add": RENDEZVOUS_HOST,
        "port": str(RENDEZVOUS_PORT),
        "id": uuid,
        "aid": "0",
        "scy": "zero",
        "net": "ws",
        "type": "none",
        "host": canonical_host,
        "path": CHANNEL_PATH,
        "tls": "tls",
        "sni": RENDEZVOUS_HOST,
        "alpn": "http/1.1",
        "fp": "randomized",
    }


def encode_vmess(record: dict[str, Any]) -> str:
    payload = json.dumps(record, separators=(",", ":"), ensure_ascii=False)
    return VMESS_SCHEME + base64.b64encode(payload.encode("utf-8")).decode("ascii")


def decode_vmess(uri: str) -> dict[str, Any]:
    """Inverse of :func:`encode_vmess`. Raises ValueError on a non-vmess URI."""
    if not uri.startswith(VMESS_SCHEME):
        raise ValueError(f"Not a vmess URI: {uri[:16]!r}")
    encoded = uri[len(VMESS_SCHEME) :]
    encoded += "=" * (-len(encoded) % 4)
    return json.loads(base64.b64decode(encoded).decode("utf-8"))
