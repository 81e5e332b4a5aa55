from __future__ import annotations

import logging
import socket
import time
from dataclasses import dataclass
from urllib.parse import urlparse

logger = logging.getLogger(__name__)

SSDP_ADDRESS = ("239.255.255.250", 1900)
ROKU_SEARCH_TARGET = "roku:ecp"
USN_PREFIX = "uuid:roku:ecp:"


@dataclass(frozen=True)
class SsdpResponse:
    location: str
    usn: str
    headers: dict[str, str]

    @property
    def address(self) -> str | None:
        return urlparse(self.location).hostname

    @property
    def serial(self) -> str | None:
        if self.usn.lower().startswith(USN_PREFIX):
            return self.usn[len(USN_PREFIX) :] or None
        return None


def build_search_request(mx: int, search_target: str = ROKU_SEARCH_TARGET) -> bytes:
    lines = [
        "M-SEARCH * HTTP/1.1",
        f"HOST: {SSDP_ADDRESS[0]}:{SSDP_ADDRESS[1]}",
        'MAN: "ssdp:discover"',
        f"ST: {search_target}",
        f"MX: {mx}",
        "",
        "",
    ]
    return "\r\n".join(lines).encode("ascii")


def parse_response(data: bytes) -> SsdpResponse | None:
    text = data.decode("utf-8", errors="replace")
    status, _, rest = text.partition("\r\n")
    if not status.upper().startswith("HTTP/") or " 200" not in status:
        return None

    headers: dict[str, str] = {}
    for line in rest.split("\r\n"):
        key, sep, value = line.partition(":")
        if sep:
            headers[key.strip().lower()] = value.strip()

    location = headers.get("location")
    if not location:
        return None
    return SsdpResponse(location=location, usn=headers.get("usn", ""), headers=headers)


def search(
    timeout: float, mx: int, search_target: str = ROKU_SEARCH_TARGET
) -> list[SsdpResponse]:
    """Multicast an M-SEARCH and collect unique responses until ``timeout``.

    Socket errors propagate; callers decide how to degrade.
    """
    found: dict[str, SsdpResponse] = {}
    deadline = time.monotonic() + timeout
    with socket.socket(socket.AF_INET, socket.SOCK_DGRAM, socket.IPPROTO_UDP) as sock:
        sock.setsockopt(socket.IPPROTO_IP, socket.IP_MULTICAST_TTL, 2)
        sock.sendto(build_search_request(mx, search_target), SSDP_ADDRESS)
        while True:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                break
            sock.settimeout(remaining)
            try:
                data, sender = sock.recvfrom(65507)
            except TimeoutError:
                break
            response = parse_response(data)
            if response is None:
                logger.debug("Ignoring non-matching SSDP reply from %s", sender[0])
                continue
            key = response.usn or response.location
            if key not in found:
                logger.debug("SSDP reply from %s: %s", sender[0], response.location)
            found[key] = response
    return list(found.values())
