"""Parsing of ``IP:port`` lists and conversion between textual and raw IP addresses."""

from __future__ import annotations

import ipaddress
import logging
import re
from collections.abc import Iterator
from dataclasses import dataclass

from p2pool.common import RawIP

log = logging.getLogger(__name__)

# A client's address string holds at most 72 characters, 16 of them kept for
# brackets, the colon and the port.
MAX_IP_STRING_LENGTH = 72 - 16

_IPV4_MAPPED_PREFIX = bytes(10) + b"\xff\xff"
_LEADING_INT = re.compile(r"\s*([+-]?\d+)")


@dataclass(frozen=True)
class ListenAddress:
    """One entry of an address list: the original text, the bare IP and the port."""

    is_v6: bool
    address: str
    ip: str
    port: int


def _atoi(text: str) -> int:
    """Leading integer of ``text`` in the manner of C ``atoi``: 0 if there is none."""
    match = _LEADING_INT.match(text)
    return int(match.group(1)) if match else 0


def parse_address_list(address_list: str) -> Iterator[ListenAddress]:
    """Yield every valid ``IP:port`` entry of a comma-separated list.

    Entries without a colon are skipped silently; entries whose port is not in
    1..65535 are skipped with a warning. IPv6 addresses lose their brackets.
    """
    if not address_list:
        return

    for address in address_list.split(","):
        ip, sep, port_text = address.rpartition(":")
        if not sep:
            continue

        is_v6 = ":" in ip
        if is_v6:
            if ip.startswith("["):
                ip = ip[1:]
            if ip.endswith("]"):
                ip = ip[:-1]

        port = _atoi(port_text)
        if 0 < port < 65536:
            yield ListenAddress(is_v6, address, ip, port)
        else:
            log.warning("invalid IP:port %s", address)


def str_to_raw_ip(is_v6: bool, ip: str) -> RawIP:
    """Convert a textual address to a 16-byte raw address.

    IPv4 addresses are stored IPv4-mapped. Raises ``ValueError`` if ``ip`` is
    not an address of the requested family.
    """
    if is_v6:
        return RawIP(ipaddress.IPv6Address(ip).packed)
    return RawIP(_IPV4_MAPPED_PREFIX + ipaddress.IPv4Address(ip).packed)


def _raw_to_str(is_v6: bool, ip: RawIP) -> str:
    if is_v6:
        return str(ipaddress.IPv6Address(ip.data))
    return str(ipaddress.IPv4Address(ip.data[12:]))


def format_addr_string(is_v6: bool, ip: str | RawIP, port: int) -> str:
    """Format an address for display: ``[ip]:port`` for IPv6, ``ip:port`` for IPv4.

    A textual ``ip`` longer than the display limit raises ``ValueError``; a raw
    address is rendered and, if needed, truncated to the limit.
    """
    if isinstance(ip, RawIP):
        text = _raw_to_str(is_v6, ip)[:MAX_IP_STRING_LENGTH]
    else:
        if len(ip) > MAX_IP_STRING_LENGTH:
            raise ValueError("failed to parse IP address, too long")
        text = ip
    return f"[{text}]:{port}" if is_v6 else f"{text}:{port}"