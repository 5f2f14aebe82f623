"""Helpers for addresses and ban durations found in server responses."""

from __future__ import annotations

import ipaddress
import re

_INT_RE = re.compile(r"[+-]?[0-9]+")
_INT64_MAX = 2**63 - 1
_INT64_MIN = -(2**63)


def _parse_uint(text: str, bits: int) -> int | None:
    if not (text.isascii() and text.isdigit()):
        return None
    value = int(text)
    return value if value < 2**bits else None


def _atoi(text: str) -> int | None:
    if not _INT_RE.fullmatch(text):
        return None
    value = int(text)
    return value if _INT64_MIN <= value <= _INT64_MAX else None


def is_valid_ipv4(ip: str) -> bool:
    """True for dotted IPv4 and IPv4-mapped IPv6 addresses."""
    try:
        address = ipaddress.ip_address(ip)
    except ValueError:
        return False
    if isinstance(address, ipaddress.IPv4Address):
        return True
    return address.ipv4_mapped is not None and address.scope_id is None


def parse_address(addr: str) -> tuple[str, int]:
    """Split "ip:port" into an IP (or "invalid") and a port (0 if missing or bad)."""
    pieces = addr.split(":")
    ip = pieces[0].strip()
    if not is_valid_ipv4(ip):
        ip = "invalid"
    if len(pieces) != 2:
        return ip, 0
    port = _parse_uint(pieces[1], 16)
    return ip, port if port is not None else 0


def get_minutes(text: str) -> int:
    """Minutes left on a ban: -1 for permanent, 0 for "-" or unreadable values."""
    if text == "perm":
        return -1
    if text == "-":
        return 0
    minutes = _atoi(text)
    return minutes if minutes is not None else 0