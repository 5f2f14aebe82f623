"""Parsing of the "admins" command response."""

from __future__ import annotations

import re
from dataclasses import dataclass
from itertools import islice

from bercon.addresses import parse_address

_START = "Connected RCon admins:"
_HEADER_SIZE = 2
_MIN_COLUMNS = 2
_INT_RE = re.compile(r"[+-]?[0-9]+")


@dataclass
class Admin:
    ip: str
    port: int = 0
    id: int = 0
    country: str = ""

    def as_dict(self) -> dict:
        result = {"ip": self.ip}
        if self.country:
            result["country"] = self.country
        result.update(port=self.port, id=self.id)
        return result


def _text(data) -> str:
    if isinstance(data, (bytes, bytearray)):
        return bytes(data).decode("utf-8", errors="replace")
    return data


def _atoi(text: str) -> int | None:
    if not _INT_RE.fullmatch(text):
        return None
    value = int(text)
    return value if -(2**63) <= value < 2**63 else None


def parse_admins(data) -> list[Admin]:
    """Parse the connected admins table."""
    admins: list[Admin] = []
    lines = iter(_text(data).split("\n"))

    for raw in lines:
        line = raw.strip()
        if not line:
            continue
        if _START in line:
            list(islice(lines, _HEADER_SIZE))
            continue

        parts = line.split()
        if len(parts) < _MIN_COLUMNS:
            continue

        admin_id = _atoi(parts[0])
        if admin_id is None:
            admin_id = len(admins)

        ip, port = parse_address(parts[1])
        admins.append(Admin(ip=ip, port=port, id=admin_id % 256))

    return admins