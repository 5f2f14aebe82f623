"""Parsing of the "bans" command response."""

from __future__ import annotations

import re
from dataclasses import dataclass, field

from bercon.addresses import get_minutes, is_valid_ipv4
from bercon.players import GUID_LENGTH, INVALID_GUID

_GUID_START = "GUID Bans:"
_IP_START = "IP Bans:"
_HEADER_SIZE = 2
_MIN_COLUMNS = 3  # the reason column is optional
_INT_RE = re.compile(r"[+-]?[0-9]+")


@dataclass
class BanGUID:
    guid: str
    reason: str = ""
    id: int = 0
    minutes_left: int = 0
    valid: bool = True

    def as_dict(self) -> dict:
        return {
            "guid": self.guid,
            "reason": self.reason,
            "id": self.id,
            "minutes": self.minutes_left,
            "valid": self.valid,
        }


@dataclass
class BanIP:
    ip: str
    reason: str = ""
    id: int = 0
    minutes_left: int = 0
    valid: bool = True
    country: str = ""

    def as_dict(self) -> dict:
        result = {"ip": self.ip, "reason": self.reason}
        if self.country:
            result["country"] = self.country
        result.update(id=self.id, minutes=self.minutes_left, valid=self.valid)
        return result


@dataclass
class Bans:
    guid_bans: list[BanGUID] = field(default_factory=list)
    ip_bans: list[BanIP] = field(default_factory=list)

    def as_dict(self) -> dict:
        return {
            "guid_bans": [ban.as_dict() for ban in self.guid_bans],
            "ip_bans": [ban.as_dict() for ban in self.ip_bans],
        }


def _text(data) -> str:
    if isinstance(data, (bytes, bytearray)):
        return bytes(data).decode("utf-8", errors="replace")
    return data


def _atoi(text: str) -> int | None:
    if not _INT_RE.fullmatch(text):
        return None
    value = int(text)
    return value if -(2**63) <= value < 2**63 else None


def _is_valid_time(minutes: int) -> bool:
    return minutes > 0 or minutes == -1


def parse_guid_bans(lines) -> list[BanGUID]:
    """Parse GUID ban rows, stopping at the IP bans section."""
    bans: list[BanGUID] = []
    for raw in lines:
        line = raw.strip()
        if _IP_START in line:
            break
        if not line:
            continue
        parts = line.split()
        if len(parts) < _MIN_COLUMNS:
            continue

        ban_id = _atoi(parts[0])
        if ban_id is None:
            ban_id = len(bans)

        guid, valid = parts[1], True
        if len(guid) != GUID_LENGTH:
            guid, valid = INVALID_GUID, False

        minutes = get_minutes(parts[2])
        if not _is_valid_time(minutes):
            valid = False

        bans.append(
            BanGUID(
                guid=guid,
                reason=" ".join(parts[3:]),
                id=ban_id,
                minutes_left=minutes,
                valid=valid,
            )
        )
    return bans


def parse_ip_bans(lines, guid_count) -> list[BanIP]:
    """Parse IP ban rows; missing ids continue after the GUID bans."""
    bans: list[BanIP] = []
    for raw in lines:
        line = raw.strip()
        if not line:
            continue
        parts = line.split()
        if len(parts) < _MIN_COLUMNS:
            continue

        ban_id = _atoi(parts[0])
        if ban_id is None:
            ban_id = len(bans) + guid_count

        ip, valid = parts[1], True
        if not is_valid_ipv4(ip):
            ip, valid = "invalid", False

        minutes = get_minutes(parts[2])
        if not _is_valid_time(minutes):
            valid = False

        bans.append(
            BanIP(
                ip=ip,
                reason=" ".join(parts[3:]),
                id=ban_id,
                minutes_left=minutes,
                valid=valid,
            )
        )
    return bans


def parse_bans(data) -> Bans:
    """Parse both the GUID and IP ban tables."""
    bans = Bans()
    lines = _text(data).split("\n")
    i = 0
    while i < len(lines):
        line = lines[i].strip()
        if _GUID_START in line:
            bans.guid_bans = parse_guid_bans(lines[i + _HEADER_SIZE + 1 :])
            i += len(bans.guid_bans) + _HEADER_SIZE + 1
            continue
        if _IP_START in line:
            bans.ip_bans = parse_ip_bans(
                lines[i + _HEADER_SIZE + 1 :], len(bans.guid_bans)
            )
            break
        i += 1
    return bans