"""Parsing of the "players" command response."""

from __future__ import annotations

from dataclasses import dataclass
from itertools import islice

from bercon.addresses import parse_address

INVALID_GUID = "00000000000000000000000000000000"
GUID_LENGTH = 32

_START = "Players on server:"
_TOTAL = "players in total"
_HEADER_SIZE = 2
_MIN_COLUMNS = 5
_GUID_OK = "(OK)"
_LOBBY = " (Lobby)"


@dataclass
class Player:
    ip: str
    guid: str
    name: str
    port: int = 0
    ping: int = 0
    id: int = 0
    valid: bool = False
    lobby: bool = False
    country: str = ""

    def as_dict(self) -> dict:
        result = {"ip": self.ip, "guid": self.guid, "name": self.name}
        if self.country:
            result["country"] = self.country
        result.update(
            port=self.port, ping=self.ping, id=self.id, valid=self.valid, lobby=self.lobby
        )
        return result


def _text(data) -> str:
    if isinstance(data, (bytes, bytearray)):
        return bytes(data).decode("utf-8", errors="replace")
    return data


def _parse_uint(text: str, bits: int) -> int | None:
    if not (text.isascii() and text.isdigit()):
        return None
    value = int(text)
    return value if value < 2**bits else None


def parse_players(data) -> list[Player]:
    """Parse the player table; stops at the "players in total" line."""
    players: list[Player] = []
    lines = iter(_text(data).split("\n"))

    for raw in lines:
        line = raw.strip()
        if _TOTAL in line:
            break
        if not line:
            continue
        if _START in line:
            list(islice(lines, _HEADER_SIZE))
            continue

        parts = line.split()
        if len(parts) < _MIN_COLUMNS:
            continue
        id_text, address, ping_text, guid_text, *name_parts = parts

        player_id = _parse_uint(id_text, 8)
        if player_id is None:
            player_id = min(len(players), 255)

        ip, port = parse_address(address)
        ping = _parse_uint(ping_text, 16) or 0

        if len(guid_text) >= GUID_LENGTH:
            guid = guid_text[:GUID_LENGTH].strip()
            valid = guid_text[GUID_LENGTH:] == _GUID_OK
        else:
            guid = INVALID_GUID
            valid = False

        name = " ".join(name_parts)
        lobby = len(name) > len(_LOBBY) and name.endswith(_LOBBY)
        if lobby:
            name = name[: -len(_LOBBY)]

        players.append(
            Player(
                ip=ip,
                guid=guid,
                name=name.strip(),
                port=port,
                ping=ping,
                id=player_id,
                valid=valid,
                lobby=lobby,
            )
        )

    return players