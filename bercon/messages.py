"""Responses that carry no table: kept as plain lines."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class Messages:
    msg: list[str] = field(default_factory=list)

    def as_dict(self) -> dict:
        return {"msg": list(self.msg)}


def parse_messages(data) -> Messages:
    """Split a response into lines; an empty response becomes ["OK"]."""
    if isinstance(data, (bytes, bytearray)):
        data = bytes(data).decode("utf-8", errors="replace")
    lines = data.split("\n")
    if len(lines) < 2 and not lines[0]:
        return Messages(["OK"])
    return Messages(lines)