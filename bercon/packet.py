"""BattlEye RCon wire packets."""

from __future__ import annotations

import enum
import zlib
from dataclasses import dataclass

from bercon.errors import (
    PacketCRCError,
    PacketHeaderError,
    PacketSizeError,
    PacketUnknownError,
)

HEADER_MAGIC = b"BE"
HEADER_END = 0xFF
LOGIN_SUCCESS = 0x01
MULTIPART = 0x00
MIN_PACKET_SIZE = 8  # 7 header bytes + 1 type byte


class PacketKind(enum.IntEnum):
    LOGIN = 0
    COMMAND = 1
    MESSAGE = 2


@dataclass
class Packet:
    """A single packet; the CRC is computed on creation unless given."""

    kind: PacketKind
    data: bytes = b""
    seq: int = 0
    pages: int = 0
    page: int = 0
    crc: int | None = None

    def __post_init__(self):
        try:
            self.kind = PacketKind(self.kind)
        except ValueError:
            raise PacketUnknownError() from None
        self.data = bytes(self.data)
        if self.kind is PacketKind.LOGIN:
            self.seq = 0
        if self.crc is None:
            self.crc = self.checksum()

    def _body_prefix(self) -> bytes:
        if self.kind is PacketKind.LOGIN:
            return b""
        if self.kind is PacketKind.COMMAND and self.pages:
            return bytes([self.seq, MULTIPART, self.pages, self.page])
        return bytes([self.seq])

    def checksum(self) -> int:
        """CRC32 of everything after the CRC field."""
        return zlib.crc32(bytes([HEADER_END, self.kind]) + self._body_prefix() + self.data)

    def check_crc(self) -> None:
        if self.crc != self.checksum():
            raise PacketCRCError()

    def to_bytes(self) -> bytes:
        raw = (
            HEADER_MAGIC
            + self.crc.to_bytes(4, "little")
            + bytes([HEADER_END, self.kind])
            + self._body_prefix()
            + self.data
        )
        check_packet(raw)
        return raw

    @classmethod
    def from_bytes(cls, data) -> Packet:
        data = bytes(data)
        check_packet(data)
        crc = int.from_bytes(data[2:6], "little")
        try:
            kind = PacketKind(data[7])
        except ValueError:
            raise PacketUnknownError() from None

        seq = pages = page = 0
        offset = MIN_PACKET_SIZE
        if kind is not PacketKind.LOGIN:
            if len(data) <= MIN_PACKET_SIZE:
                raise PacketSizeError()
            seq = data[MIN_PACKET_SIZE]
            offset += 1
            if (
                kind is PacketKind.COMMAND
                and len(data) >= MIN_PACKET_SIZE + 2
                and data[MIN_PACKET_SIZE + 1] == MULTIPART
            ):
                if len(data) < MIN_PACKET_SIZE + 4:
                    raise PacketSizeError()
                pages, page = data[MIN_PACKET_SIZE + 2], data[MIN_PACKET_SIZE + 3]
                offset += 3

        packet = cls(kind, data[offset:], seq, pages, page, crc)
        packet.check_crc()
        return packet


def check_packet(data) -> None:
    """Raise if data is too short or lacks the packet header markers."""
    if len(data) < MIN_PACKET_SIZE:
        raise PacketSizeError()
    if bytes(data[:2]) != HEADER_MAGIC or data[6] != HEADER_END:
        raise PacketHeaderError()