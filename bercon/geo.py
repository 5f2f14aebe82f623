"""Country lookups from a MaxMind country database file."""

from __future__ import annotations

import ipaddress
import struct

_METADATA_MARKER = b"\xab\xcd\xefMaxMind.com"
_POINTER_BIAS = (0, 2048, 526336)
_SIZE_BIAS = (29, 285, 65821)
UNKNOWN_COUNTRY = "XX"


class CountryReader:
    """Reads country ISO codes out of an mmdb database held in memory."""

    def __init__(self, data: bytes):
        self._buf = bytes(data)
        marker = self._buf.rfind(_METADATA_MARKER)
        if marker < 0:
            raise ValueError("invalid MaxMind DB file: metadata not found")
        meta_start = marker + len(_METADATA_MARKER)
        try:
            metadata, _ = self._decode(meta_start, meta_start)
            self._node_count = int(metadata["node_count"])
            self._record_size = int(metadata["record_size"])
            self._ip_version = int(metadata["ip_version"])
        except (KeyError, TypeError, IndexError) as exc:
            raise ValueError(f"invalid MaxMind DB metadata: {exc}") from None
        if self._record_size not in (24, 28, 32):
            raise ValueError(f"unsupported record size {self._record_size}")
        self._node_bytes = self._record_size * 2 // 8
        self._tree_size = self._node_bytes * self._node_count
        self._data_start = self._tree_size + 16

    @classmethod
    def open(cls, path) -> CountryReader:
        with open(path, "rb") as handle:
            return cls(handle.read())

    def close(self) -> None:
        self._buf = b""

    def __enter__(self) -> CountryReader:
        return self

    def __exit__(self, *args) -> None:
        self.close()

    def iso_code(self, ip: str) -> str:
        """ISO code for the address, or "" when the database has none."""
        record = self._lookup(ip)
        if not isinstance(record, dict):
            return ""
        country = record.get("country")
        if not isinstance(country, dict):
            return ""
        return country.get("iso_code") or ""

    def _record(self, node: int, bit: int) -> int:
        base = node * self._node_bytes
        raw = self._buf[base : base + self._node_bytes]
        if len(raw) != self._node_bytes:
            raise ValueError("search tree is truncated")
        if self._record_size == 24:
            chunk = raw[3:6] if bit else raw[0:3]
            return int.from_bytes(chunk, "big")
        if self._record_size == 28:
            if bit:
                return ((raw[3] & 0x0F) << 24) | int.from_bytes(raw[4:7], "big")
            return ((raw[3] & 0xF0) << 20) | int.from_bytes(raw[0:3], "big")
        chunk = raw[4:8] if bit else raw[0:4]
        return int.from_bytes(chunk, "big")

    def _lookup(self, ip: str):
        address = ipaddress.ip_address(ip)
        if isinstance(address, ipaddress.IPv6Address) and address.ipv4_mapped:
            address = address.ipv4_mapped
        if address.version == 6 and self._ip_version == 4:
            raise ValueError(f"cannot look up {ip} in an IPv4-only database")
        bit_count = 128 if self._ip_version == 6 else 32
        value = int(address)

        node = 0
        for shift in range(bit_count - 1, -1, -1):
            if node >= self._node_count:
                break
            node = self._record(node, (value >> shift) & 1)

        if node == self._node_count:
            return None
        if node < self._node_count:
            raise ValueError("invalid node in search tree")
        value, _ = self._decode(self._tree_size + node - self._node_count, self._data_start)
        return value

    def _read(self, offset: int, size: int) -> bytes:
        chunk = self._buf[offset : offset + size]
        if len(chunk) != size:
            raise ValueError("unexpected end of database")
        return chunk

    def _decode(self, offset: int, base: int):
        ctrl = self._read(offset, 1)[0]
        offset += 1
        kind = ctrl >> 5

        if kind == 1:
            size = (ctrl >> 3) & 0x3
            raw = self._read(offset, size + 1)
            offset += size + 1
            if size == 3:
                pointer = int.from_bytes(raw, "big")
            else:
                pointer = (
                    ((ctrl & 0x7) << (8 * (size + 1))) | int.from_bytes(raw, "big")
                ) + _POINTER_BIAS[size]
            value, _ = self._decode(base + pointer, base)
            return value, offset

        if kind == 0:
            kind = 7 + self._read(offset, 1)[0]
            offset += 1

        size = ctrl & 0x1F
        if size >= 29:
            extra = size - 28
            size = _SIZE_BIAS[extra - 1] + int.from_bytes(self._read(offset, extra), "big")
            offset += extra

        if kind == 2:
            return self._read(offset, size).decode("utf-8"), offset + size
        if kind == 3:
            return struct.unpack(">d", self._read(offset, 8))[0], offset + 8
        if kind == 4:
            return self._read(offset, size), offset + size
        if kind in (5, 6, 9, 10):
            return int.from_bytes(self._read(offset, size), "big"), offset + size
        if kind == 7:
            result = {}
            for _ in range(size):
                key, offset = self._decode(offset, base)
                result[key], offset = self._decode(offset, base)
            return result, offset
        if kind == 8:
            value = int.from_bytes(self._read(offset, size), "big")
            if size == 4 and value >= 2**31:
                value -= 2**32
            return value, offset + size
        if kind == 11:
            items = []
            for _ in range(size):
                item, offset = self._decode(offset, base)
                items.append(item)
            return items, offset
        if kind == 14:
            return size != 0, offset
        if kind == 15:
            return struct.unpack(">f", self._read(offset, 4))[0], offset + 4
        raise ValueError(f"unsupported data type {kind}")


def country_code(reader: CountryReader, ip: str) -> str:
    """Country ISO code for the IP, or "XX" for anything unexpected."""
    try:
        ipaddress.ip_address(ip)
    except ValueError:
        return UNKNOWN_COUNTRY
    try:
        code = reader.iso_code(ip)
    except (ValueError, UnicodeDecodeError):
        return UNKNOWN_COUNTRY
    return code or UNKNOWN_COUNTRY


def set_country_codes(records, reader: CountryReader) -> None:
    """Fill ``country`` on every record; a bans object has its IP bans filled."""
    if hasattr(records, "ip_bans"):
        records = records.ip_bans
    for record in records:
        record.country = country_code(reader, record.ip)