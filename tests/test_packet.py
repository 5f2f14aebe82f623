import pytest

from bercon.errors import (
    PacketCRCError,
    PacketHeaderError,
    PacketSizeError,
    PacketUnknownError,
)
from bercon.packet import Packet, PacketKind, check_packet


def test_login_packet_layout():
    raw = Packet(PacketKind.LOGIN, b"password").to_bytes()
    assert raw[:2] == b"BE"
    assert raw[6] == 0xFF
    assert raw[7] == PacketKind.LOGIN
    assert raw[8:] == b"password"


def test_login_packet_ignores_seq():
    assert Packet(PacketKind.LOGIN, b"x", seq=9).seq == 0


def test_command_packet_layout():
    raw = Packet(PacketKind.COMMAND, b"players", seq=3).to_bytes()
    assert raw[7] == PacketKind.COMMAND
    assert raw[8] == 3
    assert raw[9:] == b"players"


def test_crc_field_matches_checksum():
    pkt = Packet(PacketKind.MESSAGE, b"hello", seq=4)
    raw = pkt.to_bytes()
    assert int.from_bytes(raw[2:6], "little") == pkt.checksum()


@pytest.mark.parametrize(
    "pkt",
    [
        Packet(PacketKind.LOGIN, b"\x01"),
        Packet(PacketKind.COMMAND, b"players", seq=7),
        Packet(PacketKind.COMMAND, b"", seq=255),
        Packet(PacketKind.MESSAGE, b"chat line", seq=12),
        Packet(PacketKind.COMMAND, b"part", seq=5, pages=3, page=1),
    ],
)
def test_round_trip(pkt):
    back = Packet.from_bytes(pkt.to_bytes())
    assert back == pkt


def test_multipart_fields_parsed():
    raw = Packet(PacketKind.COMMAND, b"abc", seq=5, pages=3, page=2).to_bytes()
    back = Packet.from_bytes(raw)
    assert (back.seq, back.pages, back.page, back.data) == (5, 3, 2, b"abc")


def test_tampered_data_fails_crc():
    raw = bytearray(Packet(PacketKind.COMMAND, b"players", seq=1).to_bytes())
    raw[-1] ^= 0x01
    with pytest.raises(PacketCRCError):
        Packet.from_bytes(raw)


def test_check_crc_after_mutation():
    pkt = Packet(PacketKind.MESSAGE, b"one", seq=1)
    pkt.data = b"two"
    with pytest.raises(PacketCRCError):
        pkt.check_crc()


def test_check_packet_too_short():
    with pytest.raises(PacketSizeError):
        check_packet(b"BE\x00\x00")


def test_check_packet_bad_header():
    with pytest.raises(PacketHeaderError):
        check_packet(b"XX\x00\x00\x00\x00\xff\x01")


def test_check_packet_bad_end_marker():
    with pytest.raises(PacketHeaderError):
        check_packet(b"BE\x00\x00\x00\x00\x00\x01")


def test_unknown_kind_from_bytes():
    with pytest.raises(PacketUnknownError):
        Packet.from_bytes(b"BE\x00\x00\x00\x00\xff\x05")


def test_unknown_kind_construct():
    with pytest.raises(PacketUnknownError):
        Packet(9, b"")


def test_command_without_seq_is_too_short():
    with pytest.raises(PacketSizeError):
        Packet.from_bytes(b"BE\x00\x00\x00\x00\xff\x01")