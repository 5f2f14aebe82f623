import pytest

from bercon.admins import parse_admins
from bercon.bans import Bans, BanIP
from bercon.geo import CountryReader, country_code, set_country_codes
from bercon.players import Player

MARKER = b"\xab\xcd\xefMaxMind.com"


def _str(text):
    raw = text.encode()
    return bytes([0x40 | len(raw)]) + raw


def _u16(value):
    return bytes([0xA2]) + value.to_bytes(2, "big")


def _map(items):
    out = bytes([0xE0 | len(items)])
    for key, value in items.items():
        out += _str(key) + value
    return out


def _database(iso):
    # one node: addresses with a leading 0 bit map to the record, others to nothing
    tree = (1 + 16).to_bytes(3, "big") + (1).to_bytes(3, "big")
    data = _map({"country": _map({"iso_code": _str(iso)})})
    meta = _map({"node_count": _u16(1), "record_size": _u16(24), "ip_version": _u16(4)})
    return tree + bytes(16) + data + MARKER + meta


@pytest.fixture
def db_path(tmp_path):
    path = tmp_path / "country.mmdb"
    path.write_bytes(_database("US"))
    return path


def test_lookup_found(db_path):
    with CountryReader.open(db_path) as reader:
        assert reader.iso_code("8.8.8.8") == "US"
        assert country_code(reader, "8.8.8.8") == "US"


def test_lookup_missing_and_invalid(db_path):
    with CountryReader.open(db_path) as reader:
        assert reader.iso_code("200.1.1.1") == ""
        assert country_code(reader, "200.1.1.1") == "XX"
        assert country_code(reader, "invalid") == "XX"
        assert country_code(reader, "2001:db8::1") == "XX"


def test_set_country_codes_players_and_bans(db_path):
    players = [Player(ip="8.8.8.8", guid="g", name="a"), Player(ip="invalid", guid="g", name="b")]
    bans = Bans(ip_bans=[BanIP(ip="127.0.0.1")])
    with CountryReader.open(db_path) as reader:
        set_country_codes(players, reader)
        set_country_codes(bans, reader)
        admins = parse_admins(b"0 10.0.0.90:1")
        set_country_codes(admins, reader)
    assert [p.country for p in players] == ["US", "XX"]
    assert bans.ip_bans[0].country == "US"
    assert admins[0].country == "US"


def test_bad_file():
    with pytest.raises(ValueError):
        CountryReader(b"not a database")