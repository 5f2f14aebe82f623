"""Dispatch of server responses to the parser for their command."""

from __future__ import annotations

from bercon.admins import parse_admins
from bercon.bans import parse_bans
from bercon.geo import CountryReader, set_country_codes
from bercon.messages import parse_messages
from bercon.players import parse_players

_PARSERS = {
    "players": parse_players,
    "bans": parse_bans,
    "admins": parse_admins,
}


def parse(data, cmd: str):
    """Players, bans or admins for those commands; Messages for any other."""
    parser = _PARSERS.get(cmd)
    if parser is None:
        return parse_messages(data)
    return parser(data)


def parse_with_geo(data, cmd: str, reader: CountryReader):
    """Like parse, with countries filled in from the reader."""
    if reader is None:
        raise ValueError("a country reader is required")
    parsed = parse(data, cmd)
    if cmd in _PARSERS:
        set_country_codes(parsed, reader)
    return parsed


def parse_with_geo_db(data, cmd: str, geo_db):
    """Like parse_with_geo, opening the database file at geo_db."""
    with CountryReader.open(geo_db) as reader:
        return parse_with_geo(data, cmd, reader)


def to_jsonable(parsed):
    """Convert a parse result into plain lists and dicts."""
    if isinstance(parsed, list):
        return [item.as_dict() for item in parsed]
    return parsed.as_dict()