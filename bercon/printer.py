"""Printing of server responses as text tables or JSON."""

from __future__ import annotations

import json
import sys

from bercon.responses import parse, parse_with_geo_db, to_jsonable
from bercon.table import TablePrinter

_JSON_ESCAPES = {
    "<": "\\u003c",
    ">": "\\u003e",
    "&": "\\u0026",
    "\u2028": "\\u2028",
    "\u2029": "\\u2029",
}


def minutes_left(minutes: int) -> str:
    return "perm" if minutes < 0 else str(minutes)


def format_players(players) -> str:
    table = TablePrinter(
        ["[#]", "[IP Address]:[Port]", "[Ping]", "[GUID]", "[Name]", "[Country]"]
    )
    for player in players:
        table.add_row(
            [
                str(player.id),
                f"{player.ip}:{player.port}",
                str(player.ping),
                player.guid,
                player.name,
                player.country,
            ]
        )
    return (
        "Players on server:\n"
        + table.render()
        + f"({len(players)} players in total)\n\n"
    )


def format_admins(admins) -> str:
    table = TablePrinter(["[#]", "[IP Address]:[Port]", "[Country]"])
    for admin in admins:
        table.add_row([str(admin.id), f"{admin.ip}:{admin.port}", admin.country])
    return "Connected RCon admins:\n" + table.render() + "\n"


def format_guid_bans(bans) -> str:
    table = TablePrinter(["[#]", "[GUID]", "[Minutes left]", "[Reason]"])
    for ban in bans:
        table.add_row([str(ban.id), ban.guid, minutes_left(ban.minutes_left), ban.reason])
    return "GUID Bans:\n" + table.render() + "\n"


def format_ip_bans(bans) -> str:
    table = TablePrinter(["[#]", "[IP Address]", "[Minutes left]", "[Reason]", "[Country]"])
    for ban in bans:
        table.add_row(
            [str(ban.id), ban.ip, minutes_left(ban.minutes_left), ban.reason, ban.country]
        )
    return "IP Bans:\n" + table.render() + "\n"


def format_bans(bans) -> str:
    return format_guid_bans(bans.guid_bans) + format_ip_bans(bans.ip_bans)


def _to_json(parsed) -> str:
    text = json.dumps(to_jsonable(parsed), indent=2, ensure_ascii=False)
    for char, escape in _JSON_ESCAPES.items():
        text = text.replace(char, escape)
    return text + "\n"


def _plain(data) -> str:
    if not data:
        return "OK\n"
    return bytes(data).decode("utf-8", errors="replace") + "\n"


_FORMATTERS = {
    "players": format_players,
    "bans": format_bans,
    "admins": format_admins,
}


def parse_and_print_data(data, cmd, geo_db="", as_json=False, out=None) -> None:
    """Write the response for cmd as raw text, a table with countries, or JSON."""
    out = out if out is not None else sys.stdout

    if not geo_db:
        out.write(_to_json(parse(data, cmd)) if as_json else _plain(data))
        return

    parsed = parse_with_geo_db(data, cmd, geo_db)
    if as_json:
        out.write(_to_json(parsed))
        return

    formatter = _FORMATTERS.get(cmd)
    out.write(formatter(parsed) if formatter else _plain(data))