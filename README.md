# bercon

A client for the BattlEye RCon protocol over UDP, with a command-line tool
that sends commands to a game server and prints the replies as plain text,
aligned tables or JSON. It has no dependencies outside the standard library;
country lookups read MaxMind Country (`.mmdb`) database files directly.

## Installation

```
pip install .
```

With the test requirements:

```
pip install ".[test]"
```

## Command line

```
bercon-cli [OPTIONS] command [command, command, ...]
```

All commands are sent in turn over one connection, and each reply is printed
before the next command is sent. Everything after the first command is taken
as further commands; `--` may be used to end the options.

| Option | Environment variable | Default | Meaning |
|---|---|---|---|
| `-i`, `--ip` | `BERCON_ADDRESS` | `127.0.0.1` | Server IPv4 address |
| `-p`, `--port` | `BERCON_PORT` | `2305` | Server RCon port |
| `-P`, `--password` | `BERCON_PASSWORD` | (required) | Server RCon password |
| `-g`, `--geo-db` | `BERCON_GEO_DB` | | Path to a Country GeoDB `.mmdb` file |
| `-t`, `--timeout` | `BERCON_TIMEOUT` | `3` | Deadline for each reply, in seconds |
| `-b`, `--buffer-size` | `BERCON_BUFFER_SIZE` | `1024` | Receive buffer size (0–65535) |
| `-j`, `--json` | `BERCON_JSON_OUTPUT` | off | Print results as JSON |
| `-h`, `--help` | | | Show the help text |
| `-v`, `--version` | | | Show file, version, commit, build time and project |

`BERCON_JSON_OUTPUT` turns JSON output on when set to `1`, `t`, `T`, `true`,
`True` or `TRUE`.

Examples:

```
bercon-cli -P password players
bercon-cli -i 10.0.0.5 -p 2306 -P password -j players bans admins
bercon-cli -P password -g GeoLite2-Country.mmdb players
```

How a reply is printed:

- Without `--geo-db` and without `--json`, the reply is printed as the server
  sent it, or `OK` for an empty reply.
- With `--json`, the `players`, `bans` and `admins` replies are parsed into
  records; any other command becomes `{"msg": [...]}` holding its lines
  (`["OK"]` for an empty reply).
- With `--geo-db`, players, admins and IP bans get a two-letter country code
  for their IP address (`XX` when unknown). The `players`, `bans` and
  `admins` replies are then printed as aligned tables (or as JSON with
  `--json`); other replies are printed as sent.

The tool exits with status 1, after a message on standard error, when the
password or the command is missing, or when opening the connection, a
command or the printing fails. An unrecognised option prints a usage error
and exits with status 0.

## Library

### Talking to a server

```python
from bercon.connection import Connection

password = "password"

with Connection.open("127.0.0.1:2305", password) as conn:
    conn.set_deadline_timeout(5)
    reply = conn.send("players")
    print(reply.decode())
```

`Connection.open("host:port", password)` logs in and starts a background
thread that receives packets. `send(command)` returns the complete reply as
bytes, joining multipart replies. Other settings:

- `set_deadline_timeout(seconds)`: how long `send` waits for a reply.
- `set_buffer_size(size)`: receive buffer size; commands longer than the
  buffer less 9 bytes are refused with `BadSize`.
- `set_keepalive_timeout(seconds)` and `start_keepalive()`: send an empty
  command at that interval; 45 seconds or more falls back to the default of 30.
  The connection is closed if a keepalive fails.
- `set_micro_sleep_timeout(milliseconds)`: polling interval while waiting.
- `is_alive()` and `close()`; leaving the `with` block closes the connection.

Login packets and server messages arrive on `conn.messages`, a
`queue.Queue` of `PacketEvent` records (`time`, `data`, `seq`). Server
messages are acknowledged automatically. A `None` item is put on the queue
when the connection closes.

Failures raise subclasses of `bercon.errors.RconError`, for example
`LoginFailed`, `NotResponding`, `TimeoutReached` (also a `TimeoutError`),
`BufferFull`, `ConnectionDown` or `PacketCRCError`.

### Parsing replies

```python
from bercon.responses import parse, to_jsonable

players = parse(reply, "players")
for player in players:
    print(player.id, player.ip, player.port, player.name, player.lobby)

print(to_jsonable(players))
```

`parse` returns a list of `Player` for `players`, a `Bans` record (with
`guid_bans` and `ip_bans`) for `bans`, a list of `Admin` for `admins`, and
`Messages` for anything else. The parsers can also be called on their own:
`parse_players`, `parse_admins`, `parse_bans`, `parse_guid_bans`,
`parse_ip_bans` and `parse_messages`. Unreadable addresses become
`"invalid"`, unreadable GUIDs become 32 zeros, and records carry a `valid`
flag where the reply can be malformed.

To add country codes from a MaxMind Country database:

```python
from bercon.responses import parse_with_geo_db

bans = parse_with_geo_db(reply, "bans", "GeoLite2-Country.mmdb")
```

`bercon.geo.CountryReader` can also be opened once with
`CountryReader.open(path)` and passed to `parse_with_geo`, or used with
`country_code(reader, ip)` and `set_country_codes(records, reader)`.

### Printing

`bercon.printer.parse_and_print_data(data, cmd, geo_db, as_json, out)` writes
a reply the same way the command-line tool does. `format_players`,
`format_admins`, `format_bans`, `format_guid_bans` and `format_ip_bans`
return the tables as strings, built with `bercon.table.TablePrinter`.

### Packets

`bercon.packet.Packet` builds and reads BattlEye RCon datagrams: the `BE`
magic, the CRC32 of the body, and login, command (single or multipart) and
message packets. `Packet.from_bytes` checks the header and the checksum and
raises on a mismatch.

## Limitations

- A dropped connection is not re-established; open a new `Connection`.
  (`ReconnectFailed` is defined but never raised.)
- Country lookups only read the country ISO code from the database.

## Tests

```
pytest
```