"""Command line client: run RCon commands and print their responses."""

from __future__ import annotations

import argparse
import os
import sys

from bercon.connection import Connection
from bercon.errors import RconError
from bercon.printer import parse_and_print_data

VERSION = ""
COMMIT = ""
BUILD_TIME = ""
URL = ""

DEFAULT_IP = "127.0.0.1"
DEFAULT_PORT = 2305
DEFAULT_TIMEOUT = 3
DEFAULT_BUFFER_SIZE = 1024

_TRUE_VALUES = {"1", "t", "T", "TRUE", "true", "True"}


class _Parser(argparse.ArgumentParser):
    """Argument parser that reports errors and then exits successfully."""

    def error(self, message):
        self.print_usage(sys.stderr)
        self.exit(0, f"{self.prog}: error: {message}\n")


def _uint16(text: str) -> int:
    try:
        value = int(text)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid integer value: {text!r}") from None
    if not 0 <= value < 2**16:
        raise argparse.ArgumentTypeError(f"value out of range: {text!r}")
    return value


def _env_flag(name: str) -> bool:
    return os.environ.get(name, "") in _TRUE_VALUES


def build_parser() -> argparse.ArgumentParser:
    """Parser for the command line; defaults may come from BERCON_* variables."""
    env = os.environ
    parser = _Parser(
        prog=os.path.basename(sys.argv[0]) or "bercon",
        usage="%(prog)s [OPTIONS] command [command, command, ...]",
        description="BattlEye RCon CLI.",
        add_help=False,
    )
    parser.add_argument(
        "-i", "--ip",
        default=env.get("BERCON_ADDRESS", DEFAULT_IP),
        help="Server IPv4 address",
    )
    parser.add_argument(
        "-P", "--password",
        default=env.get("BERCON_PASSWORD", ""),
        help="Server RCON password",
    )
    parser.add_argument(
        "-g", "--geo-db",
        dest="geo_db",
        default=env.get("BERCON_GEO_DB", ""),
        help="Path to Country GeoDB mmdb file",
    )
    parser.add_argument(
        "-p", "--port",
        type=int,
        default=env.get("BERCON_PORT", str(DEFAULT_PORT)),
        help="Server RCON port",
    )
    parser.add_argument(
        "-t", "--timeout",
        type=int,
        default=env.get("BERCON_TIMEOUT", str(DEFAULT_TIMEOUT)),
        help="Deadline and timeout in seconds",
    )
    parser.add_argument(
        "-b", "--buffer-size",
        dest="buffer_size",
        type=_uint16,
        default=env.get("BERCON_BUFFER_SIZE", str(DEFAULT_BUFFER_SIZE)),
        help="Buffer size for RCON connection",
    )
    parser.add_argument(
        "-j", "--json",
        action="store_true",
        default=_env_flag("BERCON_JSON_OUTPUT"),
        help="Print result in JSON format",
    )
    parser.add_argument("-h", "--help", action="store_true", help="Prints this help message")
    parser.add_argument(
        "-v", "--version",
        action="store_true",
        help="Show version, commit, and build time",
    )
    parser.add_argument("commands", nargs=argparse.REMAINDER, help=argparse.SUPPRESS)
    return parser


def _version_text() -> str:
    return (
        f"file:     {sys.argv[0]}\n"
        f"version:  {VERSION}\n"
        f"commit:   {COMMIT}\n"
        f"built:    {BUILD_TIME}\n"
        f"project:  {URL}\n"
    )


def _fatal(message: str) -> int:
    print(message, file=sys.stderr)
    return 1


def main(argv=None) -> int:
    """Run the client and return the process exit status."""
    parser = build_parser()
    try:
        opts = parser.parse_args(argv)
    except SystemExit as exc:
        return exc.code if isinstance(exc.code, int) else 0

    commands = list(opts.commands)
    if commands and commands[0] == "--":
        commands = commands[1:]

    if opts.help:
        parser.print_help(sys.stdout)
        return 0
    if opts.version:
        sys.stdout.write(_version_text())
        return 0
    if not opts.password:
        return _fatal("required flag '-P, --password' was not specified")
    if not commands:
        return _fatal("Command must be provided")

    address = f"{opts.ip}:{opts.port}"
    try:
        conn = Connection.open(address, opts.password)
    except (OSError, RconError, ValueError) as exc:
        return _fatal(f"error opening connection: {exc}")

    try:
        conn.set_deadline_timeout(opts.timeout)
        conn.set_buffer_size(opts.buffer_size)

        for index, command in enumerate(commands):
            try:
                data = conn.send(command)
            except (OSError, RconError, ValueError) as exc:
                return _fatal(f"error in command {index} '{command}': {exc}")
            try:
                parse_and_print_data(data, command, opts.geo_db, opts.json, sys.stdout)
            except (OSError, ValueError, UnicodeDecodeError) as exc:
                return _fatal(f"cant print response data: {exc}")
    finally:
        try:
            conn.close()
        except OSError as exc:
            print(f"cant close connection: {exc}", file=sys.stderr)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())