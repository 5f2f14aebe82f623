"""BattlEye RCon client, reply parsers, country lookups and command-line tool."""

__version__ = "0.1.0"