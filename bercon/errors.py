"""Exceptions raised by the RCon client."""


class RconError(Exception):
    """Base class for every RCon client error."""

    message = "rcon error"

    def __init__(self, message=None):
        super().__init__(message or self.message)


class TimeoutReached(RconError, TimeoutError):
    message = "deadline timeout reached"


class BufferFull(RconError):
    message = "send command queue is full, try again later"


class ConnectionClosed(RconError):
    message = "connection closed unexpected"


class ConnectionDown(RconError):
    message = "connection to server is down, need reconnect"


class ReconnectFailed(RconError):
    message = "failed to reconnect after several attempts"


class PacketSizeError(RconError):
    message = "packet size to small"


class PacketHeaderError(RconError):
    message = "packet header mismatched"


class PacketCRCError(RconError):
    message = "CRC data not match"


class PacketUnknownError(RconError):
    message = "received unknown packet type"


class NotResponding(RconError):
    message = "server not response"


class LoginFailed(RconError):
    message = "login failed"


class NoLoginResponse(RconError):
    message = "wait for login but get unexpected response"


class BadResponse(RconError):
    message = "unexpected response data"


class BadSequence(RconError):
    message = "returned not expected page number of sequence"


class BadSize(RconError):
    message = "size of buffer is greater than the allowed"


class BadPart(RconError):
    message = "unexpected packet part returned"