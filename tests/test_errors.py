import pytest

from bercon.errors import (
    BadPart,
    BadResponse,
    BadSequence,
    BadSize,
    BufferFull,
    ConnectionClosed,
    ConnectionDown,
    LoginFailed,
    NoLoginResponse,
    NotResponding,
    PacketCRCError,
    PacketHeaderError,
    PacketSizeError,
    PacketUnknownError,
    RconError,
    ReconnectFailed,
    TimeoutReached,
)


def _instances():
    return [
        (TimeoutReached(), "deadline timeout reached"),
        (BufferFull(), "send command queue is full, try again later"),
        (ConnectionClosed(), "connection closed unexpected"),
        (ConnectionDown(), "connection to server is down, need reconnect"),
        (ReconnectFailed(), "failed to reconnect after several attempts"),
        (PacketSizeError(), "packet size to small"),
        (PacketHeaderError(), "packet header mismatched"),
        (PacketCRCError(), "CRC data not match"),
        (PacketUnknownError(), "received unknown packet type"),
        (NotResponding(), "server not response"),
        (LoginFailed(), "login failed"),
        (NoLoginResponse(), "wait for login but get unexpected response"),
        (BadResponse(), "unexpected response data"),
        (BadSequence(), "returned not expected page number of sequence"),
        (BadSize(), "size of buffer is greater than the allowed"),
        (BadPart(), "unexpected packet part returned"),
    ]


def test_default_message():
    messages = [str(error) for error, _ in _instances()]
    assert messages == [text for _, text in _instances()]


def test_caught_as_base():
    for error, text in _instances():
        with pytest.raises(RconError) as info:
            raise error
        assert str(info.value) == text


def test_custom_message_overrides_default():
    assert str(LoginFailed("custom text")) == "custom text"


def test_timeout_is_builtin_timeout():
    error = TimeoutReached()
    caught = None
    try:
        raise error
    except TimeoutError as exc:
        caught = exc
    assert caught is error
    assert str(caught) == "deadline timeout reached"
    assert caught.args == ("deadline timeout reached",)