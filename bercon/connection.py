"""BattlEye RCon connection over UDP.

A connection logs in when opened and then listens in a background thread.
Command responses are matched to the sequence number they were sent with.
Other packets go to ``Connection.messages`` as ``PacketEvent`` items:
login packets and server messages. Server messages are acknowledged
automatically. A ``None`` item marks the end of the stream once the
connection is closed.

    with Connection.open("127.0.0.1:2302", password) as conn:
        conn.start_keepalive()
        print(conn.send("players").decode())
"""

from __future__ import annotations

import queue
import socket
import threading
import time
from dataclasses import dataclass, field
from datetime import datetime

from bercon.errors import (
    BadPart,
    BadSequence,
    BadSize,
    BufferFull,
    ConnectionClosed,
    ConnectionDown,
    LoginFailed,
    NotResponding,
    RconError,
    TimeoutReached,
)
from bercon.packet import LOGIN_SUCCESS, Packet, PacketKind

DEFAULT_KEEPALIVE_TIMEOUT = 30  # seconds, must stay below 45
DEFAULT_DEADLINE_TIMEOUT = 5  # seconds
DEFAULT_MICRO_SLEEP_TIMEOUT = 10  # milliseconds
DEFAULT_BUFFER_SIZE = 1024  # body bytes
DEFAULT_BUFFER_HEADER_SIZE = 16  # header, type, sequence and paging bytes

_MAX_KEEPALIVE = 45
_PACKET_OVERHEAD = 9  # 7 header bytes + type + sequence
_SEQUENCES = 256
_MESSAGE_QUEUE_SIZE = 10
_POLL_INTERVAL = 0.1


@dataclass
class Timeouts:
    """Timeouts of a connection, all in seconds."""

    keepalive: float = DEFAULT_KEEPALIVE_TIMEOUT
    deadline: float = DEFAULT_DEADLINE_TIMEOUT
    micro_sleep: float = DEFAULT_MICRO_SLEEP_TIMEOUT / 1000


@dataclass(frozen=True)
class PacketEvent:
    """A login or message packet received from the server."""

    time: datetime
    data: bytes
    seq: int


@dataclass
class _Response:
    data: bytearray
    pages: int
    page: int
    timestamp: datetime = field(default_factory=datetime.now)

    @property
    def complete(self) -> bool:
        return self.pages == 0 or self.pages == self.page + 1


def _resolve(address: str) -> tuple[socket.socket, tuple]:
    host, sep, port = address.rpartition(":")
    if not sep:
        raise ValueError(f"address {address}: missing port in address")
    if host.startswith("[") and host.endswith("]"):
        host = host[1:-1]
    family, kind, proto, _, sockaddr = socket.getaddrinfo(
        host or None, port, type=socket.SOCK_DGRAM
    )[0]
    return socket.socket(family, kind, proto), sockaddr


class Connection:
    """An authenticated connection to a BattlEye RCon server."""

    def __init__(self, address: str, password: str, sock: socket.socket):
        self.address = address
        self.password = password
        self.timeouts = Timeouts()
        self.buffer_size = DEFAULT_BUFFER_SIZE + DEFAULT_BUFFER_HEADER_SIZE
        self.messages: queue.Queue[PacketEvent | None] = queue.Queue(_MESSAGE_QUEUE_SIZE)

        self._sock: socket.socket | None = sock
        self._sequence = 0
        self._buffer: list[_Response | None] = [None] * _SEQUENCES
        self._cond = threading.Condition()
        self._send_lock = threading.Lock()
        self._state_lock = threading.Lock()
        self._alive = False
        self._done = threading.Event()
        self._listener: threading.Thread | None = None
        self._keepalive: threading.Thread | None = None

    @classmethod
    def open(cls, address: str, password: str) -> Connection:
        """Connect to "host:port", log in and start listening."""
        sock, sockaddr = _resolve(address)
        try:
            sock.connect(sockaddr)
            conn = cls(address, password, sock)
            conn._login()
        except BaseException:
            sock.close()
            raise
        conn._alive = True
        conn._listener = threading.Thread(
            target=conn._listen, name="bercon-listener", daemon=True
        )
        conn._listener.start()
        return conn

    def set_buffer_size(self, size: int) -> None:
        self.buffer_size = size

    def set_keepalive_timeout(self, seconds: int) -> None:
        """Set the keepalive interval; 45 seconds or more resets to the default."""
        if seconds >= _MAX_KEEPALIVE:
            self.timeouts.keepalive = DEFAULT_KEEPALIVE_TIMEOUT
        else:
            self.timeouts.keepalive = seconds

    def set_deadline_timeout(self, seconds: int) -> None:
        self.timeouts.deadline = seconds

    def set_micro_sleep_timeout(self, milliseconds: int) -> None:
        self.timeouts.micro_sleep = milliseconds / 1000

    def is_alive(self) -> bool:
        return self._alive

    def close(self) -> None:
        """Stop the background threads and release the socket; idempotent."""
        with self._state_lock:
            if not self._alive:
                return
            self._alive = False

        self._done.set()
        with self._cond:
            self._cond.notify_all()

        current = threading.current_thread()
        for thread in (self._listener, self._keepalive):
            if thread is not None and thread is not current:
                thread.join()

        if self._sock is not None:
            self._sock.close()
            self._sock = None

        try:
            self.messages.put_nowait(None)
        except queue.Full:
            pass

    def start_keepalive(self) -> None:
        """Send an empty command every keepalive interval until closed."""
        if self._keepalive is not None:
            return
        self._keepalive = threading.Thread(
            target=self._keepalive_loop, name="bercon-keepalive", daemon=True
        )
        self._keepalive.start()

    def send(self, command: str) -> bytes:
        """Send a command and wait for its whole response."""
        if not self._alive:
            raise ConnectionDown()

        with self._send_lock:
            seq = self._sequence
            self._wait_free(seq)
            self._sequence = (seq + 1) % _SEQUENCES
            self._write_packet(PacketKind.COMMAND, command.encode(), seq)
            return self._get_response(seq)

    def __enter__(self) -> Connection:
        return self

    def __exit__(self, *args) -> None:
        self.close()

    def _wait_free(self, seq: int) -> None:
        deadline = time.monotonic() + self.timeouts.deadline
        with self._cond:
            while self._buffer[seq] is not None:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    raise BufferFull()
                self._cond.wait(min(remaining, self.timeouts.micro_sleep))

    def _get_response(self, seq: int) -> bytes:
        deadline = time.monotonic() + self.timeouts.deadline
        with self._cond:
            while True:
                response = self._buffer[seq]
                if response is not None and response.complete:
                    self._buffer[seq] = None
                    self._cond.notify_all()
                    return bytes(response.data)
                if not self._alive:
                    raise ConnectionClosed()
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    raise TimeoutReached()
                self._cond.wait(min(remaining, self.timeouts.micro_sleep))

    def _login(self) -> None:
        with self._send_lock:
            self._write_packet(PacketKind.LOGIN, self.password.encode(), 0)
            self._sock.settimeout(self.timeouts.deadline)
            try:
                packet = self._read_packet()
            except (OSError, RconError):
                raise NotResponding() from None
            if packet.kind is not PacketKind.LOGIN:
                raise NotResponding()
            self._sock.settimeout(_POLL_INTERVAL)
            if not packet.data or packet.data[0] != LOGIN_SUCCESS:
                raise LoginFailed()

    def _write_packet(self, kind: PacketKind, data: bytes, seq: int) -> None:
        if len(data) > self.buffer_size - _PACKET_OVERHEAD:
            raise BadSize()
        sock = self._sock
        if sock is None:
            raise ConnectionClosed()
        sock.send(Packet(kind, data, seq).to_bytes())

    def _read_packet(self) -> Packet:
        sock = self._sock
        if sock is None:
            raise ConnectionClosed()
        return Packet.from_bytes(sock.recv(self.buffer_size))

    def _publish(self, packet: Packet) -> bool:
        event = PacketEvent(time=datetime.now(), data=packet.data, seq=packet.seq)
        while not self._done.is_set():
            try:
                self.messages.put(event, timeout=_POLL_INTERVAL)
                return True
            except queue.Full:
                continue
        return False

    def _listen(self) -> None:
        while not self._done.is_set():
            if self._sock is None or not self._alive:
                self.close()
                return
            try:
                packet = self._read_packet()
            except TimeoutError:
                continue
            except (OSError, RconError):
                self.close()
                return

            if packet.kind is PacketKind.LOGIN:
                if not self._publish(packet):
                    return
            elif packet.kind is PacketKind.MESSAGE:
                if not self._publish(packet):
                    return
                try:
                    self._write_packet(PacketKind.MESSAGE, b"", packet.seq)
                except (OSError, RconError):
                    pass
            elif packet.kind is PacketKind.COMMAND:
                try:
                    self._store_response(packet)
                except RconError:
                    pass

    def _store_response(self, packet: Packet) -> None:
        with self._cond:
            current = self._buffer[packet.seq]
            if current is None:
                self._buffer[packet.seq] = _Response(
                    data=bytearray(packet.data), pages=packet.pages, page=packet.page
                )
            elif current.pages > 0:
                if current.page + 1 != packet.page:
                    raise BadSequence()
                current.data += packet.data
                current.page = packet.page
            else:
                raise BadPart()
            self._cond.notify_all()

    def _keepalive_loop(self) -> None:
        while not self._done.wait(self.timeouts.keepalive):
            try:
                self.send("")
            except (OSError, RconError):
                self.close()
                return