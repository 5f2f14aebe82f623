import queue
import socket
import threading
from concurrent.futures import ThreadPoolExecutor

import pytest

from bercon.connection import Connection, PacketEvent
from bercon.errors import (
    BadSize,
    BufferFull,
    ConnectionDown,
    LoginFailed,
    NotResponding,
    TimeoutReached,
)
from bercon.packet import Packet, PacketKind
from bercon.players import parse_players

PASSWORD = "password"

PLAYERS = (
    b"Players on server:\n"
    b"[#] [IP Address]:[Port] [Ping] [GUID] [Name]\n"
    b"--------------------------------------------------\n"
    b"0   127.0.0.1:2304  15   48032258807176771690632755883357(OK) Player (Lobby)\n"
    b"(1 players in total)"
)
BANS = b"GUID Bans:\n[#] [GUID] [Minutes left] [Reason]\n----\n\nIP Bans:\n"
ADMINS = b"Connected RCon admins:\n[#] [IP Address]:[Port]\n----\n0 127.0.0.1:62676\n"

RESPONSES = {"players": PLAYERS, "bans": BANS, "admins": ADMINS, "commands": b"help"}


class FakeServer:
    def __init__(self, pages=1, login_kind=PacketKind.LOGIN, silent=()):
        self.pages = pages
        self.login_kind = login_kind
        self.silent = set(silent)
        self.received = queue.Queue()
        self.client = None
        self.sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        self.sock.bind(("127.0.0.1", 0))
        self.sock.settimeout(0.05)
        self._stop = threading.Event()
        self._thread = threading.Thread(target=self._run, daemon=True)
        self._thread.start()

    @property
    def address(self):
        return f"127.0.0.1:{self.sock.getsockname()[1]}"

    def _run(self):
        while not self._stop.is_set():
            try:
                raw, addr = self.sock.recvfrom(65535)
            except TimeoutError:
                continue
            except OSError:
                return
            packet = Packet.from_bytes(raw)
            self.client = addr
            self.received.put(packet)
            self._handle(packet, addr)

    def _reply(self, packet, addr):
        self.sock.sendto(packet.to_bytes(), addr)

    def _handle(self, packet, addr):
        if packet.kind is PacketKind.LOGIN:
            status = 1 if packet.data == PASSWORD.encode() else 0
            self._reply(Packet(self.login_kind, bytes([status])), addr)
        elif packet.kind is PacketKind.COMMAND:
            command = packet.data.decode()
            if command in self.silent:
                return
            body = RESPONSES.get(command, b"")
            if self.pages > 1 and body:
                size = -(-len(body) // self.pages)
                chunks = [body[i : i + size] for i in range(0, len(body), size)]
                for number, chunk in enumerate(chunks):
                    self._reply(
                        Packet(PacketKind.COMMAND, chunk, packet.seq, len(chunks), number),
                        addr,
                    )
            else:
                self._reply(Packet(PacketKind.COMMAND, body, packet.seq), addr)

    def push(self, kind, data, seq):
        self._reply(Packet(kind, data, seq), self.client)

    def wait_for(self, predicate, timeout=3.0):
        while True:
            packet = self.received.get(timeout=timeout)
            if predicate(packet):
                return packet

    def close(self):
        self._stop.set()
        self._thread.join()
        self.sock.close()


@pytest.fixture
def server():
    srv = FakeServer()
    yield srv
    srv.close()


@pytest.fixture
def conn(server):
    password = PASSWORD
    connection = Connection.open(server.address, password=password)
    yield connection
    connection.close()


def test_send_players(conn):
    assert conn.send("players") == PLAYERS
    assert conn.is_alive()


def test_empty_command_returns_empty_response(conn):
    assert conn.send("") == b""


def test_multipart_response_is_joined():
    srv = FakeServer(pages=3)
    try:
        with Connection.open(srv.address, PASSWORD) as connection:
            assert connection.send("players") == PLAYERS
            assert connection.send("admins") == ADMINS
    finally:
        srv.close()


def test_wrong_password_fails_login(server):
    with pytest.raises(LoginFailed):
        Connection.open(server.address, "secret")


def test_non_login_reply_means_not_responding():
    srv = FakeServer(login_kind=PacketKind.COMMAND)
    try:
        with pytest.raises(NotResponding):
            Connection.open(srv.address, PASSWORD)
    finally:
        srv.close()


def test_address_without_port_is_rejected():
    with pytest.raises(ValueError):
        Connection.open("127.0.0.1", PASSWORD)


def test_send_after_close_raises(conn):
    conn.close()
    conn.close()
    assert not conn.is_alive()
    with pytest.raises(ConnectionDown):
        conn.send("players")


def test_close_ends_message_stream(conn):
    conn.close()
    assert conn.messages.get(timeout=1) is None


def test_context_manager_closes(server):
    with Connection.open(server.address, PASSWORD) as connection:
        assert connection.send("commands") == b"help"
    assert not connection.is_alive()


def test_server_message_is_published_and_acknowledged(server, conn):
    server.push(PacketKind.MESSAGE, b"hello", 7)
    event = conn.messages.get(timeout=2)
    assert isinstance(event, PacketEvent)
    assert (event.data, event.seq) == (b"hello", 7)
    ack = server.wait_for(lambda p: p.kind is PacketKind.MESSAGE)
    assert (ack.seq, ack.data) == (7, b"")


def test_keepalive_sends_empty_command(server, conn):
    conn.set_keepalive_timeout(1)
    conn.start_keepalive()
    packet = server.wait_for(lambda p: p.kind is PacketKind.COMMAND)
    assert (packet.data, packet.seq) == (b"", 0)
    assert conn.send("commands") == b"help"


def test_timeout_settings(conn):
    conn.set_keepalive_timeout(50)
    assert conn.timeouts.keepalive == 30
    conn.set_keepalive_timeout(10)
    assert conn.timeouts.keepalive == 10
    conn.set_deadline_timeout(2)
    assert conn.timeouts.deadline == 2
    conn.set_micro_sleep_timeout(20)
    assert conn.timeouts.micro_sleep == pytest.approx(0.02)
    conn.set_buffer_size(512)
    assert conn.buffer_size == 512


def test_default_buffer_size(conn):
    assert conn.buffer_size == 1040


def test_oversized_command_rejected(conn):
    conn.set_buffer_size(20)
    with pytest.raises(BadSize):
        conn.send("x" * 12)
    assert conn.send("x" * 11) == b""


def test_silent_command_times_out():
    srv = FakeServer(silent={"wait"})
    try:
        with Connection.open(srv.address, PASSWORD) as connection:
            connection.set_deadline_timeout(1)
            with pytest.raises(TimeoutReached):
                connection.send("wait")
            assert connection.send("players") == PLAYERS
    finally:
        srv.close()


def test_occupied_sequence_reports_buffer_full(server, conn):
    conn.set_deadline_timeout(1)
    server.push(PacketKind.COMMAND, b"stale", 1)
    assert conn.send("players") == PLAYERS
    with pytest.raises(BufferFull):
        conn.send("admins")


def test_concurrent_commands(conn):
    commands = ("players", "bans", "admins")

    def run(command):
        return [conn.send(command) for _ in range(10)]

    with ThreadPoolExecutor(max_workers=len(commands)) as pool:
        results = dict(zip(commands, pool.map(run, commands)))

    assert results == {c: [RESPONSES[c]] * 10 for c in commands}
    assert conn.is_alive()


def test_sequence_wraps_around_ring_buffer(conn):
    for _ in range(100):
        players = parse_players(conn.send("players"))
        assert [p.name for p in players] == ["Player"]
        assert conn.send("bans") == BANS
        assert conn.send("admins") == ADMINS
    assert conn.is_alive()