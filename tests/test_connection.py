import socket

import pytest

from reactorhttp.connection import Connection, ConnectionState
from reactorhttp.eventloop import EventLoop


def pump(loop):
    """Run one round of the loop in this thread."""
    loop.queue_in_loop(loop.stop)
    loop.start()


@pytest.fixture
def pair():
    loop = EventLoop()
    local, peer = socket.socketpair()
    peer.settimeout(2)
    conn = Connection(loop, local, 7)
    yield loop, conn, peer
    peer.close()
    local.close()


def test_establish_reports_connection(pair):
    loop, conn, _ = pair
    seen = []
    conn.on_connect = seen.append
    conn.establish()
    assert conn.state is ConnectionState.CONNECTED
    assert seen == [conn]


def test_establish_twice_raises(pair):
    _, conn, _ = pair
    conn.establish()
    with pytest.raises(RuntimeError):
        conn.establish()


def test_send_reaches_peer(pair):
    loop, conn, peer = pair
    conn.establish()
    conn.send(b"hello")
    pump(loop)
    assert peer.recv(64) == b"hello"
    assert len(conn.output) == 0


def test_message_callback_and_echo(pair):
    loop, conn, peer = pair
    received = []

    def on_message(c, buf):
        data = buf.peek()
        received.append(data)
        buf.consume(len(data))
        c.send(data)

    conn.on_message = on_message
    conn.establish()
    peer.sendall(b"ping")
    pump(loop)
    pump(loop)
    assert received == [b"ping"]
    assert peer.recv(64) == b"ping"
    assert len(conn.input) == 0


def test_peer_close_releases(pair):
    loop, conn, peer = pair
    closed = []
    server_closed = []
    conn.on_close = closed.append
    conn.on_server_close = server_closed.append
    conn.establish()
    peer.close()
    pump(loop)
    assert conn.state is ConnectionState.DISCONNECTED
    assert closed == [conn]
    assert server_closed == [conn]


def test_shutdown_flushes_output_first(pair):
    loop, conn, peer = pair
    closed = []
    conn.on_close = closed.append
    conn.establish()
    conn.send(b"bye")
    conn.shutdown()
    assert conn.state is ConnectionState.DISCONNECTING
    pump(loop)
    assert peer.recv(64) == b"bye"
    assert peer.recv(64) == b""
    assert conn.state is ConnectionState.DISCONNECTED
    assert closed == [conn]


def test_shutdown_without_output_releases(pair):
    loop, conn, peer = pair
    conn.establish()
    conn.shutdown()
    pump(loop)
    assert conn.state is ConnectionState.DISCONNECTED
    assert peer.recv(64) == b""


def test_release_happens_once(pair):
    loop, conn, _ = pair
    closed = []
    conn.on_close = closed.append
    conn.establish()
    conn.release()
    conn.release()
    pump(loop)
    assert closed == [conn]


def test_send_after_release_is_dropped(pair):
    loop, conn, _ = pair
    conn.establish()
    conn.release()
    pump(loop)
    conn.send(b"late")
    assert conn.state is ConnectionState.DISCONNECTED
    assert len(conn.output) == 0


def test_timer_task_numbers_follow_reserved_one(pair):
    loop, conn, _ = pair
    first = conn.add_timer_task(5, lambda: None)
    second = conn.add_timer_task(5, lambda: None)
    assert first == 2
    assert second == first + 1
    assert loop.has_timer((conn.conn_id, first))
    assert loop.has_timer((conn.conn_id, second))


def test_inactive_release_registers_timer(pair):
    loop, conn, _ = pair
    assert not loop.has_timer((conn.conn_id, 1))
    conn.enable_inactive_release(10)
    assert loop.has_timer((conn.conn_id, 1))
    conn.enable_inactive_release(10)
    assert loop.has_timer((conn.conn_id, 1))


def test_context_is_kept(pair):
    _, conn, _ = pair
    conn.context = {"step": "start"}
    assert conn.context == {"step": "start"}