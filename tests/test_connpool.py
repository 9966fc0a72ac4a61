import queue
import socket
import threading

import pytest

from layotto.rpc.mosn.channel import ChannelError
from layotto.rpc.mosn.connpool import ConnPool, PoolTimeoutError


class _Peers:
    def __init__(self):
        self._lock = threading.Lock()
        self.items = []

    def dial(self):
        local, remote = socket.socketpair()
        with self._lock:
            self.items.append(remote)
        return local

    def close_all(self):
        with self._lock:
            for sock in self.items:
                sock.close()
            self.items = []


def test_get_put():
    active = 2
    peers = _Peers()
    pool = ConnPool(active, peers.dial, lambda: None, lambda conn: None)

    c1 = pool.get(1.0)
    c2 = pool.get(1.0)
    assert pool.free_count() == 0
    assert c1 is not c2

    with pytest.raises(PoolTimeoutError) as info:
        pool.get(0.2)
    assert str(info.value) == "connection pool timeout"
    assert isinstance(info.value, ChannelError)

    pool.put(c1, False)
    pool.put(c2, False)
    assert pool.free_count() == active


def test_idle_connection_is_reused():
    peers = _Peers()
    pool = ConnPool(1, peers.dial)
    c1 = pool.get(1.0)
    pool.put(c1, False)
    assert pool.get(1.0) is c1
    assert len(peers.items) == 1


def test_dead_conn_renew():
    active = 1
    peers = _Peers()
    pool = ConnPool(active, peers.dial, lambda: None, lambda conn: None)

    c1 = pool.get()
    peers.close_all()
    pool.put(c1, False)
    c1.close()
    assert pool.free_count() == active

    c2 = pool.get()
    assert c2 is not c1
    assert not c2.closed


def test_put_with_close_frees_turn():
    peers = _Peers()
    pool = ConnPool(1, peers.dial)
    conn = pool.get(1.0)
    pool.put(conn, True)
    assert conn.closed
    assert pool.free_count() == 0
    other = pool.get(0.5)
    assert other is not conn


def test_dial_failure_frees_turn():
    peers = _Peers()
    calls = []

    def dial():
        calls.append(1)
        if len(calls) == 1:
            raise OSError("boom")
        return peers.dial()

    pool = ConnPool(1, dial)
    with pytest.raises(OSError, match="boom"):
        pool.get(1.0)
    conn = pool.get(0.5)
    assert len(calls) == 2
    assert not conn.closed


def test_state_factory_gives_each_conn_its_state():
    peers = _Peers()
    pool = ConnPool(2, peers.dial, lambda: {"reqid": 0})
    c1 = pool.get(1.0)
    c2 = pool.get(1.0)
    assert c1.state == {"reqid": 0}
    assert c1.state is not c2.state


def test_read_loop_delivers_data():
    received = queue.Queue()
    peers = _Peers()
    pool = ConnPool(1, peers.dial, None, lambda conn: received.put(bytes(conn.buffer)))
    conn = pool.get(1.0)
    peers.items[0].sendall(b"abc")
    assert received.get(timeout=2) == b"abc"
    assert not conn.closed


def test_read_loop_closes_on_peer_eof():
    peers = _Peers()
    pool = ConnPool(1, peers.dial, None, lambda conn: None)
    conn = pool.get(1.0)
    peers.close_all()
    assert conn.wait_closed(2) is True
    assert conn.closed


def test_read_loop_closes_when_on_data_fails():
    def on_data(conn):
        raise ValueError("bad frame")

    peers = _Peers()
    pool = ConnPool(1, peers.dial, None, on_data)
    conn = pool.get(1.0)
    peers.items[0].sendall(b"x")
    assert conn.wait_closed(2) is True


def test_close_is_idempotent():
    peers = _Peers()
    pool = ConnPool(1, peers.dial)
    conn = pool.get(1.0)
    conn.close()
    conn.close()
    assert conn.closed
    assert conn.wait_closed(0) is True


def test_pool_concurrent():
    peers = _Peers()
    active = 5
    pool = ConnPool(active, peers.dial, lambda: None, lambda conn: None)

    actions = [
        "Get", "Put",
        "Get", "close",
        "Get", "Put",
        "readclose", "Get", "close",
        "Get", "readclose", "Put",
        "Get", "Put", "readclose",
        "Get", "Put",
        "Get", "close",
        "Get", "Put",
    ]
    errors = []

    def worker():
        conn = None
        try:
            for action in actions:
                if action == "Get":
                    conn = pool.get(5.0)
                elif action == "Put":
                    pool.put(conn, False)
                elif action == "close":
                    pool.put(conn, True)
                elif action == "readclose":
                    peers.close_all()
        except Exception as err:  # collected and asserted below
            errors.append(err)

    threads = [threading.Thread(target=worker) for _ in range(10)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(30)

    assert errors == []
    assert pool.free_count() <= active