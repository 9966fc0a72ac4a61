"""A bounded pool of in-memory connections."""

from __future__ import annotations

import contextlib
import logging
import socket
import threading
from collections import deque
from collections.abc import Callable
from typing import Any

from layotto.rpc.mosn.channel import ChannelError

logger = logging.getLogger(__name__)

_READ_SIZE = 16 * 1024


class PoolTimeoutError(ChannelError):
    """No connection became available before the deadline."""

    def __init__(self) -> None:
        super().__init__("connection pool timeout")


class WrappedConn:
    """A pooled socket with per-connection state and a read buffer."""

    def __init__(self, sock: socket.socket, state: Any = None) -> None:
        self.sock = sock
        self.state = state
        self.buffer = bytearray()
        self._lock = threading.Lock()
        self._closing = False
        self._closed_event = threading.Event()

    @property
    def closed(self) -> bool:
        return self._closing

    def wait_closed(self, timeout: float | None = None) -> bool:
        """Block until the connection is closed; return whether it is."""
        return self._closed_event.wait(timeout)

    def close(self) -> None:
        """Close the connection; later calls do nothing."""
        with self._lock:
            if self._closing:
                return
            self._closing = True
        with contextlib.suppress(OSError):
            self.sock.shutdown(socket.SHUT_RDWR)
        with contextlib.suppress(OSError):
            self.sock.close()
        self._closed_event.set()

    def sendall(self, data: bytes) -> None:
        self.sock.sendall(data)

    def recv(self, size: int) -> bytes:
        return self.sock.recv(size)

    def settimeout(self, timeout: float | None) -> None:
        self.sock.settimeout(timeout)

    def makefile(self, mode: str = "r", *args: Any, **kwargs: Any) -> Any:
        return self.sock.makefile(mode, *args, **kwargs)


class ConnPool:
    """Hands out at most ``max_active`` connections at a time, reusing idle ones."""

    def __init__(
        self,
        max_active: int,
        dial: Callable[[], socket.socket],
        state_factory: Callable[[], Any] | None = None,
        on_data: Callable[[WrappedConn], None] | None = None,
    ) -> None:
        self._max_active = max_active
        self._dial = dial
        self._state_factory = state_factory
        self._on_data = on_data
        self._turns = threading.Semaphore(max_active)
        self._lock = threading.Lock()
        self._free: deque[WrappedConn] = deque()

    def get(self, timeout: float | None = None) -> WrappedConn:
        """Take a connection, waiting up to ``timeout`` seconds for a turn."""
        wait = None if timeout is None else max(timeout, 0.0)
        if not self._turns.acquire(timeout=wait):
            raise PoolTimeoutError()

        with self._lock:
            conn = self._free.popleft() if self._free else None
        if conn is not None and not conn.closed:
            return conn

        try:
            sock = self._dial()
        except BaseException:
            self._turns.release()
            raise
        state = self._state_factory() if self._state_factory is not None else None
        conn = WrappedConn(sock, state)
        if self._on_data is not None:
            threading.Thread(target=self._read_loop, args=(conn,), daemon=True).start()
        return conn

    def put(self, conn: WrappedConn, close: bool = False) -> None:
        """Return a connection taken with ``get``; close it if asked or the pool is full."""
        try:
            if close:
                conn.close()
                return
            with self._lock:
                keep = len(self._free) < self._max_active
                if keep:
                    self._free.append(conn)
            if not keep:
                conn.close()
        finally:
            self._turns.release()

    def free_count(self) -> int:
        """Number of idle connections held by the pool."""
        with self._lock:
            return len(self._free)

    def _read_loop(self, conn: WrappedConn) -> None:
        assert self._on_data is not None
        try:
            while True:
                try:
                    chunk = conn.recv(_READ_SIZE)
                except OSError as err:
                    if conn.closed:
                        logger.debug("[runtime][rpc]connpool readloop err: %s", err)
                    else:
                        logger.error("[runtime][rpc]connpool readloop err: %s", err)
                    return
                if not chunk:
                    logger.debug("[runtime][rpc]connpool readloop err: EOF")
                    return
                conn.buffer.extend(chunk)
                try:
                    self._on_data(conn)
                except Exception as err:
                    logger.error("[runtime][rpc]connpool onData err: %s", err)
                    return
        finally:
            conn.close()