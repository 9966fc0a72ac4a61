"""Channel for multiplexed frame protocols (bolt, boltv2, dubbo)."""

from __future__ import annotations

import itertools
import socket
import threading
import time

from layotto.rpc.mosn.channel import (
    ChannelConfig,
    ChannelError,
    ConnectionClosedError,
    RpcTimeoutError,
    accept,
    register_channel,
)
from layotto.rpc.mosn.connpool import ConnPool, WrappedConn
from layotto.rpc.mosn.protocol import XFrame, get_protocol
from layotto.rpc.types import Channel, RPCRequest, RPCResponse

_POLL = 0.02


class _Slot:
    def __init__(self) -> None:
        self.event = threading.Event()
        self.frame: XFrame | None = None

    def deliver(self, frame: XFrame) -> None:
        self.frame = frame
        self.event.set()


class _XState:
    def __init__(self) -> None:
        self._ids = itertools.count(1)
        self._lock = threading.Lock()
        self._slots: dict[int, _Slot] = {}

    def next_id(self) -> int:
        with self._lock:
            return next(self._ids)

    def register(self, request_id: int, slot: _Slot) -> None:
        with self._lock:
            self._slots[request_id] = slot

    def pop(self, request_id: int) -> _Slot | None:
        with self._lock:
            return self._slots.pop(request_id, None)


class XChannel(Channel):
    """Sends frames over pooled connections and matches responses by request id."""

    def __init__(self, config: ChannelConfig) -> None:
        protocol = get_protocol(config.protocol)
        if protocol is None:
            raise ChannelError(f"protocol {config.protocol} not found")
        protocol.init(config.ext)
        self.config = config
        self._proto = protocol

        def dial() -> socket.socket:
            local, remote = socket.socketpair()
            try:
                accept(remote, config.listener)
            except BaseException:
                local.close()
                remote.close()
                raise
            return local

        self._pool = ConnPool(config.size, dial, _XState, self._on_data)

    def do(self, request: RPCRequest) -> RPCResponse:
        deadline = time.monotonic() + request.timeout / 1000
        conn = self._pool.get(deadline - time.monotonic())
        state: _XState = conn.state

        frame = self._proto.to_frame(request)
        request_id = state.next_id()
        frame.request_id = request_id
        try:
            payload = self._proto.encode(frame)
        except Exception:
            self._pool.put(conn, False)
            raise

        slot = _Slot()
        state.register(request_id, slot)
        try:
            conn.sendall(payload)
        except OSError as err:
            state.pop(request_id)
            self._pool.put(conn, True)
            raise ChannelError(str(err)) from err
        self._pool.put(conn, False)

        while True:
            if slot.event.is_set() and slot.frame is not None:
                return self._proto.from_frame(slot.frame)
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                state.pop(request_id)
                raise RpcTimeoutError()
            if conn.closed:
                state.pop(request_id)
                raise ConnectionClosedError()
            slot.event.wait(min(remaining, _POLL))

    def _on_data(self, conn: WrappedConn) -> None:
        while True:
            frame = self._proto.decode(conn.buffer)
            if frame is None:
                return
            if not frame.is_response:
                raise ChannelError("[runtime][rpc]xchannel type not XRespFrame")
            slot = conn.state.pop(frame.request_id)
            if slot is not None:
                slot.deliver(frame)


for _name in ("bolt", "boltv2", "dubbo"):
    register_channel(_name, XChannel)