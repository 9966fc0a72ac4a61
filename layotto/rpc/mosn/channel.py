"""Channel registry and the hand-off of in-memory connections to listeners."""

from __future__ import annotations

import socket
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from layotto.rpc.types import Channel


class ChannelError(Exception):
    """Base class for failures raised by channels."""


class RpcTimeoutError(ChannelError):
    """The request did not complete before its deadline."""

    def __init__(self, message: str = "request timeout") -> None:
        super().__init__(message)


class ConnectionClosedError(ChannelError):
    """The connection was closed before a response arrived."""

    def __init__(self, message: str = "connection closed by mosn") -> None:
        super().__init__(message)


@dataclass
class ChannelConfig:
    """Settings of one channel: protocol, target listener, pool size, extras."""

    protocol: str = ""
    listener: str = ""
    size: int = 0
    ext: dict[str, Any] = field(default_factory=dict)


ChannelFactory = Callable[[ChannelConfig], Channel]
ListenerHandler = Callable[[socket.socket], None]
AcceptFunc = Callable[[socket.socket, str], None]

_registry: dict[str, ChannelFactory] = {}
_listeners: dict[str, ListenerHandler] = {}


def _accept_on_listener(conn: socket.socket, listener: str) -> None:
    handler = _listeners.get(listener)
    if handler is None:
        raise ChannelError("[rpc]invalid listener name")
    handler(conn)


_accept_func: AcceptFunc = _accept_on_listener


def get_channel(config: ChannelConfig) -> Channel:
    """Build a channel with the factory registered for ``config.protocol``."""
    factory = _registry.get(config.protocol)
    if factory is None:
        raise ChannelError(f"channel {config.protocol} not found")
    return factory(config)


def register_channel(protocol: str, factory: ChannelFactory) -> None:
    """Register ``factory`` for ``protocol``, replacing any previous one."""
    _registry[protocol] = factory


def register_listener(name: str, handler: ListenerHandler) -> None:
    """Register the handler that serves connections accepted on ``name``."""
    _listeners[name] = handler


def set_accept_func(func: AcceptFunc) -> AcceptFunc:
    """Replace how connections are accepted; return the previous function."""
    global _accept_func
    previous = _accept_func
    _accept_func = func
    return previous


def accept(conn: socket.socket, listener: str) -> None:
    """Hand the server end of a connection to the named listener."""
    _accept_func(conn, listener)


# Built-in channels register themselves on import.
from layotto.rpc.mosn import httpchannel  # noqa: E402,F401