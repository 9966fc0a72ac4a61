"""Core value types and interfaces for RPC invocation."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Any


class RPCHeader(dict[str, list[str]]):
    """Multi-valued header mapping; each key holds a list of values."""

    def joined(self, key: str) -> str:
        """Return the values of ``key`` joined with commas, or "" if absent."""
        values = self.get(key)
        if values is None:
            return ""
        return ",".join(values)

    def iter_joined(self) -> Iterator[tuple[str, str]]:
        """Yield ``(key, comma-joined values)`` for every header."""
        for key, values in self.items():
            yield key, ",".join(values)


def _as_header(value: Any) -> RPCHeader:
    if isinstance(value, RPCHeader):
        return value
    return RPCHeader(value or {})


@dataclass
class RPCRequest:
    """An outgoing RPC call."""

    id: str = ""
    timeout: int = 0
    method: str = ""
    content_type: str = ""
    header: RPCHeader = field(default_factory=RPCHeader)
    data: bytes = b""

    def __post_init__(self) -> None:
        self.header = _as_header(self.header)


@dataclass
class RPCResponse:
    """The result of an RPC call."""

    header: RPCHeader = field(default_factory=RPCHeader)
    content_type: str = ""
    data: bytes = b""

    def __post_init__(self) -> None:
        self.header = _as_header(self.header)


@dataclass
class RpcConfig:
    """Raw JSON configuration handed to an invoker."""

    config: bytes | str = b""


@dataclass
class CallbackFunc:
    """Names a registered callback and carries its configuration."""

    name: str = ""
    config: Any = None


class Invoker(ABC):
    """Something that can perform an RPC call."""

    @abstractmethod
    def init(self, config: RpcConfig) -> None:
        """Configure the invoker; raise on invalid configuration."""

    @abstractmethod
    def invoke(self, request: RPCRequest) -> RPCResponse:
        """Perform the call and return its response."""


class Channel(ABC):
    """A transport that carries one request and returns its response."""

    @abstractmethod
    def do(self, request: RPCRequest) -> RPCResponse:
        """Send ``request`` and return the response."""