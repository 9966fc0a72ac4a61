"""Transport protocols: turning RPC requests into wire frames and back."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

from layotto.rpc.types import RPCHeader, RPCRequest, RPCResponse


@dataclass
class XFrame:
    """A protocol frame: a request or a response carrying headers and a payload."""

    request_id: int = 0
    header: dict[str, str] = field(default_factory=dict)
    data: bytes | None = None
    timeout: int = 0
    status: int = 0
    is_response: bool = False


class FrameCodec(ABC):
    """Writes frames to bytes and reads them back from a growing buffer."""

    @abstractmethod
    def encode(self, frame: XFrame) -> bytes:
        """Return the wire bytes of ``frame``."""

    @abstractmethod
    def decode(self, buffer: bytearray) -> XFrame | None:
        """Take one complete frame off the front of ``buffer``.

        Return None when the buffer does not yet hold a whole frame; raise
        when its content cannot be a frame of this protocol.
        """


class TransportProtocol(ABC):
    """A protocol that carries RPC requests as frames."""

    def __init__(self, codec: FrameCodec) -> None:
        self.codec = codec

    @abstractmethod
    def init(self, conf: dict[str, Any] | None) -> None:
        """Configure the protocol; raise on invalid configuration."""

    @abstractmethod
    def to_frame(self, request: RPCRequest) -> XFrame:
        """Build the request frame for ``request``."""

    def from_frame(self, frame: XFrame) -> RPCResponse:
        """Turn a response frame into an RPC response."""
        header = RPCHeader({key: [value] for key, value in frame.header.items()})
        return RPCResponse(header=header, data=bytes(frame.data) if frame.data else b"")

    def encode(self, frame: XFrame) -> bytes:
        return self.codec.encode(frame)

    def decode(self, buffer: bytearray) -> XFrame | None:
        return self.codec.decode(buffer)


_registry: dict[str, TransportProtocol] = {}


def get_protocol(name: str) -> TransportProtocol | None:
    """Return the protocol registered as ``name``, or None."""
    return _registry.get(name)


def register_protocol(name: str, protocol: TransportProtocol) -> None:
    """Register ``protocol`` under ``name``, replacing any previous one."""
    _registry[name] = protocol


# Built-in protocols register themselves on import.
from layotto.rpc.mosn import bolt, dubbo  # noqa: E402,F401