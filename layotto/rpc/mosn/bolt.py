"""Bolt and Bolt v2 transport protocols."""

from __future__ import annotations

import struct
from dataclasses import dataclass
from typing import Any

from layotto.rpc.mosn.channel import ChannelError
from layotto.rpc.mosn.protocol import FrameCodec, TransportProtocol, XFrame, register_protocol
from layotto.rpc.types import RPCRequest, RPCResponse

HESSIAN2 = 1
RESPONSE_STATUS_SUCCESS = 0
RESPONSE_STATUS_ERROR = 1

_TYPE_RESPONSE = 0
_TYPE_REQUEST = 1
_TYPE_ONEWAY = 2
_CMD_REQUEST = 1
_CMD_RESPONSE = 2
_VERSION = 1

_LAYOUTS = {
    False: (struct.Struct(">BBHBIBiHHI"), struct.Struct(">BBHBIBHHHI")),
    True: (struct.Struct(">BBBHBIBBiHHI"), struct.Struct(">BBBHBIBBHHHI")),
}
_LEN = struct.Struct(">I")


@dataclass
class BoltFrame(XFrame):
    """A bolt frame; requests name the class of their payload."""

    class_name: str = ""
    codec: int = HESSIAN2


def _encode_header(header: dict[str, str]) -> bytes:
    out = bytearray()
    for key, value in header.items():
        for item in (key.encode("utf-8"), value.encode("utf-8")):
            out += _LEN.pack(len(item)) + item
    return bytes(out)


def _decode_header(raw: bytes) -> dict[str, str]:
    header: dict[str, str] = {}
    pos = 0
    while pos < len(raw):
        parts = []
        for _ in range(2):
            (size,) = _LEN.unpack_from(raw, pos)
            pos += _LEN.size
            parts.append(raw[pos : pos + size].decode("utf-8"))
            pos += size
        header[parts[0]] = parts[1]
    return header


class _BoltCodec(FrameCodec):
    def __init__(self, v2: bool) -> None:
        self._v2 = v2
        self._proto_code = 2 if v2 else 1
        self._request, self._response = _LAYOUTS[v2]

    def encode(self, frame: XFrame) -> bytes:
        class_name = frame.class_name if isinstance(frame, BoltFrame) else ""
        codec = frame.codec if isinstance(frame, BoltFrame) else HESSIAN2
        class_bytes = class_name.encode("utf-8")
        header = _encode_header(frame.header)
        content = bytes(frame.data or b"")
        if frame.is_response:
            layout, kind, cmd, middle = self._response, _TYPE_RESPONSE, _CMD_RESPONSE, frame.status
        else:
            layout, kind, cmd, middle = self._request, _TYPE_REQUEST, _CMD_REQUEST, frame.timeout
        request_id = frame.request_id & 0xFFFFFFFF
        lengths = (len(class_bytes), len(header), len(content))
        if self._v2:
            head = layout.pack(
                self._proto_code, _VERSION, kind, cmd, _VERSION, request_id, codec, 0, middle, *lengths
            )
        else:
            head = layout.pack(self._proto_code, kind, cmd, _VERSION, request_id, codec, middle, *lengths)
        return head + class_bytes + header + content

    def decode(self, buffer: bytearray) -> XFrame | None:
        if len(buffer) < self._response.size:
            return None
        if buffer[0] != self._proto_code:
            raise ChannelError(f"unknown bolt protocol code {buffer[0]}")
        kind = buffer[2 if self._v2 else 1]
        if kind in (_TYPE_REQUEST, _TYPE_ONEWAY):
            layout = self._request
        elif kind == _TYPE_RESPONSE:
            layout = self._response
        else:
            raise ChannelError(f"unknown bolt command type {kind}")
        if len(buffer) < layout.size:
            return None
        fields = layout.unpack_from(buffer)
        class_len, header_len, content_len = fields[-3:]
        total = layout.size + class_len + header_len + content_len
        if len(buffer) < total:
            return None
        raw = bytes(buffer[layout.size : total])
        del buffer[:total]
        offset = 1 if self._v2 else 0
        frame = BoltFrame(
            request_id=fields[4 + offset],
            codec=fields[5 + offset],
            class_name=raw[:class_len].decode("utf-8"),
            header=_decode_header(raw[class_len : class_len + header_len]),
            data=raw[class_len + header_len :],
            is_response=kind == _TYPE_RESPONSE,
        )
        if frame.is_response:
            frame.status = fields[-4]
        else:
            frame.timeout = fields[-4]
        return frame


class BoltProtocol(TransportProtocol):
    """Bolt protocol; requires a ``class`` entry in its configuration."""

    def __init__(self, codec: FrameCodec | None = None) -> None:
        super().__init__(codec or _BoltCodec(v2=False))
        self.class_name = ""

    def init(self, conf: dict[str, Any] | None) -> None:
        if not conf:
            raise ChannelError("missing bolt classname")
        if "class" not in conf:
            raise ChannelError("bolt need class")
        class_name = conf["class"]
        if not isinstance(class_name, str):
            raise ChannelError("bolt class not string")
        self.class_name = class_name

    def to_frame(self, request: RPCRequest) -> XFrame:
        return BoltFrame(
            request_id=0,
            timeout=request.timeout,
            class_name=self.class_name,
            header=dict(request.header.iter_joined()),
            data=bytes(request.data),
        )

    def from_frame(self, frame: XFrame) -> RPCResponse:
        if frame.status != RESPONSE_STATUS_SUCCESS:
            raise ChannelError(f"bolt error code {frame.status}")
        return super().from_frame(frame)


class BoltV2Protocol(BoltProtocol):
    """Bolt v2 protocol."""

    def __init__(self) -> None:
        super().__init__(_BoltCodec(v2=True))

    def to_frame(self, request: RPCRequest) -> XFrame:
        frame = super().to_frame(request)
        assert isinstance(frame, BoltFrame)
        frame.codec = HESSIAN2
        return frame


register_protocol("bolt", BoltProtocol())
register_protocol("boltv2", BoltV2Protocol())