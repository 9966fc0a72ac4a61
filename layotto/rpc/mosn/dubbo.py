"""Dubbo transport protocol."""

from __future__ import annotations

import struct
from dataclasses import dataclass
from typing import Any

from layotto.rpc.mosn.channel import ChannelError
from layotto.rpc.mosn.protocol import FrameCodec, TransportProtocol, XFrame, register_protocol
from layotto.rpc.types import RPCRequest, RPCResponse

MAGIC = 0xDABB
RESP_STATUS_OK = 20
RESP_STATUS_BAD_REQUEST = 40

_FLAG_REQUEST = 0x80
_FLAG_TWO_WAY = 0x40
_FLAG_EVENT = 0x20
_SERIAL_MASK = 0x1F
_HEAD = struct.Struct(">HBBQI")


@dataclass
class DubboFrame(XFrame):
    """A dubbo frame; ``data`` is the serialized body."""

    serialization_id: int = 2
    two_way: bool = True
    event: bool = False


def _read_chars(body: bytes, pos: int, count: int) -> tuple[str, int]:
    start = pos
    for _ in range(count):
        lead = body[pos]
        if lead < 0x80:
            pos += 1
        elif lead < 0xE0:
            pos += 2
        elif lead < 0xF0:
            pos += 3
        else:
            pos += 4
    return body[start:pos].decode("utf-8"), pos


def _read_string(body: bytes, pos: int) -> tuple[str, int]:
    parts = []
    while True:
        tag = body[pos]
        if tag == ord("N"):
            return "", pos + 1
        if tag < 0x20:
            text, pos = _read_chars(body, pos + 1, tag)
            return "".join(parts) + text, pos
        if 0x30 <= tag <= 0x33:
            text, pos = _read_chars(body, pos + 2, ((tag - 0x30) << 8) | body[pos + 1])
            return "".join(parts) + text, pos
        if tag in (ord("S"), ord("R")):
            (count,) = struct.unpack_from(">H", body, pos + 1)
            text, pos = _read_chars(body, pos + 3, count)
            parts.append(text)
            if tag == ord("S"):
                return "".join(parts), pos
            continue
        raise ValueError(f"not a hessian string tag: {tag:#x}")


def _request_header(body: bytes) -> dict[str, str]:
    header: dict[str, str] = {}
    pos = 0
    try:
        for key in ("dubbo", "service", "version", "method"):
            header[key], pos = _read_string(body, pos)
    except (ValueError, IndexError, struct.error, UnicodeDecodeError):
        pass
    return header


class _DubboCodec(FrameCodec):
    def encode(self, frame: XFrame) -> bytes:
        serial = frame.serialization_id if isinstance(frame, DubboFrame) else 2
        two_way = frame.two_way if isinstance(frame, DubboFrame) else True
        event = frame.event if isinstance(frame, DubboFrame) else False
        flag = serial & _SERIAL_MASK
        if not frame.is_response:
            flag |= _FLAG_REQUEST
            if two_way:
                flag |= _FLAG_TWO_WAY
        if event:
            flag |= _FLAG_EVENT
        body = bytes(frame.data or b"")
        status = frame.status if frame.is_response else 0
        return _HEAD.pack(MAGIC, flag, status, frame.request_id, len(body)) + body

    def decode(self, buffer: bytearray) -> XFrame | None:
        if len(buffer) < _HEAD.size:
            return None
        magic, flag, status, request_id, length = _HEAD.unpack_from(buffer)
        if magic != MAGIC:
            raise ChannelError("dubbo magic mismatch")
        total = _HEAD.size + length
        if len(buffer) < total:
            return None
        body = bytes(buffer[_HEAD.size : total])
        del buffer[:total]
        is_response = not flag & _FLAG_REQUEST
        return DubboFrame(
            request_id=request_id,
            header={} if is_response else _request_header(body),
            data=body,
            status=status if is_response else 0,
            is_response=is_response,
            serialization_id=flag & _SERIAL_MASK,
            two_way=bool(flag & _FLAG_TWO_WAY),
            event=bool(flag & _FLAG_EVENT),
        )


class DubboProtocol(TransportProtocol):
    """Dubbo protocol; request data is a complete dubbo packet or a bare body."""

    def __init__(self) -> None:
        super().__init__(_DubboCodec())

    def init(self, conf: dict[str, Any] | None) -> None:
        """Nothing to configure."""

    def to_frame(self, request: RPCRequest) -> XFrame:
        data = bytearray(request.data)
        frame: XFrame | None = None
        if len(data) >= _HEAD.size and _HEAD.unpack_from(data)[0] == MAGIC:
            frame = self.codec.decode(data)
        if frame is None:
            frame = DubboFrame(data=bytes(request.data))
        frame.header.update(request.header.iter_joined())
        return frame

    def from_frame(self, frame: XFrame) -> RPCResponse:
        if frame.status != RESP_STATUS_OK:
            raise ChannelError(f"dubbo error code {frame.status}")
        return super().from_frame(frame)


register_protocol("dubbo", DubboProtocol())