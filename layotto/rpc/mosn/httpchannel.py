"""Channel that carries requests as HTTP/1.1 over in-memory connections."""

from __future__ import annotations

import http.client
import socket
import time
from collections.abc import Callable

from layotto.rpc.mosn.channel import (
    ChannelConfig,
    ChannelError,
    RpcTimeoutError,
    accept,
    register_channel,
)
from layotto.rpc.mosn.connpool import ConnPool, WrappedConn
from layotto.rpc.types import Channel, RPCHeader, RPCRequest, RPCResponse

_HOST = "localhost"
_DEFAULT_METHOD = "GET"


def _canonical(key: str) -> str:
    return "-".join(part[:1].upper() + part[1:].lower() for part in key.split("-"))


def _pipe_dialer(listener: str) -> Callable[[], socket.socket]:
    def dial() -> socket.socket:
        local, remote = socket.socketpair()
        try:
            accept(remote, listener)
        except BaseException:
            local.close()
            remote.close()
            raise
        return local

    return dial


def _read_response(
    conn: WrappedConn, method: str
) -> tuple[int, list[tuple[str, str]], str, bytes]:
    response = http.client.HTTPResponse(conn, method=method)  # type: ignore[arg-type]
    try:
        response.begin()
        body = response.read()
        return (
            response.status,
            response.getheaders(),
            response.getheader("Content-Type", "") or "",
            body,
        )
    finally:
        response.close()


class HttpChannel(Channel):
    """Sends each request as HTTP/1.1 to a listener through a connection pool."""

    def __init__(self, config: ChannelConfig) -> None:
        self.config = config
        self._pool = ConnPool(config.size, _pipe_dialer(config.listener))

    def do(self, request: RPCRequest) -> RPCResponse:
        deadline = time.monotonic() + request.timeout / 1000
        conn = self._pool.get(deadline - time.monotonic())

        remaining = deadline - time.monotonic()
        if remaining <= 0:
            self._pool.put(conn, True)
            raise RpcTimeoutError()
        conn.settimeout(remaining)

        method, payload = self._build(request)
        try:
            conn.sendall(payload)
            status, headers, content_type, body = _read_response(conn, method)
        except TimeoutError as err:
            self._pool.put(conn, True)
            raise RpcTimeoutError() from err
        except (OSError, http.client.HTTPException) as err:
            self._pool.put(conn, True)
            raise ChannelError(str(err)) from err
        self._pool.put(conn, False)

        if status != 200:
            text = body.decode("utf-8", "replace")
            raise ChannelError(f"http response code {status}, body: {text}")

        header = RPCHeader()
        for name, value in headers:
            header[name] = [value]
        return RPCResponse(header=header, content_type=content_type, data=body)

    def construct_request(self, request: RPCRequest) -> bytes:
        """Render ``request`` as HTTP/1.1 bytes.

        The ``verb`` and ``query_string`` headers choose the method and query
        and are removed from the request's header.
        """
        return self._build(request)[1]

    def _build(self, request: RPCRequest) -> tuple[str, bytes]:
        header = request.header

        method = _DEFAULT_METHOD
        verb = header.joined("verb")
        if verb:
            method = verb
            del header["verb"]

        path, _, query = request.method.partition("?")
        if not path.startswith("/"):
            path = "/" + path
        query_string = header.joined("query_string")
        if query_string:
            query = query_string
            del header["query_string"]
        target = f"{path}?{query}" if query else path

        content_type = ""
        user_agent = ""
        fields: dict[str, str] = {}
        for key, value in header.iter_joined():
            name = _canonical(key)
            if name == "Content-Type":
                content_type = value
            elif name == "User-Agent":
                user_agent = value
            elif name in ("Host", "Content-Length"):
                continue
            else:
                fields[name] = value
        fields["Id"] = request.id

        body = bytes(request.data)
        lines = [f"{method} {target} HTTP/1.1", f"Host: {_HOST}"]
        if user_agent:
            lines.append(f"User-Agent: {user_agent}")
        if content_type:
            lines.append(f"Content-Type: {content_type}")
        if body or method.upper() not in ("GET", "HEAD"):
            lines.append(f"Content-Length: {len(body)}")
        lines.extend(f"{name}: {value}" for name, value in fields.items())
        head = "\r\n".join(lines) + "\r\n\r\n"
        return method, head.encode("utf-8") + body


register_channel("http", HttpChannel)