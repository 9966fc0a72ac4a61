"""Invoker that sends RPC requests through a configured channel."""

from __future__ import annotations

import json
import logging
from typing import Any

from layotto.rpc.callback import Callback
from layotto.rpc.mosn import xchannel  # noqa: F401  registers the frame channels
from layotto.rpc.mosn.channel import ChannelConfig, get_channel
from layotto.rpc.types import CallbackFunc, Channel, Invoker, RpcConfig, RPCRequest, RPCResponse

logger = logging.getLogger(__name__)

NAME = "mosn"
DEFAULT_TIMEOUT_MS = 3000


class InvokerError(Exception):
    """Raised when the invoker is misconfigured or used before it is ready."""


def _as_list(config: dict[str, Any], key: str) -> list[Any]:
    value = config.get(key)
    if value is None:
        return []
    if not isinstance(value, list):
        raise InvokerError(f"{key} must be a list")
    return value


def _as_object(value: Any, what: str) -> dict[str, Any]:
    if not isinstance(value, dict):
        raise InvokerError(f"{what} must be an object")
    return value


def _callback_func(entry: Any) -> CallbackFunc:
    entry = _as_object(entry, "callback config")
    return CallbackFunc(name=str(entry.get("name") or ""), config=entry.get("config"))


def _channel_config(entry: Any) -> ChannelConfig:
    entry = _as_object(entry, "channel config")
    ext = entry.get("ext") or {}
    if not isinstance(ext, dict):
        raise InvokerError("channel ext must be an object")
    size = entry.get("size") or 0
    if not isinstance(size, int) or isinstance(size, bool):
        raise InvokerError("channel size must be an integer")
    return ChannelConfig(
        protocol=str(entry.get("protocol") or ""),
        listener=str(entry.get("listener") or ""),
        size=size,
        ext=ext,
    )


class MosnInvoker(Invoker):
    """Runs before filters, sends the request over a channel, then runs after filters."""

    def __init__(self) -> None:
        self._callback = Callback()
        self._channel: Channel | None = None

    def init(self, config: RpcConfig) -> None:
        """Parse the JSON configuration, set up filters and build the channel."""
        try:
            parsed = json.loads(config.config)
        except (json.JSONDecodeError, UnicodeDecodeError) as err:
            raise InvokerError(str(err)) from err
        parsed = _as_object(parsed, "invoker config")

        for entry in _as_list(parsed, "before_invoke"):
            self._callback.add_before_invoke(_callback_func(entry))
        for entry in _as_list(parsed, "after_invoke"):
            self._callback.add_after_invoke(_callback_func(entry))

        channels = _as_list(parsed, "channel")
        if not channels:
            raise InvokerError("missing channel config")
        # Only the first channel is used.
        self._channel = get_channel(_channel_config(channels[0]))

    def invoke(self, request: RPCRequest) -> RPCResponse:
        """Send ``request``; a zero timeout means the default of 3000 ms."""
        if self._channel is None:
            message = "[runtime][rpc]mosn invoker panic: channel is not initialized"
            logger.error("%s", message)
            raise InvokerError(message)

        if request.timeout == 0:
            request.timeout = DEFAULT_TIMEOUT_MS
        logger.debug("[runtime][rpc]request %r", request)

        try:
            request = self._callback.before_invoke(request)
        except Exception as err:
            logger.error("[runtime][rpc]before filter error %s", err)
            raise

        try:
            response = self._channel.do(request)
        except Exception as err:
            logger.error("[runtime][rpc]error %s", err)
            raise

        try:
            return self._callback.after_invoke(response)
        except Exception as err:
            logger.error("[runtime][rpc]after filter error %s", err)
            raise