"""Before/after invoke filters applied around an RPC call."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import Any

from layotto.rpc.types import CallbackFunc, RPCRequest, RPCResponse

logger = logging.getLogger(__name__)

BeforeFunc = Callable[[RPCRequest], RPCRequest]
AfterFunc = Callable[[RPCResponse], RPCResponse]


class BeforeFactory(ABC):
    """Builds a filter run on each request before it is sent."""

    name: str = ""

    @abstractmethod
    def init(self, config: Any) -> None:
        """Configure the factory; raise on invalid configuration."""

    @abstractmethod
    def create(self) -> BeforeFunc:
        """Return a new request filter."""


class AfterFactory(ABC):
    """Builds a filter run on each response after it is received."""

    name: str = ""

    @abstractmethod
    def init(self, config: Any) -> None:
        """Configure the factory; raise on invalid configuration."""

    @abstractmethod
    def create(self) -> AfterFunc:
        """Return a new response filter."""


_before_registry: dict[str, BeforeFactory] = {}
_after_registry: dict[str, AfterFactory] = {}


def register_before_invoke(factory: BeforeFactory) -> None:
    """Make a before-invoke factory available under its name."""
    _before_registry[factory.name] = factory


def register_after_invoke(factory: AfterFactory) -> None:
    """Make an after-invoke factory available under its name."""
    _after_registry[factory.name] = factory


class Callback:
    """An ordered chain of request and response filters."""

    def __init__(self) -> None:
        self._before: list[BeforeFunc] = []
        self._after: list[AfterFunc] = []

    def add_before_invoke(self, conf: CallbackFunc) -> None:
        """Append the named before filter; unknown or failing ones are logged and skipped."""
        factory = _before_registry.get(conf.name)
        if factory is None:
            logger.error("[runtime][rpc]can't find before filter %s", conf.name)
            return
        try:
            factory.init(conf.config)
        except Exception as err:
            logger.error("[runtime][rpc]init before filter err %s", err)
            return
        self._before.append(factory.create())

    def add_after_invoke(self, conf: CallbackFunc) -> None:
        """Append the named after filter; unknown or failing ones are logged and skipped."""
        factory = _after_registry.get(conf.name)
        if factory is None:
            logger.error("[runtime][rpc]can't find after filter %s", conf.name)
            return
        try:
            factory.init(conf.config)
        except Exception as err:
            logger.error("[runtime][rpc]init after filter err %s", err)
            return
        self._after.append(factory.create())

    def before_invoke(self, request: RPCRequest) -> RPCRequest:
        """Pass ``request`` through every before filter in order."""
        for func in self._before:
            request = func(request)
        return request

    def after_invoke(self, response: RPCResponse) -> RPCResponse:
        """Pass ``response`` through every after filter in order."""
        for func in self._after:
            response = func(response)
        return response


# Built-in filters register themselves on import.
from layotto.rpc import dubbo_json_rpc  # noqa: E402,F401