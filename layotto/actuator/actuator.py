"""Registry of management endpoints."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Iterator
from typing import Any

logger = logging.getLogger(__name__)


class Endpoint(ABC):
    """A management endpoint answering with a JSON-like mapping."""

    @abstractmethod
    def handle(self, params: Iterator[str] | None) -> dict[str, Any]:
        """Handle a request; ``params`` yields the remaining path parameters."""


class Actuator:
    """Maps endpoint names to endpoints."""

    def __init__(self) -> None:
        self._endpoints: dict[str, Endpoint | None] = {}

    def get_endpoint(self, name: str) -> Endpoint | None:
        """Return the endpoint registered as ``name``; raise KeyError if none."""
        return self._endpoints[name]

    def add_endpoint(self, name: str, endpoint: Endpoint | None) -> None:
        """Register ``endpoint`` under ``name``, replacing any previous one."""
        if name in self._endpoints:
            logger.warning("Duplicate Endpoint name:  %s !", name)
        self._endpoints[name] = endpoint

    def __contains__(self, name: object) -> bool:
        return name in self._endpoints


_default = Actuator()


def get_default() -> Actuator:
    """Return the process-wide actuator."""
    return _default