"""Info endpoint: collects information from registered contributors."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Callable, Iterable
from typing import Any, Union

from layotto.actuator.actuator import Endpoint, get_default

logger = logging.getLogger(__name__)

INFO_KEY = "info"


class Contributor(ABC):
    """Contributes one entry to the info endpoint."""

    @abstractmethod
    def get_info(self) -> Any:
        """Return the information; raise on failure."""


ContributorLike = Union[Contributor, Callable[[], Any]]


class _FunctionContributor(Contributor):
    def __init__(self, func: Callable[[], Any]) -> None:
        self._func = func

    def get_info(self) -> Any:
        return self._func()


class InfoError(Exception):
    """Raised when a contributor fails; carries the full result."""

    def __init__(self, message: str, result: dict[str, Any]) -> None:
        super().__init__(message)
        self.result = result


_contributors: dict[str, Contributor] = {}


class InfoEndpoint(Endpoint):
    """Asks every contributor for its information."""

    def handle(self, params: Iterable[str] | None = None) -> dict[str, Any]:
        result: dict[str, Any] = {}
        failure: Exception | None = None
        for name, contributor in _contributors.items():
            try:
                result[name] = contributor.get_info()
            except Exception as err:  # a failing contributor must not hide the others
                logger.error(
                    "[actuator][info] Error when GetInfo.Contributor:%s,error:%s", name, err
                )
                result[name] = str(err)
                failure = err
        if failure is not None:
            raise InfoError(str(failure), result) from failure
        return result


def add_info_contributor(name: str, contributor: ContributorLike | None) -> None:
    """Register a contributor (or a plain function) under ``name``."""
    if contributor is None:
        return
    if not isinstance(contributor, Contributor):
        contributor = _FunctionContributor(contributor)
    _contributors[name] = contributor


get_default().add_endpoint(INFO_KEY, InfoEndpoint())