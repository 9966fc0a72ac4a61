"""Health endpoint: aggregates liveness and readiness indicators."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Union

from layotto.actuator.actuator import Endpoint, get_default

HEALTH_KEY = "health"
LIVENESS_KEY = "liveness"
READINESS_KEY = "readiness"
STATUS_KEY = "status"
COMPONENTS_KEY = "components"

_INVALID_TYPE = "health type invalid"
_SERVICE_DOWN = "service unavailable"
_SERVICE_INIT = "service is initializing"


class Status(str, Enum):
    """Health status of a component."""

    INIT = "INIT"
    UP = "UP"
    DOWN = "DOWN"

    def __str__(self) -> str:
        return self.value


@dataclass
class Health:
    """Health of one component, with optional details."""

    status: Status | str
    details: dict[str, Any] = field(default_factory=dict)

    def set_detail(self, key: str, value: Any) -> None:
        """Store ``value`` under ``key``, replacing any previous value."""
        self.details[key] = value

    def get_detail(self, key: str) -> Any:
        """Return the detail stored under ``key``, or None."""
        return self.details.get(key)


class Indicator(ABC):
    """Reports the health of one component."""

    @abstractmethod
    def report(self) -> tuple[Status | str, dict[str, Any] | None]:
        """Return ``(status, details)``."""


ReportFunc = Callable[[], "tuple[Status | str, dict[str, Any] | None]"]
IndicatorLike = Union[Indicator, ReportFunc]


class _FunctionIndicator(Indicator):
    def __init__(self, func: ReportFunc) -> None:
        self._func = func

    def report(self) -> tuple[Status | str, dict[str, Any] | None]:
        return self._func()


class HealthCheckError(Exception):
    """Raised when the requested health check fails; carries the full result."""

    def __init__(self, message: str, result: dict[str, Any]) -> None:
        super().__init__(message)
        self.result = result


_indicators: dict[str, dict[str, Indicator]] = {}


class HealthEndpoint(Endpoint):
    """Checks every indicator registered for the requested health type.

    The result looks like::

        {"status": Status.DOWN,
         "components": {"readinessProbe": Health(Status.DOWN, {})}}
    """

    def handle(self, params: Iterable[str] | None = None) -> dict[str, Any]:
        health_type = next(iter(params), None) if params is not None else None
        indicators = _indicators.get(health_type) if health_type is not None else None
        if not indicators:
            raise HealthCheckError(_INVALID_TYPE, {})

        status: Status = Status.UP
        message: str | None = None
        components: dict[str, Health] = {}
        for name, indicator in indicators.items():
            component_status, details = indicator.report()
            components[name] = Health(component_status, details if details is not None else {})
            if component_status == Status.DOWN:
                status = Status.DOWN
                message = _SERVICE_DOWN
            elif component_status == Status.INIT and status == Status.UP:
                status = Status.INIT
                message = _SERVICE_INIT

        result: dict[str, Any] = {STATUS_KEY: status, COMPONENTS_KEY: components}
        if message is not None:
            raise HealthCheckError(message, result)
        return result


def _add_indicator(kind: str, name: str, indicator: IndicatorLike | None) -> None:
    if indicator is None:
        return
    if not isinstance(indicator, Indicator):
        indicator = _FunctionIndicator(indicator)
    _indicators.setdefault(kind, {})[name] = indicator


def add_liveness_indicator(name: str, indicator: IndicatorLike | None) -> None:
    """Register an indicator (or a report function) for liveness checks."""
    _add_indicator(LIVENESS_KEY, name, indicator)


def add_readiness_indicator(name: str, indicator: IndicatorLike | None) -> None:
    """Register an indicator (or a report function) for readiness checks."""
    _add_indicator(READINESS_KEY, name, indicator)


get_default().add_endpoint(HEALTH_KEY, HealthEndpoint())