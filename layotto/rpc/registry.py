"""Registry of RPC invoker factories."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

from layotto.rpc.types import Invoker

SERVICE_NAME = "rpc"


class ComponentNotRegisteredError(LookupError):
    """Raised when creating an invoker whose name was never registered."""

    def __init__(self, name: str) -> None:
        super().__init__(f"service component {name} is not registered")
        self.name = name


@dataclass(frozen=True)
class Factory:
    """Associates a component name with a function that builds an invoker."""

    name: str
    factory_method: Callable[[], Invoker]


class Registry:
    """Holds invoker factories by name and builds invokers on demand."""

    service_name = SERVICE_NAME

    def __init__(self) -> None:
        self._factories: dict[str, Callable[[], Invoker]] = {}
        self._registered: list[str] = []
        self._loaded: list[str] = []

    def register(self, *args: Factory) -> None:
        """Register one or more factories; a later name replaces an earlier one."""
        for factory in args:
            self._factories[factory.name] = factory.factory_method
            self._registered.append(factory.name)

    def create(self, name: str) -> Invoker:
        """Build a new invoker from the factory registered under ``name``."""
        try:
            factory_method = self._factories[name]
        except KeyError:
            raise ComponentNotRegisteredError(name) from None
        self._loaded.append(name)
        return factory_method()

    def registered(self) -> list[str]:
        """Names registered so far, in registration order."""
        return list(self._registered)

    def loaded(self) -> list[str]:
        """Names of components created so far, in creation order."""
        return list(self._loaded)