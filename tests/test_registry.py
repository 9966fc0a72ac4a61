import pytest

from layotto.rpc.registry import ComponentNotRegisteredError, Factory, Registry
from layotto.rpc.types import Invoker, RPCResponse


class FakeInvoker(Invoker):
    def init(self, config):
        return None

    def invoke(self, request):
        return RPCResponse()


def test_new_registry_is_empty():
    registry = Registry()
    assert registry.registered() == []
    assert registry.loaded() == []


def test_new_factory():
    factory = Factory("fake", lambda: None)
    assert factory.name == "fake"


def test_create_existing():
    registry = Registry()
    registry.register(Factory("fake", FakeInvoker))
    invoker = registry.create("fake")
    assert isinstance(invoker, FakeInvoker)
    assert registry.registered() == ["fake"]
    assert registry.loaded() == ["fake"]


def test_create_missing():
    registry = Registry()
    with pytest.raises(ComponentNotRegisteredError) as excinfo:
        registry.create("fake")
    assert str(excinfo.value) == "service component fake is not registered"
    assert excinfo.value.name == "fake"


def test_register_records_and_create_loads():
    registry = Registry()
    registry.register(Factory("fake", FakeInvoker), Factory("other", FakeInvoker))
    assert registry.registered() == ["fake", "other"]
    registry.create("other")
    assert registry.loaded() == ["other"]


def test_create_returns_fresh_instances():
    registry = Registry()
    registry.register(Factory("fake", FakeInvoker))
    assert registry.create("fake") is not registry.create("fake")
    assert registry.loaded() == ["fake", "fake"]


def test_later_registration_replaces_factory():
    class Other(FakeInvoker):
        pass

    registry = Registry()
    registry.register(Factory("fake", FakeInvoker))
    registry.register(Factory("fake", Other))
    assert type(registry.create("fake")) is Other