import pytest

from layotto.actuator import info
from layotto.actuator.actuator import get_default
from layotto.actuator.info import (
    Contributor,
    InfoEndpoint,
    InfoError,
    add_info_contributor,
)


class MockContributor(Contributor):
    def get_info(self):
        return {"k": "v", "k1": "v1"}


@pytest.fixture(autouse=True)
def clean_registry(monkeypatch):
    monkeypatch.setattr(info, "_contributors", {})


def test_endpoint_handle():
    ep = InfoEndpoint()
    assert ep.handle(None) == {}

    add_info_contributor("test", None)
    assert ep.handle(None) == {}

    add_info_contributor("test", MockContributor())
    handle = ep.handle(None)
    assert len(handle) == 1
    assert handle["test"]["k"] == "v"
    assert handle["test"]["k1"] == "v1"


def test_function_contributor():
    add_info_contributor("version", lambda: "1.0")
    assert InfoEndpoint().handle() == {"version": "1.0"}


def test_failing_contributor():
    def broken():
        raise ValueError("boom")

    add_info_contributor("ok", MockContributor())
    add_info_contributor("bad", broken)
    with pytest.raises(InfoError) as exc:
        InfoEndpoint().handle()
    assert str(exc.value) == "boom"
    assert exc.value.result["bad"] == "boom"
    assert exc.value.result["ok"] == {"k": "v", "k1": "v1"}


def test_registered_in_default_actuator():
    add_info_contributor("app", lambda: {"name": "demo"})
    endpoint = get_default().get_endpoint("info")
    assert endpoint.handle() == {"app": {"name": "demo"}}