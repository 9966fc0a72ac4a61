import pytest

from layotto.rpc.callback import (
    AfterFactory,
    BeforeFactory,
    Callback,
    register_after_invoke,
    register_before_invoke,
)
from layotto.rpc.types import CallbackFunc, RPCRequest, RPCResponse


class BF(BeforeFactory):
    name = "before"

    def init(self, config):
        pass

    def create(self):
        def f(request):
            request.data = b"before"
            return request

        return f


class AF(AfterFactory):
    name = "after"

    def init(self, config):
        pass

    def create(self):
        def f(response):
            response.data = b"after"
            return response

        return f


class FailingInit(BeforeFactory):
    name = "failing_init"

    def init(self, config):
        raise ValueError("bad config")

    def create(self):
        def f(request):
            request.data = b"should not run"
            return request

        return f


class Raising(BeforeFactory):
    name = "raising"

    def init(self, config):
        pass

    def create(self):
        def f(request):
            raise RuntimeError("filter failed")

        return f


class Suffix(AfterFactory):
    name = "suffix"

    def init(self, config):
        self.suffix = config.encode()

    def create(self):
        suffix = self.suffix

        def f(response):
            response.data += suffix
            return response

        return f


register_before_invoke(BF())
register_after_invoke(AF())
register_before_invoke(FailingInit())
register_before_invoke(Raising())
register_after_invoke(Suffix())


def test_callback():
    cb = Callback()
    cb.add_before_invoke(CallbackFunc(name="before"))
    req = RPCRequest()
    cb.before_invoke(req)
    assert req.data == b"before"

    cb.add_after_invoke(CallbackFunc(name="after"))
    resp = RPCResponse()
    cb.after_invoke(resp)
    assert resp.data == b"after"


def test_unknown_filter_is_skipped():
    cb = Callback()
    cb.add_before_invoke(CallbackFunc(name="missing"))
    req = RPCRequest(data=b"orig")
    assert cb.before_invoke(req).data == b"orig"


def test_failing_init_is_skipped():
    cb = Callback()
    cb.add_before_invoke(CallbackFunc(name="failing_init"))
    req = RPCRequest(data=b"orig")
    assert cb.before_invoke(req).data == b"orig"


def test_filter_error_propagates():
    cb = Callback()
    cb.add_before_invoke(CallbackFunc(name="raising"))
    with pytest.raises(RuntimeError, match="filter failed"):
        cb.before_invoke(RPCRequest())


def test_after_filters_run_in_order():
    cb = Callback()
    cb.add_after_invoke(CallbackFunc(name="suffix", config="-a"))
    cb.add_after_invoke(CallbackFunc(name="suffix", config="-b"))
    resp = cb.after_invoke(RPCResponse(data=b"x"))
    assert resp.data == b"x-a-b"


def test_builtin_dubbo_filter_registered():
    cb = Callback()
    cb.add_before_invoke(CallbackFunc(name="dubbo_json_rpc"))
    req = cb.before_invoke(RPCRequest(id="svc", method="Call"))
    assert req.method == "svc"
    assert req.header.joined("x-method") == "Call"