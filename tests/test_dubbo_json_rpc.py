from layotto.rpc.dubbo_json_rpc import DubboJsonRpcBeforeFactory
from layotto.rpc.types import RPCRequest


def test_create():
    f = DubboJsonRpcBeforeFactory().create()
    req = RPCRequest(id="1", timeout=300, method="Hello", header={})
    new_req = f(req)
    assert new_req.method == "1"
    assert new_req.header.joined("x-services") == "1"
    assert new_req.header.joined("x-method") == "Hello"
    assert new_req.header.joined("content-type") == "application/json"
    assert new_req.header.joined("accept") == "application/json"


def test_init_accepts_none():
    factory = DubboJsonRpcBeforeFactory()
    factory.init(None)
    req = factory.create()(RPCRequest(id="svc", method="m"))
    assert req.method == "svc"


def test_name():
    assert DubboJsonRpcBeforeFactory().name == "dubbo_json_rpc"


def test_existing_headers_kept():
    f = DubboJsonRpcBeforeFactory().create()
    req = f(RPCRequest(id="svc", method="m", header={"env": ["test"]}))
    assert req.header.joined("env") == "test"
    assert req.header.joined("x-services") == "svc"