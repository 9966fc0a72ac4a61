"""Before-invoke filter that shapes requests for Dubbo JSON-RPC over HTTP."""

from __future__ import annotations

from typing import Any

from layotto.rpc.callback import BeforeFactory, BeforeFunc, register_before_invoke
from layotto.rpc.types import RPCRequest


class DubboJsonRpcBeforeFactory(BeforeFactory):
    """Moves the service id into the method and adds JSON-RPC headers."""

    name = "dubbo_json_rpc"

    def __init__(self) -> None:
        self.config: Any = None

    def init(self, config: Any) -> None:
        """Keep the configuration; the filter itself takes no options."""
        self.config = config

    def create(self) -> BeforeFunc:
        def before(request: RPCRequest) -> RPCRequest:
            request.header["x-services"] = [request.id]
            request.header["x-method"] = [request.method]
            request.header["content-type"] = ["application/json"]
            request.header["accept"] = ["application/json"]
            request.method = request.id
            return request

        return before


register_before_invoke(DubboJsonRpcBeforeFactory())