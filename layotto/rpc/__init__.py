"""RPC types, invoker registry and invoke callbacks."""