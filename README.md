# layotto

Building blocks for an application runtime:

- `layotto.rpc.types` — `RPCRequest`, `RPCResponse`, the multi-valued
  `RPCHeader`, `RpcConfig`, `CallbackFunc`, and the `Invoker` and `Channel`
  interfaces.
- `layotto.rpc.registry` — a `Registry` of invoker factories (`Factory`).
- `layotto.rpc.callback` — `Callback`, an ordered chain of before/after invoke
  filters built from registered `BeforeFactory` / `AfterFactory` objects.
  `layotto.rpc.dubbo_json_rpc` registers the `dubbo_json_rpc` before filter,
  which moves the request id into the method and adds JSON headers.
- `layotto.rpc.mosn` — `MosnInvoker`, which runs the filters around a channel;
  a bounded `ConnPool`; `HttpChannel` (HTTP/1.1) and `XChannel` for framed
  protocols; and the `bolt`, `boltv2` and `dubbo` transport protocols.
- `layotto.actuator` — an `Actuator` registry of endpoints, a health endpoint
  with liveness and readiness indicators, and an info endpoint with
  contributors.
- `layotto.common` — helpers for file size, log path, MD5 digests and system
  CPU and memory usage (via `psutil`).

## Installation

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## Registering and creating an invoker

```python
from layotto.rpc.registry import Factory, Registry
from layotto.rpc.mosn.mosninvoker import MosnInvoker

registry = Registry()
registry.register(Factory("mosn", MosnInvoker))
invoker = registry.create("mosn")
```

`Registry.create` raises `ComponentNotRegisteredError` for an unknown name.
`Registry.registered()` and `Registry.loaded()` list the names registered and
created so far.

## Configuring the invoker

`MosnInvoker.init` takes an `RpcConfig` whose `config` is JSON with the keys
`before_invoke`, `after_invoke` (lists of `{"name": ..., "config": ...}`) and
`channel` (a list of `{"protocol", "listener", "size", "ext"}`; only the first
entry is used). Invalid JSON, an empty channel list or an unknown protocol
raise an error. `invoke` uses a timeout of 3000 ms when the request's timeout
is 0, and raises `InvokerError` if `init` was never called.

Channels hand the server end of an in-memory socket pair to a listener.
Register one with `layotto.rpc.mosn.channel.register_listener(name, handler)`,
where `handler` receives the socket, or replace the whole hand-off with
`set_accept_func`. The `bolt` and `boltv2` protocols need `{"class": ...}` in
`ext`.

## Health checks

```python
from layotto.actuator.health import HealthEndpoint, Status, add_readiness_indicator

def database():
    return Status.UP, {"connections": 3}

add_readiness_indicator("database", database)
result = HealthEndpoint().handle(iter(["readiness"]))
```

Indicators may be `Indicator` subclasses or plain functions returning
`(status, details)`. When any indicator reports `DOWN` or `INIT`, or the
health type is unknown, `handle` raises `HealthCheckError`, whose `result`
holds the collected statuses. Importing `layotto.actuator.health` or
`layotto.actuator.info` adds the `health` or `info` endpoint to the actuator
returned by `get_default()`.

## What this package does not do

It serves nothing over the network: there is no runtime server, no HTTP or
gRPC API, and no listener implementation. Requests only reach handlers that
the application registers with `register_listener`. There are no state,
lock, pub/sub or configuration building blocks.