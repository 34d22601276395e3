# rpctransport

Asynchronous transports for JSON-RPC clients. A transport takes a request
packet (any JSON-serialisable request or batch), delivers it to a server and
returns the parsed response packet. Transports can be used directly or
hidden behind a uniform, type-erased `BoxTransport`.

## Installation

```
pip install rpctransport
```

To run the test suite, install the `test` extra and run pytest:

```
pip install "rpctransport[test]"
pytest
```

## HTTP

`rpctransport.http.HttpTransport(url, client=None)` sends each request as a
JSON `POST` body (with `content-type: application/json`) using an
`httpx.AsyncClient`. If no client is given, a new one is created; closing it
is up to the caller. Copies of a transport share the same client.

```python
import asyncio
import httpx
from rpctransport.http import HttpTransport

async def main():
    async with httpx.AsyncClient() as client:
        transport = HttpTransport("http://localhost:8545", client)
        print(transport.guess_local())  # True
        response = await transport.call(
            {"jsonrpc": "2.0", "id": 1, "method": "eth_blockNumber", "params": []}
        )
        print(response)

asyncio.run(main())
```

A transport can also be awaited by calling it: `await transport(request)`.

- A request that cannot be encoded raises `SerializationError`.
- A network failure from httpx raises `CustomError`, wrapping it.
- A reply body that is not JSON raises `DeserializationError`; its `text`
  attribute holds the body that could not be parsed.

The HTTP status code is not checked: any body that parses as JSON is
returned.

## WebSocket

`rpctransport.ws.WsConnect(url, auth=None)` holds the URL and an optional
`Authorization`, which is sent in the opening handshake:

```python
from rpctransport.auth import Authorization
from rpctransport.ws import WsConnect

connect = WsConnect("ws://localhost:8546", auth=Authorization.bearer("token"))
print(connect.request_headers())  # {'Authorization': 'Bearer token'}
print(connect.is_local())         # True
```

`await connect.connect()` opens the socket, starts a `WsBackend` as a
background task and returns its `ConnectionInterface`:

- `interface.dispatch(text)` queues JSON text to be sent to the server.
- Messages from the server are parsed as JSON and put on
  `interface.to_frontend`, an `asyncio.Queue`.
- `interface.shutdown()` stops the backend once the messages already queued
  have been sent; the socket is then closed.
- If the connection fails (a send or ping fails, the server closes the
  socket, or it sends a binary message or text that is not JSON), the
  backend stops, `interface.closed` becomes true and `interface.error`
  holds a `BackendGone` error. Dispatching to a closed interface raises
  `BackendGone`.

The backend sends queued dispatches before it reads replies from the server,
and pings the server when nothing has been sent for `KEEPALIVE` (ten)
seconds. `WsBackend(socket, interface, keepalive)` can also be driven
directly over any object with async `send`, `recv`, `ping` and `close`
methods, via `await backend.run()` or `backend.spawn()`.

## Authorization

`rpctransport.auth.Authorization` is a frozen dataclass with `scheme` and
`credentials`:

```python
from rpctransport.auth import Authorization

password = "password"
auth = Authorization.basic("user", password)
print(auth.credentials)  # base64 of "user:password"
print(str(auth))         # "Basic"
```

`str()` of an authorization gives only its scheme, never the credentials.

## Type erasure and connectors

`rpctransport.transport` defines the abstract `Transport` (implement
`async call(request)`), `BoxTransport`, which forwards to the transport it
wraps, and the abstract `TransportConnect` (implement `is_local()` and
`async get_transport()`). `transport.boxed()` wraps any transport;
`BoxTransport.clone()` boxes a shallow copy of the inner transport; and
`TransportConnect.get_boxed_transport()` connects and boxes in one step.

## Errors

Every failure is a subclass of `rpctransport.errors.TransportError`:

- `MissingBatchResponse`: a batch reply had no entry for `request_id`
- `BackendGone`: the pub-sub backend task has stopped
- `CustomError`: wraps an underlying error or a message (`source`)
- `SerializationError`: the request could not be encoded
- `DeserializationError`: the response could not be decoded (`text`)

The functions `custom`, `custom_str`, `missing_batch_response`,
`backend_gone`, `ser_err` and `deser_err` build these errors.

## Utilities

`rpctransport.utils` provides:

- `guess_local_url(url)`: a best guess at whether a URL is local. True when
  the host is `localhost` or `127.0.0.1`, or when the URL has no host and
  its scheme is not one of `http`, `https`, `ws`, `wss` or `ftp`. False when
  the URL cannot be parsed or has no scheme.
- `to_json_raw_value(value)`: compact JSON text, raising
  `SerializationError` on failure.
- `spawn_task(coro)`: runs a coroutine as a background task on the running
  event loop and keeps a reference to it until it finishes.

## What this package does not do

It moves JSON text to and from a server and nothing more. It does not build
JSON-RPC requests, match responses to request ids, manage subscriptions, or
reconnect a websocket after a failure; those belong to the client that uses
the transport.