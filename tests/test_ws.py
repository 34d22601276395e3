import asyncio
import json

import pytest
from websockets.asyncio.server import serve

from rpctransport.auth import Authorization
from rpctransport.errors import BackendGone, CustomError, DeserializationError
from rpctransport.ws import ConnectionInterface, WsBackend, WsConnect


class FakeSocket:
    def __init__(self, fail_send=False):
        self.incoming = asyncio.Queue()
        self.sent = []
        self.pings = 0
        self.closed = False
        self.fail_send = fail_send

    async def recv(self):
        item = await self.incoming.get()
        if isinstance(item, Exception):
            raise item
        return item

    async def send(self, message):
        if self.fail_send:
            raise ConnectionError("broken pipe")
        self.sent.append(message)

    async def ping(self):
        self.pings += 1

    async def close(self):
        self.closed = True


def test_is_local():
    assert WsConnect("ws://localhost:8546").is_local() is True
    assert WsConnect("wss://example.com/ws").is_local() is False


def test_request_headers_without_auth():
    assert WsConnect("ws://localhost:8546").request_headers() == {}


def test_request_headers_with_bearer():
    connect = WsConnect("ws://localhost:8546", Authorization.bearer("token"))
    assert connect.request_headers() == {"Authorization": "Bearer token"}


def test_request_headers_with_basic():
    auth = Authorization.basic("user", "password")
    headers = WsConnect("ws://localhost:8546", auth).request_headers()
    assert headers["Authorization"] == f"Basic {auth.credentials}"


@pytest.mark.asyncio
async def test_interface_dispatch_and_shutdown_order():
    interface = ConnectionInterface()
    interface.dispatch('{"id":1}')
    interface.shutdown()
    assert await interface.recv_from_frontend() == '{"id":1}'
    assert await interface.recv_from_frontend() is None
    with pytest.raises(BackendGone):
        interface.dispatch('{"id":2}')


def test_close_with_error_marks_backend_gone():
    interface = ConnectionInterface()
    interface.close_with_error()
    assert isinstance(interface.error, BackendGone)
    with pytest.raises(BackendGone):
        interface.send_to_frontend({"id": 1})


@pytest.mark.asyncio
async def test_handle_text_forwards_item():
    interface = ConnectionInterface()
    backend = WsBackend(FakeSocket(), interface)
    await backend.handle_text('{"id":1,"result":"0x1"}')
    assert interface.to_frontend.get_nowait() == {"id": 1, "result": "0x1"}


@pytest.mark.asyncio
async def test_handle_text_invalid_json():
    backend = WsBackend(FakeSocket(), ConnectionInterface())
    with pytest.raises(DeserializationError) as info:
        await backend.handle_text("not json")
    assert info.value.text == "not json"


@pytest.mark.asyncio
async def test_handle_text_when_frontend_gone():
    interface = ConnectionInterface()
    interface.shutdown()
    with pytest.raises(BackendGone):
        await WsBackend(FakeSocket(), interface).handle_text('{"id":1}')


@pytest.mark.asyncio
async def test_handle_rejects_binary():
    with pytest.raises(CustomError):
        await WsBackend(FakeSocket(), ConnectionInterface()).handle(b"\x00\x01")


@pytest.mark.asyncio
async def test_send_writes_text_to_socket():
    socket = FakeSocket()
    await WsBackend(socket, ConnectionInterface()).send('{"id":7}')
    assert socket.sent == ['{"id":7}']


@pytest.mark.asyncio
async def test_run_sends_dispatches_then_stops_cleanly():
    socket = FakeSocket()
    interface = ConnectionInterface()
    interface.dispatch('{"id":1}')
    interface.dispatch('{"id":2}')
    interface.shutdown()
    await asyncio.wait_for(WsBackend(socket, interface).run(), 1)
    assert socket.sent == ['{"id":1}', '{"id":2}']
    assert interface.error is None
    assert socket.closed is True


@pytest.mark.asyncio
async def test_run_forwards_inbound_messages():
    socket = FakeSocket()
    interface = ConnectionInterface()
    task = WsBackend(socket, interface).spawn()
    socket.incoming.put_nowait('{"id":3,"result":true}')
    item = await asyncio.wait_for(interface.to_frontend.get(), 1)
    interface.shutdown()
    await asyncio.wait_for(task, 1)
    assert item == {"id": 3, "result": True}
    assert interface.error is None


@pytest.mark.asyncio
async def test_run_sends_keepalive_pings():
    socket = FakeSocket()
    interface = ConnectionInterface()
    task = WsBackend(socket, interface, keepalive=0.01).spawn()
    await asyncio.sleep(0.1)
    interface.shutdown()
    await asyncio.wait_for(task, 1)
    assert socket.pings >= 1


@pytest.mark.asyncio
async def test_run_server_gone_closes_with_error():
    socket = FakeSocket()
    interface = ConnectionInterface()
    socket.incoming.put_nowait(ConnectionError("gone"))
    await asyncio.wait_for(WsBackend(socket, interface).run(), 1)
    assert isinstance(interface.error, BackendGone)
    assert interface.closed is True


@pytest.mark.asyncio
async def test_run_binary_message_closes_with_error():
    socket = FakeSocket()
    interface = ConnectionInterface()
    socket.incoming.put_nowait(b"binary")
    await asyncio.wait_for(WsBackend(socket, interface).run(), 1)
    assert isinstance(interface.error, BackendGone)
    assert interface.closed is True
    assert str(interface.error) == "PubSub backend connection task has stopped."


@pytest.mark.asyncio
async def test_run_send_failure_closes_with_error():
    socket = FakeSocket(fail_send=True)
    interface = ConnectionInterface()
    interface.dispatch('{"id":1}')
    await asyncio.wait_for(WsBackend(socket, interface).run(), 1)
    assert isinstance(interface.error, BackendGone)
    assert interface.closed is True
    assert socket.sent == []


@pytest.mark.asyncio
async def test_connect_round_trip_with_echo_server():
    async def echo(connection):
        async for message in connection:
            await connection.send(message)

    async with serve(echo, "127.0.0.1", 0) as server:
        port = server.sockets[0].getsockname()[1]
        interface = await WsConnect(f"ws://127.0.0.1:{port}").connect()
        request = {"jsonrpc": "2.0", "id": 1, "method": "eth_subscribe"}
        interface.dispatch(json.dumps(request))
        item = await asyncio.wait_for(interface.to_frontend.get(), 2)
        interface.shutdown()
    assert item == request


@pytest.mark.asyncio
async def test_connect_failure_raises_custom_error():
    with pytest.raises(CustomError):
        await WsConnect("ws://127.0.0.1:1").connect()