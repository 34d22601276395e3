"""JSON-RPC pubsub over websockets."""

from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass
from typing import Any

from websockets.asyncio.client import connect as _ws_connect
from websockets.exceptions import WebSocketException

from .auth import Authorization
from .errors import TransportError, backend_gone, custom, custom_str, deser_err
from .utils import guess_local_url, spawn_task

__all__ = ["ConnectionInterface", "WsConnect", "WsBackend", "KEEPALIVE"]

KEEPALIVE = 10.0

_log = logging.getLogger(__name__)


class ConnectionInterface:
    """The channel pair between a frontend and a running backend.

    The frontend calls ``dispatch`` to queue outgoing JSON text and
    ``shutdown`` to stop the backend; items from the server arrive on
    ``to_frontend``. When the backend fails, ``error`` holds BackendGone.
    """

    def __init__(self) -> None:
        self._outbound: asyncio.Queue[str | None] = asyncio.Queue()
        self.to_frontend: asyncio.Queue[Any] = asyncio.Queue()
        self.closed = False
        self.error: TransportError | None = None

    def send_to_frontend(self, item: Any) -> None:
        """Deliver a deserialized item to the frontend."""
        if self.closed:
            raise backend_gone()
        self.to_frontend.put_nowait(item)

    async def recv_from_frontend(self) -> str | None:
        """Wait for the next dispatched message; None once shut down."""
        return await self._outbound.get()

    def dispatch(self, message: str) -> None:
        """Queue JSON text to be sent to the server."""
        if self.closed:
            raise backend_gone()
        self._outbound.put_nowait(message)

    def shutdown(self) -> None:
        """Ask the backend to stop after sending what is already queued."""
        self.closed = True
        self._outbound.put_nowait(None)

    def close_with_error(self) -> None:
        """Mark the connection as failed."""
        self.closed = True
        self.error = backend_gone()


@dataclass
class WsConnect:
    """Connection details for a websocket transport."""

    url: str
    auth: Authorization | None = None

    def is_local(self) -> bool:
        """Best-effort guess whether the URL points to the local machine."""
        return guess_local_url(self.url)

    def request_headers(self) -> dict[str, str]:
        """Extra headers sent with the opening handshake."""
        if self.auth is None:
            return {}
        return {"Authorization": f"{self.auth.scheme} {self.auth.credentials}"}

    async def connect(self) -> ConnectionInterface:
        """Open the websocket, start its backend and return the interface."""
        try:
            socket = await _ws_connect(
                self.url,
                additional_headers=self.request_headers(),
                ping_interval=None,
            )
        except (OSError, WebSocketException, TimeoutError, ValueError) as exc:
            raise custom(exc) from exc
        interface = ConnectionInterface()
        WsBackend(socket, interface).spawn()
        return interface


class WsBackend:
    """Drives one websocket: sends dispatches, keeps alive, forwards replies."""

    def __init__(
        self, socket: Any, interface: ConnectionInterface, keepalive: float = KEEPALIVE
    ) -> None:
        self.socket = socket
        self.interface = interface
        self.keepalive = keepalive

    async def handle_text(self, text: str) -> None:
        """Deserialize inbound text and pass it to the frontend."""
        _log.debug("Received message from websocket: %s", text)
        try:
            item = json.loads(text)
        except json.JSONDecodeError as exc:
            _log.error("Failed to deserialize message: %s", exc)
            raise deser_err(exc, text) from exc
        try:
            self.interface.send_to_frontend(item)
        except TransportError:
            _log.error("Failed to send message to handler")
            raise

    async def handle(self, message: str | bytes) -> None:
        """Handle one message from the server; only text is accepted."""
        if isinstance(message, str):
            await self.handle_text(message)
            return
        _log.error("Received binary message, expected text")
        raise custom_str("Received binary message, expected text")

    async def send(self, message: str) -> None:
        """Send JSON text to the server."""
        await self.socket.send(message)

    async def run(self) -> None:
        """Loop until shutdown or failure, preferring dispatches over replies."""
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self.keepalive
        outbound: asyncio.Future[Any] | None = None
        inbound: asyncio.Future[Any] | None = None
        failed = False
        try:
            while True:
                if outbound is None:
                    outbound = asyncio.ensure_future(self.interface.recv_from_frontend())
                if inbound is None:
                    inbound = asyncio.ensure_future(self.socket.recv())
                timeout = max(0.0, deadline - loop.time())
                done, _ = await asyncio.wait(
                    {outbound, inbound}, timeout=timeout, return_when=asyncio.FIRST_COMPLETED
                )
                if outbound in done:
                    message = outbound.result()
                    outbound = None
                    if message is None:
                        break
                    deadline = loop.time() + self.keepalive
                    try:
                        await self.send(message)
                    except Exception as exc:
                        _log.error("WS connection error: %s", exc)
                        failed = True
                        break
                    continue
                if loop.time() >= deadline:
                    deadline = loop.time() + self.keepalive
                    try:
                        await self.socket.ping()
                    except Exception as exc:
                        _log.error("WS connection error: %s", exc)
                        failed = True
                        break
                    continue
                if inbound in done:
                    task, inbound = inbound, None
                    try:
                        message = task.result()
                    except Exception as exc:
                        _log.error("WS server has gone away: %s", exc)
                        failed = True
                        break
                    try:
                        await self.handle(message)
                    except TransportError:
                        failed = True
                        break
        finally:
            pending = [task for task in (outbound, inbound) if task is not None]
            for task in pending:
                task.cancel()
            await asyncio.gather(*pending, return_exceptions=True)
            try:
                await self.socket.close()
            except Exception as exc:
                _log.debug("Error while closing websocket: %s", exc)
        if failed:
            self.interface.close_with_error()

    def spawn(self) -> asyncio.Task[None]:
        """Run the backend loop as a background task."""
        return spawn_task(self.run())