"""The transport interface, its type-erased wrapper and connection details."""

from __future__ import annotations

import copy
from abc import ABC, abstractmethod
from collections.abc import Awaitable
from typing import Any

__all__ = ["Transport", "BoxTransport", "TransportConnect"]


class Transport(ABC):
    """Manages the JSON-RPC request/response lifecycle.

    A transport takes a request packet (a JSON-serializable request or batch)
    and returns the response packet, raising TransportError on failure.
    Transports should be copyable so that they can be boxed and shared.
    """

    @abstractmethod
    async def call(self, request: Any) -> Any:
        """Send ``request`` and return the response packet."""

    def __call__(self, request: Any) -> Awaitable[Any]:
        return self.call(request)

    def boxed(self) -> BoxTransport:
        """Wrap this transport in a BoxTransport."""
        return BoxTransport(self)


class BoxTransport(Transport):
    """A type-erased transport that forwards every call to its inner transport."""

    __slots__ = ("_inner",)

    def __init__(self, inner: Transport) -> None:
        if not isinstance(inner, Transport):
            raise TypeError(f"expected a Transport, got {type(inner).__name__}")
        self._inner = inner

    async def call(self, request: Any) -> Any:
        return await self._inner.call(request)

    def clone(self) -> BoxTransport:
        """A new box around a copy of the inner transport."""
        return BoxTransport(copy.copy(self._inner))

    def __repr__(self) -> str:
        return "BoxTransport"


class TransportConnect(ABC):
    """Details needed to establish a transport."""

    @abstractmethod
    def is_local(self) -> bool:
        """Whether the transport connects to a local resource."""

    @abstractmethod
    async def get_transport(self) -> Transport:
        """Connect and return the transport."""

    async def get_boxed_transport(self) -> BoxTransport:
        """Connect and return the transport, boxed."""
        return (await self.get_transport()).boxed()