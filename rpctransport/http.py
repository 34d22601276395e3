"""JSON-RPC over HTTP POST."""

from __future__ import annotations

import json
from typing import Any

import httpx

from .errors import custom, deser_err
from .transport import Transport
from .utils import guess_local_url, to_json_raw_value

__all__ = ["HttpTransport"]

_JSON_HEADERS = {"content-type": "application/json"}


class HttpTransport(Transport):
    """Sends each request packet as a JSON POST body to ``url``.

    Copies share the underlying client, so a boxed or copied transport
    reuses the same connection pool.
    """

    def __init__(self, url: str, client: httpx.AsyncClient | None = None) -> None:
        self.url = url
        self.client = client if client is not None else httpx.AsyncClient()

    def guess_local(self) -> bool:
        """Best-effort guess whether the URL points to the local machine."""
        return guess_local_url(self.url)

    async def call(self, request: Any) -> Any:
        """POST ``request`` and return the parsed JSON response packet."""
        body = to_json_raw_value(request)
        try:
            response = await self.client.post(self.url, content=body, headers=_JSON_HEADERS)
            text = response.text
        except httpx.HTTPError as exc:
            raise custom(exc) from exc
        try:
            return json.loads(text)
        except json.JSONDecodeError as exc:
            raise deser_err(exc, text) from exc

    def __repr__(self) -> str:
        return f"HttpTransport(url={self.url!r})"