"""Authorization credentials for HTTP and websocket transports."""

from __future__ import annotations

import base64
from dataclasses import dataclass

__all__ = ["Authorization"]


@dataclass(frozen=True)
class Authorization:
    """Basic or bearer authorization, carrying the scheme and its credentials."""

    scheme: str
    credentials: str

    @classmethod
    def basic(cls, username: str, password: str) -> Authorization:
        """Basic auth from a username and password."""
        encoded = base64.b64encode(f"{username}:{password}".encode()).decode("ascii")
        return cls("Basic", encoded)

    @classmethod
    def bearer(cls, token: str) -> Authorization:
        """Bearer auth from a token."""
        return cls("Bearer", str(token))

    def __str__(self) -> str:
        return self.scheme