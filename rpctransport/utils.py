"""Helpers for building transports."""

from __future__ import annotations

import asyncio
import json
from collections.abc import Coroutine
from typing import Any
from urllib.parse import urlsplit

from .errors import ser_err

__all__ = ["to_json_raw_value", "guess_local_url", "spawn_task"]

_SPECIAL_SCHEMES = frozenset({"http", "https", "ws", "wss", "ftp"})
_LOCAL_HOSTS = frozenset({"localhost", "127.0.0.1"})

_background_tasks: set[asyncio.Task[Any]] = set()


def to_json_raw_value(value: Any) -> str:
    """Serialize ``value`` to compact JSON text, raising SerializationError on failure."""
    try:
        return json.dumps(value, separators=(",", ":"))
    except (TypeError, ValueError) as exc:
        raise ser_err(exc) from exc


def guess_local_url(url: str) -> bool:
    """Best-effort guess whether ``url`` points to the local machine.

    True when the URL has no host, or the host is ``localhost`` or
    ``127.0.0.1``. False when the URL cannot be parsed.
    """
    try:
        parts = urlsplit(url)
        host = parts.hostname
    except ValueError:
        return False
    if not parts.scheme:
        return False
    if not host:
        return parts.scheme.lower() not in _SPECIAL_SCHEMES
    return host in _LOCAL_HOSTS


def spawn_task(coro: Coroutine[Any, Any, Any]) -> asyncio.Task[Any]:
    """Run ``coro`` as a background task on the running event loop."""
    task = asyncio.get_running_loop().create_task(coro)
    _background_tasks.add(task)
    task.add_done_callback(_background_tasks.discard)
    return task