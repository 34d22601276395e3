"""Asynchronous HTTP and WebSocket transports for JSON-RPC clients."""

__version__ = "0.1.0"

__all__ = ["auth", "errors", "http", "transport", "utils", "ws"]