"""Errors raised by transports."""

from __future__ import annotations

from typing import Any

__all__ = [
    "TransportError",
    "MissingBatchResponse",
    "BackendGone",
    "CustomError",
    "SerializationError",
    "DeserializationError",
    "custom",
    "custom_str",
    "missing_batch_response",
    "backend_gone",
    "ser_err",
    "deser_err",
]


class TransportError(Exception):
    """Base class of every error a transport reports."""


class MissingBatchResponse(TransportError):
    """A batch response lacked the response to one of its requests."""

    def __init__(self, request_id: Any) -> None:
        super().__init__(f"Missing response for request with ID {request_id}.")
        self.request_id = request_id


class BackendGone(TransportError):
    """The pubsub backend connection task has stopped."""

    def __init__(self) -> None:
        super().__init__("PubSub backend connection task has stopped.")


class CustomError(TransportError):
    """A transport-specific failure, such as a network error."""

    def __init__(self, source: BaseException | str) -> None:
        super().__init__(str(source))
        self.source = source


class SerializationError(TransportError):
    """A request could not be serialized to JSON."""

    def __init__(self, source: BaseException) -> None:
        super().__init__(f"serialization error: {source}")
        self.source = source


class DeserializationError(TransportError):
    """A response could not be deserialized; ``text`` holds what was received."""

    def __init__(self, source: BaseException, text: str) -> None:
        super().__init__(f"deserialization error: {source}")
        self.source = source
        self.text = text


def custom(err: BaseException) -> CustomError:
    """Wrap an arbitrary exception as a transport error."""
    error = CustomError(err)
    error.__cause__ = err
    return error


def custom_str(message: str) -> CustomError:
    """Build a transport error from a plain message."""
    return CustomError(message)


def missing_batch_response(request_id: Any) -> MissingBatchResponse:
    """Build the error for a batch response missing ``request_id``."""
    return MissingBatchResponse(request_id)


def backend_gone() -> BackendGone:
    """Build the error for a stopped pubsub backend."""
    return BackendGone()


def ser_err(err: BaseException) -> SerializationError:
    """Wrap a serialization failure."""
    error = SerializationError(err)
    error.__cause__ = err
    return error


def deser_err(err: BaseException, text: str) -> DeserializationError:
    """Wrap a deserialization failure together with the offending text."""
    error = DeserializationError(err, text)
    error.__cause__ = err
    return error