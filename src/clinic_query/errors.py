"""Exception hierarchy."""

from __future__ import annotations

from collections.abc import Callable


class ClinicQueryError(Exception):
    """Base exception for all library errors."""

    pass


class CancellationError(ClinicQueryError):
    """Request was superseded or its owner was torn down.

    Never surfaced to callers and never cached.
    """

    pass


class TransportError(ClinicQueryError):
    """Network failure or non-2xx response from the remote API."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class ProducerError(TransportError):
    """Producer returned data of an unexpected shape."""

    pass


# Decides whether a producer failure is a cancellation (discard) or a
# genuine failure (surface).
ErrorClassifier = Callable[[BaseException], bool]


def is_cancellation(exc: BaseException) -> bool:
    """Default classifier: only CancellationError counts as a cancellation."""
    return isinstance(exc, CancellationError)


__all__ = [
    "CancellationError",
    "ClinicQueryError",
    "ErrorClassifier",
    "ProducerError",
    "TransportError",
    "is_cancellation",
]
