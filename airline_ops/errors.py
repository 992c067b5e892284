"""Typed failures surfaced by the airline operations core."""
from __future__ import annotations

import logging
import time
from typing import Callable, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class AirlineOpsError(RuntimeError):
    """Base class for every failure the core reports to its callers."""


class NotFound(AirlineOpsError):
    """Raised when a referenced flight instance, plane or user does not exist."""


class ValidationFailed(AirlineOpsError):
    """Raised for malformed dates, empty identifiers or out-of-range numbers."""


class WriteFailed(AirlineOpsError):
    """Raised when the store rejects a statement."""


class TransientUnavailable(AirlineOpsError):
    """Raised when the store times out or the connection is lost."""


class PermissionDenied(AirlineOpsError):
    """Raised when a role asks for an operation outside its command set."""


class AuthenticationFailed(AirlineOpsError):
    """Raised when a username/password pair does not match a stored user."""


def retry_transient(
    fn: Callable[[], T],
    *,
    attempts: int = 3,
    backoff: float = 0.1,
    sleep: Callable[[float], None] = time.sleep,
) -> T:
    """Call ``fn`` retrying only :class:`TransientUnavailable` with exponential backoff."""

    if attempts < 1:
        raise ValueError("attempts must be at least 1")
    for attempt in range(1, attempts + 1):
        try:
            return fn()
        except TransientUnavailable as exc:
            if attempt == attempts:
                raise
            delay = backoff * (2 ** (attempt - 1))
            logger.warning("Transient failure (%s), retrying in %.2fs", exc, delay)
            sleep(delay)
    raise AssertionError("unreachable")  # pragma: no cover


__all__ = [
    "AirlineOpsError",
    "NotFound",
    "ValidationFailed",
    "WriteFailed",
    "TransientUnavailable",
    "PermissionDenied",
    "AuthenticationFailed",
    "retry_transient",
]
