"""
Error taxonomy for calls to external services.

Providers raise these internally; each component converts them into a
degraded Outcome at its boundary, so callers of the embedding client,
discovery aggregator and assistant never see them.
"""

import httpx

from .types import FailureKind, Outcome, T


class BookvecError(Exception):
    """Base class for contained service failures."""

    kind: FailureKind

    def to_outcome(self, value: T) -> Outcome[T]:
        """Degrade to ``value``, recording this failure."""
        return Outcome.degraded(value, self.kind, str(self))


class TransportFailure(BookvecError):
    """Network error, timeout, missing credentials or non-success status."""
    kind = FailureKind.TRANSPORT


class ParseFailure(BookvecError):
    """Response body malformed or missing an expected field."""
    kind = FailureKind.PARSE


class DegradedInput(BookvecError):
    """Empty or whitespace-only input; no request is sent."""
    kind = FailureKind.DEGRADED_INPUT


def check_response(response: httpx.Response, service: str) -> None:
    """Raise TransportFailure for a non-2xx response."""
    if not response.is_success:
        detail = response.text[:200] if response.text else ""
        raise TransportFailure(
            f"{service} failed: HTTP {response.status_code}. {detail}".strip()
        )


def transport_failure(exc: httpx.HTTPError, service: str) -> TransportFailure:
    """Wrap an httpx error."""
    return TransportFailure(f"{service} request failed: {type(exc).__name__}: {exc}")
