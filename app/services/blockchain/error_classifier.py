"""
Provider error classification.

Decides whether an RPC failure is worth retrying on the same or
another endpoint (transient) or must abort the operation (fatal).
"""

from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from enum import Enum

import aiohttp

from app.utils.exceptions import TransientProviderError


class ErrorClass(str, Enum):
    """Outcome of error classification."""

    TRANSIENT = "transient"
    FATAL = "fatal"


# HTTP statuses meaning "provider overloaded or briefly down"
TRANSIENT_STATUS_CODES = frozenset({429, 502, 503, 504})

# JSON-RPC error codes used by providers for rate limiting
TRANSIENT_RPC_CODES = frozenset({-32005, -32090})

TRANSIENT_PHRASES = (
    "timeout",
    "timed out",
    "too many requests",
    "rate limit",
    "rate-limit",
    "ratelimit",
    "compute units per second",
    "temporarily unavailable",
    "service unavailable",
    "bad gateway",
    "gateway timeout",
    "try again later",
    "connection reset",
    "connection aborted",
    "connection refused",
    "max retries exceeded",
    "429 client error",
    "502 server error",
    "503 server error",
    "504 server error",
)

TRANSIENT_EXCEPTION_TYPES: tuple[type[BaseException], ...] = (
    TransientProviderError,
    TimeoutError,
    ConnectionError,
    aiohttp.ClientConnectionError,
)

# How deep to follow __cause__/__context__ when looking for signals
_MAX_CHAIN_DEPTH = 4


def _status_code(error: BaseException) -> int | None:
    """Extract an HTTP status from common exception shapes."""
    status = getattr(error, "status_code", None)
    if status is None:
        status = getattr(error, "status", None)
    if status is None:
        response = getattr(error, "response", None)
        status = getattr(response, "status_code", None)
    return status if isinstance(status, int) else None


def _rpc_code(error: BaseException) -> int | None:
    """Extract a JSON-RPC error code (web3 keeps the response dict)."""
    payload = getattr(error, "rpc_response", None)
    if isinstance(payload, dict):
        payload = payload.get("error", payload)
    elif error.args and isinstance(error.args[0], dict):
        payload = error.args[0]
    if isinstance(payload, dict) and isinstance(payload.get("code"), int):
        return payload["code"]
    return None


def _error_chain(error: BaseException) -> list[BaseException]:
    chain = []
    current: BaseException | None = error
    while current is not None and len(chain) < _MAX_CHAIN_DEPTH:
        chain.append(current)
        # Only explicit causes: an error raised while handling another
        # one is not a symptom of it
        current = current.__cause__
    return chain


@dataclass(frozen=True)
class TransientErrorClassifier:
    """
    Heuristic transient-error predicate over status, codes and text.

    Immutable; use extend() to derive a classifier with extra rules,
    e.g. for a provider with its own rate-limit wording.
    """

    status_codes: frozenset[int] = TRANSIENT_STATUS_CODES
    rpc_codes: frozenset[int] = TRANSIENT_RPC_CODES
    phrases: tuple[str, ...] = TRANSIENT_PHRASES
    exception_types: tuple[type[BaseException], ...] = TRANSIENT_EXCEPTION_TYPES
    predicates: tuple[Callable[[BaseException], bool], ...] = field(default=())

    def is_transient(self, error: BaseException) -> bool:
        """True if any error in the cause chain carries a transient signal."""
        for current in _error_chain(error):
            if isinstance(current, self.exception_types):
                return True
            if _status_code(current) in self.status_codes:
                return True
            if _rpc_code(current) in self.rpc_codes:
                return True
            message = str(current).lower()
            if any(phrase in message for phrase in self.phrases):
                return True
            if any(predicate(current) for predicate in self.predicates):
                return True
        return False

    def classify(self, error: BaseException) -> ErrorClass:
        """Classify error as TRANSIENT or FATAL."""
        if self.is_transient(error):
            return ErrorClass.TRANSIENT
        return ErrorClass.FATAL

    def extend(
        self,
        status_codes: Iterable[int] = (),
        rpc_codes: Iterable[int] = (),
        phrases: Iterable[str] = (),
        exception_types: Iterable[type[BaseException]] = (),
        predicates: Iterable[Callable[[BaseException], bool]] = (),
    ) -> "TransientErrorClassifier":
        """Return a classifier with additional transient rules."""
        return TransientErrorClassifier(
            status_codes=self.status_codes | frozenset(status_codes),
            rpc_codes=self.rpc_codes | frozenset(rpc_codes),
            phrases=self.phrases + tuple(p.lower() for p in phrases),
            exception_types=self.exception_types + tuple(exception_types),
            predicates=self.predicates + tuple(predicates),
        )
