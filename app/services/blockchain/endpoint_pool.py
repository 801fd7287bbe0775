"""
RPC endpoint pool with round-robin rotation.

This module handles:
- Ordered set of configured RPC endpoints
- Rotation order per call (spreads load and failover targets)
- Lazily created Web3 clients per endpoint
- Transient/fatal error classification
"""

import threading
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Any

from loguru import logger
from web3 import Web3

from app.config.constants import BLOCKCHAIN_RPC_TIMEOUT
from app.utils.exceptions import ConfigurationError
from app.utils.security import mask_url

from .error_classifier import ErrorClass, TransientErrorClassifier


@dataclass(frozen=True)
class Endpoint:
    """A JSON-RPC provider URL."""

    url: str

    @property
    def name(self) -> str:
        """Log-safe name (scheme and host only)."""
        return mask_url(self.url)


def make_web3_client(url: str, timeout: float = BLOCKCHAIN_RPC_TIMEOUT) -> Web3:
    """
    Create a Web3 HTTP client for one endpoint.

    web3's built-in request retries are disabled; retry and failover
    are owned by FailoverExecutor.
    """
    return Web3(
        Web3.HTTPProvider(
            url,
            request_kwargs={"timeout": timeout},
            exception_retry_configuration=None,
        )
    )


class EndpointPool:
    """
    Ordered RPC endpoints with a per-instance rotation cursor.

    Usage:
        pool = EndpointPool(["https://a.example", "https://b.example"])
        for endpoint in pool.select_order():
            w3 = pool.client_for(endpoint)
    """

    def __init__(
        self,
        urls: Sequence[str],
        client_factory: Callable[[str], Any] | None = None,
        classifier: TransientErrorClassifier | None = None,
        request_timeout: float = BLOCKCHAIN_RPC_TIMEOUT,
    ) -> None:
        """
        Initialize endpoint pool.

        Args:
            urls: RPC URLs, preferred first
            client_factory: Builds a client for a URL (defaults to Web3 HTTP)
            classifier: Transient error predicate
            request_timeout: HTTP timeout for default clients

        Raises:
            ConfigurationError: If no URLs are given
        """
        if not urls:
            raise ConfigurationError("At least one RPC endpoint must be specified")

        self.endpoints: tuple[Endpoint, ...] = tuple(Endpoint(url) for url in urls)
        self.classifier = classifier or TransientErrorClassifier()
        self._client_factory = client_factory or (
            lambda url: make_web3_client(url, timeout=request_timeout)
        )
        self._clients: dict[Endpoint, Any] = {}
        self._cursor = 0
        self._lock = threading.Lock()

        logger.info(
            f"EndpointPool initialized with {len(self.endpoints)} endpoints: "
            f"{', '.join(endpoint.name for endpoint in self.endpoints)}"
        )

    def __len__(self) -> int:
        return len(self.endpoints)

    def select_order(self) -> list[Endpoint]:
        """
        Rotation for one call, starting at the cursor.

        The cursor advances by one per call, so consecutive calls start
        on consecutive endpoints.
        """
        with self._lock:
            start = self._cursor
            self._cursor = (start + 1) % len(self.endpoints)
        return list(self.endpoints[start:] + self.endpoints[:start])

    def classify(self, error: BaseException) -> ErrorClass:
        """Classify error as transient (failover-eligible) or fatal."""
        return self.classifier.classify(error)

    def client_for(self, endpoint: Endpoint) -> Any:
        """Get (or lazily create) the client for an endpoint."""
        with self._lock:
            client = self._clients.get(endpoint)
            if client is None:
                client = self._client_factory(endpoint.url)
                self._clients[endpoint] = client
            return client
