"""
Failover Executor - Retry-then-Failover over an Endpoint Pool.

Runs one RPC operation across the pool's rotation: a transient error
is retried on the same endpoint after a backoff, then the next endpoint
is tried; a fatal error aborts immediately. Every call resolves within
len(pool) * attempts_per_endpoint attempts.
"""

import asyncio
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, TypeVar

from loguru import logger as default_logger

from app.config.constants import (
    BLOCKCHAIN_EXECUTOR_TIMEOUT,
    RPC_ATTEMPTS_PER_ENDPOINT,
    RPC_EXECUTOR_WORKERS,
    RPC_RETRY_BACKOFF,
)
from app.utils.exceptions import FatalProviderError, ProviderExhausted

from .endpoint_pool import EndpointPool
from .error_classifier import ErrorClass
from .rpc_wrapper import with_timeout

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    """
    Bounded retry schedule for one endpoint.

    attempts_per_endpoint counts the first try, so the default of 2
    means "retry once after a backoff, then move on".
    """

    attempts_per_endpoint: int = RPC_ATTEMPTS_PER_ENDPOINT
    backoff: float = RPC_RETRY_BACKOFF
    backoff_multiplier: float = 2.0
    max_backoff: float = 10.0

    def __post_init__(self) -> None:
        if self.attempts_per_endpoint < 1:
            raise ValueError("attempts_per_endpoint must be at least 1")
        if self.backoff < 0:
            raise ValueError("backoff must be non-negative")

    def delay(self, failed_attempt: int) -> float:
        """Seconds to wait after the given (1-based) failed attempt."""
        return min(
            self.backoff * self.backoff_multiplier ** (failed_attempt - 1),
            self.max_backoff,
        )

    def max_attempts(self, endpoint_count: int) -> int:
        """Upper bound of attempts for one operation."""
        return endpoint_count * self.attempts_per_endpoint


class FailoverExecutor:
    """
    Execute operations with automatic endpoint failover.

    Operations are synchronous callables taking a Web3 client; they run
    in a thread pool with a per-call timeout.

    Usage:
        executor = FailoverExecutor(pool, RetryPolicy())
        head = await executor.execute(
            operation=lambda w3: w3.eth.block_number,
            operation_name="eth_blockNumber",
        )
    """

    def __init__(
        self,
        pool: EndpointPool,
        policy: RetryPolicy | None = None,
        logger: Any = None,
        max_workers: int = RPC_EXECUTOR_WORKERS,
        call_timeout: float = BLOCKCHAIN_EXECUTOR_TIMEOUT,
    ) -> None:
        """
        Initialize failover executor.

        Args:
            pool: Endpoint pool providing rotation and classification
            policy: Retry policy (defaults to 2 attempts per endpoint)
            logger: Logger instance (defaults to loguru logger)
            max_workers: Thread pool size for sync operations
            call_timeout: Timeout per attempt in seconds
        """
        self.pool = pool
        self.policy = policy or RetryPolicy()
        self.logger = logger or default_logger
        self.call_timeout = call_timeout

        self._executor = ThreadPoolExecutor(
            max_workers=max_workers,
            thread_name_prefix="failover"
        )

        # Track failover statistics
        self._failover_count = 0
        self._success_count = 0
        self._failure_count = 0

    async def execute(
        self,
        operation: Callable[[Any], T],
        operation_name: str,
    ) -> T:
        """
        Execute operation with retry and failover.

        Args:
            operation: Function that takes a client and returns result
            operation_name: Human-readable operation name for logging

        Returns:
            Operation result

        Raises:
            FatalProviderError: On the first non-transient error
            ProviderExhausted: If every endpoint failed transiently
        """
        last_error: Exception | None = None
        attempts = 0

        for endpoint in self.pool.select_order():
            client = self.pool.client_for(endpoint)

            for attempt in range(1, self.policy.attempts_per_endpoint + 1):
                attempts += 1
                self.logger.debug(
                    f"[{operation_name}] Attempt {attempt}/"
                    f"{self.policy.attempts_per_endpoint} on {endpoint.name}"
                )

                try:
                    result = await self._run(client, operation, operation_name)
                except Exception as error:
                    self._failure_count += 1

                    if self.pool.classify(error) is ErrorClass.FATAL:
                        self.logger.error(
                            f"[{operation_name}] Fatal error on {endpoint.name}: "
                            f"{type(error).__name__}: {error}"
                        )
                        raise FatalProviderError(
                            operation_name, endpoint.name, error
                        ) from error

                    last_error = error
                    if attempt < self.policy.attempts_per_endpoint:
                        delay = self.policy.delay(attempt)
                        self.logger.warning(
                            f"[{operation_name}] Transient error on {endpoint.name}: "
                            f"{error}. Retrying in {delay:.1f}s..."
                        )
                        await asyncio.sleep(delay)
                    else:
                        self.logger.warning(
                            f"[{operation_name}] Transient error on {endpoint.name}: "
                            f"{error}. Giving up on this endpoint"
                        )
                    continue

                self._success_count += 1
                if attempts > 1:
                    self.logger.info(
                        f"[{operation_name}] Succeeded on {endpoint.name} "
                        f"after {attempts} attempts"
                    )
                return result

            self._failover_count += 1

        self.logger.error(
            f"[{operation_name}] All {len(self.pool)} endpoints exhausted "
            f"after {attempts} attempts. Last error: {last_error}"
        )
        raise ProviderExhausted(operation_name, attempts, last_error) from last_error

    async def _run(
        self,
        client: Any,
        operation: Callable[[Any], T],
        operation_name: str,
    ) -> T:
        """Run sync operation in the thread pool, bounded by call_timeout."""
        loop = asyncio.get_running_loop()
        return await with_timeout(
            loop.run_in_executor(self._executor, operation, client),
            timeout=self.call_timeout,
            operation_name=operation_name,
        )

    def get_stats(self) -> dict[str, Any]:
        """
        Get failover execution statistics.

        Returns:
            Dict with success_count, failure_count, failover_count
        """
        return {
            "endpoints_count": len(self.pool),
            "success_count": self._success_count,
            "failure_count": self._failure_count,
            "failover_count": self._failover_count,
        }

    def close(self) -> None:
        """
        Shutdown thread pool executor.

        Call this when done with the failover executor.
        """
        if self._executor:
            self._executor.shutdown(wait=False)
            self.logger.debug("FailoverExecutor thread pool shut down")
