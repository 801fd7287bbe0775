"""
RPC Wrapper with Timeout.

Bounds every blockchain RPC call so no operation waits indefinitely.
"""

import asyncio
from typing import Any

from loguru import logger

from app.config.constants import BLOCKCHAIN_EXECUTOR_TIMEOUT
from app.utils.exceptions import TransientProviderError


class BlockchainTimeoutError(TransientProviderError):
    """Raised when blockchain RPC call times out."""
    pass


async def with_timeout(
    awaitable: Any,
    timeout: float = BLOCKCHAIN_EXECUTOR_TIMEOUT,
    operation_name: str = "RPC call",
) -> Any:
    """
    Await with timeout.

    Args:
        awaitable: Coroutine or future to await
        timeout: Timeout in seconds
        operation_name: Operation name for logging

    Returns:
        Result of the awaitable

    Raises:
        BlockchainTimeoutError: If operation times out
    """
    try:
        return await asyncio.wait_for(awaitable, timeout=timeout)
    except TimeoutError as e:
        error_msg = f"{operation_name} timed out after {timeout}s"
        logger.warning(error_msg)
        raise BlockchainTimeoutError(error_msg) from e
