"""
Exception handling utilities.

Defines the error taxonomy shared by the indexer, the progression
engine and the HTTP layer.
"""


class BettaError(Exception):
    """Base class for all service errors."""

    code = "INTERNAL_ERROR"


class InvalidInput(BettaError, ValueError):
    """Raised when caller-supplied input is malformed."""

    code = "INVALID_INPUT"


class InvalidWallet(InvalidInput):
    """Raised when a wallet address is not a well-formed 20-byte address."""

    code = "INVALID_WALLET"

    def __init__(self, wallet: object, reason: str | None = None) -> None:
        self.wallet = wallet
        self.reason = reason
        super().__init__(f"Invalid wallet address: {wallet!r} ({reason or 'malformed'})")


class InvalidTokenId(InvalidInput):
    """Raised when a token id is not a non-negative integer."""

    code = "INVALID_TOKEN_ID"


class ConfigurationError(BettaError):
    """Raised when required configuration is missing or invalid."""

    code = "CONFIGURATION_ERROR"


class ContractNotConfigured(ConfigurationError):
    """Raised when no target contract address is configured."""

    code = "CONTRACT_NOT_CONFIGURED"

    def __init__(self) -> None:
        super().__init__("BETTA_CONTRACT_ADDRESS is not configured")


class ProviderError(BettaError):
    """Base class for upstream RPC provider failures."""

    code = "PROVIDER_ERROR"


class TransientProviderError(ProviderError):
    """
    Provider failure eligible for retry/failover.

    Never surfaced to callers: the failover executor retries it and
    raises ProviderExhausted once the retry budget is spent.
    """


class FatalProviderError(ProviderError):
    """Provider rejected the request; retrying elsewhere will not help."""

    code = "PROVIDER_ERROR"

    def __init__(self, operation: str, endpoint: str, cause: Exception) -> None:
        self.operation = operation
        self.endpoint = endpoint
        self.cause = cause
        super().__init__(
            f"Operation '{operation}' rejected by {endpoint}: "
            f"{type(cause).__name__}: {cause}"
        )


class ProviderExhausted(ProviderError):
    """All endpoints failed with transient errors for one operation."""

    code = "PROVIDER_EXHAUSTED"

    def __init__(
        self,
        operation: str,
        attempts: int,
        last_error: Exception | None,
    ) -> None:
        self.operation = operation
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(
            f"Operation '{operation}' failed after {attempts} attempts. "
            f"Last error: {last_error}"
        )


class MalformedRecord(BettaError):
    """A single log record could not be decoded. Logged and dropped."""

    code = "MALFORMED_RECORD"


class StorageError(BettaError):
    """Persisting or loading durable state failed."""

    code = "STORAGE_ERROR"


class FeedOnCooldown(BettaError):
    """Raised when a token is fed again before its cooldown elapsed."""

    code = "ON_COOLDOWN"

    def __init__(self, last_feed_at: int, cooldown_ms: int, now_ms: int) -> None:
        self.last_feed_at = last_feed_at
        self.cooldown_ms = cooldown_ms
        self.retry_at = last_feed_at + cooldown_ms
        self.remaining_ms = self.retry_at - now_ms
        super().__init__(f"Feed on cooldown for another {self.remaining_ms} ms")


class NotTokenOwner(BettaError):
    """Raised when a wallet acts on a token it does not hold."""

    code = "NOT_TOKEN_OWNER"

    def __init__(self, wallet: str, token_id: int) -> None:
        self.wallet = wallet
        self.token_id = token_id
        super().__init__(f"Wallet does not own token {token_id}")
