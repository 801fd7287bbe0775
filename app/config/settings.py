"""
Application settings.

Loads configuration from environment variables using pydantic-settings.
"""

from loguru import logger
from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from app.config.constants import (
    BLOCKCHAIN_RPC_TIMEOUT,
    DEFAULT_BASE_RPC_URLS,
    DEFAULT_LOG_CHUNK,
    FEED_COOLDOWN_MS,
    FEED_EXP_GAIN,
    RPC_ATTEMPTS_PER_ENDPOINT,
    RPC_RETRY_BACKOFF,
)
from app.utils.validation import validate_wallet_address


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # HTTP server
    host: str = "0.0.0.0"
    port: int = Field(
        default=4000, ge=1, le=65535, description="HTTP API port"
    )

    # Betta NFT contract (Base)
    betta_contract_address: str | None = Field(
        default=None,
        description="ERC-721 contract whose Transfer events are indexed",
    )
    betta_start_block: int = Field(
        default=0, ge=0, description="Contract deploy block (scan genesis)"
    )
    betta_log_chunk: int = Field(
        default=DEFAULT_LOG_CHUNK,
        gt=0,
        description="Max blocks per eth_getLogs query (lower if RPC limits)",
    )

    # Multi RPC (automatic failover), comma-separated, preferred first
    base_rpc_urls: str = DEFAULT_BASE_RPC_URLS
    rpc_timeout: float = Field(
        default=BLOCKCHAIN_RPC_TIMEOUT, gt=0, description="RPC HTTP timeout in seconds"
    )
    rpc_attempts_per_endpoint: int = Field(
        default=RPC_ATTEMPTS_PER_ENDPOINT,
        ge=1,
        description="Attempts on one endpoint before failing over",
    )
    rpc_retry_backoff: float = Field(
        default=RPC_RETRY_BACKOFF,
        ge=0,
        description="Seconds to wait before retrying the same endpoint",
    )

    # Feed & cooldown
    exp_per_feed: int = Field(default=FEED_EXP_GAIN, gt=0)
    feed_cooldown_ms: int = Field(default=FEED_COOLDOWN_MS, ge=0)

    # Database
    database_url: str = "sqlite+aiosqlite:///data/betta.db"
    database_echo: bool = False

    # Application
    log_level: str = "INFO"
    log_file: str | None = "logs/betta.log"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("betta_contract_address")
    @classmethod
    def validate_contract_address(cls, v: str | None) -> str | None:
        """Validate contract address format; empty means not configured."""
        if v is None or not v.strip():
            return None
        v = v.strip()
        is_valid, error = validate_wallet_address(v)
        if not is_valid:
            raise ValueError(f"Invalid contract address: {v}. {error}")
        return v.lower()

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Normalize log level name."""
        return v.upper()

    @model_validator(mode="after")
    def validate_rpc_urls(self) -> "Settings":
        """At least one RPC endpoint is required."""
        if not self.rpc_url_list:
            raise ValueError(
                "BASE_RPC_URLS must contain at least one RPC URL "
                "(comma-separated, preferred provider first)"
            )
        if not self.betta_contract_address:
            logger.warning(
                "BETTA_CONTRACT_ADDRESS is not set; ownership lookups will fail"
            )
        return self

    @property
    def rpc_url_list(self) -> list[str]:
        """Parse RPC URLs, preserving order and dropping duplicates."""
        result: list[str] = []
        for url in self.base_rpc_urls.split(","):
            url_stripped = url.strip()
            if url_stripped and url_stripped not in result:
                result.append(url_stripped)
        return result


# Global settings instance
settings = Settings()
