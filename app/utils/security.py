"""
Security utilities for masking sensitive data in logs.

Provides functions to safely mask:
- Wallet addresses
- RPC endpoint URLs (paths and query strings often embed API keys)
"""

from urllib.parse import urlsplit


def mask_address(address: str | None) -> str:
    """
    Mask wallet address for logging: 0x1234...5678

    Args:
        address: Wallet address to mask

    Returns:
        Masked address showing first 6 and last 4 characters

    Examples:
        >>> mask_address("0x1234567890abcdef1234567890abcdef12345678")
        '0x1234...5678'
        >>> mask_address(None)
        '***'
        >>> mask_address("short")
        '***'
    """
    if not address or len(address) < 10:
        return "***"
    return f"{address[:6]}...{address[-4:]}"


def mask_url(url: str | None) -> str:
    """
    Reduce an RPC URL to scheme and host for logging.

    Examples:
        >>> mask_url("https://base-mainnet.g.alchemy.com/v2/SECRET")
        'https://base-mainnet.g.alchemy.com'
        >>> mask_url("not a url")
        '***'
    """
    if not url:
        return "***"
    parts = urlsplit(url)
    if not parts.scheme or not parts.hostname:
        return "***"
    host = parts.hostname
    if parts.port:
        host = f"{host}:{parts.port}"
    return f"{parts.scheme}://{host}"
