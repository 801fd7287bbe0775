"""Address and token id validation utilities."""

from loguru import logger
from web3 import Web3

from app.utils.exceptions import InvalidTokenId, InvalidWallet


def validate_wallet_address(address: object) -> tuple[bool, str | None]:
    """
    Validate an EVM wallet address.

    Comparison is case-insensitive, so mixed-case input is accepted
    without enforcing its checksum.

    Args:
        address: Wallet address to validate

    Returns:
        Tuple of (is_valid, error_message)

    Examples:
        >>> validate_wallet_address("0x1234567890123456789012345678901234567890")
        (True, None)
        >>> validate_wallet_address("invalid")
        (False, 'Address must start with 0x')
    """
    if not address or not isinstance(address, str):
        return False, "Address is empty"

    address = address.strip()

    if not address:
        return False, "Address is empty"

    if not address.startswith("0x"):
        return False, "Address must start with 0x"

    if len(address) != 42:
        return False, "Address must be 42 characters"

    try:
        int(address[2:], 16)
    except ValueError:
        return False, "Invalid address format"

    # int() tolerates "_" separators and signs; eth-utils only hex digits
    try:
        Web3.to_checksum_address(address)
    except (ValueError, TypeError) as e:
        logger.debug(f"Address validation failed for {address}: {e}")
        return False, "Invalid address format"

    return True, None


def normalize_wallet_address(address: object) -> str:
    """
    Normalize wallet address to lowercase form.

    Args:
        address: Wallet address

    Returns:
        Lowercased, stripped address

    Raises:
        InvalidWallet: If address is malformed
    """
    is_valid, error = validate_wallet_address(address)
    if not is_valid:
        raise InvalidWallet(address, error)
    return address.strip().lower()


def to_checksum(address: str) -> str:
    """Checksum form of an already validated address (for RPC filters)."""
    return Web3.to_checksum_address(address.lower())


def parse_token_id(value: object) -> int:
    """
    Parse a token id from user input.

    Accepts non-negative ints and decimal strings of any size.
    Floats are rejected so ids above 2**53 never lose precision.

    Raises:
        InvalidTokenId: If value is not a non-negative integer
    """
    if isinstance(value, bool):
        raise InvalidTokenId(f"Invalid token id: {value!r}")
    if isinstance(value, int):
        token_id = value
    elif isinstance(value, str) and value.strip().isascii() and value.strip().isdigit():
        token_id = int(value.strip())
    else:
        raise InvalidTokenId(f"Invalid token id: {value!r}")
    if token_id < 0:
        raise InvalidTokenId(f"Invalid token id: {value!r}")
    return token_id
