"""
Blockchain value types.

TransferEvent is decoded from a raw log; ScanRange bounds one
eth_getLogs query.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class ScanRange:
    """Inclusive block interval scanned by a single provider query."""

    from_block: int
    to_block: int

    def __post_init__(self) -> None:
        if self.from_block < 0 or self.from_block > self.to_block:
            raise ValueError(
                f"Invalid scan range {self.from_block}-{self.to_block}"
            )

    @property
    def size(self) -> int:
        """Number of blocks covered."""
        return self.to_block - self.from_block + 1

    def __str__(self) -> str:
        return f"{self.from_block}-{self.to_block}"


def partition_range(
    start_block: int, end_block: int, chunk_size: int
) -> list[ScanRange]:
    """
    Split [start_block, end_block] into consecutive ranges.

    Args:
        start_block: First block (inclusive)
        end_block: Last block (inclusive)
        chunk_size: Max blocks per range

    Returns:
        Ranges in ascending order, empty if start_block > end_block
    """
    if chunk_size <= 0:
        raise ValueError("chunk_size must be positive")

    ranges = []
    current = start_block
    while current <= end_block:
        chunk_end = min(current + chunk_size - 1, end_block)
        ranges.append(ScanRange(current, chunk_end))
        current = chunk_end + 1
    return ranges


@dataclass(frozen=True)
class TransferEvent:
    """A decoded Transfer(from, to, tokenId) log."""

    from_address: str
    to_address: str
    token_id: int
    block_number: int
    log_index: int = 0

    @property
    def position(self) -> tuple[int, int]:
        """Chain order key."""
        return (self.block_number, self.log_index)
