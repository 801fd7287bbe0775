"""
Ownership reducer.

Folds Transfer events into the set of token ids a wallet holds.
"""

from collections.abc import Iterable

from app.services.blockchain.types import TransferEvent

# Sort rank: at equal chain position incoming applies before outgoing
_INCOMING = 0
_OUTGOING = 1


def apply_transfers(
    current: Iterable[int],
    incoming: Iterable[TransferEvent],
    outgoing: Iterable[TransferEvent],
) -> frozenset[int]:
    """
    Apply one chunk of transfers to an ownership set.

    Events are folded in (block_number, log_index) order, incoming adds
    and outgoing removes, so the last transfer of a token decides its
    membership regardless of how the block range was chunked. Events at
    the same position apply incoming first, which reduces to "add all
    incoming, then remove all outgoing" when positions are unknown.

    A self-transfer shows up in both lists; only its incoming copy is
    applied.

    Args:
        current: Token ids held before the chunk
        incoming: Transfers whose recipient is the wallet
        outgoing: Transfers whose sender is the wallet

    Returns:
        Token ids held after the chunk
    """
    ordered = sorted(
        [(event.position, _INCOMING, event.token_id) for event in incoming]
        + [
            (event.position, _OUTGOING, event.token_id)
            for event in outgoing
            if event.from_address != event.to_address
        ]
    )

    held = set(current)
    for _, direction, token_id in ordered:
        if direction == _INCOMING:
            held.add(token_id)
        else:
            held.discard(token_id)
    return frozenset(held)
