"""
Transfer event log reading.

This module handles:
- eth_getLogs filter construction for the Transfer signature
- Decoding raw logs into TransferEvent (malformed records dropped)
- Chain head lookup
"""

from typing import Any

from loguru import logger

from app.config.constants import TRANSFER_EVENT_TOPIC
from app.utils.exceptions import ContractNotConfigured, InvalidInput, MalformedRecord
from app.utils.security import mask_address
from app.utils.validation import normalize_wallet_address, to_checksum

from .failover_executor import FailoverExecutor
from .types import ScanRange, TransferEvent


def address_topic(address: str) -> str:
    """
    Encode an address as a 32-byte topic.

    Examples:
        >>> address_topic("0x00000000000000000000000000000000000000Ab")
        '0x00000000000000000000000000000000000000000000000000000000000000ab'
    """
    return "0x" + "0" * 24 + normalize_wallet_address(address)[2:]


def build_transfer_filter(
    contract_address: str,
    scan_range: ScanRange,
    from_address: str | None = None,
    to_address: str | None = None,
) -> dict[str, Any]:
    """
    Build eth_getLogs params for Transfer events of one contract.

    A None address leaves that topic position as a wildcard.
    """
    return {
        "address": to_checksum(contract_address),
        "fromBlock": scan_range.from_block,
        "toBlock": scan_range.to_block,
        "topics": [
            TRANSFER_EVENT_TOPIC,
            address_topic(from_address) if from_address else None,
            address_topic(to_address) if to_address else None,
        ],
    }


def _to_hex(value: Any) -> str:
    """Normalize HexBytes / bytes / str to a lowercase 0x string."""
    if isinstance(value, (bytes, bytearray)):
        return "0x" + bytes(value).hex()
    if isinstance(value, str):
        value = value.lower()
        return value if value.startswith("0x") else "0x" + value
    raise MalformedRecord(f"Unexpected hex value type: {type(value).__name__}")


def _to_int(value: Any, field_name: str) -> int:
    if isinstance(value, bool):
        raise MalformedRecord(f"Invalid {field_name}: {value!r}")
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value, 16) if value.lower().startswith("0x") else int(value)
        except ValueError as e:
            raise MalformedRecord(f"Invalid {field_name}: {value!r}") from e
    raise MalformedRecord(f"Missing or invalid {field_name}: {value!r}")


def _word_to_int(word: str, field_name: str) -> int:
    if len(word) != 66:
        raise MalformedRecord(f"Invalid {field_name} word length: {len(word)}")
    try:
        return int(word, 16)
    except ValueError as e:
        raise MalformedRecord(f"Invalid {field_name}: {word}") from e


def _topic_to_address(topic: str) -> str:
    if len(topic) != 66:
        raise MalformedRecord(f"Invalid address topic: {topic}")
    try:
        int(topic, 16)
    except ValueError as e:
        raise MalformedRecord(f"Invalid address topic: {topic}") from e
    return "0x" + topic[-40:]


def decode_transfer_log(log: Any) -> TransferEvent:
    """
    Decode a raw Transfer log.

    ERC-721 indexes tokenId as topics[3]; when only three topics are
    present a single 32-byte data word is read as the token id.

    Raises:
        MalformedRecord: If any field is missing or malformed
    """
    try:
        topics = [_to_hex(topic) for topic in (log.get("topics") or [])]
    except AttributeError as e:
        raise MalformedRecord(f"Log is not a mapping: {log!r}") from e

    if len(topics) < 3 or topics[0] != TRANSFER_EVENT_TOPIC:
        raise MalformedRecord(f"Not a Transfer log: {topics[:1]}")

    if len(topics) >= 4:
        token_id = _word_to_int(topics[3], "tokenId")
    else:
        data = log.get("data")
        if data is None:
            raise MalformedRecord("Missing tokenId")
        token_id = _word_to_int(_to_hex(data), "tokenId")

    log_index = log.get("logIndex")

    return TransferEvent(
        from_address=_topic_to_address(topics[1]),
        to_address=_topic_to_address(topics[2]),
        token_id=token_id,
        block_number=_to_int(log.get("blockNumber"), "blockNumber"),
        log_index=_to_int(log_index, "logIndex") if log_index is not None else 0,
    )


class EventLogReader:
    """
    Reads Transfer events and the chain head through a FailoverExecutor.
    """

    def __init__(
        self,
        executor: FailoverExecutor,
        contract_address: str | None,
    ) -> None:
        """
        Initialize event log reader.

        Args:
            executor: Failover executor bound to an endpoint pool
            contract_address: Token contract, None if not configured
        """
        self.executor = executor
        self.contract_address = (
            contract_address.lower() if contract_address else None
        )

    async def get_block_number(self) -> int:
        """
        Get current chain head.

        Raises:
            ProviderExhausted: If every endpoint failed transiently
            FatalProviderError: On a non-transient provider error
        """
        head = await self.executor.execute(
            operation=lambda w3: w3.eth.block_number,
            operation_name="eth_blockNumber",
        )
        return int(head)

    async def fetch_transfers(
        self,
        scan_range: ScanRange,
        from_address: str | None = None,
        to_address: str | None = None,
    ) -> list[TransferEvent]:
        """
        Fetch Transfer events of the contract within a block range.

        Args:
            scan_range: Inclusive block range
            from_address: Only transfers sent by this address
            to_address: Only transfers received by this address

        Returns:
            Decoded events in provider order; malformed logs dropped

        Raises:
            InvalidInput: If both addresses are given
            ContractNotConfigured: If no contract address is set
            ProviderExhausted: If every endpoint failed transiently
            FatalProviderError: On a non-transient provider error
        """
        if from_address and to_address:
            raise InvalidInput("Only one of from_address/to_address may be set")
        if not self.contract_address:
            raise ContractNotConfigured()

        params = build_transfer_filter(
            self.contract_address, scan_range, from_address, to_address
        )
        direction = "out" if from_address else "in" if to_address else "all"

        logs = await self.executor.execute(
            operation=lambda w3: w3.eth.get_logs(params),
            operation_name=f"eth_getLogs[{scan_range}:{direction}]",
        )

        events = []
        dropped = 0
        for log in logs:
            try:
                events.append(decode_transfer_log(log))
            except MalformedRecord as e:
                dropped += 1
                logger.debug(f"[LogReader] Dropping malformed log in {scan_range}: {e}")

        if dropped:
            logger.warning(
                f"[LogReader] Dropped {dropped} malformed logs in {scan_range} "
                f"({direction} {mask_address(from_address or to_address)})"
            )

        return events
