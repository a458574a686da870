"""Block-level extraction of Transfer events.

Pulls every event out of a block's receipts, keeps those whose first key is
the ``Transfer`` selector and hands them to the contract classifier, which
decides the contract type and forwards each event to the transfer processor.
"""

from typing import Any, Protocol

import structlog

from ark_indexer.services.starknet.encoding import get_selector_from_name, to_int

logger = structlog.get_logger()

TRANSFER_SELECTOR = get_selector_from_name("Transfer")


class ContractClassifier(Protocol):
    async def classify(self, transfer_events: list[dict[str, Any]]) -> None: ...


class BlockReader(Protocol):
    async def get_block_with_receipts(self, block_number: int) -> dict[str, Any]: ...


def extract_events(block: dict[str, Any]) -> list[dict[str, Any]]:
    """Flatten the events of every receipt in a ``starknet_getBlockWithReceipts`` block.

    Each event is tagged with the block number and its transaction hash so it
    can be processed on its own.
    """
    block_number = block.get("block_number")
    block_hash = block.get("block_hash")
    events: list[dict[str, Any]] = []

    for entry in block.get("transactions", []):
        receipt = entry.get("receipt", entry)
        transaction_hash = receipt.get("transaction_hash")
        for event in receipt.get("events", []):
            events.append(
                {
                    **event,
                    "block_number": block_number,
                    "block_hash": block_hash,
                    "transaction_hash": transaction_hash,
                }
            )

    return events


def _first_key(event: dict[str, Any]) -> int | None:
    keys = event.get("keys") or []
    if not keys:
        return None
    try:
        return to_int(keys[0])
    except (TypeError, ValueError):
        return None


def filter_transfer_events(
    events: list[dict[str, Any]], selector: int = TRANSFER_SELECTOR
) -> list[dict[str, Any]]:
    """Keep events whose first key is ``selector``."""
    return [event for event in events if _first_key(event) == selector]


async def extract_transfer_events(
    block: dict[str, Any], classifier: ContractClassifier
) -> list[dict[str, Any]]:
    """Extract the Transfer events of a block and pass them to the classifier."""
    events = extract_events(block)
    logger.info(
        "extraction.events_detected", block_number=block.get("block_number"), count=len(events)
    )

    transfer_events = filter_transfer_events(events)
    logger.info(
        "extraction.transfer_events",
        block_number=block.get("block_number"),
        count=len(transfer_events),
    )

    await classifier.classify(transfer_events)
    return transfer_events


async def extract_block_transfers(
    rpc: BlockReader, block_number: int, classifier: ContractClassifier
) -> list[dict[str, Any]]:
    """Fetch a block by number and run ``extract_transfer_events`` on it."""
    block = await rpc.get_block_with_receipts(block_number)
    return await extract_transfer_events(block, classifier)
