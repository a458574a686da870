"""Tests for block-level Transfer event extraction."""

import pytest
from fakes import FakeRpc

from ark_indexer.services.indexing.event_extraction import (
    TRANSFER_SELECTOR,
    extract_block_transfers,
    extract_events,
    filter_transfer_events,
)
from ark_indexer.services.starknet.encoding import get_selector_from_name

APPROVAL_SELECTOR = hex(get_selector_from_name("Approval"))


def block_with_receipts():
    return {
        "block_number": 7,
        "block_hash": "0xb10c",
        "timestamp": 1700000000,
        "transactions": [
            {
                "transaction": {"transaction_hash": "0x1"},
                "receipt": {
                    "transaction_hash": "0x1",
                    "events": [
                        {
                            "from_address": "0xc1",
                            "keys": [hex(TRANSFER_SELECTOR)],
                            "data": ["0x0", "0xa", "0x1", "0x0"],
                        },
                        {
                            "from_address": "0xc1",
                            "keys": [APPROVAL_SELECTOR],
                            "data": ["0xa", "0xb", "0x1", "0x0"],
                        },
                    ],
                },
            },
            {
                "transaction": {"transaction_hash": "0x2"},
                "receipt": {
                    "transaction_hash": "0x2",
                    "events": [
                        {
                            "from_address": "0xc2",
                            # Selector given with leading zeros
                            "keys": ["0x" + format(TRANSFER_SELECTOR, "064x"), "0x0", "0xb"],
                            "data": [],
                        },
                        {"from_address": "0xc3", "keys": [], "data": []},
                    ],
                },
            },
        ],
    }


class StubClassifier:
    def __init__(self):
        self.batches: list[list[dict]] = []

    async def classify(self, transfer_events):
        self.batches.append(transfer_events)


def test_extract_events_tags_block_and_transaction():
    events = extract_events(block_with_receipts())

    assert len(events) == 4
    assert events[0]["block_number"] == 7
    assert events[0]["block_hash"] == "0xb10c"
    assert events[0]["transaction_hash"] == "0x1"
    assert events[2]["transaction_hash"] == "0x2"


def test_extract_events_from_empty_block():
    assert extract_events({"block_number": 1, "transactions": []}) == []


def test_filter_keeps_transfer_events_only():
    transfers = filter_transfer_events(extract_events(block_with_receipts()))

    assert [e["from_address"] for e in transfers] == ["0xc1", "0xc2"]


@pytest.mark.asyncio
async def test_extract_block_transfers_hands_events_to_classifier():
    rpc = FakeRpc(blocks={7: block_with_receipts()})
    classifier = StubClassifier()

    transfers = await extract_block_transfers(rpc, 7, classifier)

    assert len(transfers) == 2
    assert classifier.batches == [transfers]
