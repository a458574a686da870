"""End-to-end tests for the transfer pipeline against the in-memory store.

Scenarios:
- Mint with a resolvable URI: metadata fetched, token, transfer and activity written
- Plain transfer: collection and transfer only
- Unresolved URI: token written with empty metadata, no HTTP request
- Block unavailable: processing aborts before any write
"""

import json
from unittest.mock import AsyncMock

import httpx
import pytest
from fakes import FakeRpc, byte_array, short_string

from ark_indexer.models.collection import ContractType
from ark_indexer.models.collection_activity import ActivityType
from ark_indexer.services.exceptions import BlockFetchError, EventDecodeError, StorageError
from ark_indexer.services.indexing.event_extraction import TRANSFER_SELECTOR
from ark_indexer.services.indexing.results import APPLIED, FailedRetryable, SkippedBenign
from ark_indexer.services.indexing.transfer_processor import (
    TransferProcessor,
    decode_transfer_event,
)
from ark_indexer.services.metadata.fetcher import MetadataFetcher
from ark_indexer.services.starknet.encoding import ZERO_FELT, format_felt
from ark_indexer.services.storage.file_manager import PinataFileManager

CONTRACT = format_felt("0x4ce5")
ALICE = format_felt("0xa11ce")
BOB = format_felt("0xb0b")
TX_HASH = format_felt("0x7a")
BLOCK = 100
TIMESTAMP = 1_700_000_000

METADATA = {
    "name": "Duck #42",
    "description": "A very fine duck",
    "image": "ipfs://QmImage",
    "attributes": [{"trait_type": "Hat", "value": "Cap"}],
}


def transfer_event(from_address=ZERO_FELT, to_address=ALICE, low="0x2a", high="0x0", **extra):
    event = {
        "from_address": CONTRACT,
        "keys": [hex(TRANSFER_SELECTOR)],
        "data": [from_address, to_address, low, high],
        "block_number": BLOCK,
        "transaction_hash": TX_HASH,
    }
    event.update(extra)
    return event


class RecordingTransport:
    """MockTransport handler serving METADATA and recording requested URLs."""

    def __init__(self, status_code=200):
        self.status_code = status_code
        self.urls: list[str] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.urls.append(str(request.url))
        if request.url.path.endswith("QmImage"):
            return httpx.Response(200, content=b"img", headers={"content-type": "image/png"})
        return httpx.Response(self.status_code, json=METADATA)


@pytest.fixture
def transport():
    return RecordingTransport()


@pytest.fixture
def fetcher(transport):
    return MetadataFetcher(http_client=httpx.AsyncClient(transport=httpx.MockTransport(transport)))


@pytest.fixture
def rpc():
    return FakeRpc(
        blocks={BLOCK: {"block_number": BLOCK, "timestamp": TIMESTAMP}},
        responses={
            "tokenURI": byte_array("ipfs://QmMeta/42.json"),
            "ownerOf": [ALICE],
            "name": [short_string("Ducks")],
            "symbol": [short_string("DCK")],
        },
    )


@pytest.fixture
def processor(rpc, store, fetcher):
    return TransferProcessor(rpc=rpc, uow_factory=store.uow_factory, metadata_fetcher=fetcher)


class TestDecodeTransferEvent:
    def test_cairo0_data_layout(self):
        event = decode_transfer_event(transfer_event(from_address=BOB, to_address=ALICE))

        assert event.contract_address == CONTRACT
        assert event.from_address == BOB
        assert event.to_address == ALICE
        assert event.token_id.value == 42
        assert event.block_number == BLOCK
        assert not event.is_mint

    def test_cairo1_keys_layout(self):
        raw = transfer_event()
        raw["keys"] = [hex(TRANSFER_SELECTOR), "0x0", "0xa11ce", "0x2a", "0x0"]
        raw["data"] = []

        event = decode_transfer_event(raw)

        assert event.is_mint
        assert event.to_address == ALICE
        assert event.token_id.value == 42

    def test_json_string_input(self):
        assert decode_transfer_event(json.dumps(transfer_event())).token_id.value == 42

    def test_zero_address_is_mint(self):
        assert decode_transfer_event(transfer_event(from_address="0x0")).is_mint

    @pytest.mark.parametrize(
        "raw",
        [
            "{not json",
            "[1, 2]",
            {"from_address": CONTRACT, "data": ["0x0"], "keys": [], "block_number": 1},
            {"data": ["0x0", "0x1", "0x2", "0x0"], "block_number": 1, "transaction_hash": "0x1"},
        ],
    )
    def test_malformed_events(self, raw):
        with pytest.raises(EventDecodeError):
            decode_transfer_event(raw)


@pytest.mark.asyncio
class TestTransferProcessor:
    async def test_mint_with_resolvable_uri(self, processor, store, transport):
        result = await processor.process(transfer_event(), ContractType.ERC721)

        assert result.is_mint
        assert result.timestamp == TIMESTAMP
        assert result.token_uri == "ipfs://QmMeta/42.json"
        assert result.owner == ALICE
        assert not result.needs_retry
        assert transport.urls == ["https://ipfs.io/ipfs/QmMeta/42.json"]

        token = store.tokens.rows[(CONTRACT, result.event.token_id.padded)]
        assert token.token_id == "2a"
        assert token.owner == ALICE
        assert token.mint_transaction_hash == TX_HASH
        assert token.block_number_minted == BLOCK
        assert token.normalized_metadata["name"] == "Duck #42"
        assert token.normalized_metadata["external_url"] == "ipfs://QmMeta/42.json"

        [transfer] = store.token_transfers.rows
        assert (transfer.from_address, transfer.to_address) == (ZERO_FELT, ALICE)
        assert transfer.timestamp == TIMESTAMP

        [activity] = store.activities.rows
        assert activity.event_type == ActivityType.MINT
        assert activity.token_type == ContractType.ERC721
        assert activity.token_uri == "ipfs://QmMeta/42.json"

        collection = store.collections.rows[CONTRACT]
        assert (collection.name, collection.symbol) == ("Ducks", "DCK")
        assert collection.latest_mint == str(TIMESTAMP)

        assert set(result.outcomes) == {"collection", "transfer", "latest_mint", "token", "activity"}

    async def test_plain_transfer_skips_mint_steps(self, processor, store, transport):
        result = await processor.process(
            transfer_event(from_address=ALICE, to_address=BOB), "ERC721"
        )

        assert not result.is_mint
        assert set(result.outcomes) == {"collection", "transfer"}
        assert store.tokens.rows == {}
        assert store.activities.rows == []
        assert len(store.token_transfers.rows) == 1
        assert transport.urls == []

    async def test_unresolved_uri_makes_no_http_request(self, rpc, processor, store, transport):
        del rpc.responses["tokenURI"]

        result = await processor.process(transfer_event(), ContractType.ERC721)

        assert result.token_uri is None
        assert result.metadata is None
        assert transport.urls == []
        token = store.tokens.rows[(CONTRACT, result.event.token_id.padded)]
        assert token.token_uri is None
        assert token.normalized_metadata is None
        assert result.outcomes["token"] == APPLIED

    async def test_unreachable_metadata_still_indexes_token(self, store, rpc):
        failing = MetadataFetcher(
            http_client=httpx.AsyncClient(
                transport=httpx.MockTransport(lambda request: httpx.Response(504))
            )
        )
        processor = TransferProcessor(rpc, store.uow_factory, failing)

        result = await processor.process(transfer_event(), ContractType.ERC721)

        assert result.metadata is None
        assert not result.needs_retry
        assert len(store.tokens.rows) == 1

    async def test_unknown_owner_is_empty(self, rpc, processor, store):
        del rpc.responses["ownerOf"]

        result = await processor.process(transfer_event(), ContractType.ERC721)

        assert result.owner == ""
        assert store.tokens.rows[(CONTRACT, result.event.token_id.padded)].owner == ""

    async def test_block_unavailable_aborts_before_writes(self, rpc, processor, store):
        rpc.blocks.clear()

        with pytest.raises(BlockFetchError):
            await processor.process(transfer_event(), ContractType.ERC721)

        assert store.collections.rows == {}
        assert store.token_transfers.rows == []

    async def test_block_without_timestamp(self, rpc, processor):
        rpc.blocks[BLOCK] = {"block_number": BLOCK}

        with pytest.raises(BlockFetchError):
            await processor.process(transfer_event(), ContractType.ERC721)

    async def test_unknown_contract_type(self, processor):
        with pytest.raises(EventDecodeError):
            await processor.process(transfer_event(), "ERC4626")

    async def test_replay_is_idempotent(self, processor, store):
        await processor.process(transfer_event(), ContractType.ERC721)
        result = await processor.process(transfer_event(), ContractType.ERC721)

        assert result.outcomes["transfer"] == SkippedBenign("transfer_already_recorded")
        assert result.outcomes["activity"] == SkippedBenign("activity_already_logged")
        assert result.outcomes["latest_mint"] == SkippedBenign("latest_mint_kept")
        assert len(store.token_transfers.rows) == 1
        assert len(store.activities.rows) == 1
        assert not result.needs_retry

    async def test_failed_write_does_not_stop_later_writes(self, processor, store):
        store.tokens.upsert = AsyncMock(side_effect=RuntimeError("db down"))

        result = await processor.process(transfer_event(), ContractType.ERC721)

        assert isinstance(result.outcomes["token"], FailedRetryable)
        assert result.outcomes["activity"] == APPLIED
        assert result.needs_retry
        assert result.to_dict()["outcomes"]["token"].startswith("failed: RuntimeError")

    async def test_image_cached_when_storage_configured(self, rpc, store, fetcher, transport):
        file_manager = AsyncMock()
        file_manager.save.return_value = "images/x/42"
        processor = TransferProcessor(rpc, store.uow_factory, fetcher, file_manager=file_manager)

        result = await processor.process(transfer_event(), ContractType.ERC721)

        assert result.outcomes["image"] == APPLIED
        saved = file_manager.save.await_args.args[0]
        assert saved.content == b"img"
        assert saved.content_type == "image/png"
        assert saved.dir_path == CONTRACT
        assert "https://ipfs.io/ipfs/QmImage" in transport.urls

    async def test_image_cache_failure_is_benign(self, rpc, store, fetcher):
        file_manager = AsyncMock()
        file_manager.save.side_effect = StorageError("disk full")
        processor = TransferProcessor(rpc, store.uow_factory, fetcher, file_manager=file_manager)

        result = await processor.process(transfer_event(), ContractType.ERC721)

        assert isinstance(result.outcomes["image"], SkippedBenign)
        assert not result.needs_retry

    async def test_malformed_pinata_reply_is_benign(self, rpc, store, fetcher):
        pinata = PinataFileManager(
            "jwt",
            http_client=httpx.AsyncClient(
                transport=httpx.MockTransport(
                    lambda request: httpx.Response(200, json={"unexpected": 1})
                )
            ),
        )
        processor = TransferProcessor(rpc, store.uow_factory, fetcher, file_manager=pinata)

        result = await processor.process(transfer_event(), ContractType.ERC721)

        assert isinstance(result.outcomes["image"], SkippedBenign)
        assert result.outcomes["token"] == APPLIED
        assert not result.needs_retry

    async def test_earlier_mint_lowers_latest_mint(self, rpc, processor, store):
        await processor.process(transfer_event(), ContractType.ERC721)

        rpc.blocks[BLOCK + 1] = {"block_number": BLOCK + 1, "timestamp": TIMESTAMP - 60}
        await processor.process(
            transfer_event(low="0x2b", block_number=BLOCK + 1, transaction_hash="0x7b"),
            ContractType.ERC721,
        )

        assert store.collections.rows[CONTRACT].latest_mint == str(TIMESTAMP - 60)
