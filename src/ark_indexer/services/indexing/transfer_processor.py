"""Transfer event processing pipeline.

This module provides the TransferProcessor which, for a single Transfer event:
1. Decodes the raw event (Cairo 0 ``data`` layout or Cairo 1 ``keys`` layout)
2. Reads the block timestamp (the only step whose failure aborts the event)
3. Resolves the token URI and owner concurrently
4. Upserts the collection's descriptive fields
5. Records the token transfer
6. On mint: reconciles ``latest_mint``, fetches and normalizes metadata,
   upserts the token and appends a ``mint`` activity row

Enrichment is best-effort and indexing is mandatory: read failures degrade to
placeholders, write failures are reported as ``WriteOutcome`` values so the
caller can re-queue the event.
"""

import asyncio
import json
from dataclasses import dataclass, field
from typing import Any

import structlog

from ark_indexer.models.collection import ContractType
from ark_indexer.models.collection_activity import ActivityType, CollectionActivity
from ark_indexer.models.token import Token
from ark_indexer.models.token_transfer import TokenTransfer
from ark_indexer.services.exceptions import BlockFetchError, EventDecodeError, ServiceError
from ark_indexer.services.indexing.collection_reconciler import CollectionReconciler
from ark_indexer.services.indexing.owner_resolver import resolve_owner
from ark_indexer.services.indexing.results import (
    APPLIED,
    FailedRetryable,
    SkippedBenign,
    WriteOutcome,
)
from ark_indexer.services.indexing.token_id import TokenId
from ark_indexer.services.indexing.uri_resolver import resolve_token_uri
from ark_indexer.services.metadata.fetcher import (
    FetchedMetadata,
    MetadataFetcher,
    NormalizedMetadata,
)
from ark_indexer.services.metadata.uri import UriSanitizer, sanitize_uri
from ark_indexer.services.starknet.encoding import ZERO_FELT, format_felt
from ark_indexer.services.starknet.rpc import ChainReader
from ark_indexer.services.storage.file_manager import FileInfo, FileManager
from ark_indexer.uow import UnitOfWorkFactory

logger = structlog.get_logger()


@dataclass(frozen=True)
class TransferEvent:
    """Decoded Transfer event. Addresses and hashes are padded felts."""

    block_number: int
    contract_address: str
    transaction_hash: str
    from_address: str
    to_address: str
    token_id: TokenId

    @property
    def is_mint(self) -> bool:
        return self.from_address == ZERO_FELT


@dataclass
class TransferResult:
    """What processing one event produced."""

    event: TransferEvent
    timestamp: int
    token_uri: str | None
    owner: str
    metadata: NormalizedMetadata | None = None
    outcomes: dict[str, WriteOutcome] = field(default_factory=dict)

    @property
    def is_mint(self) -> bool:
        return self.event.is_mint

    @property
    def needs_retry(self) -> bool:
        return any(isinstance(o, FailedRetryable) for o in self.outcomes.values())

    def to_dict(self) -> dict[str, Any]:
        return {
            "contract_address": self.event.contract_address,
            "token_id": self.event.token_id.hex,
            "padded_token_id": self.event.token_id.padded,
            "transaction_hash": self.event.transaction_hash,
            "block_number": self.event.block_number,
            "timestamp": self.timestamp,
            "is_mint": self.is_mint,
            "token_uri": self.token_uri,
            "owner": self.owner,
            "needs_retry": self.needs_retry,
            "outcomes": {name: _describe(outcome) for name, outcome in self.outcomes.items()},
        }


def _describe(outcome: WriteOutcome) -> str:
    if isinstance(outcome, SkippedBenign):
        return f"skipped: {outcome.reason}"
    if isinstance(outcome, FailedRetryable):
        return f"failed: {outcome.reason}"
    return "applied"


def decode_transfer_event(raw: dict[str, Any] | str | bytes) -> TransferEvent:
    """Decode a Starknet emitted event into a TransferEvent.

    ``from``, ``to`` and the token id halves are read from ``data`` when it
    holds four words (Cairo 0 contracts), else from ``keys[1:5]`` (Cairo 1
    contracts index them).

    Raises:
        EventDecodeError: Payload is not JSON or misses a required field
    """
    if isinstance(raw, (str, bytes)):
        try:
            raw = json.loads(raw)
        except json.JSONDecodeError as e:
            raise EventDecodeError(f"Transfer event is not valid JSON: {e}") from e

    if not isinstance(raw, dict):
        raise EventDecodeError(f"Transfer event must be an object, got {type(raw).__name__}")

    try:
        data = raw.get("data") or []
        keys = raw.get("keys") or []
        if len(data) >= 4:
            words = data[:4]
        elif len(keys) >= 5:
            words = keys[1:5]
        else:
            raise EventDecodeError(
                f"Transfer event carries {len(data)} data words and {len(keys)} keys"
            )

        return TransferEvent(
            block_number=int(raw["block_number"]),
            contract_address=format_felt(raw["from_address"]),
            transaction_hash=format_felt(raw["transaction_hash"]),
            from_address=format_felt(words[0]),
            to_address=format_felt(words[1]),
            token_id=TokenId.from_felts(words[2], words[3]),
        )
    except (KeyError, TypeError, ValueError) as e:
        raise EventDecodeError(f"Failed to decode Transfer event: {e}") from e


class TransferProcessor:
    """Processes one Transfer event to completion."""

    def __init__(
        self,
        rpc: ChainReader,
        uow_factory: UnitOfWorkFactory,
        metadata_fetcher: MetadataFetcher,
        uri_sanitizer: UriSanitizer = sanitize_uri,
        file_manager: FileManager | None = None,
    ):
        """Initialize processor with its collaborators.

        Args:
            rpc: Ledger reads (block headers, read-only contract calls)
            uow_factory: Factory of store transactions
            metadata_fetcher: HTTP client for metadata documents and images
            uri_sanitizer: Maps a token URI to (fetchable URI, original URI)
            file_manager: Optional storage for cached token images
        """
        self.rpc = rpc
        self.uow_factory = uow_factory
        self.metadata_fetcher = metadata_fetcher
        self.uri_sanitizer = uri_sanitizer
        self.file_manager = file_manager
        self.reconciler = CollectionReconciler(rpc, uow_factory)

    async def process(
        self,
        raw_event: dict[str, Any] | str | bytes,
        contract_type: ContractType | str,
    ) -> TransferResult:
        """Process a single Transfer event.

        Args:
            raw_event: Emitted event as returned by the node (dict or JSON)
            contract_type: Contract type decided by the upstream classifier

        Returns:
            TransferResult with resolved values and one outcome per write

        Raises:
            EventDecodeError: Event or contract type is malformed
            BlockFetchError: Block timestamp unavailable; retry the event later
        """
        try:
            contract_type = ContractType(contract_type)
        except ValueError as e:
            raise EventDecodeError(f"Unknown contract type: {contract_type!r}") from e

        event = decode_transfer_event(raw_event)
        log = logger.bind(
            contract_address=event.contract_address,
            token_id=str(event.token_id),
            block_number=event.block_number,
            tx_hash=event.transaction_hash,
        )

        timestamp = await self._get_block_timestamp(event.block_number)

        token_uri, owner = await asyncio.gather(
            resolve_token_uri(self.rpc, event.contract_address, event.token_id, event.block_number),
            resolve_owner(self.rpc, event.contract_address, event.token_id, event.block_number),
        )

        log.info("transfer.processing", token_uri=token_uri, owner=owner, timestamp=timestamp)

        result = TransferResult(event=event, timestamp=timestamp, token_uri=token_uri, owner=owner)

        result.outcomes["collection"] = await self.reconciler.update_collection_data(
            event.contract_address, contract_type, event.block_number
        )
        result.outcomes["transfer"] = await self._record_transfer(event, timestamp)

        if event.is_mint:
            log.info("transfer.mint_detected", token_uri=token_uri)
            await self._process_mint(result, contract_type)
        else:
            log.debug("transfer.not_mint", from_address=event.from_address)

        log.info(
            "transfer.processed",
            is_mint=event.is_mint,
            needs_retry=result.needs_retry,
            outcomes={name: _describe(o) for name, o in result.outcomes.items()},
        )
        return result

    async def _get_block_timestamp(self, block_number: int) -> int:
        try:
            block = await self.rpc.get_block_with_txs(block_number)
        except Exception as e:
            logger.error(
                "transfer.block_unavailable",
                block_number=block_number,
                error=str(e),
                error_type=type(e).__name__,
            )
            raise BlockFetchError(f"Failed to fetch block {block_number}: {e}") from e

        timestamp = block.get("timestamp")
        if isinstance(timestamp, bool) or not isinstance(timestamp, int):
            raise BlockFetchError(f"Block {block_number} has no usable timestamp: {timestamp!r}")
        return timestamp

    async def _record_transfer(self, event: TransferEvent, timestamp: int) -> WriteOutcome:
        transfer = TokenTransfer(
            collection_address=event.contract_address,
            padded_token_id=event.token_id.padded,
            from_address=event.from_address,
            to_address=event.to_address,
            timestamp=timestamp,
            block_number=event.block_number,
            transaction_hash=event.transaction_hash,
        )
        try:
            async with await self.uow_factory() as uow:
                inserted = await uow.token_transfers.add(transfer)
        except Exception as e:
            logger.error(
                "transfer.record_failed",
                contract_address=event.contract_address,
                tx_hash=event.transaction_hash,
                error=str(e),
                error_type=type(e).__name__,
            )
            return FailedRetryable(e)

        return APPLIED if inserted else SkippedBenign("transfer_already_recorded")

    async def _process_mint(self, result: TransferResult, contract_type: ContractType) -> None:
        event = result.event

        result.outcomes["latest_mint"] = await self.reconciler.reconcile_latest_mint(
            event.contract_address, result.timestamp
        )

        fetched = await self._fetch_metadata(event, result.token_uri)
        if fetched is not None:
            result.metadata = fetched.normalized

        result.outcomes["token"] = await self._save_token(result, fetched)
        result.outcomes["activity"] = await self._append_activity(result, contract_type)

        if self.file_manager is not None and result.metadata is not None:
            result.outcomes["image"] = await self._cache_image(event, result.metadata.image)

    async def _fetch_metadata(
        self, event: TransferEvent, token_uri: str | None
    ) -> FetchedMetadata | None:
        if token_uri is None:
            logger.info(
                "metadata.skipped", reason="unresolved_token_uri", tx_hash=event.transaction_hash
            )
            return None

        metadata_uri, initial_uri = self.uri_sanitizer(token_uri)
        if not metadata_uri:
            logger.info("metadata.skipped", reason="unfetchable_uri", token_uri=token_uri)
            return None

        try:
            return await self.metadata_fetcher.fetch(metadata_uri, initial_uri)
        except ServiceError as e:
            logger.warning(
                "metadata.unavailable",
                contract_address=event.contract_address,
                token_id=str(event.token_id),
                metadata_uri=metadata_uri,
                error=str(e),
                error_type=type(e).__name__,
            )
            return None

    async def _save_token(
        self, result: TransferResult, fetched: FetchedMetadata | None
    ) -> WriteOutcome:
        event = result.event
        token = Token(
            collection_address=event.contract_address,
            padded_token_id=event.token_id.padded,
            token_id=event.token_id.hex,
            token_uri=result.token_uri,
            owner=result.owner,
            mint_transaction_hash=event.transaction_hash,
            block_number_minted=event.block_number,
            raw_metadata=json.dumps(fetched.raw) if fetched is not None else None,
            normalized_metadata=fetched.normalized.model_dump() if fetched is not None else None,
        )
        try:
            async with await self.uow_factory() as uow:
                await uow.tokens.upsert(token)
        except Exception as e:
            logger.error(
                "token.save_failed",
                contract_address=event.contract_address,
                token_id=str(event.token_id),
                error=str(e),
                error_type=type(e).__name__,
            )
            return FailedRetryable(e)
        return APPLIED

    async def _append_activity(
        self, result: TransferResult, contract_type: ContractType
    ) -> WriteOutcome:
        event = result.event
        activity = CollectionActivity(
            address=event.contract_address,
            timestamp=result.timestamp,
            block_number=event.block_number,
            event_type=ActivityType.MINT,
            from_address=event.from_address,
            to_address=event.to_address,
            padded_token_id=event.token_id.padded,
            token_uri=result.token_uri,
            transaction_hash=event.transaction_hash,
            token_type=contract_type,
        )
        try:
            async with await self.uow_factory() as uow:
                inserted = await uow.activities.add(activity)
        except Exception as e:
            logger.error(
                "activity.append_failed",
                contract_address=event.contract_address,
                tx_hash=event.transaction_hash,
                error=str(e),
                error_type=type(e).__name__,
            )
            return FailedRetryable(e)

        return APPLIED if inserted else SkippedBenign("activity_already_logged")

    async def _cache_image(self, event: TransferEvent, image: str) -> WriteOutcome:
        """Copy the token image to file storage. Failures never ask for a retry."""
        if not image:
            return SkippedBenign("no_image")

        image_uri, _ = self.uri_sanitizer(image)
        if not image_uri:
            return SkippedBenign("unfetchable_image_uri")

        try:
            content, content_type = await self.metadata_fetcher.fetch_bytes(image_uri)
            location = await self.file_manager.save(  # type: ignore[union-attr]
                FileInfo(
                    name=event.token_id.padded,
                    content=content,
                    dir_path=event.contract_address,
                    content_type=content_type,
                )
            )
        except ServiceError as e:
            logger.warning(
                "image.cache_failed",
                contract_address=event.contract_address,
                token_id=str(event.token_id),
                image_uri=image_uri,
                error=str(e),
                error_type=type(e).__name__,
            )
            return SkippedBenign(f"image_cache_failed: {type(e).__name__}")

        logger.info("image.cached", contract_address=event.contract_address, location=location)
        return APPLIED
