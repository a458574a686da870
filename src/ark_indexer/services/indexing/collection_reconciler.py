"""Collection reconciliation: descriptive fields and the latest-mint marker."""

import structlog

from ark_indexer.models.collection import ContractType
from ark_indexer.services.exceptions import ConcurrentUpdateError
from ark_indexer.services.indexing.results import (
    APPLIED,
    FailedRetryable,
    SkippedBenign,
    WriteOutcome,
)
from ark_indexer.services.indexing.uri_resolver import is_unresolved
from ark_indexer.services.starknet.encoding import decode_string
from ark_indexer.services.starknet.rpc import ChainReader
from ark_indexer.uow import UnitOfWorkFactory

logger = structlog.get_logger()

MAX_CAS_ATTEMPTS = 3


def should_replace_latest_mint(existing: int, new: int) -> bool:
    """Decide whether a stored ``latest_mint`` gives way to a new mint timestamp.

    The stored value is replaced only when it is greater than the new one,
    so it tracks the earliest mint even though the field name suggests the
    latest; change it here and nowhere else.

    Collections indexed by the previous indexer never moved once set: on
    this branch it wrote the stored value back instead of the new one.
    Returning False for every stored value reproduces that.
    """
    return existing > new


class CollectionReconciler:
    """Maintains per-collection derived fields."""

    def __init__(self, rpc: ChainReader, uow_factory: UnitOfWorkFactory):
        self.rpc = rpc
        self.uow_factory = uow_factory

    async def _read_string(self, address: str, entry_point: str, block_number: int) -> str | None:
        try:
            words = await self.rpc.call_contract(address, entry_point, [], block_number)
            value = decode_string(words)
        except Exception as e:
            logger.debug(
                "collection.property_unavailable",
                contract_address=address,
                entry_point=entry_point,
                error=str(e),
            )
            return None
        return None if is_unresolved(value) else value

    async def update_collection_data(
        self,
        address: str,
        contract_type: ContractType,
        block_number: int,
    ) -> WriteOutcome:
        """Upsert contract type, name and symbol of a collection.

        Name and symbol are read from the contract only while one of them is
        still unknown.
        """
        try:
            async with await self.uow_factory() as uow:
                collection = await uow.collections.get(address)

            name = symbol = None
            if collection is None or collection.name is None or collection.symbol is None:
                name = await self._read_string(address, "name", block_number)
                symbol = await self._read_string(address, "symbol", block_number)

            async with await self.uow_factory() as uow:
                await uow.collections.upsert(address, contract_type, name, symbol)

        except Exception as e:
            logger.error(
                "collection.update_failed",
                contract_address=address,
                error=str(e),
                error_type=type(e).__name__,
            )
            return FailedRetryable(e)

        logger.debug(
            "collection.updated",
            contract_address=address,
            contract_type=contract_type.value,
            name=name,
            symbol=symbol,
        )
        return APPLIED

    async def reconcile_latest_mint(self, address: str, timestamp: int) -> WriteOutcome:
        """Reconcile ``latest_mint`` with a newly observed mint timestamp.

        - unset: set to ``timestamp``
        - unparseable: logged and left untouched
        - otherwise: replaced when ``should_replace_latest_mint`` says so

        Every write is conditional on the value just read; a lost race
        re-reads and tries again.
        """
        try:
            for attempt in range(1, MAX_CAS_ATTEMPTS + 1):
                async with await self.uow_factory() as uow:
                    collection = await uow.collections.get(address)
                    if collection is None:
                        logger.info("collection.not_found", contract_address=address)
                        return SkippedBenign("collection_not_found")

                    stored = collection.latest_mint
                    if stored is None:
                        if await uow.collections.set_latest_mint_if_unset(address, str(timestamp)):
                            return APPLIED
                        logger.debug("collection.latest_mint_race", attempt=attempt)
                        continue

                    try:
                        existing = int(stored)
                    except ValueError:
                        logger.warning(
                            "collection.latest_mint_unparseable",
                            contract_address=address,
                            latest_mint=stored,
                        )
                        return SkippedBenign("unparseable_latest_mint")

                    if not should_replace_latest_mint(existing, timestamp):
                        return SkippedBenign("latest_mint_kept")

                    if await uow.collections.compare_and_set_latest_mint(
                        address, stored, str(timestamp)
                    ):
                        return APPLIED
                    logger.debug("collection.latest_mint_race", attempt=attempt)

        except Exception as e:
            logger.error(
                "collection.latest_mint_failed",
                contract_address=address,
                error=str(e),
                error_type=type(e).__name__,
            )
            return FailedRetryable(e)

        logger.warning(
            "collection.latest_mint_contended",
            contract_address=address,
            attempts=MAX_CAS_ATTEMPTS,
        )
        return FailedRetryable(
            ConcurrentUpdateError(
                f"latest_mint of {address} changed during {MAX_CAS_ATTEMPTS} attempts"
            )
        )
