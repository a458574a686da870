"""TokenTransfer repository."""

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession

from ark_indexer.models.token_transfer import TokenTransfer


class TokenTransferRepository:
    """Repository for TokenTransfer entities.

    Inserts are idempotent: a transfer already recorded for the same token and
    transaction is left untouched.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def add(self, transfer: TokenTransfer) -> bool:
        """Record a transfer.

        Returns:
            True if a new row was inserted, False if it was already recorded
        """
        stmt = (
            insert(TokenTransfer)
            .values(**transfer.model_dump())
            .on_conflict_do_nothing(constraint="uq_token_transfers_token_tx")
        )
        result = await self.session.execute(stmt)
        await self.session.flush()
        return result.rowcount > 0  # type: ignore[attr-defined]

    async def list_for_token(
        self, collection_address: str, padded_token_id: str
    ) -> list[TokenTransfer]:
        """Transfers of one token, oldest first."""
        result = await self.session.execute(
            select(TokenTransfer)
            .where(
                TokenTransfer.collection_address == collection_address,  # type: ignore[arg-type]
                TokenTransfer.padded_token_id == padded_token_id,  # type: ignore[arg-type]
            )
            .order_by(TokenTransfer.block_number.asc(), TokenTransfer.timestamp.asc())  # type: ignore[attr-defined]
        )
        return list(result.scalars().all())
