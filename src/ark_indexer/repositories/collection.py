"""Collection repository.

Provides data access for Collection entities, including the conditional
writes used to reconcile ``latest_mint`` without lost updates.
"""

from datetime import datetime

from sqlalchemy import func, select, update
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession

from ark_indexer.models.collection import Collection, ContractType


class CollectionRepository:
    """Repository for Collection entities."""

    def __init__(self, session: AsyncSession):
        """Initialize repository with database session.

        Args:
            session: SQLAlchemy async session for database operations
        """
        self.session = session

    async def get(self, address: str) -> Collection | None:
        """Retrieve collection by contract address."""
        result = await self.session.execute(
            select(Collection).where(Collection.address == address)  # type: ignore[arg-type]
        )
        return result.scalar_one_or_none()

    async def upsert(
        self,
        address: str,
        contract_type: ContractType,
        name: str | None,
        symbol: str | None,
    ) -> None:
        """Insert or update descriptive fields (last writer wins).

        ``name`` and ``symbol`` are coalesced with the stored values, so an
        unresolved read never erases a value resolved earlier.
        """
        now = datetime.utcnow()
        stmt = insert(Collection).values(
            address=address,
            contract_type=contract_type,
            name=name,
            symbol=symbol,
            created_at=now,
            updated_at=now,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["address"],
            set_={
                "contract_type": stmt.excluded.contract_type,
                "name": func.coalesce(stmt.excluded.name, Collection.name),
                "symbol": func.coalesce(stmt.excluded.symbol, Collection.symbol),
                "updated_at": now,
            },
        )
        await self.session.execute(stmt)
        await self.session.flush()

    async def set_latest_mint_if_unset(self, address: str, value: str) -> bool:
        """Set ``latest_mint`` only while it is still NULL.

        Returns:
            True if the row was updated, False if another writer got there first
        """
        result = await self.session.execute(
            update(Collection)
            .where(Collection.address == address, Collection.latest_mint.is_(None))  # type: ignore[arg-type,union-attr]
            .values(latest_mint=value, updated_at=datetime.utcnow())
        )
        await self.session.flush()
        return result.rowcount > 0  # type: ignore[attr-defined]

    async def compare_and_set_latest_mint(self, address: str, expected: str, value: str) -> bool:
        """Replace ``latest_mint`` only if it still equals ``expected``.

        Returns:
            True if the row was updated, False if the stored value changed meanwhile
        """
        result = await self.session.execute(
            update(Collection)
            .where(Collection.address == address, Collection.latest_mint == expected)  # type: ignore[arg-type]
            .values(latest_mint=value, updated_at=datetime.utcnow())
        )
        await self.session.flush()
        return result.rowcount > 0  # type: ignore[attr-defined]
