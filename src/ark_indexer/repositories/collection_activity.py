"""CollectionActivity repository (append-only)."""

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession

from ark_indexer.models.collection_activity import CollectionActivity


class CollectionActivityRepository:
    """Repository for CollectionActivity entities.

    Exposes no update or delete: activity rows are immutable once written.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def add(self, activity: CollectionActivity) -> bool:
        """Append an activity row.

        Returns:
            True if inserted, False if the same event was already logged
        """
        stmt = (
            insert(CollectionActivity)
            .values(**activity.model_dump())
            .on_conflict_do_nothing(constraint="uq_collection_activities_event")
        )
        result = await self.session.execute(stmt)
        await self.session.flush()
        return result.rowcount > 0  # type: ignore[attr-defined]

    async def list_by_collection(self, address: str, limit: int = 100) -> list[CollectionActivity]:
        """Most recent activity of a collection first."""
        result = await self.session.execute(
            select(CollectionActivity)
            .where(CollectionActivity.address == address)  # type: ignore[arg-type]
            .order_by(CollectionActivity.timestamp.desc())  # type: ignore[attr-defined]
            .limit(limit)
        )
        return list(result.scalars().all())
