"""Token repository."""

from datetime import datetime

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession

from ark_indexer.models.token import Token

_KEY_COLUMNS = ("collection_address", "padded_token_id")


class TokenRepository:
    """Repository for Token entities keyed by (collection, padded token id)."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get(self, collection_address: str, padded_token_id: str) -> Token | None:
        result = await self.session.execute(
            select(Token).where(
                Token.collection_address == collection_address,  # type: ignore[arg-type]
                Token.padded_token_id == padded_token_id,  # type: ignore[arg-type]
            )
        )
        return result.scalar_one_or_none()

    async def upsert(self, token: Token) -> Token:
        """Insert the token, or overwrite every non-key column (idempotent put).

        ``created_at`` keeps its first value.
        """
        values = token.model_dump()
        values["updated_at"] = datetime.utcnow()

        stmt = insert(Token).values(**values)
        stmt = stmt.on_conflict_do_update(
            index_elements=list(_KEY_COLUMNS),
            set_={
                column: stmt.excluded[column]
                for column in values
                if column not in _KEY_COLUMNS and column != "created_at"
            },
        )
        await self.session.execute(stmt)
        await self.session.flush()
        return token

    async def list_by_collection(self, collection_address: str, limit: int = 100) -> list[Token]:
        """Tokens of a collection in token id order (padded ids sort numerically)."""
        result = await self.session.execute(
            select(Token)
            .where(Token.collection_address == collection_address)  # type: ignore[arg-type]
            .order_by(Token.padded_token_id.asc())  # type: ignore[attr-defined]
            .limit(limit)
        )
        return list(result.scalars().all())
