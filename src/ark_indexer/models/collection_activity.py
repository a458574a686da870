"""CollectionActivity entity - append-only activity log per collection."""

from datetime import datetime
from enum import Enum
from typing import Optional
from uuid import UUID, uuid4

from sqlalchemy import BigInteger, Column, Text, UniqueConstraint
from sqlalchemy import Enum as SAEnum
from sqlmodel import Field, SQLModel

from ark_indexer.models.collection import ContractType


class ActivityType(str, Enum):
    MINT = "mint"
    TRANSFER = "transfer"


class CollectionActivity(SQLModel, table=True):
    """CollectionActivity rows are inserted once and never updated."""

    __tablename__ = "collection_activities"  # type: ignore[assignment]
    __table_args__ = (
        UniqueConstraint(
            "transaction_hash",
            "address",
            "padded_token_id",
            "event_type",
            name="uq_collection_activities_event",
        ),
    )

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    address: str = Field(max_length=66, index=True)
    timestamp: int = Field(sa_type=BigInteger, index=True)
    block_number: int = Field(sa_type=BigInteger)
    # Stored by value ("mint", "transfer")
    event_type: ActivityType = Field(
        sa_column=Column(
            SAEnum(
                ActivityType,
                name="activitytype",
                values_callable=lambda members: [m.value for m in members],
            ),
            nullable=False,
        )
    )
    from_address: str = Field(max_length=66)
    to_address: str = Field(max_length=66)
    padded_token_id: str = Field(max_length=78)
    token_uri: Optional[str] = Field(default=None, sa_column=Column(Text))
    transaction_hash: str = Field(max_length=66)
    token_type: ContractType
    created_at: datetime = Field(default_factory=datetime.utcnow)
