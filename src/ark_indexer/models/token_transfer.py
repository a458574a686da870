"""TokenTransfer entity - every observed ownership change of a token."""

from uuid import UUID, uuid4

from sqlalchemy import BigInteger, UniqueConstraint
from sqlmodel import Field, SQLModel


class TokenTransfer(SQLModel, table=True):
    """TokenTransfer records one Transfer event for one token.

    (collection_address, padded_token_id, transaction_hash) identifies the
    transfer, so replaying an event never duplicates it.
    """

    __tablename__ = "token_transfers"  # type: ignore[assignment]
    __table_args__ = (
        UniqueConstraint(
            "collection_address",
            "padded_token_id",
            "transaction_hash",
            name="uq_token_transfers_token_tx",
        ),
    )

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    collection_address: str = Field(max_length=66, index=True)
    padded_token_id: str = Field(max_length=78, index=True)
    from_address: str = Field(max_length=66)
    to_address: str = Field(max_length=66)
    timestamp: int = Field(sa_type=BigInteger)
    block_number: int = Field(sa_type=BigInteger)
    transaction_hash: str = Field(max_length=66)
