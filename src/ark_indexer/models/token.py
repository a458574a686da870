"""Token entity - a minted token with its resolved metadata."""

from datetime import datetime
from typing import Optional

from sqlalchemy import JSON, BigInteger, Column, Text
from sqlmodel import Field, SQLModel


class Token(SQLModel, table=True):
    """Token is keyed by (collection address, padded token id)."""

    __tablename__ = "tokens"  # type: ignore[assignment]

    collection_address: str = Field(primary_key=True, max_length=66)
    padded_token_id: str = Field(primary_key=True, max_length=78)
    token_id: str = Field(max_length=64)  # lowercase hex, unpadded
    token_uri: Optional[str] = Field(default=None, sa_column=Column(Text))
    owner: str = Field(default="", max_length=66)
    mint_transaction_hash: str = Field(max_length=66)
    block_number_minted: int = Field(sa_type=BigInteger, index=True)
    raw_metadata: Optional[str] = Field(default=None, sa_column=Column(Text))
    normalized_metadata: Optional[dict] = Field(default=None, sa_column=Column(JSON))
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)
