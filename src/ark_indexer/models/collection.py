"""Collection entity - one row per indexed token contract."""

from datetime import datetime
from enum import Enum
from typing import Optional

from sqlmodel import Field, SQLModel


class ContractType(str, Enum):
    """Token standard of a contract, decided upstream by the classifier."""

    ERC20 = "ERC20"  # fungible
    ERC721 = "ERC721"  # non-fungible
    ERC1155 = "ERC1155"  # multi-token


class Collection(SQLModel, table=True):
    """Collection holds descriptive fields derived from a token contract."""

    __tablename__ = "collections"  # type: ignore[assignment]

    address: str = Field(primary_key=True, max_length=66)
    contract_type: ContractType = Field(index=True)
    name: Optional[str] = Field(default=None)
    symbol: Optional[str] = Field(default=None)
    # Unix timestamp kept as text; rows written by older indexers may not parse
    latest_mint: Optional[str] = Field(default=None, max_length=32)
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)
