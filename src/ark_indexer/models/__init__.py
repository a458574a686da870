"""SQLModel database entities.

All models are imported here to ensure they're registered with SQLModel metadata
for Alembic autogenerate support.
"""

from ark_indexer.models.collection import Collection, ContractType
from ark_indexer.models.collection_activity import ActivityType, CollectionActivity
from ark_indexer.models.token import Token
from ark_indexer.models.token_transfer import TokenTransfer

__all__ = [
    "Collection",
    "ContractType",
    "Token",
    "TokenTransfer",
    "CollectionActivity",
    "ActivityType",
]
