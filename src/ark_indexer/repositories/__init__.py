"""Repository layer for data access.

Repositories provide data access methods for each entity, encapsulating
SQL statements and conflict handling.
"""

from ark_indexer.repositories.collection import CollectionRepository
from ark_indexer.repositories.collection_activity import CollectionActivityRepository
from ark_indexer.repositories.token import TokenRepository
from ark_indexer.repositories.token_transfer import TokenTransferRepository

__all__ = [
    "CollectionRepository",
    "TokenRepository",
    "TokenTransferRepository",
    "CollectionActivityRepository",
]
