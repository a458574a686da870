"""create_indexer_tables

Revision ID: 3f9c2a7d1e40
Revises:
Create Date: 2026-10-19 10:12:31.208114

"""

from typing import Sequence, Union

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "3f9c2a7d1e40"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

contract_type = postgresql.ENUM("ERC20", "ERC721", "ERC1155", name="contracttype")
activity_type = postgresql.ENUM("mint", "transfer", name="activitytype")


def upgrade() -> None:
    """Create collections, tokens, token_transfers and collection_activities."""
    bind = op.get_bind()
    contract_type.create(bind, checkfirst=True)
    activity_type.create(bind, checkfirst=True)

    op.create_table(
        "collections",
        sa.Column("address", sa.String(length=66), nullable=False),
        sa.Column(
            "contract_type",
            postgresql.ENUM(name="contracttype", create_type=False),
            nullable=False,
        ),
        sa.Column("name", sa.String(), nullable=True),
        sa.Column("symbol", sa.String(), nullable=True),
        # Unix timestamp kept as text; older rows may not parse
        sa.Column("latest_mint", sa.String(length=32), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("address"),
    )
    op.create_index("ix_collections_contract_type", "collections", ["contract_type"])

    op.create_table(
        "tokens",
        sa.Column("collection_address", sa.String(length=66), nullable=False),
        sa.Column("padded_token_id", sa.String(length=78), nullable=False),
        sa.Column("token_id", sa.String(length=64), nullable=False),
        sa.Column("token_uri", sa.Text(), nullable=True),
        sa.Column("owner", sa.String(length=66), nullable=False),
        sa.Column("mint_transaction_hash", sa.String(length=66), nullable=False),
        sa.Column("block_number_minted", sa.BigInteger(), nullable=False),
        sa.Column("raw_metadata", sa.Text(), nullable=True),
        sa.Column("normalized_metadata", sa.JSON(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("collection_address", "padded_token_id"),
    )
    op.create_index("ix_tokens_block_number_minted", "tokens", ["block_number_minted"])

    op.create_table(
        "token_transfers",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("collection_address", sa.String(length=66), nullable=False),
        sa.Column("padded_token_id", sa.String(length=78), nullable=False),
        sa.Column("from_address", sa.String(length=66), nullable=False),
        sa.Column("to_address", sa.String(length=66), nullable=False),
        sa.Column("timestamp", sa.BigInteger(), nullable=False),
        sa.Column("block_number", sa.BigInteger(), nullable=False),
        sa.Column("transaction_hash", sa.String(length=66), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "collection_address",
            "padded_token_id",
            "transaction_hash",
            name="uq_token_transfers_token_tx",
        ),
    )
    op.create_index(
        "ix_token_transfers_collection_address", "token_transfers", ["collection_address"]
    )
    op.create_index("ix_token_transfers_padded_token_id", "token_transfers", ["padded_token_id"])

    op.create_table(
        "collection_activities",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("address", sa.String(length=66), nullable=False),
        sa.Column("timestamp", sa.BigInteger(), nullable=False),
        sa.Column("block_number", sa.BigInteger(), nullable=False),
        sa.Column(
            "event_type",
            postgresql.ENUM(name="activitytype", create_type=False),
            nullable=False,
        ),
        sa.Column("from_address", sa.String(length=66), nullable=False),
        sa.Column("to_address", sa.String(length=66), nullable=False),
        sa.Column("padded_token_id", sa.String(length=78), nullable=False),
        sa.Column("token_uri", sa.Text(), nullable=True),
        sa.Column("transaction_hash", sa.String(length=66), nullable=False),
        sa.Column(
            "token_type",
            postgresql.ENUM(name="contracttype", create_type=False),
            nullable=False,
        ),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "transaction_hash",
            "address",
            "padded_token_id",
            "event_type",
            name="uq_collection_activities_event",
        ),
    )
    op.create_index("ix_collection_activities_address", "collection_activities", ["address"])
    op.create_index("ix_collection_activities_timestamp", "collection_activities", ["timestamp"])


def downgrade() -> None:
    """Drop indexer tables and enum types."""
    op.drop_table("collection_activities")
    op.drop_table("token_transfers")
    op.drop_table("tokens")
    op.drop_table("collections")

    bind = op.get_bind()
    activity_type.drop(bind, checkfirst=True)
    contract_type.drop(bind, checkfirst=True)
