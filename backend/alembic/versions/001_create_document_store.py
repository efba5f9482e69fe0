"""Create document store tables

Revision ID: 001
Revises: None
Create Date: 2026-10-19 00:00:00.000000+00:00

What:  Creates `collections` and `documents`, the two tables behind every
       named document and edge collection.
How:   Portable column types (JSON, TIMESTAMP WITH TIME ZONE) so the same
       revision runs on PostgreSQL and SQLite.

Rollback: downgrade() drops both tables (all documents are lost).
"""

from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

# revision identifiers
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create both tables; see app/models/document.py for column docs."""
    op.create_table(
        "collections",
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column(
            "kind",
            sa.String(16),
            nullable=False,
            comment="document or edge",
        ),
        sa.Column(
            "created_at",
            sa.TIMESTAMP(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("name"),
    )

    op.create_table(
        "documents",
        # Storage-native order and pagination cursor
        sa.Column(
            "seq",
            sa.BigInteger().with_variant(sa.Integer(), "sqlite"),
            autoincrement=True,
            nullable=False,
        ),
        sa.Column("collection", sa.String(255), nullable=False),
        sa.Column("key", sa.String(254), nullable=False, comment="_key, unique per collection"),
        sa.Column("rev", sa.String(32), nullable=False, comment="_rev, replaced on every write"),
        sa.Column("from_handle", sa.String(512), nullable=True, comment="_from (edges only)"),
        sa.Column("to_handle", sa.String(512), nullable=True, comment="_to (edges only)"),
        sa.Column("body", sa.JSON(), nullable=False),
        sa.Column(
            "created_at",
            sa.TIMESTAMP(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.TIMESTAMP(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("seq"),
        sa.ForeignKeyConstraint(["collection"], ["collections.name"], ondelete="CASCADE"),
        sa.UniqueConstraint("collection", "key", name="uq_documents_collection_key"),
    )

    op.create_index("idx_documents_collection_seq", "documents", ["collection", "seq"])
    op.create_index("idx_documents_from_handle", "documents", ["from_handle"])
    op.create_index("idx_documents_to_handle", "documents", ["to_handle"])


def downgrade() -> None:
    """Drop both tables. Destructive."""
    op.drop_index("idx_documents_to_handle", table_name="documents")
    op.drop_index("idx_documents_from_handle", table_name="documents")
    op.drop_index("idx_documents_collection_seq", table_name="documents")
    op.drop_table("documents")
    op.drop_table("collections")
