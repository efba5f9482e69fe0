"""
RequestGraph Backend — Document Store ORM Models
==================================================

What:  ORM models for the two tables that realise the document/edge store.
Why:   Every resource is a schemaless document in a named collection; the
       relational schema only needs to know about collections and documents.
How:   `collections` registers each named collection and its kind;
       `documents` holds one row per document with its system attributes
       in columns and the user attributes in a JSON body.
Who:   Queried by CollectionStore; created by `requestgraph setup` and by
       Alembic migration 001.

Table Design Rationale:
    - seq: autoincrement surrogate key; defines storage-native order and is
      what the pagination cursor encodes
    - (collection, key) unique: the collection-unique _key invariant
    - rev: opaque token regenerated on every write; mapped as the ORM
      version column so stale writes are detected by the UPDATE itself
    - from_handle / to_handle: edge endpoints, NULL for plain documents.
      No foreign key to the endpoint document — dangling edges are allowed.
    - body: JSON (portable: JSONB-compatible on PostgreSQL, TEXT on SQLite)
"""

import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from sqlalchemy import (
    JSON,
    BigInteger,
    ForeignKey,
    Index,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.types import TIMESTAMP

from app.database import Base

DOCUMENT_KIND = "document"
EDGE_KIND = "edge"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_revision(previous: Optional[str] = None) -> str:
    """Opaque revision token; a fresh one is drawn on every INSERT/UPDATE."""
    return uuid.uuid4().hex[:16]


class Collection(Base):
    """
    A named collection of documents.

    Lifecycle:
        Created by `requestgraph setup` (idempotent), dropped by
        `requestgraph teardown` together with all of its documents.
    """

    __tablename__ = "collections"

    name: Mapped[str] = mapped_column(String(255), primary_key=True)

    # 'document' or 'edge'
    kind: Mapped[str] = mapped_column(String(16), nullable=False, default=DOCUMENT_KIND)

    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        default=_utcnow,
    )

    def __repr__(self) -> str:
        return f"<Collection(name='{self.name}', kind='{self.kind}')>"


class Document(Base):
    """
    One stored document (or edge) of a collection.

    Query Patterns:
        - Get by key:   WHERE collection = :c AND key = :k  → unique index
        - List all:     WHERE collection = :c ORDER BY seq
        - Page window:  WHERE collection = :c [AND body.name = :n]
                        AND seq > :cursor ORDER BY seq LIMIT :n
    """

    __tablename__ = "documents"

    # BigInteger on PostgreSQL; SQLite only autoincrements INTEGER PRIMARY KEY
    seq: Mapped[int] = mapped_column(
        BigInteger().with_variant(Integer, "sqlite"),
        primary_key=True,
        autoincrement=True,
    )

    collection: Mapped[str] = mapped_column(
        String(255),
        ForeignKey("collections.name", ondelete="CASCADE"),
        nullable=False,
    )

    key: Mapped[str] = mapped_column(String(254), nullable=False)

    rev: Mapped[str] = mapped_column(String(32), nullable=False)

    from_handle: Mapped[Optional[str]] = mapped_column(String(512), nullable=True)
    to_handle: Mapped[Optional[str]] = mapped_column(String(512), nullable=True)

    body: Mapped[Dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)

    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        default=_utcnow,
    )
    updated_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        default=_utcnow,
    )

    __table_args__ = (
        UniqueConstraint("collection", "key", name="uq_documents_collection_key"),
        Index("idx_documents_collection_seq", "collection", "seq"),
        Index("idx_documents_from_handle", "from_handle"),
        Index("idx_documents_to_handle", "to_handle"),
    )

    # Optimistic concurrency: every ORM UPDATE is issued as
    # "... WHERE seq = :seq AND rev = :loaded_rev" and a zero rowcount
    # raises StaleDataError, which the store reports as a conflict.
    __mapper_args__ = {
        "version_id_col": rev,
        "version_id_generator": new_revision,
    }

    def __repr__(self) -> str:
        return (
            f"<Document(collection='{self.collection}', key='{self.key}', "
            f"rev='{self.rev}')>"
        )
