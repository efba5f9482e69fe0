"""
RequestGraph Backend — Collection Store Adapter
=================================================

What:  Uniform CRUD surface over one named document or edge collection.
Why:   All five resources behave identically; only the collection name and
       whether it holds edges differ.
How:   Each instance is built per request around an injected AsyncSession.
       Every mutation flushes and commits before returning, so a successful
       call is durable. Storage exceptions are translated at this boundary.
Who:   Instantiated by the CRUD router factory and the pagination service.

Operation summary:
    list_all()                    every document, storage-native order
    get(key)                      NotFound if absent
    create(data)                  Conflict on duplicate _key
    replace(key, data, rev)       NotFound / Conflict (stale revision)
    patch(key, data, rev)         NotFound / Conflict, returns merged document
    delete(key)                   NotFound if absent (not idempotent)
    count(filters) / window(...)  primitives for paginated listing
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional

from sqlalchemy import delete, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import Select

from app.exceptions import ConflictError, NotFoundError
from app.models.document import DOCUMENT_KIND, EDGE_KIND, Document
from app.storage.documents import (
    edge_endpoints,
    merge_patch,
    new_key,
    split_system_attributes,
    to_entity,
    validate_key,
)
from app.storage.errors import translate_storage_error

logger = logging.getLogger(__name__)

Entity = Dict[str, Any]


class CollectionStore:
    """
    CRUD adapter bound to one collection.

    Args:
        session: Async database session (one per request)
        name:    Qualified collection name (see Settings.collection_name)
        kind:    "document" or "edge"; edge collections require _from/_to
    """

    def __init__(self, session: AsyncSession, name: str, kind: str = DOCUMENT_KIND):
        self.session = session
        self.name = name
        self.kind = kind

    @property
    def is_edge(self) -> bool:
        return self.kind == EDGE_KIND

    def entity(self, document: Document) -> Entity:
        return to_entity(document, self.kind)

    # ── Reads ─────────────────────────────────────────────────────────────

    async def list_all(self) -> List[Entity]:
        """Every document in the collection, in insertion order."""
        stmt = (
            select(Document)
            .where(Document.collection == self.name)
            .order_by(Document.seq)
        )
        try:
            result = await self.session.execute(stmt)
        except SQLAlchemyError as e:
            raise translate_storage_error(e, self.name) from e
        return [self.entity(doc) for doc in result.scalars().all()]

    async def get(self, key: str) -> Entity:
        return self.entity(await self._load(key))

    async def count(self, filters: Optional[Mapping[str, str]] = None) -> int:
        """Number of documents matching the exact-match filters."""
        stmt = self._filtered(select(func.count(Document.seq)), filters)
        try:
            result = await self.session.execute(stmt)
        except SQLAlchemyError as e:
            raise translate_storage_error(e, self.name) from e
        return result.scalar() or 0

    async def window(
        self,
        filters: Optional[Mapping[str, str]] = None,
        after_seq: Optional[int] = None,
        offset: int = 0,
        limit: int = 20,
    ) -> List[Document]:
        """
        One slice of the filtered collection in storage-native order.

        Returns stored rows (not entities) so callers can read `seq` for
        cursor construction.
        """
        stmt = self._filtered(select(Document), filters)
        if after_seq is not None:
            stmt = stmt.where(Document.seq > after_seq)
        stmt = stmt.order_by(Document.seq).offset(offset).limit(limit)
        try:
            result = await self.session.execute(stmt)
        except SQLAlchemyError as e:
            raise translate_storage_error(e, self.name) from e
        return list(result.scalars().all())

    # ── Writes ────────────────────────────────────────────────────────────

    async def create(self, data: Mapping[str, Any]) -> Entity:
        """
        Stores a new document.

        _key is taken from the data when present (validated), otherwise
        generated. _id and _rev in the data are ignored. For document
        collections _from/_to are ignored as well.
        """
        system, body = split_system_attributes(data)
        key = validate_key(system["_key"]) if system.get("_key") is not None else new_key()

        from_handle, to_handle = None, None
        if self.is_edge:
            from_handle, to_handle = edge_endpoints(system, required=True)

        document = Document(
            collection=self.name,
            key=key,
            from_handle=from_handle,
            to_handle=to_handle,
            body=body,
        )
        self.session.add(document)
        entity = await self._commit(document, key)
        logger.info("Created %s/%s (rev=%s)", self.name, key, entity["_rev"])
        return entity

    async def replace(
        self,
        key: str,
        data: Mapping[str, Any],
        expected_rev: Optional[str] = None,
    ) -> Entity:
        """
        Overwrites every user attribute of an existing document.

        The expected revision comes from the caller (If-Match) or from the
        _rev attribute in the data; when given it must match the stored one.
        """
        system, body = split_system_attributes(data)
        expected_rev = expected_rev or system.get("_rev")

        from_handle, to_handle = None, None
        if self.is_edge:
            from_handle, to_handle = edge_endpoints(system, required=True)

        document = await self._load(key)
        self._check_revision(document, expected_rev)

        document.body = body
        if self.is_edge:
            document.from_handle = from_handle
            document.to_handle = to_handle
        document.updated_at = datetime.now(timezone.utc)

        entity = await self._commit(document, key)
        logger.info("Replaced %s/%s (rev=%s)", self.name, key, entity["_rev"])
        return entity

    async def patch(
        self,
        key: str,
        data: Mapping[str, Any],
        expected_rev: Optional[str] = None,
    ) -> Entity:
        """Merges the supplied attributes and returns the full document."""
        system, body = split_system_attributes(data)
        expected_rev = expected_rev or system.get("_rev")

        from_handle, to_handle = None, None
        if self.is_edge:
            from_handle, to_handle = edge_endpoints(system, required=False)

        document = await self._load(key)
        self._check_revision(document, expected_rev)

        document.body = merge_patch(document.body or {}, body)
        if from_handle is not None:
            document.from_handle = from_handle
        if to_handle is not None:
            document.to_handle = to_handle
        document.updated_at = datetime.now(timezone.utc)

        entity = await self._commit(document, key)
        logger.info("Patched %s/%s (rev=%s)", self.name, key, entity["_rev"])
        return entity

    async def delete(self, key: str) -> None:
        stmt = delete(Document).where(
            Document.collection == self.name,
            Document.key == key,
        )
        try:
            result = await self.session.execute(stmt)
            if result.rowcount == 0:
                raise NotFoundError(resource=self.name, resource_id=key)
            await self.session.commit()
        except NotFoundError:
            await self.session.rollback()
            raise
        except SQLAlchemyError as e:
            await self.session.rollback()
            raise translate_storage_error(e, self.name, key) from e
        logger.info("Deleted %s/%s", self.name, key)

    # ── Internals ─────────────────────────────────────────────────────────

    def _filtered(self, stmt: Select, filters: Optional[Mapping[str, str]]) -> Select:
        stmt = stmt.where(Document.collection == self.name)
        for attribute, value in (filters or {}).items():
            stmt = stmt.where(Document.body[attribute].as_string() == value)
        return stmt

    async def _load(self, key: str) -> Document:
        stmt = select(Document).where(
            Document.collection == self.name,
            Document.key == key,
        )
        try:
            result = await self.session.execute(stmt)
        except SQLAlchemyError as e:
            raise translate_storage_error(e, self.name, key) from e

        document = result.scalar_one_or_none()
        if document is None:
            raise NotFoundError(resource=self.name, resource_id=key)
        return document

    def _check_revision(self, document: Document, expected_rev: Optional[str]) -> None:
        if expected_rev is not None and expected_rev != document.rev:
            raise ConflictError(
                message=f"Revision mismatch for {self.name}/{document.key}",
                context={
                    "collection": self.name,
                    "key": document.key,
                    "expected_rev": expected_rev,
                    "actual_rev": document.rev,
                },
            )

    async def _commit(self, document: Document, key: str) -> Entity:
        """Flushes the pending write, snapshots the entity, commits."""
        try:
            await self.session.flush()
            entity = self.entity(document)
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            raise translate_storage_error(e, self.name, key) from e
        return entity
