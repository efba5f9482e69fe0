"""
RequestGraph Backend — Collection Setup & Teardown
====================================================

What:  Creates and drops the five named collections.
Why:   Collections must exist before the API can store documents; removing
       the service must leave no data behind.
How:   setup: create the backing tables if missing (checkfirst), then
              register every collection from the resource registry.
       teardown: delete every document of each collection, then the
              collection itself. The tables stay; Alembic owns them.
Who:   `requestgraph setup|teardown` CLI, and the app lifespan when
       AUTO_SETUP_COLLECTIONS is enabled. Never called per request.

Idempotency:
    setup twice → second run creates nothing. In production an existing
    collection is reported with a warning and left untouched.
    teardown twice → second run drops nothing.
"""

import logging
from typing import Iterable, List

from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker

from app.config import Settings, settings
from app.database import Base
from app.models.document import Collection, Document
from app.resources import RESOURCES, ResourceDefinition

logger = logging.getLogger(__name__)


async def setup_collections(
    engine: AsyncEngine,
    config: Settings = settings,
    resources: Iterable[ResourceDefinition] = RESOURCES,
) -> List[str]:
    """
    Ensure tables and collections exist.

    Returns:
        Qualified names of the collections created by this call
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    created: List[str] = []
    session_factory = async_sessionmaker(engine, expire_on_commit=False)
    async with session_factory() as session:
        for resource in resources:
            name = config.collection_name(resource.collection)
            existing = await session.get(Collection, name)
            if existing is None:
                session.add(Collection(name=name, kind=resource.kind))
                created.append(name)
                logger.info("Creating %s collection %s", resource.kind, name)
            elif existing.kind != resource.kind:
                logger.warning(
                    "collection %s exists as a %s collection, expected %s. Leaving it untouched.",
                    name, existing.kind, resource.kind,
                )
            elif config.is_production:
                logger.warning("collection %s already exists. Leaving it untouched.", name)
        await session.commit()

    return created


async def teardown_collections(
    engine: AsyncEngine,
    config: Settings = settings,
    resources: Iterable[ResourceDefinition] = RESOURCES,
) -> List[str]:
    """
    Drop every collection and its documents.

    Returns:
        Qualified names of the collections that existed and were dropped
    """
    dropped: List[str] = []
    session_factory = async_sessionmaker(engine, expire_on_commit=False)
    async with session_factory() as session:
        for resource in resources:
            name = config.collection_name(resource.collection)
            removed = await session.execute(delete(Document).where(Document.collection == name))
            result = await session.execute(delete(Collection).where(Collection.name == name))
            if result.rowcount:
                dropped.append(name)
                logger.info("Dropped collection %s (%d documents)", name, removed.rowcount)
        await session.commit()

    return dropped
