"""
RequestGraph Backend — Generic CRUD Router Factory
====================================================

What:  Builds the REST surface of one resource from its ResourceDefinition.
Why:   The five resources expose identical operations; only schemas,
       collection and documentation wording differ.
How:   build_crud_router() returns an APIRouter mounted at /api/<path> with:

    GET    ""            list all                    200
    GET    "/paginated"  filtered page (if enabled)  200 + pagination headers
    POST   ""            create                      201 + Location
    GET    "/{key}"      fetch one                   200 | 404
    PUT    "/{key}"      full replace                200 | 404 | 409
    PATCH  "/{key}"      partial merge               200 | 404 | 409
    DELETE "/{key}"      remove                      204 | 404

Routes stay THIN: they (de)serialize and call CollectionStore. Typed
failures raised by the store reach the global handlers in main.py.

Revisions:
    Every single-document response carries an ETag with the current _rev.
    PUT/PATCH accept the expected revision either as _rev in the body or as
    an If-Match header; a mismatch yields 409.
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Body, Depends, Header, Path, Query, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.database import get_db_session
from app.exceptions import ValidationError
from app.resources import ResourceDefinition
from app.schemas.common import ErrorResponse
from app.services.pagination import PageRequest, paginate
from app.storage.collection_store import CollectionStore

logger = logging.getLogger(__name__)

PAGINATED_SEGMENT = "paginated"


def _etag(entity: dict) -> str:
    return f'"{entity["_rev"]}"'


def _revision_from_header(if_match: Optional[str]) -> Optional[str]:
    if not if_match or if_match.strip() == "*":
        return None
    return if_match.strip().strip('"')


def build_crud_router(resource: ResourceDefinition, path: Optional[str] = None) -> APIRouter:
    """
    Create the router for one resource.

    Args:
        resource: Schemas, collection and wording for the resource
        path:     URL segment override (used for legacy mount aliases)

    Route names are "<resource.path>.<action>" so Location headers always
    point at the canonical mount, even when built from an alias router.
    """
    router = APIRouter(prefix=f"/api/{path or resource.path}", tags=[resource.tag])

    singular = resource.singular
    plural = resource.plural
    Entity = resource.response_model
    CreateBody = resource.create_model
    PatchBody = resource.patch_model

    def key_param():
        return Path(description=f"The key of the {singular}")

    not_found = {"description": f"The {singular} does not exist", "model": ErrorResponse}
    conflict = {
        "description": "Stale revision or concurrent modification",
        "model": ErrorResponse,
    }

    async def get_store(db: AsyncSession = Depends(get_db_session)) -> CollectionStore:
        return CollectionStore(
            db,
            settings.collection_name(resource.collection),
            resource.kind,
        )

    @router.get(
        "",
        name=f"{resource.path}.list",
        response_model=List[Entity],
        response_model_exclude_unset=True,
        summary=f"List all {plural}",
        description=f"Retrieves a list of all {plural}.",
    )
    async def list_entities(store: CollectionStore = Depends(get_store)):
        return await store.list_all()

    if resource.paginated:

        @router.get(
            f"/{PAGINATED_SEGMENT}",
            name=f"{resource.path}.paginated",
            response_model=List[Entity],
            response_model_exclude_unset=True,
            responses={400: {"description": "Invalid cursor", "model": ErrorResponse}},
            summary=f"Paginated list of all {plural}",
            description=(
                f"Retrieves a paginated list of {plural}, optionally filtered by exact name. "
                "Page with `page`, `offset`, or the opaque `cursor` from X-Next-Cursor "
                "(cursor wins over offset, offset over page). Totals are returned in "
                "X-Total-Count / X-Total-Pages and navigation in the Link header. "
                "The key \"paginated\" is reserved and cannot be used as a _key."
            ),
        )
        async def list_paginated(
            request: Request,
            response: Response,
            name: Optional[str] = Query(
                default=None,
                description=f"Only include {plural} whose name equals this value",
            ),
            per_page: int = Query(
                default=settings.default_page_size,
                ge=1,
                le=settings.max_page_size,
                alias="perPage",
                description="Items per page",
            ),
            page: int = Query(default=1, ge=1, description="One-based page number"),
            offset: Optional[int] = Query(
                default=None, ge=0, description="Zero-based offset (overrides page)"
            ),
            cursor: Optional[str] = Query(
                default=None,
                description="Continuation token from X-Next-Cursor (overrides offset and page)",
            ),
            store: CollectionStore = Depends(get_store),
        ):
            result = await paginate(
                store,
                PageRequest(per_page=per_page, page=page, offset=offset, cursor=cursor),
                filters={"name": name},
            )
            response.headers.update(result.headers(request.url))
            return result.items

    @router.post(
        "",
        name=f"{resource.path}.create",
        status_code=201,
        response_model=Entity,
        response_model_exclude_unset=True,
        responses={
            400: {"description": "Invalid key or edge handle", "model": ErrorResponse},
            409: {"description": f"The {singular} already exists", "model": ErrorResponse},
        },
        summary=f"Create a new {singular}",
        description=f"Creates a new {singular} from the request body and returns the saved document.",
    )
    async def create_entity(
        request: Request,
        response: Response,
        payload: CreateBody = Body(description=f"The {singular} to create."),
        store: CollectionStore = Depends(get_store),
    ):
        data = payload.model_dump(by_alias=True, exclude_unset=True)
        if resource.paginated and data.get("_key") == PAGINATED_SEGMENT:
            # GET /{key} could never reach it
            raise ValidationError(
                message=f"_key '{PAGINATED_SEGMENT}' is reserved for {plural}",
                field="_key",
            )
        entity = await store.create(data)
        response.headers["Location"] = str(
            request.url_for(f"{resource.path}.detail", key=entity["_key"])
        )
        response.headers["ETag"] = _etag(entity)
        return entity

    @router.get(
        "/{key}",
        name=f"{resource.path}.detail",
        response_model=Entity,
        response_model_exclude_unset=True,
        responses={404: not_found},
        summary=f"Fetch a {singular}",
        description=f"Retrieves a {singular} by its key.",
    )
    async def get_entity(
        response: Response,
        key: str = key_param(),
        store: CollectionStore = Depends(get_store),
    ):
        entity = await store.get(key)
        response.headers["ETag"] = _etag(entity)
        return entity

    @router.put(
        "/{key}",
        name=f"{resource.path}.replace",
        response_model=Entity,
        response_model_exclude_unset=True,
        responses={404: not_found, 409: conflict},
        summary=f"Replace a {singular}",
        description=(
            f"Replaces an existing {singular} with the request body and returns "
            "the new document."
        ),
    )
    async def replace_entity(
        response: Response,
        key: str = key_param(),
        payload: CreateBody = Body(description=f"The data to replace the {singular} with."),
        if_match: Optional[str] = Header(default=None, alias="If-Match"),
        store: CollectionStore = Depends(get_store),
    ):
        entity = await store.replace(
            key,
            payload.model_dump(by_alias=True, exclude_unset=True),
            expected_rev=_revision_from_header(if_match),
        )
        response.headers["ETag"] = _etag(entity)
        return entity

    @router.patch(
        "/{key}",
        name=f"{resource.path}.update",
        response_model=Entity,
        response_model_exclude_unset=True,
        responses={404: not_found, 409: conflict},
        summary=f"Update a {singular}",
        description=(
            f"Patches a {singular} with the request body and returns the updated document."
        ),
    )
    async def update_entity(
        response: Response,
        key: str = key_param(),
        payload: PatchBody = Body(description=f"The data to update the {singular} with."),
        if_match: Optional[str] = Header(default=None, alias="If-Match"),
        store: CollectionStore = Depends(get_store),
    ):
        entity = await store.patch(
            key,
            payload.model_dump(by_alias=True, exclude_unset=True),
            expected_rev=_revision_from_header(if_match),
        )
        response.headers["ETag"] = _etag(entity)
        return entity

    @router.delete(
        "/{key}",
        name=f"{resource.path}.delete",
        status_code=204,
        response_class=Response,
        responses={404: not_found},
        summary=f"Remove a {singular}",
        description=f"Deletes a {singular} from the database.",
    )
    async def delete_entity(
        key: str = key_param(),
        store: CollectionStore = Depends(get_store),
    ):
        await store.delete(key)
        return Response(status_code=204)

    return router
