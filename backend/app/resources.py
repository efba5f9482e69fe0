"""
RequestGraph Backend — Resource Registry
==========================================

What:  One ResourceDefinition per exposed collection.
Why:   The five resources differ only in collection name, kind, schemas and
       documentation wording. Routes, setup and teardown all read this
       registry, so adding a resource is a one-entry change.
"""

from dataclasses import dataclass
from typing import Tuple, Type

from pydantic import BaseModel

from app.models.document import DOCUMENT_KIND, EDGE_KIND
from app.schemas import entities


@dataclass(frozen=True)
class ResourceDefinition:
    """
    Attributes:
        path:           URL segment under /api (e.g. "augmentedRequests")
        collection:     Local collection name (qualified by Settings.collection_name)
        kind:           "document" or "edge"
        singular:       Human label used in summaries and error messages
        plural:         Human label for list endpoints
        create_model:   Body schema for POST and PUT
        patch_model:    Body schema for PATCH
        response_model: Schema of a stored entity
        paginated:      Expose GET /paginated (exact-match filter on name)
        aliases:        Extra URL segments served without OpenAPI entries
    """

    path: str
    collection: str
    kind: str
    singular: str
    plural: str
    create_model: Type[BaseModel]
    patch_model: Type[BaseModel]
    response_model: Type[BaseModel]
    paginated: bool = False
    aliases: Tuple[str, ...] = ()

    @property
    def tag(self) -> str:
        return self.plural.title()


REQUESTS = ResourceDefinition(
    path="requests",
    collection="requests",
    kind=DOCUMENT_KIND,
    singular="request",
    plural="requests",
    create_model=entities.RequestCreate,
    patch_model=entities.RequestPatch,
    response_model=entities.RequestResponse,
    paginated=True,
)

ITEMS = ResourceDefinition(
    path="items",
    collection="items",
    kind=DOCUMENT_KIND,
    singular="item",
    plural="items",
    create_model=entities.ItemCreate,
    patch_model=entities.ItemPatch,
    response_model=entities.ItemResponse,
)

AUGMENTED_REQUESTS = ResourceDefinition(
    path="augmentedRequests",
    collection="augmentedRequests",
    kind=DOCUMENT_KIND,
    singular="augmented request",
    plural="augmented requests",
    create_model=entities.AugmentedRequestCreate,
    patch_model=entities.AugmentedRequestPatch,
    response_model=entities.AugmentedRequestResponse,
    # Mount path used by earlier deployments
    aliases=("augmentedrequests",),
)

AUGMENTS = ResourceDefinition(
    path="augments",
    collection="augments",
    kind=EDGE_KIND,
    singular="augment",
    plural="augments",
    create_model=entities.AugmentCreate,
    patch_model=entities.EdgePatch,
    response_model=entities.AugmentResponse,
)

HAS_ITEM = ResourceDefinition(
    path="hasItem",
    collection="hasItem",
    kind=EDGE_KIND,
    singular="has-item relation",
    plural="has-item relations",
    create_model=entities.HasItemCreate,
    patch_model=entities.EdgePatch,
    response_model=entities.HasItemResponse,
    aliases=("hasitem",),
)

RESOURCES: Tuple[ResourceDefinition, ...] = (
    REQUESTS,
    ITEMS,
    AUGMENTED_REQUESTS,
    AUGMENTS,
    HAS_ITEM,
)
