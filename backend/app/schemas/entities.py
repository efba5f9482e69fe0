"""
RequestGraph Backend — Entity Schemas
=======================================

What:  Pydantic models for the five resources: what clients may send on
       create/replace (Create), on patch (Patch), and what they get back
       (Response).
Why:   Request validation plus OpenAPI documentation per resource.
How:   System attributes use their wire names via aliases (_key, _id, _rev,
       _from, _to). Every model allows extra attributes: documents are
       schemaless beyond the declared fields, and extras are stored and
       returned verbatim.

Model families:
    Create    required fields enforced (name; _from/_to for edges)
    Patch     every field optional — only supplied attributes are merged
    Response  system attributes always present, user fields as stored
"""

from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field

# Only the wire names (_key, _rev, _from, _to) bind system fields; a plain
# "key" or "to" attribute is user data
_ENTITY_CONFIG = ConfigDict(extra="allow")


# ══════════════════════════════════════════════════════════════════════════
# System attributes
# ══════════════════════════════════════════════════════════════════════════


class DocumentInput(BaseModel):
    """Attributes a client may set on any document."""

    model_config = _ENTITY_CONFIG

    key: Optional[str] = Field(
        default=None,
        alias="_key",
        description="Optional client-chosen key. Generated when omitted.",
    )
    rev: Optional[str] = Field(
        default=None,
        alias="_rev",
        description="Expected current revision (replace/patch only). Stale values yield 409.",
    )


class EdgeInput(DocumentInput):
    """Edge documents must name both endpoints."""

    from_: str = Field(
        alias="_from",
        description="Handle of the source document, e.g. 'requests/123'",
    )
    to: str = Field(
        alias="_to",
        description="Handle of the target document, e.g. 'augmentedRequests/456'",
    )


class EdgePatch(DocumentInput):
    from_: Optional[str] = Field(default=None, alias="_from", description="New source handle")
    to: Optional[str] = Field(default=None, alias="_to", description="New target handle")


class DocumentMeta(BaseModel):
    """System attributes returned with every stored document."""

    model_config = _ENTITY_CONFIG

    key: str = Field(alias="_key", description="Collection-unique key")
    id: str = Field(alias="_id", description="Document handle '<collection>/<key>'")
    rev: str = Field(alias="_rev", description="Revision token, changes on every write")


class EdgeMeta(DocumentMeta):
    from_: str = Field(alias="_from", description="Source document handle")
    to: str = Field(alias="_to", description="Target document handle")


# ══════════════════════════════════════════════════════════════════════════
# Requests
# ══════════════════════════════════════════════════════════════════════════


class RequestCreate(DocumentInput):
    name: str = Field(min_length=1, max_length=255, description="The name of the request")
    description: Optional[str] = Field(default=None, description="A description of the request")

    model_config = ConfigDict(
        extra="allow",
        json_schema_extra={"examples": [{"name": "Onboarding", "description": "New hire kit"}]},
    )


class RequestPatch(DocumentInput):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = None


class RequestResponse(DocumentMeta):
    name: Optional[str] = Field(default=None, description="The name of the request")
    description: Optional[str] = Field(default=None, description="A description of the request")


# ══════════════════════════════════════════════════════════════════════════
# Items
# ══════════════════════════════════════════════════════════════════════════


class ItemCreate(DocumentInput):
    name: str = Field(min_length=1, max_length=255, description="The name of the item")
    description: Optional[str] = Field(default=None, description="A description of the item")

    model_config = ConfigDict(
        extra="allow",
        json_schema_extra={"examples": [{"name": "Sword", "description": "Sharp"}]},
    )


class ItemPatch(DocumentInput):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = None


class ItemResponse(DocumentMeta):
    name: Optional[str] = Field(default=None, description="The name of the item")
    description: Optional[str] = Field(default=None, description="A description of the item")


# ══════════════════════════════════════════════════════════════════════════
# Augmented requests
# ══════════════════════════════════════════════════════════════════════════


class AugmentedRequestCreate(DocumentInput):
    name: str = Field(
        min_length=1, max_length=255, description="The name of the augmented request"
    )
    description: Optional[str] = Field(
        default=None, description="A description of the augmented request"
    )
    augmentation: Optional[Dict[str, Any]] = Field(
        default=None,
        description="Free-form metadata describing how the request was augmented",
    )


class AugmentedRequestPatch(DocumentInput):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = None
    augmentation: Optional[Dict[str, Any]] = None


class AugmentedRequestResponse(DocumentMeta):
    name: Optional[str] = Field(default=None, description="The name of the augmented request")
    description: Optional[str] = None
    augmentation: Optional[Dict[str, Any]] = None


# ══════════════════════════════════════════════════════════════════════════
# Edges: augments, hasItem
# ══════════════════════════════════════════════════════════════════════════


class AugmentCreate(EdgeInput):
    model_config = ConfigDict(
        extra="allow",
        json_schema_extra={
            "examples": [{"_from": "requests/1", "_to": "augmentedRequests/2"}]
        },
    )


class AugmentResponse(EdgeMeta):
    pass


class HasItemCreate(EdgeInput):
    model_config = ConfigDict(
        extra="allow",
        json_schema_extra={"examples": [{"_from": "requests/1", "_to": "items/7"}]},
    )


class HasItemResponse(EdgeMeta):
    pass
