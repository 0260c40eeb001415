from __future__ import annotations

from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, StrictStr


# -----------------------------------------------------------------------------
# HAL Links
# -----------------------------------------------------------------------------
class Link(BaseModel):
    href: StrictStr     # absolute or relative URL

    # templated, title, name, ... are kept but never interpreted
    model_config = ConfigDict(extra="allow")


class ResourceLinks(BaseModel):
    """The ``_links`` map of a resource. ``self`` is mandatory."""
    self_link: Link = Field(
        ...,
        alias="self",
        description="Canonical location of the resource, used as its origin"
    )

    model_config = ConfigDict(extra="allow", populate_by_name=True)


# -----------------------------------------------------------------------------
# HAL Resource
# -----------------------------------------------------------------------------
class HalResource(BaseModel):
    """
    Structural view of a HAL payload.

    Only the shape needed to trust a payload as cache-worthy is validated;
    every other field is carried through untouched.
    """
    links: ResourceLinks = Field(
        ...,
        alias="_links",
        description="Relation name -> link; must contain 'self'"
    )
    embedded: Optional[Dict[str, Any]] = Field(
        None,
        alias="_embedded",
        description="Relation name -> nested payload or list of payloads"
    )

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    @property
    def origin(self) -> str:
        return self.links.self_link.href
