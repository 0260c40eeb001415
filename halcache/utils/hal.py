from __future__ import annotations

from typing import Any, Mapping, Optional

from pydantic import ValidationError

from halcache.errors import InvalidResource, LinkNotFound
from halcache.models.hateoas import HalResource


# -----------------------------------------------------------------------------
# Validation
# -----------------------------------------------------------------------------
def parse_resource(obj: Any) -> Optional[HalResource]:
    """Return the structural view of ``obj``, or None if it is not a resource."""
    if not isinstance(obj, Mapping):
        return None
    try:
        return HalResource.model_validate(obj)
    except ValidationError:
        return None


def implements_resource(obj: Any) -> bool:
    return parse_resource(obj) is not None


def require_resource(obj: Any, url: Optional[str] = None) -> dict:
    if not implements_resource(obj):
        raise InvalidResource(
            f"Response from '{url}' is not a resource." if url else "Payload is not a resource.",
            url=url,
        )
    return obj


# -----------------------------------------------------------------------------
# Names
# -----------------------------------------------------------------------------
def resolve_embedded_name(name: str, rel: str) -> str:
    return f"{name}@{rel}"


def resolve_link_name(name: str, rel: str) -> str:
    return f"{name}#{rel}"


# -----------------------------------------------------------------------------
# Payload access
# -----------------------------------------------------------------------------
def self_link(payload: Mapping[str, Any]) -> str:
    return payload["_links"]["self"]["href"]


def get_link(payload: Mapping[str, Any], rel: str) -> str:
    link = payload.get("_links", {}).get(rel)
    if link and "href" in link:
        return link["href"]
    raise LinkNotFound(rel)


def has_link(payload: Mapping[str, Any], rel: str) -> bool:
    return rel in payload.get("_links", {})


def get_embedded(payload: Mapping[str, Any], rel: str, default: Any = None) -> Any:
    embedded = payload.get("_embedded")
    if not embedded:
        return default
    value = embedded.get(rel)
    if value is None:
        return default
    return value


def resolve_base_url(url: str) -> str:
    """Strip query string and fragment."""
    return url.split("#", 1)[0].split("?", 1)[0]
