from .resource import Resource
from .collection import CollectionResource
from .pageable import PageableResource

__all__ = ["Resource", "CollectionResource", "PageableResource"]
