from __future__ import annotations

from typing import TYPE_CHECKING, Any, Callable, List, Optional

from halcache.errors import ConstructorNotConfigured
from halcache.services.channels import ReplayChannel
from halcache.utils.hal import get_embedded, implements_resource, self_link

if TYPE_CHECKING:
    from halcache.resources.resource import Resource
    from halcache.services.hal import Hal

ItemConstructor = Callable[["Hal", str], Any]


# -----------------------------------------------------------------------------
# Item list
# -----------------------------------------------------------------------------
class ItemList:
    """
    Keeps the embedded ``items`` of a handle's payload as a list, republished
    on every payload update.

    With an item constructor, every item that is a resource becomes a handle
    bound to the item's self link; without one the raw items are exposed.
    """

    def __init__(self, owner: "Resource", rel: str = "items") -> None:
        self._owner = owner
        self._rel = rel
        self._constructor: Optional[ItemConstructor] = None
        self._items: List[Any] = []
        self._channel: ReplayChannel[List[Any]] = ReplayChannel([])

        owner.data_channel.subscribe(self._on_data)

    @property
    def items(self) -> List[Any]:
        return list(self._items)

    @property
    def channel(self) -> ReplayChannel[List[Any]]:
        return self._channel

    @property
    def constructor(self) -> Optional[ItemConstructor]:
        return self._constructor

    @constructor.setter
    def constructor(self, constructor: ItemConstructor) -> None:
        self._constructor = constructor
        if self._owner.has_data:
            self._on_data(self._owner.data)

    def instance(self, alias: str) -> Any:
        if self._constructor is None:
            raise ConstructorNotConfigured()

        hal = self._owner.hal
        cached = hal.get_cache(alias)
        if cached is not None and (
            not isinstance(self._constructor, type) or type(cached) is self._constructor
        ):
            return cached

        item = self._constructor(hal, alias)
        hal.set_cache(alias, item)
        return item

    def clear(self) -> None:
        """Drop the items once the owner's payload is gone."""
        self._items = []
        self._channel.publish([])

    def _on_data(self, data: dict) -> None:
        raw = get_embedded(data, self._rel, [])
        if not isinstance(raw, list):
            raw = [raw]

        if self._constructor is None:
            items = list(raw)
        else:
            items = [
                self.instance(self_link(item)) if implements_resource(item) else item
                for item in raw
            ]

        self._items = items
        self._channel.publish(list(items))
