from __future__ import annotations

import logging
from typing import Any, Callable, List, Optional, TypeVar

from halcache.models.options import CollectionOptions, Filter, Options
from halcache.resources.items import ItemConstructor, ItemList
from halcache.resources.query import QueryState
from halcache.resources.resource import Resource
from halcache.services.channels import Channel, ReplayChannel
from halcache.services.hal import Hal
from halcache.utils.hal import implements_resource, self_link
from halcache.utils.query import decode_options

logger = logging.getLogger(__name__)

C = TypeVar("C", bound="CollectionResource")


class CollectionResource(Resource):
    """
    Handle on a collection: ``_embedded.items`` plus filter options encoded
    in the query string.
    """

    # codec used to read options back from the self link
    decode: Callable[[str], Options] = staticmethod(decode_options)
    default_options: Callable[[], Options] = CollectionOptions

    def __init__(self, hal: Hal, alias: str) -> None:
        super().__init__(hal, alias)
        self._item_list = ItemList(self)
        self._query = QueryState(self, type(self).decode, type(self).default_options())

    # =========================================================================
    # ITEMS
    # =========================================================================

    @property
    def items(self) -> List[Any]:
        return self._item_list.items

    @property
    def items_channel(self) -> ReplayChannel[List[Any]]:
        return self._item_list.channel

    def set_item_constructor(self: C, constructor: ItemConstructor) -> C:
        self._item_list.constructor = constructor
        return self

    def item_instance(self, alias: str) -> Any:
        return self._item_list.instance(alias)

    # =========================================================================
    # OPTIONS
    # =========================================================================

    @property
    def options(self) -> Options:
        return self._query.options

    @options.setter
    def options(self, options: Options) -> None:
        self._query.options = options

    @property
    def options_channel(self) -> Channel[Options]:
        return self._query.channel

    @property
    def filters(self) -> List[Filter]:
        return self._query.options.filters

    @filters.setter
    def filters(self, filters: List[Filter]) -> None:
        self.set("filters", filters)

    def merge_options_change_set(self, change_set: Optional[dict] = None) -> Options:
        return self._query.merge(self._change_set if change_set is None else change_set)

    def resolve_url(self) -> str:
        """Base URL plus the options with the change-set merged over them."""
        return self._query.resolve_url(self._change_set)

    def _clear_data(self) -> None:
        super()._clear_data()
        self._item_list.clear()

    # =========================================================================
    # OPERATIONS
    # =========================================================================

    async def commit(self) -> dict:
        """GET the collection with the pending options applied."""
        data, current = await self._send("get", self.resolve_url())
        if current:
            self.clear_change_set()
            self._apply(data, self._alias)
        return data

    async def add_item(self, data: Any, options: Optional[dict] = None) -> Any:
        """POST a new item to the collection's base URL."""
        await self.data_channel.first()
        url = self.base_url

        logger.debug("POST %s", url)
        created = await self._hal.http.post(url, data, options)
        if implements_resource(created):
            origin = self_link(created)
            self._hal.attach(origin, origin)
            self._hal.set_item(origin, created)
        return created
