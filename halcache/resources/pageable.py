from __future__ import annotations

from typing import List, Optional

from halcache.models.options import PageOptions, Sort
from halcache.resources.collection import CollectionResource
from halcache.utils.query import decode_page_options


class PageableResource(CollectionResource):
    """
    Handle on a paged collection.

    Adds page / limit / sort to the query options and navigation along the
    ``first``, ``previous``, ``next`` and ``last`` links. ``pages`` and
    ``total`` are read from the payload.
    """

    decode = staticmethod(decode_page_options)
    default_options = PageOptions

    @property
    def options(self) -> PageOptions:
        return self._query.options

    @options.setter
    def options(self, options: PageOptions) -> None:
        self._query.options = options

    # =========================================================================
    # PAGING OPTIONS
    # =========================================================================

    @property
    def page(self) -> int:
        return self.options.page

    @page.setter
    def page(self, page: int) -> None:
        self.set("page", page)

    @property
    def limit(self) -> int:
        return self.options.limit

    @limit.setter
    def limit(self, limit: int) -> None:
        self.set("limit", limit)

    @property
    def sort(self) -> List[Sort]:
        return self.options.sort

    @sort.setter
    def sort(self, sort: List[Sort]) -> None:
        self.set("sort", sort)

    @property
    def pages(self) -> Optional[int]:
        return self.get("pages")

    @property
    def total(self) -> Optional[int]:
        return self.get("total")

    # =========================================================================
    # NAVIGATION
    # =========================================================================

    @property
    def is_first(self) -> bool:
        return self.get_link("self") == self.get_link("first")

    @property
    def is_last(self) -> bool:
        return self.get_link("self") == self.get_link("last")

    @property
    def has_previous(self) -> bool:
        return self.has_link("previous")

    @property
    def has_next(self) -> bool:
        return self.has_link("next")

    async def navigate_first(self) -> dict:
        return await self._navigate("first")

    async def navigate_previous(self) -> dict:
        return await self._navigate("previous")

    async def navigate_next(self) -> dict:
        return await self._navigate("next")

    async def navigate_last(self) -> dict:
        return await self._navigate("last")

    async def _navigate(self, rel: str) -> dict:
        data, current = await self._send("get", self.get_link(rel))
        if current:
            self.clear_change_set()
            self._apply(data, self._alias)
        return data
