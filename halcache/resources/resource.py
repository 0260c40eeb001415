"""
Resource handle.

A handle owns one alias, follows every payload published for it and keeps
a change-set of pending edits that is only sent on ``commit()``.

States: unloaded (no payload) -> loaded (on every update). ``is_loading`` is
toggled around outstanding transport operations.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, Optional, Tuple, Type, TypeVar

from halcache.errors import DataNotFound, LinkNotFound
from halcache.services.channels import Channel, ReplayChannel
from halcache.services.hal import Hal
from halcache.utils import hal as hal_utils
from halcache.utils.hal import require_resource, self_link

logger = logging.getLogger(__name__)

R = TypeVar("R", bound="Resource")


class Resource:

    def __init__(self, hal: Hal, alias: str) -> None:
        self._hal = hal
        self._alias = alias

        self._data: Optional[dict] = None
        self._change_set: Dict[str, Any] = {}
        self._is_loading = False

        self._data_channel: ReplayChannel[dict] = ReplayChannel()
        self._loading_channel: Channel[bool] = Channel()

        # background fetch started by from_url / from_link
        self.pending: Optional[asyncio.Task] = None

        self._subscription = hal.subscribe(alias, self._receive)

        origin = hal.get_origin(alias)
        if origin is not None:
            data = hal.get_item(origin)
            if data is not None:
                self._receive(data)

    def __repr__(self) -> str:
        state = "loaded" if self.has_data else "unloaded"
        return f"<{type(self).__name__} alias={self._alias!r} {state}>"

    # =========================================================================
    # CONSTRUCTORS
    # =========================================================================

    @classmethod
    def instance(cls: Type[R], hal: Hal, alias: str) -> R:
        """Cached handle for ``alias`` when the handle cache is on, else a new one."""
        cached = hal.get_cache(alias)
        if type(cached) is cls:
            return cached
        resource = cls(hal, alias)
        hal.set_cache(alias, resource)
        return resource

    @classmethod
    def from_url(
        cls: Type[R],
        hal: Hal,
        url: str,
        options: Optional[dict] = None,
        name: Optional[str] = None,
    ) -> R:
        """
        Handle for ``url``, returned immediately.

        Cached data is republished; otherwise the fetch runs as a task on the
        running loop (``handle.pending``). Without cached data it must be
        called from a running event loop, else it raises RuntimeError; use
        ``await load(...)`` from async code that only needs the result.
        """
        resource = cls.instance(hal, url)

        origin = hal.get_origin(url)
        data = hal.get_item(origin) if origin is not None else None
        if data is not None:
            resource.pending = None
            hal.set_item(origin, data)
        else:
            resource._start_follow(url, options, name)

        return resource

    @classmethod
    async def load(
        cls: Type[R],
        hal: Hal,
        url: str,
        options: Optional[dict] = None,
        name: Optional[str] = None,
    ) -> R:
        """Like ``from_url`` but waits for the fetch; TransportFailure propagates."""
        resource = cls.from_url(hal, url, options, name)
        if resource.pending is not None:
            await resource.pending
        return resource

    @classmethod
    def from_embedded(cls: Type[R], parent: "Resource", rel: str, name: Optional[str] = None) -> R:
        return cls.instance(parent.hal, parent.resolve_embedded_name(name or rel))

    @classmethod
    def from_link(
        cls: Type[R],
        parent: "Resource",
        rel: str,
        options: Optional[dict] = None,
        name: Optional[str] = None,
    ) -> R:
        """
        Handle bound to ``parent.alias#rel``, populated by following the
        parent's ``rel`` link once the parent has data. Like ``from_url``,
        needs a running event loop when the parent is already loaded.
        """
        alias = parent.resolve_link_name(name or rel)
        resource = cls.instance(parent.hal, alias)

        if parent.has_data:
            url = hal_utils.get_link(parent.data, rel)
            resource._start_follow(url, options, alias)
            return resource

        def resolve(data: dict) -> None:
            try:
                url = hal_utils.get_link(data, rel)
            except LinkNotFound:
                logger.warning("Cannot follow '%s' from '%s': link not found", rel, parent.alias)
                return
            resource._start_follow(url, options, alias)

        parent.data_channel.once(resolve)
        return resource

    @classmethod
    def from_data(cls: Type[R], hal: Hal, data: dict) -> R:
        origin = self_link(require_resource(data))
        resource = cls.instance(hal, origin)
        hal.attach(origin, origin)
        hal.set_item(origin, data)
        return resource

    # =========================================================================
    # STATE
    # =========================================================================

    @property
    def hal(self) -> Hal:
        return self._hal

    @property
    def alias(self) -> str:
        return self._alias

    @property
    def data(self) -> Optional[dict]:
        return self._data

    @property
    def has_data(self) -> bool:
        return self._data is not None

    @property
    def data_channel(self) -> ReplayChannel[dict]:
        return self._data_channel

    @property
    def loading_channel(self) -> Channel[bool]:
        return self._loading_channel

    @property
    def is_loading(self) -> bool:
        return self._is_loading

    @is_loading.setter
    def is_loading(self, is_loading: bool) -> None:
        if is_loading != self._is_loading:
            self._is_loading = is_loading
            self._loading_channel.publish(is_loading)

    @property
    def change_set(self) -> Dict[str, Any]:
        return dict(self._change_set)

    @property
    def base_url(self) -> str:
        return hal_utils.resolve_base_url(self.get_link("self"))

    def close(self) -> None:
        """Stop following the alias."""
        self._subscription.cancel()

    # =========================================================================
    # FIELDS
    # =========================================================================

    def get(self, prop: str, default: Any = None) -> Any:
        if self._data is None:
            return default
        return self._data.get(prop, default)

    def require(self, prop: str) -> Any:
        if self._data is None or prop not in self._data:
            raise DataNotFound(self._alias, prop)
        return self._data[prop]

    def set(self, prop: str, value: Any) -> None:
        self._change_set[prop] = value

    def revert(self) -> None:
        self.clear_change_set()

    def clear_change_set(self) -> None:
        self._change_set = {}

    # =========================================================================
    # LINKS / EMBEDDED
    # =========================================================================

    def get_link(self, rel: str) -> str:
        if self._data is None:
            raise DataNotFound(self._alias)
        return hal_utils.get_link(self._data, rel)

    def has_link(self, rel: str) -> bool:
        return self._data is not None and hal_utils.has_link(self._data, rel)

    def get_embedded(self, rel: str, default: Any = None) -> Any:
        if self._data is None:
            return default
        return hal_utils.get_embedded(self._data, rel, default)

    def resolve_embedded_name(self, rel: str) -> str:
        return hal_utils.resolve_embedded_name(self._alias, rel)

    def resolve_link_name(self, rel: str) -> str:
        return hal_utils.resolve_link_name(self._alias, rel)

    # =========================================================================
    # OPERATIONS
    # =========================================================================

    async def commit(self) -> dict:
        """PATCH the change-set to the self link and store the response."""
        url = self.get_link("self")
        data, current = await self._send("patch", url, dict(self._change_set))
        if current:
            self._apply(data, self._alias, url)
            self.clear_change_set()
        return data

    async def refresh(self) -> dict:
        """
        Re-fetch the self link after invalidating every cached variant of the
        base URL. The change-set goes along as request options and is
        cleared either way.
        """
        url = self.get_link("self")
        options = dict(self._change_set)
        self._hal.remove_siblings(self.base_url)
        try:
            data, current = await self._send("get", url, options or None)
        finally:
            self.clear_change_set()
        if current:
            self._apply(data, self._alias, url)
        return data

    async def delete(self) -> None:
        url = self.get_link("self")
        origin = self_link(self._data)
        ticket = self._hal.begin(self._alias)

        self.is_loading = True
        logger.debug("DELETE %s", url)
        try:
            await self._hal.http.delete(url)
        finally:
            if self._hal.is_current(self._alias, ticket):
                self.is_loading = False

        self._hal.detach(self._alias)
        self._hal.detach(url)
        self._hal.remove_item(origin)
        self.clear_change_set()
        self._clear_data()

    # =========================================================================
    # INTERNALS
    # =========================================================================

    def _clear_data(self) -> None:
        self._data = None
        self._data_channel.reset()

    def _receive(self, data: dict) -> None:
        self._data = data
        self.is_loading = False
        self._data_channel.publish(data)

    def _apply(self, data: dict, *aliases: str) -> None:
        origin = self_link(data)
        for alias in aliases:
            self._hal.attach(origin, alias)
        self._hal.set_item(origin, data)
        self.is_loading = False

    async def _send(self, method: str, url: str, *args: Any) -> Tuple[dict, bool]:
        """
        Run one transport call for this handle.

        Returns the validated payload and whether it is still the newest
        operation on the alias; stale payloads must not be stored.
        """
        ticket = self._hal.begin(self._alias)
        self.is_loading = True
        logger.debug("%s %s", method.upper(), url)
        try:
            data = require_resource(await getattr(self._hal.http, method)(url, *args), url)
        except Exception:
            if self._hal.is_current(self._alias, ticket):
                self.is_loading = False
            raise

        current = self._hal.is_current(self._alias, ticket)
        if not current:
            logger.debug("Discarding stale %s response for '%s'", method.upper(), self._alias)
        return data, current

    def _start_follow(self, url: str, options: Optional[dict], name: Optional[str]) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            raise RuntimeError(
                f"Cannot fetch '{url}' without a running event loop; "
                f"await {type(self).__name__}.load() instead."
            ) from None

        self.is_loading = True
        self.pending = loop.create_task(
            self._hal.follow(url, options, name, key=self._alias)
        )
        self.pending.add_done_callback(self._on_follow_done)

    def _on_follow_done(self, task: asyncio.Task) -> None:
        if task.cancelled():
            self.is_loading = False
            return
        error = task.exception()
        if error is not None:
            logger.warning("Loading '%s' failed: %s", self._alias, error)
            self.is_loading = False
