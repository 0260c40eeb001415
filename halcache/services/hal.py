"""
Hal Façade

The single entry point handles use to reach the identity cache, the HTTP
capability and the persistence policy.

One ``Hal`` is created per process (or per test) and passed explicitly to
every resource handle:

```python
hal = Hal().init(http=HttpxService("https://api.example.com"), storage=MemoryKeyValueStore())
me = Resource.from_url(hal, "/me")
```
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from halcache.config.settings import HalSettings
from halcache.errors import HalNotInitialized
from halcache.services.channels import Callback, Subscription
from halcache.services.http import HttpService
from halcache.services.kv import KeyValueStore
from halcache.services.storage import HalStorage
from halcache.utils.hal import require_resource, resolve_base_url, self_link

logger = logging.getLogger(__name__)


class Hal:

    def __init__(self) -> None:
        self._http: Optional[HttpService] = None
        self._storage: Optional[HalStorage] = None
        self._settings: HalSettings = HalSettings()

        # secondary handle cache: alias -> resource handle
        self._cache: Dict[str, Any] = {}
        self._cache_enabled = False

        # per-key operation tickets, newest wins
        self._tickets: Dict[str, int] = {}

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    def init(
        self,
        http: HttpService,
        storage: KeyValueStore,
        settings: Optional[HalSettings] = None,
    ) -> "Hal":
        if self._storage is not None:
            # pending writes land before the new storage restores
            self._storage.close()

        self._settings = settings or HalSettings()
        self._http = http
        self._storage = HalStorage(
            storage,
            prefix=self._settings.PREFIX,
            auto_dump=self._settings.AUTO_DUMP,
            dump_delay=self._settings.AUTO_DUMP_DELAY,
            dump_interval=self._settings.DUMP_INTERVAL,
        )
        self._cache = {}
        self._cache_enabled = self._settings.ENABLE_CACHE
        self._tickets = {}

        logger.debug("Hal initialized with prefix '%s'", self._settings.PREFIX)
        return self

    @property
    def initialized(self) -> bool:
        return self._storage is not None

    def clear(self) -> None:
        """Stop timers and drop every cached origin, alias and handle."""
        if self._storage is not None:
            self._storage.clear()
        self._cache.clear()
        self._tickets.clear()

    def close(self) -> None:
        """Write any pending dump and stop the timers; cached data stays."""
        if self._storage is not None:
            self._storage.close()

    # =========================================================================
    # CAPABILITIES
    # =========================================================================

    @property
    def http(self) -> HttpService:
        if self._http is None:
            raise HalNotInitialized()
        return self._http

    @property
    def storage(self) -> HalStorage:
        if self._storage is None:
            raise HalNotInitialized()
        return self._storage

    @property
    def settings(self) -> HalSettings:
        return self._settings

    # =========================================================================
    # FETCHING
    # =========================================================================

    async def follow(
        self,
        url: str,
        options: Optional[dict] = None,
        alias: Optional[str] = None,
        *,
        key: Optional[str] = None,
    ) -> dict:
        """
        GET ``url`` and cache the response.

        The response is reachable afterwards by its self link, by ``url`` and
        by ``alias``. ``key`` names the operation sequence used to discard
        stale completions (defaults to ``alias`` or ``url``).
        """
        key = key or alias or url
        ticket = self.begin(key)

        logger.debug("GET %s", url)
        data = require_resource(await self.http.get(url, options), url)

        if not self.is_current(key, ticket):
            logger.debug("Discarding stale response for '%s'", key)
            return data

        origin = self_link(data)
        if alias:
            self.attach(origin, alias)
        self.attach(origin, url)
        self.attach(origin, origin)
        self.set_item(origin, data)
        return data

    def begin(self, key: str) -> int:
        ticket = self._tickets.get(key, 0) + 1
        self._tickets[key] = ticket
        return ticket

    def is_current(self, key: str, ticket: int) -> bool:
        return self._tickets.get(key) == ticket

    # =========================================================================
    # STORAGE PROXY
    # =========================================================================

    def get_origin(self, alias: str) -> Optional[str]:
        return self.storage.get_origin(alias)

    def get_item(self, origin: str) -> Optional[dict]:
        return self.storage.get_item(origin)

    def set_item(self, origin: str, data: dict) -> None:
        self.storage.set_item(origin, data)

    def remove_item(self, origin: str) -> None:
        self.storage.remove_item(origin)

    def attach(self, origin: str, alias: str) -> None:
        self.storage.attach(origin, alias)

    def detach(self, alias: str) -> None:
        self.storage.detach(alias)

    def get_aliases_for(self, origin: str) -> List[str]:
        return self.storage.get_aliases_for(origin)

    def subscribe(self, alias: str, callback: Callback) -> Subscription:
        return self.storage.subscribe(alias, callback)

    @property
    def origins(self) -> Dict[str, dict]:
        return self.storage.origins

    @property
    def aliases(self) -> Dict[str, str]:
        return self.storage.aliases

    def remove_siblings(self, base_url: str) -> None:
        """Drop every origin that is ``base_url`` plus some query string."""
        for origin in list(self.storage.origins):
            if resolve_base_url(origin) == base_url:
                self.storage.remove_item(origin)

    # =========================================================================
    # PERSISTENCE POLICY
    # =========================================================================

    @property
    def auto_dump(self) -> bool:
        return self.storage.dumper.auto_dump

    @auto_dump.setter
    def auto_dump(self, enabled: bool) -> None:
        self.storage.dumper.auto_dump = enabled

    def dump(self) -> None:
        self.storage.dump()

    def flush(self) -> None:
        self.storage.dumper.flush()

    # =========================================================================
    # HANDLE CACHE
    # =========================================================================

    @property
    def cache_enabled(self) -> bool:
        return self._cache_enabled

    def enable_cache(self) -> None:
        self._cache_enabled = True

    def disable_cache(self) -> None:
        self._cache_enabled = False
        self._cache.clear()

    def get_cache(self, alias: str) -> Optional[Any]:
        if not self._cache_enabled:
            return None
        return self._cache.get(alias)

    def set_cache(self, alias: str, handle: Any) -> None:
        if self._cache_enabled:
            self._cache[alias] = handle

    def clear_cache(self) -> None:
        self._cache.clear()
