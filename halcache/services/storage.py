"""
Identity map of the HAL cache.

Origins (canonical self-link URLs) map to their last known payload; aliases
(any logical name: requested URL, user tag, synthesized ``name@rel``) map to
exactly one origin. Both maps are persisted as two JSON blobs:
``{prefix}origins`` and ``{prefix}aliases``.
"""
from __future__ import annotations

import json
import logging
from typing import Any, Dict, List, Optional

from halcache.services.channels import Callback, NotificationBus, Subscription
from halcache.services.dumper import Dumper
from halcache.services.kv import KeyValueStore
from halcache.utils.hal import implements_resource, resolve_embedded_name, self_link

logger = logging.getLogger(__name__)


class HalStorage:

    def __init__(
        self,
        storage: KeyValueStore,
        prefix: str = "",
        auto_dump: bool = True,
        dump_delay: float = 1.0,
        dump_interval: Optional[float] = None,
    ) -> None:
        self._storage = storage
        self._prefix = prefix
        self._bus = NotificationBus()
        self._dumper = Dumper(
            self.dump,
            auto_dump=auto_dump,
            delay=dump_delay,
            interval=dump_interval,
        )

        self._origins: Dict[str, dict] = self._restore(self.origins_key)
        self._aliases: Dict[str, str] = self._restore(self.aliases_key)

        # origin -> aliases in attach order (dict used as ordered set)
        self._index: Dict[str, Dict[str, None]] = {}
        for alias, origin in self._aliases.items():
            self._index.setdefault(origin, {})[alias] = None

        self._dumper.start()

    # -------------------------------------------------------------------------
    # Properties
    # -------------------------------------------------------------------------
    @property
    def storage(self) -> KeyValueStore:
        return self._storage

    @property
    def dumper(self) -> Dumper:
        return self._dumper

    @property
    def prefix(self) -> str:
        return self._prefix

    @property
    def origins_key(self) -> str:
        return f"{self._prefix}origins"

    @property
    def aliases_key(self) -> str:
        return f"{self._prefix}aliases"

    @property
    def origins(self) -> Dict[str, dict]:
        return dict(self._origins)

    @property
    def aliases(self) -> Dict[str, str]:
        return dict(self._aliases)

    # -------------------------------------------------------------------------
    # Origins
    # -------------------------------------------------------------------------
    def get_item(self, origin: str) -> Optional[dict]:
        return self._origins.get(origin)

    def set_item(self, origin: str, data: dict) -> None:
        """
        Store ``data`` under ``origin`` and propagate it.

        Publishes the payload to every alias of the origin, flattens its
        embedded resources into their own origins, then asks for a dump.
        """
        self._origins[origin] = data
        self.attach(origin, origin)

        for alias in self.get_aliases_for(origin):
            self._bus.publish(alias, data)

        self._flatten(origin, data)
        self._dumper.request()

    def remove_item(self, origin: str) -> None:
        if self._origins.pop(origin, None) is not None:
            self._dumper.request()

    # -------------------------------------------------------------------------
    # Aliases
    # -------------------------------------------------------------------------
    def get_origin(self, alias: str) -> Optional[str]:
        return self._aliases.get(alias)

    def attach(self, origin: str, alias: str) -> None:
        previous = self._aliases.get(alias)
        if previous == origin:
            return
        if previous is not None:
            self._unindex(previous, alias)

        self._aliases[alias] = origin
        self._index.setdefault(origin, {})[alias] = None
        self._dumper.request()

    def detach(self, alias: str) -> None:
        origin = self._aliases.pop(alias, None)
        if origin is not None:
            self._unindex(origin, alias)
            self._dumper.request()

    def get_aliases_for(self, origin: str) -> List[str]:
        return list(self._index.get(origin, ()))

    # -------------------------------------------------------------------------
    # Notifications
    # -------------------------------------------------------------------------
    def subscribe(self, alias: str, callback: Callback) -> Subscription:
        return self._bus.subscribe(alias, callback)

    # -------------------------------------------------------------------------
    # Persistence
    # -------------------------------------------------------------------------
    def dump(self) -> None:
        self._storage.set_item(self.origins_key, json.dumps(self._origins))
        self._storage.set_item(self.aliases_key, json.dumps(self._aliases))
        logger.debug(
            "Dumped %d origins and %d aliases", len(self._origins), len(self._aliases)
        )

    def clear(self) -> None:
        self._dumper.stop()
        self._origins.clear()
        self._aliases.clear()
        self._index.clear()
        self._storage.remove_item(self.origins_key)
        self._storage.remove_item(self.aliases_key)

    def close(self) -> None:
        """Write any pending dump and stop the timers."""
        self._dumper.flush()
        self._dumper.stop()

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------
    def _flatten(self, origin: str, data: dict) -> None:
        embedded = data.get("_embedded")
        if not isinstance(embedded, dict):
            return

        for rel, value in embedded.items():
            # list elements share the relation alias; the last element wins
            children = value if isinstance(value, list) else [value]
            for child in children:
                if implements_resource(child):
                    self._attach_embedded(origin, rel, child)

    def _attach_embedded(self, origin: str, rel: str, data: dict) -> None:
        child = self_link(data)
        for alias in self.get_aliases_for(origin):
            self.attach(child, resolve_embedded_name(alias, rel))
        self.set_item(child, data)

    def _unindex(self, origin: str, alias: str) -> None:
        aliases = self._index.get(origin)
        if aliases is None:
            return
        aliases.pop(alias, None)
        if not aliases:
            del self._index[origin]

    def _restore(self, key: str) -> Dict[str, Any]:
        raw = self._storage.get_item(key)
        if not raw:
            return {}
        try:
            data = json.loads(raw)
        except ValueError:
            logger.warning("Ignoring corrupt persisted blob '%s'", key)
            return {}
        if not isinstance(data, dict):
            logger.warning("Ignoring persisted blob '%s': not an object", key)
            return {}
        return data
