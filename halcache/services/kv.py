from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Protocol, runtime_checkable

from sqlalchemy import delete

from halcache.models.entry import StorageEntry
from halcache.services.database import close_db, init_db, make_engine, make_session_factory

logger = logging.getLogger(__name__)


# -----------------------------------------------------------------------------
# Key-value store capability
# -----------------------------------------------------------------------------
@runtime_checkable
class KeyValueStore(Protocol):
    """Durable string store the identity map is persisted to."""

    def get_item(self, key: str) -> Optional[str]: ...

    def set_item(self, key: str, value: str) -> None: ...

    def remove_item(self, key: str) -> None: ...

    def clear(self) -> None: ...


# -----------------------------------------------------------------------------
# In-memory store
# -----------------------------------------------------------------------------
class MemoryKeyValueStore:
    """Process-local store; persistence lasts as long as the object does."""

    def __init__(self) -> None:
        self._data: Dict[str, str] = {}

    def __len__(self) -> int:
        return len(self._data)

    def get_item(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._data[key] = value

    def remove_item(self, key: str) -> None:
        self._data.pop(key, None)

    def clear(self) -> None:
        self._data.clear()


# -----------------------------------------------------------------------------
# SQL store
# -----------------------------------------------------------------------------
class SqlKeyValueStore:
    """
    Key-value store on a single SQL table (``hal_storage``).

    Every call runs in its own short session, so the store can be shared
    across Hal instances pointing at the same database.
    """

    def __init__(self, url: str = "sqlite://", **engine_kwargs: Any) -> None:
        self._engine = make_engine(url, **engine_kwargs)
        self._session_factory = make_session_factory(self._engine)
        init_db(self._engine)

    def get_item(self, key: str) -> Optional[str]:
        with self._session_factory() as session:
            entry = session.get(StorageEntry, key)
            return entry.value if entry is not None else None

    def set_item(self, key: str, value: str) -> None:
        with self._session_factory() as session:
            entry = session.get(StorageEntry, key)
            if entry is None:
                session.add(StorageEntry(key=key, value=value))
            else:
                entry.value = value
            session.commit()

    def remove_item(self, key: str) -> None:
        with self._session_factory() as session:
            session.execute(delete(StorageEntry).where(StorageEntry.key == key))
            session.commit()

    def clear(self) -> None:
        with self._session_factory() as session:
            session.execute(delete(StorageEntry))
            session.commit()

    def close(self) -> None:
        close_db(self._engine)
