"""
halcache: client-side cache for HAL+JSON hypermedia APIs.

Resources are cached by their self link (origin) and reachable under any
number of aliases. Handles observe an alias, track pending edits and keep
collections and their query options in sync with the server.
"""

from .config.settings import HalSettings
from .errors import (
    ConstructorNotConfigured,
    DataNotFound,
    HalError,
    HalNotInitialized,
    InvalidResource,
    LinkNotFound,
    TransportFailure,
)
from .models.options import CollectionOptions, Filter, PageOptions, Sort
from .resources import CollectionResource, PageableResource, Resource
from .services.hal import Hal
from .services.http import HttpService, HttpxService
from .services.kv import KeyValueStore, MemoryKeyValueStore, SqlKeyValueStore

__version__ = "0.1.0"

__all__ = [
    # Facade
    'Hal', 'HalSettings',
    # Handles
    'Resource', 'CollectionResource', 'PageableResource',
    # Options
    'CollectionOptions', 'PageOptions', 'Filter', 'Sort',
    # Capabilities
    'HttpService', 'HttpxService',
    'KeyValueStore', 'MemoryKeyValueStore', 'SqlKeyValueStore',
    # Errors
    'HalError', 'HalNotInitialized', 'LinkNotFound', 'DataNotFound',
    'ConstructorNotConfigured', 'TransportFailure', 'InvalidResource',
]
