from __future__ import annotations

from typing import Optional


# -----------------------------------------------------------------------------
# Base
# -----------------------------------------------------------------------------
class HalError(Exception):
    """Base class for every error raised by halcache."""


class HalNotInitialized(HalError):
    def __init__(self) -> None:
        super().__init__("Hal is not initialized. Call Hal.init() first.")


# -----------------------------------------------------------------------------
# Identity / cache errors (raised synchronously at the call site)
# -----------------------------------------------------------------------------
class LinkNotFound(HalError):
    """The requested relation is absent from the current payload."""

    def __init__(self, rel: str) -> None:
        self.rel = rel
        super().__init__(f"Link '{rel}' not found.")


class DataNotFound(HalError):
    """A handle was read before any payload arrived."""

    def __init__(self, alias: Optional[str] = None, field: Optional[str] = None) -> None:
        self.alias = alias
        self.field = field

        message = "Data not found."
        if field is not None:
            message = f"Data not found: field '{field}'"
            if alias is not None:
                message += f" of '{alias}'"
            message += "."
        elif alias is not None:
            message = f"Data not found for '{alias}'."
        super().__init__(message)


class ConstructorNotConfigured(HalError):
    def __init__(self) -> None:
        super().__init__("Item constructor not found.")


# -----------------------------------------------------------------------------
# Transport errors (asynchronous, surfaced to whoever awaits the operation)
# -----------------------------------------------------------------------------
class TransportFailure(HalError):
    """Raised by an HTTP capability. halcache never retries it."""

    def __init__(
        self,
        message: str,
        url: Optional[str] = None,
        status_code: Optional[int] = None,
    ) -> None:
        self.url = url
        self.status_code = status_code
        super().__init__(message)


class InvalidResource(TransportFailure):
    """A fetched payload is not a resource (no string ``_links.self.href``)."""
