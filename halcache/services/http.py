from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional, Protocol, Union, runtime_checkable

import httpx

from halcache.config.settings import HalSettings
from halcache.errors import TransportFailure

logger = logging.getLogger(__name__)

Scalar = Union[str, int, float, bool]


# -----------------------------------------------------------------------------
# HTTP capability
# -----------------------------------------------------------------------------
@runtime_checkable
class HttpService(Protocol):
    """
    Transport used by Hal. Every method resolves to the decoded response body
    or raises TransportFailure.
    """

    async def get(self, url: str, options: Optional[Mapping[str, Any]] = None) -> Any: ...

    async def post(self, url: str, data: Any, options: Optional[Mapping[str, Any]] = None) -> Any: ...

    async def patch(self, url: str, data: Any, options: Optional[Mapping[str, Any]] = None) -> Any: ...

    async def delete(self, url: str, options: Optional[Mapping[str, Any]] = None) -> Any: ...


# -----------------------------------------------------------------------------
# httpx implementation
# -----------------------------------------------------------------------------
class HttpxService:
    """
    HttpService on top of ``httpx.AsyncClient``.

    ``options`` are sent as query parameters. Only scalar values (and lists
    of scalars) are sent; anything else is left out.
    ``timeout`` defaults to ``HAL_HTTP_TIMEOUT``.
    """

    def __init__(
        self,
        base_url: str = "",
        timeout: Optional[float] = None,
        headers: Optional[Mapping[str, str]] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self._client = client or httpx.AsyncClient(
            base_url=base_url,
            timeout=timeout if timeout is not None else HalSettings().HTTP_TIMEOUT,
            headers={"Accept": "application/hal+json, application/json", **(headers or {})},
            transport=transport,
            follow_redirects=True,
        )

    async def __aenter__(self) -> "HttpxService":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    # -------------------------------------------------------------------------
    # Verbs
    # -------------------------------------------------------------------------
    async def get(self, url: str, options: Optional[Mapping[str, Any]] = None) -> Any:
        return await self._request("GET", url, options)

    async def post(self, url: str, data: Any, options: Optional[Mapping[str, Any]] = None) -> Any:
        return await self._request("POST", url, options, json=data)

    async def patch(self, url: str, data: Any, options: Optional[Mapping[str, Any]] = None) -> Any:
        return await self._request("PATCH", url, options, json=data)

    async def delete(self, url: str, options: Optional[Mapping[str, Any]] = None) -> Any:
        return await self._request("DELETE", url, options)

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------
    async def _request(
        self,
        method: str,
        url: str,
        options: Optional[Mapping[str, Any]],
        **kwargs: Any,
    ) -> Any:
        logger.debug("%s %s", method, url)
        try:
            response = await self._client.request(
                method, url, params=self._params(options), **kwargs
            )
        except httpx.TimeoutException as exc:
            raise TransportFailure(f"Timed out: {method} {url}", url=url) from exc
        except httpx.HTTPError as exc:
            raise TransportFailure(f"{method} {url} failed: {exc}", url=url) from exc

        if response.status_code >= 400:
            raise TransportFailure(
                f"HTTP {response.status_code}: {method} {url}",
                url=url,
                status_code=response.status_code,
            )

        if not response.content:
            return None

        try:
            return response.json()
        except ValueError as exc:
            raise TransportFailure(
                f"Invalid JSON body: {method} {url}",
                url=url,
                status_code=response.status_code,
            ) from exc

    @staticmethod
    def _params(options: Optional[Mapping[str, Any]]) -> Optional[Dict[str, Union[Scalar, List[Scalar]]]]:
        if not options:
            return None

        params: Dict[str, Union[Scalar, List[Scalar]]] = {}
        for key, value in options.items():
            if isinstance(value, (str, int, float, bool)):
                params[key] = value
            elif isinstance(value, (list, tuple)) and all(
                isinstance(v, (str, int, float, bool)) for v in value
            ):
                params[key] = list(value)
        return params or None
