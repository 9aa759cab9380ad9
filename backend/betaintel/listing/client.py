"""Clients that fetch listing pages for the export orchestrator.

``HTTPListingClient`` talks to a running API over HTTP; ``LocalListingClient``
calls the listing service in-process. Both raise ``ListingTransportError``
for any failed page so the orchestrator can treat them the same way.
"""

from dataclasses import dataclass, field
from typing import Any, Mapping, Protocol

import httpx
import structlog

from betaintel.listing.exceptions import ListingTransportError
from betaintel.listing.params import validate_list_request
from betaintel.listing.resources import get_resource
from betaintel.listing.service import ListingService

logger = structlog.get_logger()

ITEM_KEYS = ("data", "items", "events", "users")


@dataclass
class ListingPage:
    """One fetched page: records plus the ``total`` reported by the server."""

    items: list[dict[str, Any]]
    total: int
    meta: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_body(cls, body: Mapping[str, Any]) -> "ListingPage":
        items: list[dict[str, Any]] = []
        for key in ITEM_KEYS:
            if isinstance(body.get(key), list):
                items = body[key]
                break
        meta = body.get("meta") if isinstance(body.get("meta"), Mapping) else {}
        total = meta.get("total", body.get("total", len(items)))
        try:
            total = int(total)
        except (TypeError, ValueError):
            total = len(items)
        return cls(items=items, total=total, meta=dict(meta))


class ListingSource(Protocol):
    async def fetch_page(self, resource: str, params: Mapping[str, str]) -> ListingPage:
        ...


class SessionAccessor(Protocol):
    def get_token(self) -> str | None:
        ...


@dataclass
class StaticTokenSession:
    token: str | None = None

    def get_token(self) -> str | None:
        return self.token


class HTTPListingClient:
    """Fetches listing pages from the HTTP API with an optional bearer token."""

    def __init__(
        self,
        base_url: str,
        session: SessionAccessor | None = None,
        timeout: float = 60.0,
        client: httpx.AsyncClient | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.session = session
        self.timeout = timeout
        self._client = client

    def _headers(self) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        token = self.session.get_token() if self.session else None
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return headers

    async def _get(self, url: str, params: Mapping[str, str]) -> httpx.Response:
        if self._client is not None:
            return await self._client.get(url, params=dict(params), headers=self._headers())
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            return await client.get(url, params=dict(params), headers=self._headers())

    async def fetch_page(self, resource: str, params: Mapping[str, str]) -> ListingPage:
        url = f"{self.base_url}/{resource}"
        try:
            response = await self._get(url, params)
        except httpx.HTTPError as e:
            logger.warning("listing_request_failed", resource=resource, error=str(e))
            raise ListingTransportError(f"Request to {url} failed: {e}") from e

        if response.status_code >= 400:
            logger.warning("listing_request_rejected", resource=resource, status=response.status_code)
            raise ListingTransportError(
                f"{url} answered with status {response.status_code}",
                status_code=response.status_code,
            )

        try:
            body = response.json()
        except ValueError as e:
            raise ListingTransportError(f"{url} returned a non-JSON body") from e
        return ListingPage.from_body(body)


class LocalListingClient:
    """Runs list queries directly against a ``ListingService``."""

    def __init__(self, service: ListingService, authenticated: bool = True):
        self.service = service
        self.authenticated = authenticated

    async def fetch_page(self, resource: str, params: Mapping[str, str]) -> ListingPage:
        spec = get_resource(resource)
        request = validate_list_request(
            params,
            spec,
            self.service.settings.default_page_size,
            self.service.settings.export_max_rows,
        )
        response = await self.service.list(spec, request, authenticated=self.authenticated)
        if not response.ok:
            raise ListingTransportError(response.error or "listing failed", status_code=response.status_code)
        return ListingPage(items=response.items, total=response.meta.total, meta=response.meta.to_dict())
