"""Listing service: one validated request in, one response envelope out."""

import structlog

from betaintel.config import Settings, get_settings
from betaintel.listing.backends import ListingBackend
from betaintel.listing.dates import get_timezone
from betaintel.listing.exceptions import (
    ListingBackendError,
    ListingError,
    ListingUnauthorizedError,
)
from betaintel.listing.filters import EqualityFilter, compile_filters
from betaintel.listing.pagination import ListMeta, ListResponse, page_offset, paginate
from betaintel.listing.params import DEFAULT_PAGE, ListRequest
from betaintel.listing.resources import ResourceSpec
from betaintel.listing.sorting import ResolvedSort, resolve_resource_sort

logger = structlog.get_logger()


class ListingService:
    """Composes filter compilation, sort resolution and pagination.

    ``list`` never raises for storage problems: a failing backend produces
    an empty envelope with status 500, and a missing session on a
    protected resource produces the same envelope with status 401.
    """

    def __init__(self, backend: ListingBackend, settings: Settings | None = None):
        self.backend = backend
        self.settings = settings or get_settings()
        self.tz = get_timezone(self.settings.display_timezone)

    async def list(
        self,
        resource: ResourceSpec,
        request: ListRequest,
        authenticated: bool = True,
        auth_reason: str = "missing",
    ) -> ListResponse:
        sort = resolve_resource_sort(resource, request.sort_by, request.sort_direction)

        if resource.requires_auth and not authenticated:
            error = ListingUnauthorizedError(resource.name, auth_reason)
            logger.warning("listing_unauthorized", resource=resource.name, reason=auth_reason)
            return self._failure(resource, sort, error, status_code=401)

        if request.export:
            offset, limit = 0, self.settings.export_max_rows
        else:
            offset, limit = page_offset(request.page, request.limit), request.limit

        try:
            predicate = compile_filters(request.filters, resource, self.tz)
            rows, total = await self.backend.fetch(resource, predicate, sort, offset, limit)
            items = [resource.normalize_item(row) for row in rows]
        except Exception as e:
            logger.exception("listing_backend_failed", resource=resource.name)
            return self._failure(resource, sort, ListingBackendError(resource.name, str(e)))

        window = paginate(total, request.page, request.limit)
        logger.debug(
            "listing_executed",
            resource=resource.name,
            total=total,
            returned=len(items),
            page=request.page,
            export=request.export,
        )
        meta = ListMeta(
            total=total,
            page=request.page,
            limit=request.limit,
            last_page=window.last_page,
            sort_by=sort.key,
            sort_direction=sort.direction,
            valid_sort_fields=resource.valid_sort_fields,
            extra=self._echoed_filters(resource, request),
        )
        return ListResponse(items=items, meta=meta)

    def _failure(
        self,
        resource: ResourceSpec,
        sort: ResolvedSort,
        error: ListingError,
        status_code: int = 500,
    ) -> ListResponse:
        meta = ListMeta(
            total=0,
            page=DEFAULT_PAGE,
            limit=self.settings.default_page_size,
            last_page=1,
            sort_by=sort.key,
            sort_direction=sort.direction,
            valid_sort_fields=resource.valid_sort_fields,
        )
        return ListResponse(items=[], meta=meta, status_code=status_code, error=error.message)

    @staticmethod
    def _echoed_filters(resource: ResourceSpec, request: ListRequest) -> dict:
        applied = {
            clause.param: clause.value
            for clause in request.filters
            if isinstance(clause, EqualityFilter)
        }
        return {name: applied[name] for name in resource.echo_params if name in applied}
