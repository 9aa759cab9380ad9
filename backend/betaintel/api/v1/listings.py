"""Listing endpoints, one per resource.

Every endpoint answers with the same envelope, ``{<items key>: [...],
"meta": {...}}``, on success and on failure; only the status code and
the optional ``error`` string differ.
"""

from fastapi import APIRouter, Request
from fastapi.responses import ORJSONResponse

from betaintel.api.deps import Listings
from betaintel.api.v1.auth import CurrentSession
from betaintel.listing.params import validate_list_request
from betaintel.listing.resources import ANONYMOUS, EVENTS, LEADS, PROFESSIONS, SURVEYS, ResourceSpec
from betaintel.listing.service import ListingService

router = APIRouter()


async def run_listing(
    resource: ResourceSpec,
    request: Request,
    service: ListingService,
    session: CurrentSession,
) -> ORJSONResponse:
    list_request = validate_list_request(
        request.query_params,
        resource,
        default_limit=service.settings.default_page_size,
        max_limit=service.settings.export_max_rows,
    )
    response = await service.list(
        resource,
        list_request,
        authenticated=session.authenticated,
        auth_reason=session.reason or "missing",
    )
    headers = {"WWW-Authenticate": "Bearer"} if response.status_code == 401 else None
    return ORJSONResponse(
        response.to_body(resource.items_key),
        status_code=response.status_code,
        headers=headers,
    )


@router.get("/events")
async def list_events(request: Request, service: Listings, session: CurrentSession) -> ORJSONResponse:
    """Tracked events with resolved UTM attribution."""
    return await run_listing(EVENTS, request, service, session)


@router.get("/leads")
async def list_leads(request: Request, service: Listings, session: CurrentSession) -> ORJSONResponse:
    """Identified users."""
    return await run_listing(LEADS, request, service, session)


@router.get("/anonymous")
async def list_anonymous(request: Request, service: Listings, session: CurrentSession) -> ORJSONResponse:
    """Users that have not identified themselves yet."""
    return await run_listing(ANONYMOUS, request, service, session)


@router.get("/professions")
async def list_professions(request: Request, service: Listings, session: CurrentSession) -> ORJSONResponse:
    return await run_listing(PROFESSIONS, request, service, session)


@router.get("/surveys")
async def list_surveys(request: Request, service: Listings, session: CurrentSession) -> ORJSONResponse:
    """Surveys with response and sales aggregates."""
    return await run_listing(SURVEYS, request, service, session)
