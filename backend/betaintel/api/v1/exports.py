"""Server-side CSV export of a filtered listing."""

import structlog
from fastapi import APIRouter, HTTPException, Request, status
from fastapi.responses import StreamingResponse

from betaintel.api.deps import Listings
from betaintel.api.v1.auth import CurrentSession
from betaintel.listing.client import LocalListingClient
from betaintel.listing.csv_export import columns_for
from betaintel.listing.export import BulkExportOrchestrator, ExportState, export_filename
from betaintel.listing.resources import get_resource

router = APIRouter()
logger = structlog.get_logger()


@router.get("/{resource}")
async def export_listing(
    resource: str,
    request: Request,
    service: Listings,
    session: CurrentSession,
) -> StreamingResponse:
    """Export every row matching the request's filters as CSV.

    ``columns`` (comma separated column ids) selects and orders the
    exported columns. A short result is still returned, flagged with
    ``X-Export-Partial: true``.
    """
    try:
        spec = get_resource(resource)
    except KeyError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Unknown resource: {resource}",
        )

    if spec.requires_auth and not session.authenticated:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    params = dict(request.query_params)
    visible = [c for c in params.pop("columns", "").split(",") if c.strip()]
    settings = service.settings

    orchestrator = BulkExportOrchestrator(
        LocalListingClient(service, authenticated=session.authenticated),
        spec.name,
        columns=columns_for(spec.name, visible),
        page_size=settings.export_page_size,
        request_delay=0,
        timezone_name=settings.display_timezone,
        confirm_partial=lambda received, expected: True,
    )
    result = await orchestrator.export_all(params)

    if result.state is ExportState.ABORTED and result.row_count == 0:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=result.error)
    if not result.ok:
        logger.error("export_request_failed", resource=spec.name, state=result.state.value, error=result.error)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=result.error or "Export failed",
        )

    headers = {
        "Content-Disposition": f"attachment; filename={export_filename(spec.name, settings.display_timezone)}",
        "X-Export-Rows": str(result.row_count),
    }
    if result.partial:
        headers["X-Export-Partial"] = "true"

    return StreamingResponse(
        iter([result.csv]),
        media_type="text/csv",
        headers=headers,
    )
