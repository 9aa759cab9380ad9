"""Health check endpoints."""

from fastapi import APIRouter
from sqlalchemy import text

from betaintel.config import get_settings
from betaintel.db.session import DBSession
from betaintel.listing.resources import RESOURCES

router = APIRouter()
settings = get_settings()


@router.get("/health/ready")
async def readiness_check(db: DBSession) -> dict:
    """Readiness check: database connectivity plus the served resources."""
    try:
        await db.execute(text("SELECT 1"))
        database = "healthy"
    except Exception as e:
        database = f"unhealthy: {e}"

    return {
        "status": "healthy" if database == "healthy" else "unhealthy",
        "version": settings.app_version,
        "checks": {"database": database},
        "resources": sorted(RESOURCES),
    }
