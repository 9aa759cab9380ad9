"""API router package."""

from fastapi import APIRouter

from betaintel.api.v1 import exports, health, listings

router = APIRouter()

router.include_router(health.router, tags=["Health"])
router.include_router(listings.router, tags=["Listings"])
router.include_router(exports.router, prefix="/exports", tags=["Exports"])
