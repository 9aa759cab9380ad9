"""Shared API dependencies."""

from typing import Annotated

from fastapi import Depends

from betaintel.config import get_settings
from betaintel.db.session import DBSession
from betaintel.listing.backends import ListingBackend
from betaintel.listing.service import ListingService
from betaintel.listing.sql import SQLListingBackend


async def get_listing_backend(db: DBSession) -> ListingBackend:
    return SQLListingBackend(db)


async def get_listing_service(
    backend: Annotated[ListingBackend, Depends(get_listing_backend)],
) -> ListingService:
    return ListingService(backend, get_settings())


Listings = Annotated[ListingService, Depends(get_listing_service)]
