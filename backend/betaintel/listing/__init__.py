"""Listing pipeline: request parsing, filter compilation, sorting, paging and export."""

from betaintel.listing.params import ListRequest, validate_list_request
from betaintel.listing.resources import RESOURCES, ResourceSpec, get_resource
from betaintel.listing.service import ListingService

__all__ = [
    "ListRequest",
    "ListingService",
    "RESOURCES",
    "ResourceSpec",
    "get_resource",
    "validate_list_request",
]
