"""Sort resolution against a per-resource allow-list."""

from dataclasses import dataclass
from typing import Mapping

import structlog

from betaintel.listing.resources import ResourceSpec

logger = structlog.get_logger()

SORT_DIRECTIONS = ("asc", "desc")


@dataclass(frozen=True)
class ResolvedSort:
    """Effective ordering of a list query.

    ``key`` is the public sort name echoed back to the client as
    ``meta.sort_by``; ``field`` is the backend path it maps to.
    ``tiebreaker`` keeps page boundaries stable when ``field`` has ties.
    """

    key: str
    field: str
    direction: str
    tiebreaker: str | None = None

    @property
    def descending(self) -> bool:
        return self.direction == "desc"


def resolve_sort(
    sort_field: str | None,
    sort_direction: str | None,
    allow_list: Mapping[str, str],
    default_field: str,
    default_direction: str = "desc",
    tiebreaker: str | None = None,
) -> ResolvedSort:
    """Map a requested sort onto the allow-list.

    Unknown fields fall back to ``default_field`` and unknown directions to
    ``default_direction``, silently. The caller echoes the resolved key so
    the client can reflect the sort that was actually applied.
    """
    key = sort_field if sort_field in allow_list else default_field
    if sort_field is not None and key != sort_field:
        logger.debug("sort_field_defaulted", requested=sort_field, resolved=key)

    direction = sort_direction.lower() if isinstance(sort_direction, str) else None
    if direction not in SORT_DIRECTIONS:
        direction = default_direction if default_direction in SORT_DIRECTIONS else "desc"

    field = allow_list.get(key, key)
    if tiebreaker == field:
        tiebreaker = None
    return ResolvedSort(key=key, field=field, direction=direction, tiebreaker=tiebreaker)


def resolve_resource_sort(
    resource: ResourceSpec,
    sort_field: str | None,
    sort_direction: str | None,
) -> ResolvedSort:
    return resolve_sort(
        sort_field,
        sort_direction,
        resource.sort_fields,
        resource.default_sort,
        resource.default_direction,
        tiebreaker=resource.primary_key,
    )
