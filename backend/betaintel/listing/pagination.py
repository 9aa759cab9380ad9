"""Pagination math and the list response envelope."""

from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, Field


@dataclass(frozen=True)
class PageWindow:
    offset: int
    limit: int
    last_page: int


def page_offset(page: int, limit: int) -> int:
    """Row offset of ``page``; assumes ``page >= 1`` as produced by the parser."""
    return (page - 1) * limit


def last_page(total: int, limit: int) -> int:
    """``ceil(total / limit)``, never less than 1."""
    if limit < 1:
        return 1
    return max(1, (total + limit - 1) // limit)


def paginate(total: int, page: int, limit: int) -> PageWindow:
    """Compute the row window for a page.

    A page past the end is not an error; the window simply selects no rows.
    """
    return PageWindow(
        offset=page_offset(page, limit),
        limit=limit,
        last_page=last_page(total, limit),
    )


class ListMeta(BaseModel):
    """Metadata envelope returned with every listing."""

    total: int = 0
    page: int = 1
    limit: int = 10
    last_page: int = 1
    sort_by: str | None = None
    sort_direction: str | None = None
    valid_sort_fields: list[str] = Field(default_factory=list)
    extra: dict[str, Any] = Field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        data = self.model_dump(exclude={"extra"})
        data.update(self.extra)
        return data


class ListResponse(BaseModel):
    """Items plus metadata; ``status_code`` is the transport status to send."""

    items: list[dict[str, Any]] = Field(default_factory=list)
    meta: ListMeta = Field(default_factory=ListMeta)
    status_code: int = 200
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.status_code < 400

    def to_body(self, items_key: str) -> dict[str, Any]:
        body: dict[str, Any] = {items_key: self.items, "meta": self.meta.to_dict()}
        if self.error is not None:
            body["error"] = self.error
        return body
