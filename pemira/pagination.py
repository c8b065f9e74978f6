"""Pagination parameters and metadata."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any

_DEFAULT_PER_PAGE = 10
_MAX_PER_PAGE = 100


@dataclass(frozen=True)
class PaginationParams:
    page: int
    per_page: int

    def offset(self) -> int:
        return (self.page - 1) * self.per_page

    def limit(self) -> int:
        return self.per_page


@dataclass(frozen=True)
class PaginationMeta:
    current_page: int
    per_page: int
    total: int
    total_pages: int


@dataclass(frozen=True)
class PaginatedResponse:
    data: Any
    meta: PaginationMeta

    def to_dict(self) -> dict[str, Any]:
        return {"data": self.data, "meta": asdict(self.meta)}


@dataclass(frozen=True)
class Pagination:
    """Page metadata returned by list endpoints."""

    page: int
    limit: int
    total_items: int
    total_pages: int

    def to_dict(self) -> dict[str, int]:
        return {
            "page": self.page,
            "limit": self.limit,
            "total_items": self.total_items,
            "total_pages": self.total_pages,
        }


def new_pagination_params(page: int, per_page: int) -> PaginationParams:
    """Clamp page and page size to their allowed ranges."""
    page = max(page, 1)
    if per_page < 1:
        per_page = _DEFAULT_PER_PAGE
    per_page = min(per_page, _MAX_PER_PAGE)
    return PaginationParams(page=page, per_page=per_page)


def _page_count(total: int, size: int) -> int:
    if size <= 0:
        return 0
    return -(-total // size)


def new_paginated_response(data: Any, params: PaginationParams, total: int) -> PaginatedResponse:
    return PaginatedResponse(
        data=data,
        meta=PaginationMeta(
            current_page=params.page,
            per_page=params.per_page,
            total=total,
            total_pages=_page_count(total, params.per_page),
        ),
    )


def paginate(page: int, limit: int, total: int) -> Pagination:
    """Build page metadata for ``total`` items split into pages of ``limit``."""
    return Pagination(page=page, limit=limit, total_items=total, total_pages=_page_count(total, limit))