# Overview: Shared list-query helpers (scope, date window, category, paging).

from __future__ import annotations

from dataclasses import dataclass

from flask import current_app

from ..models import AssetType
from ..models.reference import ASSET_CATEGORIES
from ..validation import DateWindow, PageRequest, parse_page, parse_window, validate_choice


@dataclass
class Page:
    items: list
    page: int
    page_size: int
    total_items: int

    @property
    def total_pages(self) -> int:
        if self.total_items == 0:
            return 0
        return (self.total_items + self.page_size - 1) // self.page_size

    def to_dict(self) -> dict:
        return {
            "items": [item.to_dict() for item in self.items],
            "pagination": {
                "page": self.page,
                "page_size": self.page_size,
                "total_items": self.total_items,
                "total_pages": self.total_pages,
            },
        }


def apply_window(query, column, window: DateWindow | None):
    """Inclusive date filtering on `column`."""
    if window is None:
        return query
    if window.start is not None:
        query = query.filter(column >= window.start)
    if window.end is not None:
        query = query.filter(column <= window.end)
    return query


def apply_category(query, asset_type_column, category: str | None):
    if not category:
        return query
    return query.join(AssetType, AssetType.id == asset_type_column).filter(AssetType.category == category)


def paginate(query, page: PageRequest, *order_by) -> Page:
    total = query.order_by(None).count()
    items = query.order_by(*order_by).offset(page.offset).limit(page.page_size).all()
    return Page(items=items, page=page.page, page_size=page.page_size, total_items=total)


@dataclass(frozen=True)
class ListFilters:
    status: str | None
    window: DateWindow
    category: str | None
    page: PageRequest


def parse_filters(
    lifecycle,
    *,
    status=None,
    start_date=None,
    end_date=None,
    category=None,
    page=None,
    page_size=None,
) -> ListFilters:
    """Validate list arguments up front; nothing is queried on bad input."""
    config = current_app.config
    return ListFilters(
        status=validate_choice(status, "status", lifecycle.states),
        window=parse_window(start_date, end_date),
        category=validate_choice(category, "category", ASSET_CATEGORIES),
        page=parse_page(
            page,
            page_size,
            default_size=config.get("DEFAULT_PAGE_SIZE", 10),
            max_size=config.get("MAX_PAGE_SIZE", 100),
        ),
    )
