# Overview: Page/page_size parsing and page_info for paginated listings.

from __future__ import annotations

from .errors import ValidationError

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100


def parse_page_args(page, page_size) -> tuple[int, int]:
    """Validate 1-based page and page_size (defaults 1 / 20, size capped at 100)."""
    try:
        page = int(page) if page not in (None, "") else 1
        page_size = int(page_size) if page_size not in (None, "") else DEFAULT_PAGE_SIZE
    except (TypeError, ValueError):
        raise ValidationError("page and page_size must be integers")
    if page < 1:
        raise ValidationError("page must be >= 1")
    if page_size < 1:
        raise ValidationError("page_size must be >= 1")
    return page, min(page_size, MAX_PAGE_SIZE)


def paginate(query, page: int, page_size: int) -> tuple[list, dict]:
    """
    Run an ordered query for one page.

    Returns (rows, page_info) where page_info is
    {"page", "page_size", "total_pages", "total_items"}.
    """
    total = query.order_by(None).count()
    total_pages = (total + page_size - 1) // page_size
    rows = query.offset((page - 1) * page_size).limit(page_size).all()
    return rows, {
        "page": page,
        "page_size": page_size,
        "total_pages": total_pages,
        "total_items": total,
    }
