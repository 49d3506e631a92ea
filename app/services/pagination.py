"""Fixed-size pagination over an already ordered result set."""
import math
from typing import Optional, Sequence, TypeVar

from app.schemas.catalog_schema import Page

T = TypeVar("T")


def total_pages(total: int, page_size: Optional[int]) -> int:
    """Number of pages for `total` items; never less than 1."""
    if not page_size or page_size < 1:
        return 1
    return max(1, math.ceil(total / page_size))


def clamp_page(page_number: int, pages: int) -> int:
    return min(max(page_number, 1), pages)


def paginate(items: Sequence[T], page_size: Optional[int], page_number: int = 1) -> Page[T]:
    """Slice `items` into the requested page.

    A page_size of None (admin table) puts every item on a single page.
    Page numbers outside [1, pages] are clamped to the nearest bound.
    """
    total = len(items)
    pages = total_pages(total, page_size)
    page = clamp_page(page_number, pages)

    if not page_size or page_size < 1:
        chunk = list(items)
        page_size = None
    else:
        start = (page - 1) * page_size
        chunk = list(items[start:start + page_size])

    return Page(items=chunk, page=page, page_size=page_size, total=total, pages=pages)
