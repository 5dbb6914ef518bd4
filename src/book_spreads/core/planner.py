"""Spread planning."""

import math
from typing import List, Optional

from book_spreads.utils.types import PAGES_PER_SPREAD, SpreadTask


def plan_spreads(total_pages: int, pages_per_spread: int = PAGES_PER_SPREAD,
                 limit: Optional[int] = None) -> List[SpreadTask]:
    """Turn a page count into the ordered list of spreads to fetch.

    Args:
        total_pages: Number of pages in the book
        pages_per_spread: Pages shown per spread (2 for this viewer)
        limit: Optional cap on the number of pages

    Returns:
        ``ceil(pages / pages_per_spread)`` tasks, task ``i`` at offset
        ``i * pages_per_spread``

    Raises:
        ValueError: If any count is not positive
    """
    if total_pages < 1:
        raise ValueError(f"total_pages must be >= 1, got {total_pages}")
    if pages_per_spread < 1:
        raise ValueError(f"pages_per_spread must be >= 1, got {pages_per_spread}")
    if limit is not None:
        if limit < 1:
            raise ValueError(f"limit must be >= 1, got {limit}")
        total_pages = min(total_pages, limit)

    count = math.ceil(total_pages / pages_per_spread)
    return [SpreadTask(index=i, offset=i * pages_per_spread) for i in range(count)]
