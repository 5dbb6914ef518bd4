"""Book URL and page argument parsing utilities."""

from typing import List, Optional, Sequence, Tuple
import re

from book_spreads.core.errors import InputError

BOOK_ID_PATTERN = re.compile(r'/boek/(\d+)')


def extract_book_id(url: str) -> str:
    """Extract the book ID (ISBN) from a viewer URL.

    Handles formats like:
    - https://www.nt2schoolcollectie.nl/boek/9789046905609
    - https://www.nt2schoolcollectie.nl/boek/9789046905609#12

    Raises:
        InputError: If the URL has no /boek/<digits> segment
    """
    match = BOOK_ID_PATTERN.search(url)
    if not match:
        raise InputError(f"Invalid book URL '{url}'. Must contain /boek/[ISBN]")
    return match.group(1)


def resolve_book_id(input_str: str) -> str:
    """Accept either a bare book ID or a viewer URL."""
    input_str = input_str.strip()
    if input_str.isdigit():
        return input_str
    return extract_book_id(input_str)


def parse_page_limit(value: str) -> int:
    """Parse a page-limit argument into a positive integer.

    Raises:
        InputError: If the value is not a positive integer
    """
    try:
        limit = int(value)
    except ValueError:
        raise InputError(f"Invalid page limit '{value}'")
    if limit <= 0:
        raise InputError(f"Page limit must be positive, got {limit}")
    return limit


def split_targets(args: Sequence[str]) -> Tuple[List[str], Optional[int]]:
    """Split positional arguments into book URLs and an optional page limit.

    A trailing all-digit argument is the page limit when at least one
    other argument precedes it, so ``URL 10`` limits to 10 pages.

    Returns:
        Tuple of (urls, page_limit or None)

    Raises:
        InputError: If no URL is given or the limit is invalid
    """
    items = [a for a in args if a.strip()]
    limit = None
    if len(items) > 1 and items[-1].strip().lstrip('-').isdigit():
        limit = parse_page_limit(items[-1])
        items = items[:-1]
    if not items:
        raise InputError("At least one book URL is required")
    return items, limit
