"""Page count and title detection for a loaded book view.

Detection runs over a snapshot of the page (HTML plus the body's visible
text) rather than the live page, so every strategy can be exercised with
plain strings.
"""

from dataclasses import dataclass
from typing import Any, Callable, Iterator, Optional, Tuple
import json
import re
from bs4 import BeautifulSoup

from book_spreads.core.errors import InputError

# Pagination text such as "12 / 240"
RATIO_PATTERN = re.compile(r'(\d+)\s*/\s*(\d+)')
EXACT_RATIO_PATTERN = re.compile(r'^(\d+)\s*/\s*(\d+)$')
# Dutch first ("240 pagina's"), then English
PAGE_COUNT_PATTERNS = (
    re.compile(r"(\d+)\s*pagina'?s", re.IGNORECASE),
    re.compile(r"(\d+)\s*pages\b", re.IGNORECASE),
)
# Longer strings are more likely unrelated ratios than a page indicator
MAX_INDICATOR_LENGTH = 20


@dataclass(frozen=True)
class BookDocument:
    """Snapshot of the book view."""
    html: str
    text: str

    def soup(self) -> BeautifulSoup:
        return BeautifulSoup(self.html, 'lxml')


@dataclass(frozen=True)
class Detection:
    title: Optional[str]
    total_pages: Optional[int]


def _positive(value: Any) -> Optional[int]:
    try:
        number = int(str(value).strip())
    except (TypeError, ValueError):
        return None
    return number if number > 0 else None


def _find_key(data: Any, key: str) -> Iterator[Any]:
    """Yield every value stored under ``key`` in nested JSON data."""
    if isinstance(data, dict):
        for k, v in data.items():
            if k == key:
                yield v
            else:
                yield from _find_key(v, key)
    elif isinstance(data, list):
        for item in data:
            yield from _find_key(item, key)


def from_structured_data(doc: BookDocument) -> Optional[int]:
    """numberOfPages from a JSON-LD block.

    The catalogue page declares it under
    ``dataFeedElement[0].workExample[0].numberOfPages``; any other nesting
    is accepted too.
    """
    for script in doc.soup().find_all('script', type='application/ld+json'):
        try:
            data = json.loads(script.string or '')
        except ValueError:
            continue
        for value in _find_key(data, 'numberOfPages'):
            pages = _positive(value)
            if pages:
                return pages
    return None


def from_page_count_text(doc: BookDocument) -> Optional[int]:
    """Page count from "<N> pagina's" (or "<N> pages") in the visible text."""
    for pattern in PAGE_COUNT_PATTERNS:
        match = pattern.search(doc.text)
        if match:
            pages = _positive(match.group(1))
            if pages:
                return pages
    return None


def from_pagination_text(doc: BookDocument) -> Optional[int]:
    """Total from the first "current / total" in the visible text."""
    match = RATIO_PATTERN.search(doc.text)
    if match:
        return _positive(match.group(2))
    return None


def from_indicator_elements(doc: BookDocument) -> Optional[int]:
    """Scan all elements for a short, exact "<N> / <M>" label."""
    for element in doc.soup().find_all(True):
        if element.name in ('script', 'style'):
            continue
        text = element.get_text(strip=True) or element.get('aria-label', '').strip()
        if len(text) >= MAX_INDICATOR_LENGTH:
            continue
        match = EXACT_RATIO_PATTERN.match(text)
        if match:
            pages = _positive(match.group(2))
            if pages:
                return pages
    return None


PageCountStrategy = Callable[[BookDocument], Optional[int]]

PAGE_COUNT_STRATEGIES: Tuple[PageCountStrategy, ...] = (
    from_structured_data,
    from_page_count_text,
    from_pagination_text,
    from_indicator_elements,
)


def detect_page_count(doc: BookDocument,
                      strategies: Tuple[PageCountStrategy, ...] = PAGE_COUNT_STRATEGIES) -> Optional[int]:
    """Run strategies in order; first positive count wins."""
    for strategy in strategies:
        pages = strategy(doc)
        if pages:
            return pages
    return None


def detect_title(doc: BookDocument) -> Optional[str]:
    """Document title, falling back to og:title."""
    soup = doc.soup()
    if soup.title and soup.title.string and soup.title.string.strip():
        return soup.title.string.strip()
    og_title = soup.find('meta', property='og:title')
    if og_title and og_title.get('content', '').strip():
        return og_title['content'].strip()
    return None


def detect_book_info(doc: BookDocument) -> Detection:
    return Detection(title=detect_title(doc), total_pages=detect_page_count(doc))


def parse_page_count(answer: str) -> int:
    """Validate a manually entered page count.

    Raises:
        InputError: If the answer is not a positive integer
    """
    pages = _positive(answer)
    if pages is None:
        raise InputError(f"Invalid page count '{answer.strip()}'")
    return pages
