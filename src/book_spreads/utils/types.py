"""Type hints and dataclasses for book-spreads."""

import math
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import List, Optional

from book_spreads.utils import slug

PAGES_PER_SPREAD = 2
SPREAD_FILENAME = "spread-{index:03d}.pdf"


@dataclass(frozen=True)
class WaitPolicy:
    """Fixed waits used while driving the viewer (seconds).

    The viewer exposes no "render complete" signal, so every wait is a
    plain delay except ``capture_timeout``, which bounds the new-page wait.
    """
    load_settle: float = 5.0
    spread_settle: float = 4.0
    capture_timeout: float = 5.0
    between_spreads: float = 0.5

    @classmethod
    def immediate(cls) -> "WaitPolicy":
        """Policy with no delays (capture still needs a non-zero bound)."""
        return cls(load_settle=0, spread_settle=0, capture_timeout=1.0, between_spreads=0)


@dataclass(frozen=True)
class Workspace:
    """On-disk layout rooted at a base directory."""
    root: Path

    def spreads_dir(self, book_id: str) -> Path:
        return self.root / "spreads" / book_id

    @property
    def output_dir(self) -> Path:
        return self.root / "output"

    def profile_dir(self, book_id: Optional[str] = None) -> Path:
        """Browser profile: shared, or keyed by book when ``book_id`` is given."""
        if book_id:
            return self.root / f".browser-data-{book_id}"
        return self.root / ".browser-data"


@dataclass(frozen=True)
class SpreadTask:
    """One two-page spread to fetch."""
    index: int
    offset: int

    @property
    def filename(self) -> str:
        return SPREAD_FILENAME.format(index=self.index)

    @property
    def label(self) -> str:
        return f"{self.index:03d}"

    def path_in(self, directory: Path) -> Path:
        return directory / self.filename


@dataclass(frozen=True)
class BookJob:
    """Everything known about a book once detection has finished."""
    book_id: str
    url: str
    title: Optional[str]
    total_pages: int
    page_limit: Optional[int] = None
    pages_per_spread: int = PAGES_PER_SPREAD

    @property
    def effective_pages(self) -> int:
        if self.page_limit:
            return min(self.total_pages, self.page_limit)
        return self.total_pages

    @property
    def spread_count(self) -> int:
        return math.ceil(self.effective_pages / self.pages_per_spread)

    @property
    def output_name(self) -> str:
        """Filesystem-safe base name for the merged PDF."""
        return slug.output_name(self.title, self.book_id)

    def spread_url(self, offset: int) -> str:
        """Viewer URL anchored at a page offset."""
        return f"{self.url.split('#')[0]}#{offset}"


class FetchOutcome(Enum):
    SAVED = "saved"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass
class FetchResult:
    task: SpreadTask
    outcome: FetchOutcome
    size: int = 0
    error: Optional[str] = None


@dataclass
class MergeReport:
    """Result of assembling the spreads into one PDF."""
    output_path: Path
    page_count: int
    size_bytes: int
    merged: List[int] = field(default_factory=list)
    missing: List[int] = field(default_factory=list)
    unreadable: List[int] = field(default_factory=list)


@dataclass
class BookResult:
    job: BookJob
    saved: int = 0
    skipped: int = 0
    failed: int = 0
    merge: Optional[MergeReport] = None

    @classmethod
    def from_fetches(cls, job: BookJob, results: List[FetchResult]) -> "BookResult":
        result = cls(job=job)
        for item in results:
            if item.outcome is FetchOutcome.SAVED:
                result.saved += 1
            elif item.outcome is FetchOutcome.SKIPPED:
                result.skipped += 1
            else:
                result.failed += 1
        return result
