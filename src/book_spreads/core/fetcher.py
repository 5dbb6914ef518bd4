"""Per-spread download: navigate, export, capture, persist."""

import asyncio
from pathlib import Path
from typing import Iterable, List

from book_spreads.core import store
from book_spreads.core.errors import NavigationError, RetrievalError, SpreadFetchError
from book_spreads.core.viewer import ViewerSession
from book_spreads.utils.logger import Logger
from book_spreads.utils.types import (
    BookJob,
    FetchOutcome,
    FetchResult,
    SpreadTask,
    WaitPolicy,
)

EXPORT_SELECTOR = '#print-pdf'


class SpreadFetcher:
    """Fetches spreads of one book through one viewer session.

    Spreads must be fetched one at a time: the viewer has a single tab and
    the export button acts on whatever that tab shows.
    """

    def __init__(self, session: ViewerSession, job: BookJob, spreads_dir: Path,
                 policy: WaitPolicy, logger: Logger,
                 export_selector: str = EXPORT_SELECTOR):
        self.session = session
        self.job = job
        self.spreads_dir = spreads_dir
        self.policy = policy
        self.logger = logger
        self.export_selector = export_selector

    async def fetch(self, task: SpreadTask, position: str = '') -> FetchResult:
        """Fetch one spread unless a complete copy is already on disk."""
        output_path = task.path_in(self.spreads_dir)
        prefix = f"{position} " if position else ''

        if store.is_complete(output_path):
            self.logger.verbose_info(f"{prefix}Spread {task.label} already exists, skipping...")
            return FetchResult(task, FetchOutcome.SKIPPED, size=output_path.stat().st_size)

        first, last = task.offset, task.offset + self.job.pages_per_spread - 1
        self.logger.info(f"{prefix}Processing spread {task.label} (pages {first}-{last})...")

        try:
            size = await self._capture(task, output_path)
        except (SpreadFetchError, NavigationError) as e:
            self.logger.error(f"✗ Spread {task.label}: {e}")
            return FetchResult(task, FetchOutcome.FAILED, error=str(e))
        except OSError as e:
            self.logger.error(f"✗ Spread {task.label}: could not write {output_path}: {e}")
            return FetchResult(task, FetchOutcome.FAILED, error=str(e))

        self.logger.info(f"  ✓ Saved to {output_path} ({size / 1024:.2f} KB)")
        return FetchResult(task, FetchOutcome.SAVED, size=size)

    async def _capture(self, task: SpreadTask, output_path: Path) -> int:
        await self.session.open(self.job.spread_url(task.offset))
        # Pages render asynchronously after the anchor changes
        await asyncio.sleep(self.policy.spread_settle)

        surface = await self.session.open_export(self.export_selector,
                                                 self.policy.capture_timeout)
        try:
            data = await surface.read_bytes()
            # An expired session exports an HTML page instead of the PDF
            if not data.startswith(store.PDF_MAGIC):
                raise RetrievalError(f"Export is not a PDF (starts with {data[:16]!r})")
            size = store.write_atomic(output_path, data)
        finally:
            await surface.close()

        await asyncio.sleep(self.policy.between_spreads)
        return size

    async def fetch_all(self, tasks: Iterable[SpreadTask]) -> List[FetchResult]:
        """Fetch spreads strictly in order; failures do not stop the loop."""
        tasks = list(tasks)
        results = []
        for task in tasks:
            position = f"[{task.index + 1}/{len(tasks)}]"
            results.append(await self.fetch(task, position))
        return results
