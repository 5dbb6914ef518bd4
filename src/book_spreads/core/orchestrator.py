"""Download pipeline for one or more books.

For each book: open the viewer, make sure the export button is available
(asking the operator to log in if needed), detect title and page count,
fetch every missing spread in order, then merge.
"""

import asyncio
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, Optional

from book_spreads.core import store
from book_spreads.core.detector import BookDocument, detect_book_info, parse_page_count
from book_spreads.core.errors import AccessDeniedError
from book_spreads.core.fetcher import EXPORT_SELECTOR, SpreadFetcher
from book_spreads.core.merger import merge_spreads
from book_spreads.core.planner import plan_spreads
from book_spreads.core.prompts import Prompter
from book_spreads.core.viewer import ViewerSession
from book_spreads.utils.logger import Logger
from book_spreads.utils.pages import extract_book_id
from book_spreads.utils.types import (
    BookJob,
    BookResult,
    FetchOutcome,
    FetchResult,
    WaitPolicy,
    Workspace,
)

LOGIN_FORM_SELECTOR = 'form[action*="login"], input[type="password"]'
LOGIN_TEXT_MARKERS = ('inloggen', 'u moet inloggen')

SessionFactory = Callable[[Path], ViewerSession]


@dataclass
class BookOutcome:
    """Result of one book in a multi-book run."""
    url: str
    book_id: str
    result: Optional[BookResult] = None
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def has_export_button(doc: BookDocument, selector: str = EXPORT_SELECTOR) -> bool:
    return doc.soup().select_one(selector) is not None


def needs_login(doc: BookDocument, selector: str = EXPORT_SELECTOR) -> bool:
    """True when the export button is missing and the page asks for a login."""
    if has_export_button(doc, selector):
        return False
    has_login_form = doc.soup().select_one(LOGIN_FORM_SELECTOR) is not None
    text = doc.text.lower()
    has_login_text = any(marker in text for marker in LOGIN_TEXT_MARKERS)
    return has_login_form or has_login_text


async def _load_view(session: ViewerSession, url: str, policy: WaitPolicy,
                     logger: Logger) -> BookDocument:
    logger.info(f"Navigating to book: {url}")
    await session.open(url, wait_until='networkidle')
    # The viewer keeps initialising after the network goes quiet
    await asyncio.sleep(policy.load_settle)
    return await session.snapshot()


async def ensure_access(session: ViewerSession, url: str, book_id: str,
                        policy: WaitPolicy, prompter: Prompter,
                        logger: Logger) -> BookDocument:
    """Open the book and return its snapshot once the export button shows.

    Raises:
        AccessDeniedError: If the button is still missing after the login step
    """
    doc = await _load_view(session, url, policy, logger)

    if needs_login(doc):
        logger.info("Not logged in. Please log in now...")
        await prompter.wait_for_login(book_id)
        doc = await _load_view(session, url, policy, logger)
    else:
        logger.verbose_info("Already logged in! Continuing...")

    if not has_export_button(doc):
        raise AccessDeniedError(
            f"Print button not found for book {book_id}. You may not have access to "
            "this book; check that you are logged in and have permission to view it.")
    return doc


async def detect_job(doc: BookDocument, url: str, book_id: str,
                     page_limit: Optional[int], prompter: Prompter,
                     logger: Logger) -> BookJob:
    """Build the BookJob from the page, asking for the page count if needed.

    Raises:
        InputError: If a manually entered page count is invalid
    """
    logger.verbose_info("Detecting book information...")
    detection = detect_book_info(doc)

    if detection.title:
        logger.info(f"Book title: {detection.title}")
    else:
        logger.info(f"Could not detect title, using book ID: {book_id}")

    total_pages = detection.total_pages
    if total_pages:
        logger.info(f"Detected {total_pages} total pages")
    else:
        logger.info("Could not auto-detect total pages.")
        total_pages = parse_page_count(await prompter.ask_page_count(book_id))
        logger.info(f"Using {total_pages} pages")

    job = BookJob(book_id=book_id, url=url, title=detection.title,
                  total_pages=total_pages, page_limit=page_limit)
    if page_limit and page_limit < total_pages:
        logger.info(f"Limiting to {page_limit} pages")
    return job


async def download_book(url: str, workspace: Workspace, session_factory: SessionFactory,
                        profile_dir: Path, prompter: Prompter, logger: Logger,
                        page_limit: Optional[int] = None,
                        policy: WaitPolicy = WaitPolicy()) -> BookResult:
    """Run the whole pipeline for one book.

    Raises:
        InputError: If the URL or a manual page count is invalid
        AccessDeniedError: If the book cannot be exported
    """
    book_id = extract_book_id(url)
    spreads_dir = workspace.spreads_dir(book_id)

    async with session_factory(profile_dir) as session:
        doc = await ensure_access(session, url, book_id, policy, prompter, logger)
        job = await detect_job(doc, url, book_id, page_limit, prompter, logger)

        tasks = plan_spreads(job.total_pages, job.pages_per_spread, job.page_limit)
        logger.info(f"Total spreads needed: {len(tasks)}")

        missing = store.missing_tasks(tasks, spreads_dir)
        existing = len(tasks) - len(missing)
        if existing:
            logger.info(f"Found {existing} spreads already downloaded.")

        if not missing:
            logger.info("All spreads already downloaded! Skipping to merge...")
            results = [FetchResult(t, FetchOutcome.SKIPPED) for t in tasks]
        else:
            logger.subsection(f"Need to download {len(missing)} spreads")
            fetcher = SpreadFetcher(session, job, spreads_dir, policy, logger)
            results = await fetcher.fetch_all(tasks)

    result = BookResult.from_fetches(job, results)
    logger.info("")
    logger.info(f"Downloaded {result.saved}, skipped {result.skipped}, failed {result.failed} "
                f"of {len(tasks)} spreads")
    logger.verbose_info(f"Spreads saved to: {spreads_dir}")

    result.merge = merge_spreads(job.output_name, job.spread_count, spreads_dir,
                                 workspace.output_dir, logger)
    return result


def clear_profile(profile_dir: Path, logger: Logger) -> None:
    """Delete a browser profile so the next launch starts logged out."""
    logger.info(f"Clearing browser cache ({profile_dir})...")
    if profile_dir.exists():
        shutil.rmtree(profile_dir)
        logger.info("Cache cleared successfully.")
    else:
        logger.info("No cache to clear.")


def profile_for(workspace: Workspace, book_id: str, isolated: bool) -> Path:
    return workspace.profile_dir(book_id if isolated else None)


async def download_books(urls: List[str], workspace: Workspace,
                         session_factory: SessionFactory,
                         prompter_factory: Callable[[Logger], Prompter],
                         logger: Logger,
                         page_limit: Optional[int] = None,
                         policy: WaitPolicy = WaitPolicy(),
                         parallel: bool = False,
                         isolated: bool = False,
                         clear_cache: bool = False) -> List[BookOutcome]:
    """Download several books, one after another or side by side.

    With more than one book every book gets its own browser profile, so
    logins do not collide. A failing book does not stop the others.
    """
    multi = len(urls) > 1
    isolated = isolated or multi

    async def run(url: str) -> BookOutcome:
        book_id = extract_book_id(url)
        book_logger = logger.child(book_id) if multi else logger
        profile_dir = profile_for(workspace, book_id, isolated)
        if isolated:
            book_logger.verbose_info(f"Using isolated browser profile for book {book_id}")
        if clear_cache:
            clear_profile(profile_dir, book_logger)

        outcome = BookOutcome(url=url, book_id=book_id)
        try:
            outcome.result = await download_book(
                url, workspace, session_factory, profile_dir,
                prompter_factory(book_logger), book_logger,
                page_limit=page_limit, policy=policy)
        except Exception as e:
            book_logger.error(str(e))
            outcome.error = e
        return outcome

    if parallel and multi:
        logger.info(f"Downloading {len(urls)} books in parallel")
        return list(await asyncio.gather(*(run(url) for url in urls)))

    outcomes = []
    for url in urls:
        outcomes.append(await run(url))
    return outcomes
