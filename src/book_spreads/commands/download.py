"""Download command."""

import asyncio
from dataclasses import replace
import sys
from pathlib import Path
import click

from book_spreads.core.errors import InputError
from book_spreads.core.orchestrator import download_books
from book_spreads.core.prompts import ConsolePrompter
from book_spreads.core.viewer import PlaywrightSession
from book_spreads.utils.logger import Logger
from book_spreads.utils.pages import extract_book_id, split_targets
from book_spreads.utils.types import WaitPolicy, Workspace

DEFAULT_POLICY = WaitPolicy()


@click.command()
@click.argument('targets', nargs=-1, metavar='URL... [PAGE_LIMIT]')
@click.option('-d', '--dir', 'base_dir', type=click.Path(file_okay=False),
              help='Base directory for spreads/, output/ and browser profiles (default: cwd)')
@click.option('--clear-cache', is_flag=True,
              help='Delete the saved browser profile(s) before starting')
@click.option('--parallel', is_flag=True,
              help='Download several books at the same time')
@click.option('--isolated', is_flag=True,
              help='Use a per-book browser profile even for a single book')
@click.option('--headless', is_flag=True,
              help='Run the browser without a window (needs a saved login)')
@click.option('--settle', type=click.FloatRange(min=0), default=DEFAULT_POLICY.spread_settle,
              show_default=True, help='Seconds to wait after moving to a spread')
@click.option('--capture-timeout', type=click.FloatRange(min=0, min_open=True),
              default=DEFAULT_POLICY.capture_timeout, show_default=True,
              help='Seconds to wait for the PDF tab to open')
@click.pass_context
def download(ctx, targets, base_dir, clear_cache, parallel, isolated, headless,
             settle, capture_timeout):
    """Download a book spread by spread and merge it into one PDF.

    URL:
    Book page on the viewer, e.g. https://www.nt2schoolcollectie.nl/boek/9789046905609
    Several URLs may be given; each book then gets its own browser profile.

    PAGE_LIMIT:
    Optional number of pages to fetch (useful for testing).

    OUTPUT:

    \b
    spreads/<book-id>/spread-NNN.pdf   one file per two-page spread
    output/<title>.pdf                 the merged book
    .browser-data[-<book-id>]/         saved login session

    Spreads already on disk are skipped, so an interrupted run can simply
    be started again.

    EXAMPLES:

    \b
    # Download a whole book
    book-spreads download https://www.nt2schoolcollectie.nl/boek/9789046905609
    # First 10 pages only
    book-spreads download https://www.nt2schoolcollectie.nl/boek/9789046905609 10
    # Start with a fresh login
    book-spreads download https://www.nt2schoolcollectie.nl/boek/9789046905609 --clear-cache
    # Two books at once
    book-spreads download URL1 URL2 --parallel
    """
    verbose = ctx.obj.get('verbose', False)
    logger = Logger(verbose=verbose)

    try:
        urls, page_limit = split_targets(targets)
        book_ids = [extract_book_id(url) for url in urls]
    except InputError as e:
        logger.error(str(e))
        click.echo(ctx.get_usage(), err=True)
        sys.exit(1)

    # One pipeline per book; a repeated book would race on its own files
    unique_urls = []
    seen = set()
    for url, book_id in zip(urls, book_ids):
        if book_id in seen:
            logger.warning(f"Book {book_id} given more than once, ignoring {url}")
            continue
        seen.add(book_id)
        unique_urls.append(url)

    workspace = Workspace(Path(base_dir) if base_dir else Path.cwd())
    policy = replace(DEFAULT_POLICY, spread_settle=settle, capture_timeout=capture_timeout)

    outcomes = asyncio.run(download_books(
        unique_urls,
        workspace,
        session_factory=lambda profile_dir: PlaywrightSession(profile_dir, headless=headless),
        prompter_factory=ConsolePrompter,
        logger=logger,
        page_limit=page_limit,
        policy=policy,
        parallel=parallel,
        isolated=isolated,
        clear_cache=clear_cache,
    ))

    failed = [o for o in outcomes if not o.ok]
    if len(outcomes) > 1:
        logger.section("Summary")
        for outcome in outcomes:
            if outcome.ok:
                merge = outcome.result.merge
                logger.info(f"✓ {outcome.book_id}: {merge.output_path} ({merge.page_count} pages)")
            else:
                logger.info(f"✗ {outcome.book_id}: {outcome.error}")

    sys.exit(1 if failed else 0)
