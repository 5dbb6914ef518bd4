"""Merge command."""

import sys
from pathlib import Path
import click

from book_spreads.core import store
from book_spreads.core.errors import InputError
from book_spreads.core.merger import merge_spreads
from book_spreads.utils.logger import Logger
from book_spreads.utils.pages import resolve_book_id
from book_spreads.utils.slug import output_name
from book_spreads.utils.types import Workspace


@click.command()
@click.argument('book')
@click.option('-t', '--title', type=str, help='Title used to name the output file')
@click.option('-n', '--spreads', 'spread_count', type=click.IntRange(min=1),
              help='Number of spreads the book has (default: highest on disk + 1)')
@click.option('-d', '--dir', 'base_dir', type=click.Path(file_okay=False),
              help='Base directory holding spreads/ and output/ (default: cwd)')
@click.pass_context
def merge(ctx, book, title, spread_count, base_dir):
    """Merge already downloaded spreads without opening the browser.

    BOOK:
    Book ID or viewer URL.

    Gaps in the spread numbering are reported and left out of the PDF.

    The output file is named after --title, or the book ID when no title
    is given. Pass the title the download used to replace its merged PDF
    instead of writing a second one next to it.

    EXAMPLES:

    \b
    book-spreads merge 9789046905609
    book-spreads merge 9789046905609 -t "Het Grote Verhaal" -n 60
    """
    verbose = ctx.obj.get('verbose', False)
    logger = Logger(verbose=verbose)

    try:
        book_id = resolve_book_id(book)
    except InputError as e:
        logger.error(str(e))
        sys.exit(1)

    workspace = Workspace(Path(base_dir) if base_dir else Path.cwd())
    spreads_dir = workspace.spreads_dir(book_id)

    if spread_count is None:
        highest = store.highest_index(spreads_dir)
        if highest is None:
            logger.error(f"No spreads found in {spreads_dir}")
            sys.exit(1)
        spread_count = highest + 1

    try:
        merge_spreads(output_name(title, book_id), spread_count, spreads_dir,
                      workspace.output_dir, logger)
    except OSError as e:
        logger.error(f"Failed to write PDF: {e}")
        sys.exit(1)
