"""Main CLI entry point for book-spreads."""

import click

from book_spreads.commands.download import download
from book_spreads.commands.merge import merge


@click.group()
@click.option('-v', '--verbose', is_flag=True, help='Verbose output')
@click.pass_context
def cli(ctx, verbose):
    """Save books from the online book viewer as PDF.

    The viewer's print button exports the two pages on screen as a PDF.
    book-spreads presses it for every spread, keeps each spread on disk and
    merges them into one file.

    TYPICAL WORKFLOW:

    \b
    1. DOWNLOAD: log in once in the browser window that opens
       book-spreads download https://www.nt2schoolcollectie.nl/boek/9789046905609
    2. RESUME: run the same command again after an interruption;
       spreads already on disk are skipped
    3. RE-MERGE: rebuild the PDF from the spreads on disk
       book-spreads merge 9789046905609

    Use -v/--verbose for detailed progress output.
    """
    ctx.ensure_object(dict)
    ctx.obj['verbose'] = verbose


# Register commands
cli.add_command(download)
cli.add_command(merge)


if __name__ == '__main__':
    cli()
