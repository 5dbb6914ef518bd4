"""Assemble downloaded spreads into one PDF."""

from pathlib import Path

from pypdf import PdfReader, PdfWriter

from book_spreads.core import store
from book_spreads.utils.logger import Logger
from book_spreads.utils.types import MergeReport, SpreadTask

PROGRESS_EVERY = 20


def merge_spreads(name: str, spread_count: int, spreads_dir: Path, output_dir: Path,
                  logger: Logger) -> MergeReport:
    """Concatenate spreads ``0..spread_count-1`` into ``output_dir/<name>.pdf``.

    Missing and unreadable spreads are reported and left out; the merge
    itself only fails if the output file cannot be written.

    Args:
        name: Base name of the merged file (sanitized title or book ID)
        spread_count: Number of spreads the book should have
        spreads_dir: Directory holding spread-NNN.pdf files
        output_dir: Directory for the merged PDF
        logger: Logger instance

    Returns:
        MergeReport with page count, size and the skipped indices
    """
    logger.subsection("Merging all spreads into single PDF...")

    output_path = output_dir / f"{name}.pdf"
    writer = PdfWriter()
    report = MergeReport(output_path=output_path, page_count=0, size_bytes=0)

    for index in range(spread_count):
        spread_path = SpreadTask(index=index, offset=0).path_in(spreads_dir)

        if not store.is_complete(spread_path):
            logger.warning(f"Missing spread {index:03d} ({spread_path})")
            report.missing.append(index)
            continue

        try:
            reader = PdfReader(spread_path)
            pages = list(reader.pages)
        except Exception as e:
            logger.error(f"Could not merge {spread_path}: {e}")
            report.unreadable.append(index)
            continue

        if not pages:
            logger.error(f"Could not merge {spread_path}: no pages found")
            report.unreadable.append(index)
            continue

        for page in pages:
            writer.add_page(page)
        report.merged.append(index)

        if (index + 1) % PROGRESS_EVERY == 0:
            logger.verbose_info(f"  Merged {index + 1}/{spread_count} spreads...")

    logger.verbose_info("  Saving merged PDF...")
    output_dir.mkdir(parents=True, exist_ok=True)
    with open(output_path, 'wb') as f:
        writer.write(f)

    report.page_count = len(writer.pages)
    report.size_bytes = output_path.stat().st_size

    logger.success(f"Complete book saved to: {output_path}")
    logger.info(f"  File size: {report.size_bytes / 1024 / 1024:.2f} MB")
    logger.info(f"  Total pages: {report.page_count}")
    if report.missing or report.unreadable:
        skipped = len(report.missing) + len(report.unreadable)
        logger.info(f"  Spreads left out: {skipped} of {spread_count}")
    return report
