"""Spread artifacts on disk."""

import os
import re
from pathlib import Path
from typing import Iterable, List, Optional

from book_spreads.utils.types import SpreadTask

PDF_MAGIC = b'%PDF'
SPREAD_FILE_PATTERN = re.compile(r'^spread-(\d{3,})\.pdf$')


def is_complete(path: Path) -> bool:
    """True if ``path`` holds a usable spread.

    Existence alone is not enough: empty files or files that do not start
    with the PDF header are treated as absent, so they get fetched again.
    """
    try:
        if path.stat().st_size == 0:
            return False
        with path.open('rb') as f:
            return f.read(len(PDF_MAGIC)) == PDF_MAGIC
    except OSError:
        return False


def write_atomic(path: Path, data: bytes) -> int:
    """Write ``data`` to ``path`` in one piece.

    The bytes go to a ``.part`` sibling first and are moved into place
    with ``os.replace``, so ``path`` is either complete or missing.

    Returns:
        Number of bytes written
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_name(path.name + '.part')
    try:
        tmp_path.write_bytes(data)
        os.replace(tmp_path, path)
    except OSError:
        tmp_path.unlink(missing_ok=True)
        raise
    return len(data)


def missing_tasks(tasks: Iterable[SpreadTask], spreads_dir: Path) -> List[SpreadTask]:
    """Tasks whose artifact is not complete yet, in order."""
    return [t for t in tasks if not is_complete(t.path_in(spreads_dir))]


def highest_index(spreads_dir: Path) -> Optional[int]:
    """Largest spread index present in ``spreads_dir`` (None if none)."""
    if not spreads_dir.is_dir():
        return None
    indices = []
    for entry in spreads_dir.iterdir():
        match = SPREAD_FILE_PATTERN.match(entry.name)
        if match:
            indices.append(int(match.group(1)))
    return max(indices) if indices else None
