"""Shared fixtures for the book-spreads tests."""

from pathlib import Path

import pytest

from book_spreads.core.detector import BookDocument
from book_spreads.utils.logger import Logger
from book_spreads.utils.types import Workspace
from fakes import build_pdf

BOOK_HTML = """
<html>
  <head><title>Het Grote Verhaal</title></head>
  <body>
    <div id="toolbar"><button id="print-pdf">Print</button><span>1 / 12</span></div>
  </body>
</html>
"""

LOGIN_HTML = """
<html>
  <head><title>Inloggen</title></head>
  <body>
    <form action="/login"><input type="password" name="pw"></form>
    <p>U moet inloggen om dit boek te bekijken.</p>
  </body>
</html>
"""

NO_ACCESS_HTML = """
<html>
  <head><title>Geen toegang</title></head>
  <body><p>Dit boek is niet beschikbaar.</p></body>
</html>
"""


@pytest.fixture
def make_pdf():
    return build_pdf


@pytest.fixture
def book_doc():
    return BookDocument(html=BOOK_HTML, text="Print\n1 / 12")


@pytest.fixture
def login_doc():
    return BookDocument(html=LOGIN_HTML,
                        text="U moet inloggen om dit boek te bekijken.")


@pytest.fixture
def no_access_doc():
    return BookDocument(html=NO_ACCESS_HTML, text="Dit boek is niet beschikbaar.")


@pytest.fixture
def logger():
    return Logger(verbose=True)


@pytest.fixture
def workspace(tmp_path):
    return Workspace(tmp_path)


@pytest.fixture
def write_spreads():
    """Write spread-NNN.pdf files with the given page counts."""
    def write(directory: Path, page_counts, skip=()):
        directory.mkdir(parents=True, exist_ok=True)
        for index, pages in enumerate(page_counts):
            if index in skip:
                continue
            (directory / f"spread-{index:03d}.pdf").write_bytes(build_pdf(pages))
        return directory
    return write
