"""
CLI tool to save books from a page-spread online viewer as PDF.

Drives a browser through the viewer's print-to-PDF button one two-page
spread at a time, keeps every spread on disk so interrupted runs resume,
and merges the spreads into a single PDF.
"""

from importlib.metadata import version
__version__ = version("book-spreads")
