"""Slug generation utilities."""

import re
from typing import Optional


def sanitize_title(title: str) -> str:
    """Reduce a display title to a lower-case alphanumeric token.

    Everything outside ``[a-z0-9]`` is dropped, including spaces, so
    "Het Grote Verhaal! (deel 2)" becomes "hetgroteverhaaldeel2".

    Args:
        title: Title as shown by the viewer

    Returns:
        Sanitized token (may be empty if nothing survives)
    """
    return re.sub(r'[^a-z0-9]', '', title.lower())


def output_name(title: Optional[str], fallback: str) -> str:
    """Base name for the merged PDF: the sanitized title, else ``fallback``."""
    if title:
        name = sanitize_title(title)
        if name:
            return name
    return fallback
