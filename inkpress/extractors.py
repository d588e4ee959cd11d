"""Front-matter extraction for inkpress.

A page may start with a metadata block delimited by ``---``::

    ---
    title: Hello
    template: post
    ---
    # Body in markdown

The metadata is returned as the raw text between the two delimiters; it is
only parsed as YAML by whoever needs structured values, so a malformed block
fails the page at render time rather than at discovery time.
"""

from __future__ import annotations

import re
from pathlib import Path

FRONTMATTER_RE = re.compile(r"^---(.*?)---(.*)", re.DOTALL)


def split_frontmatter(text: str) -> tuple[str | None, str]:
    """Split raw page text into its metadata block and body.

    Args:
        text: Raw file content.

    Returns:
        Tuple of (metadata text or None, body text). Without a metadata
        block the whole text is the body.
    """
    match = FRONTMATTER_RE.match(text)
    if not match:
        return None, text
    return match.group(1), match.group(2)


def extract_metadata(text: str) -> str | None:
    """Return only the metadata block of ``text``, without touching the body."""
    metadata, _ = split_frontmatter(text)
    return metadata


def read_page(path: Path) -> str:
    """Read a content file as UTF-8.

    Raises:
        OSError: If the file cannot be read.
        UnicodeDecodeError: If the file is not valid UTF-8.
    """
    return path.read_text(encoding="utf-8")

