"""Utility functions for inkpress.

This module contains small helpers used throughout the inkpress codebase:
string processing for URLs, structured-data handling for front-matter and
directory management for the output folder.

Key functions:
    slugify: Convert a path segment to a URL slug.
    slugify_segment: Slugify a segment unless it denotes an index.
    parse_yaml: Parse a YAML string into a structured value.
    deep_merge: Recursively merge two structured values.
    ensure_clean_dir: Ensure a directory exists and is empty.
    copy_tree: Copy a directory's contents into another directory.
"""

from __future__ import annotations

import re
import shutil
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml

INDEX_TOKEN = "index"

_SLUG_RE = re.compile(r"[\W_]+")


def slugify(name: str) -> str:
    """Convert a path segment to a slug.

    The name is lowercased, then runs of characters other than letters and
    digits (in any script) collapse into a single hyphen. Applying the
    function to its own output returns the same string.

    Args:
        name: Path segment, usually a file stem or directory name.

    Returns:
        URL-friendly slug.

    Examples:
        >>> slugify("Hello World")
        'hello-world'

        >>> slugify("hello-world")
        'hello-world'
    """
    cleaned = _SLUG_RE.sub("-", name.lower()).strip("-")
    return cleaned or INDEX_TOKEN


def slugify_segment(segment: str) -> str:
    """Slugify a URL segment, leaving index segments untouched.

    Args:
        segment: A single path segment.

    Returns:
        The segment unchanged if it contains ``index``, else its slug.
    """
    if INDEX_TOKEN in segment:
        return segment
    return slugify(segment)


def parse_yaml(text: str) -> Any:
    """Parse a YAML document into plain Python values.

    Args:
        text: YAML source.

    Returns:
        The parsed value (mapping, sequence, scalar or None).

    Raises:
        yaml.YAMLError: If the text is not valid YAML.
    """
    return yaml.safe_load(text)


def deep_merge(base: Any, other: Any) -> Any:
    """Recursively merge ``other`` into ``base``.

    When both values are mappings, keys are merged recursively. In every
    other case ``other`` wins outright. Neither argument is modified.

    Args:
        base: Base value (e.g. site-wide data).
        other: Overriding value (e.g. page front-matter).

    Returns:
        The merged value.

    Examples:
        >>> deep_merge({"a": {"x": 1}, "b": 1}, {"a": {"y": 2}, "b": 2})
        {'a': {'x': 1, 'y': 2}, 'b': 2}
    """
    if isinstance(base, Mapping) and isinstance(other, Mapping):
        merged = dict(base)
        for key, value in other.items():
            merged[key] = deep_merge(merged.get(key), value)
        return merged
    return other


def ensure_clean_dir(path: Path) -> None:
    """Ensure a directory exists and is empty.

    If the directory exists, removes all contents. Creates the
    directory if it doesn't exist.

    Args:
        path: Directory path to clean or create.
    """
    if path.exists():
        shutil.rmtree(str(path), ignore_errors=True)
        if path.exists():
            # Fallback for stubborn directories
            for item in path.rglob("*"):
                if item.is_file():
                    item.unlink()
            for item in sorted(
                [p for p in path.rglob("*") if p.is_dir()], reverse=True
            ):
                item.rmdir()
            path.rmdir()
    path.mkdir(parents=True, exist_ok=True)


def copy_tree(source: Path, target: Path) -> int:
    """Copy every entry of ``source`` into ``target``, recursively.

    Args:
        source: Directory whose contents are copied.
        target: Destination directory (created when missing).

    Returns:
        Number of files copied. Zero when ``source`` does not exist.
    """
    if not source.is_dir():
        return 0
    target.mkdir(parents=True, exist_ok=True)
    count = 0
    for item in sorted(source.rglob("*")):
        if item.is_dir():
            continue
        dest = target / item.relative_to(source)
        dest.parent.mkdir(parents=True, exist_ok=True)
        shutil.copy2(item, dest)
        count += 1
    return count
