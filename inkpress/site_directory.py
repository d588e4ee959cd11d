"""Site directory tree for inkpress.

Templates often need to know about other pages, for example to list every
post in a blog. Before any page is rendered, the metadata of all pages is
folded into one nested mapping that mirrors the URL structure::

    {
        "about": {"title": "About"},
        "blog": {
            "_self": {"title": "Blog", "template": "listing"},
            "post-1": {"title": "First post"},
        },
    }

A directory index page is stored under the reserved ``_self`` key of its
directory. Every other page is a leaf keyed by its slug.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any

import yaml

from .utils import parse_yaml

logger = logging.getLogger(__name__)

SELF_KEY = "_self"


class SiteDirectory(dict):
    """A directory node of the site tree.

    A plain ``dict`` for templates; the subclass only lets the builder tell
    directories apart from leaves whose metadata is itself a mapping.
    """


class SiteDirectoryError(Exception):
    """A URL path is both a page and the directory of another page.

    Attributes:
        path: Tree path being inserted when the collision was found.
        key: Segment at which the collision happened.
    """

    def __init__(self, path: str, key: str):
        self.path = path
        self.key = key
        super().__init__(
            f"Path collision at '{key}' while adding '{path}': "
            "a page and a directory share the same URL"
        )


def parse_metadata(metadata: str | None) -> Any:
    """Parse a raw metadata block, or return None if absent or invalid."""
    if metadata is None:
        return None
    try:
        return parse_yaml(metadata)
    except yaml.YAMLError as exc:
        logger.debug("Ignoring invalid metadata in site directory: %s", exc)
        return None


def insert_page(tree: SiteDirectory, path: str, value: Any) -> None:
    """Insert one page's metadata into ``tree``.

    Args:
        tree: Root node, modified in place.
        path: Tree path such as ``/blog/post-1`` or ``/blog/``.
        value: Parsed metadata stored at the leaf.

    Raises:
        SiteDirectoryError: If the path collides with an existing leaf or
            directory.
    """
    segments = [segment for segment in path.split("/") if segment]
    if path.endswith("/") or not segments:
        parents, leaf = segments, SELF_KEY
    else:
        parents, leaf = segments[:-1], segments[-1]

    node = tree
    for segment in parents:
        child = node.get(segment)
        if child is None and segment not in node:
            child = SiteDirectory()
            node[segment] = child
        elif not isinstance(child, SiteDirectory):
            raise SiteDirectoryError(path, segment)
        node = child

    if isinstance(node.get(leaf), SiteDirectory):
        raise SiteDirectoryError(path, leaf)
    node[leaf] = value


def build_site_directory(entries: Iterable[tuple[str, str | None]]) -> SiteDirectory:
    """Fold ``(tree_path, metadata)`` pairs into a single tree.

    The root page (``/``) is left out: it would only add a ``_self`` entry at
    the top level. The resulting mapping contents do not depend on the order
    of ``entries``; key order per level follows it.

    Args:
        entries: Tree path and raw metadata text for each discovered page.

    Returns:
        The root SiteDirectory node.

    Raises:
        SiteDirectoryError: On a page/directory path collision.
    """
    tree = SiteDirectory()
    for path, metadata in entries:
        if path.strip("/") == "":
            continue
        insert_page(tree, path, parse_metadata(metadata))
    return tree
