"""Content discovery for inkpress.

This module finds the Markdown files under ``pages/`` and describes where each
one ends up in the output.

Key classes:
- Page: Dataclass describing a discovered content file and its URLs.
- FileContentLoader: Discovers Markdown files in the pages directory.
- UrlDeriver: Derives public URL, site-tree path and output file for a page.
- ContentProcessor: Facade returning Page objects for a pages directory.

A file named ``page.md`` is its directory's index page. Every other path
segment is slugified unless it already denotes an index.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path, PurePosixPath

from .utils import slugify_segment

INDEX_FILENAME = "page.md"
OUTPUT_FILENAME = "index.html"
AMP_SEGMENT = "amp"


@dataclass(frozen=True)
class Page:
    """A discovered content file.

    Attributes:
        path: Path to the Markdown source file.
        url_path: Public URL path, always ending with ``/``.
        tree_path: Key path in the site directory tree. Index pages end with
            ``/`` and land under ``_self``; other pages end with their slug.
        output_file: Output file relative to the output directory.
        is_index: Whether the page is its directory's ``page.md``.
    """

    path: Path
    url_path: str
    tree_path: str
    output_file: PurePosixPath
    is_index: bool = False

    @property
    def amp_url_path(self) -> str:
        return f"{self.url_path}{AMP_SEGMENT}/"

    @property
    def amp_output_file(self) -> PurePosixPath:
        return self.output_file.parent / AMP_SEGMENT / OUTPUT_FILENAME


class FileContentLoader:
    """Loads content files from a directory.

    Attributes:
        pages_dir: Directory containing Markdown pages.
    """

    def __init__(self, pages_dir: Path):
        self.pages_dir = pages_dir

    def iter_files(self) -> list[Path]:
        """Return every Markdown file under the pages directory, sorted."""
        if not self.pages_dir.is_dir():
            return []
        return sorted(
            path
            for path in self.pages_dir.rglob("*")
            if path.is_file() and path.suffix.lower() == ".md"
        )


class UrlDeriver:
    """Derives URLs for pages.

    This class is responsible for generating URL paths for pages
    based on their location in the pages directory.
    """

    def derive(self, rel: Path) -> tuple[str, str, PurePosixPath, bool]:
        """Derive the URLs for a page.

        Args:
            rel: Path of the source file relative to the pages directory.

        Returns:
            Tuple of (url_path, tree_path, output_file, is_index).

        Examples:
            ``page.md`` gives ``("/", "/", index.html, True)`` and
            ``Blog/My Post.md`` gives
            ``("/blog/my-post/", "/blog/my-post", blog/my-post/index.html, False)``.
        """
        segments = [slugify_segment(part) for part in rel.parent.parts if part]
        is_index = rel.name == INDEX_FILENAME
        if not is_index:
            segments.append(slugify_segment(rel.stem))

        joined = "/".join(segments)
        url_path = f"/{joined}/" if joined else "/"
        tree_path = url_path if is_index else f"/{joined}"
        output_file = PurePosixPath(*segments, OUTPUT_FILENAME)
        return url_path, tree_path, output_file, is_index


class ContentProcessor:
    """Facade for discovering content files and building Page objects.

    Attributes:
        pages_dir: Directory containing Markdown pages.
    """

    def __init__(
        self,
        pages_dir: Path,
        content_loader: FileContentLoader | None = None,
        url_deriver: UrlDeriver | None = None,
    ):
        self.pages_dir = pages_dir
        self._content_loader = content_loader or FileContentLoader(pages_dir)
        self._url_deriver = url_deriver or UrlDeriver()

    def build_page(self, path: Path) -> Page:
        rel = path.relative_to(self.pages_dir)
        url_path, tree_path, output_file, is_index = self._url_deriver.derive(rel)
        return Page(
            path=path,
            url_path=url_path,
            tree_path=tree_path,
            output_file=output_file,
            is_index=is_index,
        )

    def load(self) -> list[Page]:
        """Discover all pages in discovery order."""
        return [self.build_page(path) for path in self._content_loader.iter_files()]
