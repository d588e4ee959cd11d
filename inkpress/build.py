"""Site building functionality for inkpress.

This module contains the Worker that builds a static site from an input
directory::

    <input_dir>/
        Settings.yaml
        pages/      Markdown pages (page.md is a directory's index)
        public/     static files copied verbatim
        theme/      Jinja2 templates (app, amp, page templates) and global.css

A build discovers the pages, rejects two pages sharing a URL, downloads the
shared styles, scripts and remote data once, extracts every page's metadata in
parallel and folds it into the site directory tree. Only then is the output
directory reset and ``public/`` copied; every page is rendered in parallel,
written as minified HTML, and robots.txt and sitemap.xml are written if they
are not already present.

A page that cannot be read or rendered is logged and skipped; the rest of the
site is still written. The output directory may not overlap the input
directory.

Key classes:
- Worker: Builds the site.
- BuildResult: Summary of a build.
- BuildError: Error that aborts a build.
"""

from __future__ import annotations

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath

import httpx
import minify_html

from .cache import Cache, default_cache_dir
from .content import ContentProcessor, Page
from .protocols import KeyValueCache
from .render import AssetLoader, PageRenderer, RenderedPage, RenderError
from .seo import create_default_seo_registry
from .settings import Settings, load_settings
from .site_directory import SiteDirectory, build_site_directory
from .templates import TemplateEngine
from .utils import copy_tree, ensure_clean_dir

logger = logging.getLogger(__name__)

PAGES_DIR = "pages"
PUBLIC_DIR = "public"
THEME_DIR = "theme"
OUTPUT_DIR = "output"


class BuildError(Exception):
    """Error that aborts a build, with file context.

    Attributes:
        source_path: Path to the file or directory that caused the error.
        message: Human-readable error message.
        original_error: The original exception that was caught.
    """

    def __init__(
        self,
        source_path: Path,
        message: str,
        original_error: Exception | None = None,
    ):
        self.source_path = source_path
        self.message = message
        self.original_error = original_error
        super().__init__(f"{source_path}: {message}")


@dataclass
class BuildResult:
    """Result of a site build.

    Attributes:
        pages: Pages written to the output directory.
        output_dir: Directory where the site was built.
        settings: Settings used for the build.
        tree: Site directory tree built from every page's metadata.
        failures: Pages that failed to render.
        artifacts: SEO files written at the output root.
    """

    pages: list[Page]
    output_dir: Path
    settings: Settings
    tree: SiteDirectory
    failures: list[RenderError] = field(default_factory=list)
    artifacts: list[str] = field(default_factory=list)


def minify(html: str) -> str:
    """Minify an HTML document, including inline CSS and JavaScript."""
    return minify_html.minify(html, minify_css=True, minify_js=True, keep_closing_tags=True)


class Worker:
    """Builds a site from an input directory.

    Attributes:
        input_dir: Project root containing pages/, public/, theme/.
        output_dir: Directory the site is written to.
        cache: Download cache shared by every page render.
        client: Optional httpx client used for downloads.
        max_workers: Thread pool size for extraction and rendering.
    """

    def __init__(
        self,
        input_dir: Path,
        output_dir: Path | None = None,
        cache: KeyValueCache | None = None,
        client: httpx.Client | None = None,
        max_workers: int | None = None,
    ):
        """Initialize the worker.

        Args:
            input_dir: Project root.
            output_dir: Output directory, ``output`` under the working
                directory by default.
            cache: Download cache; the per-user cache directory by default.
            client: Optional httpx client.
            max_workers: Optional thread pool size.

        Raises:
            BuildError: If the input directory is missing, is the current
                working directory, or overlaps the output directory.
        """
        input_dir = Path(input_dir)
        if not input_dir.is_dir():
            raise BuildError(input_dir, "Input directory does not exist")
        if input_dir.resolve() == Path.cwd().resolve():
            raise BuildError(
                input_dir,
                "Input directory cannot be the current directory; "
                "run inkpress from the directory that should hold the output",
            )
        output_dir = Path(output_dir) if output_dir is not None else Path(OUTPUT_DIR)
        if _overlaps(input_dir.resolve(), output_dir.resolve()):
            # The output directory is wiped on every build.
            raise BuildError(
                output_dir,
                f"Output directory overlaps the input directory {input_dir}",
            )
        self.input_dir = input_dir
        self.output_dir = output_dir
        self.cache = cache if cache is not None else Cache(default_cache_dir())
        self.client = client
        self.max_workers = max_workers

    @property
    def pages_dir(self) -> Path:
        return self.input_dir / PAGES_DIR

    @property
    def public_dir(self) -> Path:
        return self.input_dir / PUBLIC_DIR

    @property
    def theme_dir(self) -> Path:
        return self.input_dir / THEME_DIR

    def load_settings(self) -> Settings:
        return load_settings(self.input_dir)

    def build(self) -> BuildResult:
        """Build the entire site.

        Pages are discovered and the site directory tree is built before the
        output directory is touched, so a fatal error leaves the previous
        output in place.

        Returns:
            BuildResult describing the pages written and the failures.

        Raises:
            SettingsError: If Settings.yaml is missing or invalid.
            SiteDirectoryError: On a page/directory URL collision.
            BuildError: If two pages map to the same URL.
        """
        logger.info("Building site from %s", self.input_dir)
        start_time = time.perf_counter()

        settings = self.load_settings()
        pages = ContentProcessor(self.pages_dir).load()
        _check_unique_urls(pages)

        engine = TemplateEngine(self.theme_dir)
        assets = AssetLoader(
            self.theme_dir, settings, cache=self.cache, client=self.client
        ).load()
        renderers = [
            PageRenderer(
                page,
                self.theme_dir,
                settings,
                cache=self.cache,
                engine=engine,
                client=self.client,
                assets=assets,
            )
            for page in pages
        ]

        failures: list[RenderError] = []
        with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
            extracted = list(pool.map(self._extract_metadata, renderers))
        readable: list[PageRenderer] = []
        metadata: list[str | None] = []
        for renderer, outcome in zip(renderers, extracted):
            if isinstance(outcome, RenderError):
                _log_failure(outcome)
                failures.append(outcome)
                continue
            readable.append(renderer)
            metadata.append(outcome)
        tree = build_site_directory(
            (renderer.page.tree_path, meta) for renderer, meta in zip(readable, metadata)
        )

        ensure_clean_dir(self.output_dir)
        copied = copy_tree(self.public_dir, self.output_dir)
        logger.debug("Copied %d public files", copied)

        with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
            outcomes = list(pool.map(lambda r: self._render(r, tree), readable))

        written: list[Page] = []
        for outcome in outcomes:
            if isinstance(outcome, RenderError):
                _log_failure(outcome)
                failures.append(outcome)
                continue
            self._write_page(outcome)
            written.append(outcome.page)

        artifacts = create_default_seo_registry().write_all(
            self.output_dir, settings, (page.url_path for page in written)
        )

        elapsed = time.perf_counter() - start_time
        logger.info(
            "Built %d of %d pages into %s in %.2fs",
            len(written),
            len(pages),
            self.output_dir,
            elapsed,
        )
        return BuildResult(
            pages=written,
            output_dir=self.output_dir,
            settings=settings,
            tree=tree,
            failures=failures,
            artifacts=artifacts,
        )

    @staticmethod
    def _extract_metadata(renderer: PageRenderer) -> str | None | RenderError:
        try:
            return renderer.get_metadata()
        except RenderError as exc:
            return exc

    @staticmethod
    def _render(renderer: PageRenderer, tree: SiteDirectory) -> RenderedPage | RenderError:
        logger.debug("Rendering %s", renderer.page.path)
        try:
            return renderer.render(tree)
        except RenderError as exc:
            return exc

    def _write_page(self, rendered: RenderedPage) -> None:
        """Write a rendered page, and its AMP variant if any, minified."""
        self._write_file(rendered.page.output_file.as_posix(), rendered.html)
        if rendered.amp_html:
            self._write_file(rendered.page.amp_output_file.as_posix(), rendered.amp_html)

    def _write_file(self, relative: str, html: str) -> None:
        target = self.output_dir / relative
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(minify(html), encoding="utf-8")


def _overlaps(first: Path, second: Path) -> bool:
    """Return True if the resolved paths are equal or one contains the other."""
    return first == second or first in second.parents or second in first.parents


def _check_unique_urls(pages: list[Page]) -> None:
    """Reject pages that would be written to the same output file.

    Raises:
        BuildError: Naming both source files and the shared URL.
    """
    seen: dict[PurePosixPath, Page] = {}
    for page in pages:
        other = seen.get(page.output_file)
        if other is not None:
            raise BuildError(
                page.path,
                f"Same URL {page.url_path} as {other.path}; rename one of the pages",
            )
        seen[page.output_file] = page


def _log_failure(error: RenderError) -> None:
    logger.error("Failed to render %s: %s", error.source_path, error.message)
