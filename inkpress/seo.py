"""SEO artifacts for inkpress.

This module derives robots.txt, sitemap.xml and the Open Graph / Twitter meta
tags of each page from the site settings.

Artifacts that need a base URL raise :class:`SeoError` when none is
configured. The build treats artifacts as best effort: a failing artifact is
skipped and an artifact that already exists in the output (for example one
copied from ``public/``) is never regenerated.

Classes:
    SeoArtifact: Base class for files written at the output root.
    RobotsGenerator: Writes robots.txt.
    SitemapGenerator: Writes sitemap.xml.
    SeoRegistry: Runs every registered artifact.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Iterable
from datetime import datetime, timezone
from pathlib import Path

from markupsafe import escape

from .settings import Settings

logger = logging.getLogger(__name__)

CHANGE_FREQUENCY = "weekly"
PRIORITY = "0.8"


class SeoError(Exception):
    """An SEO artifact cannot be generated from the current settings."""


def _require_base_url(settings: Settings) -> str:
    base_url = settings.meta.get_base_url()
    if not base_url:
        raise SeoError("No base_url found in Settings.yaml")
    return base_url


def generate_robots_txt(settings: Settings) -> str:
    """Build robots.txt content.

    Raises:
        SeoError: If indexing is allowed but no base URL is configured.
    """
    if settings.site.is_search_engine_blocked():
        return "User-agent: *\nDisallow: /"
    base_url = _require_base_url(settings)
    return f"User-agent: *\nAllow: /\nSitemap: {base_url}/sitemap.xml"


def generate_sitemap_xml(
    settings: Settings,
    url_paths: Iterable[str],
    now: datetime | None = None,
) -> str:
    """Build sitemap.xml content listing every page.

    Args:
        settings: Site settings providing the base URL.
        url_paths: Public URL path of each page, in discovery order.
        now: Last-modified timestamp; the current UTC time by default.

    Raises:
        SeoError: If no base URL is configured.
    """
    base_url = _require_base_url(settings)
    lastmod = (now or datetime.now(timezone.utc)).strftime("%Y-%m-%dT%H:%M:%S+00:00")
    lines = [
        '<?xml version="1.0" encoding="UTF-8"?>',
        '<urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">',
    ]
    for url_path in url_paths:
        loc = escape(f"{base_url}{url_path}")
        lines.append(
            f"  <url><loc>{loc}</loc><lastmod>{lastmod}</lastmod>"
            f"<changefreq>{CHANGE_FREQUENCY}</changefreq>"
            f"<priority>{PRIORITY}</priority></url>"
        )
    lines.append("</urlset>")
    return "\n".join(lines)


def generate_open_graph_tags(
    settings: Settings,
    url_path: str,
    title: str,
    description: str,
    has_amp: bool = False,
    is_amp: bool = False,
) -> str:
    """Build the meta tag block for a page's ``<head>``.

    Args:
        settings: Site settings.
        url_path: Public URL path of the page.
        title: Page title.
        description: Page description.
        has_amp: Whether the page has an AMP variant.
        is_amp: Whether the tags are for the AMP variant itself.

    Returns:
        Newline-separated meta and link tags.
    """
    title = escape(title)
    description = escape(description)
    base_url = settings.meta.get_base_url()

    tags = [
        f'<meta property="title" content="{title}" />',
        f'<meta name="description" content="{description}" />',
    ]

    if base_url and has_amp:
        if is_amp:
            tags.append(f'<link rel="canonical" href="{escape(base_url + url_path)}">')
        else:
            tags.append(f'<link rel="amphtml" href="{escape(base_url + url_path)}amp/">')

    # Open Graph / Facebook
    tags.append('<meta property="og:type" content="website" />')
    tags.append(f'<meta property="og:title" content="{title}" />')
    tags.append(f'<meta property="og:description" content="{description}" />')

    # Twitter
    tags.append(f'<meta name="twitter:title" content="{title}" />')
    tags.append(f'<meta name="twitter:description" content="{description}" />')

    if base_url:
        page_url = escape(base_url + url_path)
        tags.append(f'<meta property="og:url" content="{page_url}" />')
        tags.append(f'<meta name="twitter:url" content="{page_url}" />')

    og_image_url = settings.meta.og_image_url
    if og_image_url:
        image = escape(og_image_url)
        tags.append(f'<meta property="og:image" content="{image}" />')
        tags.append(f'<meta name="twitter:image" content="{image}" />')
        tags.append('<meta name="twitter:card" content="summary_large_image" />')

    return "\n".join(tags)


class SeoArtifact(ABC):
    """Abstract base class for files written at the output root."""

    @property
    @abstractmethod
    def filename(self) -> str:
        """Return the output filename, e.g. 'robots.txt'."""
        ...

    @abstractmethod
    def generate(self, settings: Settings, url_paths: list[str]) -> str:
        """Generate the artifact content.

        Raises:
            SeoError: If the artifact cannot be generated.
        """
        ...

    def write(self, output_dir: Path, settings: Settings, url_paths: list[str]) -> bool:
        """Generate and write the artifact unless it already exists.

        Returns:
            True if the file was written, False if skipped.
        """
        output_path = output_dir / self.filename
        if output_path.exists():
            logger.debug("%s already exists; leaving it untouched", self.filename)
            return False
        try:
            content = self.generate(settings, url_paths)
        except SeoError as exc:
            logger.debug("Skipping %s: %s", self.filename, exc)
            return False
        output_path.write_text(content, encoding="utf-8")
        return True


class RobotsGenerator(SeoArtifact):
    @property
    def filename(self) -> str:
        return "robots.txt"

    def generate(self, settings: Settings, url_paths: list[str]) -> str:
        return generate_robots_txt(settings)


class SitemapGenerator(SeoArtifact):
    @property
    def filename(self) -> str:
        return "sitemap.xml"

    def generate(self, settings: Settings, url_paths: list[str]) -> str:
        return generate_sitemap_xml(settings, url_paths)


class SeoRegistry:
    """Registry of SEO artifacts written after every build.

    Attributes:
        _artifacts: List of registered artifacts.
    """

    def __init__(self) -> None:
        self._artifacts: list[SeoArtifact] = []

    def register(self, artifact: SeoArtifact) -> None:
        self._artifacts.append(artifact)

    def write_all(
        self,
        output_dir: Path,
        settings: Settings,
        url_paths: Iterable[str],
    ) -> list[str]:
        """Write every registered artifact.

        Returns:
            List of filenames that were written.
        """
        paths = list(url_paths)
        written = []
        for artifact in self._artifacts:
            if artifact.write(output_dir, settings, paths):
                written.append(artifact.filename)
        return written


def create_default_seo_registry() -> SeoRegistry:
    """Create a registry with robots.txt and sitemap.xml."""
    registry = SeoRegistry()
    registry.register(RobotsGenerator())
    registry.register(SitemapGenerator())
    return registry
