"""Page rendering for inkpress.

This module turns one Markdown page into final HTML. Rendering happens in two
template passes:

1. Inner pass: when the page front-matter names a ``template``, the rendered
   Markdown body is expanded through that theme template together with the
   site directory tree, the merged site/page data and the remote data.
2. Outer pass: the result is placed in the theme's ``app`` template (or
   ``amp`` for the AMP variant) along with title, description, meta tags,
   inlined global styles and scripts, and navigation links.

Global styles, scripts and remote data are downloaded once per build, in
parallel, through the download cache. Download failures degrade to empty
content (styles and scripts) or ``None`` (remote data) instead of failing the
page.

Key classes:
- PageRenderer: Renders a single page and its AMP variant.
- AssetLoader: Fetches the downloads shared by every page into SiteAssets.
- RenderedPage: Result of rendering a page.
- RenderError: Page-level failure carrying the source path.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from functools import cached_property
from pathlib import Path
from typing import Any

import httpx
import yaml
from jinja2 import TemplateNotFound, TemplateSyntaxError, UndefinedError
from markupsafe import Markup

from .cache import get_file, get_json
from .content import Page
from .extractors import extract_metadata, read_page
from .protocols import KeyValueCache, TemplateExpander
from .renderers import parse_document
from .seo import generate_open_graph_tags
from .settings import Settings
from .site_directory import SiteDirectory
from .templates import TemplateEngine
from .utils import deep_merge, parse_yaml

logger = logging.getLogger(__name__)

APP_TEMPLATE = "app"
AMP_TEMPLATE = "amp"
GLOBAL_CSS = "global.css"
MAX_DOWNLOAD_WORKERS = 8

_DOWNLOAD_ERRORS = (httpx.HTTPError, httpx.InvalidURL, OSError, ValueError)


class RenderError(Exception):
    """Error while rendering a single page.

    Attributes:
        source_path: Path to the source file that caused the error.
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
class RenderedPage:
    """Result of rendering a page.

    Attributes:
        page: The rendered page.
        html: Final HTML of the page.
        amp_html: HTML of the AMP variant, or an empty string when there is none.
    """

    page: Page
    html: str
    amp_html: str = ""


def _format_error_message(exc: Exception) -> str:
    """Format an exception into a user-friendly error message.

    Args:
        exc: The exception to format.

    Returns:
        A human-readable error message.
    """
    if isinstance(exc, TemplateSyntaxError):
        return f"Template syntax error on line {exc.lineno}: {exc.message}"
    if isinstance(exc, TemplateNotFound):
        return f"Template not found: {exc.name}"
    if isinstance(exc, UndefinedError):
        return f"Undefined variable: {exc}"
    if isinstance(exc, yaml.YAMLError):
        return f"Invalid front-matter: {exc}"
    return f"{type(exc).__name__}: {exc}"


@dataclass(frozen=True)
class SiteAssets:
    """Content downloaded once per build and shared by every page.

    Attributes:
        styles: ``<style>`` element with remote stylesheets and global.css.
        scripts: ``<script>`` element with remote scripts.
        remote_data: Parsed JSON per remote-data name, None where the fetch
            failed.
    """

    styles: str
    scripts: str
    remote_data: dict[str, Any]


class AssetLoader:
    """Downloads global styles, scripts and remote data in parallel.

    Download failures degrade to empty content (styles and scripts) or
    ``None`` (remote data) and are logged as warnings.
    """

    def __init__(
        self,
        theme_dir: Path,
        settings: Settings,
        cache: KeyValueCache | None = None,
        client: httpx.Client | None = None,
    ):
        self.theme_dir = theme_dir
        self.settings = settings
        self.cache = cache
        self.client = client

    def load(self) -> SiteAssets:
        return SiteAssets(
            styles=self.global_styles(),
            scripts=self.global_scripts(),
            remote_data=self.remote_data(),
        )

    def global_styles(self) -> str:
        """Downloaded stylesheets followed by the theme's global.css, inlined."""
        downloaded = self._download_all(self.settings.site.style_urls, "style")
        local_css = self._read_global_css()
        remote_css = "\n".join(downloaded)
        return f"<style>{remote_css}\n{local_css}</style>"

    def global_scripts(self) -> str:
        downloaded = self._download_all(self.settings.site.script_urls, "script")
        remote_js = "\n".join(downloaded)
        return f"<script>{remote_js}</script>"

    def remote_data(self) -> dict[str, Any]:
        """Fetch every configured remote-data URL as JSON, keyed by name."""
        items = list(self.settings.remote_data.items())
        if not items:
            return {}
        with ThreadPoolExecutor(max_workers=min(MAX_DOWNLOAD_WORKERS, len(items))) as pool:
            values = list(pool.map(lambda item: self._fetch_json(*item), items))
        return {name: value for (name, _), value in zip(items, values)}

    def _read_global_css(self) -> str:
        path = self.theme_dir / GLOBAL_CSS
        if not path.is_file():
            return ""
        return path.read_text(encoding="utf-8")

    def _download_all(self, urls: tuple[str, ...], kind: str) -> list[str]:
        if not urls:
            return []
        with ThreadPoolExecutor(max_workers=min(MAX_DOWNLOAD_WORKERS, len(urls))) as pool:
            return list(pool.map(lambda url: self._download(url, kind), urls))

    def _download(self, url: Any, kind: str) -> str:
        if not isinstance(url, str):
            logger.warning("Ignoring %s URL that is not a string: %r", kind, url)
            return ""
        try:
            return get_file(url, self.cache, self.client)
        except _DOWNLOAD_ERRORS as exc:
            logger.warning("Failed to download %s %s: %s", kind, url, exc)
            return ""

    def _fetch_json(self, name: str, url: Any) -> Any:
        if not isinstance(url, str):
            logger.warning("Remote data '%s' has a URL that is not a string: %r", name, url)
            return None
        try:
            return get_json(url, self.cache, self.client)
        except _DOWNLOAD_ERRORS as exc:
            logger.warning("Failed to fetch remote data '%s' from %s: %s", name, url, exc)
            return None


class PageRenderer:
    """Renders one page of the site.

    Attributes:
        page: Page being rendered.
        theme_dir: Theme directory with templates and global.css.
        settings: Site settings for this build.
        cache: Optional download cache.
        engine: Template engine used for both passes.
        client: Optional httpx client for downloads.
        assets: Downloads shared across the build; fetched lazily when omitted.
    """

    def __init__(
        self,
        page: Page,
        theme_dir: Path,
        settings: Settings,
        cache: KeyValueCache | None = None,
        engine: TemplateExpander | None = None,
        client: httpx.Client | None = None,
        assets: SiteAssets | None = None,
    ):
        self.page = page
        self.theme_dir = theme_dir
        self.settings = settings
        self.cache = cache
        self.engine = engine or TemplateEngine(theme_dir)
        self.client = client
        self._assets = assets

    def get_metadata(self) -> str | None:
        """Return the page's raw metadata block without rendering the body.

        Raises:
            RenderError: If the file cannot be read.
        """
        try:
            return extract_metadata(read_page(self.page.path))
        except (OSError, UnicodeDecodeError) as exc:
            raise RenderError(self.page.path, _format_error_message(exc), exc) from exc

    def render(self, site_directory: SiteDirectory | None = None) -> RenderedPage:
        """Render the page and, when available, its AMP variant."""
        html = self.render_page(site_directory)
        amp_html = self.render_amp_page(site_directory)
        return RenderedPage(page=self.page, html=html, amp_html=amp_html)

    def render_page(self, site_directory: SiteDirectory | None = None) -> str:
        """Render the page through the theme's ``app`` template.

        Raises:
            RenderError: On read, front-matter, or template failures.
        """
        return self._render_with(APP_TEMPLATE, site_directory)

    def render_amp_page(self, site_directory: SiteDirectory | None = None) -> str:
        """Render the AMP variant through the theme's ``amp`` template.

        Returns:
            The AMP HTML, or an empty string when the theme has no (or a blank)
            ``amp`` template or the page opts out with ``amp: false``.

        Raises:
            RenderError: On read, front-matter, or template failures.
        """
        return self._render_with(AMP_TEMPLATE, site_directory)

    @property
    def has_amp(self) -> bool:
        if self.engine.is_blank(AMP_TEMPLATE):
            return False
        metadata = self._metadata
        if isinstance(metadata, Mapping) and metadata.get("amp") is False:
            return False
        return True

    def _render_with(self, template_name: str, site_directory: SiteDirectory | None) -> str:
        try:
            if template_name == AMP_TEMPLATE and not self.has_amp:
                return ""
            return self._expand_page(template_name, site_directory or SiteDirectory())
        except RenderError:
            raise
        except Exception as exc:
            raise RenderError(self.page.path, _format_error_message(exc), exc) from exc

    @cached_property
    def _document(self) -> tuple[str | None, str]:
        text = read_page(self.page.path)
        return parse_document(text, highlight=self.settings.site.code_highlighting)

    @cached_property
    def _metadata(self) -> Any:
        metadata_text, _ = self._document
        if metadata_text is None:
            return None
        return parse_yaml(metadata_text)

    def _expand_page(self, template_name: str, site_directory: SiteDirectory) -> str:
        _, body = self._document
        metadata = self._metadata

        if metadata is None:
            content = body
        else:
            content = self._render_body(body, metadata, site_directory)

        title, description = self._title_and_description(metadata)
        is_amp = template_name == AMP_TEMPLATE
        has_amp = self.has_amp
        base_url = self.settings.meta.get_base_url() or ""

        context = {
            "title": title,
            "description": description,
            "open_graph_tags": Markup(
                generate_open_graph_tags(
                    self.settings,
                    self.page.url_path,
                    title,
                    description,
                    has_amp=has_amp,
                    is_amp=is_amp,
                )
            ),
            "styles": Markup(self.global_styles),
            "scripts": Markup(self.global_scripts),
            "links": list(self.settings.navigation.links),
            "content": Markup(content),
            "page_metadata": metadata,
            "data": self.settings.data,
            "remote_data": self.remote_data,
            "meta": self.settings.meta,
            "url_path": self.page.url_path,
            "amp_url": f"{base_url}{self.page.amp_url_path}" if has_amp else None,
        }
        return self.engine.expand(template_name, context)

    def _render_body(self, body: str, metadata: Any, site_directory: SiteDirectory) -> str:
        """Run the page-specific template pass, if the page names a template.

        Args:
            body: Rendered Markdown body.
            metadata: Parsed front-matter.
            site_directory: Tree of every page's metadata.

        Returns:
            The expanded template, or ``body`` when no template is named.
        """
        if not isinstance(metadata, Mapping) or "template" not in metadata:
            return body
        template = metadata["template"]
        if not isinstance(template, str):
            raise RenderError(self.page.path, "Front-matter 'template' must be a string")

        merged = deep_merge(self.settings.data, metadata)
        context: dict[str, Any] = dict(merged) if isinstance(merged, Mapping) else {}
        context.update(
            {
                "data": merged,
                "body": Markup(body),
                "root": site_directory,
                "remote_data": self.remote_data,
                "page_metadata": metadata,
                "url_path": self.page.url_path,
            }
        )
        return self.engine.expand(template, context)

    def _title_and_description(self, metadata: Any) -> tuple[str, str]:
        title = self.settings.meta.title
        description = self.settings.meta.description
        if isinstance(metadata, Mapping):
            if isinstance(metadata.get("title"), str):
                title = metadata["title"]
            if isinstance(metadata.get("description"), str):
                description = metadata["description"]
        return title, description

    @property
    def assets(self) -> SiteAssets:
        """Shared downloads, fetched on first use when none were given."""
        if self._assets is None:
            self._assets = AssetLoader(
                self.theme_dir, self.settings, cache=self.cache, client=self.client
            ).load()
        return self._assets

    @property
    def global_styles(self) -> str:
        return self.assets.styles

    @property
    def global_scripts(self) -> str:
        return self.assets.scripts

    @property
    def remote_data(self) -> dict[str, Any]:
        return self.assets.remote_data
