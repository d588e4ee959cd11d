"""Template rendering engine for inkpress.

This module uses Jinja2 to expand theme templates. A theme directory holds
templates referenced by name: the fixed ``app`` and ``amp`` page shells and
any page template named in front-matter (``template: post``).

A template name resolves to the first file that exists among
``<name>.jinja``, ``<name>.html.jinja`` and ``<name>.html``.

Key class:
- TemplateEngine: Loads templates from a theme and renders them with a context.

Key functions (installed as Jinja filters):
- slice_items: Keep items of a list or mapping within an inclusive index range.
- stringify: Serialize a value as JSON.
- format_date: Format a millisecond UNIX timestamp.
- sort_by: Order a mapping of mappings by one of their fields.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from jinja2 import Environment, FileSystemLoader, TemplateNotFound, select_autoescape
from markupsafe import Markup

__all__ = [
    "TEMPLATE_SUFFIXES",
    "TemplateEngine",
    "format_date",
    "slice_items",
    "sort_by",
    "stringify",
]

TEMPLATE_SUFFIXES = (".jinja", ".html.jinja", ".html")


def slice_items(value: Any, start: int, end: int) -> Any:
    """Return the items of ``value`` whose position is within ``start..end``.

    Both bounds are inclusive. Mappings keep their keys.

    Raises:
        TypeError: If ``value`` is neither a list nor a mapping.
    """
    if isinstance(value, Mapping):
        return {
            key: item
            for index, (key, item) in enumerate(value.items())
            if start <= index <= end
        }
    if isinstance(value, (list, tuple)):
        return [item for index, item in enumerate(value) if start <= index <= end]
    raise TypeError("slice_items expects a list or a mapping")


def stringify(value: Any) -> Markup:
    """Serialize ``value`` as JSON, unescaped."""
    return Markup(json.dumps(value, default=str))


def format_date(timestamp_ms: int | float, fmt: str) -> str:
    """Format a UNIX timestamp in milliseconds as a UTC date string.

    Raises:
        TypeError: If the timestamp is not a number.
    """
    if isinstance(timestamp_ms, bool) or not isinstance(timestamp_ms, (int, float)):
        raise TypeError("format_date expects a timestamp in milliseconds")
    moment = datetime.fromtimestamp(timestamp_ms / 1000, tz=timezone.utc)
    return moment.strftime(fmt)


def sort_by(value: Mapping[str, Any], key: str, order: str = "asc") -> dict[str, Any]:
    """Order a mapping of mappings by the ``key`` field of each value.

    Values lacking the field sort as empty strings. Useful to list the pages of
    a site directory by date or title.

    Raises:
        TypeError: If ``value`` or one of its values is not a mapping.
        ValueError: If ``order`` is not ``asc`` or ``desc``.
    """
    if order not in ("asc", "desc"):
        raise ValueError("order must be either 'asc' or 'desc'")
    if not isinstance(value, Mapping):
        raise TypeError("sort_by expects a mapping")

    def sort_key(item: tuple[str, Any]) -> str:
        entry = item[1]
        if not isinstance(entry, Mapping):
            raise TypeError(f"sort_by expects mapping values, got {type(entry).__name__}")
        field = entry.get(key)
        return "" if field is None else str(field)

    return dict(sorted(value.items(), key=sort_key, reverse=order == "desc"))


class TemplateEngine:
    """Template rendering engine using Jinja2.

    One engine is shared by every page render of a build; Jinja2 environments
    are safe to render from several threads.

    Attributes:
        theme_dir: Directory containing the theme templates.
        env: Jinja2 environment.
    """

    def __init__(self, theme_dir: Path):
        """Initialize the template engine.

        Args:
            theme_dir: Directory with templates.
        """
        self.theme_dir = theme_dir
        self.env = Environment(
            loader=FileSystemLoader(str(theme_dir)),
            autoescape=select_autoescape(["html", "xml", "jinja"]),
            enable_async=False,
        )
        self._install_globals()

    def _install_globals(self) -> None:
        """Install filters and global functions in the Jinja environment."""
        self.env.filters["slice_items"] = slice_items
        self.env.filters["stringify"] = stringify
        self.env.filters["format_date"] = format_date
        self.env.filters["sort_by"] = sort_by
        self.env.globals["pygments_css"] = self._pygments_css

    @staticmethod
    def _pygments_css() -> Markup:
        """Return Pygments CSS styles for syntax highlighting.

        Returns:
            CSS string for the .highlight class.
        """
        from pygments.formatters import HtmlFormatter

        return Markup(HtmlFormatter().get_style_defs(".highlight"))

    def _template_path(self, name: str) -> Path | None:
        for suffix in TEMPLATE_SUFFIXES:
            candidate = self.theme_dir / f"{name}{suffix}"
            if candidate.is_file():
                return candidate
        return None

    def is_blank(self, name: str) -> bool:
        """Return True if the template is missing or contains only whitespace."""
        path = self._template_path(name)
        if path is None:
            return True
        return not path.read_text(encoding="utf-8").strip()

    def expand(self, name: str, context: dict[str, Any]) -> str:
        """Render the template called ``name``.

        Args:
            name: Template name without extension.
            context: Variables to make available in the template.

        Returns:
            Rendered string.

        Raises:
            TemplateNotFound: If the theme has no template with that name.
            jinja2.TemplateError: On syntax or rendering errors.
        """
        path = self._template_path(name)
        if path is None:
            raise TemplateNotFound(name)
        template = self.env.get_template(path.relative_to(self.theme_dir).as_posix())
        return template.render(**context)
