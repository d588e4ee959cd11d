from pathlib import Path

import httpx
import pytest

from inkpress.cache import Cache
from inkpress.settings import Link, NavigationSettings, Settings, SiteMeta, SiteSettings

SETTINGS_YAML = """\
dev:
  port: 4000
  ws_port: 4001
meta:
  title: Test Site
  description: A test site
  base_url: https://example.com
navigation:
  links:
    - label: Home
      url: /
    - label: About
      url: /about/
data:
  author: Ada
  social:
    github: ada
"""

APP_TEMPLATE = """\
<!DOCTYPE html>
<html>
<head><title>{{ title }}</title>{{ open_graph_tags }}{{ styles }}</head>
<body>
<nav>{% for link in links %}<a href="{{ link.url }}">{{ link.label }}</a>{% endfor %}</nav>
<main>{{ content }}</main>
{{ scripts }}
</body>
</html>
"""


def create_project(root: Path, settings: str = SETTINGS_YAML) -> Path:
    """Create a small project with a theme, public files and three pages."""
    (root / "pages" / "blog").mkdir(parents=True)
    (root / "public" / "images").mkdir(parents=True)
    (root / "theme").mkdir()

    (root / "Settings.yaml").write_text(settings, encoding="utf-8")
    (root / "theme" / "app.jinja").write_text(APP_TEMPLATE, encoding="utf-8")
    (root / "theme" / "global.css").write_text("body { color: black; }", encoding="utf-8")
    (root / "theme" / "post.jinja").write_text(
        "<article><h2>{{ title }}</h2><p>by {{ author }}</p>{{ body }}</article>",
        encoding="utf-8",
    )
    (root / "public" / "favicon.ico").write_text("icon", encoding="utf-8")
    (root / "public" / "images" / "logo.svg").write_text("<svg></svg>", encoding="utf-8")

    (root / "pages" / "page.md").write_text("# Home\n\nWelcome!", encoding="utf-8")
    (root / "pages" / "about.md").write_text(
        "---\ntitle: About\n---\n# About us", encoding="utf-8"
    )
    (root / "pages" / "blog" / "Post One.md").write_text(
        "---\ntitle: First Post\ntemplate: post\n---\nHello **world**", encoding="utf-8"
    )
    return root


@pytest.fixture
def project(tmp_path):
    return create_project(tmp_path / "site")


@pytest.fixture
def cache(tmp_path):
    return Cache(tmp_path / "cache")


@pytest.fixture
def settings():
    return Settings(
        meta=SiteMeta(
            title="Test Site",
            description="A test site",
            base_url="https://example.com",
        ),
        site=SiteSettings(),
        navigation=NavigationSettings(links=(Link(label="Home", url="/"),)),
        data={"author": "Ada"},
    )


def mock_client(routes: dict[str, str | int]) -> httpx.Client:
    """Return an httpx client answering from ``routes`` (URL -> body or status)."""

    def handler(request: httpx.Request) -> httpx.Response:
        answer = routes.get(str(request.url), 404)
        if isinstance(answer, int):
            return httpx.Response(answer, text="")
        return httpx.Response(200, text=answer)

    return httpx.Client(transport=httpx.MockTransport(handler))
