from dataclasses import replace
from datetime import datetime, timezone

import pytest

from inkpress.seo import (
    RobotsGenerator,
    SeoError,
    SitemapGenerator,
    create_default_seo_registry,
    generate_open_graph_tags,
    generate_robots_txt,
    generate_sitemap_xml,
)
from inkpress.settings import SiteMeta, SiteSettings


def _without_base_url(settings):
    return replace(settings, meta=SiteMeta(title="T", description="D"))


def test_robots_txt_allows_indexing(settings):
    assert generate_robots_txt(settings) == (
        "User-agent: *\nAllow: /\nSitemap: https://example.com/sitemap.xml"
    )


def test_robots_txt_blocks_indexing(settings):
    blocked = replace(settings, site=SiteSettings(block_search_indexing=True))
    assert generate_robots_txt(blocked) == "User-agent: *\nDisallow: /"
    assert generate_robots_txt(_without_base_url(blocked)) == "User-agent: *\nDisallow: /"


def test_robots_txt_needs_base_url(settings):
    with pytest.raises(SeoError):
        generate_robots_txt(_without_base_url(settings))


def test_sitemap_lists_every_page(settings):
    now = datetime(2024, 5, 1, 12, 30, 0, tzinfo=timezone.utc)
    xml = generate_sitemap_xml(settings, ["/", "/about/", "/blog/post-1/"], now=now)

    assert xml.startswith('<?xml version="1.0" encoding="UTF-8"?>')
    assert xml.count("<url>") == 3
    assert "<loc>https://example.com/</loc>" in xml
    assert "<loc>https://example.com/about/</loc>" in xml
    assert "<loc>https://example.com/blog/post-1/</loc>" in xml
    assert xml.count("<lastmod>2024-05-01T12:30:00+00:00</lastmod>") == 3
    assert xml.count("<changefreq>weekly</changefreq>") == 3
    assert xml.count("<priority>0.8</priority>") == 3
    assert xml.rstrip().endswith("</urlset>")


def test_sitemap_needs_base_url(settings):
    with pytest.raises(SeoError):
        generate_sitemap_xml(_without_base_url(settings), ["/"])


def test_open_graph_tags(settings):
    tags = generate_open_graph_tags(settings, "/about/", "About", "About us")
    assert '<meta property="og:title" content="About" />' in tags
    assert '<meta name="twitter:description" content="About us" />' in tags
    assert '<meta property="og:url" content="https://example.com/about/" />' in tags
    assert "amphtml" not in tags
    assert "og:image" not in tags


def test_open_graph_tags_escape_values(settings):
    tags = generate_open_graph_tags(settings, "/", 'Fish & "Chips"', "<b>bold</b>")
    assert 'content="Fish &amp; &#34;Chips&#34;"' in tags
    assert "&lt;b&gt;bold&lt;/b&gt;" in tags


def test_open_graph_tags_amp_links(settings):
    page_tags = generate_open_graph_tags(settings, "/about/", "A", "B", has_amp=True)
    amp_tags = generate_open_graph_tags(
        settings, "/about/", "A", "B", has_amp=True, is_amp=True
    )
    assert '<link rel="amphtml" href="https://example.com/about/amp/">' in page_tags
    assert '<link rel="canonical" href="https://example.com/about/">' in amp_tags


def test_open_graph_tags_without_base_url(settings):
    tags = generate_open_graph_tags(_without_base_url(settings), "/", "T", "D", has_amp=True)
    assert "og:url" not in tags
    assert "amphtml" not in tags


def test_open_graph_image(settings):
    with_image = replace(
        settings,
        meta=replace(settings.meta, og_image_url="https://example.com/og.png"),
    )
    tags = generate_open_graph_tags(with_image, "/", "T", "D")
    assert '<meta property="og:image" content="https://example.com/og.png" />' in tags
    assert '<meta name="twitter:card" content="summary_large_image" />' in tags


def test_registry_writes_robots_and_sitemap(tmp_path, settings):
    written = create_default_seo_registry().write_all(tmp_path, settings, ["/"])
    assert written == ["robots.txt", "sitemap.xml"]
    assert (tmp_path / "robots.txt").read_text(encoding="utf-8").startswith("User-agent")
    assert "<loc>https://example.com/</loc>" in (tmp_path / "sitemap.xml").read_text(
        encoding="utf-8"
    )


def test_existing_artifact_is_not_overwritten(tmp_path, settings):
    (tmp_path / "robots.txt").write_text("custom", encoding="utf-8")
    assert RobotsGenerator().write(tmp_path, settings, ["/"]) is False
    assert (tmp_path / "robots.txt").read_text(encoding="utf-8") == "custom"


def test_artifacts_skipped_without_base_url(tmp_path, settings):
    written = create_default_seo_registry().write_all(
        tmp_path, _without_base_url(settings), ["/"]
    )
    assert written == []
    assert not (tmp_path / "robots.txt").exists()
    assert not SitemapGenerator().write(tmp_path, _without_base_url(settings), ["/"])
