import httpx
import pytest

from inkpress.cache import Cache, get_file, get_json
from inkpress.protocols import KeyValueCache

from conftest import mock_client


def test_cache_roundtrip(cache):
    cache.set("https://example.com/a.css", "a { color: red; }")
    assert cache.get("https://example.com/a.css") == "a { color: red; }"


def test_cache_absent_key(cache):
    assert cache.get("missing") is None


def test_cache_uses_one_file_per_key(cache):
    cache.set("one", "1")
    cache.set("two", "2")
    assert cache.path_for("one") != cache.path_for("two")
    assert cache.path_for("one").suffix == ".txt"
    assert len(list(cache.cache_dir.iterdir())) == 2


def test_cache_overwrites_existing_value(cache):
    cache.set("key", "old")
    cache.set("key", "new")
    assert cache.get("key") == "new"


def test_cache_clean(cache):
    cache.set("key", "value")
    cache.clean()
    assert not cache.cache_dir.exists()
    assert cache.get("key") is None
    # cleaning an absent cache is fine
    cache.clean()


def test_cache_satisfies_protocol(cache):
    assert isinstance(cache, KeyValueCache)


def test_get_file_downloads_and_caches(cache):
    url = "https://cdn.example.com/site.css"
    with mock_client({url: "body { margin: 0; }"}) as client:
        assert get_file(url, cache, client) == "body { margin: 0; }"
    assert cache.get(url) == "body { margin: 0; }"


def test_get_file_cache_hit_skips_request(cache):
    url = "https://cdn.example.com/site.css"
    cache.set(url, "cached")
    calls = []

    def handler(request):
        calls.append(request.url)
        return httpx.Response(200, text="fresh")

    with httpx.Client(transport=httpx.MockTransport(handler)) as client:
        assert get_file(url, cache, client) == "cached"
    assert calls == []


def test_get_file_without_cache(tmp_path):
    url = "https://cdn.example.com/app.js"
    with mock_client({url: "console.log(1)"}) as client:
        assert get_file(url, None, client) == "console.log(1)"


def test_get_file_http_error_is_not_cached(cache):
    url = "https://cdn.example.com/missing.css"
    with mock_client({url: 404}) as client:
        with pytest.raises(httpx.HTTPStatusError):
            get_file(url, cache, client)
    assert cache.get(url) is None


def test_get_json(cache):
    url = "https://api.example.com/data.json"
    with mock_client({url: '{"items": [1, 2]}'}) as client:
        assert get_json(url, cache, client) == {"items": [1, 2]}


def test_get_json_invalid_body(cache):
    url = "https://api.example.com/data.json"
    with mock_client({url: "not json"}) as client:
        with pytest.raises(ValueError):
            get_json(url, cache, client)


def test_separate_caches_are_independent(tmp_path):
    first = Cache(tmp_path / "one")
    second = Cache(tmp_path / "two")
    first.set("k", "v")
    assert second.get("k") is None
