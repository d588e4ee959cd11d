"""Download cache for inkpress.

Remote stylesheets, scripts and JSON data are memoized on disk so that every
page of a build (and every later build) reuses one download per URL.

Keys are hashed with MD5 and stored one file per key under the cache root.
There is no expiry: entries live until :meth:`Cache.clean` removes the whole
root. Each key maps to its own file and reads and writes are whole-file, so a
single Cache can be shared across the build's worker threads.
"""

from __future__ import annotations

import hashlib
import json
import logging
import shutil
from pathlib import Path
from typing import Any

import httpx
from platformdirs import user_cache_dir

from .protocols import KeyValueCache

logger = logging.getLogger(__name__)

APP_NAME = "inkpress"
TIMEOUT = 10  # seconds


def default_cache_dir() -> Path:
    """Return the per-user cache directory for inkpress."""
    return Path(user_cache_dir(APP_NAME))


class Cache:
    """Content-addressed key/value store on disk.

    Attributes:
        cache_dir: Root directory holding one file per key.
    """

    def __init__(self, cache_dir: Path | str):
        self.cache_dir = Path(cache_dir)

    def path_for(self, key: str) -> Path:
        digest = hashlib.md5(key.encode("utf-8")).hexdigest()
        return self.cache_dir / f"{digest}.txt"

    def get(self, key: str) -> str | None:
        """Return the stored value for ``key``, or None when absent."""
        path = self.path_for(key)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None

    def set(self, key: str, value: str) -> None:
        """Store ``value`` under ``key``, creating the cache root if needed."""
        path = self.path_for(key)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(value, encoding="utf-8")

    def clean(self) -> None:
        """Delete the whole cache root."""
        if self.cache_dir.exists():
            shutil.rmtree(self.cache_dir)

    def __repr__(self) -> str:  # pragma: no cover - for debugging
        return f"Cache({str(self.cache_dir)!r})"


def get_file(
    url: str,
    cache: KeyValueCache | None = None,
    client: httpx.Client | None = None,
) -> str:
    """Download ``url`` as text, going through ``cache`` when given.

    Args:
        url: Absolute URL to fetch.
        cache: Optional cache consulted before and filled after the request.
        client: Optional httpx client; a one-off request is made otherwise.

    Returns:
        The response body as text.

    Raises:
        httpx.HTTPError: On network errors, timeouts or non-2xx responses.
    """
    if cache is not None:
        cached = cache.get(url)
        if cached is not None:
            logger.debug("Cache hit for %s", url)
            return cached

    logger.debug("Downloading %s", url)
    if client is None:
        response = httpx.get(url, timeout=TIMEOUT, follow_redirects=True)
    else:
        response = client.get(url, timeout=TIMEOUT, follow_redirects=True)
    response.raise_for_status()
    text = response.text

    if cache is not None:
        cache.set(url, text)
    return text


def get_json(
    url: str,
    cache: KeyValueCache | None = None,
    client: httpx.Client | None = None,
) -> Any:
    """Download ``url`` and parse the body as JSON.

    Raises:
        httpx.HTTPError: On download failure.
        ValueError: If the body is not valid JSON.
    """
    return json.loads(get_file(url, cache, client))
