"""Project bootstrap for inkpress.

``inkpress new`` scaffolds a project by downloading a theme from a GitHub
repository of themes. Each theme is a top-level folder of that repository
holding a complete starter project (``pages/``, ``public/``, ``theme/``).
The folder is walked through the GitHub contents API and its files are
reproduced under the new project directory, after which a default
``Settings.yaml`` is written unless the theme ships one.
"""

from __future__ import annotations

import logging
from pathlib import Path, PurePosixPath

import httpx

from . import __version__
from .settings import SETTINGS_FILE, Settings

logger = logging.getLogger(__name__)

THEME_REPOSITORY = "inkpress-ssg/inkpress-themes"
THEME_BRANCH = "main"
DEFAULT_THEME = "basic"
API_URL = "https://api.github.com/repos/{repo}/contents/{path}"
RAW_URL = "https://raw.githubusercontent.com/{repo}/{branch}/{path}"
TIMEOUT = 30  # seconds


class ThemeError(Exception):
    """Theme listing or download failed."""


def _client() -> httpx.Client:
    # GitHub rejects API requests without a user agent.
    return httpx.Client(
        headers={"User-Agent": f"inkpress/{__version__}"},
        timeout=TIMEOUT,
        follow_redirects=True,
    )


def _list_contents(client: httpx.Client, repo: str, path: str) -> list[dict]:
    response = client.get(API_URL.format(repo=repo, path=path))
    if response.status_code == 404:
        raise ThemeError(f"'{path}' not found in {repo}")
    response.raise_for_status()
    payload = response.json()
    if not isinstance(payload, list):
        raise ThemeError(f"'{path}' in {repo} is not a directory")
    return payload


def list_themes(
    repo: str = THEME_REPOSITORY, client: httpx.Client | None = None
) -> list[str]:
    """Return the names of the themes available in ``repo``."""
    own_client = client is None
    client = client or _client()
    try:
        entries = _list_contents(client, repo, "")
    finally:
        if own_client:
            client.close()
    return sorted(
        entry["name"]
        for entry in entries
        if entry.get("type") == "dir" and not entry["name"].startswith(".")
    )


def download_theme(
    project_dir: Path,
    theme: str,
    repo: str = THEME_REPOSITORY,
    branch: str = THEME_BRANCH,
    client: httpx.Client | None = None,
) -> list[Path]:
    """Download every file of ``theme`` into ``project_dir``.

    Args:
        project_dir: Directory of the new project (created when missing).
        theme: Name of the theme folder in the repository.
        repo: ``owner/name`` of the GitHub repository of themes.
        branch: Branch raw files are downloaded from.
        client: Optional httpx client.

    Returns:
        Paths of the files written.

    Raises:
        ThemeError: If the theme does not exist.
        httpx.HTTPError: On network or HTTP errors.
    """
    project_dir.mkdir(parents=True, exist_ok=True)
    own_client = client is None
    client = client or _client()
    written: list[Path] = []
    logger.info("Downloading theme %s", theme)
    try:
        pending = [theme]
        while pending:
            folder = pending.pop(0)
            for entry in _list_contents(client, repo, folder):
                if entry.get("type") == "dir":
                    pending.append(entry["path"])
                    continue
                if entry.get("type") != "file":
                    continue
                remote_path = PurePosixPath(entry["path"])
                target = project_dir.joinpath(*remote_path.relative_to(theme).parts)
                target.parent.mkdir(parents=True, exist_ok=True)
                logger.info("Downloading file: %s", remote_path)
                response = client.get(
                    RAW_URL.format(repo=repo, branch=branch, path=remote_path.as_posix())
                )
                response.raise_for_status()
                target.write_bytes(response.content)
                written.append(target)
    finally:
        if own_client:
            client.close()
    return written


def write_settings_file(project_dir: Path) -> Path | None:
    """Write default settings unless the project already has a settings file.

    Returns:
        Path of the written file, or None if one already existed.
    """
    path = project_dir / SETTINGS_FILE
    if path.exists():
        return None
    path.write_text(Settings.default().to_yaml(), encoding="utf-8")
    return path
