"""Site settings for inkpress.

This module loads ``Settings.yaml`` from the project root into a typed,
read-only model. Settings are loaded fresh at the start of every build and
passed explicitly to every component that needs them.

Key classes:
- Settings: Top-level configuration.
- SiteMeta: Title, description, base URL and Open Graph image.
- SiteSettings: Feature flags and global style/script URLs.
- NavigationSettings / Link: Ordered navigation links.
- DevSettings: Ports used by the development server.

Key functions:
- load_settings: Read and validate Settings.yaml.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any

import yaml

SETTINGS_FILE = "Settings.yaml"


class SettingsError(Exception):
    """Settings file missing or structurally invalid.

    Attributes:
        path: Path to the settings file.
        message: Human-readable error message.
    """

    def __init__(self, path: Path, message: str):
        self.path = path
        self.message = message
        super().__init__(f"{path}: {message}")


@dataclass(frozen=True)
class DevSettings:
    port: int = 3000
    ws_port: int = 3001


@dataclass(frozen=True)
class SiteSettings:
    """Site-wide feature flags.

    Attributes:
        block_search_indexing: Emit a disallow-all robots.txt when True.
        code_highlighting: Highlight fenced code blocks with Pygments.
        style_urls: Remote stylesheets inlined into every page.
        script_urls: Remote scripts inlined into every page.
    """

    block_search_indexing: bool = False
    code_highlighting: bool = True
    style_urls: tuple[str, ...] = ()
    script_urls: tuple[str, ...] = ()

    def is_search_engine_blocked(self) -> bool:
        return self.block_search_indexing is True


@dataclass(frozen=True)
class SiteMeta:
    title: str
    description: str
    base_url: str | None = None
    og_image_url: str | None = None

    def get_base_url(self) -> str | None:
        """Return the base URL without a trailing slash, or None if unset."""
        if not self.base_url:
            return None
        return self.base_url.rstrip("/")


@dataclass(frozen=True)
class Link:
    label: str
    url: str


@dataclass(frozen=True)
class NavigationSettings:
    links: tuple[Link, ...] = ()


@dataclass(frozen=True)
class Settings:
    """Complete site configuration.

    Attributes:
        meta: Site title, description and URLs.
        dev: Development server ports.
        site: Feature flags and global asset URLs.
        navigation: Ordered navigation links.
        data: Arbitrary structured data exposed to templates verbatim.
        remote_data: Mapping of name to URL, fetched as JSON at build time.
    """

    meta: SiteMeta
    dev: DevSettings = field(default_factory=DevSettings)
    site: SiteSettings = field(default_factory=SiteSettings)
    navigation: NavigationSettings = field(default_factory=NavigationSettings)
    data: Any = None
    remote_data: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def default(cls) -> Settings:
        """Settings written into freshly scaffolded projects."""
        return cls(
            meta=SiteMeta(
                title="inkpress",
                description="A fast static site generator",
            ),
            navigation=NavigationSettings(links=(Link(label="Home", url="/"),)),
        )

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any], path: Path) -> Settings:
        """Build Settings from a parsed YAML mapping.

        Args:
            payload: Parsed settings mapping.
            path: Settings file path, used for error messages.

        Returns:
            Settings instance.

        Raises:
            SettingsError: If a section has the wrong shape or a required
                field is missing.
        """
        meta = _section(payload, "meta", path, required=True)
        if not isinstance(meta.get("title"), str) or not isinstance(
            meta.get("description"), str
        ):
            raise SettingsError(path, "meta.title and meta.description are required")

        dev = _section(payload, "dev", path)
        site = _section(payload, "site", path)
        navigation = _section(payload, "navigation", path)
        remote_data = _section(payload, "remote_data", path)

        links = []
        for item in navigation.get("links") or []:
            if not isinstance(item, Mapping) or "label" not in item or "url" not in item:
                raise SettingsError(path, "navigation links need a label and a url")
            links.append(Link(label=str(item["label"]), url=str(item["url"])))

        try:
            return cls(
                meta=SiteMeta(
                    title=meta["title"],
                    description=meta["description"],
                    base_url=meta.get("base_url"),
                    og_image_url=meta.get("og_image_url"),
                ),
                dev=DevSettings(
                    port=int(dev.get("port", DevSettings.port)),
                    ws_port=int(dev.get("ws_port", DevSettings.ws_port)),
                ),
                site=SiteSettings(
                    block_search_indexing=bool(site.get("block_search_indexing", False)),
                    code_highlighting=bool(site.get("code_highlighting", True)),
                    style_urls=_url_list(site, "style_urls", path),
                    script_urls=_url_list(site, "script_urls", path),
                ),
                navigation=NavigationSettings(links=tuple(links)),
                data=payload.get("data"),
                remote_data=dict(remote_data),
            )
        except (TypeError, ValueError) as exc:
            raise SettingsError(path, f"Invalid value: {exc}") from exc

    def to_dict(self) -> dict[str, Any]:
        payload = asdict(self)
        payload["site"]["style_urls"] = list(self.site.style_urls)
        payload["site"]["script_urls"] = list(self.site.script_urls)
        payload["navigation"]["links"] = [asdict(link) for link in self.navigation.links]
        return payload

    def to_yaml(self) -> str:
        return yaml.safe_dump(self.to_dict(), sort_keys=False)


def _section(
    payload: Mapping[str, Any], name: str, path: Path, required: bool = False
) -> Mapping[str, Any]:
    value = payload.get(name)
    if value is None:
        if required:
            raise SettingsError(path, f"Missing required section '{name}'")
        return {}
    if not isinstance(value, Mapping):
        raise SettingsError(path, f"Section '{name}' must be a mapping")
    return value


def _url_list(section: Mapping[str, Any], name: str, path: Path) -> tuple[str, ...]:
    value = section.get(name)
    if value is None:
        return ()
    if not isinstance(value, list):
        raise SettingsError(path, f"site.{name} must be a list of URLs")
    return tuple(value)


def load_settings(input_dir: Path) -> Settings:
    """Load Settings.yaml from the project root.

    Args:
        input_dir: Root directory of the project.

    Returns:
        Parsed Settings.

    Raises:
        SettingsError: If the file is missing, not valid YAML or invalid.
    """
    path = input_dir / SETTINGS_FILE
    if not path.exists():
        raise SettingsError(path, "Settings file not found")
    try:
        with open(path, encoding="utf-8") as f:
            payload = yaml.safe_load(f)
    except yaml.YAMLError as exc:
        raise SettingsError(path, f"Invalid YAML: {exc}") from exc
    if not isinstance(payload, Mapping):
        raise SettingsError(path, "Settings file must contain a mapping")
    return Settings.from_dict(payload, path)
