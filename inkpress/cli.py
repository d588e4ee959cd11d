"""Command-line interface for inkpress.

This module defines the CLI commands using Click framework.

Commands:
- new: Scaffold a new project from a remote theme.
- dev: Build, serve and optionally watch a project with live reload.
- build: Build a project into the output directory.
- clean: Delete the download cache.
"""

from __future__ import annotations

import sys
from pathlib import Path

import click
import httpx
import questionary

from . import __version__
from .log import configure_logging


@click.group()
@click.version_option(version=__version__, prog_name="inkpress")
@click.option("-v", "--verbose", is_flag=True, help="Show debug output")
def cli(verbose: bool):
    """inkpress static site generator."""
    configure_logging(verbose)


@cli.command()
@click.argument("project_dir", type=click.Path(file_okay=False, path_type=Path))
@click.option("--theme", default=None, help="Theme to download (default: basic)")
def new(project_dir: Path, theme: str | None):
    """Scaffold a new project from a theme."""
    from .bootstrap import (
        DEFAULT_THEME,
        ThemeError,
        download_theme,
        list_themes,
        write_settings_file,
    )

    target = project_dir.resolve()
    if target.exists() and any(target.iterdir()):
        raise click.ClickException(
            f"Refusing to initialize into non-empty directory: {target}"
        )

    try:
        if theme is None:
            theme = _pick_theme(list_themes) or DEFAULT_THEME
        download_theme(target, theme)
    except (ThemeError, httpx.HTTPError) as exc:
        raise click.ClickException(f"Failed to download theme '{theme}': {exc}") from exc

    write_settings_file(target)
    click.secho(f"✔ New site created at {target}", fg="green")


@cli.command()
@click.argument("input_dir", type=click.Path(path_type=Path))
@click.option("-w", "--watch", is_flag=True, help="Rebuild and live reload on changes")
@click.option("--port", type=int, required=False, help="HTTP port (overrides Settings.yaml)")
@click.option(
    "--ws-port",
    type=int,
    required=False,
    help="Live reload websocket port (overrides Settings.yaml)",
)
@click.option(
    "--output",
    type=click.Path(file_okay=False, path_type=Path),
    default="output",
    show_default=True,
    help="Output directory",
)
def dev(input_dir: Path, watch: bool, port: int | None, ws_port: int | None, output: Path):
    """Build and serve a site, optionally watching for changes."""
    from .server import DevServer

    worker = _make_worker(input_dir, output)
    _run_build(worker)
    server = DevServer(worker, http_port=port, ws_port=ws_port)
    server.start(watch=watch)


@cli.command()
@click.argument("input_dir", type=click.Path(path_type=Path))
@click.option(
    "--output",
    type=click.Path(file_okay=False, path_type=Path),
    default="output",
    show_default=True,
    help="Output directory",
)
def build(input_dir: Path, output: Path):
    """Build the site into the output directory."""
    worker = _make_worker(input_dir, output)
    result = _run_build(worker)
    message = f"✔ Built {len(result.pages)} pages into {result.output_dir}"
    if result.failures:
        click.secho(f"{message} ({len(result.failures)} failed)", fg="yellow")
    else:
        click.secho(message, fg="green")


@cli.command()
def clean():
    """Delete the download cache."""
    from .cache import Cache, default_cache_dir

    cache = Cache(default_cache_dir())
    cache.clean()
    click.secho(f"✔ Cache cleaned: {cache.cache_dir}", fg="green")


def _make_worker(input_dir: Path, output: Path):
    from .build import BuildError, Worker

    try:
        return Worker(input_dir, output_dir=output)
    except BuildError as exc:
        _fail(exc.source_path, exc.message)


def _run_build(worker):
    from .build import BuildError
    from .settings import SettingsError
    from .site_directory import SiteDirectoryError

    try:
        return worker.build()
    except BuildError as exc:
        _fail(exc.source_path, exc.message)
    except SettingsError as exc:
        _fail(exc.path, exc.message)
    except SiteDirectoryError as exc:
        _fail(worker.pages_dir, str(exc))


def _fail(path: Path, message: str):
    """Display a user-friendly build error and exit."""
    click.echo(click.style("✘ Build failed:", fg="red", bold=True), err=True)
    click.echo(click.style(f"  File: {path}", fg="yellow"), err=True)
    click.echo(click.style(f"  Error: {message}", fg="white"), err=True)
    raise SystemExit(1)


def _pick_theme(list_themes) -> str | None:
    """Let the user choose a theme when running interactively."""
    if not sys.stdin.isatty():
        return None
    themes = list_themes()
    if not themes:
        return None
    return questionary.select(
        "Select theme:",
        choices=themes,
        style=_questionary_style(),
    ).ask()


def _questionary_style():
    """Return consistent questionary style."""
    return questionary.Style(
        [
            ("qmark", "fg:cyan bold"),
            ("question", "bold"),
            ("answer", "fg:cyan"),
            ("pointer", "fg:cyan bold"),
            ("highlighted", "fg:cyan bold"),
            ("selected", "fg:cyan"),
        ]
    )


def main():
    """Entry point for the CLI application."""
    cli()
