"""inkpress static site generator.

This package turns a directory of Markdown pages, a Jinja2 theme and a
Settings.yaml file into a directory of minified static HTML pages.
A development mode rebuilds on file change and signals open browser tabs
to reload over a websocket.

The main entry point is the CLI module, which provides commands for scaffolding
new projects from remote themes, building sites, running the development server
and cleaning the download cache.
"""

__all__ = ["__version__"]
__version__ = "0.3.0"
