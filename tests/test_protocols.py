from inkpress.cache import Cache
from inkpress.protocols import KeyValueCache, TemplateExpander
from inkpress.render import PageRenderer
from inkpress.settings import Settings
from inkpress.templates import TemplateEngine

from conftest import create_project


class DictCache:
    def __init__(self):
        self.values = {}

    def get(self, key):
        return self.values.get(key)

    def set(self, key, value):
        self.values[key] = value


class StaticExpander:
    """Template expander returning canned output, used in place of Jinja."""

    def is_blank(self, name):
        return name != "app"

    def expand(self, name, context):
        return f"[{name}:{context['title']}]"


def test_concrete_classes_satisfy_protocols(tmp_path):
    assert isinstance(Cache(tmp_path), KeyValueCache)
    assert isinstance(TemplateEngine(tmp_path), TemplateExpander)
    assert isinstance(DictCache(), KeyValueCache)
    assert isinstance(StaticExpander(), TemplateExpander)


def test_renderer_accepts_any_expander(tmp_path):
    from inkpress.content import ContentProcessor

    project = create_project(tmp_path / "site")
    page = next(
        p for p in ContentProcessor(project / "pages").load() if p.url_path == "/about/"
    )
    settings = Settings.default()
    renderer = PageRenderer(
        page, project / "theme", settings, cache=DictCache(), engine=StaticExpander()
    )
    rendered = renderer.render()
    assert rendered.html == "[app:About]"
    assert rendered.amp_html == ""
