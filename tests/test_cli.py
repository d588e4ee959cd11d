from pathlib import Path

import pytest
from click.testing import CliRunner

from inkpress import __version__
from inkpress.cli import cli


@pytest.fixture(autouse=True)
def isolated_cache(tmp_path, monkeypatch):
    cache_dir = tmp_path / "user-cache"
    monkeypatch.setattr("inkpress.build.default_cache_dir", lambda: cache_dir)
    monkeypatch.setattr("inkpress.cache.default_cache_dir", lambda: cache_dir)
    return cache_dir


def test_version():
    result = CliRunner().invoke(cli, ["--version"])
    assert result.exit_code == 0
    assert __version__ in result.output


def test_build_command(project, tmp_path):
    output = tmp_path / "output"
    result = CliRunner().invoke(cli, ["build", str(project), "--output", str(output)])
    assert result.exit_code == 0, result.output
    assert "Built 3 pages" in result.output
    assert (output / "index.html").exists()
    assert (output / "sitemap.xml").exists()


def test_build_command_reports_failed_pages(project, tmp_path):
    (project / "pages" / "broken.md").write_text(
        "---\ntemplate: missing\n---\nBody", encoding="utf-8"
    )
    output = tmp_path / "output"
    result = CliRunner().invoke(cli, ["build", str(project), "--output", str(output)])
    assert result.exit_code == 0
    assert "Built 3 pages" in result.output
    assert "(1 failed)" in result.output


def test_build_command_missing_settings(project, tmp_path):
    (project / "Settings.yaml").unlink()
    result = CliRunner().invoke(
        cli, ["build", str(project), "--output", str(tmp_path / "output")]
    )
    assert result.exit_code == 1
    assert "Build failed" in result.output
    assert "Settings file not found" in result.output


def test_build_command_collision(project, tmp_path):
    (project / "pages" / "about").mkdir()
    (project / "pages" / "about" / "team.md").write_text("Team", encoding="utf-8")
    result = CliRunner().invoke(
        cli, ["build", str(project), "--output", str(tmp_path / "output")]
    )
    assert result.exit_code == 1
    assert "Path collision" in result.output


def test_build_command_missing_input(tmp_path):
    result = CliRunner().invoke(cli, ["build", str(tmp_path / "nope")])
    assert result.exit_code == 1
    assert "Input directory does not exist" in result.output


def test_build_command_rejects_cwd(project, monkeypatch):
    monkeypatch.chdir(project)
    result = CliRunner().invoke(cli, ["build", "."])
    assert result.exit_code == 1
    assert "current directory" in result.output


def test_clean_command(isolated_cache):
    isolated_cache.mkdir()
    (isolated_cache / "entry.txt").write_text("cached", encoding="utf-8")
    result = CliRunner().invoke(cli, ["clean"])
    assert result.exit_code == 0
    assert "Cache cleaned" in result.output
    assert not isolated_cache.exists()


def test_new_command(tmp_path, monkeypatch):
    calls = []

    def fake_download(project_dir: Path, theme: str):
        calls.append(theme)
        (project_dir / "pages").mkdir(parents=True)
        (project_dir / "pages" / "page.md").write_text("# Hi", encoding="utf-8")
        return [project_dir / "pages" / "page.md"]

    monkeypatch.setattr("inkpress.bootstrap.download_theme", fake_download)
    target = tmp_path / "blog"
    result = CliRunner().invoke(cli, ["new", str(target)])

    assert result.exit_code == 0, result.output
    assert calls == ["basic"]
    assert (target / "pages" / "page.md").exists()
    assert "title: inkpress" in (target / "Settings.yaml").read_text(encoding="utf-8")
    assert "New site created" in result.output


def test_new_command_with_theme(tmp_path, monkeypatch):
    calls = []
    monkeypatch.setattr(
        "inkpress.bootstrap.download_theme",
        lambda project_dir, theme: calls.append(theme) or project_dir.mkdir(parents=True),
    )
    result = CliRunner().invoke(cli, ["new", str(tmp_path / "site"), "--theme", "docs"])
    assert result.exit_code == 0, result.output
    assert calls == ["docs"]


def test_new_command_refuses_non_empty_dir(tmp_path):
    (tmp_path / "existing.txt").write_text("x", encoding="utf-8")
    result = CliRunner().invoke(cli, ["new", str(tmp_path)])
    assert result.exit_code == 1
    assert "non-empty" in result.output


def test_new_command_theme_error(tmp_path, monkeypatch):
    from inkpress.bootstrap import ThemeError

    def fake_download(project_dir, theme):
        raise ThemeError("'nope' not found")

    monkeypatch.setattr("inkpress.bootstrap.download_theme", fake_download)
    result = CliRunner().invoke(cli, ["new", str(tmp_path / "site"), "--theme", "nope"])
    assert result.exit_code == 1
    assert "Failed to download theme 'nope'" in result.output


def test_dev_command_builds_and_serves(project, tmp_path, monkeypatch):
    started = {}

    def fake_start(self, watch=False):
        started.update(
            watch=watch, http_port=self.http_port, ws_port=self.ws_port
        )

    monkeypatch.setattr("inkpress.server.DevServer.start", fake_start)
    output = tmp_path / "output"
    result = CliRunner().invoke(
        cli, ["dev", str(project), "--watch", "--port", "8000", "--output", str(output)]
    )

    assert result.exit_code == 0, result.output
    assert started == {"watch": True, "http_port": 8000, "ws_port": 4001}
    assert (output / "index.html").exists()


@pytest.mark.parametrize("output", ["same", "parent"])
def test_build_command_rejects_output_over_input(project, output):
    target = project if output == "same" else project.parent
    result = CliRunner().invoke(cli, ["build", str(project), "--output", str(target)])
    assert result.exit_code == 1
    assert "overlaps the input directory" in result.output
    assert (project / "pages" / "about.md").exists()
