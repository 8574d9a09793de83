from pathlib import Path

from click.testing import CliRunner

from inkwell import __version__
from inkwell.cli import _get_existing_slugs, cli
from inkwell.content import load_file


def create_source(tmp_path: Path) -> Path:
    source = tmp_path / "posts"
    (source / "_layouts").mkdir(parents=True)
    (source / "_layouts" / "post.html").write_text("<main>{{ content }}</main>", encoding="utf-8")
    (source / "2013-01-05-bundler.md").write_text(
        "---\nlayout: post\ntitle: Bundler\n---\nRun `bundle`.\n", encoding="utf-8"
    )
    (source / "logging.md").write_text(
        "---\ntitle: Logging\ndate: 2013-03-01\n---\nWrap loggers.\n", encoding="utf-8"
    )
    return source


def test_cli_build(tmp_path):
    source = create_source(tmp_path)
    output = tmp_path / "site"
    runner = CliRunner()
    result = runner.invoke(cli, ["build", str(source), str(output)])
    assert result.exit_code == 0, result.output
    assert "Built 2 documents" in result.output
    page = output / "2013" / "01" / "05" / "bundler" / "index.html"
    assert page.read_text(encoding="utf-8") == "<main><p>Run <code>bundle</code>.</p>\n</main>"


def test_cli_build_verbose_lists_files(tmp_path):
    source = create_source(tmp_path)
    result = CliRunner().invoke(cli, ["build", str(source), str(tmp_path / "site"), "-v"])
    assert result.exit_code == 0
    assert result.output.count("wrote ") == 2


def test_cli_build_reports_failure_and_stops(tmp_path):
    source = create_source(tmp_path)
    (source / "broken.md").write_text("---\ntitle: Broken\n", encoding="utf-8")
    result = CliRunner().invoke(cli, ["build", str(source), str(tmp_path / "site")])
    assert result.exit_code == 1
    assert "Build failed:" in result.output
    assert "File: broken.md" in result.output
    assert "Parse error" in result.output


def test_cli_build_continue_on_error(tmp_path):
    source = create_source(tmp_path)
    (source / "broken.md").write_text("---\ntitle: Broken\n", encoding="utf-8")
    (source / "gallery.md").write_text(
        "---\nlayout: gallery\ndate: 2013-02-01\n---\n", encoding="utf-8"
    )
    output = tmp_path / "site"
    result = CliRunner().invoke(
        cli, ["build", str(source), str(output), "--continue-on-error"]
    )
    assert result.exit_code == 1
    assert "2 document(s) failed" in result.output
    assert "File: broken.md" in result.output
    assert "File: gallery.md" in result.output
    assert "Layout not found: 'gallery'" in result.output
    assert "Built 2 documents" in result.output
    assert (output / "2013" / "03" / "01" / "logging" / "index.html").exists()


def test_cli_build_layouts_and_config_options(tmp_path):
    source = create_source(tmp_path)
    layouts = tmp_path / "theme"
    layouts.mkdir()
    (layouts / "post.html").write_text("themed:{{ content }}", encoding="utf-8")
    config = tmp_path / "site.yaml"
    config.write_text("permalink: /{slug}/\n", encoding="utf-8")
    output = tmp_path / "site"
    result = CliRunner().invoke(
        cli,
        ["build", str(source), str(output), "--layouts", str(layouts), "--config", str(config)],
    )
    assert result.exit_code == 0, result.output
    assert (output / "bundler" / "index.html").read_text(encoding="utf-8").startswith(
        "themed:"
    )


def test_cli_build_bad_config_and_output(tmp_path):
    source = create_source(tmp_path)
    (source / "inkwell.yaml").write_text("title: [oops\n", encoding="utf-8")
    result = CliRunner().invoke(cli, ["build", str(source), str(tmp_path / "site")])
    assert result.exit_code != 0
    assert "Could not read configuration" in result.output

    (source / "inkwell.yaml").unlink()
    result = CliRunner().invoke(cli, ["build", str(source), str(tmp_path)])
    assert result.exit_code != 0
    assert "would overwrite source directory" in result.output


def test_cli_build_missing_source(tmp_path):
    result = CliRunner().invoke(cli, ["build", str(tmp_path / "nope"), str(tmp_path / "site")])
    assert result.exit_code == 2


def test_cli_version():
    result = CliRunner().invoke(cli, ["--version"])
    assert result.exit_code == 0
    assert __version__ in result.output


def test_new_post_with_options(tmp_path):
    source = tmp_path / "posts"
    source.mkdir()
    runner = CliRunner()
    result = runner.invoke(
        cli, ["new-post", str(source), "--title", "Small Scripting Tips", "--tags", "shell, tips", "--draft"]
    )
    assert result.exit_code == 0, result.output
    created = list(source.glob("*-small-scripting-tips.md"))
    assert len(created) == 1
    doc = load_file(created[0])
    assert doc.title == "Small Scripting Tips"
    assert doc.tags == ("shell", "tips")
    assert doc.layout == "post"
    assert doc.published is False

    result = runner.invoke(cli, ["new-post", str(source), "--title", "small scripting tips!"])
    assert result.exit_code != 0
    assert "already exists" in result.output


def test_new_post_prompts(tmp_path, monkeypatch):
    source = tmp_path / "posts"
    source.mkdir()
    responses = iter(["Logging Abstractions", "ruby logging"])

    def mock_text(*args, **kwargs):
        class MockQuestion:
            def ask(self):
                return next(responses)

        return MockQuestion()

    monkeypatch.setattr("inkwell.cli.questionary.text", mock_text)
    result = CliRunner().invoke(cli, ["new-post", str(source)])
    assert result.exit_code == 0, result.output
    (created,) = source.glob("*.md")
    doc = load_file(created)
    assert doc.tags == ("ruby", "logging")
    assert doc.published is True


def test_new_post_aborts_when_prompt_cancelled(tmp_path, monkeypatch):
    class Cancelled:
        def ask(self):
            return None

    monkeypatch.setattr("inkwell.cli.questionary.text", lambda *a, **k: Cancelled())
    result = CliRunner().invoke(cli, ["new-post", str(tmp_path)])
    assert result.exit_code == 1
    assert list(tmp_path.iterdir()) == []


def test_get_existing_slugs(tmp_path):
    (tmp_path / "2024-01-01-first-post.md").write_text("x", encoding="utf-8")
    (tmp_path / "second-post.markdown").write_text("x", encoding="utf-8")
    (tmp_path / "notes.txt").write_text("x", encoding="utf-8")
    assert set(_get_existing_slugs(tmp_path)) == {"first-post", "second-post"}


def test_module_main_entrypoint():
    from inkwell.__main__ import main

    assert callable(main)
