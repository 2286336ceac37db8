"""Tests for the local authoring CLI."""

import pytest

from scripts.posts import main


@pytest.fixture
def run(content_dir, capsys):
    def _run(*args):
        code = main(["--content-dir", str(content_dir), *args])
        captured = capsys.readouterr()
        return code, captured.out, captured.err

    return _run


@pytest.fixture
def body_file(tmp_path):
    path = tmp_path / "body.md"
    path.write_text("# Intro\n\n## Details\n\nSome text.\n", encoding="utf-8")
    return path


def _new(run, body_file, title="Hello World", *extra):
    code, out, _ = run("new", title, "--file", str(body_file), *extra)
    assert code == 0
    return out.split()[1]


def test_new_and_list(run, body_file, content_dir):
    post_id = _new(run, body_file)
    assert (content_dir / f"{post_id}-hello-world.md").is_file()

    code, out, _ = run("list")
    assert code == 0
    assert f"D {post_id}" in out
    assert "Hello World" in out
    assert "1 post(s)" in out


def test_new_published(run, body_file):
    _new(run, body_file, "Live", "--publish")
    _new(run, body_file, "Draft")

    code, out, _ = run("list", "--drafts")
    assert "Draft" in out
    assert "Live" not in out


def test_show_prints_outline(run, body_file):
    post_id = _new(run, body_file)
    code, out, _ = run("show", post_id)
    assert code == 0
    assert "Hello World  [draft]  1 min read" in out
    assert "- Intro" in out
    assert "- Details" in out


def test_show_unknown_post(run):
    code, _, err = run("show", "01HQ3V0N9X7TKRZ8M4C6B2D5FG")
    assert code == 1
    assert "not found" in err


def test_new_with_missing_body_file(run, tmp_path, content_dir):
    missing = tmp_path / "nope.md"
    code, out, err = run("new", "Hello", "--file", str(missing))
    assert code == 2
    assert f"Error: cannot read {missing}" in err
    assert "Traceback" not in err
    assert not list(content_dir.glob("*.md"))


def test_render_directory_instead_of_file(run, tmp_path):
    code, _, err = run("render", str(tmp_path))
    assert code == 2
    assert f"Error: cannot read {tmp_path}" in err


def test_edit_renames(run, body_file, content_dir):
    post_id = _new(run, body_file)
    code, out, _ = run("edit", post_id, "--title", "Better Title")
    assert code == 0
    assert "better-title" in out
    assert [p.name for p in content_dir.iterdir()] == [f"{post_id}-better-title.md"]


def test_publish_twice_fails(run, body_file):
    post_id = _new(run, body_file)
    assert run("publish", post_id)[0] == 0

    code, _, err = run("publish", post_id)
    assert code == 1
    assert "already published" in err


def test_delete(run, body_file, content_dir):
    post_id = _new(run, body_file)
    assert run("delete", post_id)[0] == 0
    assert list(content_dir.iterdir()) == []

    code, _, err = run("delete", post_id)
    assert code == 1
    assert "not found" in err


def test_migrate(run, content_dir):
    (content_dir / "old.md").write_text("---\ntitle: Old\ndate: 2024-01-01\n---\n\nold\n", encoding="utf-8")

    code, out, _ = run("migrate")
    assert code == 0
    assert "1 legacy file(s) migrated" in out
    [path] = content_dir.iterdir()
    assert path.name.endswith("-old.md")


def test_render(run, body_file):
    code, out, _ = run("render", str(body_file))
    assert code == 0
    assert '<h1 id="heading-0">Intro</h1>' in out


def test_storage_failure_exit_code(run, mocker):
    mocker.patch("pressroom.services.post_store.os.listdir", side_effect=PermissionError("denied"))
    code, _, _ = run("list")
    assert code == 2
