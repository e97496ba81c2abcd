"""Tests for the build.py command line."""

from __future__ import annotations

import importlib.util
import io
import json
import sys
import zipfile
from pathlib import Path

import pytest

SCRIPT = Path(__file__).resolve().parent.parent / "scripts" / "build.py"


def _load_script():
    spec = importlib.util.spec_from_file_location("bookepub_build_script", SCRIPT)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


cli = _load_script()


def test_build_command_writes_epub(book_dir: Path, tmp_path: Path) -> None:
    """The build subcommand writes <prefix>.epub into --output-dir."""

    out = tmp_path / "dist"

    cli.main(["build", str(book_dir), "--output-dir", str(out)])

    epub = out / "The Sample Book.epub"
    assert epub.exists()
    with zipfile.ZipFile(epub) as zf:
        assert "EPUB/intro.html" in zf.namelist()


def test_bare_book_argument_defaults_to_build(
    book_dir: Path, tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    """Omitting the subcommand still builds."""

    out = tmp_path / "dist"

    cli.main([str(book_dir), "--output-dir", str(out)])

    assert (out / "The Sample Book.epub").exists()
    assert "format(s) built successfully" in capsys.readouterr().out


def test_unknown_book_exits(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    """A book that can't be found is reported with exit status 1."""

    monkeypatch.chdir(tmp_path)

    with pytest.raises(SystemExit) as exc:
        cli.main(["build", "nowhere"])

    assert exc.value.code == 1
    assert "Could not find book 'nowhere'" in capsys.readouterr().out


def test_failed_build_exits(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    """A draft chapter fails the build and the command exits 1."""

    book = tmp_path / "drafty"
    (book / "src").mkdir(parents=True)
    (book / "book.yaml").write_text(
        "title: Drafty\nchapters:\n  - name: Not written yet\n", encoding="utf-8"
    )
    monkeypatch.chdir(tmp_path)

    with pytest.raises(SystemExit) as exc:
        cli.main(["build", "drafty", "--output-dir", str(tmp_path / "out")])

    assert exc.value.code == 1
    assert "Done with errors: epub failed" in capsys.readouterr().out
    assert not (tmp_path / "out" / "Drafty.epub").exists()


def test_mdbook_command_reads_stdin(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """The mdbook subcommand renders the JSON context into its destination."""

    (tmp_path / "src").mkdir()
    destination = tmp_path / "book" / "epub"
    ctx = {
        "root": str(tmp_path),
        "destination": str(destination),
        "config": {
            "book": {"title": "Piped", "authors": ["A"], "src": "src"},
            "output": {"epub": {"curly-quotes": True}},
        },
        "book": {
            "sections": [
                {"Chapter": {
                    "name": "One",
                    "content": "# One\n\n\"Quoted\" text.\n",
                    "number": [1],
                    "path": "one.md",
                    "sub_items": [],
                }},
            ],
        },
    }
    monkeypatch.setattr(sys, "stdin", io.StringIO(json.dumps(ctx)))

    cli.main(["mdbook"])

    epub = destination / "Piped.epub"
    with zipfile.ZipFile(epub) as zf:
        one = zf.read("EPUB/one.html").decode("utf-8")
    assert "“Quoted” text." in one


def test_mdbook_rejects_bad_json(
    monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    """Garbage on stdin is an error, not a traceback."""

    monkeypatch.setattr(sys, "stdin", io.StringIO("{not json"))

    with pytest.raises(SystemExit):
        cli.main(["mdbook"])

    assert "Unable to parse the render context" in capsys.readouterr().out
