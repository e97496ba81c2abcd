"""Shared fixtures: a small on-disk book with nested chapters and assets."""

from __future__ import annotations

import textwrap
from pathlib import Path

import pytest

# Enough of a PNG signature for mimetypes and the EPUB manifest.
PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 16

BOOK_YAML = """\
title: The Sample Book
authors:
  - Ada Lovelace
  - Charles Babbage
description: A book used by the test-suite.
epub:
  curly_quotes: true
  cover-image: cover.png
  additional_css:
    - extra.css
  additional_resources:
    - fonts/body.ttf
front:
  - path: preface.md
chapters:
  - path: intro.md
    name: Introduction
    sections:
      - path: intro/details.md
  - "---"
  - path: guide/usage.md
    sections:
      - path: guide/deep/config.md
back:
  - appendix.md
"""

CHAPTERS = {
    "preface.md": "# Preface\n\nWelcome.\n",
    "intro.md": textwrap.dedent(
        """\
        # Introduction

        "Hello 'world'" she said.

        ![diagram](images/diagram.png)

        ```
        print("verbatim")
        ```
        """
    ),
    "intro/details.md": "# Details\n\nSee ![again](../images/diagram.png).\n",
    "guide/usage.md": "# Usage\n\nRun it.\n",
    "guide/deep/config.md": "# Configuration\n\n![nested](../../images/nested.jpg)\n",
    "appendix.md": "# Appendix A\n\nThe end.\n",
}


def write_book(root: Path, book_yaml: str = BOOK_YAML, chapters: dict | None = None) -> Path:
    """Lay out a book directory under ``root`` and return it."""
    root.mkdir(parents=True, exist_ok=True)
    (root / "book.yaml").write_text(book_yaml, encoding="utf-8")

    src = root / "src"
    for rel, content in (CHAPTERS if chapters is None else chapters).items():
        path = src / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")

    images = src / "images"
    images.mkdir(parents=True, exist_ok=True)
    (images / "diagram.png").write_bytes(PNG_BYTES)
    (images / "nested.jpg").write_bytes(b"\xff\xd8\xff\xe0fake-jpeg")

    (root / "cover.png").write_bytes(PNG_BYTES)
    (root / "extra.css").write_text("p { color: navy; }\n", encoding="utf-8")
    (root / "fonts").mkdir(exist_ok=True)
    (root / "fonts" / "body.ttf").write_bytes(b"\x00\x01\x00\x00font")

    return root


@pytest.fixture
def book_dir(tmp_path: Path) -> Path:
    """A complete sample book."""
    return write_book(tmp_path / "sample")
