"""
EPUB builder.

Pipeline: chapter tree → rendered XHTML chapters → EbookLib package.

Order is fixed: metadata, chapters (depth-first, parents before their
sub-chapters), cover image, stylesheet, linked assets, additional
resources, then the package is written. Any failure aborts the build.
"""

import os

from bookepub import __version__
from bookepub.builders.base import BaseBuilder
from bookepub.config import ConfigError
from bookepub.errors import AssetError, GenerationError
from bookepub.models import Chapter
from bookepub.render import ChapterRenderer
from bookepub.resources import find as find_assets, guess_mimetype
from bookepub.writer import EpubWriter

GENERATOR = "bookepub"


class EpubBuilder(BaseBuilder):
    format_name = "EPUB"
    extension = ".epub"

    def __init__(self, config, book, output_dir, verbose=False, **kwargs):
        super().__init__(config, book, output_dir, verbose=verbose, **kwargs)

        epub = config.epub
        self.writer = EpubWriter()
        self.renderer = ChapterRenderer(
            config.template(),
            no_section_label=epub["no_section_label"],
            curly_quotes=epub["curly_quotes"],
        )

    def build(self):
        self.header()

        output_file = self.output_file
        os.makedirs(os.path.dirname(output_file) or ".", exist_ok=True)

        try:
            self.generate(output_file)
        except (GenerationError, ConfigError) as e:
            print(f"  ✗ EPUB generation failed: {e}")
            # Don't leave a half-written package behind
            if os.path.exists(output_file):
                os.remove(output_file)
            return False

        print(f"  ✓ {output_file}")
        return True

    def generate(self, output):
        """Run the whole pipeline, writing the package to ``output``."""
        self.log("  Generating the EPUB book")

        self.populate_metadata()
        self.generate_chapters()

        self.add_cover_image()
        self.embed_stylesheets()
        self.additional_assets()
        self.additional_resources()

        self.writer.generate(output)

    # ── Metadata ───────────────────────────────────────────

    def populate_metadata(self):
        self.writer.metadata("generator", GENERATOR)

        if self.book.title:
            self.writer.metadata("title", self.book.title)
        else:
            self.warn("No title found, yet all EPUB documents should have a title")

        if self.book.description:
            self.writer.metadata("description", self.book.description)

        if self.book.authors:
            self.writer.metadata("author", ", ".join(self.book.authors))

        self.writer.metadata("generator", f"{GENERATOR} {__version__}")
        self.writer.metadata("lang", "en")

    # ── Chapters ───────────────────────────────────────────

    def generate_chapters(self):
        self.log("  Rendering chapters")

        for item in self.book.sections:
            if isinstance(item, Chapter):
                self.add_chapter(item)

    def add_chapter(self, chapter):
        """Add a chapter, then (recursively) its sub-chapters."""
        self.log(f"  Adding chapter \"{chapter}\"")

        rendered = self.renderer.render(chapter)
        self.writer.add_content(rendered.path, rendered.body, rendered.title, rendered.level)

        for sub_item in chapter.sub_items:
            if isinstance(sub_item, Chapter):
                self.add_chapter(sub_item)

    # ── Cover ──────────────────────────────────────────────

    def add_cover_image(self):
        cover = self.config.epub["cover_image"]
        if not cover:
            return

        self.log(f"  Adding cover image {cover}")
        name, full_path = self._local_file(cover)

        with self._open(full_path) as content:
            self.writer.add_cover_image(name, content, guess_mimetype(full_path))

    # ── Stylesheet ─────────────────────────────────────────

    def generate_stylesheet(self):
        """Concatenate the default CSS (if enabled) and every additional_css file."""
        epub = self.config.epub
        stylesheet = bytearray()

        if epub["use_default_css"]:
            stylesheet.extend(self.config.default_css())

        for additional_css in epub["additional_css"]:
            path = self.resolve(additional_css)
            try:
                with open(path, "rb") as f:
                    stylesheet.extend(f.read())
            except OSError as e:
                raise AssetError(f"Unable to open {path}") from e

        return bytes(stylesheet)

    def embed_stylesheets(self):
        self.log("  Embedding stylesheets")
        self.writer.stylesheet(self.generate_stylesheet())

    # ── Assets and resources ───────────────────────────────

    def additional_assets(self):
        self.log("  Embedding additional assets")

        try:
            assets = find_assets(self.book, self.config.src_dir)
        except AssetError as e:
            raise AssetError(f"Inspecting the book for additional assets failed: {e}") from e

        for asset in assets:
            self.log(f"  Embedding {asset.filename}")
            try:
                with asset.open() as content:
                    self.writer.add_resource(asset.filename, content, asset.mimetype)
            except OSError as e:
                raise AssetError(f"Couldn't load {asset.filename}") from e

    def additional_resources(self):
        self.log("  Embedding additional resources")

        for path in self.config.epub["additional_resources"]:
            self.log(f"  Embedding {path}")
            name, full_path = self._local_file(path)

            with self._open(full_path) as content:
                self.writer.add_resource(name, content, guess_mimetype(full_path))

    def _local_file(self, configured):
        """(file name, canonical path) for a path from the config."""
        name = os.path.basename(configured)
        if not name:
            raise ConfigError(f"Can't determine the file name of: {configured}")

        full_path = os.path.realpath(self.resolve(configured))
        if not os.path.isfile(full_path):
            raise AssetError(f"Unable to find {configured} (looked for {full_path})")

        return name, full_path

    def _open(self, full_path):
        try:
            return open(full_path, "rb")
        except OSError as e:
            raise AssetError(f"Unable to open {full_path}") from e
