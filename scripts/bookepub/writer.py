"""
Incremental EPUB writer on top of EbookLib.

Entries are registered one call at a time, in reading order; nothing is
written until generate(). A writer produces exactly one package: every
call after generate() raises ArchiveError.
"""

import uuid

from ebooklib import epub

from bookepub.errors import ArchiveError
from bookepub.render import STYLESHEET_NAME

XHTML = "application/xhtml+xml"

COVER_ID = "cover-img"


class _TocEntry:
    def __init__(self, uid, path, title, level):
        self.uid = uid
        self.path = path
        self.title = title
        self.level = level
        self.children = []

    def to_toc(self):
        if not self.children:
            return epub.Link(self.path, self.title, self.uid)
        return (
            epub.Section(self.title, href=self.path),
            [child.to_toc() for child in self.children],
        )


def nest_toc(entries):
    """
    Turn a flat list of entries with levels into a tree.

    Each entry becomes a child of the closest entry before it with a
    smaller level; entries with no such parent stay at the top.
    """
    roots = []
    stack = []
    for entry in entries:
        while stack and stack[-1].level >= entry.level:
            stack.pop()
        (stack[-1].children if stack else roots).append(entry)
        stack.append(entry)
    return roots


def _read(content):
    if isinstance(content, (bytes, bytearray)):
        return bytes(content)
    return content.read()


class EpubWriter:
    """
    Usage:
        writer = EpubWriter()
        writer.metadata("title", "My Book")
        writer.add_content("intro.html", html, "Introduction", level=0)
        writer.stylesheet(css_bytes)
        writer.generate("out/book.epub")
    """

    def __init__(self):
        self.book = epub.EpubBook()
        self.book.set_identifier(str(uuid.uuid4()))
        self._toc = []
        self._spine = []
        self._count = 0
        self._generated = False

    def _check_open(self):
        if self._generated:
            raise ArchiveError("The EPUB has already been generated; start a new writer")

    def _next_uid(self, prefix):
        self._count += 1
        return f"{prefix}_{self._count}"

    # ── Metadata ───────────────────────────────────────────

    def metadata(self, key, value):
        self._check_open()

        if key == "title":
            self.book.set_title(value)
        elif key == "author":
            self.book.add_author(value)
        elif key == "description":
            self.book.add_metadata("DC", "description", value)
        elif key == "lang":
            self.book.set_language(value)
        elif key == "generator":
            self.book.add_metadata(None, "meta", "", {"name": "generator", "content": value})
        else:
            raise ArchiveError(f"Unknown metadata key: {key}")

    # ── Content ────────────────────────────────────────────

    def add_content(self, path, body, title, level=0):
        """Add a chapter to the spine and the table of contents."""
        self._check_open()

        uid = self._next_uid("chapter")
        item = epub.EpubItem(
            uid=uid,
            file_name=path,
            media_type=XHTML,
            content=body.encode("utf-8") if isinstance(body, str) else body,
        )
        self.book.add_item(item)
        self._spine.append(uid)
        self._toc.append(_TocEntry(uid, path, title, level))

    def add_resource(self, name, content, mimetype):
        self._check_open()

        item = epub.EpubItem(
            uid=self._next_uid("resource"),
            file_name=name,
            media_type=mimetype,
            content=_read(content),
        )
        self.book.add_item(item)

    def add_cover_image(self, name, content, mimetype):
        self._check_open()

        cover = epub.EpubCover(uid=COVER_ID, file_name=name)
        cover.media_type = mimetype
        cover.content = _read(content)
        self.book.add_item(cover)
        self.book.add_metadata(None, "meta", "", {"name": "cover", "content": COVER_ID})

    def stylesheet(self, content):
        self._check_open()

        self.book.add_item(epub.EpubItem(
            uid="stylesheet",
            file_name=STYLESHEET_NAME,
            media_type="text/css",
            content=_read(content),
        ))

    # ── Output ─────────────────────────────────────────────

    def generate(self, output):
        """
        Write the package to ``output`` (a path or a writable binary file).
        """
        self._check_open()
        self._generated = True

        self.book.toc = [entry.to_toc() for entry in nest_toc(self._toc)]
        self.book.spine = list(self._spine)
        self.book.add_item(epub.EpubNcx())
        self.book.add_item(epub.EpubNav())

        try:
            writer = epub.EpubWriter(output, self.book, {"epub3_pages": False})
            writer.process()
            writer.write()
        except Exception as e:
            raise ArchiveError(f"Unable to write the EPUB: {e}") from e
