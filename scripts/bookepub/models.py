"""
Shared data types: the chapter tree, rendered chapters, and assets.
"""

from dataclasses import dataclass, field


@dataclass
class Chapter:
    name: str
    content: str = ""
    number: list[int] | None = None    # e.g. [2, 1] for section 2.1
    path: str | None = None            # relative to the book's src dir; None for drafts
    sub_items: list = field(default_factory=list)

    @property
    def level(self):
        """Zero-based nesting depth, taken from the section number."""
        return len(self.number) - 1 if self.number else 0

    @property
    def section_label(self):
        """Dotted section number ("2.1"), or None if unnumbered."""
        if not self.number:
            return None
        return ".".join(str(n) for n in self.number)

    def __str__(self):
        if self.section_label:
            return f"{self.section_label} {self.name}"
        return self.name


@dataclass
class Separator:
    pass


@dataclass
class PartTitle:
    title: str


@dataclass
class Book:
    title: str | None = None
    description: str | None = None
    authors: list[str] = field(default_factory=list)
    sections: list = field(default_factory=list)

    def iter_chapters(self):
        """Yield every chapter depth-first, parents before their children."""
        yield from _walk(self.sections)


def _walk(items):
    for item in items:
        if isinstance(item, Chapter):
            yield item
            yield from _walk(item.sub_items)


@dataclass
class RenderedChapter:
    path: str      # destination inside the package, e.g. "ch1/intro.html"
    title: str     # display title for the table of contents
    level: int
    body: str      # complete XHTML document


@dataclass
class Asset:
    filename: str            # entry name inside the package
    location_on_disk: str
    mimetype: str

    def open(self):
        return open(self.location_on_disk, "rb")
