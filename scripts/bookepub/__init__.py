"""
bookepub — markdown book to EPUB renderer.

Public API:
    from bookepub.config import BookConfig
    from bookepub.resolve import find_book_dir, load_book, book_from_render_context
    from bookepub.builders import BUILDERS, DEFAULT_FORMATS
    from bookepub.render import ChapterRenderer
    from bookepub.writer import EpubWriter
"""

__version__ = "0.4.0"
