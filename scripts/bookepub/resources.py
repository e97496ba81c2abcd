"""
Asset discovery: local images referenced from chapter markdown.

Only files inside the book's src directory are embedded. Remote and
absolute links are left for the reader to resolve.
"""

import mimetypes
import os
import re
from urllib.parse import unquote

from bookepub.errors import AssetError
from bookepub.models import Asset
from bookepub.render import new_markdown_parser

# "http:", "https:", "data:", "mailto:", ... (but not "C:" drive letters)
URL_SCHEME_RE = re.compile(r"^[a-zA-Z][a-zA-Z0-9+.-]+:")

OCTET_STREAM = "application/octet-stream"


def guess_mimetype(path):
    """MIME type from the file extension, or a generic binary type."""
    mimetype, _ = mimetypes.guess_type(path)
    return mimetype or OCTET_STREAM


def image_links(markdown_text, md=None):
    """Every image destination in the markdown, in document order."""
    md = md or new_markdown_parser()
    links = []
    for token in md.parse(markdown_text, {}):
        for child in token.children or []:
            if child.type == "image":
                links.append(child.attrGet("src"))
    return links


def _is_local(link):
    if not link or link.startswith(("/", "#")):
        return False
    return not URL_SCHEME_RE.match(link)


def find(book, src_dir):
    """
    Collect the assets every chapter links to.

    Returns a list of Asset, in the order they're first referenced. Raises
    AssetError for links that don't point at a file inside src_dir.
    """
    src_dir = os.path.realpath(src_dir)
    md = new_markdown_parser()
    assets = []
    seen = set()

    for chapter in book.iter_chapters():
        if chapter.path is None:
            continue

        chapter_dir = os.path.dirname(os.path.join(src_dir, chapter.path))

        for link in image_links(chapter.content, md):
            if not _is_local(link):
                continue

            full_path = os.path.realpath(os.path.join(chapter_dir, unquote(link)))
            if not os.path.isfile(full_path):
                raise AssetError(
                    f"Asset was not a file: {full_path} (referenced from {chapter.path})"
                )
            if os.path.commonpath([src_dir, full_path]) != src_dir:
                raise AssetError(
                    f"Asset {link} (referenced from {chapter.path}) is outside {src_dir}"
                )

            filename = os.path.relpath(full_path, src_dir).replace(os.sep, "/")
            if filename in seen:
                continue
            seen.add(filename)
            assets.append(Asset(filename, full_path, guess_mimetype(full_path)))

    return assets
