"""
Book resolution, chapter tree assembly, and artifact lookup.

Every script that needs to find a book directory, build its chapter tree,
or locate shared/per-book artifacts imports from here.
"""

import os
import re
import glob

import yaml

from bookepub.models import Book, Chapter, PartTitle, Separator

SECTIONS = ["front", "chapters", "back"]

SEPARATOR = "---"

HEADING_RE = re.compile(r"^#\s+(.+?)(?:\s+#+)?\s*$", re.MULTILINE)

# Bundled artifacts (default template and stylesheet)
PACKAGE_ARTIFACTS = os.path.join(os.path.dirname(os.path.abspath(__file__)), "artifacts")


class BookError(Exception):
    """Raised when the chapter tree can't be assembled."""
    pass


def natural_sort_key(s):
    """Sort strings with embedded numbers naturally (2.md before 10.md)."""
    return [
        int(text) if text.isdigit() else text.lower()
        for text in re.split(r"(\d+)", s)
    ]


def find_book_dir(identifier, project_root):
    """
    Resolve a book identifier to its directory.

    Accepts:
        - Direct path:  manuscript/1_the_trench_mage
        - Number:       1         (matches "1_..." prefix)
        - Keyword:      trench    (matches dir name or YAML title)

    Returns: absolute path to the book directory, or None.
    """
    manuscript_root = os.path.join(project_root, "manuscript")

    # Direct path (absolute or relative)
    for candidate in [identifier, os.path.join(project_root, identifier)]:
        if os.path.isdir(candidate) and os.path.exists(
            os.path.join(candidate, "book.yaml")
        ):
            return os.path.abspath(candidate)

    if not os.path.isdir(manuscript_root):
        return None

    identifier_lower = identifier.lower()

    for entry in sorted(os.listdir(manuscript_root)):
        book_path = os.path.join(manuscript_root, entry)
        if not os.path.isdir(book_path):
            continue

        # Match by number prefix: "1" matches "1_the_trench_mage"
        match = re.match(r"^(\d+)_", entry)
        if match and match.group(1) == identifier:
            return book_path

        # Match by keyword in directory name
        if identifier_lower in entry.lower():
            return book_path

        # Match by keyword in YAML title
        yaml_path = os.path.join(book_path, "book.yaml")
        if os.path.exists(yaml_path):
            try:
                with open(yaml_path, encoding="utf-8") as f:
                    cfg = yaml.safe_load(f)
            except (OSError, yaml.YAMLError):
                continue
            if isinstance(cfg, dict) and identifier_lower in str(cfg.get("title") or "").lower():
                return book_path

    return None


def resolve_artifact(book_dir, filename):
    """
    Resolve an artifact filename to its full path.

    Search order (first match wins):
        1. book artifacts/     (per-book overrides)
        2. bundled artifacts/  (defaults shipped with bookepub)

    Returns: absolute path or None.
    """
    if not filename:
        return None

    path = os.path.join(book_dir, "artifacts", filename)
    if os.path.exists(path):
        return os.path.abspath(path)

    path = os.path.join(PACKAGE_ARTIFACTS, filename)
    if os.path.exists(path):
        return path

    return None


# ── Chapter tree ───────────────────────────────────────────────────────


def _read_chapter(src_dir, path):
    full_path = os.path.join(src_dir, path)
    try:
        with open(full_path, encoding="utf-8") as f:
            return f.read()
    except OSError as e:
        raise BookError(f"Unable to read chapter {full_path}: {e}") from e


def _default_name(path, content):
    """First "# Heading" in the file, else a title made from the file stem."""
    match = HEADING_RE.search(content)
    if match:
        return match.group(1)
    stem = os.path.splitext(os.path.basename(path))[0]
    stem = re.sub(r"^\d+[_-]", "", stem)
    return stem.replace("_", " ").replace("-", " ").strip().title()


def _build_entries(src_dir, entries, numbered, parent_number):
    """Turn a book.yaml chapter list into tree nodes, numbering as we go."""
    items = []
    counter = 0

    for entry in entries or []:
        if entry == SEPARATOR:
            items.append(Separator())
            continue

        if isinstance(entry, str):
            entry = {"path": entry}
        if not isinstance(entry, dict):
            raise BookError(f"Invalid chapter entry: {entry!r}")

        if "part" in entry:
            items.append(PartTitle(str(entry["part"])))
            continue

        number = None
        if numbered:
            counter += 1
            number = parent_number + [counter]

        path = entry.get("path")
        content = _read_chapter(src_dir, path) if path else ""
        name = entry.get("name") or (_default_name(path, content) if path else None)
        if not name:
            raise BookError(f"Draft chapter needs a name: {entry!r}")

        items.append(Chapter(
            name=str(name),
            content=content,
            number=number,
            path=path.replace(os.sep, "/") if path else None,
            sub_items=_build_entries(src_dir, entry.get("sections"), numbered, number or []),
        ))

    return items


def get_section_files(src_dir, section):
    """Get sorted markdown files from a section subdirectory."""
    section_dir = os.path.join(src_dir, section)
    if not os.path.isdir(section_dir):
        return []
    files = glob.glob(os.path.join(section_dir, "*.md"))
    files.sort(key=natural_sort_key)
    return files


def discover_entries(src_dir):
    """
    Chapter tree from the directory layout: front → chapters → back.

    Only chapters/ is numbered. Falls back to numbered *.md in the src
    root if no section subdirectories exist.
    """
    items = []
    for section in SECTIONS:
        relative = [
            os.path.relpath(f, src_dir).replace(os.sep, "/")
            for f in get_section_files(src_dir, section)
        ]
        items.extend(_build_entries(src_dir, relative, section == "chapters", []))

    if not items:
        files = sorted(glob.glob(os.path.join(src_dir, "*.md")), key=natural_sort_key)
        relative = [os.path.basename(f) for f in files]
        items = _build_entries(src_dir, relative, True, [])

    return items


def load_book(config):
    """
    Assemble the Book: metadata from the config, chapters from book.yaml's
    front/chapters/back lists, or from the src directory layout.
    """
    src_dir = config.src_dir

    if any(config.get(section) for section in SECTIONS):
        sections = []
        for section in SECTIONS:
            sections.extend(_build_entries(
                src_dir, config.get(section), section == "chapters", []
            ))
    else:
        sections = discover_entries(src_dir)

    return Book(
        title=config.title,
        description=config.description,
        authors=list(config.authors),
        sections=sections,
    )


# ── mdbook renderer context ────────────────────────────────────────────


def _context_item(item):
    if item == "Separator":
        return Separator()
    if not isinstance(item, dict):
        raise BookError(f"Unknown book item: {item!r}")
    if "PartTitle" in item:
        return PartTitle(item["PartTitle"])
    if "Chapter" in item:
        ch = item["Chapter"]
        return Chapter(
            name=ch["name"],
            content=ch.get("content") or "",
            number=ch.get("number"),
            path=ch.get("path"),
            sub_items=[_context_item(sub) for sub in ch.get("sub_items") or []],
        )
    raise BookError(f"Unknown book item: {item!r}")


def book_from_render_context(ctx):
    """Build the Book from the JSON mdbook passes a renderer on stdin."""
    config = ctx.get("config") or {}
    meta = config.get("book") or {}
    sections = (ctx.get("book") or {}).get("sections") or []

    return Book(
        title=meta.get("title"),
        description=meta.get("description"),
        authors=list(meta.get("authors") or []),
        sections=[_context_item(item) for item in sections],
    )
