"""
Book configuration: load, validate, and provide defaults for book.yaml.
"""

import os

import yaml

from bookepub.resolve import resolve_artifact

# Defaults applied if missing
DEFAULTS = {
    "title": None,
    "description": None,
    "authors": [],
    "src": "src",
    "epub": {},
}

# Defaults within the epub section
EPUB_DEFAULTS = {
    "no_section_label": False,
    "curly_quotes": False,
    "cover_image": None,
    "additional_css": [],
    "use_default_css": True,
    "additional_resources": [],
    "index_template": None,
}

BOOL_OPTIONS = ["no_section_label", "curly_quotes", "use_default_css"]
PATH_OPTIONS = ["cover_image", "index_template"]
LIST_OPTIONS = ["additional_css", "additional_resources"]

DEFAULT_TEMPLATE = "index.html"
DEFAULT_CSS = "stylesheet.css"


class ConfigError(Exception):
    """Raised when book.yaml is missing or invalid."""
    pass


def _normalize_epub(section):
    """Validate the epub section, accepting mdbook's kebab-case keys."""
    if section is None:
        section = {}
    if not isinstance(section, dict):
        raise ConfigError(f"'epub' must be a mapping, got {type(section).__name__}")

    epub = {key.replace("-", "_"): value for key, value in section.items()}

    for key, default in EPUB_DEFAULTS.items():
        epub.setdefault(key, list(default) if isinstance(default, list) else default)

    for key in BOOL_OPTIONS:
        if not isinstance(epub[key], bool):
            raise ConfigError(f"epub.{key} must be true or false, got {epub[key]!r}")

    for key in PATH_OPTIONS:
        if epub[key] is not None and not isinstance(epub[key], str):
            raise ConfigError(f"epub.{key} must be a file path, got {epub[key]!r}")

    for key in LIST_OPTIONS:
        value = epub[key]
        if isinstance(value, str):
            value = [value]
        if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
            raise ConfigError(f"epub.{key} must be a list of file paths")
        epub[key] = value

    return epub


class BookConfig:
    """
    Loaded, validated book configuration.

    Usage:
        config = BookConfig.load(book_dir)
        config.title                   # "The Trench Mage" (or None)
        config.epub["curly_quotes"]    # False
        config.path(config.epub["cover_image"])
        config.get("series")           # None if not set
    """

    def __init__(self, data, book_dir):
        self._data = data
        self.book_dir = book_dir

    @classmethod
    def from_dict(cls, data, book_dir):
        """Validate a raw mapping and apply defaults."""
        if not isinstance(data, dict):
            raise ConfigError(f"book.yaml must be a YAML mapping, got {type(data).__name__}")

        data = dict(data)

        # A single "author" is shorthand for a one-element "authors"
        if "authors" not in data and data.get("author"):
            data["authors"] = [data["author"]]

        for key, default in DEFAULTS.items():
            if data.get(key) is None:
                data[key] = default if not isinstance(default, (list, dict)) else type(default)(default)

        if isinstance(data["authors"], str):
            data["authors"] = [data["authors"]]
        if not isinstance(data["authors"], list):
            raise ConfigError("'authors' must be a list of names")

        data["epub"] = _normalize_epub(data["epub"])

        return cls(data, book_dir)

    @classmethod
    def load(cls, book_dir):
        """Load and validate book.yaml from a book directory."""
        yaml_path = os.path.join(book_dir, "book.yaml")
        if not os.path.exists(yaml_path):
            raise ConfigError(f"No book.yaml found in {book_dir}")

        with open(yaml_path, encoding="utf-8") as f:
            try:
                data = yaml.safe_load(f)
            except yaml.YAMLError as e:
                raise ConfigError(f"Unable to parse {yaml_path}: {e}") from e

        return cls.from_dict(data, book_dir)

    @classmethod
    def from_render_context(cls, ctx):
        """Build the config mdbook hands to a renderer (book + output.epub)."""
        config = ctx.get("config") or {}
        book = config.get("book") or {}
        output = config.get("output") or {}

        data = {
            "title": book.get("title"),
            "description": book.get("description"),
            "authors": book.get("authors") or [],
            "src": book.get("src") or "src",
            "epub": output.get("epub") or {},
        }
        return cls.from_dict(data, ctx.get("root") or os.getcwd())

    # ── Attribute access ───────────────────────────────────

    def __getattr__(self, name):
        if name.startswith("_"):
            raise AttributeError(name)
        try:
            return self._data[name]
        except KeyError:
            raise AttributeError(f"BookConfig has no field '{name}'")

    def get(self, key, default=None):
        return self._data.get(key, default)

    def __getitem__(self, key):
        return self._data[key]

    def __contains__(self, key):
        return key in self._data

    # ── Convenience ────────────────────────────────────────

    @property
    def src_dir(self):
        return os.path.join(self.book_dir, self.src)

    @property
    def prefix(self):
        """Output file stem: explicit prefix, else the title, else "book"."""
        return self._data.get("prefix") or self.title or "book"

    def path(self, relative):
        """Resolve a configured path against the book root."""
        return os.path.join(self.book_dir, relative)

    def template(self):
        """The chapter template source (custom index_template or the default)."""
        custom = self.epub["index_template"]
        if custom:
            path = self.path(custom)
        else:
            path = resolve_artifact(self.book_dir, DEFAULT_TEMPLATE)
            if path is None:
                raise ConfigError(f"No chapter template found (looked for {DEFAULT_TEMPLATE})")

        try:
            with open(path, encoding="utf-8") as f:
                return f.read()
        except OSError as e:
            raise ConfigError(f"Unable to read the chapter template {path}: {e}") from e

    def default_css(self):
        """Bytes of the stylesheet every book starts from."""
        path = resolve_artifact(self.book_dir, DEFAULT_CSS)
        if path is None:
            raise ConfigError(f"No default stylesheet found (looked for {DEFAULT_CSS})")

        try:
            with open(path, "rb") as f:
                return f.read()
        except OSError as e:
            raise ConfigError(f"Unable to read the default stylesheet {path}: {e}") from e

    def summary(self):
        """Print a short config summary."""
        print(f"\n  Book:    {self.title or '(untitled)'}")
        if self.authors:
            print(f"  Authors: {', '.join(self.authors)}")
        print(f"  Source:  {self.src_dir}")
