"""
Base builder class for output formats.

Subclasses implement `build()` and set `format_name` / `extension`.
Shared logic (output naming, logging, config path resolution) lives here.
"""

import os
from abc import ABC, abstractmethod


class BaseBuilder(ABC):
    """
    Abstract base for format builders.

    Subclasses must define:
        format_name:  str   — human-readable name ("EPUB")
        extension:    str   — output file extension (".epub")
        build():      method — the actual build logic
    """

    format_name = None  # Override in subclass
    extension = None    # Override in subclass

    def __init__(self, config, book, output_dir, verbose=False, **kwargs):
        self.config = config
        self.book = book
        self.output_dir = output_dir
        self.verbose = verbose
        self.kwargs = kwargs

    # ── Output path ────────────────────────────────────────

    @property
    def output_file(self):
        return os.path.join(self.output_dir, f"{self.config.prefix}{self.extension}")

    # ── Logging ────────────────────────────────────────────

    def log(self, msg):
        if self.verbose:
            print(msg)

    def warn(self, msg):
        print(f"  Warning: {msg}")

    def header(self):
        print(f"\n{'─' * 60}")
        print(f"  Building {self.format_name}: {self.config.title or '(untitled)'}")
        print(f"{'─' * 60}")

    # ── Config paths ───────────────────────────────────────

    def resolve(self, relative):
        """Resolve a path from the config against the book root."""
        return self.config.path(relative)

    # ── Abstract interface ─────────────────────────────────

    @abstractmethod
    def build(self):
        """
        Execute the build. Returns True on success, False on failure.
        """
        ...
