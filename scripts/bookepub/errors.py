"""
Errors raised while generating an EPUB.

Every failure aborts the whole run; nothing is recovered locally. The
message names the operation and the chapter or file involved, and the
underlying exception (if any) is chained as ``__cause__``.
"""


class GenerationError(Exception):
    """Base class for anything that stops an EPUB from being generated."""
    pass


class StructuralError(GenerationError):
    """A chapter can't be rendered, e.g. it has no source path."""
    pass


class TemplateError(GenerationError):
    """The chapter template is invalid or rejected the render context."""
    pass


class AssetError(GenerationError):
    """A referenced file couldn't be found, canonicalized, or opened."""
    pass


class ArchiveError(GenerationError):
    """The EPUB writer rejected an entry or failed to write the package."""
    pass
