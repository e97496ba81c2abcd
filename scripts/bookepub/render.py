"""
Chapter rendering: markdown → XHTML document, one chapter at a time.

Each chapter is parsed with markdown-it, passed token by token through a
fresh QuoteConverter, rendered, and wrapped in the book's Jinja2 template
together with a stylesheet link that is relative to the chapter's own
directory.
"""

import posixpath

import jinja2
from markdown_it import MarkdownIt
from markupsafe import Markup
from mdit_py_plugins.footnote import footnote_plugin
from mdit_py_plugins.tasklists import tasklists_plugin

from bookepub.errors import StructuralError, TemplateError
from bookepub.models import RenderedChapter
from bookepub.quotes import QuoteConverter

STYLESHEET_NAME = "stylesheet.css"


def _close_checkboxes(state):
    """The task list plugin writes HTML ``<input ...>``; XHTML needs ``/>``."""
    for token in state.tokens:
        for child in token.children or []:
            content = child.content
            if (
                child.type == "html_inline"
                and content.startswith("<input")
                and not content.endswith("/>")
            ):
                child.content = content[:-1].rstrip() + " />"


def new_markdown_parser():
    """CommonMark with tables, footnotes, strikethrough and task lists."""
    md = (
        MarkdownIt("commonmark")
        .enable(["table", "strikethrough"])
        .use(footnote_plugin)
        .use(tasklists_plugin)
    )
    # Appended last, so it runs after the task list rule
    md.core.ruler.push("xhtml_checkboxes", _close_checkboxes)
    return md


def _normalize(chapter_path):
    return posixpath.normpath(chapter_path.replace("\\", "/"))


def destination_path(chapter_path):
    """``ch1/intro.md`` → ``ch1/intro.html``."""
    root, _ = posixpath.splitext(_normalize(chapter_path))
    return f"{root}.html"


def stylesheet_path(chapter_path):
    """Path from the chapter's directory back up to the shared stylesheet."""
    parent = posixpath.dirname(_normalize(chapter_path))
    ups = [".." for part in parent.split("/") if part and part != "."]
    return "/".join(ups + [STYLESHEET_NAME])


class ChapterRenderer:
    """
    Renders chapters with one compiled template.

    Usage:
        renderer = ChapterRenderer(config.template(), curly_quotes=True)
        rendered = renderer.render(chapter)
        rendered.path, rendered.title, rendered.level, rendered.body
    """

    def __init__(self, template, no_section_label=False, curly_quotes=False):
        self.no_section_label = no_section_label
        self.curly_quotes = curly_quotes
        self.md = new_markdown_parser()

        env = jinja2.Environment(
            autoescape=True,
            undefined=jinja2.StrictUndefined,
            keep_trailing_newline=True,
        )
        try:
            self.template = env.from_string(template)
        except jinja2.TemplateError as e:
            raise TemplateError(f"Couldn't parse the template: {e}") from e

    def render_body(self, chapter):
        """Markdown → XHTML fragment, with curly quotes if enabled."""
        env = {}
        tokens = self.md.parse(chapter.content, env)

        converter = QuoteConverter(self.curly_quotes)
        tokens = [converter.convert(token) for token in tokens]

        return self.md.renderer.render(tokens, self.md.options, env)

    def title_for(self, chapter):
        if self.no_section_label or not chapter.section_label:
            return chapter.name
        return f"{chapter.section_label} {chapter.name}"

    def render(self, chapter):
        """Render one chapter into a RenderedChapter. Doesn't touch sub-chapters."""
        if chapter.path is None:
            raise StructuralError(
                f"Chapter \"{chapter.name}\" has no content file, so it can't be rendered"
            )

        body = self.render_body(chapter)
        context = {
            "title": chapter.name,
            "body": Markup(body),
            "stylesheet": stylesheet_path(chapter.path),
        }

        try:
            document = self.template.render(context)
        except jinja2.TemplateError as e:
            raise TemplateError(
                f"Unable to render chapter \"{chapter.name}\" ({chapter.path}): {e}"
            ) from e

        return RenderedChapter(
            path=destination_path(chapter.path),
            title=self.title_for(chapter),
            level=chapter.level,
            body=document,
        )
