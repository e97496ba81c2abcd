#!/usr/bin/env python3
"""
Build script for bookepub: markdown book → EPUB.

Usage:
    python build.py trench                     Build the EPUB for a book
    python build.py build trench -v            Same, with step-by-step output
    python build.py trench --output-dir dist   Write to dist/ instead of output/
    mdbook build                               With [output.epub] command = "python scripts/build.py mdbook"

Requires: PyYAML, markdown-it-py, mdit-py-plugins, Jinja2, EbookLib
"""

import os
import sys
import json
import argparse
import traceback

# Ensure bookepub is importable from the scripts/ directory
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from bookepub.config import BookConfig, ConfigError
from bookepub.errors import GenerationError
from bookepub.resolve import BookError, book_from_render_context, find_book_dir, load_book
from bookepub.builders import BUILDERS, DEFAULT_FORMATS


# ── Resolve book ───────────────────────────────────────────────────────


def resolve_book(identifier):
    """Find book directory, load config and chapters. Exits on failure."""
    project_root = os.getcwd()
    book_dir = find_book_dir(identifier, project_root)

    if not book_dir:
        print(f"Error: Could not find book '{identifier}'")
        print(f"  Searched in: {os.path.join(project_root, 'manuscript')}")
        print("  Tip: Run from the project root, or pass a direct path.")
        sys.exit(1)

    try:
        config = BookConfig.load(book_dir)
        book = load_book(config)
    except (ConfigError, BookError) as e:
        print(f"Error: {e}")
        sys.exit(1)

    return config, book


def run_builders(config, book, output_dir, verbose):
    """Build every default format. Returns True if all succeeded."""
    results = {}

    for fmt in DEFAULT_FORMATS:
        try:
            builder = BUILDERS[fmt](
                config=config,
                book=book,
                output_dir=output_dir,
                verbose=verbose,
            )
        except (ConfigError, GenerationError) as e:
            print(f"  ✗ {fmt}: {e}")
            results[fmt] = False
            continue
        results[fmt] = builder.build()

    print(f"\n{'─' * 60}")
    failed = [fmt for fmt, ok in results.items() if not ok]
    if failed:
        print(f"  Done with errors: {', '.join(failed)} failed")
        return False

    print(f"  Done. {len(results)} format(s) built successfully.")
    return True


# ── Build command ──────────────────────────────────────────────────────


def cmd_build(args):
    """Build the EPUB for a book directory."""
    config, book = resolve_book(args.book)

    config.summary()

    project_root = os.getcwd()
    output_dir = args.output_dir or os.path.join(project_root, "output")
    print(f"  Output:  {output_dir}")

    if not run_builders(config, book, output_dir, args.verbose):
        sys.exit(1)


# ── mdbook renderer command ────────────────────────────────────────────


def cmd_mdbook(args):
    """Render the book mdbook pipes to us on stdin."""
    try:
        ctx = json.load(sys.stdin)
    except json.JSONDecodeError as e:
        print(f"Error: Unable to parse the render context from stdin: {e}")
        sys.exit(1)

    try:
        config = BookConfig.from_render_context(ctx)
        book = book_from_render_context(ctx)
    except (ConfigError, BookError) as e:
        print(f"Error: {e}")
        sys.exit(1)

    output_dir = ctx.get("destination") or os.path.join(config.book_dir, "book", "epub")

    if not run_builders(config, book, output_dir, args.verbose):
        sys.exit(1)


# ── Argument Parser ────────────────────────────────────────────────────


def build_parser():
    parser = argparse.ArgumentParser(
        description="Markdown book to EPUB renderer",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
examples:
  %(prog)s example                    Build output/<prefix>.epub
  %(prog)s example -v                 Show every chapter and asset
  %(prog)s example --output-dir dist  Build into dist/
  %(prog)s mdbook < context.json      Act as an mdbook renderer
        """,
    )

    sub = parser.add_subparsers(dest="command")

    # ── build (default when no subcommand) ─────────────────
    build_p = sub.add_parser("build", help="Build the EPUB (default)")
    build_p.add_argument("book", help="Book number, keyword, or path")
    build_p.add_argument("--output-dir", help="Override output directory")
    build_p.add_argument("--verbose", "-v", action="store_true")

    # ── mdbook ─────────────────────────────────────────────
    mdbook_p = sub.add_parser("mdbook", help="Read an mdbook render context from stdin")
    mdbook_p.add_argument("--verbose", "-v", action="store_true")

    return parser


# ── Main ───────────────────────────────────────────────────────────────


def main(argv=None):
    parser = build_parser()
    argv = sys.argv[1:] if argv is None else argv

    # Allow bare "build.py trench" without the "build" subcommand
    known_commands = {"build", "mdbook"}
    if argv and argv[0] not in known_commands and not argv[0].startswith("-"):
        argv = ["build"] + argv

    args = parser.parse_args(argv)

    dispatch = {
        "build": cmd_build,
        "mdbook": cmd_mdbook,
    }

    handler = dispatch.get(args.command)
    if handler:
        handler(args)
    else:
        parser.print_help()


if __name__ == "__main__":
    try:
        main()
    except KeyboardInterrupt:
        print("\nCancelled.")
        sys.exit(1)
    except Exception as e:
        log_path = "build_error.log"
        with open(log_path, "w") as f:
            traceback.print_exc(file=f)
        print(f"\nUnexpected error: {e}")
        print(f"Full traceback written to {log_path}")
        sys.exit(1)
