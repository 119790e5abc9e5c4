"""Command-line front door for smartsearch.

Loads lines from a file or stdin into a local search controller, runs one
query, and prints the matching lines with matched characters highlighted.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from .ansi import render_spans
from .config import load_search_configuration, save_search_defaults
from .controller import SearchStateController
from .search.highlight import highlight_spans


def _positive_int(value: str) -> int:
    """argparse type for positive integer values."""
    try:
        parsed = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid integer value: {value!r}") from exc
    if parsed <= 0:
        raise argparse.ArgumentTypeError("value must be >= 1")
    return parsed


def _nonnegative_int(value: str) -> int:
    try:
        parsed = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid integer value: {value!r}") from exc
    if parsed < 0:
        raise argparse.ArgumentTypeError("value must be >= 0")
    return parsed


def read_text(path: Path) -> str:
    """Read text using tolerant encoding fallback order."""
    for encoding in ("utf-8", "utf-8-sig", "latin-1"):
        try:
            return path.read_text(encoding=encoding)
        except UnicodeDecodeError:
            continue
    return path.read_bytes().decode("utf-8", errors="replace")


def _line_fields(line: str) -> list[str]:
    return [line]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="smartsearch",
        description="Search lines of a file (or stdin) with substring or fuzzy matching.",
    )
    parser.add_argument("query", help="Search text.")
    parser.add_argument("path", nargs="?", default=None, help="File to search. Defaults to stdin.")
    parser.add_argument("--fuzzy", action="store_true", default=None, help="Rank lines by fuzzy match score.")
    parser.add_argument("--threshold", type=float, default=None, help="Minimum fuzzy score in [0, 1].")
    parser.add_argument("--case-sensitive", action="store_true", default=None, help="Match case exactly.")
    parser.add_argument("--min-length", type=_nonnegative_int, default=None, help="Ignore shorter queries.")
    parser.add_argument("--limit", type=_positive_int, default=None, help="Print at most this many lines.")
    parser.add_argument("--no-color", action="store_true", help="Disable color output even on TTY.")
    parser.add_argument("--save-defaults", action="store_true", help="Remember these options as defaults.")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log debug output to stderr.")
    return parser


def main(argv: list[str] | None = None) -> None:
    """Parse CLI arguments, search, and print matching lines.

    Exits with status 1 when nothing matches. Options left unset fall back to
    persisted defaults, then to ``SearchConfiguration`` defaults.
    """
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    overrides: dict[str, object] = {}
    if args.fuzzy is not None:
        overrides["fuzzy_search_enabled"] = True
    if args.threshold is not None:
        overrides["fuzzy_threshold"] = args.threshold
    if args.case_sensitive is not None:
        overrides["case_sensitive"] = True
    if args.min_length is not None:
        overrides["min_search_length"] = args.min_length
    try:
        configuration = load_search_configuration(**overrides)
    except ValueError as exc:
        raise SystemExit(f"Invalid configuration: {exc}") from exc

    if args.save_defaults:
        save_search_defaults(configuration)

    if args.path is not None:
        path = Path(args.path)
        if not path.is_file():
            raise SystemExit(f"File not found: {path}")
        source = read_text(path)
    else:
        source = sys.stdin.read()

    controller: SearchStateController[str] = SearchStateController(_line_fields, configuration=configuration)
    controller.set_items(line for line in source.splitlines() if line.strip())
    controller.search_immediate(args.query)

    no_color = args.no_color or not sys.stdout.isatty()

    def build_row(line: str, _index: int, terms: list[str]) -> str:
        spans = highlight_spans(
            line,
            terms,
            case_sensitive=configuration.case_sensitive,
            fuzzy=configuration.fuzzy_search_enabled,
        )
        return render_spans(spans, no_color=no_color)

    rows = controller.build_items(build_row)
    controller.dispose()
    if args.limit is not None:
        rows = rows[: args.limit]
    for row in rows:
        sys.stdout.write(row + "\n")
    if not rows:
        raise SystemExit(1)


if __name__ == "__main__":
    main()
