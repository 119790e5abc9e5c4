"""ANSI styling for highlighted search results.

Wraps matched spans in SGR sequences for terminal output and strips them
again for width measurement and tests.
"""

from __future__ import annotations

import re
from collections.abc import Iterable

from .search.highlight import HighlightSpan

ANSI_ESCAPE_RE = re.compile(r"\x1b\[[0-9;?]*[ -/]*[@-~]")
RESET = "\033[0m"
MATCH_STYLE = "\033[1;33m"


def strip_ansi(text: str) -> str:
    return ANSI_ESCAPE_RE.sub("", text)


def render_spans(spans: Iterable[HighlightSpan], no_color: bool = False, match_style: str = MATCH_STYLE) -> str:
    """Join spans into one line, styling matched spans unless ``no_color``."""
    out: list[str] = []
    for span in spans:
        if span.matched and not no_color:
            out.append(f"{match_style}{span.text}{RESET}")
        else:
            out.append(span.text)
    return "".join(out)
