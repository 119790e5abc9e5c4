"""Match highlighting for rendered search results.

Turns a result string plus the active search terms into contiguous spans
flagged as matched or plain. Renderers style the matched spans; the CLI uses
ANSI bold via ``smartsearch.ansi``.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from .fuzzy import fold_case, match


@dataclass(frozen=True)
class HighlightSpan:
    text: str
    matched: bool


def split_search_terms(query: str) -> list[str]:
    """Split a query into the whitespace-separated terms renderers highlight."""
    return [term for term in query.split() if term]


def matched_mask(
    text: str,
    terms: Iterable[str],
    case_sensitive: bool = False,
    fuzzy: bool = False,
) -> list[bool]:
    """Return one flag per character of ``text`` marking highlighted positions.

    Exact mode marks every occurrence of every term, overlapping ones
    included. Fuzzy mode marks the indices reported by ``match`` for each
    term.
    """
    mask = [False] * len(text)
    if not text:
        return mask

    haystack = text if case_sensitive else fold_case(text)
    for term in terms:
        if not term:
            continue
        if fuzzy:
            result = match(term, text, case_sensitive=case_sensitive)
            if result is None:
                continue
            for idx in result.matched_indices:
                if idx < len(text):
                    mask[idx] = True
            continue

        needle = term if case_sensitive else fold_case(term)
        start = 0
        while True:
            idx = haystack.find(needle, start)
            if idx < 0:
                break
            for pos in range(idx, min(idx + len(needle), len(text))):
                mask[pos] = True
            start = idx + 1
    return mask


def highlight_spans(
    text: str,
    terms: Iterable[str],
    case_sensitive: bool = False,
    fuzzy: bool = False,
) -> list[HighlightSpan]:
    mask = matched_mask(text, terms, case_sensitive=case_sensitive, fuzzy=fuzzy)
    spans: list[HighlightSpan] = []
    i = 0
    n = len(text)
    while i < n:
        state = mask[i]
        start = i
        while i < n and mask[i] == state:
            i += 1
        spans.append(HighlightSpan(text[start:i], state))
    return spans
