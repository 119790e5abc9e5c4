"""Search package exports.

Combines the fuzzy match engine and match highlighting in one import surface.
"""

from __future__ import annotations

from .fuzzy import (
    MAX_EDIT_DISTANCE,
    MatchResult,
    bounded_levenshtein,
    contains_query,
    fold_case,
    fuzzy_rank,
    match,
    match_fields,
)
from .highlight import HighlightSpan, highlight_spans, matched_mask, split_search_terms

__all__ = [
    "HighlightSpan",
    "MAX_EDIT_DISTANCE",
    "MatchResult",
    "bounded_levenshtein",
    "contains_query",
    "fold_case",
    "fuzzy_rank",
    "highlight_spans",
    "match",
    "match_fields",
    "matched_mask",
    "split_search_terms",
]
