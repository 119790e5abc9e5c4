"""Public package surface for smartsearch.

Exports the search state controller, its configuration, and the fuzzy match
engine. ``main`` is the CLI entrypoint, imported lazily.
"""

from __future__ import annotations

from .cache import CacheKey, ResultCache
from .config import SearchConfiguration, SearchTriggerMode
from .controller import SearchStateController
from .search.fuzzy import MatchResult, match, match_fields
from .state import ViewState, group_items


def main(*args, **kwargs):
    """Lazily import CLI entrypoint to keep package imports lightweight."""
    from .cli import main as _main

    return _main(*args, **kwargs)


__all__ = [
    "CacheKey",
    "MatchResult",
    "ResultCache",
    "SearchConfiguration",
    "SearchStateController",
    "SearchTriggerMode",
    "ViewState",
    "group_items",
    "main",
    "match",
    "match_fields",
]
