from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from typing import TypeVar

T = TypeVar("T")

MAX_EDIT_DISTANCE = 2
EXACT_SCORE = 1.0
MIN_SCORE = 0.01
MAX_SUBSEQUENCE_SCORE = 0.99
MAX_EDIT_DISTANCE_SCORE = 0.59
WORD_BOUNDARY_CHARS = frozenset(" -_.,/()")


@dataclass(frozen=True)
class MatchResult:
    """Score in ``[0.01, 1.0]`` plus the text indices that matched.

    ``1.0`` is reserved for contiguous substring hits. Edit-distance matches
    report the whole matched window, so their index count can differ from the
    query length.
    """

    score: float
    matched_indices: tuple[int, ...]

    def __repr__(self) -> str:
        return f"MatchResult(score={self.score:.3f}, matched_indices={list(self.matched_indices)})"


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def fold_case(text: str) -> str:
    """Case-fold ``text`` without changing its length.

    Returned match indices point into the caller's original string, so a
    folding that expands characters (``"ß"`` -> ``"ss"``) is not usable.
    """
    folded = text.casefold()
    if len(folded) == len(text):
        return folded
    lowered = text.lower()
    if len(lowered) == len(text):
        return lowered
    return text


def is_word_boundary(text: str, index: int) -> bool:
    if index <= 0:
        return True
    prev = text[index - 1]
    return prev in WORD_BOUNDARY_CHARS or prev.isspace()


def match(query: str, text: str, case_sensitive: bool = False) -> MatchResult | None:
    """Match ``query`` against ``text`` with a three-phase cascade.

    Exact substring first, then ordered subsequence, then a bounded
    edit-distance window search. Each phase only runs when the previous one
    found nothing. Returns ``None`` for empty inputs or when no phase matches.
    """
    if not query or not text:
        return None

    q = query if case_sensitive else fold_case(query)
    t = text if case_sensitive else fold_case(text)

    if len(q) <= len(t):
        exact_idx = t.find(q)
        if exact_idx >= 0:
            return MatchResult(EXACT_SCORE, tuple(range(exact_idx, exact_idx + len(q))))

        indices = subsequence_indices(q, t)
        if indices is not None:
            return MatchResult(subsequence_score(q, t, indices), tuple(indices))

    return _edit_distance_match(q, t)


def match_fields(
    query: str,
    fields: Iterable[str],
    case_sensitive: bool = False,
) -> MatchResult | None:
    best: MatchResult | None = None
    for field in fields:
        result = match(query, field, case_sensitive=case_sensitive)
        if result is None:
            continue
        if best is None or result.score > best.score:
            best = result
            if best.score >= EXACT_SCORE:
                break
    return best


def subsequence_indices(q: str, t: str) -> list[int] | None:
    """Return tightened positions of every ``q`` character in ``t``, in order.

    A greedy scan takes the earliest occurrence of each character. A backward
    pass then pulls each position right, short of the next chosen position,
    so matched characters cluster into runs.
    """
    indices: list[int] = []
    pos = 0
    for needle in q:
        idx = t.find(needle, pos)
        if idx < 0:
            return None
        indices.append(idx)
        pos = idx + 1

    for i in range(len(indices) - 2, -1, -1):
        tighter = t.rfind(q[i], indices[i] + 1, indices[i + 1])
        if tighter >= 0:
            indices[i] = tighter
    return indices


def subsequence_score(q: str, t: str, indices: Sequence[int]) -> float:
    q_len = len(q)
    t_len = len(t)
    if q_len == 0 or t_len == 0:
        return 0.0

    # Characters sitting in a run of two or more; the run start is counted once.
    consecutive = 0
    for i in range(1, q_len):
        if indices[i] == indices[i - 1] + 1:
            consecutive += 1
            if i == 1 or indices[i - 1] != indices[i - 2] + 1:
                consecutive += 1
    consecutive_ratio = 1.0 if q_len <= 1 else consecutive / q_len

    first = indices[0]
    density = q_len / (indices[-1] - first + 1)
    position = 1.0 - (first / t_len)
    boundary = 1.0 if is_word_boundary(t, first) else 0.0

    raw = consecutive_ratio * 0.50 + density * 0.25 + position * 0.15 + boundary * 0.10
    return _clamp(raw, MIN_SCORE, MAX_SUBSEQUENCE_SCORE)


def bounded_levenshtein(a: str, b: str, limit: int) -> int:
    """Levenshtein distance, or ``limit + 1`` once it is known to exceed ``limit``."""
    if abs(len(a) - len(b)) > limit:
        return limit + 1

    row = list(range(len(b) + 1))
    for i in range(1, len(a) + 1):
        prev = row[0]
        row[0] = i
        row_min = i
        for j in range(1, len(b) + 1):
            cost = 0 if a[i - 1] == b[j - 1] else 1
            current = row[j]
            row[j] = min(current + 1, row[j - 1] + 1, prev + cost)
            prev = current
            if row[j] < row_min:
                row_min = row[j]
        if row_min > limit:
            return limit + 1
    return row[len(b)]


def _edit_distance_match(q: str, t: str) -> MatchResult | None:
    q_len = len(q)
    t_len = len(t)

    min_window = max(1, q_len - MAX_EDIT_DISTANCE, q_len // 2 + 1)
    if min_window > t_len:
        return None
    max_window = min(q_len + MAX_EDIT_DISTANCE, t_len)

    best_distance = MAX_EDIT_DISTANCE + 1
    best_start = 0
    best_len = q_len
    for window_len in range(min_window, max_window + 1):
        for start in range(0, t_len - window_len + 1):
            distance = bounded_levenshtein(q, t[start : start + window_len], MAX_EDIT_DISTANCE)
            if distance < best_distance:
                best_distance = distance
                best_start = start
                best_len = window_len
                if distance == 0:
                    break
        if best_distance == 0:
            break

    if best_distance > MAX_EDIT_DISTANCE:
        return None
    # Two edits against a three-character query is noise, not a match.
    if best_distance * 3 >= q_len * 2:
        return None

    penalty = best_distance / _clamp(q_len, 1, 100)
    position = 1.0 - (best_start / t_len)
    boundary = 0.1 if is_word_boundary(t, best_start) else 0.0
    score = _clamp((0.6 - penalty * 0.3) + boundary + position * 0.05, MIN_SCORE, MAX_EDIT_DISTANCE_SCORE)
    return MatchResult(score, tuple(range(best_start, best_start + best_len)))


def fuzzy_rank(
    query: str,
    candidates: Sequence[T],
    fields: Callable[[T], Iterable[str]],
    threshold: float = 0.0,
    case_sensitive: bool = False,
) -> list[tuple[int, T, MatchResult]]:
    """Score every candidate and return ``(index, candidate, result)`` best first.

    Candidates below ``threshold`` are dropped. Equal scores keep candidate
    order.
    """
    scored: list[tuple[int, T, MatchResult]] = []
    for idx, candidate in enumerate(candidates):
        result = match_fields(query, fields(candidate), case_sensitive=case_sensitive)
        if result is None or result.score < threshold:
            continue
        scored.append((idx, candidate, result))
    scored.sort(key=lambda entry: -entry[2].score)
    return scored


def contains_query(query: str, fields: Iterable[str], case_sensitive: bool = False) -> bool:
    needle = query if case_sensitive else fold_case(query)
    for field in fields:
        haystack = field if case_sensitive else fold_case(field)
        if needle in haystack:
            return True
    return False
