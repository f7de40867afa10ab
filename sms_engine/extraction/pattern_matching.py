"""
Generic Pattern Matching for SMS extraction.

Provides reusable keyword/regex helpers and the strategy cascade shared by
the matchers and the categorizer.
"""

import re
from functools import lru_cache
from typing import Callable, Iterable, Optional, Pattern, Sequence, TypeVar

R = TypeVar("R")
S = TypeVar("S")


def clamp_confidence(value: float) -> float:
    """Clamp a confidence into [0, 1], rounded to 4 places for stable comparisons."""
    return round(max(0.0, min(1.0, value)), 4)


@lru_cache(maxsize=1024)
def keyword_regex(keyword: str) -> Pattern:
    """Compile a case-insensitive whole-word regex for a keyword or phrase."""
    return re.compile(r"(?<!\w)" + re.escape(keyword.strip()) + r"(?!\w)", re.IGNORECASE)


def has_keyword(text: str, keyword: str) -> bool:
    return keyword_regex(keyword).search(text) is not None


def find_keyword(text: str, keywords: Iterable[str]) -> Optional[str]:
    """
    Return the first keyword that appears in text as a whole word.

    Example:
        >>> find_keyword("Rs 500 debited from a/c", ["credited", "debited"])
        'debited'
    """
    for keyword in keywords:
        if has_keyword(text, keyword):
            return keyword
    return None


def count_keywords(text: str, keywords: Iterable[str]) -> int:
    return sum(1 for keyword in keywords if has_keyword(text, keyword))


def context_window(text: str, start: int, end: int, size: int) -> str:
    """Return ``text[start:end]`` widened by ``size`` characters on each side."""
    return text[max(0, start - size):min(len(text), end + size)]


def cascade(
    strategies: Sequence[Callable[[S], R]],
    subject: S,
    threshold: float,
    empty: R,
    confidence: Callable[[R], float] = lambda r: r.confidence,
) -> R:
    """
    Run ordered strategies and pick a result.

    Each strategy is evaluated once, in order. The first result whose
    confidence exceeds ``threshold`` is returned immediately; otherwise the
    best-scoring result (earliest on ties) is returned, or ``empty`` if no
    strategy produced anything with a positive confidence.

    Args:
        strategies: Callables taking ``subject`` and returning a result or None
        subject: Input handed to every strategy
        threshold: Acceptance cut-off
        empty: Result returned when nothing matched
        confidence: Accessor for a result's confidence

    Returns:
        The selected result
    """
    best = None
    best_score = 0.0
    for strategy in strategies:
        result = strategy(subject)
        if result is None:
            continue
        score = confidence(result)
        if score <= 0:
            continue
        if score > threshold:
            return result
        if best is None or score > best_score:
            best = result
            best_score = score
    return best if best is not None else empty
