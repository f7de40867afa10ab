"""
Date extraction.

Parses the transaction date out of a message. Only dates between one year
before and one week after the reference time are accepted. When no explicit
date is present, recency words or a bare HH:MM time yield low-confidence
guesses anchored on the reference time.
"""

import re
from datetime import datetime, timedelta
from typing import List, Optional

from ..config.analyzer_config import ANALYZER_CONFIG
from ..models import ExtractionResult
from ..patterns.sms_patterns import (
    DATE_KEYWORDS,
    DATE_PATTERNS,
    MONTH_NAMES,
    RECENCY_KEYWORDS,
    TIME_PATTERN,
)
from .pattern_matching import clamp_confidence, context_window, find_keyword
from .preprocess import is_blank

_CFG = ANALYZER_CONFIG["date"]

_COMPILED_DATE_PATTERNS = [
    (entry, re.compile(entry["regex"], re.IGNORECASE)) for entry in DATE_PATTERNS
]
_TIME_RE = re.compile(TIME_PATTERN)

DATE_FORMATS = {
    "short": "%d/%m/%Y",
    "long": "%d %B %Y",
    "iso": "%Y-%m-%d",
}


def _expand_year(year_text: str) -> int:
    year = int(year_text)
    if len(year_text) == 2:
        return 2000 + year if year < _CFG["two_digit_year_pivot"] else 1900 + year
    return year


def _build_date(entry: dict, groups) -> Optional[datetime]:
    order = entry["order"]
    try:
        if order == "dmy":
            day, month, year = int(groups[0]), int(groups[1]), _expand_year(groups[2])
        elif order == "ymd":
            year, month, day = int(groups[0]), int(groups[1]), int(groups[2])
        elif order == "d_mon_y":
            day, month, year = int(groups[0]), MONTH_NAMES[groups[1].lower()], _expand_year(groups[2])
        elif order == "mon_d_y":
            month, day, year = MONTH_NAMES[groups[0].lower()], int(groups[1]), _expand_year(groups[2])
        else:
            return None
        return datetime(year, month, day)
    except (KeyError, ValueError):
        # impossible calendar dates such as 31/02
        return None


def _window_bounds(now: datetime):
    try:
        oldest = now.replace(year=now.year - 1)
    except ValueError:
        # 29 Feb
        oldest = now.replace(year=now.year - 1, day=28)
    oldest = oldest.replace(hour=0, minute=0, second=0, microsecond=0)
    return oldest, now + timedelta(days=_CFG["max_future_days"])


def validate_date(value, now: Optional[datetime] = None) -> bool:
    """True if ``value`` falls inside [now - 1 year, now + 7 days]."""
    if not isinstance(value, datetime):
        return False
    oldest, newest = _window_bounds(now or datetime.now())
    return oldest <= value <= newest


def format_date(value: datetime, style: str = "short") -> str:
    """
    Format a date for display.

    Args:
        value: Date to format
        style: One of 'short' (15/01/2024), 'long' (15 January 2024) or 'iso'

    Returns:
        Formatted date string
    """
    if style not in DATE_FORMATS:
        raise ValueError(f"Unknown date style {style!r}; expected one of {sorted(DATE_FORMATS)}")
    return value.strftime(DATE_FORMATS[style])


def _score(entry: dict, year_text: str, window: str, parsed: datetime, now: datetime) -> float:
    confidence = entry["confidence"]

    if find_keyword(window, DATE_KEYWORDS):
        confidence += 0.1

    days = abs((now - parsed).total_seconds()) / 86400
    if days <= 7:
        confidence += 0.1
    elif days <= 30:
        confidence += 0.05
    elif days > _CFG["max_age_days"]:
        confidence -= 0.2

    if entry["named_month"]:
        confidence += 0.05
    if len(year_text) == 4:
        confidence += 0.05

    return clamp_confidence(confidence)


def _explicit_candidates(text: str, now: datetime) -> List[ExtractionResult]:
    oldest, newest = _window_bounds(now)
    candidates = []
    for entry, regex in _COMPILED_DATE_PATTERNS:
        for match in regex.finditer(text):
            groups = match.groups()
            parsed = _build_date(entry, groups)
            if parsed is None or not oldest <= parsed <= newest:
                continue
            year_text = groups[0] if entry["order"] == "ymd" else groups[2]
            window = context_window(text, match.start(), match.end(), _CFG["keyword_window"])
            candidates.append(ExtractionResult(
                value=parsed,
                confidence=_score(entry, year_text, window, parsed, now),
                matched_span=match.group(0),
                method=entry["name"],
            ))
    return candidates


def extract_date(text, now: Optional[datetime] = None) -> ExtractionResult:
    """
    Extract the transaction date from message text.

    Args:
        text: Raw message text
        now: Reference time; defaults to the current local time

    Returns:
        ExtractionResult[datetime]
    """
    if is_blank(text):
        return ExtractionResult.empty("invalid_input")
    now = now or datetime.now()

    best = None
    for candidate in _explicit_candidates(text, now):
        if best is None or candidate.confidence > best.confidence:
            best = candidate
    if best is not None:
        return best

    keyword = find_keyword(text, RECENCY_KEYWORDS)
    if keyword:
        return ExtractionResult(
            value=now,
            confidence=_CFG["recency_confidence"],
            matched_span=keyword,
            method="fallback_current_date",
        )

    time_match = _TIME_RE.search(text)
    if time_match:
        hour, minute = int(time_match.group(1)), int(time_match.group(2))
        second = int(time_match.group(3)) if time_match.group(3) else 0
        return ExtractionResult(
            value=now.replace(hour=hour, minute=minute, second=second, microsecond=0),
            confidence=_CFG["time_only_confidence"],
            matched_span=time_match.group(0),
            method="fallback_time_today",
        )

    return ExtractionResult.empty("no_match")


def extract_multiple_dates(text, now: Optional[datetime] = None) -> List[ExtractionResult]:
    """
    Return every explicit date candidate scoring above 0.3, one per calendar
    day (highest confidence kept), sorted by confidence descending.
    """
    if is_blank(text):
        return []
    by_day = {}
    for candidate in _explicit_candidates(text, now or datetime.now()):
        if candidate.confidence <= 0.3:
            continue
        day = candidate.value.date()
        if day not in by_day or candidate.confidence > by_day[day].confidence:
            by_day[day] = candidate
    return sorted(by_day.values(), key=lambda r: r.confidence, reverse=True)
