"""
Raw merchant extraction.

Pulls the counterparty name out of a message using syntactic templates
("at X", "paid to X", "UPI/X/", bare domains, all-caps codes). The result is
the cleaned, title-cased text as it appeared; normalization to a canonical
merchant happens in the merchant matcher.
"""

import re
from typing import List

from ..config.analyzer_config import ANALYZER_CONFIG
from ..models import ExtractionResult
from ..patterns.sms_patterns import (
    FALLBACK_MERCHANT_CONTEXT,
    FALLBACK_MERCHANT_PATTERN,
    MERCHANT_BASE_CONFIDENCE,
    MERCHANT_CONTEXT_PATTERN,
    MERCHANT_DATE_SHAPE,
    MERCHANT_EXCLUDE_WORDS,
    MERCHANT_GENERIC_WORDS,
    MERCHANT_TEMPLATES,
    MERCHANT_TIME_SHAPE,
)
from .pattern_matching import clamp_confidence, context_window
from .preprocess import clean_merchant_name, is_blank

_CFG = ANALYZER_CONFIG["merchant"]

_COMPILED_TEMPLATES = [
    (
        entry["name"],
        re.compile(entry["regex"], re.IGNORECASE if entry["ignore_case"] else 0),
        entry["bonus"],
    )
    for entry in MERCHANT_TEMPLATES
]
_CONTEXT_RE = re.compile(MERCHANT_CONTEXT_PATTERN, re.IGNORECASE)
_FALLBACK_RE = re.compile(FALLBACK_MERCHANT_PATTERN)
_FALLBACK_CONTEXT_RE = re.compile(FALLBACK_MERCHANT_CONTEXT, re.IGNORECASE)
_DATE_SHAPE_RE = re.compile(MERCHANT_DATE_SHAPE)
_TIME_SHAPE_RE = re.compile(MERCHANT_TIME_SHAPE)
_WORD_SPLIT_RE = re.compile(r"[^a-z0-9]+")
_LETTER_RE = re.compile(r"[A-Za-z]")


def validate_merchant(merchant) -> bool:
    """True if a cleaned candidate looks like a merchant name."""
    if not isinstance(merchant, str):
        return False
    if not _CFG["min_length"] <= len(merchant) <= _CFG["max_length"]:
        return False
    if not _LETTER_RE.search(merchant):
        return False
    if merchant.isdigit():
        return False
    if _DATE_SHAPE_RE.fullmatch(merchant) or _TIME_SHAPE_RE.fullmatch(merchant):
        return False
    words = {w for w in _WORD_SPLIT_RE.split(merchant.lower()) if w}
    return not words & MERCHANT_EXCLUDE_WORDS


def _score(merchant: str, raw_capture: str, window: str, template_bonus: float) -> float:
    confidence = MERCHANT_BASE_CONFIDENCE + template_bonus

    if 3 <= len(merchant) <= 20:
        confidence += 0.1
    if merchant[:1].isupper():
        confidence += 0.05
    if "." in raw_capture.strip(". "):
        confidence += 0.1
    if _CONTEXT_RE.search(window):
        confidence += 0.1

    lowered = merchant.lower()
    if any(word in lowered for word in MERCHANT_GENERIC_WORDS):
        confidence -= 0.1

    return clamp_confidence(confidence)


def _template_candidates(text: str) -> List[ExtractionResult]:
    candidates = []
    for name, regex, bonus in _COMPILED_TEMPLATES:
        for match in regex.finditer(text):
            raw = match.group(1)
            merchant = clean_merchant_name(raw)
            if not validate_merchant(merchant):
                continue
            window = context_window(text, match.start(), match.end(), _CFG["context_window"])
            candidates.append(ExtractionResult(
                value=merchant,
                confidence=_score(merchant, raw, window, bonus),
                matched_span=match.group(0).strip(),
                method=f"template_{name}",
            ))
    return candidates


def _fallback(text: str) -> ExtractionResult:
    for match in _FALLBACK_RE.finditer(text):
        merchant = clean_merchant_name(match.group(1))
        if not validate_merchant(merchant):
            continue
        window = context_window(text, match.start(), match.end(), _CFG["context_window"])
        if _FALLBACK_CONTEXT_RE.search(window):
            return ExtractionResult(
                value=merchant,
                confidence=_CFG["fallback_confidence"],
                matched_span=match.group(0),
                method="fallback_capitalized",
            )
    return ExtractionResult.empty("no_match")


def extract_merchant(text) -> ExtractionResult:
    """
    Extract the raw merchant name from message text.

    Args:
        text: Raw message text

    Returns:
        ExtractionResult[str] holding the cleaned, title-cased merchant text
    """
    if is_blank(text):
        return ExtractionResult.empty("invalid_input")

    best = None
    for candidate in _template_candidates(text):
        if best is None or candidate.confidence > best.confidence:
            best = candidate
    if best is not None:
        return best
    return _fallback(text)


def extract_multiple_merchants(text) -> List[ExtractionResult]:
    """Distinct merchant candidates scoring above 0.2, sorted by confidence descending."""
    if is_blank(text):
        return []
    by_value = {}
    for candidate in _template_candidates(text):
        if candidate.confidence <= 0.2:
            continue
        current = by_value.get(candidate.value)
        if current is None or candidate.confidence > current.confidence:
            by_value[candidate.value] = candidate
    return sorted(by_value.values(), key=lambda r: r.confidence, reverse=True)
