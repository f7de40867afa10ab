"""
Transaction type extraction.

Every type in the pattern table is scored and the single best score wins;
table order decides ties. Keyword hits score higher than regex hits.
"""

import re
from typing import List

from ..models import ExtractionResult, TransactionType
from ..patterns.sms_patterns import (
    TRANSACTION_TYPE_PATTERNS,
    TYPE_BASE_CONFIDENCE,
    TYPE_CONTEXT_KEYWORDS,
    TYPE_CURRENCY_AMOUNT,
    TYPE_INFERENCE_CAP,
    TYPE_INFERENCE_RULES,
    TYPE_KEYWORD_BONUS,
    TYPE_REGEX_BONUS,
    TYPE_SPECIAL_BONUSES,
)
from .pattern_matching import clamp_confidence, count_keywords, find_keyword
from .preprocess import is_blank

_COMPILED_TYPE_PATTERNS = [
    {
        "type": TransactionType(entry["type"]),
        "keywords": entry["keywords"],
        "regexes": [re.compile(p, re.IGNORECASE) for p in entry["regex_patterns"]],
    }
    for entry in TRANSACTION_TYPE_PATTERNS
]
_CURRENCY_AMOUNT_RE = re.compile(TYPE_CURRENCY_AMOUNT, re.IGNORECASE)
_SPECIAL_BONUS_RES = {
    TransactionType(name): (re.compile(regex, re.IGNORECASE), bonus)
    for name, (regex, bonus) in TYPE_SPECIAL_BONUSES.items()
}


def _score(tx_type: TransactionType, text: str, keyword_hit: bool) -> float:
    confidence = TYPE_BASE_CONFIDENCE
    confidence += TYPE_KEYWORD_BONUS if keyword_hit else TYPE_REGEX_BONUS

    hits = count_keywords(text, TYPE_CONTEXT_KEYWORDS.get(tx_type.value, []))
    confidence += min(hits * 0.05, 0.15)

    if _CURRENCY_AMOUNT_RE.search(text):
        confidence += 0.1

    special = _SPECIAL_BONUS_RES.get(tx_type)
    if special and special[0].search(text):
        confidence += special[1]

    return clamp_confidence(confidence)


def _score_type(entry: dict, text: str) -> ExtractionResult:
    """Best result for one type: a keyword hit, else the first regex hit."""
    keyword = find_keyword(text, entry["keywords"])
    if keyword:
        return ExtractionResult(
            value=entry["type"],
            confidence=_score(entry["type"], text, keyword_hit=True),
            matched_span=keyword,
            method="keyword_match",
        )
    for idx, regex in enumerate(entry["regexes"], start=1):
        match = regex.search(text)
        if match:
            return ExtractionResult(
                value=entry["type"],
                confidence=_score(entry["type"], text, keyword_hit=False),
                matched_span=match.group(0),
                method=f"pattern_match_{idx}",
            )
    return ExtractionResult.empty("no_match")


def _infer_from_context(text: str) -> ExtractionResult:
    lowered = text.lower()
    for rule in TYPE_INFERENCE_RULES:
        hits = [indicator for indicator in rule["indicators"] if indicator in lowered]
        if hits:
            confidence = rule["confidence"] + (len(hits) - 1) * 0.1
            return ExtractionResult(
                value=TransactionType(rule["type"]),
                confidence=clamp_confidence(min(confidence, TYPE_INFERENCE_CAP)),
                matched_span=", ".join(h.strip() for h in hits),
                method="context_inference",
            )
    return ExtractionResult.empty("no_match")


def extract_type(text) -> ExtractionResult:
    """
    Classify a message as debit, credit, transfer, payment, withdrawal,
    deposit or refund.

    Args:
        text: Raw message text

    Returns:
        ExtractionResult[TransactionType]
    """
    if is_blank(text):
        return ExtractionResult.empty("invalid_input")

    best = None
    for entry in _COMPILED_TYPE_PATTERNS:
        result = _score_type(entry, text)
        if result.found and (best is None or result.confidence > best.confidence):
            best = result

    if best is not None:
        return best
    return _infer_from_context(text)


def extract_all_possible_types(text) -> List[ExtractionResult]:
    """Best result per type scoring above 0.3, sorted by confidence descending."""
    if is_blank(text):
        return []
    results = [_score_type(entry, text) for entry in _COMPILED_TYPE_PATTERNS]
    results = [r for r in results if r.found and r.confidence > 0.3]
    return sorted(results, key=lambda r: r.confidence, reverse=True)


def validate_transaction_type(value) -> bool:
    if isinstance(value, TransactionType):
        return True
    try:
        TransactionType(str(value).lower())
    except ValueError:
        return False
    return True
