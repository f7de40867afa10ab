"""
Amount extraction.

Finds the monetary amount in a bank message. Currency-prefixed amounts are
the most reliable shape; keyword-preceded and contextual numbers follow, and
a bare-number fallback catches messages without any currency marker.
"""

import math
import re
from typing import Optional

from ..config.analyzer_config import ANALYZER_CONFIG
from ..exceptions import ExtractionError
from ..models import ExtractionResult
from ..patterns.sms_patterns import (
    AMOUNT_BASE_CONFIDENCE,
    AMOUNT_KEYWORDS,
    AMOUNT_PATTERNS,
    FALLBACK_AMOUNT_CONTEXT,
    FALLBACK_NUMBER_PATTERN,
)
from .pattern_matching import clamp_confidence, context_window
from .preprocess import is_blank

_CFG = ANALYZER_CONFIG["amount"]

_COMPILED_AMOUNT_PATTERNS = [
    (entry["name"], re.compile(entry["regex"], re.IGNORECASE), entry["bonus"])
    for entry in AMOUNT_PATTERNS
]
_FALLBACK_NUMBER_RE = re.compile(FALLBACK_NUMBER_PATTERN)
_FALLBACK_CONTEXT_RE = re.compile(FALLBACK_AMOUNT_CONTEXT, re.IGNORECASE)
_AMOUNT_STRING_RE = re.compile(r"^\d{1,3}(?:,\d{2,3})*(?:\.\d+)?$|^\d+(?:\.\d+)?$")


def parse_amount_string(amount_str: str) -> float:
    """
    Parse a captured amount, treating commas as thousands separators.

    Args:
        amount_str: Text such as "1,00,000.50"

    Returns:
        Parsed float

    Raises:
        ExtractionError: If the text is not a number
    """
    if not isinstance(amount_str, str):
        raise ExtractionError(f"Amount must be text, got {type(amount_str).__name__}", "amount")
    candidate = amount_str.strip()
    if not _AMOUNT_STRING_RE.match(candidate):
        raise ExtractionError(f"Not a valid amount: {amount_str!r}", "amount")
    return float(candidate.replace(",", ""))


def validate_amount(amount) -> bool:
    """Reject non-numbers, non-finite, non-positive and implausibly large values."""
    if isinstance(amount, bool) or not isinstance(amount, (int, float)):
        return False
    if not math.isfinite(amount):
        return False
    return 0 < amount <= _CFG["hard_max"]


def _group_indian(integer_digits: str) -> str:
    if len(integer_digits) <= 3:
        return integer_digits
    head, tail = integer_digits[:-3], integer_digits[-3:]
    groups = []
    while len(head) > 2:
        groups.insert(0, head[-2:])
        head = head[:-2]
    if head:
        groups.insert(0, head)
    return ",".join(groups + [tail])


def format_amount(amount: float, currency: Optional[str] = None) -> str:
    """
    Format an amount for display with Indian digit grouping.

    Whole amounts carry no decimals; fractional amounts carry two.

    Example:
        >>> format_amount(150000.5)
        '₹1,50,000.50'

    Raises:
        ExtractionError: If the amount fails validation
    """
    if not validate_amount(amount):
        raise ExtractionError(f"Invalid amount: {amount!r}", "amount")
    symbol = ANALYZER_CONFIG["currency_symbol"] if currency is None else currency
    rounded = round(float(amount), 2)
    if rounded == int(rounded):
        return f"{symbol}{_group_indian(str(int(rounded)))}"
    whole, fraction = f"{rounded:.2f}".split(".")
    return f"{symbol}{_group_indian(whole)}.{fraction}"


def _score(number_text: str, window: str, pattern_bonus: float, amount: float) -> float:
    confidence = AMOUNT_BASE_CONFIDENCE + pattern_bonus

    lowered = window.lower()
    if any(keyword in lowered for keyword in AMOUNT_KEYWORDS):
        confidence += 0.15

    if _CFG["plausible_min"] <= amount <= _CFG["plausible_max"]:
        confidence += 0.1
    elif amount > _CFG["plausible_max"]:
        confidence -= 0.2
    else:
        confidence -= 0.1

    # explicit decimals
    if "." in number_text:
        confidence += 0.05

    return clamp_confidence(confidence)


def _safe_parse(amount_str: str) -> Optional[float]:
    try:
        return parse_amount_string(amount_str)
    except ExtractionError:
        return None


def extract_amount(text) -> ExtractionResult:
    """
    Extract the transaction amount from message text.

    Args:
        text: Raw message text

    Returns:
        ExtractionResult[float]; method is the winning pattern name,
        ``fallback_numeric``, ``no_match`` or ``invalid_input``
    """
    if is_blank(text):
        return ExtractionResult.empty("invalid_input")

    best = None
    for name, regex, bonus in _COMPILED_AMOUNT_PATTERNS:
        for match in regex.finditer(text):
            amount = _safe_parse(match.group(1))
            if amount is None or not validate_amount(amount):
                continue
            window = context_window(text, match.start(), match.end(), _CFG["keyword_window"])
            confidence = _score(match.group(1), window, bonus, amount)
            if best is None or confidence > best.confidence:
                best = ExtractionResult(
                    value=amount,
                    confidence=confidence,
                    matched_span=match.group(0).strip(),
                    method=name,
                )

    if best is not None:
        return best

    for match in _FALLBACK_NUMBER_RE.finditer(text):
        amount = _safe_parse(match.group(1))
        if amount is None or not _CFG["fallback_min"] <= amount <= _CFG["fallback_max"]:
            continue
        window = context_window(text, match.start(), match.end(), _CFG["keyword_window"])
        if _FALLBACK_CONTEXT_RE.search(window):
            return ExtractionResult(
                value=amount,
                confidence=_CFG["fallback_confidence"],
                matched_span=match.group(0),
                method="fallback_numeric",
            )

    return ExtractionResult.empty("no_match")
