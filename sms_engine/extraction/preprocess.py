"""
Preprocessing utilities for SMS field extraction.
Handles input validation and merchant name cleaning.
"""

import re
from typing import Any


_WHITESPACE_RE = re.compile(r"\s+")
_PROTOCOL_RE = re.compile(r"^(?:https?://)?(?:www\.)?", re.IGNORECASE)
_DOMAIN_SUFFIX_RE = re.compile(r"\.(?:co\.in|com|in|org|net)(?:/\S*)?$", re.IGNORECASE)
_TRAILING_PUNCT_RE = re.compile(r"[.,;:!?]+$")
_SMS_ARTIFACTS_RE = re.compile(r"[*#]")


def is_blank(text: Any) -> bool:
    """True for None, non-string values and whitespace-only strings."""
    return not isinstance(text, str) or not text.strip()


def title_case(text: str) -> str:
    """Capitalize the first letter of each space separated word, lowercase the rest."""
    return " ".join(word[:1].upper() + word[1:].lower() for word in text.split(" ") if word)


def strip_merchant_noise(raw: str) -> str:
    """
    Remove protocol, ``www.``, domain suffix, SMS artifacts and trailing
    punctuation from a merchant string without changing its case.
    """
    if not isinstance(raw, str):
        return ""
    cleaned = raw.strip()
    cleaned = _PROTOCOL_RE.sub("", cleaned)
    cleaned = _DOMAIN_SUFFIX_RE.sub("", cleaned)
    cleaned = _SMS_ARTIFACTS_RE.sub("", cleaned)
    cleaned = _WHITESPACE_RE.sub(" ", cleaned).strip()
    cleaned = _TRAILING_PUNCT_RE.sub("", cleaned)
    return cleaned.strip()


def clean_merchant_name(raw: str) -> str:
    """
    Clean and title-case a merchant name captured from a message.

    Example:
        >>> clean_merchant_name("www.AMAZON.in ")
        'Amazon'
    """
    return title_case(strip_merchant_noise(raw))
