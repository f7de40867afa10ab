"""
Pattern tables for SMS field extraction, matching and categorization.
"""

from .sms_patterns import (
    AMOUNT_PATTERNS,
    DATE_PATTERNS,
    TRANSACTION_TYPE_PATTERNS,
    MERCHANT_TEMPLATES,
    MERCHANT_EXCLUDE_WORDS,
    BANK_NAME_ALIASES,
    MERCHANT_CATEGORY_RULES,
    CATEGORY_KEYWORD_PHRASES,
)

from .merchant_patterns import (
    DEFAULT_MERCHANT_PATTERNS,
    KNOWN_MERCHANT_DOMAINS,
)

__all__ = [
    "AMOUNT_PATTERNS",
    "DATE_PATTERNS",
    "TRANSACTION_TYPE_PATTERNS",
    "MERCHANT_TEMPLATES",
    "MERCHANT_EXCLUDE_WORDS",
    "BANK_NAME_ALIASES",
    "MERCHANT_CATEGORY_RULES",
    "CATEGORY_KEYWORD_PHRASES",
    "DEFAULT_MERCHANT_PATTERNS",
    "KNOWN_MERCHANT_DOMAINS",
]
