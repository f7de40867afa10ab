"""
Field extractors: amount, date, transaction type and raw merchant.
"""

from .amount import extract_amount, format_amount, parse_amount_string, validate_amount
from .date import extract_date, extract_multiple_dates, format_date, validate_date
from .transaction_type import extract_all_possible_types, extract_type, validate_transaction_type
from .merchant import extract_merchant, extract_multiple_merchants, validate_merchant
from .pattern_matching import cascade, clamp_confidence

__all__ = [
    "extract_amount",
    "format_amount",
    "parse_amount_string",
    "validate_amount",
    "extract_date",
    "extract_multiple_dates",
    "format_date",
    "validate_date",
    "extract_type",
    "extract_all_possible_types",
    "validate_transaction_type",
    "extract_merchant",
    "extract_multiple_merchants",
    "validate_merchant",
    "cascade",
    "clamp_confidence",
]
