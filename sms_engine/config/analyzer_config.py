"""
Analyzer configuration for the SMS transaction engine.
Contains confidence weights, acceptance thresholds, and extraction limits.
"""

from dataclasses import dataclass, fields
from typing import Any, Dict, Optional


ANALYZER_CONFIG = {
    # Weights of each field in the aggregate transaction confidence
    "confidence_weights": {
        "transaction_type": 0.2,
        "amount": 0.3,
        "merchant_present": 0.2,  # flat bonus, not scaled
        "account": 0.15,
        "category": 0.15,
    },

    # "First result above threshold, else best" cut-offs
    "acceptance_thresholds": {
        "merchant": 0.5,
        "category": 0.5,
    },

    # Amount plausibility (local currency units)
    "amount": {
        "plausible_min": 1,
        "plausible_max": 1_000_000,
        "fallback_min": 10,
        "fallback_max": 500_000,
        "hard_max": 10_000_000,
        "keyword_window": 50,
        "fallback_confidence": 0.3,
    },

    # Date acceptance window relative to "now"
    "date": {
        "max_age_days": 365,
        "max_future_days": 7,
        "keyword_window": 20,
        "two_digit_year_pivot": 50,
        "recency_confidence": 0.3,
        "time_only_confidence": 0.4,
    },

    "merchant": {
        "min_length": 2,
        "max_length": 50,
        "context_window": 30,
        "fallback_confidence": 0.3,
    },

    # Merchant normalization scoring
    "merchant_matching": {
        "exact_name_confidence": 0.95,
        "regex_factor": 0.9,
        "alias_factor": 0.85,
        "known_domain_confidence": 0.8,
        "unknown_domain_confidence": 0.6,
        "fuzzy_name_factor": 0.7,
        "fuzzy_alias_factor": 0.6,
        "fuzzy_min_similarity": 0.5,
        "fuzzy_max_candidates": 25,
        "fallback_confidence": 0.3,
    },

    # Account resolution scoring
    "account_matching": {
        "card_last_four_confidence": 0.95,
        "account_last_four_confidence": 0.9,
        "institution_exact_confidence": 0.8,
        "institution_alias_confidence": 0.7,
        "institution_floor": 0.3,
        "institution_ceiling": 0.95,
        "account_name_confidence": 0.6,
        "account_name_ceiling": 0.85,
    },

    # Category resolution scoring
    "categorization": {
        "merchant_mapping_confidence": 0.9,
        "credit_default_confidence": 0.5,
        "debit_default_confidence": 0.4,
        "default_confidence": 0.3,
    },

    "currency_symbol": "₹",
}


@dataclass
class AnalyzerSettings:
    """Runtime switches for an analyzer instance."""
    enable_fuzzy_matching: bool = True
    fuzzy_match_threshold: float = ANALYZER_CONFIG["merchant_matching"]["fuzzy_min_similarity"]
    enable_merchant_normalization: bool = True
    enable_date_extraction: bool = True
    default_currency: str = ANALYZER_CONFIG["currency_symbol"]

    def __post_init__(self):
        if not 0.0 <= self.fuzzy_match_threshold <= 1.0:
            raise ValueError("fuzzy_match_threshold must be within [0, 1]")

    @classmethod
    def from_config(cls, overrides: Optional[Dict[str, Any]] = None) -> "AnalyzerSettings":
        """
        Build settings from the module defaults plus optional overrides.

        Unknown keys are rejected so that typos in host configuration surface
        immediately.

        Args:
            overrides: Mapping of field name to value

        Returns:
            AnalyzerSettings
        """
        overrides = dict(overrides or {})
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(overrides) - known)
        if unknown:
            raise ValueError(f"Unknown analyzer settings: {', '.join(unknown)}")
        return cls(**overrides)
