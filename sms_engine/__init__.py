"""
SMS Engine - Bank notification parsing for personal-finance apps.

Turns free-form bank/payment SMS text into structured, confidence-scored
transaction records that a host application can auto-file or queue for
confirmation.

Main Components:
    - patterns: Regex/keyword tables and the curated merchant dataset
    - config: Confidence weights, thresholds and reference-data loaders
    - extraction: Amount, date, transaction type and raw merchant extractors
    - matching: Account/card and merchant matchers
    - categorisation: Budget category resolution
    - analysis: End-to-end analyzer
"""

from datetime import datetime
from typing import Dict, Iterable, Optional

# Data model
from .models import (
    Account,
    AccountKind,
    AccountMatch,
    AnalysisResult,
    Card,
    Category,
    CategoryMatch,
    Direction,
    ExtractionResult,
    MerchantMatch,
    MerchantPattern,
    ParsedTransaction,
    ReferenceContext,
    Subcategory,
    TransactionType,
)

from .exceptions import (
    SMSAnalysisError,
    InvalidMessageError,
    ExtractionError,
    MatchingError,
    ReferenceDataError,
)

# Extractors
from .extraction import (
    extract_amount,
    extract_date,
    extract_merchant,
    extract_type,
    format_amount,
    parse_amount_string,
)

# Matchers and categorizer
from .matching import AccountMatcher, MerchantMatcher
from .categorisation import TransactionCategorizer

# Analyzer
from .analysis import SMSAnalyzer, analyze_sms, create_sms_analyzer

# Configuration
from .config import (
    ANALYZER_CONFIG,
    AnalyzerSettings,
    load_reference_context,
    load_merchant_patterns_csv,
)


__version__ = "1.0.0"
__all__ = [
    # Model
    "Account",
    "AccountKind",
    "AccountMatch",
    "AnalysisResult",
    "Card",
    "Category",
    "CategoryMatch",
    "Direction",
    "ExtractionResult",
    "MerchantMatch",
    "MerchantPattern",
    "ParsedTransaction",
    "ReferenceContext",
    "Subcategory",
    "TransactionType",
    # Errors
    "SMSAnalysisError",
    "InvalidMessageError",
    "ExtractionError",
    "MatchingError",
    "ReferenceDataError",
    # Extraction
    "extract_amount",
    "extract_date",
    "extract_merchant",
    "extract_type",
    "format_amount",
    "parse_amount_string",
    # Matching and categorisation
    "AccountMatcher",
    "MerchantMatcher",
    "TransactionCategorizer",
    # Analysis
    "SMSAnalyzer",
    "analyze_sms",
    "create_sms_analyzer",
    # Configuration
    "ANALYZER_CONFIG",
    "AnalyzerSettings",
    "load_reference_context",
    "load_merchant_patterns_csv",
    # Main function
    "run_sms_analysis",
]


def run_sms_analysis(
    messages: Iterable[str],
    context: Optional[ReferenceContext] = None,
    now: Optional[datetime] = None,
) -> Dict:
    """
    Main entry point for analyzing a set of messages.

    This function runs the complete pipeline for every message:
    1. Extract type, amount, date and raw merchant
    2. Normalize the merchant and resolve the account or card
    3. Categorize the transaction
    4. Score the result and summarize the run

    Args:
        messages: Raw SMS bodies
        context: Host reference data (accounts, cards, categories, merchants)
        now: Reference time for date validation (default: current time)

    Returns:
        Dictionary containing:
            - results: One ``AnalysisResult.to_dict()`` per message, in order
            - total: Number of messages analyzed
            - successful: Messages analyzed without error
            - average_confidence: Mean confidence over successful results

    Example:
        >>> summary = run_sms_analysis(
        ...     ["Rs 250 debited from a/c XX1234 at Swiggy on 15/01/2024"],
        ...     now=datetime(2024, 1, 20),
        ... )
        >>> summary["results"][0]["data"]["merchant"]
        'Swiggy'
    """
    analyzer = SMSAnalyzer(context)
    results = analyzer.analyze_batch(messages, now)

    successful = [r for r in results if r.success]
    average = sum(r.confidence for r in successful) / len(successful) if successful else 0.0

    return {
        "results": [r.to_dict() for r in results],
        "total": len(results),
        "successful": len(successful),
        "average_confidence": round(average, 4),
    }
