"""
Configuration module for the SMS transaction engine.
"""

from .analyzer_config import ANALYZER_CONFIG, AnalyzerSettings
from .context_loader import load_reference_context, load_merchant_patterns_csv

__all__ = [
    "ANALYZER_CONFIG",
    "AnalyzerSettings",
    "load_reference_context",
    "load_merchant_patterns_csv",
]
