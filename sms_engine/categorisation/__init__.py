"""
Categorisation Module for the SMS transaction engine.

Resolves budget categories through:
- Merchant category hints
- Merchant-name keyword rules
- Direction defaults (credit -> income, debit -> needs/other)
- Built-in vertical phrases and a default fallback
"""

from .engine import TransactionCategorizer

__all__ = ["TransactionCategorizer"]
