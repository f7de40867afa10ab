"""
Entity matchers resolving message fragments to reference data.
"""

from .account_matcher import AccountMatcher
from .merchant_matcher import MerchantMatcher

__all__ = ["AccountMatcher", "MerchantMatcher"]
