"""
Transaction Categorizer for SMS transactions.
Resolves a normalized merchant and/or transaction direction to a budget
category and subcategory from the host's reference data.
"""

import logging
from typing import Dict, Iterable, List, Optional, Tuple

from ..config.analyzer_config import ANALYZER_CONFIG
from ..extraction.pattern_matching import cascade, clamp_confidence, has_keyword
from ..models import Category, CategoryMatch, Direction, MerchantMatch, Subcategory, TransactionType
from ..patterns.sms_patterns import (
    CATEGORY_KEYWORD_PHRASES,
    CATEGORY_PHRASE_CONFIDENCE,
    MERCHANT_CATEGORY_RULES,
)

logger = logging.getLogger(__name__)

_CFG = ANALYZER_CONFIG["categorization"]

_OTHER_NAMES = ("other", "miscellaneous", "misc")

# (keywords, category, subcategory, confidence) with names already resolved
ResolvedRule = Tuple[List[str], Category, Subcategory, float]


class TransactionCategorizer:
    """
    Rule-based categorizer for parsed SMS transactions.

    Category and subcategory references in the built-in rule tables are
    expressed by name and resolved against the supplied reference data once,
    at construction. Rules whose names do not resolve are skipped.
    """

    def __init__(
        self,
        categories: Iterable[Category] = (),
        subcategories: Iterable[Subcategory] = ()
    ):
        self.categories: Tuple[Category, ...] = tuple(c for c in categories if c.is_active)
        active_ids = {c.id for c in self.categories}
        self.subcategories: Tuple[Subcategory, ...] = tuple(
            s for s in subcategories if s.is_active and s.category_id in active_ids
        )

        self._categories_by_name: Dict[str, Category] = {}
        for category in self.categories:
            self._categories_by_name.setdefault(category.name.strip().lower(), category)
        self._subcategories_by_category: Dict[str, List[Subcategory]] = {}
        for sub in self.subcategories:
            self._subcategories_by_category.setdefault(sub.category_id, []).append(sub)

        self._keyword_rules = self._resolve_rules(MERCHANT_CATEGORY_RULES)
        self._phrase_rules = self._resolve_rules(
            [dict(rule, confidence=CATEGORY_PHRASE_CONFIDENCE) for rule in CATEGORY_KEYWORD_PHRASES]
        )
        self._income_target = self._find_income_target()
        self._debit_target = self._find_debit_target()
        self._default_target = self._find_default_target()

        logger.debug(
            "TransactionCategorizer built: %d categories, %d subcategories, %d keyword rules, %d phrase rules",
            len(self.categories), len(self.subcategories), len(self._keyword_rules), len(self._phrase_rules)
        )

    def with_categories(
        self,
        categories: Optional[Iterable[Category]] = None,
        subcategories: Optional[Iterable[Subcategory]] = None
    ) -> "TransactionCategorizer":
        """Return a new categorizer; None keeps the current collection."""
        return TransactionCategorizer(
            self.categories if categories is None else categories,
            self.subcategories if subcategories is None else subcategories,
        )

    # ------------------------------------------------------------------
    # Name resolution
    # ------------------------------------------------------------------

    def _find_category(self, name: Optional[str]) -> Optional[Category]:
        if not name:
            return None
        return self._categories_by_name.get(name.strip().lower())

    def _find_subcategory(self, category: Category, name: Optional[str]) -> Optional[Subcategory]:
        if not name:
            return None
        wanted = name.strip().lower()
        for sub in self._subcategories_by_category.get(category.id, []):
            if sub.name.strip().lower() == wanted:
                return sub
        return None

    def _resolve(self, category_name, subcategory_name) -> Optional[Tuple[Category, Subcategory]]:
        category = self._find_category(category_name)
        if category is None:
            return None
        subcategory = self._find_subcategory(category, subcategory_name)
        if subcategory is None:
            return None
        return category, subcategory

    def _resolve_rules(self, rules: List[Dict]) -> List[ResolvedRule]:
        resolved = []
        for rule in rules:
            pair = self._resolve(rule["category"], rule["subcategory"])
            if pair:
                resolved.append((rule["keywords"], pair[0], pair[1], rule["confidence"]))
        return resolved

    def _other_subcategory(self, category: Category) -> Optional[Subcategory]:
        for sub in self._subcategories_by_category.get(category.id, []):
            lowered = sub.name.lower()
            if any(other in lowered for other in _OTHER_NAMES):
                return sub
        return None

    def _find_income_target(self) -> Optional[Tuple[Category, Optional[Subcategory]]]:
        for category in self.categories:
            if category.direction == Direction.INCOME or "income" in category.name.lower():
                subs = self._subcategories_by_category.get(category.id, [])
                if subs:
                    return category, subs[0]
        return None

    def _expense_categories(self) -> List[Category]:
        named = [c for c in self.categories if any(w in c.name.lower() for w in ("needs", "expense"))]
        by_direction = [c for c in self.categories if c.direction == Direction.EXPENSE and c not in named]
        return named + by_direction

    def _find_debit_target(self) -> Optional[Tuple[Category, Optional[Subcategory]]]:
        for category in self._expense_categories():
            other = self._other_subcategory(category)
            if other:
                return category, other
        return None

    def _find_default_target(self) -> Optional[Tuple[Category, Optional[Subcategory]]]:
        candidates = self._expense_categories() or list(self.categories)
        if not candidates:
            return None
        for category in candidates:
            other = self._other_subcategory(category)
            if other:
                return category, other
        category = candidates[0]
        subs = self._subcategories_by_category.get(category.id, [])
        return category, subs[0] if subs else None

    @staticmethod
    def _to_match(category: Category, subcategory: Optional[Subcategory],
                  confidence: float, matched_by: str) -> CategoryMatch:
        return CategoryMatch(
            category_id=category.id,
            category_name=category.name,
            subcategory_id=subcategory.id if subcategory else None,
            subcategory_name=subcategory.name if subcategory else None,
            confidence=clamp_confidence(confidence),
            matched_by=matched_by,
        )

    # ------------------------------------------------------------------
    # Strategies
    # ------------------------------------------------------------------

    def _from_merchant_hint(self, merchant: Optional[MerchantMatch]) -> Optional[CategoryMatch]:
        if merchant is None or not merchant.category or not merchant.subcategory:
            return None
        pair = self._resolve(merchant.category, merchant.subcategory)
        if pair is None:
            return None
        return self._to_match(pair[0], pair[1], _CFG["merchant_mapping_confidence"], "merchant_mapping")

    @staticmethod
    def _merchant_text(merchant: Optional[MerchantMatch]) -> str:
        if merchant is None:
            return ""
        return merchant.canonical_name or merchant.name or ""

    def _from_rules(self, text: str, rules: List[ResolvedRule], scale: float,
                    matched_by: str) -> Optional[CategoryMatch]:
        if not text:
            return None
        for keywords, category, subcategory, confidence in rules:
            if any(has_keyword(text, keyword) for keyword in keywords):
                return self._to_match(category, subcategory, confidence * scale, matched_by)
        return None

    def _from_keyword_rules(self, merchant: Optional[MerchantMatch]) -> Optional[CategoryMatch]:
        if merchant is None:
            return None
        return self._from_rules(
            self._merchant_text(merchant), self._keyword_rules, merchant.confidence, "keyword_match"
        )

    def _from_direction(self, transaction_type: Optional[TransactionType]) -> Optional[CategoryMatch]:
        if transaction_type == TransactionType.CREDIT and self._income_target:
            category, subcategory = self._income_target
            return self._to_match(category, subcategory, _CFG["credit_default_confidence"],
                                  "transaction_type_credit")
        if transaction_type == TransactionType.DEBIT and self._debit_target:
            category, subcategory = self._debit_target
            return self._to_match(category, subcategory, _CFG["debit_default_confidence"],
                                  "transaction_type_debit")
        return None

    def _from_phrases(self, merchant: Optional[MerchantMatch]) -> Optional[CategoryMatch]:
        return self._from_rules(self._merchant_text(merchant), self._phrase_rules, 1.0, "keyword_phrase")

    def _default(self) -> Optional[CategoryMatch]:
        if self._default_target is None:
            return None
        category, subcategory = self._default_target
        return self._to_match(category, subcategory, _CFG["default_confidence"], "default")

    def _strategies(self, merchant, transaction_type):
        return [
            lambda _: self._from_merchant_hint(merchant),
            lambda _: self._from_keyword_rules(merchant),
            lambda _: self._from_direction(transaction_type),
            lambda _: self._from_phrases(merchant),
            lambda _: self._default(),
        ]

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def categorize(
        self,
        merchant: Optional[MerchantMatch] = None,
        transaction_type: Optional[TransactionType] = None
    ) -> CategoryMatch:
        """
        Categorize a transaction.

        Args:
            merchant: Normalized merchant, possibly carrying a category hint
            transaction_type: Direction of the transaction, if known

        Returns:
            CategoryMatch; empty only when no active category exists
        """
        result = cascade(
            self._strategies(merchant, transaction_type),
            None,
            ANALYZER_CONFIG["acceptance_thresholds"]["category"],
            CategoryMatch.empty(),
        )
        logger.debug(
            "Categorized merchant=%r type=%s -> %s/%s (%s, %.2f)",
            self._merchant_text(merchant),
            transaction_type.value if transaction_type else None,
            result.category_name, result.subcategory_name, result.matched_by, result.confidence
        )
        return result

    def get_all_matches(
        self,
        merchant: Optional[MerchantMatch] = None,
        transaction_type: Optional[TransactionType] = None
    ) -> List[CategoryMatch]:
        """Every strategy's result, best first."""
        results = [s(None) for s in self._strategies(merchant, transaction_type)]
        results = [r for r in results if r is not None and r.confidence > 0]
        return sorted(results, key=lambda r: r.confidence, reverse=True)

    def get_suggestions(self, merchant_name: str, limit: int = 5) -> List[CategoryMatch]:
        """
        Category suggestions for a merchant name typed by the user.

        Keyword rules come before vertical phrases; one suggestion per
        subcategory.
        """
        if not merchant_name or not merchant_name.strip():
            return []
        suggestions: List[CategoryMatch] = []
        seen = set()
        for rules, matched_by in ((self._keyword_rules, "keyword_match"), (self._phrase_rules, "keyword_phrase")):
            for keywords, category, subcategory, confidence in rules:
                if subcategory.id in seen:
                    continue
                if any(has_keyword(merchant_name, keyword) for keyword in keywords):
                    seen.add(subcategory.id)
                    suggestions.append(self._to_match(category, subcategory, confidence, matched_by))
        return suggestions[:limit]

    def get_stats(self) -> Dict:
        return {
            "total_categories": len(self.categories),
            "total_subcategories": len(self.subcategories),
            "keyword_rules": len(self._keyword_rules),
            "phrase_rules": len(self._phrase_rules),
            "has_income_category": self._income_target is not None,
            "has_default_category": self._default_target is not None,
        }
