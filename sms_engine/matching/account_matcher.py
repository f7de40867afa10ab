"""
Account Matcher for SMS transactions.

Resolves the account or card a message refers to, using last-four digits,
institution names (with a curated alias table), account display names and
loose "a/c ... NNNN" / "card ... NNNN" phrasing.
"""

import logging
import re
from typing import Dict, Iterable, List, Optional, Tuple

from ..config.analyzer_config import ANALYZER_CONFIG
from ..extraction.pattern_matching import clamp_confidence, has_keyword, keyword_regex
from ..extraction.preprocess import is_blank
from ..models import Account, AccountMatch, Card, ExtractionResult, Holding
from ..patterns.sms_patterns import (
    ACCOUNT_DIGIT_PATTERNS,
    ACCOUNT_NAME_CONTEXT_KEYWORDS,
    ACCOUNT_PATTERN_FACTOR,
    AMBIGUOUS_BANK_ALIASES,
    BANK_NAME_ALIASES,
    CARD_DIGIT_PATTERNS,
    CARD_PATTERN_FACTOR,
    CURRENCY_TOKEN,
    INSTITUTION_CONTEXT_KEYWORDS,
)

logger = logging.getLogger(__name__)

_CFG = ANALYZER_CONFIG["account_matching"]

_DIGIT_RUN_RE = re.compile(r"(?<![\d,.:/])(\d{4,18})(?!\d|[,.:/]\d)")
_CURRENCY_BEFORE_RE = re.compile(CURRENCY_TOKEN + r"\s{0,3}$", re.IGNORECASE)
_ACCOUNT_PATTERN_RES = [re.compile(p, re.IGNORECASE) for p in ACCOUNT_DIGIT_PATTERNS]
_CARD_PATTERN_RES = [re.compile(p, re.IGNORECASE) for p in CARD_DIGIT_PATTERNS]

# (match, matched span, method)
Candidate = Tuple[AccountMatch, str, str]


def _alias_lookup() -> Dict[str, List[str]]:
    """Institution name -> every other name it is known by, in both directions."""
    lookup: Dict[str, List[str]] = {}
    for canonical, aliases in BANK_NAME_ALIASES.items():
        lookup.setdefault(canonical, []).extend(aliases)
        for alias in aliases:
            lookup.setdefault(alias, []).append(canonical)
    return lookup


_ALIAS_LOOKUP = _alias_lookup()


class AccountMatcher:
    """
    Immutable account/card resolver.

    Indexes are built once in ``__init__``; use ``with_accounts`` to obtain a
    matcher for different reference data.
    """

    def __init__(self, accounts: Iterable[Account] = (), cards: Iterable[Card] = ()):
        self.accounts: Tuple[Account, ...] = tuple(a for a in accounts if a.is_active)
        self.cards: Tuple[Card, ...] = tuple(c for c in cards if c.is_active)

        # Cards first: messages that quote a card number usually mean the card
        self._by_last_four: Dict[str, Tuple[Holding, float]] = {}
        for card in self.cards:
            if card.last_four and card.last_four not in self._by_last_four:
                self._by_last_four[card.last_four] = (card, _CFG["card_last_four_confidence"])
        for account in self.accounts:
            if account.last_four and account.last_four not in self._by_last_four:
                self._by_last_four[account.last_four] = (account, _CFG["account_last_four_confidence"])

        self._by_id: Dict[str, Holding] = {}
        for holding in self.accounts + self.cards:
            self._by_id.setdefault(holding.id, holding)

        self._institution_terms: List[Tuple[str, str, Holding]] = []
        for holding in self.accounts + self.cards:
            for term, match_type in self._institution_names(holding.institution):
                self._institution_terms.append((term, match_type, holding))

        logger.debug(
            "AccountMatcher built: %d accounts, %d cards, %d last-four keys, %d institution terms",
            len(self.accounts), len(self.cards), len(self._by_last_four), len(self._institution_terms)
        )

    @staticmethod
    def _institution_names(institution: str) -> List[Tuple[str, str]]:
        name = (institution or "").strip().lower()
        if not name:
            return []
        names = [(name, "exact")]
        seen = {name}
        aliases = list(_ALIAS_LOOKUP.get(name, []))
        if name.endswith(" bank"):
            aliases.append(name[:-len(" bank")])
        for alias in aliases:
            if len(alias) >= 3 and alias not in seen and alias not in AMBIGUOUS_BANK_ALIASES:
                seen.add(alias)
                names.append((alias, "alias"))
        return names

    def with_accounts(
        self,
        accounts: Optional[Iterable[Account]] = None,
        cards: Optional[Iterable[Card]] = None
    ) -> "AccountMatcher":
        """Return a new matcher; None keeps the current collection."""
        return AccountMatcher(
            self.accounts if accounts is None else accounts,
            self.cards if cards is None else cards,
        )

    # ------------------------------------------------------------------
    # Single strategies
    # ------------------------------------------------------------------

    def match_by_last_four(self, last_four: str) -> Optional[AccountMatch]:
        """Exact last-four lookup; cards score 0.95, accounts 0.90."""
        if not isinstance(last_four, str) or not re.fullmatch(r"[0-9]{4}", last_four):
            return None
        entry = self._by_last_four.get(last_four)
        if entry is None:
            return None
        holding, confidence = entry
        return self._to_match(holding, confidence, "last_four_digits")

    def match_by_institution(self, text: str) -> Optional[AccountMatch]:
        """Best institution-name match (exact name or alias) anywhere in the text."""
        if is_blank(text):
            return None
        has_context = any(has_keyword(text, k) for k in INSTITUTION_CONTEXT_KEYWORDS)
        best = None
        for term, match_type, holding in self._institution_terms:
            if not keyword_regex(term).search(text):
                continue
            confidence = (
                _CFG["institution_exact_confidence"] if match_type == "exact"
                else _CFG["institution_alias_confidence"]
            )
            if len(term) > 10:
                confidence += 0.1
            if has_context:
                confidence += 0.1
            if len(term) < 4:
                confidence -= 0.2
            confidence = max(_CFG["institution_floor"], min(confidence, _CFG["institution_ceiling"]))
            if best is None or confidence > best.confidence:
                best = self._to_match(holding, confidence, "bank_name")
        return best

    def match_by_account_name(self, text: str) -> Optional[AccountMatch]:
        """Match on the host-assigned display name of an account or card."""
        if is_blank(text):
            return None
        has_context = any(has_keyword(text, k) for k in ACCOUNT_NAME_CONTEXT_KEYWORDS)
        best = None
        for holding in self.accounts + self.cards:
            name = holding.name.strip()
            if len(name) < 3 or not keyword_regex(name).search(text):
                continue
            confidence = _CFG["account_name_confidence"]
            if len(name) > 8:
                confidence += 0.1
            if has_context:
                confidence += 0.15
            confidence = min(confidence, _CFG["account_name_ceiling"])
            if best is None or confidence > best.confidence:
                best = self._to_match(holding, confidence, "account_name")
        return best

    # ------------------------------------------------------------------
    # Combined matching
    # ------------------------------------------------------------------

    def _digit_candidates(self, text: str) -> List[Candidate]:
        found = []
        for match in _DIGIT_RUN_RE.finditer(text):
            if _CURRENCY_BEFORE_RE.search(text, 0, match.start()):
                continue
            result = self.match_by_last_four(match.group(1)[-4:])
            if result:
                found.append((result, match.group(0), "last_four_digits"))
        return found

    def _institution_candidates(self, text: str) -> List[Candidate]:
        result = self.match_by_institution(text)
        return [(result, result.account_name, "bank_name")] if result else []

    def _pattern_candidates(self, text: str, regexes, factor: float, method: str) -> List[Candidate]:
        for regex in regexes:
            for match in regex.finditer(text):
                direct = self.match_by_last_four(match.group(1)[-4:])
                if direct:
                    scaled = self._to_match(
                        self._by_id[direct.account_id],
                        direct.confidence * factor,
                        "pattern",
                    )
                    return [(scaled, match.group(0), method)]
        return []

    def _account_name_candidates(self, text: str) -> List[Candidate]:
        result = self.match_by_account_name(text)
        return [(result, result.account_name, "account_name")] if result else []

    def _candidates(self, text: str) -> List[Candidate]:
        strategies = [
            self._digit_candidates,
            self._institution_candidates,
            lambda t: self._pattern_candidates(t, _ACCOUNT_PATTERN_RES, ACCOUNT_PATTERN_FACTOR, "account_pattern"),
            lambda t: self._pattern_candidates(t, _CARD_PATTERN_RES, CARD_PATTERN_FACTOR, "card_pattern"),
            self._account_name_candidates,
        ]
        candidates: List[Candidate] = []
        for strategy in strategies:
            candidates.extend(strategy(text))
        return candidates

    @staticmethod
    def _rank(candidates: List[Candidate]) -> List[Candidate]:
        """Highest confidence first, digit-based before name-based, then discovery order."""
        indexed = list(enumerate(candidates))
        indexed.sort(key=lambda item: (-item[1][0].confidence, not item[1][0].digit_based, item[0]))
        return [candidate for _, candidate in indexed]

    def _ranked_unique(self, text: str) -> List[Candidate]:
        seen = set()
        unique = []
        for candidate in self._rank(self._candidates(text)):
            if candidate[0].account_id in seen:
                continue
            seen.add(candidate[0].account_id)
            unique.append(candidate)
        return unique

    def match(self, text: str) -> ExtractionResult:
        """
        Resolve the single most likely account or card.

        Args:
            text: Raw message text

        Returns:
            ExtractionResult[AccountMatch]
        """
        if is_blank(text):
            return ExtractionResult.empty("invalid_input")
        ranked = self._ranked_unique(text)
        if not ranked:
            return ExtractionResult.empty("no_match")
        best, span, method = ranked[0]
        return ExtractionResult(value=best, confidence=best.confidence, matched_span=span, method=method)

    def all_matches(self, text: str) -> List[AccountMatch]:
        """Every plausible account/card, one per id, best first."""
        if is_blank(text):
            return []
        return [candidate[0] for candidate in self._ranked_unique(text)]

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def get_account_by_id(self, account_id: str) -> Optional[Holding]:
        return self._by_id.get(account_id)

    def get_all_accounts(self) -> List[Holding]:
        return list(self.accounts + self.cards)

    def get_account_display_name(self, account_id: str) -> Optional[str]:
        holding = self._by_id.get(account_id)
        if holding is None:
            return None
        if holding.last_four:
            return f"{holding.name} (XX{holding.last_four})"
        return holding.name

    def get_matching_stats(self) -> Dict:
        banks = sorted({h.institution for h in self.accounts + self.cards if h.institution})
        return {
            "total_accounts": len(self.accounts),
            "total_cards": len(self.cards),
            "bank_coverage": banks,
        }

    @staticmethod
    def _to_match(holding: Holding, confidence: float, matched_by: str) -> AccountMatch:
        return AccountMatch(
            account_id=holding.id,
            account_name=holding.name,
            account_kind=holding.kind,
            confidence=clamp_confidence(confidence),
            matched_by=matched_by,
        )
