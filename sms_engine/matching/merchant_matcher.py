"""
Merchant Matcher for SMS transactions.

Normalizes a raw merchant string (as pulled out of a message) to a canonical
merchant name plus the category hint carried by the merchant pattern.

Strategies are tried in order and the first result above the acceptance
threshold wins:
1. Exact canonical name, then merchant regex patterns (longest hit wins)
2. Alias table, exact or whole-word containment in either direction
3. Domain token ("amazon.in" -> Amazon; an unknown stem goes through the
   name strategies and is title-cased only when they find nothing)
4. Fuzzy similarity over names and aliases, trigram-prefiltered
5. Cleaned, title-cased input at low confidence
"""

import logging
import re
from collections import Counter
from dataclasses import replace
from typing import Dict, Iterable, List, Optional, Set, Tuple

from rapidfuzz.distance import Levenshtein

from ..config.analyzer_config import ANALYZER_CONFIG, AnalyzerSettings
from ..exceptions import MatchingError
from ..extraction.pattern_matching import cascade, clamp_confidence, keyword_regex
from ..extraction.preprocess import is_blank, strip_merchant_noise, title_case
from ..models import MerchantMatch, MerchantPattern
from ..patterns.merchant_patterns import DEFAULT_MERCHANT_PATTERNS, KNOWN_MERCHANT_DOMAINS

logger = logging.getLogger(__name__)

_CFG = ANALYZER_CONFIG["merchant_matching"]

_DOMAIN_RE = re.compile(
    r"(?:https?://)?(?:www\.)?([a-z0-9][a-z0-9\-]{1,39})\.(?:co\.in|com|in|org|net)\b",
    re.IGNORECASE
)


def _trigrams(text: str) -> Set[str]:
    padded = f"  {text} "
    return {padded[i:i + 3] for i in range(len(padded) - 2)}


class MerchantMatcher:
    """
    Immutable merchant normalizer.

    Args:
        merchant_patterns: Merchant knowledge; defaults to the bundled dataset
        settings: Analyzer switches (fuzzy matching on/off, similarity floor)
    """

    def __init__(
        self,
        merchant_patterns: Optional[Iterable[MerchantPattern]] = None,
        settings: Optional[AnalyzerSettings] = None
    ):
        if merchant_patterns is None:
            merchant_patterns = DEFAULT_MERCHANT_PATTERNS
        self.patterns: Tuple[MerchantPattern, ...] = tuple(merchant_patterns)
        self.settings = settings or AnalyzerSettings()

        self._by_name: Dict[str, MerchantPattern] = {}
        self._aliases: List[Tuple[str, MerchantPattern]] = []
        for pattern in self.patterns:
            self._by_name.setdefault(pattern.name.strip().lower(), pattern)
            for alias in pattern.aliases:
                alias = alias.strip().lower()
                if alias:
                    self._aliases.append((alias, pattern))

        self._domains: Dict[str, Tuple[str, Optional[MerchantPattern]]] = {}
        for stem, canonical in KNOWN_MERCHANT_DOMAINS.items():
            pattern = self._by_name.get(canonical.lower())
            self._domains[stem] = (canonical, pattern)
        for alias, pattern in self._aliases:
            domain = _DOMAIN_RE.fullmatch(alias)
            if domain:
                self._domains.setdefault(domain.group(1).lower(), (pattern.name, pattern))

        # Fuzzy search entries: (text, pattern, is_alias)
        self._entries: List[Tuple[str, MerchantPattern, bool]] = []
        for name, pattern in self._by_name.items():
            self._entries.append((name, pattern, False))
        for alias, pattern in self._aliases:
            self._entries.append((alias, pattern, True))
        self._trigram_index: Dict[str, List[int]] = {}
        for idx, (text, _, _) in enumerate(self._entries):
            for gram in _trigrams(text):
                self._trigram_index.setdefault(gram, []).append(idx)

        logger.debug(
            "MerchantMatcher built: %d patterns, %d aliases, %d domains, %d trigrams",
            len(self.patterns), len(self._aliases), len(self._domains), len(self._trigram_index)
        )

    def with_patterns(self, merchant_patterns: Iterable[MerchantPattern]) -> "MerchantMatcher":
        return MerchantMatcher(merchant_patterns, self.settings)

    def with_added_pattern(self, pattern: MerchantPattern) -> "MerchantMatcher":
        """
        Return a new matcher that also knows ``pattern``.

        Raises:
            MatchingError: If a pattern with the same id is already present
        """
        if any(p.id == pattern.id for p in self.patterns):
            raise MatchingError(f"Merchant pattern {pattern.id!r} already exists", "merchant")
        return MerchantMatcher(self.patterns + (pattern,), self.settings)

    # ------------------------------------------------------------------
    # Strategies (each takes the cleaned, case-preserved input)
    # ------------------------------------------------------------------

    def _build(self, cleaned: str, canonical: str, confidence: float, matched_by: str,
               pattern: Optional[MerchantPattern] = None) -> MerchantMatch:
        return MerchantMatch(
            name=title_case(cleaned),
            canonical_name=canonical,
            confidence=clamp_confidence(confidence),
            matched_by=matched_by,
            category=pattern.category if pattern else None,
            subcategory=pattern.subcategory if pattern else None,
        )

    def _match_exact(self, cleaned: str) -> Optional[MerchantMatch]:
        pattern = self._by_name.get(cleaned.lower())
        if pattern is None:
            return None
        return self._build(cleaned, pattern.name, _CFG["exact_name_confidence"], "exact_match", pattern)

    def _match_regex(self, cleaned: str) -> Optional[MerchantMatch]:
        best_pattern = None
        best_length = 0
        for pattern in self.patterns:
            for regex in pattern.patterns:
                hit = regex.search(cleaned)
                if hit and len(hit.group(0)) > best_length:
                    best_pattern = pattern
                    best_length = len(hit.group(0))
        if best_pattern is None:
            return None
        return self._build(
            cleaned, best_pattern.name, best_pattern.confidence * _CFG["regex_factor"],
            "pattern_match", best_pattern
        )

    def _match_alias(self, cleaned: str) -> Optional[MerchantMatch]:
        lowered = cleaned.lower()
        best = None
        best_length = 0
        for alias, pattern in self._aliases:
            if alias == lowered:
                best = pattern
                break
            contained = keyword_regex(alias).search(lowered) or (
                len(lowered) >= 3 and keyword_regex(lowered).search(alias)
            )
            if contained and len(alias) > best_length:
                best = pattern
                best_length = len(alias)
        if best is None:
            return None
        return self._build(cleaned, best.name, best.confidence * _CFG["alias_factor"], "alias_match", best)

    def _match_domain(self, raw: str) -> Optional[MerchantMatch]:
        domain = _DOMAIN_RE.search(raw)
        if not domain:
            return None
        stem = domain.group(1).lower()
        cleaned = strip_merchant_noise(raw)
        if stem in self._domains:
            canonical, pattern = self._domains[stem]
            return self._build(cleaned, canonical, _CFG["known_domain_confidence"], "domain_match", pattern)

        # An unknown stem resolves exactly as its title-cased guess would on its own
        guess = title_case(stem.replace("-", " "))
        resolved = self._resolve_name(guess)
        if resolved.matched_by != "fallback":
            return replace(resolved, name=title_case(cleaned))
        return self._build(cleaned, guess, _CFG["unknown_domain_confidence"], "domain_guess")

    def _fuzzy_candidates(self, lowered: str) -> List[int]:
        overlap = Counter()
        for gram in _trigrams(lowered):
            for idx in self._trigram_index.get(gram, ()):
                overlap[idx] += 1
        return [idx for idx, _ in overlap.most_common(_CFG["fuzzy_max_candidates"])]

    def _match_fuzzy(self, cleaned: str) -> Optional[MerchantMatch]:
        lowered = cleaned.lower()
        best = None
        for idx in self._fuzzy_candidates(lowered):
            text, pattern, is_alias = self._entries[idx]
            similarity = Levenshtein.normalized_similarity(lowered, text)
            if similarity < self.settings.fuzzy_match_threshold:
                continue
            factor = _CFG["fuzzy_alias_factor"] if is_alias else _CFG["fuzzy_name_factor"]
            confidence = clamp_confidence(similarity * pattern.confidence * factor)
            if best is None or confidence > best.confidence:
                best = self._build(
                    cleaned, pattern.name, confidence,
                    "fuzzy_alias_match" if is_alias else "fuzzy_match", pattern
                )
        return best

    def _fallback(self, cleaned: str) -> MerchantMatch:
        return self._build(cleaned, title_case(cleaned), _CFG["fallback_confidence"], "fallback")

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def _name_strategies(self):
        strategies = [self._match_exact, self._match_regex, self._match_alias]
        if self.settings.enable_fuzzy_matching:
            strategies.append(self._match_fuzzy)
        strategies.append(self._fallback)
        return strategies

    def _strategies(self, raw: str):
        strategies = self._name_strategies()
        strategies.insert(3, lambda _: self._match_domain(raw))
        return strategies

    def _resolve_name(self, cleaned: str) -> MerchantMatch:
        return cascade(
            self._name_strategies(),
            cleaned,
            ANALYZER_CONFIG["acceptance_thresholds"]["merchant"],
            MerchantMatch.empty(),
        )

    def normalize(self, raw_merchant) -> MerchantMatch:
        """
        Normalize a raw merchant string.

        Args:
            raw_merchant: Merchant text as extracted from a message

        Returns:
            MerchantMatch; empty (confidence 0) for blank or non-text input
        """
        if is_blank(raw_merchant):
            return MerchantMatch.empty()
        cleaned = strip_merchant_noise(raw_merchant)
        if not cleaned:
            return MerchantMatch.empty()

        result = cascade(
            self._strategies(raw_merchant),
            cleaned,
            ANALYZER_CONFIG["acceptance_thresholds"]["merchant"],
            MerchantMatch.empty(),
        )
        logger.debug("Normalized merchant %r -> %r (%s, %.2f)",
                     raw_merchant, result.canonical_name, result.matched_by, result.confidence)
        return result

    def get_all_matches(self, raw_merchant) -> List[MerchantMatch]:
        """Every strategy's result, one per canonical name, best first."""
        if is_blank(raw_merchant):
            return []
        cleaned = strip_merchant_noise(raw_merchant)
        if not cleaned:
            return []
        by_name: Dict[str, MerchantMatch] = {}
        for strategy in self._strategies(raw_merchant):
            result = strategy(cleaned)
            if result is None or result.confidence <= 0:
                continue
            current = by_name.get(result.canonical_name)
            if current is None or result.confidence > current.confidence:
                by_name[result.canonical_name] = result
        return sorted(by_name.values(), key=lambda m: m.confidence, reverse=True)

    def get_suggestions(self, partial: str, limit: int = 5) -> List[str]:
        """
        Canonical names for an autocomplete box.

        Prefix matches on names or aliases come first, then fuzzy matches.
        """
        if is_blank(partial) or limit <= 0:
            return []
        needle = partial.strip().lower()
        suggestions: List[str] = []
        for text, pattern, _ in self._entries:
            if text.startswith(needle) and pattern.name not in suggestions:
                suggestions.append(pattern.name)
        if len(suggestions) < limit and self.settings.enable_fuzzy_matching:
            scored = []
            for idx in self._fuzzy_candidates(needle):
                text, pattern, _ = self._entries[idx]
                similarity = Levenshtein.normalized_similarity(needle, text)
                if similarity >= self.settings.fuzzy_match_threshold:
                    scored.append((similarity, pattern.name))
            for _, name in sorted(scored, key=lambda item: item[0], reverse=True):
                if name not in suggestions:
                    suggestions.append(name)
        return suggestions[:limit]

    def get_stats(self) -> Dict:
        categories = Counter(p.category for p in self.patterns if p.category)
        return {
            "total_patterns": len(self.patterns),
            "total_aliases": len(self._aliases),
            "total_domains": len(self._domains),
            "patterns_by_category": dict(categories),
            "fuzzy_matching": self.settings.enable_fuzzy_matching,
        }
