"""
SMS Analyzer.

Orchestrates the pipeline for one message:
Extract (type, amount, date, raw merchant) -> Match (merchant, account)
-> Categorize -> Assemble -> Score.

Every stage degrades to an absent/low-confidence field rather than failing;
only unexpected internal faults turn into ``success=False``.
"""

import logging
from datetime import datetime
from typing import Callable, Iterable, List, NamedTuple, Optional

from ..categorisation.engine import TransactionCategorizer
from ..config.analyzer_config import ANALYZER_CONFIG, AnalyzerSettings
from ..exceptions import InvalidMessageError
from ..extraction.amount import extract_amount, format_amount, validate_amount
from ..extraction.date import extract_date
from ..extraction.merchant import extract_merchant
from ..extraction.preprocess import is_blank
from ..extraction.transaction_type import extract_type
from ..matching.account_matcher import AccountMatcher
from ..matching.merchant_matcher import MerchantMatcher
from ..models import (
    AnalysisResult,
    CategoryMatch,
    ExtractionResult,
    MerchantMatch,
    ParsedTransaction,
    ReferenceContext,
    TransactionType,
)

logger = logging.getLogger(__name__)

_WEIGHTS = ANALYZER_CONFIG["confidence_weights"]


class _Pipeline(NamedTuple):
    """Reference data plus the components derived from it, swapped as one unit."""
    context: ReferenceContext
    account_matcher: AccountMatcher
    merchant_matcher: MerchantMatcher
    categorizer: TransactionCategorizer


class SMSAnalyzer:
    """
    Turns bank notification messages into scored transaction records.

    Args:
        context: Host reference data; an empty context is used when omitted
        settings: Runtime switches, see ``AnalyzerSettings``
        clock: Zero-argument callable returning "now"; inject a fixed clock
            for reproducible date handling
    """

    def __init__(
        self,
        context: Optional[ReferenceContext] = None,
        settings: Optional[AnalyzerSettings] = None,
        clock: Optional[Callable[[], datetime]] = None
    ):
        self.settings = settings or AnalyzerSettings()
        self._clock = clock or datetime.now
        context = context or ReferenceContext()
        self._pipeline = _Pipeline(
            context=context,
            account_matcher=AccountMatcher(context.accounts, context.cards),
            merchant_matcher=self._build_merchant_matcher(context),
            categorizer=TransactionCategorizer(context.categories, context.subcategories),
        )

    def _build_merchant_matcher(self, context: ReferenceContext) -> MerchantMatcher:
        # An empty pattern table falls back to the bundled merchant dataset
        return MerchantMatcher(context.merchant_patterns or None, self.settings)

    def get_context(self) -> ReferenceContext:
        return self._pipeline.context

    def update_context(self, **changes) -> None:
        """
        Replace part of the reference data.

        Accepts any of ``accounts``, ``cards``, ``categories``,
        ``subcategories`` and ``merchant_patterns``; omitted collections keep
        their current value. Only the components that depend on a changed
        collection are rebuilt, and all of them are swapped in together.

        Raises:
            TypeError: For an unknown collection name
            ReferenceDataError: If the merged context is inconsistent
        """
        current = self._pipeline
        context = current.context.with_updates(**changes)

        account_matcher = current.account_matcher
        if "accounts" in changes or "cards" in changes:
            account_matcher = current.account_matcher.with_accounts(context.accounts, context.cards)

        merchant_matcher = current.merchant_matcher
        if "merchant_patterns" in changes:
            merchant_matcher = self._build_merchant_matcher(context)

        categorizer = current.categorizer
        if "categories" in changes or "subcategories" in changes:
            categorizer = current.categorizer.with_categories(context.categories, context.subcategories)

        self._pipeline = _Pipeline(context, account_matcher, merchant_matcher, categorizer)
        logger.info("Reference context updated: %s", ", ".join(sorted(changes)) or "no changes")

    # ------------------------------------------------------------------
    # Analysis
    # ------------------------------------------------------------------

    def analyze(self, text, now: Optional[datetime] = None) -> AnalysisResult:
        """
        Analyze one message.

        Args:
            text: Raw notification text
            now: Reference time for date validation; defaults to the clock

        Returns:
            AnalysisResult; ``success`` is False only for invalid input or an
            internal fault
        """
        if is_blank(text):
            error = InvalidMessageError()
            logger.warning("Rejected message: %s", error)
            return AnalysisResult(success=False, data=None, confidence=0.0, errors=[str(error)])

        try:
            transaction = self._analyze(text, now or self._clock())
        except Exception as e:
            logger.exception("Unexpected error while analyzing message")
            return AnalysisResult(
                success=False, data=None, confidence=0.0,
                errors=[f"Analysis failed: {e}"]
            )

        return AnalysisResult(
            success=True, data=transaction, confidence=transaction.confidence, errors=[]
        )

    def analyze_batch(self, texts: Iterable, now: Optional[datetime] = None) -> List[AnalysisResult]:
        """Analyze several messages against the same reference time."""
        now = now or self._clock()
        return [self.analyze(text, now) for text in texts]

    def _analyze(self, text: str, now: datetime) -> ParsedTransaction:
        pipeline = self._pipeline

        # Step 1: Extract fields
        type_result = extract_type(text)
        amount_result = extract_amount(text)
        if self.settings.enable_date_extraction:
            date_result = extract_date(text, now)
        else:
            date_result = ExtractionResult.empty("disabled")
        raw_merchant = extract_merchant(text)
        logger.debug(
            "Extracted type=%s (%.2f) amount=%s (%.2f) date=%s (%.2f) merchant=%r (%.2f)",
            type_result.value, type_result.confidence,
            amount_result.value, amount_result.confidence,
            date_result.value, date_result.confidence,
            raw_merchant.value, raw_merchant.confidence
        )

        # Step 2: Match merchant and account
        merchant = self._resolve_merchant(pipeline.merchant_matcher, raw_merchant)
        account_result = pipeline.account_matcher.match(text)
        account = account_result.value
        logger.debug("Matched merchant=%r (%s) account=%s",
                     merchant.canonical_name, merchant.matched_by,
                     account.account_id if account else None)

        # Step 3: Categorize
        category = pipeline.categorizer.categorize(
            merchant if merchant.found else None, type_result.value
        )

        # Step 4: Assemble and score
        confidence = self._score(type_result, amount_result, merchant, account_result, category)
        return ParsedTransaction(
            raw_sms=text,
            confidence=confidence,
            transaction_type=type_result.value,
            account_id=account.account_id if account else None,
            account_name=account.account_name if account else None,
            account_kind=account.account_kind if account else None,
            amount=amount_result.value,
            transaction_date=date_result.value,
            merchant=merchant.canonical_name,
            description=self._describe(merchant, type_result.value, amount_result.value),
            category_id=category.category_id,
            category_name=category.category_name,
            subcategory_id=category.subcategory_id,
            subcategory_name=category.subcategory_name,
        )

    def _resolve_merchant(self, matcher: MerchantMatcher, raw_merchant: ExtractionResult) -> MerchantMatch:
        if not raw_merchant.found:
            return MerchantMatch.empty()
        if self.settings.enable_merchant_normalization:
            return matcher.normalize(raw_merchant.value)
        return MerchantMatch(
            name=raw_merchant.value,
            canonical_name=raw_merchant.value,
            confidence=raw_merchant.confidence,
            matched_by="raw_extraction",
        )

    @staticmethod
    def _score(
        type_result: ExtractionResult,
        amount_result: ExtractionResult,
        merchant: MerchantMatch,
        account_result: ExtractionResult,
        category: CategoryMatch
    ) -> float:
        confidence = 0.0
        if type_result.found:
            confidence += _WEIGHTS["transaction_type"] * type_result.confidence
        if amount_result.found and amount_result.value > 0:
            confidence += _WEIGHTS["amount"] * amount_result.confidence
        if merchant.canonical_name:
            confidence += _WEIGHTS["merchant_present"]
        if account_result.found:
            confidence += _WEIGHTS["account"] * account_result.confidence
        if category.found:
            confidence += _WEIGHTS["category"] * category.confidence
        return round(min(confidence, 1.0), 4)

    def _describe(self, merchant: MerchantMatch, tx_type: Optional[TransactionType],
                  amount: Optional[float]) -> str:
        name = merchant.canonical_name or "unknown merchant"
        if tx_type is None or not validate_amount(amount):
            return f"Transaction at {name}"
        action = "received from" if tx_type == TransactionType.CREDIT else "paid to"
        return f"{format_amount(amount, self.settings.default_currency)} {action} {name}"


def create_sms_analyzer(
    context: Optional[ReferenceContext] = None,
    settings: Optional[AnalyzerSettings] = None
) -> SMSAnalyzer:
    """Factory for an analyzer using the system clock."""
    return SMSAnalyzer(context, settings)


def analyze_sms(text, context: Optional[ReferenceContext] = None,
                now: Optional[datetime] = None) -> AnalysisResult:
    """
    One-shot convenience wrapper.

    Builds a fresh analyzer for every call; keep an ``SMSAnalyzer`` around
    when analyzing more than a handful of messages.
    """
    return create_sms_analyzer(context).analyze(text, now)
