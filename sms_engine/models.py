"""
Data model for the SMS transaction engine.

Reference data (accounts, cards, categories, merchant patterns) is supplied by
the host application and treated as read-only. Match and output types are
plain value objects produced by the extraction pipeline.
"""

import re
from dataclasses import asdict, dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Generic, Iterable, List, Optional, Pattern, Tuple, TypeVar, Union

from .exceptions import ReferenceDataError


T = TypeVar("T")

LAST_FOUR_RE = re.compile(r"[0-9]{4}")


class TransactionType(Enum):
    """Direction of money movement described by a message."""
    DEBIT = "debit"
    CREDIT = "credit"
    TRANSFER = "transfer"
    REFUND = "refund"
    PAYMENT = "payment"
    WITHDRAWAL = "withdrawal"
    DEPOSIT = "deposit"

    @property
    def display_name(self) -> str:
        return self.value.capitalize()


class AccountKind(Enum):
    """Kind of money holder an account or card represents."""
    BANK_ACCOUNT = "bank_account"
    CREDIT_CARD = "credit_card"
    DEBIT_CARD = "debit_card"
    WALLET = "wallet"
    UPI = "upi"


class Direction(Enum):
    """Budget direction of a category."""
    INCOME = "income"
    EXPENSE = "expense"


def _check_last_four(entity_id: str, last_four: Optional[str]) -> None:
    if last_four is None:
        return
    if not isinstance(last_four, str) or not LAST_FOUR_RE.fullmatch(last_four):
        raise ReferenceDataError(
            f"{entity_id}: last four digits must be exactly 4 ASCII digits, got {last_four!r}",
            entity_id=entity_id
        )


def _coerce_enum(enum_cls, value, entity_id: str):
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(str(value).lower())
    except ValueError:
        raise ReferenceDataError(
            f"{entity_id}: unknown {enum_cls.__name__} {value!r}", entity_id=entity_id
        )


@dataclass(frozen=True)
class Account:
    """A bank account (or wallet / UPI handle) known to the host application."""
    id: str
    name: str
    institution: str
    last_four: Optional[str] = None
    kind: AccountKind = AccountKind.BANK_ACCOUNT
    is_active: bool = True

    def __post_init__(self):
        _check_last_four(self.id, self.last_four)
        object.__setattr__(self, "kind", _coerce_enum(AccountKind, self.kind, self.id))


@dataclass(frozen=True)
class Card:
    """A credit or debit card known to the host application."""
    id: str
    name: str
    institution: str
    last_four: Optional[str] = None
    kind: AccountKind = AccountKind.CREDIT_CARD
    is_active: bool = True

    def __post_init__(self):
        _check_last_four(self.id, self.last_four)
        object.__setattr__(self, "kind", _coerce_enum(AccountKind, self.kind, self.id))


Holding = Union[Account, Card]


@dataclass(frozen=True)
class Category:
    """Top level budget category."""
    id: str
    name: str
    direction: Direction = Direction.EXPENSE
    is_active: bool = True
    color: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, "direction", _coerce_enum(Direction, self.direction, self.id))


@dataclass(frozen=True)
class Subcategory:
    """Budget subcategory belonging to exactly one category."""
    id: str
    name: str
    category_id: str
    is_active: bool = True


@dataclass(frozen=True)
class MerchantPattern:
    """
    Curated knowledge about one merchant.

    Regex patterns may be given as strings; they are compiled
    case-insensitively on construction.
    """
    id: str
    name: str
    aliases: Tuple[str, ...] = ()
    patterns: Tuple[Pattern, ...] = ()
    category: Optional[str] = None
    subcategory: Optional[str] = None
    confidence: float = 0.8

    def __post_init__(self):
        if not self.name or not self.name.strip():
            raise ReferenceDataError(f"{self.id}: merchant pattern needs a name", entity_id=self.id)
        if not 0.0 <= self.confidence <= 1.0:
            raise ReferenceDataError(
                f"{self.id}: confidence {self.confidence} outside [0, 1]", entity_id=self.id
            )
        object.__setattr__(self, "aliases", tuple(self.aliases))
        compiled = []
        for pattern in self.patterns:
            if isinstance(pattern, str):
                try:
                    pattern = re.compile(pattern, re.IGNORECASE)
                except re.error as e:
                    raise ReferenceDataError(
                        f"{self.id}: invalid pattern {pattern!r}: {e}", entity_id=self.id
                    )
            compiled.append(pattern)
        object.__setattr__(self, "patterns", tuple(compiled))


@dataclass(frozen=True)
class ReferenceContext:
    """
    Snapshot of host reference data used by one analyzer.

    Replaced wholesale via ``with_updates``; the pipeline never mutates it.
    """
    accounts: Tuple[Account, ...] = ()
    cards: Tuple[Card, ...] = ()
    categories: Tuple[Category, ...] = ()
    subcategories: Tuple[Subcategory, ...] = ()
    merchant_patterns: Tuple[MerchantPattern, ...] = ()

    def __post_init__(self):
        for name in ("accounts", "cards", "categories", "subcategories", "merchant_patterns"):
            object.__setattr__(self, name, tuple(getattr(self, name) or ()))
        self._validate()

    def _validate(self) -> None:
        active_categories = {c.id for c in self.categories if c.is_active}
        for sub in self.subcategories:
            if sub.is_active and sub.category_id not in active_categories:
                raise ReferenceDataError(
                    f"Active subcategory {sub.id!r} references missing or inactive "
                    f"category {sub.category_id!r}",
                    entity_id=sub.id
                )

    def with_updates(
        self,
        accounts: Optional[Iterable[Account]] = None,
        cards: Optional[Iterable[Card]] = None,
        categories: Optional[Iterable[Category]] = None,
        subcategories: Optional[Iterable[Subcategory]] = None,
        merchant_patterns: Optional[Iterable[MerchantPattern]] = None,
    ) -> "ReferenceContext":
        """Return a new context; collections left as None keep their current value."""
        changes = {
            "accounts": accounts,
            "cards": cards,
            "categories": categories,
            "subcategories": subcategories,
            "merchant_patterns": merchant_patterns,
        }
        return replace(self, **{k: tuple(v) for k, v in changes.items() if v is not None})

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ReferenceContext":
        """
        Build a context from plain JSON-like data.

        Args:
            data: Mapping with optional ``accounts``, ``cards``, ``categories``,
                ``subcategories`` and ``merchant_patterns`` lists of dicts.

        Returns:
            ReferenceContext

        Raises:
            ReferenceDataError: If an entry is missing required fields or is invalid
        """
        def build(kind, items):
            built = []
            for idx, item in enumerate(items or []):
                try:
                    built.append(kind(**item))
                except TypeError as e:
                    raise ReferenceDataError(f"Invalid {kind.__name__} entry #{idx}: {e}")
            return built

        return cls(
            accounts=build(Account, data.get("accounts")),
            cards=build(Card, data.get("cards")),
            categories=build(Category, data.get("categories")),
            subcategories=build(Subcategory, data.get("subcategories")),
            merchant_patterns=build(MerchantPattern, data.get("merchant_patterns")),
        )


@dataclass(frozen=True)
class ExtractionResult(Generic[T]):
    """
    Best-guess value for one field plus how it was found.

    ``value is None`` together with ``confidence == 0`` means no match.
    """
    value: Optional[T]
    confidence: float
    matched_span: str = ""
    method: str = "no_match"

    @classmethod
    def empty(cls, method: str = "no_match") -> "ExtractionResult":
        return cls(value=None, confidence=0.0, matched_span="", method=method)

    @property
    def found(self) -> bool:
        return self.value is not None and self.confidence > 0


@dataclass(frozen=True)
class AccountMatch:
    """An account or card resolved from message text."""
    account_id: str
    account_name: str
    account_kind: AccountKind
    confidence: float
    matched_by: str  # 'last_four_digits', 'bank_name', 'account_name', 'pattern'

    @property
    def digit_based(self) -> bool:
        return self.matched_by in ("last_four_digits", "pattern")


@dataclass(frozen=True)
class MerchantMatch:
    """Normalization of a raw merchant string."""
    name: str
    canonical_name: str
    confidence: float
    matched_by: Optional[str] = None  # 'exact_match', 'pattern_match', 'alias_match', ...
    category: Optional[str] = None
    subcategory: Optional[str] = None

    @classmethod
    def empty(cls) -> "MerchantMatch":
        return cls(name="", canonical_name="", confidence=0.0)

    @property
    def found(self) -> bool:
        return bool(self.canonical_name) and self.confidence > 0


@dataclass(frozen=True)
class CategoryMatch:
    """Result of transaction categorization."""
    category_id: Optional[str]
    category_name: Optional[str]
    subcategory_id: Optional[str]
    subcategory_name: Optional[str]
    confidence: float
    matched_by: Optional[str] = None  # 'merchant_mapping', 'keyword_match', ...

    @classmethod
    def empty(cls) -> "CategoryMatch":
        return cls(None, None, None, None, 0.0, None)

    @property
    def found(self) -> bool:
        return self.category_id is not None and self.confidence > 0


@dataclass(frozen=True)
class ParsedTransaction:
    """Structured transaction assembled from one message."""
    raw_sms: str
    confidence: float
    transaction_type: Optional[TransactionType] = None
    account_id: Optional[str] = None
    account_name: Optional[str] = None
    account_kind: Optional[AccountKind] = None
    amount: Optional[float] = None
    transaction_date: Optional[datetime] = None
    merchant: str = ""
    description: str = ""
    category_id: Optional[str] = None
    category_name: Optional[str] = None
    subcategory_id: Optional[str] = None
    subcategory_name: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["transaction_type"] = self.transaction_type.value if self.transaction_type else None
        data["account_kind"] = self.account_kind.value if self.account_kind else None
        data["transaction_date"] = (
            self.transaction_date.isoformat() if self.transaction_date else None
        )
        return data


@dataclass(frozen=True)
class AnalysisResult:
    """Envelope returned to the host for every analyzed message."""
    success: bool
    data: Optional[ParsedTransaction] = None
    confidence: float = 0.0
    errors: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "data": self.data.to_dict() if self.data else None,
            "confidence": self.confidence,
            "errors": list(self.errors),
        }
