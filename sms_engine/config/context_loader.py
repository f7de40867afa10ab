"""
Reference data loaders.
Loads a ReferenceContext from JSON and merchant patterns from CSV.
"""

import csv
import json
import logging
from pathlib import Path
from typing import List, Optional

from ..exceptions import ReferenceDataError
from ..models import MerchantPattern, ReferenceContext
from ..patterns.merchant_patterns import DEFAULT_MERCHANT_PATTERNS

logger = logging.getLogger(__name__)


def load_reference_context(
    json_path: str,
    include_default_merchants: bool = True
) -> ReferenceContext:
    """
    Load reference data from a JSON file.

    Args:
        json_path: Path to JSON file with ``accounts``, ``cards``,
            ``categories``, ``subcategories`` and optional ``merchant_patterns``
        include_default_merchants: Use the built-in merchant dataset when the
            file does not provide ``merchant_patterns``

    Returns:
        ReferenceContext

    Example JSON format:
        {
          "accounts": [{"id": "acc-1", "name": "Salary", "institution": "SBI",
                        "last_four": "9876", "kind": "bank_account"}],
          "categories": [{"id": "needs", "name": "Needs", "direction": "expense"}],
          "subcategories": [{"id": "other", "name": "Other", "category_id": "needs"}]
        }
    """
    json_file = Path(json_path)
    if not json_file.exists():
        raise FileNotFoundError(f"Reference context file not found: {json_path}")

    with open(json_file, "r", encoding="utf-8") as f:
        data = json.load(f)

    if not isinstance(data, dict):
        raise ReferenceDataError(f"{json_path}: expected a JSON object at top level")

    context = ReferenceContext.from_dict(data)
    if include_default_merchants and not data.get("merchant_patterns"):
        context = context.with_updates(merchant_patterns=DEFAULT_MERCHANT_PATTERNS)

    logger.info(
        "Loaded reference context from %s: %d accounts, %d cards, %d categories, "
        "%d subcategories, %d merchant patterns",
        json_path, len(context.accounts), len(context.cards), len(context.categories),
        len(context.subcategories), len(context.merchant_patterns)
    )
    return context


def _split_list(value: Optional[str]) -> List[str]:
    if not value:
        return []
    return [item.strip() for item in value.split("|") if item.strip()]


def load_merchant_patterns_csv(csv_path: str) -> List[MerchantPattern]:
    """
    Load merchant patterns from CSV file.

    Args:
        csv_path: Path to CSV file containing merchant patterns

    Returns:
        List of MerchantPattern

    Example CSV format (list columns are pipe-separated):
        id,name,aliases,patterns,category,subcategory,confidence
        chaayos,Chaayos,chaayos|chaayos cafe,chaayos,Needs,Food & Dining,0.9
    """
    csv_file = Path(csv_path)
    if not csv_file.exists():
        raise FileNotFoundError(f"Merchant pattern file not found: {csv_path}")

    patterns = []
    with open(csv_file, "r", encoding="utf-8") as f:
        reader = csv.DictReader(f)
        for line_no, row in enumerate(reader, start=2):
            merchant_id = (row.get("id") or "").strip()
            if not merchant_id:
                continue
            try:
                confidence = float((row.get("confidence") or "0.8").strip())
            except ValueError:
                raise ReferenceDataError(
                    f"{csv_path}:{line_no}: invalid confidence {row.get('confidence')!r}",
                    entity_id=merchant_id
                )
            patterns.append(MerchantPattern(
                id=merchant_id,
                name=(row.get("name") or "").strip(),
                aliases=tuple(_split_list(row.get("aliases"))),
                patterns=tuple(_split_list(row.get("patterns"))),
                category=(row.get("category") or "").strip() or None,
                subcategory=(row.get("subcategory") or "").strip() or None,
                confidence=confidence,
            ))

    return patterns
