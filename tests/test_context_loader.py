"""
Tests for reference data: model validation and the JSON/CSV loaders.
"""

import json
import os
import tempfile
import unittest

from sms_engine.config.context_loader import load_merchant_patterns_csv, load_reference_context
from sms_engine.exceptions import ReferenceDataError
from sms_engine.models import (
    Account,
    AccountKind,
    Category,
    Direction,
    MerchantPattern,
    ReferenceContext,
    Subcategory,
)
from sms_engine.patterns.merchant_patterns import DEFAULT_MERCHANT_PATTERNS


class TestReferenceModels(unittest.TestCase):
    """Validation performed when reference data is constructed."""

    def test_last_four_must_be_four_digits(self):
        for bad in ("123", "12345", "12a4", 1234):
            with self.subTest(last_four=bad):
                with self.assertRaises(ReferenceDataError):
                    Account(id="acc", name="Savings", institution="Axis Bank", last_four=bad)

    def test_subcategory_needs_active_category(self):
        with self.assertRaises(ReferenceDataError):
            ReferenceContext(
                categories=[Category(id="needs", name="Needs", is_active=False)],
                subcategories=[Subcategory(id="food", name="Food", category_id="needs")],
            )

    def test_merchant_pattern_compiles_strings(self):
        pattern = MerchantPattern(id="chaayos", name="Chaayos", patterns=(r"chaayos",))
        self.assertTrue(pattern.patterns[0].search("CHAAYOS CP"))
        with self.assertRaises(ReferenceDataError):
            MerchantPattern(id="bad", name="Bad", patterns=(r"(unclosed",))
        with self.assertRaises(ReferenceDataError):
            MerchantPattern(id="bad", name="Bad", confidence=1.5)

    def test_with_updates_returns_new_context(self):
        context = ReferenceContext(categories=[Category(id="needs", name="Needs")])
        updated = context.with_updates(accounts=[Account(id="a", name="A", institution="Axis Bank")])
        self.assertEqual(len(updated.accounts), 1)
        self.assertEqual(updated.categories, context.categories)
        self.assertEqual(context.accounts, ())

    def test_from_dict_coerces_enums(self):
        context = ReferenceContext.from_dict({
            "cards": [{"id": "c1", "name": "Axis Debit", "institution": "Axis Bank",
                       "last_four": "4321", "kind": "debit_card"}],
            "categories": [{"id": "inc", "name": "Income", "direction": "INCOME"}],
        })
        self.assertEqual(context.cards[0].kind, AccountKind.DEBIT_CARD)
        self.assertEqual(context.categories[0].direction, Direction.INCOME)

    def test_from_dict_rejects_unknown_fields(self):
        with self.assertRaises(ReferenceDataError):
            ReferenceContext.from_dict({"accounts": [{"id": "a", "name": "A", "institution": "X", "colour": "red"}]})


class TestContextLoader(unittest.TestCase):
    """Loading reference data from files."""

    def setUp(self):
        self.temp_dir = tempfile.TemporaryDirectory()

    def tearDown(self):
        self.temp_dir.cleanup()

    def _write(self, name, content):
        path = os.path.join(self.temp_dir.name, name)
        with open(path, "w", encoding="utf-8") as f:
            f.write(content)
        return path

    def test_load_reference_context(self):
        path = self._write("context.json", json.dumps({
            "accounts": [{"id": "acc-1", "name": "Salary", "institution": "State Bank of India",
                          "last_four": "9876"}],
            "categories": [{"id": "needs", "name": "Needs", "direction": "expense"}],
            "subcategories": [{"id": "other", "name": "Other", "category_id": "needs"}],
        }))
        context = load_reference_context(path)
        self.assertEqual(context.accounts[0].last_four, "9876")
        self.assertEqual(context.subcategories[0].category_id, "needs")
        self.assertEqual(context.merchant_patterns, DEFAULT_MERCHANT_PATTERNS)

    def test_default_merchants_can_be_skipped(self):
        path = self._write("context.json", "{}")
        context = load_reference_context(path, include_default_merchants=False)
        self.assertEqual(context.merchant_patterns, ())

    def test_missing_file(self):
        with self.assertRaises(FileNotFoundError):
            load_reference_context(os.path.join(self.temp_dir.name, "missing.json"))

    def test_top_level_must_be_object(self):
        path = self._write("context.json", "[]")
        with self.assertRaises(ReferenceDataError):
            load_reference_context(path)

    def test_load_merchant_patterns_csv(self):
        path = self._write("merchants.csv", (
            "id,name,aliases,patterns,category,subcategory,confidence\n"
            "chaayos,Chaayos,chaayos|chaayos cafe,chaayos,Needs,Food & Dining,0.9\n"
            ",Skipped,,,,,\n"
            "bookshop,Book Shop,,,,,\n"
        ))
        patterns = load_merchant_patterns_csv(path)
        self.assertEqual([p.id for p in patterns], ["chaayos", "bookshop"])
        self.assertEqual(patterns[0].aliases, ("chaayos", "chaayos cafe"))
        self.assertEqual(patterns[0].confidence, 0.9)
        self.assertTrue(patterns[0].patterns[0].search("Chaayos Cyber Hub"))
        self.assertIsNone(patterns[1].category)
        self.assertEqual(patterns[1].confidence, 0.8)

    def test_invalid_confidence_in_csv(self):
        path = self._write("merchants.csv", (
            "id,name,aliases,patterns,category,subcategory,confidence\n"
            "chaayos,Chaayos,,,,,high\n"
        ))
        with self.assertRaises(ReferenceDataError):
            load_merchant_patterns_csv(path)


if __name__ == '__main__':
    unittest.main()
