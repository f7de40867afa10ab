"""
Tests for the field extractors: amount, date, transaction type and raw merchant,
plus the shared preprocessing and cascade helpers.
"""

import unittest
from datetime import datetime
from unittest.mock import Mock

from sms_engine.exceptions import ExtractionError
from sms_engine.extraction.amount import extract_amount, format_amount, parse_amount_string, validate_amount
from sms_engine.extraction.date import extract_date, extract_multiple_dates, format_date, validate_date
from sms_engine.extraction.merchant import extract_merchant, extract_multiple_merchants, validate_merchant
from sms_engine.extraction.pattern_matching import cascade, clamp_confidence, find_keyword
from sms_engine.extraction.preprocess import clean_merchant_name, strip_merchant_noise, title_case
from sms_engine.extraction.transaction_type import (
    extract_all_possible_types,
    extract_type,
    validate_transaction_type,
)
from sms_engine.models import ExtractionResult, TransactionType

from sms_fixtures import NOW


class TestAmountExtraction(unittest.TestCase):
    """Amount extraction and formatting."""

    def test_currency_prefixed_indian_grouping(self):
        result = extract_amount("Rs.1,50,000.50 credited to your account")
        self.assertEqual(result.value, 150000.5)
        self.assertEqual(result.method, "currency_prefix")
        self.assertEqual(result.confidence, 1.0)

    def test_currency_prefix_with_space(self):
        result = extract_amount("Debit of INR 670 from HDFC Card 6789")
        self.assertEqual(result.value, 670.0)
        self.assertEqual(result.method, "currency_prefix")

    def test_keyword_preceded_amount(self):
        result = extract_amount("Amount debited: 2500 from your account")
        self.assertEqual(result.value, 2500.0)
        self.assertEqual(result.method, "keyword_preceded")

    def test_currency_suffix_amount(self):
        result = extract_amount("You spent 499 rupees at Cafe")
        self.assertEqual(result.value, 499.0)
        self.assertEqual(result.method, "currency_suffix")

    def test_fallback_number_needs_payment_context(self):
        result = extract_amount("Please pay 1500 by Friday")
        self.assertEqual(result.value, 1500.0)
        self.assertEqual(result.method, "fallback_numeric")
        self.assertEqual(result.confidence, 0.3)

    def test_no_amount(self):
        result = extract_amount("Hello there")
        self.assertFalse(result.found)
        self.assertEqual(result.method, "no_match")

    def test_invalid_input(self):
        for value in (None, "", "   ", 42):
            result = extract_amount(value)
            self.assertIsNone(result.value)
            self.assertEqual(result.confidence, 0.0)
            self.assertEqual(result.method, "invalid_input")

    def test_parse_amount_string(self):
        self.assertEqual(parse_amount_string("1,00,000.50"), 100000.5)
        self.assertEqual(parse_amount_string("2500"), 2500.0)
        with self.assertRaises(ExtractionError):
            parse_amount_string("abc")
        with self.assertRaises(ExtractionError):
            parse_amount_string(None)

    def test_validate_amount(self):
        self.assertTrue(validate_amount(670))
        self.assertTrue(validate_amount(0.5))
        self.assertFalse(validate_amount(0))
        self.assertFalse(validate_amount(-10))
        self.assertFalse(validate_amount(True))
        self.assertFalse(validate_amount(float("nan")))
        self.assertFalse(validate_amount(float("inf")))
        self.assertFalse(validate_amount(100_000_000))
        self.assertFalse(validate_amount("500"))

    def test_format_amount(self):
        self.assertEqual(format_amount(150000.5), "₹1,50,000.50")
        self.assertEqual(format_amount(670), "₹670")
        self.assertEqual(format_amount(1234567), "₹12,34,567")
        self.assertEqual(format_amount(99.9, currency="Rs "), "Rs 99.90")
        with self.assertRaises(ExtractionError):
            format_amount(-5)

    def test_formatted_amount_parses_back(self):
        for value in (670, 1234.5, 99999.99, 150000.5, 1234567):
            with self.subTest(value=value):
                self.assertEqual(parse_amount_string(format_amount(value, currency="")), value)


class TestDateExtraction(unittest.TestCase):
    """Date extraction relative to a fixed reference time."""

    def test_day_month_year(self):
        result = extract_date("Txn on 15/01/2024", NOW)
        self.assertEqual(result.value, datetime(2024, 1, 15))
        self.assertEqual(result.method, "dd_mm_yyyy")
        self.assertEqual(result.confidence, 1.0)

    def test_two_digit_year(self):
        result = extract_date("Txn on 15/01/24", NOW)
        self.assertEqual(result.value, datetime(2024, 1, 15))
        self.assertEqual(result.method, "dd_mm_yy")

    def test_named_month(self):
        result = extract_date("Spent Rs 200 on 5 Jan 2024", NOW)
        self.assertEqual(result.value, datetime(2024, 1, 5))
        self.assertEqual(result.method, "dd_mon_yyyy")

    def test_iso_date(self):
        result = extract_date("Txn dated 2023-12-28", NOW)
        self.assertEqual(result.value, datetime(2023, 12, 28))
        self.assertEqual(result.method, "iso")

    def test_dates_outside_window_are_rejected(self):
        self.assertFalse(extract_date("Txn on 15/01/2020", NOW).found)
        # more than a week in the future
        self.assertFalse(extract_date("Due on 30/01/2024", NOW).found)

    def test_impossible_calendar_date(self):
        self.assertFalse(extract_date("Txn on 31/02/2024", NOW).found)

    def test_recency_keyword_uses_reference_time(self):
        result = extract_date("Paid just now", NOW)
        self.assertEqual(result.value, NOW)
        self.assertEqual(result.method, "fallback_current_date")
        self.assertEqual(result.confidence, 0.3)

    def test_time_only(self):
        result = extract_date("Card used at 14:35", NOW)
        self.assertEqual(result.value, datetime(2024, 1, 20, 14, 35))
        self.assertEqual(result.method, "fallback_time_today")
        self.assertEqual(result.confidence, 0.4)

    def test_invalid_input(self):
        self.assertEqual(extract_date(None, NOW).method, "invalid_input")

    def test_multiple_dates_one_per_day(self):
        results = extract_multiple_dates("Booked on 10/01/2024, travel on 2024-01-18", NOW)
        self.assertEqual(
            sorted(r.value for r in results),
            [datetime(2024, 1, 10), datetime(2024, 1, 18)]
        )

    def test_validate_date(self):
        self.assertTrue(validate_date(datetime(2023, 1, 21), NOW))
        self.assertTrue(validate_date(datetime(2024, 1, 27), NOW))
        self.assertFalse(validate_date(datetime(2023, 1, 19), NOW))
        self.assertFalse(validate_date("2024-01-15", NOW))

    def test_format_date(self):
        value = datetime(2024, 1, 15)
        self.assertEqual(format_date(value), "15/01/2024")
        self.assertEqual(format_date(value, "long"), "15 January 2024")
        self.assertEqual(format_date(value, "iso"), "2024-01-15")
        with self.assertRaises(ValueError):
            format_date(value, "roman")


class TestTransactionTypeExtraction(unittest.TestCase):
    """Transaction type classification."""

    def test_debit(self):
        result = extract_type("Rs 500 debited from a/c XX1234")
        self.assertEqual(result.value, TransactionType.DEBIT)
        self.assertEqual(result.method, "keyword_match")

    def test_credit(self):
        result = extract_type("Rs 2000 credited to your account towards salary")
        self.assertEqual(result.value, TransactionType.CREDIT)

    def test_atm_withdrawal_beats_plain_debit(self):
        result = extract_type("Rs 300 withdrawn at ATM")
        self.assertEqual(result.value, TransactionType.WITHDRAWAL)
        self.assertEqual(result.confidence, 1.0)

    def test_upi_transfer(self):
        result = extract_type("UPI transfer of Rs 100 to John")
        self.assertEqual(result.value, TransactionType.TRANSFER)

    def test_context_inference(self):
        result = extract_type("Shopping at the mall")
        self.assertEqual(result.value, TransactionType.DEBIT)
        self.assertEqual(result.method, "context_inference")
        self.assertEqual(result.confidence, 0.5)

    def test_no_type(self):
        self.assertFalse(extract_type("Hello").found)
        self.assertEqual(extract_type("").method, "invalid_input")

    def test_all_possible_types(self):
        text = "Rs 500 debited via UPI transfer to Ravi"
        results = extract_all_possible_types(text)
        types = [r.value for r in results]
        self.assertIn(TransactionType.DEBIT, types)
        self.assertIn(TransactionType.TRANSFER, types)
        self.assertEqual(len(types), len(set(types)))
        self.assertTrue(all(r.confidence > 0.3 for r in results))
        confidences = [r.confidence for r in results]
        self.assertEqual(confidences, sorted(confidences, reverse=True))
        self.assertEqual(results[0].value, extract_type(text).value)

    def test_all_possible_types_without_match(self):
        self.assertEqual(extract_all_possible_types("Hello"), [])
        self.assertEqual(extract_all_possible_types(None), [])

    def test_validate_transaction_type(self):
        self.assertTrue(validate_transaction_type("debit"))
        self.assertTrue(validate_transaction_type("REFUND"))
        self.assertTrue(validate_transaction_type(TransactionType.CREDIT))
        self.assertFalse(validate_transaction_type("loan"))


class TestMerchantExtraction(unittest.TestCase):
    """Raw merchant extraction."""

    def test_at_template(self):
        result = extract_merchant("Rs 250 spent at Cafe Coffee Day on 12/01/2024")
        self.assertEqual(result.value, "Cafe Coffee Day")
        self.assertEqual(result.method, "template_at")

    def test_domain_is_cleaned(self):
        result = extract_merchant("Debit of INR 670 from HDFC Card 6789 at Amazon.in on 15/01/2024")
        self.assertEqual(result.value, "Amazon")
        self.assertEqual(result.confidence, 0.95)

    def test_upi_handle(self):
        result = extract_merchant("Rs 100 debited via UPI/123456789012/SWIGGY/ref")
        self.assertEqual(result.value, "Swiggy")
        self.assertEqual(result.method, "template_upi")

    def test_bank_words_are_not_merchants(self):
        self.assertFalse(extract_merchant("Rs 500 debited from your HDFC Bank account").found)

    def test_multiple_merchants(self):
        text = "Rs 250 spent at Cafe Coffee Day on 12/01/2024"
        results = extract_multiple_merchants(text)
        values = [r.value for r in results]
        self.assertIn("Cafe Coffee Day", values)
        self.assertEqual(len(values), len(set(values)))
        self.assertTrue(all(r.confidence > 0.2 for r in results))
        confidences = [r.confidence for r in results]
        self.assertEqual(confidences, sorted(confidences, reverse=True))
        self.assertEqual(results[0].confidence, extract_merchant(text).confidence)

    def test_multiple_merchants_without_match(self):
        self.assertEqual(extract_multiple_merchants("Rs 500 debited from your HDFC Bank account"), [])
        self.assertEqual(extract_multiple_merchants(""), [])

    def test_validate_merchant(self):
        self.assertTrue(validate_merchant("Amazon"))
        self.assertFalse(validate_merchant("12/01/2024"))
        self.assertFalse(validate_merchant("12345"))
        self.assertFalse(validate_merchant("A"))
        self.assertFalse(validate_merchant("Axis Card"))
        self.assertFalse(validate_merchant(None))


class TestExtractorInputHandling(unittest.TestCase):
    """Every extractor returns a result for any input instead of raising."""

    def setUp(self):
        self.extractors = {
            "amount": extract_amount,
            "date": lambda text: extract_date(text, NOW),
            "type": extract_type,
            "merchant": extract_merchant,
        }

    def test_non_string_input(self):
        for name, extractor in self.extractors.items():
            for value in (123, 12.5, b"Rs 500 debited", ["Rs 500 debited"], None):
                with self.subTest(extractor=name, value=value):
                    result = extractor(value)
                    self.assertIsNone(result.value)
                    self.assertEqual(result.confidence, 0.0)
                    self.assertEqual(result.method, "invalid_input")

    def test_multi_kilobyte_text_without_fields(self):
        text = "lorem ipsum dolor " * 300
        self.assertGreater(len(text), 5000)
        for name, extractor in self.extractors.items():
            with self.subTest(extractor=name):
                result = extractor(text)
                self.assertIsNone(result.value)
                self.assertEqual(result.confidence, 0.0)
                self.assertEqual(result.method, "no_match")

    def test_multi_kilobyte_text_with_fields(self):
        text = "lorem ipsum dolor " * 300 + "Rs 250 debited on 15/01/2024"
        self.assertEqual(extract_amount(text).value, 250.0)
        self.assertEqual(extract_date(text, NOW).value, datetime(2024, 1, 15))
        self.assertEqual(extract_type(text).value, TransactionType.DEBIT)

    def test_multi_kilobyte_input_for_list_helpers(self):
        text = "lorem ipsum dolor " * 300
        self.assertEqual(extract_all_possible_types(text), [])
        self.assertEqual(extract_multiple_merchants(text), [])
        self.assertEqual(extract_multiple_dates(text, NOW), [])
        self.assertEqual(extract_all_possible_types(123), [])


class TestPreprocessing(unittest.TestCase):

    def test_clean_merchant_name(self):
        self.assertEqual(clean_merchant_name("www.AMAZON.in "), "Amazon")
        self.assertEqual(clean_merchant_name("*BIG BAZAAR#."), "Big Bazaar")

    def test_strip_merchant_noise_keeps_case(self):
        self.assertEqual(strip_merchant_noise("https://www.flipkart.com/"), "flipkart")
        self.assertEqual(strip_merchant_noise("AMZN  Mktp"), "AMZN Mktp")

    def test_title_case(self):
        self.assertEqual(title_case("hello WORLD"), "Hello World")

    def test_find_keyword_whole_words(self):
        self.assertEqual(find_keyword("Rs 500 debited from a/c", ["credited", "debited"]), "debited")
        self.assertIsNone(find_keyword("undebitedness", ["debited"]))

    def test_clamp_confidence(self):
        self.assertEqual(clamp_confidence(1.3), 1.0)
        self.assertEqual(clamp_confidence(-0.2), 0.0)
        self.assertEqual(clamp_confidence(0.123456), 0.1235)


class TestCascade(unittest.TestCase):
    """Ordered strategy selection."""

    @staticmethod
    def _result(confidence, method):
        return ExtractionResult(value=method, confidence=confidence, method=method)

    def test_first_result_above_threshold_stops_evaluation(self):
        later = Mock(return_value=self._result(0.99, "later"))
        result = cascade(
            [lambda _: self._result(0.6, "first"), later], "subject", 0.5, ExtractionResult.empty()
        )
        self.assertEqual(result.method, "first")
        later.assert_not_called()

    def test_best_result_when_none_above_threshold(self):
        result = cascade(
            [
                lambda _: self._result(0.3, "weak"),
                lambda _: None,
                lambda _: self._result(0.45, "better"),
                lambda _: self._result(0.45, "tied"),
            ],
            "subject", 0.5, ExtractionResult.empty()
        )
        self.assertEqual(result.method, "better")

    def test_empty_when_nothing_matches(self):
        empty = ExtractionResult.empty()
        result = cascade([lambda _: None, lambda _: self._result(0.0, "zero")], "subject", 0.5, empty)
        self.assertIs(result, empty)

    def test_each_strategy_runs_once(self):
        strategy = Mock(return_value=self._result(0.2, "weak"))
        cascade([strategy], "subject", 0.5, ExtractionResult.empty())
        strategy.assert_called_once_with("subject")


if __name__ == '__main__':
    unittest.main()
