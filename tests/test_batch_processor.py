"""
Tests for the batch processor: file parsing, per-file error handling,
statistics, result merging and the command line entry point.
"""

import io
import json
import os
import tempfile
import unittest
import zipfile

import pandas as pd

from sms_batch_processor import BatchResult, SMSBatchProcessor, main

from sms_fixtures import CARD_PURCHASE_SMS, NON_TRANSACTION_SMS, NOW, SALARY_SMS, build_context


def make_zip(members):
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w") as zf:
        for name, content in members:
            zf.writestr(name, content)
    return buffer.getvalue()


class TestSMSBatchProcessor(unittest.TestCase):
    """Batch processing of message dumps."""

    def setUp(self):
        self.processor = SMSBatchProcessor(build_context(), now=NOW)

    def _mixed_batch(self):
        files = [
            ("alerts.txt", f"{CARD_PURCHASE_SMS}\n\n{SALARY_SMS}\n".encode("utf-8")),
            ("export.json", json.dumps(
                {"messages": [{"id": "m-1", "text": NON_TRANSACTION_SMS}, "   "]}
            ).encode("utf-8")),
            ("broken.json", b"{not json"),
            ("empty.txt", b"\n\n"),
            ("photo.png", b"\x89PNG"),
        ]
        return self.processor.process_batch(files)

    def test_message_refs(self):
        batch = self._mixed_batch()
        refs = [r.message_ref for r in batch.results]
        self.assertEqual(refs, ["alerts:1", "alerts:3", "m-1", "export:2"])

    def test_stats(self):
        stats = self._mixed_batch().stats
        # the unsupported PNG is dropped before processing
        self.assertEqual(stats.total_files, 4)
        self.assertEqual(stats.processed_files, 2)
        self.assertEqual(stats.failed_files, 2)
        self.assertEqual(stats.total_messages, 4)
        self.assertEqual(stats.analyzed, 3)
        self.assertEqual(stats.rejected, 1)
        self.assertEqual(
            (stats.high_confidence, stats.medium_confidence, stats.low_confidence), (1, 1, 1)
        )
        self.assertAlmostEqual(stats.success_rate, 75.0)
        self.assertGreaterEqual(stats.processing_time, 0.0)

    def test_errors(self):
        batch = self._mixed_batch()
        self.assertEqual(batch.error_summary, {
            "ANALYSIS_ERROR": 1,
            "JSON_PARSE_ERROR": 1,
            "DATA_VALIDATION_ERROR": 1,
        })
        by_file = {e.file_name: e for e in batch.errors}
        self.assertEqual(by_file["empty.txt"].error_message, "No messages found in file")
        self.assertEqual(by_file["export.json"].message_ref, "export:2")
        self.assertTrue(by_file["broken.json"].error_message.startswith("Invalid JSON"))

    def test_json_structure_errors(self):
        batch = self.processor.process_batch([
            ("wrapped.json", json.dumps({"sms": []}).encode("utf-8")),
            ("no_text.json", json.dumps([{"id": "x"}]).encode("utf-8")),
            ("numbers.json", json.dumps([1, 2]).encode("utf-8")),
        ])
        self.assertEqual(batch.error_summary, {"INVALID_FILE_STRUCTURE": 2, "DATA_VALIDATION_ERROR": 1})
        self.assertEqual(batch.results, [])

    def test_zip_archives_are_expanded(self):
        archive = make_zip([
            ("dump/alerts.txt", CARD_PURCHASE_SMS),
            ("dump/notes.md", "ignored"),
            ("dump/", ""),
        ])
        batch = self.processor.process_batch([("dump.zip", archive)])
        self.assertEqual(batch.stats.total_files, 1)
        self.assertEqual(batch.results[0].file_name, "alerts.txt")
        self.assertEqual(batch.results[0].result.data.merchant, "Amazon")

    def test_windows_encoded_file(self):
        batch = self.processor.process_batch([("legacy.txt", "Paid Rs 100 at Café Nero".encode("cp1252"))])
        self.assertEqual(batch.stats.analyzed, 1)
        self.assertIn("Café", batch.results[0].result.data.raw_sms)

    def test_progress_callback(self):
        calls = []
        self.processor.process_batch(
            [("a.txt", SALARY_SMS.encode("utf-8")), ("b.txt", CARD_PURCHASE_SMS.encode("utf-8"))],
            progress_callback=lambda current, total, message: calls.append((current, total, message)),
        )
        self.assertEqual(calls, [(1, 2, "Processing: a.txt"), (2, 2, "Processing: b.txt")])

    def test_merge_results(self):
        first = self.processor.process_batch([("a.txt", SALARY_SMS.encode("utf-8"))])
        second = self.processor.process_batch([("b.json", b"[")])
        merged = BatchResult.merge_results(first, second)
        self.assertEqual(merged.stats.total_files, 2)
        self.assertEqual(merged.stats.analyzed, 1)
        self.assertEqual(len(merged.results), 1)
        self.assertEqual(merged.error_summary, {"JSON_PARSE_ERROR": 1})
        self.assertEqual(merged.stats.min_confidence, first.stats.min_confidence)

    def test_dataframes(self):
        batch = self._mixed_batch()
        results = self.processor.results_to_dataframe(batch.results)
        self.assertIsInstance(results, pd.DataFrame)
        self.assertEqual(len(results), 4)
        self.assertEqual(results.iloc[0]["Merchant"], "Amazon")
        self.assertEqual(results.iloc[0]["Account"], "HDFC Regalia")
        self.assertEqual(results.iloc[0]["Date"], "2024-01-15")
        self.assertEqual(results.iloc[3]["Merchant"], "")

        errors = self.processor.errors_to_dataframe(batch.errors)
        self.assertEqual(
            list(errors.columns), ["File Name", "Message Ref", "Error Type", "Error Message", "Timestamp"]
        )
        self.assertEqual(len(errors), 3)

    def test_load_files(self):
        with tempfile.TemporaryDirectory() as temp_dir:
            path = os.path.join(temp_dir, "alerts.txt")
            with open(path, "w", encoding="utf-8") as f:
                f.write(SALARY_SMS)
            self.assertEqual(self.processor.load_files([path]), [("alerts.txt", SALARY_SMS.encode("utf-8"))])
            with self.assertRaises(FileNotFoundError):
                self.processor.load_files([os.path.join(temp_dir, "missing.txt")])


class TestCommandLine(unittest.TestCase):
    """The sms-batch entry point."""

    def setUp(self):
        self.temp_dir = tempfile.TemporaryDirectory()
        self.input_path = os.path.join(self.temp_dir.name, "alerts.txt")
        with open(self.input_path, "w", encoding="utf-8") as f:
            f.write(f"{CARD_PURCHASE_SMS}\n{SALARY_SMS}\n")
        self.output_path = os.path.join(self.temp_dir.name, "out.csv")

    def tearDown(self):
        self.temp_dir.cleanup()

    def test_writes_results_csv(self):
        errors_path = os.path.join(self.temp_dir.name, "errors.csv")
        code = main([self.input_path, "--output", self.output_path, "--errors", errors_path,
                     "--now", "2024-01-20"])
        self.assertEqual(code, 0)
        frame = pd.read_csv(self.output_path)
        self.assertEqual(len(frame), 2)
        self.assertEqual(frame.iloc[0]["Date"], "2024-01-15")
        self.assertTrue(os.path.exists(errors_path))

    def test_failed_file_sets_exit_code(self):
        broken = os.path.join(self.temp_dir.name, "broken.json")
        with open(broken, "w", encoding="utf-8") as f:
            f.write("{")
        self.assertEqual(main([self.input_path, broken, "--output", self.output_path]), 1)

    def test_startup_errors(self):
        missing = os.path.join(self.temp_dir.name, "missing.txt")
        self.assertEqual(main([missing, "--output", self.output_path]), 2)
        self.assertEqual(main([self.input_path, "--now", "20-01-2024", "--output", self.output_path]), 2)


if __name__ == '__main__':
    unittest.main()
