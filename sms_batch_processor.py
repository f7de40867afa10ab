"""
SMS Batch Processor for analyzing exported message dumps.
Handles TXT, JSON and ZIP inputs with per-file error handling.
"""

import argparse
import io
import json
import logging
import os
import sys
import traceback
import zipfile
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from sms_engine.analysis.analyzer import SMSAnalyzer
from sms_engine.config.analyzer_config import AnalyzerSettings
from sms_engine.config.context_loader import load_merchant_patterns_csv, load_reference_context
from sms_engine.models import AnalysisResult, ReferenceContext

logger = logging.getLogger(__name__)

SUPPORTED_EXTENSIONS = (".txt", ".json")

# Confidence bands used in summaries
HIGH_CONFIDENCE = 0.8
MEDIUM_CONFIDENCE = 0.6


class InvalidFileStructureError(Exception):
    """Raised when a file cannot be turned into a list of messages."""
    pass


@dataclass
class ProcessingError:
    """Details of a processing error."""
    file_name: str
    error_type: str
    error_message: str
    message_ref: Optional[str] = None
    timestamp: str = field(default_factory=lambda: datetime.now().isoformat())


@dataclass
class MessageResult:
    """Analysis outcome for one message of a batch."""
    message_ref: str
    file_name: str
    result: AnalysisResult


@dataclass
class BatchStats:
    """Statistics for batch processing."""
    total_files: int = 0
    processed_files: int = 0
    failed_files: int = 0

    # Message counts
    total_messages: int = 0
    analyzed: int = 0
    rejected: int = 0

    # Confidence bands
    high_confidence: int = 0
    medium_confidence: int = 0
    low_confidence: int = 0

    # Confidence statistics
    total_confidence: float = 0.0
    min_confidence: float = 1.0
    max_confidence: float = 0.0

    # Timing
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None

    @property
    def average_confidence(self) -> float:
        if self.analyzed == 0:
            return 0.0
        return self.total_confidence / self.analyzed

    @property
    def processing_time(self) -> float:
        """Total processing time in seconds."""
        if self.start_time and self.end_time:
            return (self.end_time - self.start_time).total_seconds()
        return 0.0

    @property
    def success_rate(self) -> float:
        """Share of messages analyzed successfully, as a percentage."""
        if self.total_messages == 0:
            return 0.0
        return (self.analyzed / self.total_messages) * 100

    def record(self, result: AnalysisResult) -> None:
        self.total_messages += 1
        if not result.success:
            self.rejected += 1
            return
        self.analyzed += 1
        self.total_confidence += result.confidence
        self.min_confidence = min(self.min_confidence, result.confidence)
        self.max_confidence = max(self.max_confidence, result.confidence)
        if result.confidence >= HIGH_CONFIDENCE:
            self.high_confidence += 1
        elif result.confidence >= MEDIUM_CONFIDENCE:
            self.medium_confidence += 1
        else:
            self.low_confidence += 1


@dataclass
class BatchResult:
    """Complete result of batch processing."""
    stats: BatchStats
    results: List[MessageResult]
    errors: List[ProcessingError]
    error_summary: Dict[str, int] = field(default_factory=dict)

    @staticmethod
    def merge_results(result1: "BatchResult", result2: "BatchResult") -> "BatchResult":
        """
        Merge two BatchResult objects into a single combined result.

        Used when several uploads are reviewed together.

        Args:
            result1: First batch result (typically the existing cumulative result)
            result2: Second batch result (typically the new batch to add)

        Returns:
            New BatchResult with merged data
        """
        s1, s2 = result1.stats, result2.stats
        merged = BatchStats()

        for name in (
            "total_files", "processed_files", "failed_files", "total_messages", "analyzed",
            "rejected", "high_confidence", "medium_confidence", "low_confidence", "total_confidence",
        ):
            setattr(merged, name, getattr(s1, name) + getattr(s2, name))

        with_data = [s for s in (s1, s2) if s.analyzed > 0]
        if with_data:
            merged.min_confidence = min(s.min_confidence for s in with_data)
            merged.max_confidence = max(s.max_confidence for s in with_data)
        else:
            merged.min_confidence = 0.0
            merged.max_confidence = 0.0

        starts = [s.start_time for s in (s1, s2) if s.start_time]
        ends = [s.end_time for s in (s1, s2) if s.end_time]
        merged.start_time = min(starts) if starts else None
        merged.end_time = max(ends) if ends else None

        error_summary = dict(result1.error_summary)
        for error_type, count in result2.error_summary.items():
            error_summary[error_type] = error_summary.get(error_type, 0) + count

        return BatchResult(
            stats=merged,
            results=result1.results + result2.results,
            errors=result1.errors + result2.errors,
            error_summary=error_summary
        )


class SMSBatchProcessor:
    """Batch processor for SMS dumps."""

    def __init__(
        self,
        context: Optional[ReferenceContext] = None,
        settings: Optional[AnalyzerSettings] = None,
        now: Optional[datetime] = None
    ):
        """
        Initialize the batch processor.

        Args:
            context: Reference data used to resolve accounts, merchants and categories
            settings: Analyzer switches
            now: Fixed reference time for date validation (default: wall clock per batch)
        """
        self.context = context or ReferenceContext()
        self.now = now
        self.analyzer = SMSAnalyzer(self.context, settings)

        logger.info(
            f"Initialized batch processor: {len(self.context.accounts)} accounts, "
            f"{len(self.context.cards)} cards, {len(self.context.categories)} categories"
        )

    def process_batch(
        self,
        files: List[Tuple[str, bytes]],
        progress_callback: Optional[Callable[[int, int, str], None]] = None,
        now: Optional[datetime] = None
    ) -> BatchResult:
        """
        Process a batch of message files.

        Args:
            files: List of (filename, content) tuples; ZIP archives are expanded
            progress_callback: Optional callback(current, total, message)
            now: Reference time overriding the processor default

        Returns:
            BatchResult with all processing results
        """
        files = self.expand_archives(files)
        now = now or self.now or datetime.now()

        stats = BatchStats(
            total_files=len(files),
            start_time=datetime.now()
        )

        results = []
        errors = []
        error_types = {}

        def fail(filename: str, error_type: str, message: str, message_ref: Optional[str] = None):
            errors.append(ProcessingError(
                file_name=filename,
                error_type=error_type,
                error_message=message,
                message_ref=message_ref
            ))
            error_types[error_type] = error_types.get(error_type, 0) + 1

        logger.info(f"Starting batch processing of {len(files)} files")

        for idx, (filename, content) in enumerate(files):
            try:
                if progress_callback:
                    progress_callback(idx + 1, len(files), f"Processing: {filename}")

                logger.debug(f"Processing file {idx + 1}/{len(files)}: {filename}")

                messages = self._parse_messages(filename, content)
                if not messages:
                    raise ValueError("No messages found in file")

                for message_ref, text in messages:
                    result = self.analyzer.analyze(text, now)
                    stats.record(result)
                    results.append(MessageResult(message_ref, filename, result))
                    if not result.success:
                        fail(filename, "ANALYSIS_ERROR", "; ".join(result.errors), message_ref)

                stats.processed_files += 1

            except json.JSONDecodeError as e:
                stats.failed_files += 1
                fail(filename, "JSON_PARSE_ERROR", f"Invalid JSON: {str(e)}")
                logger.error(f"JSON parse error in {filename}: {e}")

            except InvalidFileStructureError as e:
                stats.failed_files += 1
                fail(filename, "INVALID_FILE_STRUCTURE", str(e))
                logger.error(f"Invalid file structure in {filename}: {e}")

            except ValueError as e:
                stats.failed_files += 1
                fail(filename, "DATA_VALIDATION_ERROR", str(e))
                logger.error(f"Data validation error in {filename}: {e}")

            except Exception as e:
                stats.failed_files += 1
                fail(filename, "PROCESSING_ERROR", f"{type(e).__name__}: {str(e)}")
                logger.error(f"Processing error in {filename}: {traceback.format_exc()}")

        stats.end_time = datetime.now()

        if stats.analyzed == 0:
            stats.min_confidence = 0.0

        logger.info(
            f"Batch processing complete: {stats.analyzed}/{stats.total_messages} messages analyzed "
            f"from {stats.processed_files}/{stats.total_files} files, "
            f"avg confidence: {stats.average_confidence:.2f}, time: {stats.processing_time:.1f}s"
        )

        return BatchResult(
            stats=stats,
            results=results,
            errors=errors,
            error_summary=error_types
        )

    @staticmethod
    def _decode(content: bytes) -> str:
        try:
            return content.decode("utf-8-sig")
        except UnicodeDecodeError:
            # Fallback to cp1252 for Windows-exported dumps
            try:
                return content.decode("cp1252")
            except UnicodeDecodeError:
                return content.decode("latin-1")

    def _parse_messages(self, filename: str, content: bytes) -> List[Tuple[str, str]]:
        """
        Turn one file into (message_ref, text) pairs.

        TXT files hold one message per non-blank line. JSON files hold a list
        of strings or of objects with ``text`` (and optional ``id``), either at
        the root or under a ``messages`` key.
        """
        stem = Path(filename).stem
        text = self._decode(content)

        if filename.lower().endswith(".txt"):
            return [
                (f"{stem}:{line_no}", line.strip())
                for line_no, line in enumerate(text.splitlines(), start=1)
                if line.strip()
            ]

        if not filename.lower().endswith(".json"):
            raise InvalidFileStructureError(f"Unsupported file type: {filename}")

        data = json.loads(text)
        if isinstance(data, dict):
            if "messages" not in data:
                raise InvalidFileStructureError(
                    f"Expected a 'messages' key in {filename}, found: {sorted(data.keys())}"
                )
            data = data["messages"]
        if not isinstance(data, list):
            raise InvalidFileStructureError(
                f"Unexpected JSON root type in {filename}: {type(data).__name__}. "
                f"Expected a list of messages."
            )

        messages = []
        for idx, item in enumerate(data, start=1):
            if isinstance(item, str):
                messages.append((f"{stem}:{idx}", item))
            elif isinstance(item, dict):
                if "text" not in item:
                    raise ValueError(f"Message {idx} missing 'text' field")
                message_ref = str(item.get("id") or f"{stem}:{idx}")
                messages.append((message_ref, item["text"]))
            else:
                raise InvalidFileStructureError(
                    f"Message {idx} in {filename} is a {type(item).__name__}; expected text or object"
                )
        return messages

    def expand_archives(self, files: List[Tuple[str, bytes]]) -> List[Tuple[str, bytes]]:
        """Replace ZIP archives by their supported members; drop unsupported files."""
        expanded = []
        for filename, content in files:
            if filename.lower().endswith(".zip"):
                logger.info(f"Extracting ZIP archive: {filename}")
                zip_files = self._extract_zip(content)
                expanded.extend(zip_files)
                logger.info(f"Extracted {len(zip_files)} files from {filename}")
            elif filename.lower().endswith(SUPPORTED_EXTENSIONS):
                expanded.append((filename, content))
            else:
                logger.warning(f"Skipping unsupported file: {filename}")
        return expanded

    def load_files(self, paths: Sequence[str]) -> List[Tuple[str, bytes]]:
        """
        Read files from disk for ``process_batch``.

        Args:
            paths: File paths (TXT, JSON or ZIP)

        Returns:
            List of (filename, content) tuples
        """
        loaded = []
        for path in paths:
            file_path = Path(path)
            if not file_path.exists():
                raise FileNotFoundError(f"Input file not found: {path}")
            loaded.append((file_path.name, file_path.read_bytes()))
        logger.info(f"Total files loaded: {len(loaded)}")
        return loaded

    def _extract_zip(self, content: bytes) -> List[Tuple[str, bytes]]:
        """Extract TXT and JSON files from a ZIP archive."""
        files = []

        with zipfile.ZipFile(io.BytesIO(content), "r") as zf:
            for name in zf.namelist():
                if name.endswith("/"):
                    continue
                if not name.lower().endswith(SUPPORTED_EXTENSIONS):
                    continue
                files.append((os.path.basename(name), zf.read(name)))

        return files

    @staticmethod
    def result_to_row(message_result: MessageResult) -> Dict:
        """Flatten one message result into a display row."""
        result = message_result.result
        data = result.data
        return {
            "Message Ref": message_result.message_ref,
            "File Name": message_result.file_name,
            "Success": result.success,
            "Confidence": round(result.confidence, 4),
            "Type": data.transaction_type.value if data and data.transaction_type else "",
            "Amount": data.amount if data and data.amount is not None else "",
            "Date": data.transaction_date.strftime("%Y-%m-%d") if data and data.transaction_date else "",
            "Merchant": data.merchant if data else "",
            "Account": (data.account_name or "") if data else "",
            "Category": (data.category_name or "") if data else "",
            "Subcategory": (data.subcategory_name or "") if data else "",
            "Description": data.description if data else "",
            "Errors": "; ".join(result.errors),
            "SMS": data.raw_sms if data else "",
        }

    def results_to_dataframe(self, results: List[MessageResult]):
        """
        Convert message results to a pandas DataFrame.

        Args:
            results: List of MessageResult objects

        Returns:
            pandas DataFrame
        """
        import pandas as pd

        return pd.DataFrame([self.result_to_row(r) for r in results])

    def errors_to_dataframe(self, errors: List[ProcessingError]):
        """
        Convert processing errors to a pandas DataFrame.

        Args:
            errors: List of ProcessingError objects

        Returns:
            pandas DataFrame
        """
        import pandas as pd

        rows = []
        for error in errors:
            rows.append({
                "File Name": error.file_name,
                "Message Ref": error.message_ref or "",
                "Error Type": error.error_type,
                "Error Message": error.error_message,
                "Timestamp": error.timestamp,
            })

        return pd.DataFrame(rows)


def build_context(context_path: Optional[str], merchants_path: Optional[str]) -> ReferenceContext:
    """Load reference data for the CLI; both files are optional."""
    context = load_reference_context(context_path) if context_path else ReferenceContext()
    if merchants_path:
        context = context.with_updates(merchant_patterns=load_merchant_patterns_csv(merchants_path))
    return context


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Analyze message dumps from the command line and write a CSV report."""
    parser = argparse.ArgumentParser(description="Analyze bank SMS dumps into transactions")
    parser.add_argument("inputs", nargs="+", help="TXT, JSON or ZIP files with messages")
    parser.add_argument("--context", help="Reference context JSON (accounts, cards, categories)")
    parser.add_argument("--merchants", help="Merchant pattern CSV overriding the built-in dataset")
    parser.add_argument("--output", default="sms_results.csv", help="Results CSV (default: sms_results.csv)")
    parser.add_argument("--errors", help="Optional CSV for processing errors")
    parser.add_argument("--now", help="Reference date for date validation, YYYY-MM-DD (default: today)")
    parser.add_argument("--no-fuzzy", action="store_true", help="Disable fuzzy merchant matching")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(levelname)s - %(message)s"
    )

    try:
        now = datetime.strptime(args.now, "%Y-%m-%d") if args.now else None
        context = build_context(args.context, args.merchants)
        settings = AnalyzerSettings.from_config({"enable_fuzzy_matching": not args.no_fuzzy})
        processor = SMSBatchProcessor(context, settings, now)
        files = processor.load_files(args.inputs)
    except (FileNotFoundError, ValueError) as e:
        logger.error(f"Cannot start batch: {e}")
        return 2

    batch = processor.process_batch(files)

    processor.results_to_dataframe(batch.results).to_csv(args.output, index=False)
    logger.info(f"Wrote {len(batch.results)} results to {args.output}")
    if args.errors:
        processor.errors_to_dataframe(batch.errors).to_csv(args.errors, index=False)
        logger.info(f"Wrote {len(batch.errors)} errors to {args.errors}")

    stats = batch.stats
    print(
        f"Analyzed {stats.analyzed}/{stats.total_messages} messages "
        f"({stats.success_rate:.1f}%), average confidence {stats.average_confidence:.2f}; "
        f"high/medium/low: {stats.high_confidence}/{stats.medium_confidence}/{stats.low_confidence}"
    )
    return 0 if stats.failed_files == 0 else 1


if __name__ == "__main__":
    sys.exit(main())
