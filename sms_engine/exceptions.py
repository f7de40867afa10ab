"""
Exception hierarchy for the SMS transaction engine.

Extractors and matchers never raise for malformed message text; these
exceptions cover bad reference data, invalid top-level input, and helper
functions that are called directly with values they cannot parse.
"""

from typing import Dict, Optional


class SMSAnalysisError(Exception):
    """Base class for all engine errors."""

    def __init__(
        self,
        message: str,
        code: str = "ANALYSIS_ERROR",
        context: Optional[Dict] = None
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.context = context or {}

    def __str__(self) -> str:
        return self.message


class InvalidMessageError(SMSAnalysisError):
    """Raised when the message handed to the analyzer is empty or not text."""

    def __init__(self, message: str = "Invalid input: SMS text must be a non-empty string"):
        super().__init__(message, code="INVALID_INPUT")


class ExtractionError(SMSAnalysisError):
    """Raised by parse/format helpers when a field value is unusable."""

    def __init__(self, message: str, field: str):
        super().__init__(message, code="EXTRACTION_ERROR", context={"field": field})
        self.field = field


class ReferenceDataError(SMSAnalysisError, ValueError):
    """Raised when accounts, categories or merchant patterns are malformed."""

    def __init__(self, message: str, entity_id: Optional[str] = None):
        super().__init__(
            message,
            code="REFERENCE_DATA_ERROR",
            context={"entity_id": entity_id} if entity_id else None
        )
        self.entity_id = entity_id


class MatchingError(SMSAnalysisError):
    """Raised when a matcher is asked to index inconsistent data."""

    def __init__(self, message: str, match_type: str):
        super().__init__(message, code="MATCHING_ERROR", context={"match_type": match_type})
        self.match_type = match_type
