"""
Analysis Module: the end-to-end SMS pipeline.
"""

from .analyzer import SMSAnalyzer, analyze_sms, create_sms_analyzer

__all__ = ["SMSAnalyzer", "analyze_sms", "create_sms_analyzer"]
