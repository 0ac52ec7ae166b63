"""
Date Extraction Module for the Expiry Date OCR Engine.

This module provides:
    - The static date format rule table
    - Candidate extraction, repair and ranking
    - Result data structures returned by the scanner
"""

from .date_rules import DATE_FORMAT_RULES, DateFormatRule, DateTokens, month_number
from .extraction_result import (
    DateCandidate,
    DateSelection,
    DegradedResult,
    ExtractionResult,
    RecognitionMethod,
)
from .extractor import CandidateDateExtractor, current_instant, is_after

__all__ = [
    'DATE_FORMAT_RULES',
    'DateFormatRule',
    'DateTokens',
    'month_number',
    'DateCandidate',
    'DateSelection',
    'DegradedResult',
    'ExtractionResult',
    'RecognitionMethod',
    'CandidateDateExtractor',
    'current_instant',
    'is_after'
]
