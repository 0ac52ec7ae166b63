"""
Post-Processing Module for the Expiry Date OCR Engine.

This module provides functionality for:
    - Label text normalization and letter/digit repair
    - Date-likelihood pre-check
    - Day/month/year range validation
    - Digit-confusion correction of out-of-range tokens
"""

from .normalizers import TextNormalizer, looks_like_date
from .validators import (
    CorrectionSuggestion,
    DateField,
    DigitConfusionCorrector,
    expand_year,
)

__all__ = [
    'TextNormalizer',
    'looks_like_date',
    'CorrectionSuggestion',
    'DateField',
    'DigitConfusionCorrector',
    'expand_year'
]
