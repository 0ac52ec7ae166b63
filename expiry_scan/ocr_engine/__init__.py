"""
Text Recognition Module for the Expiry Date OCR Engine.

This module provides:
    - The RecognitionProvider interface
    - Tesseract, EasyOCR and OCR.space providers
    - Standardized recognized-text data structures
"""

from .base import RecognitionProvider
from .cloud_backend import CloudOCRProvider
from .easyocr_backend import EasyOCRProvider
from .engine import PROVIDER_TYPES, build_providers, order_providers
from .recognized_text import RecognitionOutcome, RecognizedText, TextBlock
from .tesseract_backend import TesseractProvider

__all__ = [
    'RecognitionProvider',
    'CloudOCRProvider',
    'EasyOCRProvider',
    'TesseractProvider',
    'PROVIDER_TYPES',
    'build_providers',
    'order_providers',
    'RecognitionOutcome',
    'RecognizedText',
    'TextBlock'
]
