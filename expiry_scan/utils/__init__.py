"""
Utility Module for the Expiry Date OCR Engine.

Common utilities used across all other modules:
    - Logging configuration
    - Exception hierarchy and error taxonomy
    - Small helpers
"""

from .logger import setup_logger, get_logger
from .helpers import validate_file_exists, clamp_confidence

__all__ = [
    'setup_logger',
    'get_logger',
    'validate_file_exists',
    'clamp_confidence'
]
