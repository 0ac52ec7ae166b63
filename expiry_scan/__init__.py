"""
Expiry Date OCR Engine.

Reads best-before / use-by dates from photographed food labels: noisy
recognizer text is normalized, repaired for digit confusion, matched against
a table of date shapes and ranked into a single confident date.

Modules:
    - input_handler: Image loading, cropping and preprocessing
    - ocr_engine: On-device and cloud text recognition providers
    - postprocessor: Text normalization and digit-confusion correction
    - extraction: Date rules, candidate extraction and result types
    - scanner: The end-to-end scan orchestrator

Architecture:
    Image -> Preprocess -> Recognize (native, then cloud) -> Normalize
          -> Extract candidates -> Select best -> Result
"""

__version__ = "1.0.0"

from .extraction import (
    CandidateDateExtractor,
    DegradedResult,
    ExtractionResult,
    RecognitionMethod,
)
from .input_handler import CropRegion, ImageProcessor
from .postprocessor import DigitConfusionCorrector, TextNormalizer
from .scanner import ExpiryDateScanner, ScanState
from .utils.exceptions import ScanErrorKind

__all__ = [
    'CandidateDateExtractor',
    'DegradedResult',
    'ExtractionResult',
    'RecognitionMethod',
    'CropRegion',
    'ImageProcessor',
    'DigitConfusionCorrector',
    'TextNormalizer',
    'ExpiryDateScanner',
    'ScanState',
    'ScanErrorKind'
]
