"""
Custom Exceptions Module.

Errors raised inside the expiry date engine, plus the caller-facing error
taxonomy (ScanErrorKind). Exceptions never cross ExpiryDateScanner.scan():
providers raise them, the provider boundary converts them into
RecognitionOutcome data tagged with the exception's kind.

Exception Hierarchy:
    ExpiryScanError (base)
    ├── InputError
    │   ├── ImageLoadError
    │   └── PreprocessingError
    └── RecognitionError
        ├── RecognizerUnavailableError   -> PLATFORM_UNSUPPORTED
        ├── RecognitionProcessingError   -> NO_TEXT_DETECTED
        ├── NoTextDetectedError          -> NO_TEXT_DETECTED
        └── CloudServiceError            -> SERVICE_UNAVAILABLE
"""

from enum import Enum
from typing import Optional


class ScanErrorKind(str, Enum):
    """Caller-facing failure kinds. Every user-visible failure is one of these."""

    PLATFORM_UNSUPPORTED = "PlatformUnsupported"
    NO_TEXT_DETECTED = "NoTextDetected"
    NO_DATE_FOUND = "NoDateFound"
    SERVICE_UNAVAILABLE = "ServiceUnavailable"


class ExpiryScanError(Exception):
    """
    Base exception for all expiry scan errors.

    Attributes:
        message: Human-readable error message.
        details: Optional dictionary with additional error details.
        kind: Taxonomy kind reported to callers when this error ends a step.
    """

    kind: Optional[ScanErrorKind] = None

    def __init__(self, message: str, details: dict = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


# =============================================================================
# INPUT ERRORS
# =============================================================================

class InputError(ExpiryScanError):
    """Base exception for image input errors."""
    pass


class ImageLoadError(InputError):
    """Raised when an image reference cannot be opened."""

    kind = ScanErrorKind.NO_TEXT_DETECTED

    def __init__(self, source: str, reason: str = None):
        message = f"Could not load image: {source}"
        details = {"source": source, "reason": reason}
        super().__init__(message, details)


class PreprocessingError(InputError):
    """Raised when resize/contrast/crop fails. Callers fall back to the original image."""

    def __init__(self, source: str, reason: str = None):
        message = f"Image preprocessing failed for: {source}"
        details = {"source": source, "reason": reason}
        super().__init__(message, details)


# =============================================================================
# RECOGNITION ERRORS
# =============================================================================

class RecognitionError(ExpiryScanError):
    """Base exception for text recognition errors."""
    pass


class RecognizerUnavailableError(RecognitionError):
    """Raised when an on-device recognizer is not installed or not usable here."""

    kind = ScanErrorKind.PLATFORM_UNSUPPORTED

    def __init__(self, engine_name: str, reason: str = None):
        message = f"Text recognizer not available: {engine_name}"
        details = {"engine": engine_name, "reason": reason}
        super().__init__(message, details)


class RecognitionProcessingError(RecognitionError):
    """Raised when a recognizer fails while reading an image."""

    kind = ScanErrorKind.NO_TEXT_DETECTED

    def __init__(self, engine_name: str, reason: str = None):
        message = f"Text recognition failed in: {engine_name}"
        details = {"engine": engine_name, "reason": reason}
        super().__init__(message, details)


class NoTextDetectedError(RecognitionError):
    """Raised when a recognizer returns empty or whitespace-only text."""

    kind = ScanErrorKind.NO_TEXT_DETECTED

    def __init__(self, engine_name: str):
        message = "No text detected in image"
        details = {"engine": engine_name}
        super().__init__(message, details)


class CloudServiceError(RecognitionError):
    """Raised when the cloud service is unreachable, throttles, or reports a processing error."""

    kind = ScanErrorKind.SERVICE_UNAVAILABLE

    def __init__(self, reason: str, status: Optional[int] = None):
        message = f"Cloud recognition unavailable: {reason}"
        details = {"status": status} if status is not None else {}
        super().__init__(message, details)
        self.reason = reason
        self.status = status


__all__ = [
    'ScanErrorKind',
    'ExpiryScanError',
    'InputError',
    'ImageLoadError',
    'PreprocessingError',
    'RecognitionError',
    'RecognizerUnavailableError',
    'RecognitionProcessingError',
    'NoTextDetectedError',
    'CloudServiceError',
]
