"""
Extraction Result Data Classes.

Data structures produced by the date extractor and returned by the scanner.

Classes:
    RecognitionMethod: Which recognition tier produced the text
    DateCandidate: One tentative date parse from one pattern match
    DateSelection: The winning candidate of one extraction
    ExtractionResult: Real outcome of one scan (resolved date or failure)
    DegradedResult: Synthetic stand-in returned when the cloud service is
        unavailable. Deliberately not an ExtractionResult: it has no `date`
        attribute, only `placeholder_date`.
"""

import json
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from expiry_scan.postprocessor.validators import CorrectionSuggestion
from expiry_scan.utils.exceptions import ScanErrorKind


class RecognitionMethod(str, Enum):
    """Recognition tier that produced the text."""

    NATIVE = "native"
    CLOUD = "cloud"


@dataclass(frozen=True)
class DateCandidate:
    """
    A calendar-valid, future date read from one match.

    Attributes:
        date: Resolved calendar date
        confidence: Heuristic confidence (0-100)
        rule: Name of the DateFormatRule that matched
        span: Raw matched text
        start: Offset of the match in the normalized text
        corrections: Digit-confusion repairs applied to reach this date
    """
    date: date
    confidence: int
    rule: str
    span: str
    start: int = 0
    corrections: Tuple[CorrectionSuggestion, ...] = ()


@dataclass(frozen=True)
class DateSelection:
    """Best candidate of one extraction, with its date and confidence surfaced."""
    date: date
    confidence: int
    candidate: DateCandidate


@dataclass
class ExtractionResult:
    """
    Outcome of one scan attempt.

    On success `date`, `confidence` and `method` are set; on failure `error`
    holds the taxonomy kind and `error_message` a human-readable reason, and
    the caller is expected to offer manual entry.

    Attributes:
        success: Whether a date was resolved
        text: Normalized recognized text (empty when nothing was read)
        date: Resolved expiry date
        confidence: Confidence of the resolved date (0-100)
        error: Failure kind
        error_message: Human-readable failure reason
        method: Recognition tier that produced the text
        corrections: Digit-confusion repairs applied to the resolved date
        rule: Date format rule that produced the date
        attempts: Number of recognition providers tried
        processing_time: Wall time of the scan in seconds
        scanned_at: ISO timestamp of the scan

    Example:
        >>> result = await scanner.scan("label.jpg")
        >>> if result.success:
        ...     print(result.date, result.confidence, result.method)
    """
    success: bool = False
    text: str = ""
    date: Optional[date] = None
    confidence: Optional[int] = None
    error: Optional[ScanErrorKind] = None
    error_message: Optional[str] = None
    method: Optional[RecognitionMethod] = None
    corrections: List[CorrectionSuggestion] = field(default_factory=list)
    rule: Optional[str] = None
    attempts: int = 0
    processing_time: float = 0.0
    scanned_at: Optional[str] = None

    def __post_init__(self):
        if self.scanned_at is None:
            self.scanned_at = datetime.now().isoformat()

    @property
    def is_synthetic(self) -> bool:
        """Real results are never synthetic."""
        return False

    @classmethod
    def resolved(
        cls,
        text: str,
        selection: DateSelection,
        method: RecognitionMethod,
        attempts: int = 1
    ) -> 'ExtractionResult':
        """Build a successful result from the extractor's selection."""
        return cls(
            success=True,
            text=text,
            date=selection.date,
            confidence=selection.confidence,
            method=method,
            corrections=list(selection.candidate.corrections),
            rule=selection.candidate.rule,
            attempts=attempts
        )

    @classmethod
    def failed(
        cls,
        error: ScanErrorKind,
        message: str,
        text: str = "",
        method: Optional[RecognitionMethod] = None,
        attempts: int = 0
    ) -> 'ExtractionResult':
        """Build a structured failure."""
        return cls(
            success=False,
            text=text,
            error=error,
            error_message=message,
            method=method,
            attempts=attempts
        )

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert to dictionary format.

        Returns:
            Dictionary representation with ISO-formatted date.
        """
        return {
            'success': self.success,
            'synthetic': False,
            'text': self.text,
            'date': self.date.isoformat() if self.date else None,
            'confidence': self.confidence,
            'error': self.error.value if self.error else None,
            'error_message': self.error_message,
            'method': self.method.value if self.method else None,
            'corrections': [c.to_dict() for c in self.corrections],
            'rule': self.rule,
            'attempts': self.attempts,
            'processing_time': self.processing_time,
            'scanned_at': self.scanned_at
        }

    def to_json(self, indent: int = 2) -> str:
        """Convert to JSON string."""
        return json.dumps(self.to_dict(), indent=indent)

    def __repr__(self) -> str:
        if self.success:
            return (
                f"ExtractionResult(date={self.date}, "
                f"confidence={self.confidence}, method={self.method.value})"
            )
        return f"ExtractionResult(error={self.error.value if self.error else None})"


@dataclass
class DegradedResult:
    """
    Best-effort stand-in returned when the cloud service is unavailable.

    Carries configured placeholder data, never a real reading. Callers
    must branch on this type (or `is_synthetic`) and warn the user rather
    than present `placeholder_date` as the label's date.

    Attributes:
        text: Placeholder text
        placeholder_date: Placeholder date (not read from the image)
        confidence: Placeholder confidence
        reason: Why the cloud service was unavailable
        error: Always SERVICE_UNAVAILABLE
        method: Always CLOUD
        attempts: Number of recognition providers tried
        processing_time: Wall time of the scan in seconds
    """
    text: str
    placeholder_date: Optional[date]
    confidence: int
    reason: str
    error: ScanErrorKind = ScanErrorKind.SERVICE_UNAVAILABLE
    method: RecognitionMethod = RecognitionMethod.CLOUD
    attempts: int = 0
    processing_time: float = 0.0
    scanned_at: Optional[str] = None

    def __post_init__(self):
        if self.scanned_at is None:
            self.scanned_at = datetime.now().isoformat()

    @property
    def is_synthetic(self) -> bool:
        """Degraded results are always synthetic."""
        return True

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary format."""
        return {
            'success': False,
            'synthetic': True,
            'text': self.text,
            'placeholder_date': (
                self.placeholder_date.isoformat() if self.placeholder_date else None
            ),
            'confidence': self.confidence,
            'reason': self.reason,
            'error': self.error.value,
            'method': self.method.value,
            'attempts': self.attempts,
            'processing_time': self.processing_time,
            'scanned_at': self.scanned_at
        }

    def to_json(self, indent: int = 2) -> str:
        """Convert to JSON string."""
        return json.dumps(self.to_dict(), indent=indent)
