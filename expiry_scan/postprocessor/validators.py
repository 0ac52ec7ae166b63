"""
Date Field Validators Module.

Range validation for day/month/year tokens and the digit-confusion
corrector that proposes repairs for out-of-range tokens.

The corrector is a heuristic layer: it widens acceptance on purpose,
trading an occasional false correction for recall on noisy labels.

Confusion tables (visual similarity):
    0 <-> 9, O      1 <-> l, I, 7      2 <-> 3      3 <-> 0, 8
"""

from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional

from expiry_scan.utils.helpers import clamp_confidence
from expiry_scan.utils.logger import get_logger

# Initialize module logger
logger = get_logger(__name__)


# Accepted expiry horizon
MIN_YEAR = 2020
MAX_YEAR = 2050


class DateField(str, Enum):
    """Date component a correction applies to."""

    DAY = "day"
    MONTH = "month"
    YEAR = "year"


@dataclass(frozen=True)
class CorrectionSuggestion:
    """
    A proposed repair for one out-of-range date token.

    The original token is kept next to the corrected one for audit logs;
    suggestions are never modified after creation.

    Attributes:
        field: Date component being repaired
        original: Token as recognized
        corrected: Proposed replacement token
        confidence: Heuristic confidence of the repair (0-100)
        reason: Human-readable explanation
    """
    field: DateField
    original: str
    corrected: str
    confidence: int
    reason: str

    def to_dict(self) -> dict:
        """Convert to dictionary format."""
        return {
            'field': self.field.value,
            'original': self.original,
            'corrected': self.corrected,
            'confidence': self.confidence,
            'reason': self.reason
        }


def expand_year(value: int) -> int:
    """
    Expand a two-digit year by century.

    Example:
        >>> expand_year(25)
        2025
        >>> expand_year(99)
        1999
        >>> expand_year(2031)
        2031
    """
    if value < 100:
        return value + (2000 if value < 50 else 1900)
    return value


def _parse_int(token: str) -> Optional[int]:
    if not token or not token.isdigit():
        return None
    return int(token)


def is_valid_day(token: str) -> bool:
    """Check a day token parses into 1-31."""
    value = _parse_int(token)
    return value is not None and 1 <= value <= 31


def is_valid_month(token: str) -> bool:
    """Check a month token parses into 1-12."""
    value = _parse_int(token)
    return value is not None and 1 <= value <= 12


def is_valid_year(token: str) -> bool:
    """Check a 2- or 4-digit year token falls inside the accepted window."""
    value = _parse_int(token)
    if value is None or len(token) not in (2, 4):
        return False
    return MIN_YEAR <= expand_year(value) <= MAX_YEAR


class DigitConfusionCorrector:
    """
    Proposes repairs for day, month and year tokens that are out of range.

    Each correct_* method returns None when the token is already valid,
    otherwise the highest-confidence repair whose result is itself valid
    (or None when no heuristic applies).

    Example:
        >>> corrector = DigitConfusionCorrector()
        >>> corrector.correct_month("15").corrected
        '05'
        >>> corrector.correct_month("07") is None
        True
    """

    def correct_month(
        self,
        token: str,
        observed_confidence: Optional[float] = None
    ) -> Optional[CorrectionSuggestion]:
        """
        Repair an out-of-range month token.

        Args:
            token: Month token as recognized (1 or 2 digits).
            observed_confidence: Recognizer confidence (0-100) for the text,
                used to cap the suggestion's confidence.

        Returns:
            Best CorrectionSuggestion or None.
        """
        if is_valid_month(token):
            return None

        padded = token.zfill(2) if token.isdigit() else token
        value = _parse_int(padded)
        if value is None or len(padded) != 2:
            return None

        second = padded[1]
        suggestions: List[CorrectionSuggestion] = []

        if padded == '00':
            suggestions.append(self._suggest(
                DateField.MONTH, token, '09', 70,
                "00 is invalid, likely 09 (0<->9 confusion)"
            ))

        if 13 <= value <= 19:
            suggestions.append(self._suggest(
                DateField.MONTH, token, '0' + second, 85,
                f"{value} is invalid, likely 0{second} (leading 1 misread)"
            ))

        if 20 <= value <= 29 and second in '012':
            suggestions.append(self._suggest(
                DateField.MONTH, token, '1' + second, 75,
                f"{value} is invalid, likely 1{second} (2<->1 confusion)"
            ))

        if 30 <= value <= 39:
            suggestions.append(self._suggest(
                DateField.MONTH, token, '0' + second, 80,
                f"{value} is invalid, likely 0{second} (3<->0 confusion)"
            ))

        return self._best(suggestions, is_valid_month, observed_confidence)

    def correct_day(
        self,
        token: str,
        observed_confidence: Optional[float] = None
    ) -> Optional[CorrectionSuggestion]:
        """
        Repair an out-of-range day token.

        Args:
            token: Day token as recognized (1 or 2 digits).
            observed_confidence: Recognizer confidence (0-100).

        Returns:
            Best CorrectionSuggestion or None.
        """
        if is_valid_day(token):
            return None

        padded = token.zfill(2) if token.isdigit() else token
        value = _parse_int(padded)
        if value is None or len(padded) != 2:
            return None

        second = padded[1]
        suggestions: List[CorrectionSuggestion] = []

        if padded == '00':
            suggestions.append(self._suggest(
                DateField.DAY, token, '09', 65,
                "00 is invalid, likely 09 (0<->9 confusion)"
            ))

        if 32 <= value <= 39:
            suggestions.append(self._suggest(
                DateField.DAY, token, '2' + second, 75,
                f"{value} is invalid, likely 2{second} (3<->2 confusion)"
            ))
            suggestions.append(self._suggest(
                DateField.DAY, token, '0' + second, 70,
                f"{value} is invalid, could be 0{second} (3<->0 confusion)"
            ))

        return self._best(suggestions, is_valid_day, observed_confidence)

    def correct_year(
        self,
        token: str,
        observed_confidence: Optional[float] = None
    ) -> Optional[CorrectionSuggestion]:
        """
        Repair a year token outside the accepted window.

        Two-digit tokens are read by century before validation, so "25" is
        already valid. Letter O is read as zero, and a 4-digit year starting
        with 3 is read as starting with 2.

        Args:
            token: Year token as recognized (2 or 4 characters).
            observed_confidence: Recognizer confidence (0-100).

        Returns:
            Best CorrectionSuggestion or None.
        """
        if not token or is_valid_year(token):
            return None

        suggestions: List[CorrectionSuggestion] = []

        without_o = token.replace('O', '0').replace('o', '0')
        if without_o != token:
            suggestions.append(self._suggest(
                DateField.YEAR, token, without_o, 90,
                "Letter O detected, corrected to 0"
            ))

        if len(without_o) == 4 and without_o.startswith('3'):
            corrected = '2' + without_o[1:]
            suggestions.append(self._suggest(
                DateField.YEAR, token, corrected, 85,
                "Year starts with 3, likely 2 (3<->2 confusion)"
            ))

        return self._best(suggestions, is_valid_year, observed_confidence)

    @staticmethod
    def _suggest(
        field: DateField,
        original: str,
        corrected: str,
        confidence: int,
        reason: str
    ) -> CorrectionSuggestion:
        return CorrectionSuggestion(
            field=field,
            original=original,
            corrected=corrected,
            confidence=confidence,
            reason=reason
        )

    @staticmethod
    def _best(
        suggestions: List[CorrectionSuggestion],
        is_valid: Callable[[str], bool],
        observed_confidence: Optional[float]
    ) -> Optional[CorrectionSuggestion]:
        """
        Pick the highest-confidence suggestion that actually repairs the token.

        Ties keep generation order. The observed recognizer confidence caps
        the returned suggestion's confidence.
        """
        valid = [s for s in suggestions if is_valid(s.corrected)]
        if not valid:
            return None

        best = max(valid, key=lambda s: s.confidence)

        if observed_confidence is not None:
            capped = clamp_confidence(min(best.confidence, observed_confidence))
            if capped != best.confidence:
                best = CorrectionSuggestion(
                    field=best.field,
                    original=best.original,
                    corrected=best.corrected,
                    confidence=capped,
                    reason=best.reason
                )

        logger.debug(
            f"Corrected {best.field.value} '{best.original}' -> "
            f"'{best.corrected}' ({best.confidence}): {best.reason}"
        )
        return best
