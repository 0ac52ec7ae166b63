"""
Candidate Date Extractor Module.

Turns normalized label text into ranked expiry date candidates.

Approach:
    1. Run every DateFormatRule over the text; overlapping matches from
       different rules are all kept as independent candidates.
    2. Decode day/month/year tokens, expanding two-digit years by century.
    3. Repair out-of-range tokens once with the DigitConfusionCorrector.
    4. Build the calendar date (rejects Feb 30, Apr 31, ...).
    5. Keep only dates strictly after the extraction instant.
    6. Rank by confidence, then span length, then rule name, then offset.

"No date" is an expected outcome and is returned as None, never raised.
"""

from datetime import date, datetime, time
from typing import Callable, List, Optional, Sequence, Union

from dateutil import tz

from expiry_scan.postprocessor.validators import (
    CorrectionSuggestion,
    DigitConfusionCorrector,
    expand_year,
    is_valid_day,
    is_valid_month,
    is_valid_year,
)
from expiry_scan.utils.helpers import clamp_confidence
from expiry_scan.utils.logger import get_logger
from .date_rules import DATE_FORMAT_RULES, DateFormatRule
from .extraction_result import DateCandidate, DateSelection

# Initialize module logger
logger = get_logger(__name__)


def current_instant() -> datetime:
    """The extraction instant: now, in the local time zone."""
    return datetime.now(tz.tzlocal())


def is_after(candidate: date, now: Union[datetime, date]) -> bool:
    """
    Check a date's local midnight lies strictly after `now`.

    A label dated today is already past at scan time. Naive and aware
    instants are both accepted; the candidate takes the instant's zone.

    Example:
        >>> is_after(date(2025, 11, 30), datetime(2025, 11, 29, 18, 0))
        True
        >>> is_after(date(2025, 11, 30), datetime(2025, 11, 30, 8, 0))
        False
    """
    if not isinstance(now, datetime):
        now = datetime.combine(now, time.min)
    midnight = datetime(candidate.year, candidate.month, candidate.day, tzinfo=now.tzinfo)
    return midnight > now


class CandidateDateExtractor:
    """
    Extracts and ranks expiry date candidates from normalized text.

    Stateless apart from its read-only rule table and corrector, so one
    instance can serve any number of concurrent scans.

    Attributes:
        rules: Ordered DateFormatRule table
        corrector: DigitConfusionCorrector used on out-of-range tokens

    Example:
        >>> extractor = CandidateDateExtractor()
        >>> selection = extractor.select_best("30NOV25", now=datetime(2025, 6, 1))
        >>> selection.date, selection.confidence
        (datetime.date(2025, 11, 30), 85)
    """

    def __init__(
        self,
        rules: Optional[Sequence[DateFormatRule]] = None,
        corrector: Optional[DigitConfusionCorrector] = None
    ) -> None:
        self.rules = tuple(rules) if rules is not None else DATE_FORMAT_RULES
        self.corrector = corrector or DigitConfusionCorrector()

        logger.debug(f"CandidateDateExtractor initialized ({len(self.rules)} rules)")

    def extract(
        self,
        text: str,
        now: Optional[Union[datetime, date]] = None,
        observed_confidence: Optional[float] = None
    ) -> List[DateCandidate]:
        """
        Produce every valid future date candidate found in the text.

        Args:
            text: Normalized label text.
            now: Extraction instant. Defaults to the current local time.
            observed_confidence: Recognizer confidence (0-100), passed on to
                the corrector.

        Returns:
            Candidates in rule order, then match order.
        """
        if not text:
            return []

        if now is None:
            now = current_instant()

        candidates: List[DateCandidate] = []

        for rule in self.rules:
            for match in rule.pattern.finditer(text):
                candidate = self._build_candidate(rule, match, observed_confidence)
                if candidate is None:
                    continue

                if not is_after(candidate.date, now):
                    logger.debug(
                        f"Discarded past date {candidate.date} "
                        f"from '{candidate.span}' ({rule.name})"
                    )
                    continue

                candidates.append(candidate)

        logger.debug(f"Extracted {len(candidates)} candidate(s) from '{text}'")
        return candidates

    def select_best(
        self,
        text: str,
        now: Optional[Union[datetime, date]] = None,
        observed_confidence: Optional[float] = None
    ) -> Optional[DateSelection]:
        """
        Pick the single best expiry date in the text.

        Args:
            text: Normalized label text.
            now: Extraction instant. Defaults to the current local time.
            observed_confidence: Recognizer confidence (0-100).

        Returns:
            DateSelection, or None when no candidate survives.
        """
        candidates = self.extract(text, now=now, observed_confidence=observed_confidence)
        if not candidates:
            return None

        best = min(candidates, key=self._ranking_key)

        logger.debug(
            f"Selected {best.date} ({best.rule}, confidence {best.confidence}) "
            f"out of {len(candidates)} candidate(s)"
        )
        return DateSelection(date=best.date, confidence=best.confidence, candidate=best)

    @staticmethod
    def _ranking_key(candidate: DateCandidate):
        # Total order: independent of rule registration order
        return (-candidate.confidence, -len(candidate.span), candidate.rule, candidate.start)

    def _build_candidate(
        self,
        rule: DateFormatRule,
        match,
        observed_confidence: Optional[float]
    ) -> Optional[DateCandidate]:
        """
        Decode, repair and validate one match.

        Returns:
            DateCandidate, or None when the match is not a calendar date.
        """
        tokens = rule.decode(match)
        corrections: List[CorrectionSuggestion] = []

        day = self._repair(
            tokens.day, is_valid_day, self.corrector.correct_day,
            observed_confidence, corrections
        )
        month = self._repair(
            tokens.month, is_valid_month, self.corrector.correct_month,
            observed_confidence, corrections
        )
        year = self._repair(
            tokens.year, is_valid_year, self.corrector.correct_year,
            observed_confidence, corrections
        )

        if day is None or month is None or year is None:
            logger.debug(f"Rejected '{match.group(0)}' ({rule.name}): component out of range")
            return None

        try:
            resolved = date(expand_year(int(year)), int(month), int(day))
        except ValueError as e:
            logger.debug(f"Rejected '{match.group(0)}' ({rule.name}): {e}")
            return None

        confidence = rule.confidence
        for correction in corrections:
            confidence = min(confidence, correction.confidence)

        return DateCandidate(
            date=resolved,
            confidence=clamp_confidence(confidence),
            rule=rule.name,
            span=match.group(0),
            start=match.start(),
            corrections=tuple(corrections)
        )

    @staticmethod
    def _repair(
        token: str,
        is_valid: Callable[[str], bool],
        correct: Callable[[str, Optional[float]], Optional[CorrectionSuggestion]],
        observed_confidence: Optional[float],
        corrections: List[CorrectionSuggestion]
    ) -> Optional[str]:
        """
        Return the token, or its single repair, or None when neither is valid.
        """
        if is_valid(token):
            return token

        suggestion = correct(token, observed_confidence)
        if suggestion is None or not is_valid(suggestion.corrected):
            return None

        corrections.append(suggestion)
        return suggestion.corrected
