"""
Expiry Date Scanner Module.

Orchestrates one scan of a label photo:

    IDLE -> PREPROCESSING -> NATIVE_ATTEMPT -> (SUCCESS | CLOUD_ATTEMPT)
         -> (SUCCESS | DEGRADED | FAILED)

Each provider's text is normalized, pre-checked and run through the
candidate extractor; the first provider that yields a date wins. When the
cloud service is unavailable the scanner may return a DegradedResult built
from configured placeholder data, which callers must treat as synthetic.

Usage:
    from expiry_scan import ExpiryDateScanner

    scanner = ExpiryDateScanner()
    result = await scanner.scan("label.jpg")
    if result.is_synthetic:
        ...  # warn, offer manual entry
    elif result.success:
        print(result.date, result.confidence)
"""

import asyncio
import time
from datetime import date, datetime, timedelta
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

from config import get_config
from expiry_scan.extraction.extraction_result import (
    DateSelection,
    DegradedResult,
    ExtractionResult,
    RecognitionMethod,
)
from expiry_scan.extraction.extractor import CandidateDateExtractor, current_instant, is_after
from expiry_scan.input_handler.image_processor import (
    CropRegion,
    ImageProcessor,
    ImageSource,
    load_image,
)
from expiry_scan.ocr_engine.base import RecognitionProvider
from expiry_scan.ocr_engine.engine import build_providers, order_providers
from expiry_scan.ocr_engine.recognized_text import RecognitionOutcome, RecognizedText
from expiry_scan.postprocessor.normalizers import TextNormalizer, looks_like_date
from expiry_scan.utils.exceptions import ImageLoadError, ScanErrorKind
from expiry_scan.utils.helpers import clamp_confidence
from expiry_scan.utils.logger import get_logger

# Initialize module logger
logger = get_logger(__name__)

ScanResult = Union[ExtractionResult, DegradedResult]

DEFAULT_PLACEHOLDER = {
    'days_ahead': 180,
    'confidence': 75,
}


class ScanState(str, Enum):
    """Stages of one scan."""

    IDLE = "idle"
    PREPROCESSING = "preprocessing"
    NATIVE_ATTEMPT = "native_attempt"
    CLOUD_ATTEMPT = "cloud_attempt"
    SUCCESS = "success"
    DEGRADED = "degraded"
    FAILED = "failed"


class ExpiryDateScanner:
    """
    Reads an expiry date from a label photo.

    The scanner holds no per-scan state, so concurrent scan() calls on one
    instance are independent.

    Attributes:
        providers: Recognition providers, native first
        normalizer: TextNormalizer applied to recognized text
        extractor: CandidateDateExtractor ranking the dates
        image_processor: ImageProcessor preparing the photo
        degraded_fallback: Whether an unavailable cloud service yields a
            DegradedResult instead of a failure

    Example:
        >>> scanner = ExpiryDateScanner()
        >>> result = await scanner.scan("label.jpg", crop=CropRegion(0, 400, 1200, 300))
        >>> print(result.to_json())
    """

    def __init__(
        self,
        providers: Optional[Sequence[RecognitionProvider]] = None,
        normalizer: Optional[TextNormalizer] = None,
        extractor: Optional[CandidateDateExtractor] = None,
        image_processor: Optional[ImageProcessor] = None,
        degraded_fallback: Optional[bool] = None,
        placeholder: Optional[Dict[str, Any]] = None
    ) -> None:
        """
        Initialize the scanner.

        Args:
            providers: Recognition providers. If None, built from configuration.
            normalizer: Text normalizer. Defaults to a configured TextNormalizer.
            extractor: Date extractor. Defaults to the standard rule table.
            image_processor: Preprocessor. Defaults to a configured ImageProcessor.
            degraded_fallback: Overrides `recognition.cloud.degraded_fallback`.
            placeholder: Overrides `recognition.cloud.placeholder`.
        """
        self.providers: List[RecognitionProvider] = (
            order_providers(providers) if providers is not None else build_providers()
        )
        self.normalizer = normalizer or TextNormalizer()
        self.extractor = extractor or CandidateDateExtractor()
        self.image_processor = image_processor or ImageProcessor()
        self.degraded_fallback = (
            degraded_fallback if degraded_fallback is not None
            else get_config("recognition.cloud.degraded_fallback", True)
        )
        self.placeholder = placeholder or get_config(
            "recognition.cloud.placeholder", DEFAULT_PLACEHOLDER
        )

        logger.info(
            f"ExpiryDateScanner initialized with {len(self.providers)} provider(s) "
            f"(degraded fallback {'on' if self.degraded_fallback else 'off'})"
        )

    async def scan(
        self,
        image: ImageSource,
        crop: Optional[CropRegion] = None,
        now: Optional[Union[datetime, date]] = None
    ) -> ScanResult:
        """
        Scan a label photo for its expiry date.

        Never raises for recognition problems; only cancellation of the
        calling task propagates.

        Args:
            image: File path or PIL image.
            crop: Region of the photo to read, in source pixels.
            now: Extraction instant. Defaults to the current local time.

        Returns:
            ExtractionResult, or DegradedResult when the cloud service was
            unavailable and degraded fallback is enabled.
        """
        start_time = time.time()
        state = ScanState.IDLE
        if now is None:
            now = current_instant()

        state = self._transition(state, ScanState.PREPROCESSING)
        try:
            loaded = await asyncio.to_thread(load_image, image)
        except ImageLoadError as e:
            self._transition(state, ScanState.FAILED)
            return self._finish(
                ExtractionResult.failed(ScanErrorKind.NO_TEXT_DETECTED, str(e)),
                start_time
            )

        prepared = await asyncio.to_thread(self.image_processor.preprocess, loaded, crop)

        outcomes: List[RecognitionOutcome] = []
        last_text: Optional[str] = None
        last_method: Optional[RecognitionMethod] = None

        for provider in self.providers:
            state = self._transition(
                state,
                ScanState.NATIVE_ATTEMPT if provider.method == RecognitionMethod.NATIVE
                else ScanState.CLOUD_ATTEMPT
            )

            outcome = await provider.attempt_recognize(prepared.image)
            outcomes.append(outcome)

            if not outcome.succeeded:
                continue

            normalized, selection = self.read_date(outcome.text, now)
            last_text, last_method = normalized, outcome.method

            if selection is not None:
                self._transition(state, ScanState.SUCCESS)
                logger.info(
                    f"Resolved {selection.date} via {outcome.provider} "
                    f"(confidence {selection.confidence}, attempt {len(outcomes)})"
                )
                return self._finish(
                    ExtractionResult.resolved(
                        normalized, selection, outcome.method, attempts=len(outcomes)
                    ),
                    start_time
                )

            logger.info(f"No date in {outcome.provider} text: '{normalized}'")

        if outcomes and outcomes[-1].error == ScanErrorKind.SERVICE_UNAVAILABLE:
            if self.degraded_fallback:
                self._transition(state, ScanState.DEGRADED)
                return self._finish(self._degraded(outcomes[-1], len(outcomes), now), start_time)

            self._transition(state, ScanState.FAILED)
            return self._finish(
                ExtractionResult.failed(
                    ScanErrorKind.SERVICE_UNAVAILABLE,
                    outcomes[-1].message,
                    text=last_text or "",
                    method=outcomes[-1].method,
                    attempts=len(outcomes)
                ),
                start_time
            )

        self._transition(state, ScanState.FAILED)
        return self._finish(
            self._failure(outcomes, last_text, last_method),
            start_time
        )

    def read_date(
        self,
        recognized: RecognizedText,
        now: Union[datetime, date]
    ) -> Tuple[str, Optional[DateSelection]]:
        """
        Normalize recognized text and pick its best date.

        The confidence of the most likely date block (or the average block
        confidence) caps digit corrections.

        Args:
            recognized: Provider output.
            now: Extraction instant.

        Returns:
            (normalized text, selection or None)
        """
        normalized = self.normalizer.normalize(recognized.text)

        if not looks_like_date(normalized):
            logger.debug(f"Text does not look like a date: '{normalized}'")
            return normalized, None

        block = recognized.most_likely_date_block()
        observed = block.confidence if block is not None else recognized.average_confidence

        selection = self.extractor.select_best(normalized, now=now, observed_confidence=observed)
        return normalized, selection

    def _failure(
        self,
        outcomes: List[RecognitionOutcome],
        last_text: Optional[str],
        last_method: Optional[RecognitionMethod]
    ) -> ExtractionResult:
        """Build the failure for an exhausted provider chain."""
        attempts = len(outcomes)

        if last_text is not None:
            return ExtractionResult.failed(
                ScanErrorKind.NO_DATE_FOUND,
                "Text was recognized but no valid future date was found",
                text=last_text,
                method=last_method,
                attempts=attempts
            )

        if not outcomes:
            return ExtractionResult.failed(
                ScanErrorKind.PLATFORM_UNSUPPORTED,
                "No recognition providers configured"
            )

        if all(o.error == ScanErrorKind.PLATFORM_UNSUPPORTED for o in outcomes):
            return ExtractionResult.failed(
                ScanErrorKind.PLATFORM_UNSUPPORTED,
                "No text recognizer is available on this platform",
                attempts=attempts
            )

        return ExtractionResult.failed(
            ScanErrorKind.NO_TEXT_DETECTED,
            "No text detected in image",
            method=outcomes[-1].method,
            attempts=attempts
        )

    def _degraded(
        self,
        outcome: RecognitionOutcome,
        attempts: int,
        now: Union[datetime, date]
    ) -> DegradedResult:
        """Build the synthetic result from the configured placeholder."""
        placeholder_date = self._placeholder_date(now)

        text = self.placeholder.get('text')
        if not text and placeholder_date is not None:
            text = f"BEST BEFORE {placeholder_date:%d %b %Y}".upper()

        logger.warning(
            f"Cloud recognition unavailable, returning placeholder data: {outcome.message}"
        )
        return DegradedResult(
            text=str(text or ''),
            placeholder_date=placeholder_date,
            confidence=clamp_confidence(self.placeholder.get('confidence', 0)),
            reason=outcome.message,
            attempts=attempts
        )

    def _placeholder_date(self, now: Union[datetime, date]) -> Optional[date]:
        """
        Resolve the placeholder date.

        A fixed `date` is used only while it is still in the future;
        otherwise the date is `days_ahead` days after the scan instant.
        """
        raw_date = self.placeholder.get('date')
        if raw_date:
            try:
                fixed = date.fromisoformat(str(raw_date))
            except ValueError:
                logger.warning(f"Invalid placeholder date in configuration: {raw_date}")
            else:
                if is_after(fixed, now):
                    return fixed
                logger.warning(f"Placeholder date {fixed} is not in the future, ignoring it")

        days_ahead = self.placeholder.get('days_ahead')
        if days_ahead is None:
            return None

        today = now.date() if isinstance(now, datetime) else now
        return today + timedelta(days=int(days_ahead))

    @staticmethod
    def _transition(current: ScanState, new: ScanState) -> ScanState:
        logger.debug(f"Scan state: {current.value} -> {new.value}")
        return new

    @staticmethod
    def _finish(result: ScanResult, start_time: float) -> ScanResult:
        result.processing_time = time.time() - start_time
        logger.info(f"Scan finished in {result.processing_time:.2f}s: {result!r}")
        return result
