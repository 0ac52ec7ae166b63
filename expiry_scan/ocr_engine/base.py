"""
Recognition Provider Interface.

Every recognizer (on-device or cloud) implements RecognitionProvider. The
scanner only talks to providers through attempt_recognize(), which never
raises for recognition problems: errors from the ExpiryScanError hierarchy
and timeouts come back as RecognitionOutcome data.
"""

import asyncio
import time
from abc import ABC, abstractmethod
from typing import Optional

from PIL import Image

from config import get_config
from expiry_scan.extraction.extraction_result import RecognitionMethod
from expiry_scan.utils.exceptions import ExpiryScanError, NoTextDetectedError, ScanErrorKind
from expiry_scan.utils.logger import get_logger
from .recognized_text import RecognitionOutcome, RecognizedText

# Initialize module logger
logger = get_logger(__name__)


class RecognitionProvider(ABC):
    """
    Base class for text recognition providers.

    Subclasses set `name` and `method` and implement recognize().

    Attributes:
        name: Provider name used in logs and configuration
        method: Recognition tier reported on results
        timeout: Seconds allowed for one recognition call
        timeout_kind: Failure kind reported when the call times out
    """

    name: str = "provider"
    method: RecognitionMethod = RecognitionMethod.NATIVE
    timeout_kind: ScanErrorKind = ScanErrorKind.NO_TEXT_DETECTED

    def __init__(self, timeout: Optional[float] = None) -> None:
        self.timeout = timeout or get_config("recognition.timeout_seconds", 30)

    def is_available(self) -> bool:
        """Whether this provider can run in the current environment."""
        return True

    @abstractmethod
    async def recognize(self, image: Image.Image) -> RecognizedText:
        """
        Read text from an image.

        Args:
            image: Preprocessed PIL image.

        Returns:
            RecognizedText (possibly blank).

        Raises:
            ExpiryScanError: Subclass describing the failure.
        """

    async def attempt_recognize(self, image: Image.Image) -> RecognitionOutcome:
        """
        Run recognize() under the timeout and convert failures to data.

        Cancellation of the calling task is never caught.

        Args:
            image: Preprocessed PIL image.

        Returns:
            RecognitionOutcome with either text or an error kind.
        """
        start_time = time.time()

        try:
            if not await asyncio.to_thread(self.is_available):
                return self._failure(
                    ScanErrorKind.PLATFORM_UNSUPPORTED,
                    f"{self.name} is not available on this platform",
                    start_time
                )

            text = await asyncio.wait_for(self.recognize(image), timeout=self.timeout)

            if text.is_blank:
                raise NoTextDetectedError(self.name)

        except asyncio.TimeoutError:
            return self._failure(
                self.timeout_kind,
                f"{self.name} timed out after {self.timeout}s",
                start_time
            )
        except ExpiryScanError as e:
            return self._failure(e.kind or ScanErrorKind.NO_TEXT_DETECTED, str(e), start_time)
        except Exception as e:
            logger.exception(f"Unexpected error in {self.name}")
            return self._failure(
                ScanErrorKind.NO_TEXT_DETECTED,
                f"{self.name} failed: {e}",
                start_time
            )

        processing_time = time.time() - start_time
        logger.info(
            f"{self.name} recognized {len(text.text)} chars, "
            f"{len(text.blocks)} blocks ({processing_time:.2f}s)"
        )
        return RecognitionOutcome(
            provider=self.name,
            method=self.method,
            text=text,
            processing_time=processing_time
        )

    def _failure(
        self,
        kind: ScanErrorKind,
        message: str,
        start_time: float
    ) -> RecognitionOutcome:
        processing_time = time.time() - start_time
        logger.warning(f"{self.name} failed ({kind.value}): {message}")
        return RecognitionOutcome(
            provider=self.name,
            method=self.method,
            error=kind,
            message=message,
            processing_time=processing_time
        )

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name}, method={self.method.value})"
