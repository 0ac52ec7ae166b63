"""
Tesseract Recognition Provider.

On-device text recognition using Tesseract (pytesseract). Words reported by
image_to_data are grouped into line blocks, each carrying the mean word
confidence. The scanner uses the confidence of the most date-like line to
cap digit corrections.

Requirements:
    - Tesseract OCR installed on the system
    - pytesseract Python package
"""

import asyncio
import threading
import time
from typing import Dict, List, Optional, Tuple

from PIL import Image

from config import get_config
from expiry_scan.extraction.extraction_result import RecognitionMethod
from expiry_scan.utils.exceptions import RecognitionProcessingError, RecognizerUnavailableError
from expiry_scan.utils.logger import get_logger
from .base import RecognitionProvider
from .recognized_text import RecognizedText, TextBlock

# Initialize module logger
logger = get_logger(__name__)

LineKey = Tuple[int, int, int]


class TesseractProvider(RecognitionProvider):
    """
    Tesseract recognition provider.

    Availability is probed once (pytesseract import plus a version call)
    and cached.

    Attributes:
        language: Tesseract language code (e.g., "eng")
        psm: Page Segmentation Mode (1-13)
        oem: OCR Engine Mode (0-3)
        extra_config: Additional Tesseract configuration

    Example:
        >>> provider = TesseractProvider()
        >>> outcome = await provider.attempt_recognize(image)
        >>> outcome.text.text if outcome.succeeded else outcome.error
    """

    name = "tesseract"
    method = RecognitionMethod.NATIVE

    def __init__(
        self,
        language: Optional[str] = None,
        psm: Optional[int] = None,
        oem: Optional[int] = None,
        extra_config: Optional[str] = None,
        timeout: Optional[float] = None
    ) -> None:
        """Initialize the Tesseract provider with configuration."""
        super().__init__(timeout=timeout)
        self.language = language or get_config("recognition.tesseract.lang", "eng")
        self.psm = psm if psm is not None else get_config("recognition.tesseract.psm", 6)
        self.oem = oem if oem is not None else get_config("recognition.tesseract.oem", 3)
        self.extra_config = (
            extra_config if extra_config is not None
            else get_config("recognition.tesseract.config", "")
        )

        self._pytesseract = None
        self._available: Optional[bool] = None
        self._probe_lock = threading.Lock()

        logger.debug(
            f"TesseractProvider initialized (lang={self.language}, "
            f"psm={self.psm}, oem={self.oem})"
        )

    def is_available(self) -> bool:
        """Check pytesseract imports and the Tesseract binary answers."""
        with self._probe_lock:
            if self._available is None:
                try:
                    self._check_dependencies()
                    self._available = True
                except RecognizerUnavailableError as e:
                    logger.warning(str(e))
                    self._available = False
            return self._available

    def _check_dependencies(self) -> None:
        """
        Load pytesseract and query the Tesseract version.

        Raises:
            RecognizerUnavailableError: If Tesseract is not installed.
        """
        try:
            import pytesseract
        except ImportError:
            raise RecognizerUnavailableError(
                self.name, "pytesseract (install with: pip install pytesseract)"
            )

        try:
            version = pytesseract.get_tesseract_version()
        except Exception as e:
            raise RecognizerUnavailableError(
                self.name, f"Tesseract OCR not installed or not in PATH: {e}"
            )

        self._pytesseract = pytesseract
        logger.info(f"Tesseract version: {version}")

    def _build_config(self) -> str:
        """
        Build Tesseract configuration string.

        Returns:
            Configuration string for Tesseract.
        """
        config_parts = [
            f"--psm {self.psm}",
            f"--oem {self.oem}"
        ]

        if self.extra_config:
            config_parts.append(self.extra_config)

        return ' '.join(config_parts)

    async def recognize(self, image: Image.Image) -> RecognizedText:
        """Run Tesseract off the event loop."""
        return await asyncio.to_thread(self._extract, image)

    def _extract(self, image: Image.Image) -> RecognizedText:
        """
        Extract line blocks from an image.

        Raises:
            RecognizerUnavailableError: If Tesseract cannot be loaded.
            RecognitionProcessingError: If Tesseract fails on the image.
        """
        if not self.is_available():
            raise RecognizerUnavailableError(self.name, "Tesseract not available")

        start_time = time.time()

        try:
            if image.mode != 'RGB':
                image = image.convert('RGB')

            config = self._build_config()
            logger.debug(f"Running Tesseract OCR (config: {config})")

            data = self._pytesseract.image_to_data(
                image,
                lang=self.language,
                config=config,
                output_type=self._pytesseract.Output.DICT
            )
        except Exception as e:
            logger.error(f"Tesseract processing failed: {e}")
            raise RecognitionProcessingError(self.name, str(e))

        blocks = self.parse_output(data)

        return RecognizedText(
            text='\n'.join(block.text for block in blocks),
            blocks=tuple(blocks),
            engine=self.name,
            processing_time=time.time() - start_time
        )

    @staticmethod
    def parse_output(data: Dict[str, List]) -> List[TextBlock]:
        """
        Group image_to_data words into one block per text line.

        Empty words and boxes without area are skipped. Tesseract reports
        -1 confidence for non-word elements; those count as 0.

        Args:
            data: Dictionary output from image_to_data.

        Returns:
            Line blocks in reading order.
        """
        lines: Dict[LineKey, List[Tuple[str, float, Tuple[int, int, int, int]]]] = {}

        for i in range(len(data['text'])):
            text = data['text'][i]
            if not text or not str(text).strip():
                continue

            x, y = int(data['left'][i]), int(data['top'][i])
            w, h = int(data['width'][i]), int(data['height'][i])
            if w <= 0 or h <= 0:
                continue

            conf = max(0.0, float(data['conf'][i]))
            key = (int(data['block_num'][i]), int(data['par_num'][i]), int(data['line_num'][i]))
            lines.setdefault(key, []).append((str(text).strip(), conf, (x, y, x + w, y + h)))

        blocks = []
        for key in sorted(lines):
            words = sorted(lines[key], key=lambda word: word[2][0])
            boxes = [word[2] for word in words]
            blocks.append(TextBlock(
                text=' '.join(word[0] for word in words),
                confidence=sum(word[1] for word in words) / len(words),
                bbox=(
                    min(b[0] for b in boxes),
                    min(b[1] for b in boxes),
                    max(b[2] for b in boxes),
                    max(b[3] for b in boxes)
                )
            ))

        return blocks
