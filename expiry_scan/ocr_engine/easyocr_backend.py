"""
EasyOCR Recognition Provider.

Optional on-device alternative to Tesseract. Install with
`pip install expiry-date-ocr[easyocr]`; without it the provider reports
itself unavailable and the scanner moves on.
"""

import asyncio
import threading
import time
from typing import List, Optional, Sequence

import numpy as np
from PIL import Image

from config import get_config
from expiry_scan.extraction.extraction_result import RecognitionMethod
from expiry_scan.utils.exceptions import RecognitionProcessingError, RecognizerUnavailableError
from expiry_scan.utils.logger import get_logger
from .base import RecognitionProvider
from .recognized_text import RecognizedText, TextBlock

# Initialize module logger
logger = get_logger(__name__)


class EasyOCRProvider(RecognitionProvider):
    """
    EasyOCR recognition provider.

    The reader loads its models on first use and is reused afterwards.

    Attributes:
        languages: EasyOCR language codes
        gpu: Whether EasyOCR may use a GPU
    """

    name = "easyocr"
    method = RecognitionMethod.NATIVE

    def __init__(
        self,
        languages: Optional[Sequence[str]] = None,
        gpu: Optional[bool] = None,
        timeout: Optional[float] = None
    ) -> None:
        super().__init__(timeout=timeout)
        self.languages = list(languages or get_config("recognition.easyocr.languages", ["en"]))
        self.gpu = gpu if gpu is not None else get_config("recognition.easyocr.gpu", False)
        self._reader = None
        self._reader_lock = threading.Lock()

    def is_available(self) -> bool:
        try:
            import easyocr  # noqa: F401
        except ImportError:
            logger.debug("easyocr is not installed")
            return False
        return True

    def _get_reader(self):
        with self._reader_lock:
            if self._reader is None:
                try:
                    import easyocr
                except ImportError:
                    raise RecognizerUnavailableError(
                        self.name, "easyocr (install with: pip install easyocr)"
                    )
                logger.info(f"Loading EasyOCR reader (languages={self.languages}, gpu={self.gpu})")
                try:
                    self._reader = easyocr.Reader(self.languages, gpu=self.gpu)
                except Exception as e:
                    logger.error(f"EasyOCR reader failed to load: {e}")
                    raise RecognizerUnavailableError(self.name, f"model loading failed: {e}")
            return self._reader

    async def recognize(self, image: Image.Image) -> RecognizedText:
        """Run EasyOCR off the event loop."""
        return await asyncio.to_thread(self._extract, image)

    def _extract(self, image: Image.Image) -> RecognizedText:
        reader = self._get_reader()
        start_time = time.time()

        try:
            results = reader.readtext(np.array(image.convert('RGB')))
        except Exception as e:
            logger.error(f"EasyOCR processing failed: {e}")
            raise RecognitionProcessingError(self.name, str(e))

        blocks: List[TextBlock] = []
        for bbox, text, conf in results:
            if not text or not text.strip():
                continue

            # bbox is [[x1,y1], [x2,y1], [x2,y2], [x1,y2]]
            x_coords = [p[0] for p in bbox]
            y_coords = [p[1] for p in bbox]

            blocks.append(TextBlock(
                text=text.strip(),
                confidence=float(conf) * 100,
                bbox=(
                    int(min(x_coords)),
                    int(min(y_coords)),
                    int(max(x_coords)),
                    int(max(y_coords))
                )
            ))

        return RecognizedText(
            text='\n'.join(block.text for block in blocks),
            blocks=tuple(blocks),
            engine=self.name,
            processing_time=time.time() - start_time
        )
