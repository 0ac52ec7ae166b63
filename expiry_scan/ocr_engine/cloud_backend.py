"""
Cloud Recognition Provider.

Posts the preprocessed image to the OCR.space REST API. Used after the
on-device providers, and the only tier whose failure can produce a
degraded (synthetic) scan result.

Wire contract:
    POST multipart/form-data to the configured endpoint with
        base64Image        data:image/jpeg;base64,...
        language           eng
        isOverlayRequired  false
        detectOrientation  true
        scale              true
        OCREngine          2
        apikey             <key>
    Response JSON:
        IsErroredOnProcessing  bool
        ErrorMessage           list of strings or a string (optional)
        ParsedResults[0].ParsedText
"""

import asyncio
import time
from typing import Any, Dict, Optional

import aiohttp
from PIL import Image

from config import get_config
from expiry_scan.extraction.extraction_result import RecognitionMethod
from expiry_scan.input_handler.image_processor import encode_jpeg_base64
from expiry_scan.utils.exceptions import CloudServiceError, NoTextDetectedError, ScanErrorKind
from expiry_scan.utils.logger import get_logger
from .base import RecognitionProvider
from .recognized_text import RecognizedText

# Initialize module logger
logger = get_logger(__name__)

DEFAULT_ENDPOINT = "https://api.ocr.space/parse/image"


class CloudOCRProvider(RecognitionProvider):
    """
    OCR.space recognition provider.

    Unreachable service, non-2xx statuses (throttling included), invalid
    JSON and processing errors all raise CloudServiceError, which the
    provider boundary reports as SERVICE_UNAVAILABLE. A timeout is reported
    the same way.

    Attributes:
        endpoint: Service URL
        api_key: Service API key
        language: OCR language code
        engine: OCR.space engine number
        jpeg_quality: Quality of the uploaded JPEG

    Example:
        >>> provider = CloudOCRProvider()
        >>> outcome = await provider.attempt_recognize(image)
    """

    name = "cloud"
    method = RecognitionMethod.CLOUD
    timeout_kind = ScanErrorKind.SERVICE_UNAVAILABLE

    def __init__(
        self,
        endpoint: Optional[str] = None,
        api_key: Optional[str] = None,
        language: Optional[str] = None,
        engine: Optional[int] = None,
        session: Optional[aiohttp.ClientSession] = None,
        timeout: Optional[float] = None
    ) -> None:
        """
        Initialize the cloud provider.

        Args:
            endpoint: Service URL. Defaults to configuration.
            api_key: Service API key. Defaults to configuration.
            language: OCR language code. Defaults to configuration.
            engine: OCR.space engine number. Defaults to configuration.
            session: Shared aiohttp session. When None a session is opened
                per call and closed afterwards.
            timeout: Seconds allowed for one call.
        """
        super().__init__(timeout=timeout)
        self.endpoint = endpoint or get_config("recognition.cloud.endpoint", DEFAULT_ENDPOINT)
        self.api_key = api_key or get_config("recognition.cloud.api_key", "helloworld")
        self.language = language or get_config("recognition.cloud.language", "eng")
        self.engine = engine or get_config("recognition.cloud.engine", 2)
        self.jpeg_quality = get_config("preprocessing.jpeg_quality", 90)
        self._session = session

        logger.debug(f"CloudOCRProvider initialized (endpoint={self.endpoint}, engine={self.engine})")

    def form_fields(self, encoded_image: str) -> Dict[str, str]:
        """
        Build the multipart form fields for one request.

        Args:
            encoded_image: JPEG data URI from encode_jpeg_base64().

        Returns:
            Ordered field name to value mapping.
        """
        return {
            'base64Image': encoded_image,
            'language': self.language,
            'isOverlayRequired': 'false',
            'detectOrientation': 'true',
            'scale': 'true',
            'OCREngine': str(self.engine),
            'apikey': self.api_key
        }

    async def recognize(self, image: Image.Image) -> RecognizedText:
        """
        Upload the image and return the parsed text.

        Raises:
            CloudServiceError: If the service cannot be used.
            NoTextDetectedError: If the service read no text.
        """
        start_time = time.time()

        encoded = await asyncio.to_thread(encode_jpeg_base64, image, self.jpeg_quality)

        form = aiohttp.FormData(default_to_multipart=True)
        for key, value in self.form_fields(encoded).items():
            form.add_field(key, value)

        logger.debug(f"Posting {len(encoded)} bytes of image data to {self.endpoint}")

        try:
            if self._session is not None:
                data = await self._post(self._session, form)
            else:
                async with aiohttp.ClientSession() as session:
                    data = await self._post(session, form)
        except aiohttp.ClientError as e:
            raise CloudServiceError(f"service unreachable: {e}")

        return self.parse_response(data, time.time() - start_time)

    async def _post(self, session: aiohttp.ClientSession, form: aiohttp.FormData) -> Dict[str, Any]:
        async with session.post(self.endpoint, data=form) as response:
            if not 200 <= response.status < 300:
                raise CloudServiceError(
                    f"service returned HTTP {response.status}", status=response.status
                )
            try:
                return await response.json(content_type=None)
            except ValueError as e:
                raise CloudServiceError(f"invalid JSON response: {e}", status=response.status)

    def parse_response(self, data: Any, processing_time: float = 0.0) -> RecognizedText:
        """
        Turn an OCR.space response body into RecognizedText.

        Blank lines are dropped. The service reports no confidence, so the
        result carries no blocks.

        Raises:
            CloudServiceError: If the body reports a processing error.
            NoTextDetectedError: If the parsed text is empty.
        """
        if not isinstance(data, dict):
            raise CloudServiceError("unexpected response body")

        if data.get('IsErroredOnProcessing'):
            raise CloudServiceError(self._error_message(data.get('ErrorMessage')))

        results = data.get('ParsedResults') or []
        text = ''
        if results and isinstance(results[0], dict):
            text = results[0].get('ParsedText') or ''

        if not text.strip():
            raise NoTextDetectedError(self.name)

        lines = [line.strip() for line in text.splitlines() if line.strip()]

        return RecognizedText(
            text='\n'.join(lines),
            engine=self.name,
            processing_time=processing_time
        )

    @staticmethod
    def _error_message(error: Any) -> str:
        if isinstance(error, list) and error:
            return str(error[0])
        if isinstance(error, str) and error:
            return error
        return "OCR processing failed"
