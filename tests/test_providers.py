"""
Unit tests for recognition providers.

No Tesseract binary or network access is needed: pytesseract is patched and
the cloud provider gets an in-memory HTTP session.

Run with: pytest tests/test_providers.py -v
"""

import asyncio
import sys
import types

import aiohttp
import pytest
import pytesseract

from expiry_scan.extraction.extraction_result import RecognitionMethod
from expiry_scan.ocr_engine import (
    CloudOCRProvider,
    EasyOCRProvider,
    TesseractProvider,
    build_providers,
)
from expiry_scan.ocr_engine.recognized_text import RecognizedText, TextBlock
from expiry_scan.utils.exceptions import CloudServiceError, ScanErrorKind


TESSERACT_DATA = {
    'text': ['', 'BEST', 'BEFORE', '30/11/25', '  ', 'LOT'],
    'conf': ['-1', '91', '89', '76.5', '-1', '40'],
    'left': [0, 10, 70, 10, 0, 10],
    'top': [0, 10, 10, 40, 0, 70],
    'width': [0, 50, 60, 80, 0, 30],
    'height': [0, 20, 20, 20, 0, 20],
    'block_num': [0, 1, 1, 1, 1, 2],
    'par_num': [0, 1, 1, 1, 1, 1],
    'line_num': [0, 1, 1, 2, 2, 1],
}


class FakeResponse:
    """Minimal stand-in for an aiohttp response."""

    def __init__(self, status=200, payload=None, invalid_json=False, delay=0.0):
        self.status = status
        self._payload = payload
        self._invalid_json = invalid_json
        self._delay = delay

    async def json(self, content_type=None):
        if self._invalid_json:
            raise ValueError("Expecting value")
        return self._payload

    async def __aenter__(self):
        if self._delay:
            await asyncio.sleep(self._delay)
        return self

    async def __aexit__(self, exc_type, exc, tb):
        return False


class FakeSession:
    """Records posts and replays one response (or raises one error)."""

    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.calls = []

    def post(self, url, data=None):
        self.calls.append((url, data))
        if self.error is not None:
            raise self.error
        return self.response


def parsed(text):
    return {'IsErroredOnProcessing': False, 'ParsedResults': [{'ParsedText': text}]}


# ============================================================================
# Recognized Text
# ============================================================================

class TestRecognizedText:
    def test_average_confidence(self):
        text = RecognizedText("a\nb", blocks=(TextBlock("a", 80.0), TextBlock("b", 60.0)))
        assert text.average_confidence == pytest.approx(70.0)

    def test_average_confidence_without_blocks(self):
        assert RecognizedText("30/11/25").average_confidence is None

    def test_blank(self):
        assert RecognizedText("  \n ").is_blank
        assert not RecognizedText("30").is_blank

    def test_number_blocks(self):
        blocks = (
            TextBlock("BEST BEFORE", 95.0),
            TextBlock("30/11/25", 70.0),
            TextBlock("30NOV25", 88.0),
            TextBlock("L0T A", 90.0),
        )
        text = RecognizedText("", blocks=blocks)
        assert [b.text for b in text.number_blocks()] == ["30/11/25", "30NOV25"]
        assert text.most_likely_date_block().text == "30NOV25"

    def test_no_number_blocks(self):
        text = RecognizedText("NET WT", blocks=(TextBlock("NET WT", 90.0),))
        assert text.most_likely_date_block() is None


# ============================================================================
# Tesseract
# ============================================================================

class TestTesseractProvider:
    def test_build_config(self):
        provider = TesseractProvider(psm=7, oem=1, extra_config="-c tessedit_char_whitelist=0123456789/")
        assert provider._build_config() == "--psm 7 --oem 1 -c tessedit_char_whitelist=0123456789/"

    def test_parse_output_groups_lines(self):
        blocks = TesseractProvider.parse_output(TESSERACT_DATA)
        assert [b.text for b in blocks] == ["BEST BEFORE", "30/11/25", "LOT"]
        assert blocks[0].confidence == pytest.approx(90.0)
        assert blocks[0].bbox == (10, 10, 130, 30)
        assert blocks[1].confidence == pytest.approx(76.5)

    @pytest.mark.asyncio
    async def test_recognize(self, monkeypatch, label_image):
        monkeypatch.setattr(pytesseract, "get_tesseract_version", lambda: "5.3.0")
        monkeypatch.setattr(
            pytesseract, "image_to_data",
            lambda image, lang=None, config=None, output_type=None: TESSERACT_DATA
        )

        outcome = await TesseractProvider().attempt_recognize(label_image)

        assert outcome.succeeded
        assert outcome.method == RecognitionMethod.NATIVE
        assert outcome.text.text == "BEST BEFORE\n30/11/25\nLOT"
        assert outcome.text.engine == "tesseract"

    @pytest.mark.asyncio
    async def test_missing_binary_is_platform_unsupported(self, monkeypatch, label_image):
        def missing():
            raise pytesseract.TesseractNotFoundError()

        monkeypatch.setattr(pytesseract, "get_tesseract_version", missing)

        provider = TesseractProvider()
        outcome = await provider.attempt_recognize(label_image)

        assert not outcome.succeeded
        assert outcome.error == ScanErrorKind.PLATFORM_UNSUPPORTED
        assert provider.is_available() is False

    @pytest.mark.asyncio
    async def test_processing_failure_is_no_text(self, monkeypatch, label_image):
        def broken(image, lang=None, config=None, output_type=None):
            raise RuntimeError("tesseract crashed")

        monkeypatch.setattr(pytesseract, "get_tesseract_version", lambda: "5.3.0")
        monkeypatch.setattr(pytesseract, "image_to_data", broken)

        outcome = await TesseractProvider().attempt_recognize(label_image)
        assert outcome.error == ScanErrorKind.NO_TEXT_DETECTED

    @pytest.mark.asyncio
    async def test_blank_page_is_no_text(self, monkeypatch, label_image):
        empty = {key: [] for key in TESSERACT_DATA}
        monkeypatch.setattr(pytesseract, "get_tesseract_version", lambda: "5.3.0")
        monkeypatch.setattr(
            pytesseract, "image_to_data",
            lambda image, lang=None, config=None, output_type=None: empty
        )

        outcome = await TesseractProvider().attempt_recognize(label_image)
        assert outcome.error == ScanErrorKind.NO_TEXT_DETECTED


# ============================================================================
# EasyOCR
# ============================================================================

class TestEasyOCRProvider:
    @pytest.fixture
    def fake_easyocr(self, monkeypatch):
        module = types.ModuleType("easyocr")
        monkeypatch.setitem(sys.modules, "easyocr", module)
        return module

    @pytest.mark.asyncio
    async def test_reader_results_become_blocks(self, fake_easyocr, label_image):
        class Reader:
            def __init__(self, languages, gpu=False):
                pass

            def readtext(self, array):
                return [([[10, 10], [90, 10], [90, 30], [10, 30]], "30/11/25", 0.87)]

        fake_easyocr.Reader = Reader

        outcome = await EasyOCRProvider(languages=["en"]).attempt_recognize(label_image)

        assert outcome.succeeded
        assert outcome.text.blocks[0].confidence == pytest.approx(87.0)
        assert outcome.text.blocks[0].bbox == (10, 10, 90, 30)

    @pytest.mark.asyncio
    async def test_model_load_failure_is_platform_unsupported(self, fake_easyocr, label_image):
        def broken_reader(languages, gpu=False):
            raise OSError("model download failed")

        fake_easyocr.Reader = broken_reader

        outcome = await EasyOCRProvider(languages=["en"]).attempt_recognize(label_image)

        assert not outcome.succeeded
        assert outcome.error == ScanErrorKind.PLATFORM_UNSUPPORTED
        assert "model download failed" in outcome.message


# ============================================================================
# Cloud
# ============================================================================

class TestCloudOCRProvider:
    def test_form_fields(self):
        provider = CloudOCRProvider(api_key="helloworld", engine=2, language="eng")
        fields = provider.form_fields("data:image/jpeg;base64,AAAA")
        assert fields == {
            'base64Image': "data:image/jpeg;base64,AAAA",
            'language': 'eng',
            'isOverlayRequired': 'false',
            'detectOrientation': 'true',
            'scale': 'true',
            'OCREngine': '2',
            'apikey': 'helloworld',
        }

    @pytest.mark.asyncio
    async def test_success(self, label_image):
        session = FakeSession(FakeResponse(payload=parsed("BEST BEFORE\r\n25 DEC 2025\r\n")))
        provider = CloudOCRProvider(endpoint="https://ocr.test/parse/image", session=session)

        outcome = await provider.attempt_recognize(label_image)

        assert outcome.succeeded
        assert outcome.method == RecognitionMethod.CLOUD
        assert outcome.text.text == "BEST BEFORE\n25 DEC 2025"
        assert outcome.text.average_confidence is None

        url, form = session.calls[0]
        assert url == "https://ocr.test/parse/image"
        assert isinstance(form, aiohttp.FormData)

    @pytest.mark.asyncio
    async def test_request_is_multipart(self, label_image):
        session = FakeSession(FakeResponse(payload=parsed("30/11/25")))
        await CloudOCRProvider(session=session).attempt_recognize(label_image)

        _, form = session.calls[0]
        assert form.is_multipart
        assert form().content_type.startswith("multipart/form-data")

    @pytest.mark.asyncio
    async def test_throttled(self, label_image):
        provider = CloudOCRProvider(session=FakeSession(FakeResponse(status=429)))
        outcome = await provider.attempt_recognize(label_image)
        assert outcome.error == ScanErrorKind.SERVICE_UNAVAILABLE
        assert "429" in outcome.message

    @pytest.mark.asyncio
    async def test_unreachable(self, label_image):
        session = FakeSession(error=aiohttp.ClientConnectionError("connection refused"))
        outcome = await CloudOCRProvider(session=session).attempt_recognize(label_image)
        assert outcome.error == ScanErrorKind.SERVICE_UNAVAILABLE

    @pytest.mark.asyncio
    async def test_processing_error(self, label_image):
        payload = {'IsErroredOnProcessing': True, 'ErrorMessage': ["E101: Timed out waiting for results"]}
        provider = CloudOCRProvider(session=FakeSession(FakeResponse(payload=payload)))
        outcome = await provider.attempt_recognize(label_image)
        assert outcome.error == ScanErrorKind.SERVICE_UNAVAILABLE
        assert "E101" in outcome.message

    @pytest.mark.asyncio
    async def test_invalid_json(self, label_image):
        provider = CloudOCRProvider(session=FakeSession(FakeResponse(invalid_json=True)))
        outcome = await provider.attempt_recognize(label_image)
        assert outcome.error == ScanErrorKind.SERVICE_UNAVAILABLE

    @pytest.mark.asyncio
    async def test_empty_text(self, label_image):
        provider = CloudOCRProvider(session=FakeSession(FakeResponse(payload=parsed("  "))))
        outcome = await provider.attempt_recognize(label_image)
        assert outcome.error == ScanErrorKind.NO_TEXT_DETECTED

    @pytest.mark.asyncio
    async def test_timeout_is_service_unavailable(self, label_image):
        session = FakeSession(FakeResponse(payload=parsed("30/11/25"), delay=5.0))
        provider = CloudOCRProvider(session=session, timeout=0.05)
        outcome = await provider.attempt_recognize(label_image)
        assert outcome.error == ScanErrorKind.SERVICE_UNAVAILABLE
        assert "timed out" in outcome.message

    def test_error_message_as_string(self):
        with pytest.raises(CloudServiceError) as exc_info:
            CloudOCRProvider().parse_response(
                {'IsErroredOnProcessing': True, 'ErrorMessage': "Invalid API key"}
            )
        assert exc_info.value.reason == "Invalid API key"


# ============================================================================
# Registry
# ============================================================================

class TestBuildProviders:
    def test_configured_providers(self):
        providers = build_providers()
        assert [p.name for p in providers] == ['tesseract', 'cloud']

    def test_native_first_and_unknown_skipped(self):
        providers = build_providers(['cloud', 'paddle', 'easyocr', 'cloud'])
        assert [type(p) for p in providers] == [EasyOCRProvider, CloudOCRProvider]
