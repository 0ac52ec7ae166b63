"""
Recognition Provider Registry.

Builds the ordered provider chain the scanner walks through. Provider names
come from `recognition.providers` in the configuration.

Usage:
    from expiry_scan.ocr_engine import build_providers

    providers = build_providers()              # from configuration
    providers = build_providers(["tesseract"])  # native only
"""

from typing import Dict, List, Optional, Sequence, Type

from config import get_config
from expiry_scan.extraction.extraction_result import RecognitionMethod
from expiry_scan.utils.logger import get_logger
from .base import RecognitionProvider
from .cloud_backend import CloudOCRProvider
from .easyocr_backend import EasyOCRProvider
from .tesseract_backend import TesseractProvider

# Initialize module logger
logger = get_logger(__name__)

# Supported providers by configuration name
PROVIDER_TYPES: Dict[str, Type[RecognitionProvider]] = {
    'tesseract': TesseractProvider,
    'easyocr': EasyOCRProvider,
    'cloud': CloudOCRProvider,
}

DEFAULT_PROVIDERS = ['tesseract', 'cloud']


def order_providers(providers: Sequence[RecognitionProvider]) -> List[RecognitionProvider]:
    """
    Put native providers ahead of cloud ones, keeping relative order.

    Args:
        providers: Providers in configured order.

    Returns:
        New list, native first.
    """
    return sorted(providers, key=lambda p: p.method != RecognitionMethod.NATIVE)


def build_providers(names: Optional[Sequence[str]] = None) -> List[RecognitionProvider]:
    """
    Instantiate providers by name.

    Unknown names are logged and skipped; duplicates are ignored.

    Args:
        names: Provider names. If None, uses configuration.

    Returns:
        Providers, native first.
    """
    if names is None:
        names = get_config("recognition.providers", DEFAULT_PROVIDERS)

    providers: List[RecognitionProvider] = []
    seen = set()

    for name in names:
        key = str(name).lower()
        if key in seen:
            continue
        seen.add(key)

        provider_type = PROVIDER_TYPES.get(key)
        if provider_type is None:
            logger.warning(
                f"Unknown recognition provider '{name}' "
                f"(supported: {', '.join(PROVIDER_TYPES)})"
            )
            continue

        providers.append(provider_type())

    ordered = order_providers(providers)
    logger.info(f"Recognition providers: {', '.join(p.name for p in ordered) or 'none'}")
    return ordered
