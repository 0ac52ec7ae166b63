"""
Recognized Text Data Classes.

Standardized output of every recognition provider, native or cloud.

Classes:
    TextBlock: One recognized block (word or line) with its confidence
    RecognizedText: Complete recognizer output for one image
    RecognitionOutcome: Result of one provider attempt, successful or not
"""

import json
import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

from expiry_scan.extraction.extraction_result import RecognitionMethod
from expiry_scan.utils.exceptions import ScanErrorKind

# Characters that make up a numeric date
_DATE_CHARACTER = re.compile(r'[\d/\-.]')

# Minimum share of date characters for a block to count as a number block
NUMBER_BLOCK_RATIO = 0.5


@dataclass(frozen=True)
class TextBlock:
    """
    A single recognized block of text.

    Attributes:
        text: Recognized text content
        confidence: Recognizer confidence (0-100)
        bbox: Bounding box as (x1, y1, x2, y2) in pixels, when known

    Example:
        >>> block = TextBlock(text="30/11/25", confidence=91.0, bbox=(10, 20, 90, 40))
        >>> block.date_character_ratio
        1.0
    """
    text: str
    confidence: float = 0.0
    bbox: Optional[Tuple[int, int, int, int]] = None

    @property
    def date_character_ratio(self) -> float:
        """Share of characters that are digits or date separators."""
        if not self.text:
            return 0.0
        return len(_DATE_CHARACTER.findall(self.text)) / len(self.text)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary format."""
        return {
            'text': self.text,
            'confidence': self.confidence,
            'bbox': list(self.bbox) if self.bbox else None
        }

    def __repr__(self) -> str:
        return f"TextBlock('{self.text}', conf={self.confidence:.1f})"


@dataclass(frozen=True)
class RecognizedText:
    """
    Recognizer output for one image.

    Attributes:
        text: Full raw text, lines joined with newlines
        blocks: Recognized blocks in reading order
        engine: Name of the provider that produced the text
        processing_time: Time taken for recognition in seconds

    Example:
        >>> result = await provider.recognize(image)
        >>> print(result.text, result.average_confidence)
    """
    text: str
    blocks: Tuple[TextBlock, ...] = ()
    engine: str = "unknown"
    processing_time: float = 0.0

    @property
    def average_confidence(self) -> Optional[float]:
        """Mean block confidence, or None when the recognizer gave no blocks."""
        if not self.blocks:
            return None
        return sum(b.confidence for b in self.blocks) / len(self.blocks)

    @property
    def is_blank(self) -> bool:
        """True when no non-whitespace text was recognized."""
        return not self.text or not self.text.strip()

    def number_blocks(self) -> List[TextBlock]:
        """
        Blocks made up of at least half digits and date separators.

        Returns:
            Matching blocks in reading order.
        """
        return [b for b in self.blocks if b.date_character_ratio >= NUMBER_BLOCK_RATIO]

    def most_likely_date_block(self) -> Optional[TextBlock]:
        """
        The number block with the highest confidence.

        Ties keep reading order.

        Returns:
            TextBlock, or None when no block looks numeric.
        """
        candidates = self.number_blocks()
        if not candidates:
            return None
        return max(candidates, key=lambda b: b.confidence)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary format for serialization."""
        return {
            'text': self.text,
            'engine': self.engine,
            'average_confidence': self.average_confidence,
            'processing_time': self.processing_time,
            'blocks': [b.to_dict() for b in self.blocks]
        }

    def to_json(self, indent: int = 2) -> str:
        """Convert to JSON string."""
        return json.dumps(self.to_dict(), indent=indent)

    def __repr__(self) -> str:
        return (
            f"RecognizedText(engine={self.engine}, blocks={len(self.blocks)}, "
            f"chars={len(self.text)})"
        )


@dataclass(frozen=True)
class RecognitionOutcome:
    """
    Outcome of one provider attempt.

    Exactly one of `text` and `error` is set. Failures are data here so the
    scanner can branch on `error` without exception handling.

    Attributes:
        provider: Provider name
        method: Recognition tier of the provider
        text: Recognized text on success
        error: Failure kind on failure
        message: Human-readable failure reason
        processing_time: Time taken for the attempt in seconds
    """
    provider: str
    method: RecognitionMethod
    text: Optional[RecognizedText] = None
    error: Optional[ScanErrorKind] = None
    message: str = ""
    processing_time: float = 0.0

    @property
    def succeeded(self) -> bool:
        """Whether the provider returned text."""
        return self.text is not None and self.error is None
