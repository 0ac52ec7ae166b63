"""
Text Normalizer Module.

Cleans raw recognizer output before any date parsing is attempted:
    - Strips label phrases ("BEST BEFORE", "EXP", "BB", ...)
    - Repairs letter/digit confusion in numeric contexts (O->0, l/I->1)
    - Collapses whitespace

Also provides the cheap date-likelihood pre-check used by the scanner
before paying for full extraction.
"""

import re
from typing import List, Optional, Sequence

from config import get_config
from expiry_scan.utils.logger import get_logger

# Initialize module logger
logger = get_logger(__name__)


MONTH_ABBREVIATIONS = (
    'JAN', 'FEB', 'MAR', 'APR', 'MAY', 'JUN',
    'JUL', 'AUG', 'SEP', 'OCT', 'NOV', 'DEC',
)

MONTH_ALTERNATION = '|'.join(MONTH_ABBREVIATIONS)

DEFAULT_LABEL_PREFIXES = [
    'BEST BEFORE',
    'USE BY',
    'SELL BY',
    'EXPIRY',
    'EXPIRES',
    'EXP',
    'BB',
    'MFG',
    'PKD',
]

# Letter O read in place of zero. "25OCT" keeps its O.
_O_AS_ZERO = re.compile(
    r'(?<=\d)O(?![Cc][Tt])'
    r'|(?<=\d)o(?![A-Za-z])'
    r'|(?<![A-Za-z])[Oo](?=\d)'
    rf'|(?<![A-Za-z])[Oo](?=(?i:{MONTH_ALTERNATION}))'
)

# Lowercase l / uppercase I read in place of one, outside of words.
_L_AS_ONE = re.compile(
    r'(?<![A-Za-z])[lI](?=\d)'
    r'|(?<=\d)[lI](?![a-z])'
)

_WHITESPACE = re.compile(r'\s+')

_DIGIT_RUN = re.compile(r'\d{2,}')
_MONTH_TOKEN = re.compile(rf'(?i:{MONTH_ALTERNATION})')


class TextNormalizer:
    """
    Normalizes recognized label text for date extraction.

    The normalization pass is applied until the text stops changing, so
    normalize() is idempotent: normalize(normalize(x)) == normalize(x).

    Attributes:
        label_prefixes: Label phrases stripped from the start of the text
            or of any line.

    Example:
        >>> normalizer = TextNormalizer()
        >>> normalizer.normalize("BEST BEFORE 3ONOV25 153098041")
        '30NOV25 153098041'
    """

    def __init__(self, label_prefixes: Optional[Sequence[str]] = None) -> None:
        if label_prefixes is None:
            label_prefixes = get_config(
                "normalizer.label_prefixes",
                DEFAULT_LABEL_PREFIXES
            )
        self.label_prefixes: List[str] = list(label_prefixes)
        self._label_pattern = self._build_label_pattern(self.label_prefixes)

        logger.debug(f"TextNormalizer initialized ({len(self.label_prefixes)} label prefixes)")

    @staticmethod
    def _build_label_pattern(prefixes: Sequence[str]) -> Optional[re.Pattern]:
        """
        Compile one regex matching any label phrase at a line start.

        Longer phrases are tried first so "EXPIRY" wins over "EXP". Spaces
        inside a phrase match any whitespace run ("BEST  BEFORE").
        """
        if not prefixes:
            return None

        phrases = sorted({p.strip() for p in prefixes if p.strip()}, key=len, reverse=True)
        alternatives = [
            r'\s*'.join(re.escape(word) for word in phrase.split())
            for phrase in phrases
        ]

        return re.compile(
            r'^[ \t]*(?:' + '|'.join(alternatives) + r')(?![A-Za-z])[\s:;.,\-/]*',
            re.IGNORECASE | re.MULTILINE
        )

    def normalize(self, raw: Optional[str]) -> str:
        """
        Normalize raw recognized text.

        Args:
            raw: Text as returned by a recognizer. None is treated as "".

        Returns:
            Normalized text, possibly unchanged. Never raises.
        """
        if not raw:
            return ""

        text = raw
        # Every pass removes a label or a confusable letter, or is the last one.
        while True:
            normalized = self._normalize_pass(text)
            if normalized == text:
                break
            text = normalized

        if text != raw:
            logger.debug(f"Normalized text: '{raw}' -> '{text}'")

        return text

    def _normalize_pass(self, text: str) -> str:
        text = self.strip_labels(text)
        text = _O_AS_ZERO.sub('0', text)
        text = _L_AS_ONE.sub('1', text)
        return _WHITESPACE.sub(' ', text).strip()

    def strip_labels(self, text: str) -> str:
        """
        Remove label phrases and their trailing separators from line starts.

        Example:
            >>> TextNormalizer().strip_labels("EXP: 30NOV25")
            '30NOV25'
        """
        if self._label_pattern is None:
            return text
        return self._label_pattern.sub('', text)


def looks_like_date(text: str) -> bool:
    """
    Cheap pre-check: does the text contain a digit run or a month token?

    Used to skip full extraction on clearly non-date text.

    Example:
        >>> looks_like_date("30NOV25")
        True
        >>> looks_like_date("NET WT")
        False
    """
    if not text:
        return False
    return bool(_DIGIT_RUN.search(text) or _MONTH_TOKEN.search(text))
