"""
Date Format Rules.

The static, read-only table of date shapes the extractor runs over
normalized label text. Each rule pairs a regex with a decoder that maps the
match groups to raw day/month/year tokens, and carries the base confidence
for dates read in that shape.

Rules (registration order):
    iso_numeric              2025-11-30, 2025/11/30         95
    slash_day_first          30/11/2025, 30-11-25           90
    textual_month_compact    30NOV25, 25DECEMBER2024        85
    textual_month_spaced     30 NOV 25                      85
    textual_month_first      DEC 25 2024, NOV 30, 25        85
    compact_iso              20251130                       75
    digits_only_day_first    301125, 30112025               70

Separator-free shapes score lowest: a bare digit run is the most
ambiguous thing printed on a label.
"""

import re
from dataclasses import dataclass
from typing import Callable, Tuple

from expiry_scan.postprocessor.normalizers import MONTH_ABBREVIATIONS, MONTH_ALTERNATION


@dataclass(frozen=True)
class DateTokens:
    """Raw day/month/year tokens decoded from one match."""
    day: str
    month: str
    year: str


@dataclass(frozen=True)
class DateFormatRule:
    """
    A named date shape.

    Attributes:
        name: Stable rule identifier (also used for tie-breaking)
        pattern: Compiled matcher
        decode: Maps a match to DateTokens
        confidence: Base confidence for candidates of this shape (0-100)
    """
    name: str
    pattern: re.Pattern
    decode: Callable[[re.Match], DateTokens]
    confidence: int


def month_number(name: str) -> str:
    """
    Two-digit month number for a month name or abbreviation.

    Example:
        >>> month_number("November")
        '11'
    """
    return f"{MONTH_ABBREVIATIONS.index(name[:3].upper()) + 1:02d}"


def _day_month_year(match: re.Match) -> DateTokens:
    return DateTokens(day=match.group(1), month=match.group(2), year=match.group(3))


def _year_month_day(match: re.Match) -> DateTokens:
    return DateTokens(day=match.group(3), month=match.group(2), year=match.group(1))


def _day_named_month_year(match: re.Match) -> DateTokens:
    return DateTokens(
        day=match.group(1),
        month=month_number(match.group(2)),
        year=match.group(3)
    )


def _named_month_day_year(match: re.Match) -> DateTokens:
    return DateTokens(
        day=match.group(2),
        month=month_number(match.group(1)),
        year=match.group(3)
    )


_SEP = r'[/\-.]'
_MONTH = r'(' + MONTH_ALTERNATION + r')[A-Z]*'


DATE_FORMAT_RULES: Tuple[DateFormatRule, ...] = (
    DateFormatRule(
        name='iso_numeric',
        pattern=re.compile(
            r'(?<!\d)(\d{4})' + _SEP + r'(\d{1,2})' + _SEP + r'(\d{1,2})(?!\d)'
        ),
        decode=_year_month_day,
        confidence=95,
    ),
    DateFormatRule(
        name='slash_day_first',
        pattern=re.compile(
            r'(?<!\d)(\d{1,2})' + _SEP + r'(\d{1,2})' + _SEP + r'(\d{2,4})(?!\d)'
        ),
        decode=_day_month_year,
        confidence=90,
    ),
    DateFormatRule(
        name='textual_month_compact',
        pattern=re.compile(
            r'(?<!\d)(\d{1,2})' + _MONTH + r'(\d{2,4})(?!\d)',
            re.IGNORECASE
        ),
        decode=_day_named_month_year,
        confidence=85,
    ),
    DateFormatRule(
        name='textual_month_spaced',
        pattern=re.compile(
            r'(?<!\d)(\d{1,2})\s+' + _MONTH + r'\.?\s+(\d{2,4})(?!\d)',
            re.IGNORECASE
        ),
        decode=_day_named_month_year,
        confidence=85,
    ),
    DateFormatRule(
        name='textual_month_first',
        # A month right after a day number belongs to a day-first date ("15 MAR 27 45G").
        pattern=re.compile(
            r'(?<!\d)(?<!\d\s)(?<![A-Z])' + _MONTH + r'\.?\s*(\d{1,2})(?:\s*,\s*|\s+)(\d{2,4})(?!\d)',
            re.IGNORECASE
        ),
        decode=_named_month_day_year,
        confidence=85,
    ),
    DateFormatRule(
        name='compact_iso',
        pattern=re.compile(r'\b(20\d{2})(\d{2})(\d{2})\b'),
        decode=_year_month_day,
        confidence=75,
    ),
    DateFormatRule(
        name='digits_only_day_first',
        pattern=re.compile(r'\b(\d{2})(\d{2})(\d{2,4})\b'),
        decode=_day_month_year,
        confidence=70,
    ),
)
