"""
Unit tests for candidate date extraction and ranking.

All tests pass a fixed extraction instant so results do not depend on
the wall clock.

Run with: pytest tests/test_extractor.py -v
"""

from datetime import date, datetime

import pytest
from dateutil import tz

from expiry_scan.extraction.date_rules import DATE_FORMAT_RULES, month_number
from expiry_scan.extraction.extraction_result import DateCandidate
from expiry_scan.extraction.extractor import CandidateDateExtractor, is_after
from expiry_scan.postprocessor.normalizers import TextNormalizer
from expiry_scan.postprocessor.validators import DateField, expand_year


@pytest.fixture
def extractor():
    return CandidateDateExtractor()


@pytest.fixture
def normalizer():
    return TextNormalizer()


# ============================================================================
# Label Scenarios
# ============================================================================

class TestLabelScenarios:
    def test_best_before_compact_month(self, extractor, normalizer, now):
        text = normalizer.normalize("BEST BEFORE 30NOV25 153098041")
        assert "30NOV25" in text
        assert "BEST" not in text

        selection = extractor.select_best(text, now=now)
        assert selection.date == date(2025, 11, 30)
        assert selection.confidence == 85
        assert selection.candidate.rule == 'textual_month_compact'

    def test_spaced_and_compact_months_agree(self, extractor, now):
        spaced = extractor.select_best("30 NOV 25", now=now)
        compact = extractor.select_best("30NOV25", now=now)
        assert spaced.date == compact.date == date(2025, 11, 30)
        assert spaced.candidate.rule == 'textual_month_spaced'
        assert compact.candidate.rule == 'textual_month_compact'

    def test_past_date_yields_nothing(self, extractor, now):
        assert extractor.extract("01/01/2020", now=now) == []
        assert extractor.select_best("01/01/2020", now=now) is None

    def test_iso_beats_slash_for_same_date(self, extractor, now):
        candidates = extractor.extract("2025-11-30 and also 30/11/25", now=now)
        by_rule = {c.rule: c for c in candidates}
        assert set(by_rule) == {'iso_numeric', 'slash_day_first'}
        assert by_rule['iso_numeric'].date == by_rule['slash_day_first'].date
        assert by_rule['iso_numeric'].confidence >= by_rule['slash_day_first'].confidence

        selection = extractor.select_best("2025-11-30 and also 30/11/25", now=now)
        assert selection.candidate.rule == 'iso_numeric'
        assert selection.confidence > 90

    def test_trailing_weight_does_not_become_a_year(self, extractor, normalizer, now):
        text = normalizer.normalize("BEST BEFORE 15 MAR 27 45G")

        selection = extractor.select_best(text, now=now)

        assert selection.date == date(2027, 3, 15)
        assert selection.candidate.rule == 'textual_month_spaced'
        assert 'textual_month_first' not in {c.rule for c in extractor.extract(text, now=now)}

    def test_month_first_after_a_word(self, extractor, now):
        assert extractor.select_best("USE BY MAR 27 2027", now=now).date == date(2027, 3, 27)

    def test_letter_o_label_resolves_like_digits(self, extractor, normalizer, now):
        text = normalizer.normalize("3ONOV25")
        assert text == "30NOV25"
        assert extractor.select_best(text, now=now).date == date(2025, 11, 30)

    def test_future_date_wins_over_adjacent_past_date(self, extractor, now):
        selection = extractor.select_best("01/01/2020 30/11/25", now=now)
        assert selection.date == date(2025, 11, 30)


# ============================================================================
# Individual Rules
# ============================================================================

class TestRules:
    def test_iso_with_dots(self, extractor, now):
        selection = extractor.select_best("2026.03.07", now=now)
        assert selection.date == date(2026, 3, 7)
        assert selection.confidence == 95

    def test_slash_four_digit_year(self, extractor, now):
        assert extractor.select_best("30-11-2025", now=now).date == date(2025, 11, 30)

    def test_full_month_name(self, extractor, now):
        selection = extractor.select_best("25DECEMBER2025", now=now)
        assert selection.date == date(2025, 12, 25)

    def test_month_first(self, extractor, now):
        assert extractor.select_best("DEC 25 2025", now=now).date == date(2025, 12, 25)
        assert extractor.select_best("NOV 30, 25", now=now).date == date(2025, 11, 30)

    def test_compact_iso(self, extractor, now):
        candidates = extractor.extract("20251130", now=now)
        assert [c.rule for c in candidates] == ['compact_iso']
        assert candidates[0].date == date(2025, 11, 30)
        assert candidates[0].confidence == 75

    def test_digits_only(self, extractor, now):
        selection = extractor.select_best("301125", now=now)
        assert selection.date == date(2025, 11, 30)
        assert selection.confidence == 70

    def test_long_digit_run_is_not_a_date(self, extractor, now):
        assert extractor.extract("153098041", now=now) == []

    def test_impossible_calendar_dates(self, extractor, now):
        assert extractor.select_best("31/04/26", now=now) is None
        assert extractor.select_best("30/02/26", now=now) is None

    def test_leap_day(self, extractor, now):
        assert extractor.select_best("29/02/28", now=now).date == date(2028, 2, 29)
        assert extractor.select_best("29/02/27", now=now) is None

    def test_empty_text(self, extractor, now):
        assert extractor.extract("", now=now) == []
        assert extractor.select_best("", now=now) is None

    def test_month_number(self):
        assert month_number("nov") == "11"
        assert month_number("January") == "01"


# ============================================================================
# Corrections
# ============================================================================

class TestCorrections:
    def test_out_of_range_month_is_repaired(self, extractor):
        selection = extractor.select_best("30/15/25", now=datetime(2025, 1, 1))
        assert selection.date == date(2025, 5, 30)
        assert selection.confidence == 85

        corrections = selection.candidate.corrections
        assert len(corrections) == 1
        assert corrections[0].field == DateField.MONTH
        assert corrections[0].original == "15"
        assert corrections[0].corrected == "05"

    def test_correction_confidence_caps_candidate(self, extractor):
        selection = extractor.select_best("31/13/25", now=datetime(2025, 1, 1))
        assert selection.date == date(2025, 3, 31)
        assert selection.confidence == 85

    def test_observed_confidence_caps_repairs(self, extractor):
        selection = extractor.select_best(
            "30/15/25", now=datetime(2025, 1, 1), observed_confidence=40
        )
        assert selection.confidence == 40

    def test_observed_confidence_leaves_clean_dates_alone(self, extractor, now):
        selection = extractor.select_best("30/11/25", now=now, observed_confidence=40)
        assert selection.confidence == 90

    def test_unrepairable_component_rejects_candidate(self, extractor, now):
        assert extractor.select_best("30/25/25", now=now) is None


# ============================================================================
# Ranking
# ============================================================================

class TestRanking:
    def test_longer_span_breaks_confidence_tie(self, extractor, now):
        selection = extractor.select_best("29NOV25 / 30 NOV 25", now=now)
        assert selection.date == date(2025, 11, 30)
        assert selection.candidate.rule == 'textual_month_spaced'

    def test_rule_name_then_offset_break_remaining_ties(self):
        first = DateCandidate(date(2025, 11, 29), 85, 'textual_month_spaced', '29 NOV 25', 0)
        second = DateCandidate(date(2025, 11, 30), 85, 'textual_month_first', 'NOV 30 25', 10)
        third = DateCandidate(date(2025, 12, 1), 85, 'textual_month_first', 'DEC 01 25', 20)

        ordered = sorted([first, second, third], key=CandidateDateExtractor._ranking_key)
        assert ordered == [second, third, first]

    def test_selection_ignores_rule_registration_order(self, now):
        text = "29NOV25 / 30 NOV 25 2025-12-01 01/12/25"
        forward = CandidateDateExtractor().select_best(text, now=now)
        backward = CandidateDateExtractor(rules=tuple(reversed(DATE_FORMAT_RULES))).select_best(
            text, now=now
        )
        assert forward == backward
        assert forward.candidate.rule == 'iso_numeric'


# ============================================================================
# Properties
# ============================================================================

SAMPLE_TEXTS = [
    "30NOV25 153098041",
    "2025-11-30 and also 30/11/25",
    "30 NOV 25",
    "DEC 25 2025",
    "20251130",
    "301125",
    "25DECEMBER2025 12/06/2026",
    "01/01/2020 30/11/25",
]


class TestProperties:
    @pytest.mark.parametrize("text", SAMPLE_TEXTS)
    def test_candidates_round_trip_their_tokens(self, extractor, now, text):
        rules = {rule.name: rule for rule in DATE_FORMAT_RULES}
        for candidate in extractor.extract(text, now=now):
            if candidate.corrections:
                continue
            match = rules[candidate.rule].pattern.fullmatch(candidate.span)
            tokens = rules[candidate.rule].decode(match)
            assert candidate.date.day == int(tokens.day)
            assert candidate.date.month == int(tokens.month)
            assert candidate.date.year == expand_year(int(tokens.year))

    @pytest.mark.parametrize("text", SAMPLE_TEXTS)
    def test_candidates_are_in_the_future(self, extractor, now, text):
        for candidate in extractor.extract(text, now=now):
            assert datetime.combine(candidate.date, datetime.min.time()) > now

    @pytest.mark.parametrize("text", SAMPLE_TEXTS)
    def test_confidence_is_bounded(self, extractor, now, text):
        for candidate in extractor.extract(text, now=now):
            assert 0 <= candidate.confidence <= 100


class TestFutureFilter:
    def test_today_is_not_in_the_future(self):
        assert not is_after(date(2025, 11, 30), datetime(2025, 11, 30, 8, 0))

    def test_tomorrow_is_in_the_future(self):
        assert is_after(date(2025, 11, 30), datetime(2025, 11, 29, 23, 59))

    def test_plain_date_instant(self):
        assert is_after(date(2025, 11, 30), date(2025, 11, 29))
        assert not is_after(date(2025, 11, 30), date(2025, 11, 30))

    def test_aware_instant(self):
        utc = tz.gettz("UTC")
        assert is_after(date(2025, 11, 30), datetime(2025, 11, 29, 23, 0, tzinfo=utc))
        assert not is_after(date(2025, 11, 30), datetime(2025, 11, 30, 0, 0, tzinfo=utc))

    def test_default_instant_is_used(self, extractor):
        assert extractor.select_best("01/01/2020") is None
        assert extractor.select_best("31/12/2049").date == date(2049, 12, 31)
