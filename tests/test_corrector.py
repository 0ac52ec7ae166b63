"""
Unit tests for day/month/year validation and digit-confusion correction.

Run with: pytest tests/test_corrector.py -v
"""

import pytest

from expiry_scan.postprocessor.validators import (
    DateField,
    DigitConfusionCorrector,
    expand_year,
    is_valid_day,
    is_valid_month,
    is_valid_year,
)


@pytest.fixture
def corrector():
    return DigitConfusionCorrector()


class TestRangeValidation:
    def test_month_range(self):
        assert is_valid_month("1")
        assert is_valid_month("12")
        assert not is_valid_month("00")
        assert not is_valid_month("13")
        assert not is_valid_month("O7")

    def test_day_range(self):
        assert is_valid_day("31")
        assert not is_valid_day("0")
        assert not is_valid_day("32")

    def test_year_window(self):
        assert is_valid_year("25")
        assert is_valid_year("2050")
        assert not is_valid_year("2019")
        assert not is_valid_year("99")
        assert not is_valid_year("202")

    def test_expand_year(self):
        assert expand_year(25) == 2025
        assert expand_year(49) == 2049
        assert expand_year(50) == 1950
        assert expand_year(2031) == 2031


class TestCorrectMonth:
    def test_valid_month_needs_no_correction(self, corrector):
        assert corrector.correct_month("07") is None

    def test_double_zero(self, corrector):
        suggestion = corrector.correct_month("00")
        assert suggestion.corrected == "09"
        assert 1 <= int(suggestion.corrected) <= 12
        assert suggestion.confidence == 70
        assert suggestion.field == DateField.MONTH
        assert suggestion.original == "00"

    def test_single_zero_is_padded(self, corrector):
        assert corrector.correct_month("0").corrected == "09"

    def test_teens_drop_leading_one(self, corrector):
        suggestion = corrector.correct_month("15")
        assert suggestion.corrected == "05"
        assert suggestion.confidence == 85

    def test_twenties_read_as_tens(self, corrector):
        suggestion = corrector.correct_month("21")
        assert suggestion.corrected == "11"
        assert suggestion.confidence == 75

    def test_twenties_beyond_twelve_are_rejected(self, corrector):
        assert corrector.correct_month("25") is None

    def test_thirties_read_as_zero(self, corrector):
        suggestion = corrector.correct_month("35")
        assert suggestion.corrected == "05"
        assert suggestion.confidence == 80

    def test_thirty_has_no_valid_repair(self, corrector):
        assert corrector.correct_month("30") is None

    def test_observed_confidence_caps_suggestion(self, corrector):
        assert corrector.correct_month("15", observed_confidence=60).confidence == 60
        assert corrector.correct_month("15", observed_confidence=99).confidence == 85

    def test_non_numeric_token(self, corrector):
        assert corrector.correct_month("AB") is None


class TestCorrectDay:
    def test_valid_day_needs_no_correction(self, corrector):
        assert corrector.correct_day("15") is None

    def test_double_zero(self, corrector):
        suggestion = corrector.correct_day("00")
        assert suggestion.corrected == "09"
        assert suggestion.confidence == 65

    def test_thirties_prefer_twenties(self, corrector):
        suggestion = corrector.correct_day("35")
        assert suggestion.corrected == "25"
        assert suggestion.confidence == 75
        assert suggestion.field == DateField.DAY

    def test_forties_are_rejected(self, corrector):
        assert corrector.correct_day("45") is None


class TestCorrectYear:
    def test_two_digit_year_is_valid(self, corrector):
        assert corrector.correct_year("25") is None

    def test_letter_o(self, corrector):
        suggestion = corrector.correct_year("2O25")
        assert suggestion.corrected == "2025"
        assert suggestion.confidence == 90

    def test_leading_three(self, corrector):
        suggestion = corrector.correct_year("3025")
        assert suggestion.corrected == "2025"
        assert suggestion.confidence == 85

    def test_leading_three_after_letter_o(self, corrector):
        suggestion = corrector.correct_year("3O25")
        assert suggestion.corrected == "2025"
        assert suggestion.confidence == 85

    def test_unrepairable_year(self, corrector):
        assert corrector.correct_year("1999") is None
        assert corrector.correct_year("") is None


class TestSuggestionRecord:
    def test_suggestion_is_immutable(self, corrector):
        suggestion = corrector.correct_month("15")
        with pytest.raises(AttributeError):
            suggestion.corrected = "06"

    def test_to_dict(self, corrector):
        data = corrector.correct_day("35").to_dict()
        assert data['field'] == 'day'
        assert data['original'] == '35'
        assert data['corrected'] == '25'
