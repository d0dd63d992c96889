"""Unit tests for score categorization and display."""

import pytest

from analytics.categories import categorize, display_category
from models.course_models import ScoreCategory


class TestCategorize:
    """Band boundaries are closed on the high side."""

    def test_zero_is_no_attempt(self):
        assert categorize(0) is ScoreCategory.NONE

    @pytest.mark.parametrize("percentage,expected", [
        (0.01, ScoreCategory.BE),
        (25, ScoreCategory.BE),
        (25.01, ScoreCategory.AP),
        (50, ScoreCategory.AP),
        (50.5, ScoreCategory.ME),
        (75, ScoreCategory.ME),
        (75.01, ScoreCategory.EE),
        (100, ScoreCategory.EE),
    ])
    def test_band_boundaries(self, percentage, expected):
        assert categorize(percentage) is expected

    @pytest.mark.parametrize("percentage", [-0.1, 100.1, float("nan"), None])
    def test_out_of_range_raises(self, percentage):
        with pytest.raises(ValueError):
            categorize(percentage)

    def test_report_keys(self):
        assert ScoreCategory.BE.report_key == "below_expectation"
        assert ScoreCategory.NONE.report_key == "no_attempt"


class TestDisplayCategory:

    @pytest.mark.parametrize("category,text", [
        (None, "X"),
        (ScoreCategory.NONE, "X"),
        (ScoreCategory.EE, "✓ EE"),
        (ScoreCategory.ME, "✓ ME"),
        (ScoreCategory.AP, "AP"),
        (ScoreCategory.BE, "BE"),
    ])
    def test_display_policy(self, category, text):
        assert display_category(category) == text
