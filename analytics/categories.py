"""
Score Categories
================

Maps a percentage onto the four-band category scheme used by progress reports.
"""

from typing import Optional

from models.course_models import ScoreCategory

CATEGORY_DISPLAY = {
    ScoreCategory.EE: "✓ EE",
    ScoreCategory.ME: "✓ ME",
    ScoreCategory.AP: "AP",
    ScoreCategory.BE: "BE",
}
NOT_ATTEMPTED = "X"


def is_valid_percentage(percentage) -> bool:
    try:
        return 0 <= percentage <= 100
    except TypeError:
        return False


def categorize(percentage: float) -> ScoreCategory:
    """
    Bands are closed on the high side: (0,25] BE, (25,50] AP, (50,75] ME, (75,100] EE.
    Exactly 0 means no attempt and maps to NONE.
    """
    if not is_valid_percentage(percentage):
        raise ValueError(f"percentage must be within [0, 100], got {percentage!r}")

    if percentage == 0:
        return ScoreCategory.NONE
    if percentage <= 25:
        return ScoreCategory.BE
    if percentage <= 50:
        return ScoreCategory.AP
    if percentage <= 75:
        return ScoreCategory.ME
    return ScoreCategory.EE


def display_category(category: Optional[ScoreCategory]) -> str:
    """Cell text for the printable matrix; a missing cell and NONE both read "X"."""
    if category is None:
        return NOT_ATTEMPTED
    return CATEGORY_DISPLAY.get(category, NOT_ATTEMPTED)
