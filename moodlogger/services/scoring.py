# score model — answers to theme totals, theme totals to an overall mood
#
# every theme has 8 question slots answered with -0.25, 0 or +0.25, so a
# theme total lives in [-2, 2]. the overall mood averages the 7 totals and
# compares the average against two inclusive thresholds.
#
# all functions here are pure: no i/o, no shared state.

from typing import Mapping, Optional

from moodlogger.models.entry import (
    ANSWER_NEUTRAL,
    QUESTIONS_PER_THEME,
    THEME_ORDER,
    CalculatedMood,
    DailyEntry,
    MoodCategory,
    Theme,
)


THEME_TOTAL_MIN = -2.0
THEME_TOTAL_MAX = 2.0

DEFAULT_BAD_THRESHOLD = -0.75
DEFAULT_GOOD_THRESHOLD = 0.75


def default_question_scores() -> dict[int, float]:
    return {slot: ANSWER_NEUTRAL for slot in range(QUESTIONS_PER_THEME)}


def default_detailed_scores() -> dict[str, dict[int, float]]:
    """all themes, all slots neutral (fresh dicts on every call)"""
    return {theme.value: default_question_scores() for theme in THEME_ORDER}


def default_theme_scores() -> dict[str, float]:
    return {theme.value: 0.0 for theme in THEME_ORDER}


def _slot_value(slots: Mapping, slot: int) -> float:
    # stored json has string keys, in-memory maps have int keys
    value = slots.get(slot, slots.get(str(slot)))
    if value is None:
        return ANSWER_NEUTRAL
    try:
        return float(value)
    except (TypeError, ValueError):
        return ANSWER_NEUTRAL


def derive_theme_total(detailed_scores: Optional[Mapping], theme: Theme) -> float:
    """sum of a theme's 8 answers, clamped to [-2, 2] and rounded to 2 decimals.

    missing themes and missing slots count as neutral, so any mapping
    (including an empty one) yields a valid total.
    """
    slots = (detailed_scores or {}).get(theme.value) or {}
    total = sum(_slot_value(slots, slot) for slot in range(QUESTIONS_PER_THEME))
    return round(max(THEME_TOTAL_MIN, min(THEME_TOTAL_MAX, total)), 2)


def derive_all_theme_totals(detailed_scores: Optional[Mapping]) -> dict[str, float]:
    """theme totals for every theme, in the fixed theme order"""
    return {theme.value: derive_theme_total(detailed_scores, theme) for theme in THEME_ORDER}


def derive_overall_mood(
    theme_scores: Optional[Mapping[str, float]],
    bad_threshold: float = DEFAULT_BAD_THRESHOLD,
    good_threshold: float = DEFAULT_GOOD_THRESHOLD,
) -> CalculatedMood:
    """classify the average theme total as Bad / Normal / Good (boundaries inclusive).

    returns the Calculating sentinel when no scores are available yet.
    """
    if theme_scores is None:
        return CalculatedMood(category=MoodCategory.CALCULATING)

    total = sum(float(theme_scores.get(theme.value, 0.0) or 0.0) for theme in THEME_ORDER)
    average = total / len(THEME_ORDER)

    if average <= bad_threshold:
        category = MoodCategory.BAD
    elif average >= good_threshold:
        category = MoodCategory.GOOD
    else:
        category = MoodCategory.NORMAL

    return CalculatedMood(category=category, total=round(total, 2), average=round(average, 4))


def apply_answer(entry: DailyEntry, theme: Theme, slot: int, value: float) -> DailyEntry:
    """write one answer and recompute the cached totals.

    returns a new entry; the input is left untouched.
    """
    detailed = {key: dict(slots) for key, slots in entry.detailed_scores.items()}
    detailed.setdefault(theme.value, default_question_scores())[slot] = value
    return entry.model_copy(update={
        "detailed_scores": detailed,
        "scores": derive_all_theme_totals(detailed),
    })
