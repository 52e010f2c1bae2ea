# daily entry models — themes, answers, entry documents and request/response schemas
# wire shape mirrors the stored json: {date, mood, scores, detailedScores}

from datetime import date as dt_date
from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field, field_validator


ANSWER_NEGATIVE = -0.25
ANSWER_NEUTRAL = 0.0
ANSWER_POSITIVE = 0.25
ANSWER_VALUES = (ANSWER_NEGATIVE, ANSWER_NEUTRAL, ANSWER_POSITIVE)

QUESTIONS_PER_THEME = 8


class Theme(str, Enum):
    """assessed life domains, declared in their fixed display/export order"""
    SLEEP = "sleep"
    MOOD_QUALITY = "moodQuality"
    FITNESS = "fitness"
    DIET = "diet"
    SOCIAL_RELATIONS = "socialRelations"
    FAMILY_RELATIONS = "familyRelations"
    SELF_EDUCATION = "selfEducation"

    @property
    def label(self) -> str:
        return THEME_LABELS[self]


THEME_ORDER: list[Theme] = list(Theme)

THEME_LABELS: dict[Theme, str] = {
    Theme.SLEEP: "Sleep",
    Theme.MOOD_QUALITY: "MoodQuality",
    Theme.FITNESS: "Fitness",
    Theme.DIET: "Diet",
    Theme.SOCIAL_RELATIONS: "SocialRelations",
    Theme.FAMILY_RELATIONS: "FamilyRelations",
    Theme.SELF_EDUCATION: "SelfEducation",
}

# keys written by older versions of the form
LEGACY_THEME_KEYS: dict[str, str] = {
    "dreaming": Theme.SLEEP.value,
    "moodScore": Theme.MOOD_QUALITY.value,
    "training": Theme.FITNESS.value,
}


class Mood(str, Enum):
    """legacy free-standing mood label, display only"""
    HAPPY = "happy"
    SAD = "sad"
    NEUTRAL = "neutral"
    ANGRY = "angry"


class MoodCategory(str, Enum):
    BAD = "Bad"
    NORMAL = "Normal"
    GOOD = "Good"
    CALCULATING = "Calculating"


def check_date(value: str) -> str:
    try:
        dt_date.fromisoformat(value)
    except (TypeError, ValueError):
        raise ValueError(f"invalid date '{value}', expected YYYY-MM-DD")
    if len(value) != 10:
        raise ValueError(f"invalid date '{value}', expected YYYY-MM-DD")
    return value


def _check_answer(value: float) -> float:
    if value not in ANSWER_VALUES:
        raise ValueError(f"answer must be one of {list(ANSWER_VALUES)}, got {value}")
    return float(value)


class DailyEntry(BaseModel):
    """one day of answers — detailed_scores is the source of truth, scores is a derived cache"""
    date: str
    mood: Optional[Mood] = None
    scores: dict[str, float] = Field(default_factory=dict)
    detailed_scores: dict[str, dict[int, float]] = Field(default_factory=dict, alias="detailedScores")

    model_config = {"populate_by_name": True}

    @field_validator("date")
    @classmethod
    def validate_date(cls, v: str) -> str:
        return check_date(v)

    def to_document(self) -> dict:
        """json-compatible dict in the stored/wire shape"""
        return self.model_dump(mode="json", by_alias=True)


class CalculatedMood(BaseModel):
    """overall mood derived from the theme totals, never stored"""
    category: MoodCategory
    total: Optional[float] = None
    average: Optional[float] = None


class SaveResult(BaseModel):
    """outcome of a store write, failures are reported here instead of raised"""
    success: bool
    backend: str
    doc_id: Optional[str] = Field(None, alias="docId")
    error: Optional[str] = None

    model_config = {"populate_by_name": True}


class DailyEntryUpdate(BaseModel):
    """payload for saving a full entry; totals are always recomputed server side"""
    mood: Optional[Mood] = None
    detailed_scores: dict[Theme, dict[int, float]] = Field(default_factory=dict, alias="detailedScores")

    model_config = {"populate_by_name": True}

    @field_validator("detailed_scores")
    @classmethod
    def validate_answers(cls, v: dict[Theme, dict[int, float]]) -> dict[Theme, dict[int, float]]:
        for theme, slots in v.items():
            for slot, value in slots.items():
                if not 0 <= slot < QUESTIONS_PER_THEME:
                    raise ValueError(f"{theme.value}: slot {slot} out of range 0-{QUESTIONS_PER_THEME - 1}")
                _check_answer(value)
        return v


class AnswerUpdate(BaseModel):
    """payload for changing a single answer"""
    theme: Theme
    slot: int = Field(..., ge=0, le=QUESTIONS_PER_THEME - 1, description="question index within the theme")
    value: float = Field(..., description="one of -0.25, 0, 0.25")

    @field_validator("value")
    @classmethod
    def validate_value(cls, v: float) -> float:
        return _check_answer(v)


class MoodUpdate(BaseModel):
    mood: Optional[Mood] = None


class DailyEntryResponse(BaseModel):
    """an entry together with its calculated overall mood"""
    entry: DailyEntry
    calculated_mood: CalculatedMood = Field(..., alias="calculatedMood")

    model_config = {"populate_by_name": True}


class EntrySaveResponse(DailyEntryResponse):
    """response after a write; saved=false carries the error so the client can notify the user"""
    saved: bool
    backend: str
    error: Optional[str] = None
