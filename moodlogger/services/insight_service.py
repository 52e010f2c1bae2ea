# insight service — langchain + gemini summary of mood trends
# shapes the entry history into two json payloads and asks the model for free-text insights

import json
import logging
from typing import Optional

from langchain_google_genai import ChatGoogleGenerativeAI
from langchain_core.prompts import ChatPromptTemplate
from langchain_core.output_parsers import StrOutputParser

from moodlogger.config import settings
from moodlogger.models.entry import THEME_ORDER, DailyEntry
from moodlogger.models.insight import InsightRequest

logger = logging.getLogger(__name__)

MOOD_NOT_SPECIFIED = "not specified"


class InsightUnavailableError(Exception):
    """the text-generation service is not configured"""


class InsightGenerationError(Exception):
    """the model call failed or returned nothing usable"""


def has_enough_data(entries: dict[str, DailyEntry], minimum: Optional[int] = None) -> bool:
    """insights need at least MIN_INSIGHT_DAYS distinct dates"""
    minimum = settings.MIN_INSIGHT_DAYS if minimum is None else minimum
    return len({entry.date for entry in entries.values()}) >= minimum


def prepare_analysis_payload(entries: dict[str, DailyEntry]) -> InsightRequest:
    """per-day mood labels and theme totals as json strings, sorted by date"""
    ordered = [entries[date] for date in sorted(entries)]
    mood_data = [
        {"date": entry.date, "mood": entry.mood.value if entry.mood else MOOD_NOT_SPECIFIED}
        for entry in ordered
    ]
    theme_scores = []
    for entry in ordered:
        row = {"date": entry.date}
        for theme in THEME_ORDER:
            row[theme.value] = entry.scores.get(theme.value, 0.0)
        theme_scores.append(row)
    return InsightRequest(mood_data=json.dumps(mood_data), theme_scores=json.dumps(theme_scores))


INSIGHT_PROMPT = ChatPromptTemplate.from_messages([
    ("system", """You are a mood analysis expert. You analyze a person's daily self-assessment log.
Each day has an optional primary mood label and overall theme scores ranging from -2
(very negative impact/quality) to +2 (very positive impact/quality), 0 being neutral.
The themes are sleep, moodQuality, fitness, diet, socialRelations, familyRelations and selfEducation.

RULES:
- Base every statement only on the provided data
- Do not make medical claims or diagnoses
- Refer only to the overall theme scores, never to individual questions"""),
    ("human", """Primary Mood Data (JSON): {mood_data}

Overall Theme Scores (JSON): {theme_scores}

1. Identify correlations between specific themes and the reported primary moods. Consider moodQuality alongside the others.
2. Note significant shifts in mood and whether they coincide with changes in theme scores.
3. Give concise, actionable insights on which factors might be influencing the mood, positive and negative.
4. Suggest gentle areas of focus to improve well-being based only on the observed patterns.

Format the response clearly, highlighting key findings and suggestions."""),
])

_chain = None


def get_llm() -> ChatGoogleGenerativeAI:
    """create a gemini llm instance for insight generation"""
    return ChatGoogleGenerativeAI(
        model=settings.GEMINI_MODEL,
        google_api_key=settings.GEMINI_API_KEY,
        temperature=0.4,
        max_output_tokens=2048,
    )


def get_insight_chain():
    """get or create the insight generation chain"""
    global _chain
    if _chain is None:
        _chain = INSIGHT_PROMPT | get_llm() | StrOutputParser()
    return _chain


async def analyze_mood_patterns(mood_data: str, theme_scores: str) -> str:
    """send the shaped history to gemini and return the insights text"""
    if not settings.GEMINI_API_KEY:
        raise InsightUnavailableError("Insight service is not configured (GEMINI_API_KEY is missing).")

    try:
        chain = get_insight_chain()
        insights = await chain.ainvoke({"mood_data": mood_data, "theme_scores": theme_scores})
    except Exception as e:
        logger.error(f"Insight generation failed: {e}")
        raise InsightGenerationError(f"Mood analysis failed: {e}") from e

    if not insights or not insights.strip():
        raise InsightGenerationError("Mood analysis did not return any insights.")
    return insights.strip()
