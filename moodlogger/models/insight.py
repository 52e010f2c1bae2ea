# insight models — mood pattern analysis request/response schemas

from pydantic import BaseModel, Field


class InsightRequest(BaseModel):
    """shaped entry history sent to the text-generation service"""
    mood_data: str = Field(..., alias="moodData", description="json array of {date, mood}")
    theme_scores: str = Field(..., alias="themeScores", description="json array of {date, <theme>: total}")

    model_config = {"populate_by_name": True}


class InsightResponse(BaseModel):
    insights: str
    days_analyzed: int = Field(0, alias="daysAnalyzed")

    model_config = {"populate_by_name": True}
