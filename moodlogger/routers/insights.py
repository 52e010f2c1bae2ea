# insights router — natural-language summary of mood trends via gemini
# requires at least MIN_INSIGHT_DAYS logged days before the model is called

import logging
from fastapi import APIRouter, Depends, HTTPException, status

from moodlogger.config import settings
from moodlogger.dependencies import get_entry_store
from moodlogger.models.insight import InsightResponse
from moodlogger.services.entry_store import EntryStore
from moodlogger.services.insight_service import (
    InsightGenerationError,
    InsightUnavailableError,
    analyze_mood_patterns,
    has_enough_data,
    prepare_analysis_payload,
)

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/insights", tags=["insights"])


@router.post("", response_model=InsightResponse)
async def generate_insights(store: EntryStore = Depends(get_entry_store)):
    """analyze the full entry history of the current scope"""
    entries = await store.get_all_entries()

    if not has_enough_data(entries):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=(
                f"Not enough data to analyze. Log your assessments for at least "
                f"{settings.MIN_INSIGHT_DAYS} days (found {len(entries)})."
            ),
        )

    payload = prepare_analysis_payload(entries)
    try:
        insights = await analyze_mood_patterns(payload.mood_data, payload.theme_scores)
    except InsightUnavailableError as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e))
    except InsightGenerationError as e:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e))

    logger.info(f"Generated insights from {len(entries)} days")
    return InsightResponse(insights=insights, daysAnalyzed=len(entries))
