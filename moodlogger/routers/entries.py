# entries router — read and write daily entries for the current scope
# anonymous callers use the local store, signed-in callers the remote store when configured

import logging

from fastapi import APIRouter, Depends, HTTPException, Path, status

from moodlogger.config import settings
from moodlogger.dependencies import get_entry_store
from moodlogger.models.entry import (
    AnswerUpdate,
    DailyEntry,
    DailyEntryResponse,
    DailyEntryUpdate,
    EntrySaveResponse,
    MoodUpdate,
    SaveResult,
    check_date,
)
from moodlogger.services.entry_store import EntryStore, normalize_entry
from moodlogger.services.scoring import derive_overall_mood

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/entries", tags=["entries"])


def _valid_date(date: str = Path(..., description="calendar date, YYYY-MM-DD")) -> str:
    try:
        return check_date(date)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


def _calculated_mood(entry: DailyEntry):
    return derive_overall_mood(
        entry.scores,
        bad_threshold=settings.MOOD_BAD_THRESHOLD,
        good_threshold=settings.MOOD_GOOD_THRESHOLD,
    )


def _save_response(entry: DailyEntry, result: SaveResult) -> EntrySaveResponse:
    if not result.success:
        logger.warning(f"Entry {entry.date} not saved ({result.backend}): {result.error}")
    return EntrySaveResponse(
        entry=entry,
        calculatedMood=_calculated_mood(entry),
        saved=result.success,
        backend=result.backend,
        error=result.error,
    )


@router.get("", response_model=list[DailyEntry])
async def list_entries(store: EntryStore = Depends(get_entry_store)):
    """all entries for the current scope, sorted by date"""
    entries = await store.get_all_entries()
    return [entries[date] for date in sorted(entries)]


@router.get("/{date}", response_model=DailyEntryResponse)
async def get_entry(
    date: str = Depends(_valid_date),
    store: EntryStore = Depends(get_entry_store),
):
    """entry for one date, or a neutral default when nothing is stored yet"""
    entry = await store.get_entry(date)
    return DailyEntryResponse(entry=entry, calculatedMood=_calculated_mood(entry))


@router.put("/{date}", response_model=EntrySaveResponse)
async def save_entry(
    body: DailyEntryUpdate,
    date: str = Depends(_valid_date),
    store: EntryStore = Depends(get_entry_store),
):
    """save a full entry; totals are recomputed from the detailed answers"""
    entry = normalize_entry(
        {
            "date": date,
            "mood": body.mood.value if body.mood else None,
            "detailedScores": {theme.value: slots for theme, slots in body.detailed_scores.items()},
        },
        date,
    )
    result = await store.save_entry(entry)
    return _save_response(entry, result)


@router.patch("/{date}/answers", response_model=EntrySaveResponse)
async def set_answer(
    body: AnswerUpdate,
    date: str = Depends(_valid_date),
    store: EntryStore = Depends(get_entry_store),
):
    """change a single answer; the theme total and overall mood are recomputed"""
    entry, result = await store.set_answer(date, body.theme, body.slot, body.value)
    return _save_response(entry, result)


@router.patch("/{date}/mood", response_model=EntrySaveResponse)
async def set_mood(
    body: MoodUpdate,
    date: str = Depends(_valid_date),
    store: EntryStore = Depends(get_entry_store),
):
    """set the legacy mood label (display only, not used in scoring)"""
    entry, result = await store.set_mood(date, body.mood)
    return _save_response(entry, result)
