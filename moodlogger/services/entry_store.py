# entry store — one interface over the local json store and the remote mongodb store
#
# backend selection happens once, in build_entry_store:
#   remote configured + scope identity  -> remote primary, local read fallback
#   otherwise                           -> local only
#
# every raw record passes through normalize_entry before it leaves the store,
# so callers always get a complete DailyEntry. reads never raise (errors
# degrade to "absent"); writes never raise either but report a SaveResult.

import asyncio
import json
import logging
import os
import threading
from pathlib import Path
from typing import Optional, Protocol

from pydantic import ValidationError
from pymongo.errors import OperationFailure, PyMongoError

from moodlogger.config import Settings
from moodlogger.models.entry import (
    ANSWER_VALUES,
    LEGACY_THEME_KEYS,
    QUESTIONS_PER_THEME,
    THEME_ORDER,
    DailyEntry,
    Mood,
    SaveResult,
    Theme,
)
from moodlogger.services.db import Database
from moodlogger.services.scoring import (
    apply_answer,
    default_detailed_scores,
    default_question_scores,
    default_theme_scores,
    derive_all_theme_totals,
)

logger = logging.getLogger(__name__)

# mongodb error code for "not authorized on <db> to execute command"
MONGO_UNAUTHORIZED = 13

# serializes read-modify-write of the local store file across worker threads
_local_write_lock = threading.Lock()


# schema completion

def _rename_legacy_keys(mapping: dict) -> dict:
    renamed = {}
    for key, value in mapping.items():
        new_key = LEGACY_THEME_KEYS.get(key, key)
        # a current key wins over its legacy alias
        if new_key in renamed and key in LEGACY_THEME_KEYS:
            continue
        renamed[new_key] = value
    return renamed


def _complete_slots(raw_slots, theme: str, date: str) -> dict[int, float]:
    slots = default_question_scores()
    if not isinstance(raw_slots, dict):
        return slots
    for key, value in raw_slots.items():
        try:
            slot = int(key)
        except (TypeError, ValueError):
            continue
        if not 0 <= slot < QUESTIONS_PER_THEME or value is None:
            continue
        try:
            answer = float(value)
        except (TypeError, ValueError):
            answer = None
        if answer not in ANSWER_VALUES:
            logger.warning(f"Entry {date}: illegal answer {value!r} at {theme}[{slot}], reset to neutral")
            continue
        slots[slot] = answer
    return slots


def _coerce_mood(value) -> Optional[Mood]:
    if value is None:
        return None
    try:
        return Mood(value)
    except ValueError:
        return None


def normalize_entry(raw: Optional[dict], date: str) -> DailyEntry:
    """complete a raw stored record (or None) into a valid DailyEntry.

    - missing themes and slots become neutral, illegal answers are reset
    - legacy theme keys (dreaming, moodScore, training) are renamed
    - scores are recomputed from detailedScores; a legacy record with scores
      but no detailedScores keeps its stored totals
    """
    raw = raw if isinstance(raw, dict) else {}
    raw_detailed = raw.get("detailedScores", raw.get("detailed_scores"))
    raw_scores = raw.get("scores")

    if isinstance(raw_detailed, dict):
        raw_detailed = _rename_legacy_keys(raw_detailed)
        detailed = {
            theme.value: _complete_slots(raw_detailed.get(theme.value), theme.value, date)
            for theme in THEME_ORDER
        }
        scores = derive_all_theme_totals(detailed)
    else:
        detailed = default_detailed_scores()
        scores = default_theme_scores()
        if isinstance(raw_scores, dict) and raw_scores:
            logger.info(f"Entry {date}: migrating record without detailedScores, keeping stored totals")
            raw_scores = _rename_legacy_keys(raw_scores)
            for theme in THEME_ORDER:
                try:
                    scores[theme.value] = round(max(-2.0, min(2.0, float(raw_scores.get(theme.value) or 0))), 2)
                except (TypeError, ValueError):
                    scores[theme.value] = 0.0

    return DailyEntry(
        date=date,
        mood=_coerce_mood(raw.get("mood")),
        scores=scores,
        detailed_scores=detailed,
    )


# backends

class EntryBackend(Protocol):
    name: str

    async def read(self, date: str) -> Optional[dict]: ...

    async def read_all(self) -> dict[str, dict]: ...

    async def write(self, document: dict) -> SaveResult: ...


class LocalEntryBackend:
    """json file used as a key/value store; the whole collection for a scope lives under one key"""

    name = "local"

    def __init__(self, path: Path, key: str):
        self.path = Path(path)
        self.key = key

    def _load_file(self) -> dict:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        # ValueError covers JSONDecodeError and UnicodeDecodeError
        except (OSError, ValueError) as e:
            logger.error(f"Could not read local store {self.path}: {e}")
            return {}
        return data if isinstance(data, dict) else {}

    def _collection(self) -> dict[str, dict]:
        collection = self._load_file().get(self.key)
        if not isinstance(collection, dict):
            return {}
        return {date: doc for date, doc in collection.items() if isinstance(doc, dict)}

    async def read(self, date: str) -> Optional[dict]:
        return (await asyncio.to_thread(self._collection)).get(date)

    async def read_all(self) -> dict[str, dict]:
        return await asyncio.to_thread(self._collection)

    async def write(self, document: dict) -> SaveResult:
        # file i/o runs off the event loop
        return await asyncio.to_thread(self._write_sync, document)

    def _write_sync(self, document: dict) -> SaveResult:
        date = document["date"]
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        try:
            with _local_write_lock:
                data = self._load_file()
                collection = data.get(self.key)
                if not isinstance(collection, dict):
                    collection = {}
                collection[date] = document
                data[self.key] = collection

                self.path.parent.mkdir(parents=True, exist_ok=True)
                with open(tmp_path, "w", encoding="utf-8") as f:
                    json.dump(data, f, ensure_ascii=False, indent=2)
                os.replace(tmp_path, self.path)
        except (OSError, TypeError, ValueError) as e:
            logger.error(f"Error saving entry {date} to local store {self.path}: {e}")
            if tmp_path.exists():
                tmp_path.unlink()
            return SaveResult(success=False, backend=self.name, error=f"Failed to save entry locally: {e}")

        logger.debug(f"Entry {date} written to local store under key {self.key}")
        return SaveResult(success=True, backend=self.name, doc_id=date)


class RemoteEntryBackend:
    """mongodb collection with one document per (scope, date)"""

    name = "remote"

    def __init__(self, collection, scope: str):
        self.collection = collection
        self.scope = scope

    async def read(self, date: str) -> Optional[dict]:
        try:
            return await self.collection.find_one({"scope": self.scope, "date": date}, {"_id": 0})
        except PyMongoError as e:
            logger.error(f"Error fetching entry {date} for scope {self.scope} from remote store: {e}")
            return None

    async def read_all(self) -> dict[str, dict]:
        entries = {}
        try:
            cursor = self.collection.find({"scope": self.scope}, {"_id": 0})
            async for doc in cursor:
                if doc.get("date"):
                    entries[doc["date"]] = doc
        except PyMongoError as e:
            logger.error(f"Error fetching entries for scope {self.scope} from remote store: {e}")
            return {}
        return entries

    async def write(self, document: dict) -> SaveResult:
        date = document["date"]
        try:
            await self.collection.update_one(
                {"scope": self.scope, "date": date},
                {"$set": {**document, "scope": self.scope}},
                upsert=True,
            )
        except OperationFailure as e:
            logger.error(f"Remote store rejected entry {date} for scope {self.scope}: {e}")
            if e.code == MONGO_UNAUTHORIZED:
                error = "Permission denied. Check the database user's write access to the entries collection."
            else:
                error = f"Failed to save entry to the remote store: {e}"
            return SaveResult(success=False, backend=self.name, error=error)
        except PyMongoError as e:
            logger.error(f"Error saving entry {date} for scope {self.scope} to remote store: {e}")
            return SaveResult(success=False, backend=self.name, error=f"Failed to save entry to the remote store: {e}")

        logger.info(f"Entry {date} written to remote store for scope {self.scope}")
        return SaveResult(success=True, backend=self.name, doc_id=date)


# facade

class EntryStore:
    """reads and writes daily entries through the backend chosen at construction"""

    def __init__(self, primary: EntryBackend, fallback: Optional[EntryBackend] = None):
        self.primary = primary
        self.fallback = fallback

    @property
    def backend_name(self) -> str:
        return self.primary.name

    async def get_entry(self, date: str) -> DailyEntry:
        """entry for a date, completed to the current shape, or a fresh default"""
        raw = await self.primary.read(date)
        if raw is None and self.fallback is not None:
            raw = await self.fallback.read(date)
        return normalize_entry(raw, date)

    async def save_entry(self, entry: DailyEntry) -> SaveResult:
        """write the completed entry to the primary backend"""
        complete = normalize_entry(entry.to_document(), entry.date)
        return await self.primary.write(complete.to_document())

    async def get_all_entries(self) -> dict[str, DailyEntry]:
        raw_entries = await self.primary.read_all()
        if not raw_entries and self.fallback is not None:
            raw_entries = await self.fallback.read_all()
        entries = {}
        for date, raw in raw_entries.items():
            try:
                entries[date] = normalize_entry(raw, date)
            except ValidationError:
                logger.warning(f"Skipping stored record with invalid date key {date!r}")
        return entries

    async def set_answer(self, date: str, theme: Theme, slot: int, value: float) -> tuple[DailyEntry, SaveResult]:
        """change one answer and persist the whole entry"""
        entry = apply_answer(await self.get_entry(date), theme, slot, value)
        return entry, await self.save_entry(entry)

    async def set_mood(self, date: str, mood: Optional[Mood]) -> tuple[DailyEntry, SaveResult]:
        entry = (await self.get_entry(date)).model_copy(update={"mood": mood})
        return entry, await self.save_entry(entry)


def local_storage_key(base_key: str, scope: Optional[str]) -> str:
    return f"{base_key}:{scope}" if scope else base_key


def build_entry_store(settings: Settings, database: Optional[Database], scope: Optional[str]) -> EntryStore:
    """pick the backend for this scope: remote when configured and signed in, else local"""
    local = LocalEntryBackend(Path(settings.LOCAL_STORE_PATH), local_storage_key(settings.LOCAL_STORAGE_KEY, scope))
    if scope and database is not None and database.is_configured:
        remote = RemoteEntryBackend(database.daily_entries, scope)
        return EntryStore(primary=remote, fallback=local)
    return EntryStore(primary=local)
