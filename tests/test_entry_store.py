# tests for the entry store — schema completion, local/remote backends, backend selection
# unit tests for moodlogger/services/entry_store.py

import json

from pymongo.errors import AutoReconnect, OperationFailure

from moodlogger.config import settings
from moodlogger.models.entry import THEME_ORDER, DailyEntry, Mood, Theme
from moodlogger.services.entry_store import (
    EntryStore,
    LocalEntryBackend,
    RemoteEntryBackend,
    build_entry_store,
    normalize_entry,
)
from moodlogger.services.scoring import default_detailed_scores, derive_all_theme_totals
from tests.conftest import SCOPE_ID, MockDatabase


def _local_store(path, key="moodLoggerData"):
    return EntryStore(primary=LocalEntryBackend(path, key))


def _sample_entry(date="2024-05-10"):
    detailed = default_detailed_scores()
    detailed["sleep"].update({0: 0.25, 1: 0.25, 2: 0.25})
    detailed["diet"].update({4: -0.25})
    return DailyEntry(
        date=date,
        mood=Mood.HAPPY,
        scores=derive_all_theme_totals(detailed),
        detailed_scores=detailed,
    )


class TestNormalizeEntry:
    """schema completion applied to every raw record"""

    def test_none_yields_default_entry(self):
        entry = normalize_entry(None, "2030-01-01")
        assert entry.date == "2030-01-01"
        assert entry.mood is None
        assert entry.scores == {theme.value: 0.0 for theme in THEME_ORDER}
        assert sum(len(slots) for slots in entry.detailed_scores.values()) == 56
        assert all(v == 0.0 for slots in entry.detailed_scores.values() for v in slots.values())

    def test_fills_missing_themes_and_slots(self):
        raw = {"date": "2024-01-01", "detailedScores": {"sleep": {"0": 0.25}}}
        entry = normalize_entry(raw, "2024-01-01")
        assert set(entry.detailed_scores) == {theme.value for theme in THEME_ORDER}
        assert entry.detailed_scores["sleep"] == {0: 0.25, 1: 0, 2: 0, 3: 0, 4: 0, 5: 0, 6: 0, 7: 0}
        assert entry.scores["sleep"] == 0.25

    def test_recomputes_stale_scores(self):
        raw = {
            "date": "2024-01-01",
            "scores": {"sleep": 2.0},
            "detailedScores": {"sleep": {str(i): -0.25 for i in range(8)}},
        }
        entry = normalize_entry(raw, "2024-01-01")
        assert entry.scores["sleep"] == -2.0

    def test_illegal_answers_reset_to_neutral(self):
        raw = {"detailedScores": {"diet": {"0": 5, "1": "bad", "2": 0.25}}}
        entry = normalize_entry(raw, "2024-01-01")
        assert entry.detailed_scores["diet"][0] == 0.0
        assert entry.detailed_scores["diet"][1] == 0.0
        assert entry.detailed_scores["diet"][2] == 0.25

    def test_legacy_theme_keys_renamed(self):
        raw = {"detailedScores": {"dreaming": {"0": 0.25}, "training": {"1": -0.25}, "moodScore": {"2": 0.25}}}
        entry = normalize_entry(raw, "2024-01-01")
        assert entry.detailed_scores["sleep"][0] == 0.25
        assert entry.detailed_scores["fitness"][1] == -0.25
        assert entry.detailed_scores["moodQuality"][2] == 0.25
        assert "dreaming" not in entry.detailed_scores

    def test_legacy_record_without_detailed_keeps_totals(self):
        raw = {"date": "2023-11-02", "mood": "sad", "scores": {"dreaming": 1.5, "diet": -1, "training": 9}}
        entry = normalize_entry(raw, "2023-11-02")
        assert entry.scores["sleep"] == 1.5
        assert entry.scores["diet"] == -1.0
        assert entry.scores["fitness"] == 2.0
        assert entry.scores["selfEducation"] == 0.0
        assert entry.mood == Mood.SAD
        assert entry.detailed_scores == default_detailed_scores()

    def test_unknown_mood_becomes_null(self):
        entry = normalize_entry({"mood": "ecstatic"}, "2024-01-01")
        assert entry.mood is None


class TestLocalBackend:
    """json file key/value store"""

    async def test_default_entry_on_empty_store(self, local_store):
        store = _local_store(local_store)
        entry = await store.get_entry("2030-01-01")
        assert entry.mood is None
        assert all(v == 0.0 for v in entry.scores.values())
        assert not local_store.exists()

    async def test_save_then_get_round_trip(self, local_store):
        store = _local_store(local_store)
        original = _sample_entry()
        result = await store.save_entry(original)
        assert result.success is True
        assert result.backend == "local"
        assert result.doc_id == "2024-05-10"

        loaded = await store.get_entry("2024-05-10")
        assert loaded.detailed_scores == original.detailed_scores
        assert loaded.scores == derive_all_theme_totals(original.detailed_scores)
        assert loaded.mood == Mood.HAPPY

    async def test_collection_stored_under_one_key(self, local_store):
        store = _local_store(local_store)
        await store.save_entry(_sample_entry("2024-05-10"))
        await store.save_entry(_sample_entry("2024-05-11"))
        data = json.loads(local_store.read_text(encoding="utf-8"))
        assert list(data) == ["moodLoggerData"]
        assert set(data["moodLoggerData"]) == {"2024-05-10", "2024-05-11"}
        assert data["moodLoggerData"]["2024-05-10"]["detailedScores"]["sleep"]["0"] == 0.25

    async def test_keys_are_isolated(self, local_store):
        await _local_store(local_store, "moodLoggerData").save_entry(_sample_entry())
        other = _local_store(local_store, "moodLoggerData:someone")
        assert await other.get_all_entries() == {}

    async def test_save_fills_incomplete_entry(self, local_store):
        store = _local_store(local_store)
        partial = DailyEntry(date="2024-05-12", detailed_scores={"sleep": {0: 0.25}})
        await store.save_entry(partial)
        loaded = await store.get_entry("2024-05-12")
        assert len(loaded.detailed_scores) == 7
        assert loaded.scores["sleep"] == 0.25

    async def test_corrupted_file_reads_as_empty(self, local_store):
        local_store.write_text("{not json", encoding="utf-8")
        store = _local_store(local_store)
        assert await store.get_all_entries() == {}
        entry = await store.get_entry("2024-01-01")
        assert entry.scores["sleep"] == 0.0

    async def test_undecodable_file_reads_as_empty(self, local_store):
        local_store.write_bytes(b'{"moodLoggerData": {"2024-01-01": {"mood": "\xff\xfe"}}}')
        store = _local_store(local_store)
        entry = await store.get_entry("2024-01-01")
        assert entry.mood is None
        assert entry.scores["sleep"] == 0.0
        assert await store.get_all_entries() == {}

    async def test_undecodable_file_is_replaced_on_save(self, local_store):
        local_store.write_bytes(b"\xff\xfe garbage")
        store = _local_store(local_store)
        entry, result = await store.set_answer("2024-01-01", Theme.SLEEP, 0, 0.25)
        assert result.success is True
        assert (await store.get_entry("2024-01-01")).scores["sleep"] == 0.25

    async def test_failed_write_leaves_no_temp_file(self, local_store, tmp_path):
        # a directory at the store path makes the final rename fail
        local_store.mkdir()
        result = await _local_store(local_store).save_entry(_sample_entry())
        assert result.success is False
        assert not (tmp_path / "local_store.json.tmp").exists()

    async def test_invalid_date_keys_skipped(self, local_store):
        local_store.write_text(json.dumps({"moodLoggerData": {
            "garbage": {"mood": None},
            "2024-01-01": {"detailedScores": {}},
        }}), encoding="utf-8")
        entries = await _local_store(local_store).get_all_entries()
        assert list(entries) == ["2024-01-01"]

    async def test_write_failure_reported(self, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("not a directory", encoding="utf-8")
        store = _local_store(blocker / "store.json")
        result = await store.save_entry(_sample_entry())
        assert result.success is False
        assert "Failed to save entry locally" in result.error

    async def test_set_answer_persists(self, local_store):
        store = _local_store(local_store)
        entry, result = await store.set_answer("2024-06-01", Theme.MOOD_QUALITY, 5, -0.25)
        assert result.success
        assert entry.scores["moodQuality"] == -0.25
        loaded = await store.get_entry("2024-06-01")
        assert loaded.detailed_scores["moodQuality"][5] == -0.25

    async def test_set_mood_keeps_answers(self, local_store):
        store = _local_store(local_store)
        await store.set_answer("2024-06-01", Theme.SLEEP, 0, 0.25)
        entry, result = await store.set_mood("2024-06-01", Mood.ANGRY)
        assert result.success
        loaded = await store.get_entry("2024-06-01")
        assert loaded.mood == Mood.ANGRY
        assert loaded.scores["sleep"] == 0.25


class TestRemoteBackend:
    """mongodb backend, one document per (scope, date)"""

    async def test_round_trip(self, mock_db):
        store = EntryStore(primary=RemoteEntryBackend(mock_db.daily_entries, SCOPE_ID))
        original = _sample_entry()
        result = await store.save_entry(original)
        assert result.success and result.backend == "remote"

        doc = mock_db.daily_entries._data[0]
        assert doc["scope"] == SCOPE_ID
        assert doc["date"] == "2024-05-10"

        loaded = await store.get_entry("2024-05-10")
        assert loaded.detailed_scores == original.detailed_scores
        assert loaded.scores == original.scores

    async def test_upsert_overwrites_same_date(self, mock_db):
        store = EntryStore(primary=RemoteEntryBackend(mock_db.daily_entries, SCOPE_ID))
        await store.set_answer("2024-05-10", Theme.SLEEP, 0, 0.25)
        await store.set_answer("2024-05-10", Theme.SLEEP, 1, 0.25)
        assert len(mock_db.daily_entries._data) == 1
        loaded = await store.get_entry("2024-05-10")
        assert loaded.scores["sleep"] == 0.5

    async def test_scopes_are_isolated(self, mock_db):
        mine = EntryStore(primary=RemoteEntryBackend(mock_db.daily_entries, SCOPE_ID))
        theirs = EntryStore(primary=RemoteEntryBackend(mock_db.daily_entries, "someone-else"))
        await mine.save_entry(_sample_entry())
        assert await theirs.get_all_entries() == {}
        assert (await theirs.get_entry("2024-05-10")).scores["sleep"] == 0.0

    async def test_read_failure_degrades_to_default(self, mock_db):
        mock_db.daily_entries.fail_with = AutoReconnect("connection reset")
        store = EntryStore(primary=RemoteEntryBackend(mock_db.daily_entries, SCOPE_ID))
        entry = await store.get_entry("2024-05-10")
        assert entry.scores["sleep"] == 0.0
        assert await store.get_all_entries() == {}

    async def test_permission_denied_reported(self, mock_db):
        mock_db.daily_entries.fail_with = OperationFailure("not authorized", code=13)
        store = EntryStore(primary=RemoteEntryBackend(mock_db.daily_entries, SCOPE_ID))
        result = await store.save_entry(_sample_entry())
        assert result.success is False
        assert result.error.startswith("Permission denied")

    async def test_network_failure_reported(self, mock_db):
        mock_db.daily_entries.fail_with = AutoReconnect("connection reset")
        store = EntryStore(primary=RemoteEntryBackend(mock_db.daily_entries, SCOPE_ID))
        result = await store.save_entry(_sample_entry())
        assert result.success is False
        assert "remote store" in result.error


class TestBackendSelection:
    """remote only when configured and a scope is present"""

    def test_anonymous_uses_local(self, mock_db):
        store = build_entry_store(settings, mock_db, None)
        assert store.backend_name == "local"
        assert store.fallback is None
        assert store.primary.key == "moodLoggerData"

    def test_scope_with_remote_uses_remote(self, mock_db):
        store = build_entry_store(settings, mock_db, SCOPE_ID)
        assert store.backend_name == "remote"
        assert store.fallback.name == "local"

    def test_scope_without_remote_uses_scoped_local_key(self):
        store = build_entry_store(settings, MockDatabase(configured=False), SCOPE_ID)
        assert store.backend_name == "local"
        assert store.primary.key == f"moodLoggerData:{SCOPE_ID}"

    async def test_remote_miss_falls_back_to_local(self, mock_db, local_store):
        local = LocalEntryBackend(local_store, f"moodLoggerData:{SCOPE_ID}")
        await EntryStore(primary=local).save_entry(_sample_entry())

        store = build_entry_store(settings, mock_db, SCOPE_ID)
        entry = await store.get_entry("2024-05-10")
        assert entry.scores["sleep"] == 0.75
        entries = await store.get_all_entries()
        assert list(entries) == ["2024-05-10"]

    async def test_writes_go_to_remote_only(self, mock_db, local_store):
        store = build_entry_store(settings, mock_db, SCOPE_ID)
        result = await store.save_entry(_sample_entry())
        assert result.backend == "remote"
        assert len(mock_db.daily_entries._data) == 1
        assert not local_store.exists()
