"""Tests for the translation cache and its stores."""

import json

import pytest

from xcstrings_translator.config import Settings
from xcstrings_translator.core.cache import (
    DEFAULT_MAX_ENTRIES,
    DEFAULT_TTL_MS,
    CacheStore,
    InMemoryCacheStore,
    JsonFileCacheStore,
    TranslationCache,
    build_cache_key,
    create_cache,
)

from conftest import FakeClock

MODEL = "gpt-4o-mini"
DAY_MS = 24 * 60 * 60 * 1000


class BrokenStore(CacheStore):
    """Store whose every operation fails."""

    def load(self):
        raise OSError("storage unavailable")

    def save(self, data):
        raise OSError("quota exceeded")

    def delete(self):
        raise OSError("storage unavailable")


def test_defaults_match_seven_days_and_ten_thousand_entries():
    assert DEFAULT_TTL_MS == 7 * DAY_MS
    assert DEFAULT_MAX_ENTRIES == 10_000


class TestCacheKey:
    def test_key_is_deterministic(self):
        first = build_cache_key("Hello", "en", "fr", MODEL)
        second = build_cache_key("Hello", "en", "fr", MODEL)
        assert first == second

    def test_key_changes_with_every_component(self):
        base = build_cache_key("Hello", "en", "fr", MODEL)
        assert build_cache_key("Hello!", "en", "fr", MODEL) != base
        assert build_cache_key("Hello", "de", "fr", MODEL) != base
        assert build_cache_key("Hello", "en", "de", MODEL) != base
        assert build_cache_key("Hello", "en", "fr", "gpt-4o") != base

    def test_key_is_case_sensitive(self):
        assert build_cache_key("hello", "en", "fr", MODEL) != build_cache_key("Hello", "en", "fr", MODEL)

    def test_component_boundaries_do_not_collide(self):
        assert build_cache_key("a|b", "c", "fr", MODEL) != build_cache_key("a", "b|c", "fr", MODEL)


class TestGetSet:
    def test_get_returns_none_when_absent(self, cache):
        assert cache.get("Hello", "en", "fr", MODEL) is None

    def test_set_then_get(self, cache):
        cache.set("Hello", "en", "fr", MODEL, "Bonjour")
        assert cache.get("Hello", "en", "fr", MODEL) == "Bonjour"

    def test_set_is_idempotent(self, cache):
        cache.set("Hello", "en", "fr", MODEL, "Bonjour")
        cache.set("Hello", "en", "fr", MODEL, "Bonjour")
        assert len(cache) == 1
        assert cache.get("Hello", "en", "fr", MODEL) == "Bonjour"

    def test_set_overwrites_previous_translation(self, cache):
        cache.set("Hello", "en", "fr", MODEL, "Salut")
        cache.set("Hello", "en", "fr", MODEL, "Bonjour")
        assert cache.get("Hello", "en", "fr", MODEL) == "Bonjour"

    def test_model_is_part_of_the_key(self, cache):
        cache.set("Hello", "en", "fr", MODEL, "Bonjour")
        assert cache.get("Hello", "en", "fr", "gpt-4o") is None

    def test_set_many_persists_once(self, cache, store):
        cache.set_many([
            ("One", "en", "fr", MODEL, "Un"),
            ("Two", "en", "fr", MODEL, "Deux"),
            ("Three", "en", "fr", MODEL, "Trois"),
        ])
        assert store.save_count == 1
        assert cache.get("Two", "en", "fr", MODEL) == "Deux"


class TestExpiry:
    def test_entry_valid_at_exactly_ttl(self, cache, clock):
        cache.set("Hello", "en", "fr", MODEL, "Bonjour")
        clock.advance(DEFAULT_TTL_MS)
        assert cache.get("Hello", "en", "fr", MODEL) == "Bonjour"

    def test_entry_expires_after_ttl(self, cache, clock):
        cache.set("Hello", "en", "fr", MODEL, "Bonjour")
        clock.advance(DEFAULT_TTL_MS + 1)
        assert cache.get("Hello", "en", "fr", MODEL) is None
        assert len(cache) == 0

    def test_expired_read_defers_persist_until_close(self, cache, clock, store):
        cache.set("Hello", "en", "fr", MODEL, "Bonjour")
        clock.advance(8 * DAY_MS)

        assert cache.get("Hello", "en", "fr", MODEL) is None
        assert store.save_count == 1

        cache.close()
        assert store.save_count == 2
        assert store.load()["entries"] == {}

    def test_expired_removal_is_written_with_next_store(self, cache, clock, store):
        cache.set("Hello", "en", "fr", MODEL, "Bonjour")
        clock.advance(8 * DAY_MS)
        cache.get("Hello", "en", "fr", MODEL)

        cache.set("Bye", "en", "fr", MODEL, "Au revoir")

        assert list(store.load()["entries"].values())[0]["translatedText"] == "Au revoir"
        assert len(store.load()["entries"]) == 1

    def test_purge_expired_counts_removed_entries(self, cache, clock):
        cache.set("Old", "en", "fr", MODEL, "Vieux")
        clock.advance(5 * DAY_MS)
        cache.set("New", "en", "fr", MODEL, "Nouveau")
        clock.advance(3 * DAY_MS)

        assert cache.purge_expired() == 1
        assert cache.get("New", "en", "fr", MODEL) == "Nouveau"

    def test_expired_entries_are_dropped_on_load(self, clock):
        store = InMemoryCacheStore()
        TranslationCache(store=store, clock=clock).set("Hello", "en", "fr", MODEL, "Bonjour")

        clock.advance(8 * DAY_MS)
        reopened = TranslationCache(store=store, clock=clock)
        reopened.load()

        assert len(reopened) == 0


class TestSizeCap:
    def test_oldest_entries_evicted_first(self, store, clock):
        cache = TranslationCache(store=store, max_entries=3, clock=clock)
        for i in range(5):
            cache.set(f"Text {i}", "en", "fr", MODEL, f"Texte {i}")
            clock.advance(1000)

        assert len(cache) == 3
        assert cache.get("Text 0", "en", "fr", MODEL) is None
        assert cache.get("Text 1", "en", "fr", MODEL) is None
        assert cache.get("Text 4", "en", "fr", MODEL) == "Texte 4"

    def test_cap_holds_after_bulk_insert(self, store, clock):
        cache = TranslationCache(store=store, max_entries=10, clock=clock)
        cache.set_many((f"Text {i}", "en", "fr", MODEL, f"Texte {i}") for i in range(25))
        assert len(cache) == 10

    def test_perform_maintenance_applies_ttl_and_cap(self, clock):
        store = InMemoryCacheStore()
        big = TranslationCache(store=store, max_entries=100, clock=clock)
        for i in range(6):
            big.set(f"Text {i}", "en", "fr", MODEL, f"Texte {i}")

        small = TranslationCache(store=store, max_entries=4, clock=clock)
        assert small.perform_maintenance() == 2
        assert len(small) == 4


class TestStats:
    def test_empty_stats(self, cache):
        stats = cache.get_stats()
        assert stats.total_entries == 0
        assert stats.oldest_entry_timestamp is None
        assert stats.formatted_size.endswith("Bytes")

    def test_stats_report_oldest_timestamp(self, cache, clock):
        first = clock.now
        cache.set("One", "en", "fr", MODEL, "Un")
        clock.advance(5000)
        cache.set("Two", "en", "fr", MODEL, "Deux")

        stats = cache.get_stats()
        assert stats.total_entries == 2
        assert stats.oldest_entry_timestamp == first
        assert stats.approximate_size_bytes > 0


class TestClear:
    def test_clear_drops_entries_and_persisted_copy(self, cache, store):
        cache.set("Hello", "en", "fr", MODEL, "Bonjour")
        assert cache.clear() == 1
        assert len(cache) == 0
        assert store.load() is None

    def test_clear_on_empty_cache(self, cache):
        assert cache.clear() == 0


class TestFindSimilar:
    def test_returns_close_matches_sorted(self, cache):
        cache.set("Save changes", "en", "fr", MODEL, "Enregistrer les modifications")
        cache.set("Save change", "en", "fr", MODEL, "Enregistrer la modification")
        cache.set("Delete account", "en", "fr", MODEL, "Supprimer le compte")

        matches = cache.find_similar("Save changes!", "en", "fr", MODEL)

        assert [m.text for m in matches] == ["Save changes", "Save change"]
        assert matches[0].similarity >= matches[1].similarity

    def test_only_same_language_pair_and_model(self, cache):
        cache.set("Save changes", "en", "de", MODEL, "Änderungen speichern")
        cache.set("Save changes", "en", "fr", "gpt-4o", "Enregistrer")
        assert cache.find_similar("Save changes", "en", "fr", MODEL) == []


class TestPersistence:
    def test_entries_survive_reopen(self, store, clock):
        TranslationCache(store=store, clock=clock).set("Hello", "en", "fr", MODEL, "Bonjour")
        reopened = TranslationCache(store=store, clock=clock)
        assert reopened.get("Hello", "en", "fr", MODEL) == "Bonjour"

    def test_persisted_document_uses_camel_case(self, cache, store):
        cache.set("Hello", "en", "fr", MODEL, "Bonjour")
        document = store.load()
        assert document["version"] == 1
        entry = next(iter(document["entries"].values()))
        assert entry["translatedText"] == "Bonjour"
        assert entry["sourceLanguage"] == "en"
        assert entry["targetLanguage"] == "fr"

    def test_legacy_flat_document_is_accepted(self, clock):
        key = build_cache_key("Hello", "en", "fr", MODEL)
        legacy = {
            key: {
                "translatedText": "Bonjour",
                "timestamp": clock.now,
                "sourceLanguage": "en",
                "targetLanguage": "fr",
                "model": MODEL,
            }
        }
        cache = TranslationCache(store=InMemoryCacheStore(json.dumps(legacy)), clock=clock)
        assert cache.get("Hello", "en", "fr", MODEL) == "Bonjour"

    def test_malformed_entries_are_skipped(self, clock):
        key = build_cache_key("Hello", "en", "fr", MODEL)
        document = {
            "version": 1,
            "entries": {
                key: {
                    "translatedText": "Bonjour",
                    "timestamp": clock.now,
                    "sourceLanguage": "en",
                    "targetLanguage": "fr",
                    "model": MODEL,
                },
                "broken": {"translatedText": 42},
            },
        }
        cache = TranslationCache(store=InMemoryCacheStore(json.dumps(document)), clock=clock)
        assert len(cache) == 1
        assert cache.get("Hello", "en", "fr", MODEL) == "Bonjour"

    def test_corrupted_payload_starts_empty(self, clock):
        cache = TranslationCache(store=InMemoryCacheStore("{not json"), clock=clock)
        assert len(cache) == 0
        cache.set("Hello", "en", "fr", MODEL, "Bonjour")
        assert cache.get("Hello", "en", "fr", MODEL) == "Bonjour"

    def test_store_failures_degrade_to_memory(self, clock):
        cache = TranslationCache(store=BrokenStore(), clock=clock)

        cache.set("Hello", "en", "fr", MODEL, "Bonjour")
        assert cache.get("Hello", "en", "fr", MODEL) == "Bonjour"
        assert cache.clear() == 1
        cache.close()

    def test_close_flushes_after_failed_persist(self, clock):
        class FlakyStore(InMemoryCacheStore):
            fail = True

            def save(self, data):
                if self.fail:
                    raise OSError("disk full")
                super().save(data)

        store = FlakyStore()
        cache = TranslationCache(store=store, clock=clock)
        cache.set("Hello", "en", "fr", MODEL, "Bonjour")
        assert store.load() is None

        store.fail = False
        cache.close()
        assert store.load() is not None


class TestJsonFileCacheStore:
    def test_round_trip_through_file(self, tmp_path):
        path = tmp_path / "cache" / "translation_cache.json"
        clock = FakeClock()

        cache = TranslationCache(store=JsonFileCacheStore(path), clock=clock)
        cache.set("Hello", "en", "fr", MODEL, "Bonjour")
        assert path.exists()

        reopened = TranslationCache(store=JsonFileCacheStore(path), clock=clock)
        assert reopened.get("Hello", "en", "fr", MODEL) == "Bonjour"

    def test_missing_file_loads_nothing(self, tmp_path):
        assert JsonFileCacheStore(tmp_path / "absent.json").load() is None

    def test_delete_removes_file(self, tmp_path):
        store = JsonFileCacheStore(tmp_path / "cache.json")
        store.save({"version": 1, "entries": {}})
        store.delete()
        assert not (tmp_path / "cache.json").exists()

    def test_lone_surrogate_survives_reload(self, tmp_path):
        path = tmp_path / "cache.json"
        clock = FakeClock()

        cache = TranslationCache(store=JsonFileCacheStore(path), clock=clock)
        cache.set("\ud800 broken", "en", "fr", MODEL, "cass\udfffe")

        reopened = TranslationCache(store=JsonFileCacheStore(path), clock=clock)
        assert reopened.get("\ud800 broken", "en", "fr", MODEL) == "cass\udfffe"

    def test_corrupted_file_starts_empty(self, tmp_path):
        path = tmp_path / "cache.json"
        path.write_text("{truncated", encoding="utf-8")
        cache = TranslationCache(store=JsonFileCacheStore(path))
        assert len(cache) == 0


class TestCreateCache:
    def test_persistent_cache_uses_file_store(self, tmp_path):
        config = Settings(cache_dir=tmp_path, cache_ttl_days=1, cache_max_entries=50)
        cache = create_cache(config)
        cache.set("Hello", "en", "fr", MODEL, "Bonjour")

        assert (tmp_path / "translation_cache.json").exists()
        assert cache.ttl_ms == DAY_MS
        assert cache.max_entries == 50

    def test_non_persistent_cache_stays_in_memory(self, tmp_path):
        config = Settings(cache_dir=tmp_path, cache_persist=False)
        cache = create_cache(config)
        cache.set("Hello", "en", "fr", MODEL, "Bonjour")

        assert not (tmp_path / "translation_cache.json").exists()
        assert cache.get("Hello", "en", "fr", MODEL) == "Bonjour"


@pytest.mark.parametrize("text", ["Hello", "", "Ünïcödé ✓", "multi\nline"])
def test_any_text_round_trips(cache, text):
    cache.set(text, "en", "fr", MODEL, f"fr:{text}")
    assert cache.get(text, "en", "fr", MODEL) == f"fr:{text}"


def test_lone_surrogate_text_has_a_key():
    key = build_cache_key("\ud800 broken", "en", "fr", MODEL)
    assert key != build_cache_key("\udfff broken", "en", "fr", MODEL)
    assert len(key) == 32


def test_get_of_lone_surrogate_text_misses(cache):
    assert cache.get("\ud800 broken", "en", "fr", MODEL) is None
