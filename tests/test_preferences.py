import json

import pytest

from services.preferences import (
    CUSTOM_PREFERENCES,
    DISLIKED_ITEMS,
    LIKED_ITEMS,
    SELECTED_PREFERENCES,
    InMemoryStore,
    JsonFileStore,
    LearnedPreferences,
    load_list,
    save_list,
)


class TestLearnedPreferences:
    def test_like_removes_dislike(self):
        prefs = LearnedPreferences(disliked=["Soup"])
        prefs.like("Soup")
        assert prefs.liked == {"Soup"}
        assert prefs.disliked == set()

    def test_dislike_removes_like(self):
        prefs = LearnedPreferences(liked=["Soup"])
        prefs.dislike("Soup")
        assert prefs.disliked == {"Soup"}
        assert prefs.liked == set()

    @pytest.mark.parametrize("start", [(), ("Soup",)])
    def test_toggle_like_twice_is_identity(self, start):
        prefs = LearnedPreferences(liked=start)
        before = prefs.status("Soup")
        prefs.toggle_like("Soup")
        prefs.toggle_like("Soup")
        assert prefs.status("Soup") == before

    @pytest.mark.parametrize("start", [(), ("Soup",)])
    def test_toggle_dislike_twice_is_identity(self, start):
        prefs = LearnedPreferences(disliked=start)
        before = prefs.status("Soup")
        prefs.toggle_dislike("Soup")
        prefs.toggle_dislike("Soup")
        assert prefs.status("Soup") == before

    def test_toggle_like_on_disliked_moves_it(self):
        prefs = LearnedPreferences(disliked=["Soup"])
        assert prefs.toggle_like("Soup") is True
        assert prefs.status("Soup") == "liked"
        assert not prefs.liked & prefs.disliked

    def test_overlap_at_construction_resolves_to_disliked(self):
        prefs = LearnedPreferences(liked=["Soup", "Salad"], disliked=["Soup"])
        assert prefs.liked == {"Salad"}
        assert prefs.disliked == {"Soup"}

    def test_clear(self):
        prefs = LearnedPreferences(liked=["a"], disliked=["b"])
        assert not prefs.is_empty()
        prefs.clear()
        assert prefs.is_empty()

    def test_as_form(self):
        prefs = LearnedPreferences(liked=["b", "a"], disliked=["c"])
        assert prefs.as_form() == {LIKED_ITEMS: "a,b", DISLIKED_ITEMS: "c"}

    def test_persistence_round_trip(self):
        store = InMemoryStore()
        LearnedPreferences(liked=["Risotto"], disliked=["Pesto"]).save(store)
        assert json.loads(store.get(LIKED_ITEMS)) == ["Risotto"]

        loaded = LearnedPreferences.load(store)
        assert loaded.liked == {"Risotto"}
        assert loaded.disliked == {"Pesto"}


class TestStores:
    def test_in_memory_get_set_remove(self):
        store = InMemoryStore()
        assert store.get("k") is None
        store.set("k", "v")
        assert store.get("k") == "v"
        store.remove("k")
        store.remove("k")
        assert store.get("k") is None

    def test_json_file_store(self, tmp_path):
        path = tmp_path / "nested" / "prefs.json"
        store = JsonFileStore(path)
        save_list(store, SELECTED_PREFERENCES, ["Vegan"])
        save_list(store, CUSTOM_PREFERENCES, ["Low-FODMAP"])

        reopened = JsonFileStore(path)
        assert load_list(reopened, SELECTED_PREFERENCES) == ["Vegan"]
        assert load_list(reopened, CUSTOM_PREFERENCES) == ["Low-FODMAP"]

        reopened.remove(CUSTOM_PREFERENCES)
        assert load_list(store, CUSTOM_PREFERENCES) == []

    def test_unreadable_file_is_empty(self, tmp_path):
        path = tmp_path / "prefs.json"
        path.write_text("{not json", encoding="utf-8")
        assert JsonFileStore(path).get(LIKED_ITEMS) is None

    @pytest.mark.parametrize("raw", ["{oops", '"a string"', "[1, 2]", ""])
    def test_corrupt_values_load_empty(self, raw):
        store = InMemoryStore({LIKED_ITEMS: raw})
        assert load_list(store, LIKED_ITEMS) == []
