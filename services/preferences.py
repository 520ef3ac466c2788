"""Client-side preference state: dietary selections and learned likes/dislikes.

State lives behind a small key/value ``PreferenceStore`` so the Streamlit
client can persist to disk while tests use an in-memory fake. Every value
is a JSON-encoded list of strings.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Protocol, Set

logger = logging.getLogger(__name__)

SELECTED_PREFERENCES = "selectedPreferences"
CUSTOM_PREFERENCES = "customPreferences"
LIKED_ITEMS = "likedItems"
DISLIKED_ITEMS = "dislikedItems"

PREFERENCE_SUGGESTIONS = [
    "Vegetarian",
    "Vegan",
    "Gluten-free",
    "Dairy-free",
    "Keto",
    "Low-carb",
    "Halal",
    "Kosher",
    "Nut-free",
    "Shellfish-free",
]


class PreferenceStore(Protocol):
    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, value: str) -> None: ...

    def remove(self, key: str) -> None: ...


class InMemoryStore:
    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def remove(self, key: str) -> None:
        self._data.pop(key, None)


class JsonFileStore:
    """All keys in one JSON object on disk, rewritten on every change."""

    def __init__(self, path: os.PathLike | str):
        self.path = Path(path)

    def _read(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logger.warning("Ignoring unreadable preference file %s: %s", self.path, e)
            return {}
        return data if isinstance(data, dict) else {}

    def _write(self, data: Dict[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp.write_text(json.dumps(data, indent=2), encoding="utf-8")
        tmp.replace(self.path)

    def get(self, key: str) -> Optional[str]:
        value = self._read().get(key)
        return value if isinstance(value, str) else None

    def set(self, key: str, value: str) -> None:
        data = self._read()
        data[key] = value
        self._write(data)

    def remove(self, key: str) -> None:
        data = self._read()
        if data.pop(key, None) is not None:
            self._write(data)


def load_list(store: PreferenceStore, key: str) -> List[str]:
    raw = store.get(key)
    if not raw:
        return []
    try:
        value = json.loads(raw)
    except json.JSONDecodeError:
        logger.warning("Discarding corrupt value for %s", key)
        return []
    if not isinstance(value, list):
        return []
    return [str(v) for v in value if isinstance(v, str) and v.strip()]


def save_list(store: PreferenceStore, key: str, values: Iterable[str]) -> None:
    store.set(key, json.dumps(list(values)))


class LearnedPreferences:
    """Liked/disliked menu items. An item is never in both sets."""

    def __init__(self, liked: Iterable[str] = (), disliked: Iterable[str] = ()):
        self.disliked: Set[str] = set(disliked)
        self.liked: Set[str] = set(liked) - self.disliked

    def like(self, item: str) -> None:
        self.disliked.discard(item)
        self.liked.add(item)

    def dislike(self, item: str) -> None:
        self.liked.discard(item)
        self.disliked.add(item)

    def toggle_like(self, item: str) -> bool:
        """Returns True when the item is liked afterwards."""
        if item in self.liked:
            self.liked.discard(item)
            return False
        self.like(item)
        return True

    def toggle_dislike(self, item: str) -> bool:
        if item in self.disliked:
            self.disliked.discard(item)
            return False
        self.dislike(item)
        return True

    def status(self, item: str) -> Optional[str]:
        if item in self.liked:
            return "liked"
        if item in self.disliked:
            return "disliked"
        return None

    def clear(self) -> None:
        self.liked.clear()
        self.disliked.clear()

    def is_empty(self) -> bool:
        return not (self.liked or self.disliked)

    def as_form(self) -> Dict[str, str]:
        return {
            LIKED_ITEMS: ",".join(sorted(self.liked)),
            DISLIKED_ITEMS: ",".join(sorted(self.disliked)),
        }

    @classmethod
    def load(cls, store: PreferenceStore) -> "LearnedPreferences":
        return cls(load_list(store, LIKED_ITEMS), load_list(store, DISLIKED_ITEMS))

    def save(self, store: PreferenceStore) -> None:
        save_list(store, LIKED_ITEMS, sorted(self.liked))
        save_list(store, DISLIKED_ITEMS, sorted(self.disliked))
