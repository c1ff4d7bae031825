from __future__ import annotations

import json
import logging
import re
from pathlib import Path
from typing import Dict, Iterable, List, Mapping, Optional, Set

from circuitmap.core.progression import ProgressionState

logger = logging.getLogger(__name__)

DEFAULT_STORAGE_PATH = Path.home() / ".circuitmap" / "progress.json"

CURRENT_LEVEL_KEY = "currentLevel"
COMPLETED_LEVELS_KEY = "completedLevels"
_COMPLETED_FLAG_RE = re.compile(r"^level(\d+)Completed$")


def completed_flag_key(level_id: int) -> str:
    return f"level{level_id}Completed"


class KeyValueStore:
    """A durable string-to-string namespace, persisted as one JSON object.

    Without a path the store lives in memory only. Unreadable or corrupt files
    are logged and treated as empty; failed writes are logged and dropped.
    """

    def __init__(self, path: Optional[Path] = None) -> None:
        self._file_path = path
        self._items: Dict[str, str] = self._load()

    @property
    def path(self) -> Optional[Path]:
        return self._file_path

    def get_item(self, key: str) -> Optional[str]:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self.set_items({key: value})

    def set_items(self, items: Mapping[str, str]) -> None:
        self._items.update({key: str(value) for key, value in items.items()})
        self._save()

    def remove_item(self, key: str) -> None:
        self.remove_items([key])

    def remove_items(self, keys: Iterable[str]) -> None:
        removed = False
        for key in keys:
            if self._items.pop(key, None) is not None:
                removed = True
        if removed:
            self._save()

    def keys(self) -> List[str]:
        return list(self._items)

    def _load(self) -> Dict[str, str]:
        if self._file_path is None or not self._file_path.exists():
            return {}
        try:
            payload = json.loads(self._file_path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, UnicodeDecodeError, OSError) as e:
            logger.warning("Could not load progress from %s: %s", self._file_path, e)
            return {}
        if not isinstance(payload, dict):
            logger.warning("Ignoring progress file %s: expected a JSON object", self._file_path)
            return {}
        # anything that is not a string was not written by us
        return {key: value for key, value in payload.items() if isinstance(value, str)}

    def _save(self) -> None:
        if self._file_path is None:
            return
        try:
            self._file_path.parent.mkdir(parents=True, exist_ok=True)
            self._file_path.write_text(json.dumps(self._items, indent=2, sort_keys=True), encoding="utf-8")
        except OSError as e:
            logger.warning("Could not save progress to %s: %s", self._file_path, e)


class ProgressStore:
    """Loads and saves progression state across sessions.

    Layout inside the key-value store: one ``level<id>Completed = "true"`` flag
    per finished level, ``currentLevel`` holding the level the player was on,
    and ``completedLevels`` holding the finished ids as a JSON list. Missing or
    malformed entries fall back to defaults and never raise.
    """

    def __init__(self, store: KeyValueStore, level_count: int) -> None:
        self._store = store
        self._level_count = max(0, level_count)

    @property
    def level_count(self) -> int:
        return self._level_count

    def load(self) -> ProgressionState:
        completed = self._completed_from_flags()
        if completed is None:
            completed = self._completed_from_list()
        current = self._current_level(completed)
        logger.info("Loaded progress: level %d, completed %s", current, sorted(completed))
        return ProgressionState(current_level_id=current, completed_level_ids=frozenset(completed))

    def mark_completed(self, level_id: int) -> None:
        """Write a single completion flag (done as soon as a level is finished)."""
        if 1 <= level_id <= self._level_count:
            self._store.set_item(completed_flag_key(level_id), "true")

    def save(self, state: ProgressionState) -> None:
        completed = sorted(i for i in state.completed_level_ids if 1 <= i <= self._level_count)
        stale = [completed_flag_key(i) for i in range(1, self._level_count + 1) if i not in state.completed_level_ids]
        self._store.remove_items(stale)
        items = {completed_flag_key(i): "true" for i in completed}
        items[CURRENT_LEVEL_KEY] = str(state.current_level_id)
        items[COMPLETED_LEVELS_KEY] = json.dumps(completed)
        self._store.set_items(items)

    def clear(self) -> None:
        keys = [key for key in self._store.keys() if _COMPLETED_FLAG_RE.match(key)]
        keys.extend([CURRENT_LEVEL_KEY, COMPLETED_LEVELS_KEY])
        self._store.remove_items(keys)
        logger.info("Cleared stored progress")

    def _completed_from_flags(self) -> Optional[Set[int]]:
        completed: Set[int] = set()
        seen_any = False
        for level_id in range(1, self._level_count + 1):
            value = self._store.get_item(completed_flag_key(level_id))
            if value is None:
                continue
            seen_any = True
            if value.strip().lower() == "true":
                completed.add(level_id)
        return completed if seen_any else None

    def _completed_from_list(self) -> Set[int]:
        raw = self._store.get_item(COMPLETED_LEVELS_KEY)
        if raw is None:
            return set()
        try:
            values = json.loads(raw)
        except json.JSONDecodeError:
            return set()
        if not isinstance(values, list):
            return set()
        return {v for v in values if isinstance(v, int) and not isinstance(v, bool) and 1 <= v <= self._level_count}

    def _current_level(self, completed: Set[int]) -> int:
        default = next(i for i in range(1, self._level_count + 2) if i not in completed)
        raw = self._store.get_item(CURRENT_LEVEL_KEY)
        if raw is None:
            return default
        try:
            saved = int(raw.strip())
        except ValueError:
            return default
        if not 1 <= saved <= self._level_count:
            return default
        if saved not in completed:
            return saved
        # a finished run stays parked on the last level
        if saved == self._level_count and len(completed) == self._level_count:
            return saved
        return default
