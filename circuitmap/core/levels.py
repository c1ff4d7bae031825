from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import AbstractSet, Any, Dict, List, Mapping, Optional, Sequence

import yaml

logger = logging.getLogger(__name__)

DEFAULT_LEVELS_FILE = Path(__file__).resolve().parent.parent / "data" / "levels.yaml"


@dataclass(frozen=True)
class Point:
    """A coordinate in the normalized 0..100 map space."""

    x: float
    y: float


class LevelStatus(str, Enum):
    LOCKED = "locked"
    UNLOCKED = "unlocked"
    CURRENT = "current"
    COMPLETED = "completed"


@dataclass(frozen=True)
class Level:
    id: int
    position: Point
    difficulty: str = "Easy"
    stars: int = 0
    description: str = ""
    topic: str = ""
    icon: str = ""
    color: str = "#00d4ff"


def derive_status(
    level_id: int,
    current_level_id: int,
    completed_ids: AbstractSet[int],
) -> LevelStatus:
    """Status of one level, computed from the two progression primitives."""
    if level_id in completed_ids:
        return LevelStatus.COMPLETED
    if level_id == current_level_id:
        return LevelStatus.CURRENT
    if level_id <= current_level_id:
        return LevelStatus.UNLOCKED
    return LevelStatus.LOCKED


def _coordinate(raw: Any, name: str, where: str) -> float:
    try:
        value = float(raw)
    except (TypeError, ValueError):
        raise ValueError(f"{where}: '{name}' must be a number, got {raw!r}") from None
    if not 0.0 <= value <= 100.0:
        raise ValueError(f"{where}: '{name}' must lie in [0, 100], got {value}")
    return value


def _parse_level(raw: Mapping[str, Any], index: int) -> Level:
    where = f"level entry #{index + 1}"
    if not isinstance(raw, Mapping):
        raise ValueError(f"{where}: expected a mapping, got {type(raw).__name__}")
    if "id" not in raw:
        raise ValueError(f"{where}: missing 'id'")
    try:
        level_id = int(raw["id"])
    except (TypeError, ValueError):
        raise ValueError(f"{where}: invalid 'id' {raw['id']!r}") from None
    where = f"level {level_id}"

    # position may be nested ({x, y}) or flat (x, y on the entry itself)
    position = raw.get("position", raw)
    if not isinstance(position, Mapping) or "x" not in position or "y" not in position:
        raise ValueError(f"{where}: missing position 'x'/'y'")
    point = Point(
        x=_coordinate(position["x"], "x", where),
        y=_coordinate(position["y"], "y", where),
    )

    stars = int(raw.get("stars", 0) or 0)
    return Level(
        id=level_id,
        position=point,
        difficulty=str(raw.get("difficulty", "Easy")).strip(),
        stars=max(0, min(3, stars)),
        description=str(raw.get("description", "")).strip(),
        topic=str(raw.get("topic", "")).strip(),
        icon=str(raw.get("icon", "")).strip(),
        color=str(raw.get("color", "#00d4ff")).strip(),
    )


def build_levels(definitions: Sequence[Mapping[str, Any]]) -> List[Level]:
    """Turn raw level definitions into an ordered level list.

    Returns an empty list when fewer than two definitions are given: a single
    node has no connector and no progression to speak of. Structural problems
    (missing fields, duplicate ids, gaps in the 1..N numbering) raise
    ``ValueError``.
    """
    if len(definitions) < 2:
        logger.warning("Level catalogue has %d entries; at least 2 are required", len(definitions))
        return []

    levels = sorted((_parse_level(raw, i) for i, raw in enumerate(definitions)), key=lambda lvl: lvl.id)
    ids = [lvl.id for lvl in levels]
    if len(set(ids)) != len(ids):
        raise ValueError(f"duplicate level ids in {ids}")
    if ids != list(range(1, len(ids) + 1)):
        raise ValueError(f"level ids must run 1..{len(ids)} without gaps, got {ids}")
    return levels


class LevelRepository:
    def __init__(self, path: Optional[Path] = None) -> None:
        self._path = path or DEFAULT_LEVELS_FILE
        self._levels: Dict[int, Level] = {lvl.id: lvl for lvl in self._load_levels()}

    def all(self) -> List[Level]:
        return list(self._levels.values())

    def get(self, level_id: int) -> Level:
        return self._levels[level_id]

    def positions(self) -> List[Point]:
        return [lvl.position for lvl in self._levels.values()]

    def __len__(self) -> int:
        return len(self._levels)

    def _load_levels(self) -> List[Level]:
        if not self._path.exists():
            raise FileNotFoundError(f"Levels file not found: {self._path}")
        raw = yaml.safe_load(self._path.read_text(encoding="utf-8"))
        if isinstance(raw, dict):
            raw = raw.get("levels")
        if not isinstance(raw, list):
            raise ValueError(f"{self._path.name}: expected a 'levels' list")
        return build_levels(raw)
