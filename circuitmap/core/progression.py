from __future__ import annotations

import logging
import time
from dataclasses import dataclass, replace
from enum import Enum
from typing import TYPE_CHECKING, Callable, FrozenSet, List, Optional, Sequence

from circuitmap.core.animation import AnimationController, AnimationFrame
from circuitmap.core.levels import Level, LevelStatus, Point, derive_status

if TYPE_CHECKING:
    from circuitmap.core.persistence import ProgressStore

logger = logging.getLogger(__name__)

UNLOCK_FLASH_MS = 600


@dataclass(frozen=True)
class ProgressionState:
    current_level_id: int = 1
    completed_level_ids: FrozenSet[int] = frozenset()

    def status_of(self, level_id: int) -> LevelStatus:
        return derive_status(level_id, self.current_level_id, self.completed_level_ids)

    def with_completed(self, level_id: int) -> ProgressionState:
        return replace(self, completed_level_ids=self.completed_level_ids | {level_id})

    def advanced(self) -> ProgressionState:
        return replace(self, current_level_id=self.current_level_id + 1)


class ProgressEvent(str, Enum):
    LOADED = "loaded"
    FRAME = "frame"
    COMPLETED = "completed"
    UNLOCKED = "unlocked"
    FLASH_CLEARED = "flash_cleared"
    RESET = "reset"


@dataclass(frozen=True)
class LevelView:
    """A level together with its status at the time of asking."""

    level: Level
    status: LevelStatus
    just_unlocked: bool = False


def progress_fraction(current_level_id: int, partial_progress: float, is_moving: bool, level_count: int) -> float:
    """Share of the whole connector that has been travelled.

    Whole segments behind the current level count fully; while the marker is
    moving the segment being travelled adds its eased partial progress.
    """
    if level_count < 2:
        return 0.0
    travelled = float(max(0, current_level_id - 1))
    if is_moving:
        travelled += max(0.0, min(1.0, partial_progress))
    return max(0.0, min(1.0, travelled / (level_count - 1)))


class Progression:
    """Owns the player's position in the level sequence.

    ``advance`` finishes the current level and sends the marker to the next
    one, ``select_level`` opens an unlocked, unfinished level, ``reset`` wipes
    everything. Per-level status is always derived on demand from
    ``(current_level_id, completed_level_ids)``.

    Nothing here blocks or owns a timer: the caller keeps calling :meth:`tick`
    while :attr:`needs_frames` is true.
    """

    def __init__(
        self,
        levels: Sequence[Level],
        store: ProgressStore,
        animator: Optional[AnimationController] = None,
        navigator: Optional[Callable[[int], None]] = None,
        clock: Callable[[], float] = time.monotonic,
        unlock_flash_ms: int = UNLOCK_FLASH_MS,
    ) -> None:
        self._levels: List[Level] = sorted(levels, key=lambda lvl: lvl.id)
        self._store = store
        self._clock = clock
        self._animator = animator or AnimationController(clock=clock)
        self._navigator = navigator
        self._unlock_flash_ms = unlock_flash_ms
        self._state = ProgressionState()
        self._just_unlocked: Optional[int] = None
        self._just_unlocked_until = 0.0
        self._listeners: List[Callable[[ProgressEvent], None]] = []

        self._animator.subscribe(self._on_frame)
        self._animator.park(self._resting_position())

    # -- read-only views -------------------------------------------------

    @property
    def levels(self) -> List[Level]:
        return list(self._levels)

    @property
    def level_count(self) -> int:
        return len(self._levels)

    @property
    def state(self) -> ProgressionState:
        return self._state

    @property
    def current_level_id(self) -> int:
        return self._state.current_level_id

    @property
    def completed_level_ids(self) -> FrozenSet[int]:
        return self._state.completed_level_ids

    @property
    def animator(self) -> AnimationController:
        return self._animator

    @property
    def frame(self) -> AnimationFrame:
        return self._animator.frame

    @property
    def is_transitioning(self) -> bool:
        return self._animator.is_active

    @property
    def is_moving(self) -> bool:
        return self._animator.frame.is_moving

    @property
    def partial_progress(self) -> float:
        return self._animator.frame.partial_progress

    @property
    def marker_position(self) -> Optional[Point]:
        return self._animator.frame.position or self._resting_position()

    @property
    def is_all_complete(self) -> bool:
        return bool(self._levels) and all(lvl.id in self._state.completed_level_ids for lvl in self._levels)

    @property
    def just_unlocked_id(self) -> Optional[int]:
        if self._just_unlocked is not None and self._clock() < self._just_unlocked_until:
            return self._just_unlocked
        return None

    @property
    def needs_frames(self) -> bool:
        return self.is_transitioning or self._just_unlocked is not None

    def status_of(self, level_id: int) -> LevelStatus:
        return self._state.status_of(level_id)

    def level_views(self) -> List[LevelView]:
        flash = self.just_unlocked_id
        return [LevelView(level=lvl, status=self.status_of(lvl.id), just_unlocked=lvl.id == flash) for lvl in self._levels]

    def progress_fraction(self) -> float:
        frame = self._animator.frame
        return progress_fraction(self.current_level_id, frame.partial_progress, frame.is_moving, self.level_count)

    def subscribe(self, listener: Callable[[ProgressEvent], None]) -> None:
        self._listeners.append(listener)

    # -- transitions -----------------------------------------------------

    def load(self) -> ProgressionState:
        """Restore state from the store at session start."""
        self._animator.cancel()
        self._state = self._store.load()
        self._just_unlocked = None
        self._animator.park(self._resting_position())
        self._notify(ProgressEvent.LOADED)
        return self._state

    def advance(self) -> bool:
        """Finish the current level and move on to the next one.

        The level is marked completed straight away; the move to the next level
        is committed only once the marker tween has finished. Returns False
        (and changes nothing) past the last level or while a tween is running.
        """
        if self.is_transitioning:
            logger.debug("advance() ignored: transition in flight")
            return False
        current = self._state.current_level_id
        count = self.level_count
        if current > count:
            logger.debug("advance() ignored: no level %d", current)
            return False
        if current == count and current in self._state.completed_level_ids:
            logger.debug("advance() ignored: all levels complete")
            return False

        self._state = self._state.with_completed(current)
        self._store.mark_completed(current)
        logger.info("Level %d completed", current)

        if current < count:
            start = self._levels[current - 1].position
            end = self._levels[current].position
            self._animator.start(start, end, on_complete=self._commit)
        else:
            self._store.save(self._state)
        self._notify(ProgressEvent.COMPLETED)
        return True

    def select_level(self, level_id: int) -> bool:
        """Open a level that is unlocked and not yet finished."""
        if not 1 <= level_id <= min(self.current_level_id, self.level_count):
            logger.debug("select_level(%d) ignored: locked", level_id)
            return False
        if level_id in self._state.completed_level_ids:
            logger.debug("select_level(%d) ignored: already completed", level_id)
            return False
        self._store.save(self._state)
        logger.info("Opening level %d", level_id)
        if self._navigator is not None:
            self._navigator(level_id)
        return True

    def save(self) -> None:
        """Persist the current state (e.g. on app exit)."""
        self._store.save(self._state)

    def reset(self) -> None:
        self._animator.cancel()
        self._state = ProgressionState()
        self._just_unlocked = None
        self._store.clear()
        self._animator.park(self._resting_position())
        logger.info("Progress reset")
        self._notify(ProgressEvent.RESET)

    def tick(self) -> AnimationFrame:
        frame = self._animator.tick()
        if self._just_unlocked is not None and self.just_unlocked_id is None:
            self._just_unlocked = None
            self._notify(ProgressEvent.FLASH_CLEARED)
        return frame

    # -- internals -------------------------------------------------------

    def _commit(self) -> None:
        self._state = self._state.advanced()
        self._just_unlocked = self._state.current_level_id
        self._just_unlocked_until = self._clock() + self._unlock_flash_ms / 1000.0
        self._store.save(self._state)
        logger.info("Level %d unlocked", self._state.current_level_id)
        self._notify(ProgressEvent.UNLOCKED)

    def _resting_position(self) -> Optional[Point]:
        if not self._levels:
            return None
        index = min(self._state.current_level_id, self.level_count) - 1
        return self._levels[max(0, index)].position

    def _on_frame(self, frame: AnimationFrame) -> None:
        self._notify(ProgressEvent.FRAME)

    def _notify(self, event: ProgressEvent) -> None:
        for listener in list(self._listeners):
            listener(event)
