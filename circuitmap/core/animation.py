from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional

from circuitmap.core.levels import Point

logger = logging.getLogger(__name__)

DEFAULT_DURATION_MS = 2000


def ease_out_cubic(t: float) -> float:
    return 1.0 - (1.0 - t) ** 3


def lerp_point(a: Point, b: Point, t: float) -> Point:
    return Point(a.x + (b.x - a.x) * t, a.y + (b.y - a.y) * t)


class TweenPhase(str, Enum):
    IDLE = "idle"
    PENDING = "pending"
    RUNNING = "running"
    COMMITTING = "committing"


@dataclass(frozen=True)
class AnimationFrame:
    """What the marker looks like right now."""

    is_moving: bool
    partial_progress: float
    position: Optional[Point]


FrameListener = Callable[[AnimationFrame], None]


class AnimationController:
    """Moves the map marker between two level positions.

    One tween at a time. The controller owns no timer: whoever owns the frame
    loop calls :meth:`tick`, and each tick samples ``clock`` (seconds, monotonic)
    to work out how far the tween has got. Phases run
    ``idle -> pending -> running -> committing -> idle``; ``pending`` covers the
    optional start delay, ``committing`` the single ``on_complete`` call.
    """

    def __init__(
        self,
        duration_ms: int = DEFAULT_DURATION_MS,
        delay_ms: int = 0,
        clock: Callable[[], float] = time.monotonic,
        easing: Callable[[float], float] = ease_out_cubic,
    ) -> None:
        if duration_ms <= 0:
            raise ValueError("duration_ms must be positive")
        if delay_ms < 0:
            raise ValueError("delay_ms must not be negative")
        self._duration_ms = duration_ms
        self._delay_ms = delay_ms
        self._clock = clock
        self._easing = easing
        self._listeners: List[FrameListener] = []

        self._phase = TweenPhase.IDLE
        self._start: Optional[Point] = None
        self._end: Optional[Point] = None
        self._started_at = 0.0
        self._on_complete: Optional[Callable[[], None]] = None
        self._frame = AnimationFrame(is_moving=False, partial_progress=0.0, position=None)

    @property
    def phase(self) -> TweenPhase:
        return self._phase

    @property
    def is_active(self) -> bool:
        return self._phase is not TweenPhase.IDLE

    @property
    def frame(self) -> AnimationFrame:
        return self._frame

    @property
    def duration_ms(self) -> int:
        return self._duration_ms

    def subscribe(self, listener: FrameListener) -> None:
        self._listeners.append(listener)

    def park(self, position: Optional[Point]) -> None:
        """Place the idle marker without animating."""
        if self.is_active:
            return
        self._publish(AnimationFrame(is_moving=False, partial_progress=0.0, position=position))

    def start(self, start: Point, end: Point, on_complete: Optional[Callable[[], None]] = None) -> bool:
        if self.is_active:
            logger.debug("Tween already in flight; ignoring start request")
            return False
        self._start = start
        self._end = end
        self._on_complete = on_complete
        self._started_at = self._clock()
        self._phase = TweenPhase.PENDING if self._delay_ms > 0 else TweenPhase.RUNNING
        self._publish(AnimationFrame(is_moving=False, partial_progress=0.0, position=start))
        return True

    def cancel(self) -> bool:
        """Drop the in-flight tween; its completion callback never runs."""
        if not self.is_active:
            return False
        logger.debug("Cancelling tween in phase %s", self._phase.value)
        self._phase = TweenPhase.IDLE
        self._on_complete = None
        self._publish(AnimationFrame(is_moving=False, partial_progress=0.0, position=self._start))
        return True

    def tick(self) -> AnimationFrame:
        if self._phase is TweenPhase.IDLE or self._phase is TweenPhase.COMMITTING:
            return self._frame
        if self._start is None or self._end is None:
            return self._frame

        elapsed_ms = (self._clock() - self._started_at) * 1000.0 - self._delay_ms
        if elapsed_ms < 0:
            return self._frame
        self._phase = TweenPhase.RUNNING

        progress = min(elapsed_ms / self._duration_ms, 1.0)
        eased = self._easing(progress)
        self._publish(
            AnimationFrame(is_moving=True, partial_progress=eased, position=lerp_point(self._start, self._end, eased))
        )
        if progress < 1.0:
            return self._frame

        # The idle frame is in place before the callback so observers of the
        # commit never see a moving marker past its destination.
        self._phase = TweenPhase.COMMITTING
        self._frame = AnimationFrame(is_moving=False, partial_progress=0.0, position=self._end)
        callback, self._on_complete = self._on_complete, None
        try:
            if callback is not None:
                callback()
        finally:
            self._phase = TweenPhase.IDLE
        self._publish(self._frame)
        return self._frame

    def _publish(self, frame: AnimationFrame) -> None:
        self._frame = frame
        for listener in list(self._listeners):
            listener(frame)
