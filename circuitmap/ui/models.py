"""Data models used by the UI."""

from __future__ import annotations

from dataclasses import dataclass

from circuitmap.core.levels import LevelStatus
from circuitmap.ui.colors import STATUS_COLORS, MapColors, blend_hex


@dataclass(frozen=True)
class NodeStyle:
    """How a level node is painted for a given status."""

    fill: str
    border: str
    glow: str
    text: str
    clickable: bool
    show_stars: bool = False


def node_style(status: LevelStatus, hovered: bool = False) -> NodeStyle:
    base = STATUS_COLORS[status]
    clickable = status is not LevelStatus.LOCKED
    text = MapColors.TEXT_PRIMARY if status in (LevelStatus.CURRENT, LevelStatus.LOCKED) else MapColors.TEXT_DARK
    fill = blend_hex(base, "#FFFFFF", 0.15) if hovered and clickable else base
    return NodeStyle(
        fill=fill,
        border=base,
        glow=base,
        text=text,
        clickable=clickable,
        show_stars=status is LevelStatus.COMPLETED,
    )


@dataclass(frozen=True)
class ProgressSummary:
    """Numbers shown by the progress bar above the map."""

    completed: int
    total: int
    current_level_id: int

    @property
    def fraction(self) -> float:
        return self.completed / self.total if self.total else 0.0

    @property
    def label(self) -> str:
        return f"{self.completed} / {self.total} Levels Completed"

    @property
    def current_label(self) -> str:
        return f"Current: Level {min(self.current_level_id, max(self.total, 1))}"
