from __future__ import annotations

import logging
from typing import Optional

from PySide6.QtCore import Qt, QTimer
from PySide6.QtGui import QCloseEvent, QKeyEvent
from PySide6.QtWidgets import (
    QApplication,
    QFrame,
    QHBoxLayout,
    QLabel,
    QMainWindow,
    QPushButton,
    QVBoxLayout,
    QWidget,
)

from circuitmap.core.commands import Command, parse_command
from circuitmap.core.config import MapConfig
from circuitmap.core.progression import ProgressEvent, Progression
from circuitmap.ui.about_overlay import AboutOverlay
from circuitmap.ui.colors import MapColors
from circuitmap.ui.level_map import LevelMapWidget
from circuitmap.ui.models import ProgressSummary
from circuitmap.ui.progress_bar import MapProgressBar

logger = logging.getLogger(__name__)


def _pill_button(text: str, color: str, text_color: str) -> QPushButton:
    btn = QPushButton(text)
    btn.setCursor(Qt.CursorShape.PointingHandCursor)
    btn.setFocusPolicy(Qt.NoFocus)
    btn.setMinimumHeight(52)
    btn.setStyleSheet(
        f"""
        QPushButton {{
            background: {color};
            color: {text_color};
            border: 2px solid {color};
            border-radius: 26px;
            padding: 0px 36px;
            font-size: 15px;
            font-weight: 800;
        }}
        QPushButton:disabled {{ background: {MapColors.LOCKED}; border-color: {MapColors.LOCKED}; }}
        """
    )
    return btn


class MainWindow(QMainWindow):
    """Level map window.

    Drives ``Progression.tick`` from a ``QTimer`` while a tween or unlock flash
    is active and mirrors progression events into the widgets. Single-key
    commands (N, R, A, M) are handled in ``keyPressEvent``.
    """

    def __init__(self, progression: Progression, config: MapConfig) -> None:
        super().__init__()
        self._progression = progression
        self._config = config
        self._muted = False

        self._frame_timer = QTimer(self)
        self._frame_timer.setInterval(config.frame_interval_ms)
        self._frame_timer.timeout.connect(self._on_frame_timer)

        self._build_ui()
        self._progression.subscribe(self._on_progress_event)
        self._map.set_levels(self._progression.levels)
        self._refresh()

    def _build_ui(self) -> None:
        self.setWindowTitle("Circuit Map")
        root = QWidget()
        root.setObjectName("mapRoot")
        root.setStyleSheet(
            f"""
            QWidget#mapRoot {{
                background: qlineargradient(x1:0, y1:0, x2:0, y2:1,
                    stop:0 {MapColors.BG_TOP}, stop:1 {MapColors.BG_BOTTOM});
            }}
            """
        )
        layout = QVBoxLayout(root)
        layout.setContentsMargins(24, 16, 24, 24)
        layout.setSpacing(16)

        header = QHBoxLayout()
        header.addStretch(1)
        self._mute_button = _pill_button("", MapColors.PANEL_BG, MapColors.TEXT_PRIMARY)
        self._mute_button.clicked.connect(lambda: self._run_command(Command.TOGGLE_MUTE))
        info_button = _pill_button("About (A)", MapColors.PANEL_BG, MapColors.TEXT_PRIMARY)
        info_button.clicked.connect(lambda: self._run_command(Command.TOGGLE_INFO))
        header.addWidget(self._mute_button)
        header.addWidget(info_button)
        layout.addLayout(header)

        self._progress_bar = MapProgressBar()
        layout.addWidget(self._progress_bar)

        map_frame = QFrame()
        map_frame.setObjectName("mapFrame")
        map_frame.setStyleSheet(
            f"""
            QFrame#mapFrame {{
                background: {MapColors.PANEL_BG};
                border: 1px solid {MapColors.PANEL_BORDER};
                border-radius: 24px;
            }}
            """
        )
        map_layout = QVBoxLayout(map_frame)
        map_layout.setContentsMargins(12, 12, 12, 12)
        self._map = LevelMapWidget(on_level_clicked=self._progression.select_level)
        map_layout.addWidget(self._map)
        layout.addWidget(map_frame, 1)

        controls = QHBoxLayout()
        controls.addStretch(1)
        self._next_button = _pill_button("Next Level", MapColors.UNLOCKED, MapColors.TEXT_DARK)
        self._next_button.clicked.connect(lambda: self._run_command(Command.ADVANCE))
        self._done_label = QLabel("\U0001F389 Congratulations! You've completed all levels!")
        self._done_label.setStyleSheet(f"color: {MapColors.COMPLETED}; font-size: 18px; font-weight: 800;")
        reset_button = _pill_button("Reset Progress", MapColors.CURRENT, MapColors.TEXT_PRIMARY)
        reset_button.clicked.connect(lambda: self._run_command(Command.RESET))
        controls.addWidget(self._next_button)
        controls.addWidget(self._done_label)
        controls.addSpacing(24)
        controls.addWidget(reset_button)
        controls.addStretch(1)
        layout.addLayout(controls)

        self.setCentralWidget(root)

        self._about_overlay = AboutOverlay(root)
        self._about_overlay.hide()
        self._about_overlay.closed.connect(self.setFocus)

    def keyPressEvent(self, event: QKeyEvent) -> None:
        if event.modifiers() & (Qt.ControlModifier | Qt.AltModifier | Qt.MetaModifier):
            super().keyPressEvent(event)
            return
        command = parse_command(event.text())
        if command is None:
            super().keyPressEvent(event)
            return
        self._run_command(command)

    def _run_command(self, command: Command) -> None:
        logger.debug("Command %s", command.value)
        if command is Command.ADVANCE:
            self._progression.advance()
        elif command is Command.RESET:
            self._progression.reset()
        elif command is Command.TOGGLE_INFO:
            if self._about_overlay.isVisible():
                self._about_overlay.dismiss()
            else:
                self._about_overlay.raise_()
                self._about_overlay.show()
        elif command is Command.TOGGLE_MUTE:
            self._muted = not self._muted
            self._refresh()

    def _on_frame_timer(self) -> None:
        self._progression.tick()
        if not self._progression.needs_frames:
            self._frame_timer.stop()

    def _on_progress_event(self, event: ProgressEvent) -> None:
        if event in (ProgressEvent.COMPLETED, ProgressEvent.UNLOCKED):
            self._play_cue()
        if self._progression.needs_frames and not self._frame_timer.isActive():
            self._frame_timer.start()
        self._refresh()

    def _play_cue(self) -> None:
        if not self._muted:
            QApplication.beep()

    def _refresh(self) -> None:
        p = self._progression
        self._map.set_state(p.level_views(), p.progress_fraction(), p.marker_position, p.is_moving)
        self._progress_bar.set_summary(
            ProgressSummary(
                completed=len(p.completed_level_ids),
                total=p.level_count,
                current_level_id=p.current_level_id,
            )
        )
        all_done = p.is_all_complete
        self._next_button.setVisible(not all_done)
        self._next_button.setEnabled(not p.is_transitioning)
        self._done_label.setVisible(all_done)
        self._mute_button.setText("Unmute (M)" if self._muted else "Mute (M)")

    def closeEvent(self, event: QCloseEvent) -> None:
        """Persist progress when closing the app."""
        self._frame_timer.stop()
        if not self._progression.is_transitioning:
            self._progression.save()
        super().closeEvent(event)
