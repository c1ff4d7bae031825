"""In-window About overlay widget."""

from __future__ import annotations

from typing import Optional

from PySide6.QtCore import Qt, QEvent, Signal
from PySide6.QtGui import QColor
from PySide6.QtWidgets import (
    QFrame,
    QGraphicsDropShadowEffect,
    QGridLayout,
    QLabel,
    QPushButton,
    QSizePolicy,
    QVBoxLayout,
    QWidget,
)

from circuitmap.core.commands import KEY_BINDINGS
from circuitmap.ui.colors import MapColors

_COMMAND_LABELS = {
    "advance": "Complete the current level and move on",
    "reset": "Reset all progress",
    "toggle_info": "Show or hide this panel",
    "toggle_mute": "Mute or unmute sound cues",
}


class AboutOverlay(QWidget):
    """In-window overlay for About; stays inside the main window and is clipped to it."""

    closed = Signal()

    def __init__(self, parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)
        main_layout = QGridLayout(self)
        main_layout.setContentsMargins(0, 0, 0, 0)
        main_layout.setSpacing(0)
        main_layout.setRowStretch(0, 1)
        main_layout.setColumnStretch(0, 1)

        overlay_bg = QWidget(self)
        overlay_bg.setStyleSheet("background: rgba(0, 0, 0, 0.55);")
        overlay_bg.setSizePolicy(QSizePolicy.Policy.Expanding, QSizePolicy.Policy.Expanding)
        overlay_bg.setMinimumSize(1, 1)

        def on_overlay_click(_e) -> None:
            self.dismiss()

        overlay_bg.mousePressEvent = on_overlay_click
        main_layout.addWidget(overlay_bg, 0, 0)

        container = QFrame(self)
        container.setObjectName("aboutContainer")
        container.setMinimumWidth(460)
        container.setMaximumWidth(640)
        container.setStyleSheet(
            f"""
            QFrame#aboutContainer {{
                background: {MapColors.BG_TOP};
                border: 2px solid {MapColors.UNLOCKED};
                border-radius: 24px;
            }}
            QLabel {{ color: {MapColors.TEXT_PRIMARY}; }}
            """
        )
        shadow = QGraphicsDropShadowEffect(container)
        shadow.setBlurRadius(28)
        shadow.setOffset(0, 8)
        shadow.setColor(QColor(0, 212, 255, 90))
        container.setGraphicsEffect(shadow)

        layout = QVBoxLayout(container)
        layout.setContentsMargins(32, 28, 32, 28)
        layout.setSpacing(12)

        title = QLabel("Circuit Map")
        title.setStyleSheet("font-size: 26px; font-weight: 800;")
        title.setAlignment(Qt.AlignCenter)
        layout.addWidget(title)

        tagline = QLabel("Work through each level in order. Finished levels light up green; the next one unlocks once the marker arrives.")
        tagline.setWordWrap(True)
        tagline.setAlignment(Qt.AlignCenter)
        tagline.setStyleSheet(f"color: {MapColors.TEXT_MUTED}; font-size: 13px;")
        layout.addWidget(tagline)

        keys = QFrame()
        keys.setObjectName("aboutKeys")
        keys.setStyleSheet(
            f"""
            QFrame#aboutKeys {{
                background: {MapColors.PANEL_BG};
                border: 1px solid {MapColors.PANEL_BORDER};
                border-radius: 16px;
            }}
            """
        )
        keys_layout = QGridLayout(keys)
        keys_layout.setContentsMargins(18, 14, 18, 14)
        keys_layout.setHorizontalSpacing(16)
        keys_layout.setVerticalSpacing(8)
        for row, (key, command) in enumerate(KEY_BINDINGS.items()):
            key_lbl = QLabel(key.upper())
            key_lbl.setAlignment(Qt.AlignCenter)
            key_lbl.setFixedSize(30, 30)
            key_lbl.setStyleSheet(
                f"background: {MapColors.UNLOCKED}; color: {MapColors.TEXT_DARK}; border-radius: 8px; font-weight: 900;"
            )
            keys_layout.addWidget(key_lbl, row, 0)
            keys_layout.addWidget(QLabel(_COMMAND_LABELS.get(command.value, command.value)), row, 1)
        layout.addWidget(keys)

        built_lbl = QLabel("<b>Built with:</b> Python + PySide6")
        built_lbl.setAlignment(Qt.AlignCenter)
        built_lbl.setStyleSheet(f"color: {MapColors.TEXT_MUTED}; font-size: 12px;")
        layout.addWidget(built_lbl)

        close_btn = QPushButton("Close")
        close_btn.setCursor(Qt.CursorShape.PointingHandCursor)
        close_btn.setStyleSheet(
            f"""
            QPushButton {{
                background: {MapColors.UNLOCKED};
                color: {MapColors.TEXT_DARK};
                padding: 10px 16px;
                border: none;
                border-radius: 14px;
                font-weight: 700;
            }}
            """
        )
        close_btn.clicked.connect(self.dismiss)
        layout.addWidget(close_btn)

        main_layout.addWidget(container, 0, 0, 1, 1, Qt.AlignCenter)

    def dismiss(self) -> None:
        self.hide()
        self.closed.emit()

    def _update_geometry(self) -> None:
        parent = self.parentWidget()
        if parent is not None:
            self.setGeometry(parent.rect())

    def eventFilter(self, obj: QWidget, event: QEvent) -> bool:
        if obj is self.parentWidget() and event.type() == QEvent.Type.Resize:
            self._update_geometry()
        return super().eventFilter(obj, event)

    def showEvent(self, event) -> None:
        super().showEvent(event)
        self._update_geometry()
        parent = self.parentWidget()
        if parent is not None:
            parent.installEventFilter(self)

    def hideEvent(self, event) -> None:
        parent = self.parentWidget()
        if parent is not None:
            parent.removeEventFilter(self)
        super().hideEvent(event)
