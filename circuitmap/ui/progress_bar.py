from __future__ import annotations

from typing import Optional

from PySide6.QtCore import Qt, QRectF
from PySide6.QtGui import QColor, QLinearGradient, QPainter
from PySide6.QtWidgets import QWidget

from circuitmap.ui.colors import MapColors
from circuitmap.ui.models import ProgressSummary


class MapProgressBar(QWidget):
    """Rounded progress bar with the completed count above and level range below."""

    def __init__(self, parent: Optional[QWidget] = None, *, bar_height: int = 12) -> None:
        super().__init__(parent)
        self._summary = ProgressSummary(completed=0, total=0, current_level_id=1)
        self._bar_height = bar_height
        self.setFixedHeight(bar_height + 48)
        self.setMinimumWidth(240)

    def set_summary(self, summary: ProgressSummary) -> None:
        self._summary = summary
        self.update()

    def paintEvent(self, event) -> None:
        painter = QPainter(self)
        painter.setRenderHint(QPainter.Antialiasing, True)
        painter.setRenderHint(QPainter.TextAntialiasing, True)

        w = self.width()
        top_text = QRectF(0, 0, w, 20)
        painter.setPen(QColor(MapColors.TEXT_PRIMARY))
        painter.drawText(top_text, Qt.AlignLeft | Qt.AlignVCenter, "\U0001F3C6 Progress")
        painter.drawText(top_text, Qt.AlignRight | Qt.AlignVCenter, self._summary.label)

        bar = QRectF(0, 24, w, self._bar_height)
        radius = self._bar_height / 2
        painter.setPen(QColor(MapColors.LOCKED))
        painter.setBrush(QColor(102, 102, 102, 50))
        painter.drawRoundedRect(bar, radius, radius)

        fill_width = bar.width() * self._summary.fraction
        if fill_width > 0:
            gradient = QLinearGradient(0, 0, fill_width, 0)
            gradient.setColorAt(0, QColor(MapColors.COMPLETED).lighter(120))
            gradient.setColorAt(1, QColor(MapColors.COMPLETED))
            painter.setPen(Qt.NoPen)
            painter.setBrush(gradient)
            painter.drawRoundedRect(QRectF(bar.x(), bar.y(), fill_width, bar.height()), radius, radius)

        bottom_text = QRectF(0, bar.bottom() + 4, w, 18)
        painter.setPen(QColor(MapColors.TEXT_MUTED))
        painter.drawText(bottom_text, Qt.AlignLeft | Qt.AlignVCenter, "Level 1")
        painter.drawText(bottom_text, Qt.AlignRight | Qt.AlignVCenter, f"Level {max(self._summary.total, 1)}")
        painter.setPen(QColor(MapColors.CURRENT))
        painter.drawText(bottom_text, Qt.AlignHCenter | Qt.AlignVCenter, self._summary.current_label)
