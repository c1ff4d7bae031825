"""Level map canvas: circuit-trace connector, level nodes and the moving marker."""

from __future__ import annotations

from typing import Callable, Optional, Sequence

from PySide6.QtCore import Qt, QPointF, QRectF
from PySide6.QtGui import QBrush, QColor, QFont, QPainter, QPainterPath, QPen, QPolygonF
from PySide6.QtWidgets import QToolTip, QWidget

from circuitmap.core.geometry import LINE, MOVE, QUAD, PathCommand, PathDescriptor, build_path
from circuitmap.core.levels import Level, Point
from circuitmap.core.progression import LevelView
from circuitmap.ui.colors import MapColors
from circuitmap.ui.models import node_style

NODE_SIZE = 64
MARKER_RADIUS = 14

# Hexagon corners as fractions of the node box
_HEXAGON = [(0.5, 0.0), (0.933, 0.25), (0.933, 0.75), (0.5, 1.0), (0.067, 0.75), (0.067, 0.25)]


class LevelMapWidget(QWidget):
    """Paints the map in the 0..100 space of the level positions, stretched to the widget."""

    def __init__(
        self,
        *,
        on_level_clicked: Callable[[int], None],
        parent: Optional[QWidget] = None,
    ) -> None:
        super().__init__(parent)
        self._on_level_clicked = on_level_clicked
        self._views: list[LevelView] = []
        self._path = PathDescriptor()
        self._reveal = 0.0
        self._marker: Optional[Point] = None
        self._marker_moving = False
        self._hovered: Optional[int] = None

        self.setMouseTracking(True)
        self.setMinimumSize(480, 420)
        self.setAttribute(Qt.WidgetAttribute.WA_StyledBackground, True)
        self.setStyleSheet("background: transparent;")

    def set_levels(self, levels: Sequence[Level]) -> None:
        """Rebuild the connector; called whenever the level list changes."""
        self._path = build_path([lvl.position for lvl in levels])
        self.update()

    def set_state(
        self,
        views: Sequence[LevelView],
        reveal_fraction: float,
        marker: Optional[Point],
        is_moving: bool,
    ) -> None:
        self._views = list(views)
        self._reveal = reveal_fraction
        self._marker = marker
        self._marker_moving = is_moving
        self.update()

    def _map_rect(self) -> QRectF:
        pad = NODE_SIZE / 2 + 8
        return QRectF(pad, pad, max(1.0, self.width() - 2 * pad), max(1.0, self.height() - 2 * pad))

    def _to_widget(self, p: Point) -> QPointF:
        r = self._map_rect()
        return QPointF(r.x() + p.x / 100.0 * r.width(), r.y() + p.y / 100.0 * r.height())

    def _painter_path(self, commands: Sequence[PathCommand]) -> QPainterPath:
        path = QPainterPath()
        for cmd in commands:
            if cmd.op == MOVE:
                path.moveTo(self._to_widget(cmd.end))
            elif cmd.op == LINE:
                path.lineTo(self._to_widget(cmd.end))
            elif cmd.op == QUAD:
                path.quadTo(self._to_widget(cmd.points[0]), self._to_widget(cmd.end))
        return path

    def _node_at(self, pos: QPointF) -> Optional[LevelView]:
        half = NODE_SIZE / 2
        for view in reversed(self._views):
            c = self._to_widget(view.level.position)
            if abs(pos.x() - c.x()) <= half and abs(pos.y() - c.y()) <= half:
                return view
        return None

    def mouseMoveEvent(self, event) -> None:
        view = self._node_at(event.position())
        hovered = view.level.id if view is not None and node_style(view.status).clickable else None
        if hovered != self._hovered:
            self._hovered = hovered
            self.setCursor(Qt.PointingHandCursor if hovered is not None else Qt.ArrowCursor)
            if view is not None and hovered is not None:
                lvl = view.level
                QToolTip.showText(
                    event.globalPosition().toPoint(),
                    f"Level {lvl.id}: {lvl.topic}\n{lvl.difficulty} • {lvl.description}",
                    self,
                )
            else:
                QToolTip.hideText()
            self.update()
        super().mouseMoveEvent(event)

    def leaveEvent(self, event) -> None:
        self._hovered = None
        QToolTip.hideText()
        self.update()
        super().leaveEvent(event)

    def mousePressEvent(self, event) -> None:
        view = self._node_at(event.position())
        if view is not None and node_style(view.status).clickable:
            self._on_level_clicked(view.level.id)
        super().mousePressEvent(event)

    def paintEvent(self, event) -> None:
        super().paintEvent(event)
        painter = QPainter(self)
        painter.setRenderHint(QPainter.Antialiasing, True)

        if not self._path.is_empty:
            self._paint_trace(painter)
        for view in self._views:
            self._paint_pad(painter, view.level.position)
        for view in self._views:
            self._paint_node(painter, view)
        if self._marker is not None:
            self._paint_marker(painter, self._marker)

    def _paint_trace(self, painter: QPainter) -> None:
        full = self._painter_path(self._path.commands)

        glow = QPen(QColor(0, 255, 255, 60))
        glow.setWidthF(10)
        glow.setCapStyle(Qt.SquareCap)
        glow.setJoinStyle(Qt.MiterJoin)
        painter.setPen(glow)
        painter.drawPath(full)

        for color, width in ((MapColors.TRACE, 3.0), (MapColors.TRACE_SECONDARY, 1.5)):
            pen = QPen(QColor(color))
            pen.setWidthF(width)
            pen.setCapStyle(Qt.SquareCap)
            pen.setJoinStyle(Qt.MiterJoin)
            painter.setPen(pen)
            painter.drawPath(full)

        revealed = self._path.reveal(self._reveal)
        if len(revealed) > 1:
            pen = QPen(QColor(MapColors.TRACE_REVEAL))
            pen.setWidthF(2.5)
            pen.setCapStyle(Qt.RoundCap)
            pen.setStyle(Qt.DotLine)
            painter.setPen(pen)
            painter.drawPath(self._painter_path(revealed))

    def _paint_pad(self, painter: QPainter, position: Point) -> None:
        c = self._to_widget(position)
        painter.setPen(Qt.NoPen)
        painter.setBrush(QColor(MapColors.TRACE))
        painter.drawEllipse(c, 7, 7)
        painter.setBrush(QColor(MapColors.PAD_INNER))
        painter.drawEllipse(c, 3.5, 3.5)

    def _paint_node(self, painter: QPainter, view: LevelView) -> None:
        style = node_style(view.status, hovered=view.level.id == self._hovered)
        c = self._to_widget(view.level.position)
        size = NODE_SIZE * (1.15 if view.just_unlocked else 1.0)
        box = QRectF(c.x() - size / 2, c.y() - size / 2, size, size)
        hexagon = QPolygonF([QPointF(box.x() + fx * box.width(), box.y() + fy * box.height()) for fx, fy in _HEXAGON])

        glow = QColor(style.glow)
        glow.setAlpha(70)
        glow_pen = QPen(glow)
        glow_pen.setWidthF(8)
        painter.setPen(glow_pen)
        painter.setBrush(Qt.NoBrush)
        painter.drawPolygon(hexagon)

        border = QPen(QColor(style.border))
        border.setWidthF(3)
        painter.setPen(border)
        painter.setBrush(QBrush(QColor(style.fill)))
        painter.drawPolygon(hexagon)

        font = QFont(self.font())
        font.setBold(True)
        font.setPointSize(14)
        painter.setFont(font)
        painter.setPen(QColor(style.text))
        label = "\U0001F512" if not style.clickable else str(view.level.id)
        painter.drawText(box, Qt.AlignCenter, label)

        if style.show_stars:
            self._paint_stars(painter, QPointF(c.x(), box.bottom() + 10), view.level.stars)

    def _paint_stars(self, painter: QPainter, center: QPointF, filled: int) -> None:
        font = QFont(self.font())
        font.setPointSize(9)
        painter.setFont(font)
        for i in range(3):
            painter.setPen(QColor(MapColors.STAR_FILLED if i < filled else MapColors.STAR_EMPTY))
            cell = QRectF(center.x() - 24 + i * 16, center.y() - 8, 16, 16)
            painter.drawText(cell, Qt.AlignCenter, "★")

    def _paint_marker(self, painter: QPainter, position: Point) -> None:
        c = self._to_widget(position)
        halo = QColor(MapColors.CURRENT)
        halo.setAlpha(110 if self._marker_moving else 60)
        painter.setPen(Qt.NoPen)
        painter.setBrush(halo)
        painter.drawEllipse(c, MARKER_RADIUS + 6, MARKER_RADIUS + 6)
        painter.setBrush(QColor(MapColors.PAD_INNER))
        painter.drawEllipse(c, MARKER_RADIUS, MARKER_RADIUS)
        painter.setBrush(QColor(MapColors.CURRENT))
        painter.drawEllipse(c, MARKER_RADIUS - 5, MARKER_RADIUS - 5)
