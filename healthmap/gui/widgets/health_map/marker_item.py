"""
Health Marker Item Module.

Graphics items for markers on the interactive health map canvas. Items are
drawn in logical canvas units so they scale together with the silhouette.
"""

import logging
from typing import Optional

from PySide6.QtCore import QPointF, QRectF, Qt
from PySide6.QtGui import QBrush, QColor, QCursor, QFont, QPainter, QPainterPath, QPen
from PySide6.QtWidgets import (
    QGraphicsItem,
    QGraphicsObject,
    QGraphicsSceneHoverEvent,
    QStyleOptionGraphicsItem,
    QWidget,
)

from healthmap.app.constants import (
    MARKER_COLOR,
    MARKER_GLOW_OPACITY,
    MARKER_GLOW_RADIUS,
    MARKER_LABEL_MAX_CHARS,
    MARKER_RADIUS,
    MARKER_RING_COLOR,
    MARKER_SELECTED_RADIUS,
)
from healthmap.core.marker import Marker

logger = logging.getLogger(__name__)

LABEL_FONT_SIZE = 9
LABEL_OFFSET = 14
HOVER_OPACITY = 0.8


def truncate_note(note: str, max_chars: int = MARKER_LABEL_MAX_CHARS) -> str:
    """
    Shortens a note for the on-canvas label.

    Args:
        note: Full note text.
        max_chars: Characters kept before the ellipsis.

    Returns:
        str: The note, or its first max_chars characters followed by '...'.
    """
    if len(note) <= max_chars:
        return note
    return note[:max_chars] + "..."


class HealthMarkerItem(QGraphicsObject):
    """
    One persisted marker: glow ring, red dot, optional dashed selection
    ring and a short note label above the dot.
    """

    def __init__(self, marker: Marker, parent: Optional[QGraphicsItem] = None) -> None:
        """
        Args:
            marker: The marker to display.
            parent: Optional parent item.
        """
        super().__init__(parent)
        self.marker = marker
        self._selected = False

        self.setAcceptHoverEvents(True)
        self.setCursor(QCursor(Qt.CursorShape.PointingHandCursor))
        self.setZValue(10)
        self.set_marker(marker)

    @property
    def marker_id(self) -> str:
        return self.marker.id

    def set_marker(self, marker: Marker) -> None:
        """Updates the displayed marker data."""
        self.prepareGeometryChange()
        self.marker = marker
        self.setToolTip(marker.note)
        self.update()

    def set_position(self, point: QPointF) -> None:
        self.setPos(point)

    def set_highlighted(self, selected: bool) -> None:
        if selected == self._selected:
            return
        self._selected = selected
        self.update()

    def is_highlighted(self) -> bool:
        return self._selected

    def label_text(self) -> str:
        return truncate_note(self.marker.note)

    def boundingRect(self) -> QRectF:
        """
        Covers the selection ring and the label above the dot.
        """
        radius = MARKER_SELECTED_RADIUS + 2
        width = max(radius * 2, 90)
        top = LABEL_OFFSET + 14
        return QRectF(-width / 2, -top, width, top + radius)

    def shape(self) -> QPainterPath:
        path = QPainterPath()
        path.addEllipse(QPointF(0, 0), MARKER_GLOW_RADIUS, MARKER_GLOW_RADIUS)
        return path

    def paint(
        self,
        painter: QPainter,
        option: QStyleOptionGraphicsItem,
        widget: Optional[QWidget] = None,
    ) -> None:
        painter.setRenderHint(QPainter.Antialiasing)
        color = QColor(MARKER_COLOR)

        glow = QColor(color)
        glow.setAlphaF(MARKER_GLOW_OPACITY)
        painter.setPen(Qt.PenStyle.NoPen)
        painter.setBrush(QBrush(glow))
        painter.drawEllipse(QPointF(0, 0), MARKER_GLOW_RADIUS, MARKER_GLOW_RADIUS)

        painter.setPen(QPen(QColor(MARKER_RING_COLOR), 2))
        painter.setBrush(QBrush(color))
        painter.drawEllipse(QPointF(0, 0), MARKER_RADIUS, MARKER_RADIUS)

        if self._selected:
            ring = QPen(color, 2)
            ring.setStyle(Qt.PenStyle.DashLine)
            painter.setPen(ring)
            painter.setBrush(Qt.BrushStyle.NoBrush)
            painter.drawEllipse(
                QPointF(0, 0), MARKER_SELECTED_RADIUS, MARKER_SELECTED_RADIUS
            )

        label = self.label_text()
        if label and not self._selected:
            font = QFont()
            font.setPointSizeF(LABEL_FONT_SIZE)
            painter.setFont(font)
            painter.setPen(QColor("#374151"))
            rect = QRectF(-45, -LABEL_OFFSET - 12, 90, 14)
            painter.drawText(rect, Qt.AlignmentFlag.AlignCenter, label)

    def hoverEnterEvent(self, event: QGraphicsSceneHoverEvent) -> None:
        self.setOpacity(HOVER_OPACITY)
        super().hoverEnterEvent(event)

    def hoverLeaveEvent(self, event: QGraphicsSceneHoverEvent) -> None:
        self.setOpacity(1.0)
        super().hoverLeaveEvent(event)


class DraftMarkerItem(QGraphicsItem):
    """
    Pending placement shown while the note editor is open. Not in the store.
    """

    def __init__(self, parent: Optional[QGraphicsItem] = None) -> None:
        super().__init__(parent)
        self.setZValue(11)
        self.setVisible(False)

    def boundingRect(self) -> QRectF:
        r = MARKER_GLOW_RADIUS + 2
        return QRectF(-r, -r, r * 2, r * 2)

    def paint(
        self,
        painter: QPainter,
        option: QStyleOptionGraphicsItem,
        widget: Optional[QWidget] = None,
    ) -> None:
        painter.setRenderHint(QPainter.Antialiasing)
        color = QColor(MARKER_COLOR)
        color.setAlphaF(0.6)
        pen = QPen(QColor(MARKER_COLOR), 2)
        pen.setStyle(Qt.PenStyle.DashLine)
        painter.setPen(pen)
        painter.setBrush(QBrush(color))
        painter.drawEllipse(QPointF(0, 0), MARKER_RADIUS, MARKER_RADIUS)
