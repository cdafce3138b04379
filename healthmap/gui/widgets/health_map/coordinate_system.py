"""
Health Map Coordinate System Module.

Handles translation between three coordinate spaces:
1. Client coordinates: pixels in the widget that shows the canvas. Depend
   on the device and the current window size.
2. Logical coordinates: the fixed LOGICAL_WIDTH x LOGICAL_HEIGHT canvas.
3. Fractional coordinates: (0.0, 0.0) top-left to (1.0, 1.0) bottom-right
   of the logical canvas. This is what gets persisted.

The on-screen bounding box of the canvas comes from an injected metrics
provider, so the math can be exercised without a rendering surface.
"""

from typing import Callable, Optional, Tuple

from PySide6.QtCore import QPointF, QRectF

from healthmap.app.constants import LOGICAL_HEIGHT, LOGICAL_WIDTH

MetricsProvider = Callable[[], Optional[QRectF]]


class HealthMapCoordinateSystem:
    """
    Converts between client, logical and fractional coordinates.

    Every operation that needs the bounding box returns None while the
    canvas cannot be measured (no provider, not shown yet, zero size).
    """

    def __init__(
        self,
        metrics_provider: Optional[MetricsProvider] = None,
        logical_width: float = LOGICAL_WIDTH,
        logical_height: float = LOGICAL_HEIGHT,
    ) -> None:
        """
        Args:
            metrics_provider: Returns the canvas bounding box in client
                coordinates, or None if it is not measurable.
            logical_width: Width of the logical canvas.
            logical_height: Height of the logical canvas.
        """
        self._metrics_provider = metrics_provider
        self.logical_width = float(logical_width)
        self.logical_height = float(logical_height)

    def bounding_box(self) -> Optional[QRectF]:
        """
        Current canvas box in client coordinates, or None if unmeasurable.
        """
        if self._metrics_provider is None:
            return None
        box = self._metrics_provider()
        if box is None or box.isEmpty() or box.width() <= 0 or box.height() <= 0:
            return None
        return box

    def client_to_logical(self, point: QPointF) -> Optional[QPointF]:
        """
        Projects a client point onto the logical canvas.

        Args:
            point: Pointer position in client coordinates.

        Returns:
            Optional[QPointF]: Logical canvas position, or None.
        """
        box = self.bounding_box()
        if box is None:
            return None
        scale_x = self.logical_width / box.width()
        scale_y = self.logical_height / box.height()
        return QPointF(
            (point.x() - box.left()) * scale_x,
            (point.y() - box.top()) * scale_y,
        )

    def client_to_fraction(self, point: QPointF) -> Optional[Tuple[float, float]]:
        """
        Converts a client point to fractional coordinates.

        Args:
            point: Pointer position in client coordinates.

        Returns:
            Optional[Tuple[float, float]]: (fx, fy), not clamped, or None.
        """
        logical = self.client_to_logical(point)
        if logical is None:
            return None
        return self.logical_to_fraction(logical)

    def fraction_to_client(self, fx: float, fy: float) -> Optional[QPointF]:
        """
        Converts stored fractional coordinates to a client point using the
        current bounding box.

        Returns:
            Optional[QPointF]: Client position, or None.
        """
        box = self.bounding_box()
        if box is None:
            return None
        return QPointF(box.left() + fx * box.width(), box.top() + fy * box.height())

    def fraction_to_logical(self, fx: float, fy: float) -> QPointF:
        return QPointF(fx * self.logical_width, fy * self.logical_height)

    def logical_to_fraction(self, point: QPointF) -> Tuple[float, float]:
        return point.x() / self.logical_width, point.y() / self.logical_height

    @staticmethod
    def contains_fraction(fx: float, fy: float) -> bool:
        return 0.0 <= fx <= 1.0 and 0.0 <= fy <= 1.0
