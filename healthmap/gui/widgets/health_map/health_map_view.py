"""
Health Map Graphics View Module.

Provides the HealthMapView: the interactive canvas that shows the background
(dog silhouette or a pet photo) and the markers, and turns mouse and touch
presses into canvas/marker press signals.
"""

import logging
from typing import Callable, Dict, List, Optional

from PySide6.QtCore import QByteArray, QEvent, QPointF, QRectF, QSize, Qt, Signal
from PySide6.QtGui import (
    QBrush,
    QColor,
    QImage,
    QMouseEvent,
    QPainter,
    QPixmap,
    QResizeEvent,
    QTouchEvent,
)
from PySide6.QtSvg import QSvgRenderer
from PySide6.QtSvgWidgets import QGraphicsSvgItem
from PySide6.QtWidgets import (
    QGraphicsPixmapItem,
    QGraphicsScene,
    QGraphicsView,
    QWidget,
)
from shiboken6 import isValid

from healthmap.app.constants import (
    BACKGROUND_COLOR,
    LOGICAL_HEIGHT,
    LOGICAL_WIDTH,
    SILHOUETTE_COLOR,
)
from healthmap.commands.base_command import CommandResult
from healthmap.core.background import Background
from healthmap.core.marker import Marker
from healthmap.core.silhouette import silhouette_svg
from healthmap.gui.widgets.health_map.coordinate_system import (
    HealthMapCoordinateSystem,
)
from healthmap.gui.widgets.health_map.marker_item import (
    DraftMarkerItem,
    HealthMarkerItem,
)
from healthmap.services.export_pipeline import cover_source_rect
from healthmap.services.image_loader import ImageLoadError, load_image_bytes
from healthmap.services.worker import InlineExecutor, TaskExecutor

logger = logging.getLogger(__name__)


class HealthMapView(QGraphicsView):
    """
    Graphics view for the health map canvas.

    The scene rect is the logical canvas and is always fitted into the
    viewport with its aspect ratio kept.

    Signals:
        canvas_pressed: Empty canvas pressed. Args: (fx: float, fy: float)
        marker_pressed: Existing marker pressed. Args: (marker_id: str)
    """

    canvas_pressed = Signal(float, float)
    marker_pressed = Signal(str)

    def __init__(
        self,
        parent: Optional[QWidget] = None,
        image_loader: Callable[[str], bytes] = load_image_bytes,
        executor: Optional[TaskExecutor] = None,
    ) -> None:
        """
        Initializes the HealthMapView.

        Args:
            parent: Parent widget.
            image_loader: Callable fetching encoded image bytes for a url.
            executor: Runs photo downloads and decoding. Defaults to inline.
        """
        super().__init__(parent)
        self._image_loader = image_loader
        self._executor = executor or InlineExecutor()
        self._photo_request = 0

        self.scene = QGraphicsScene(self)
        self.scene.setSceneRect(QRectF(0, 0, LOGICAL_WIDTH, LOGICAL_HEIGHT))
        self.scene.setBackgroundBrush(QBrush(QColor(BACKGROUND_COLOR)))
        self.setScene(self.scene)

        self.setRenderHint(QPainter.Antialiasing)
        self.setRenderHint(QPainter.SmoothPixmapTransform)
        self.setDragMode(QGraphicsView.DragMode.NoDrag)
        self.setHorizontalScrollBarPolicy(Qt.ScrollBarPolicy.ScrollBarAlwaysOff)
        self.setVerticalScrollBarPolicy(Qt.ScrollBarPolicy.ScrollBarAlwaysOff)

        # Touch is handled on the canvas only; no synthesized gestures
        self.viewport().setAttribute(Qt.WidgetAttribute.WA_AcceptTouchEvents, True)

        self.coordinates = HealthMapCoordinateSystem(self.canvas_viewport_rect)

        self.photo_item = QGraphicsPixmapItem()
        self.photo_item.setZValue(0)
        self.photo_item.setVisible(False)
        self.photo_item.setTransformationMode(Qt.TransformationMode.SmoothTransformation)
        self.scene.addItem(self.photo_item)

        self._silhouette_renderer = QSvgRenderer(
            QByteArray(silhouette_svg(SILHOUETTE_COLOR).encode("utf-8")), self
        )
        self.silhouette_item = QGraphicsSvgItem()
        self.silhouette_item.setSharedRenderer(self._silhouette_renderer)
        self.silhouette_item.setZValue(1)
        self.scene.addItem(self.silhouette_item)

        self.draft_item = DraftMarkerItem()
        self.scene.addItem(self.draft_item)

        self.markers: Dict[str, HealthMarkerItem] = {}
        self._selected_id: Optional[str] = None
        self._background = Background.silhouette()
        self._silhouette_enabled = True

    def minimumSizeHint(self) -> QSize:
        return QSize(200, 150)

    def sizeHint(self) -> QSize:
        return QSize(LOGICAL_WIDTH * 2, LOGICAL_HEIGHT * 2)

    # --- Geometry ----------------------------------------------------------

    def canvas_viewport_rect(self) -> Optional[QRectF]:
        """
        Bounding box of the logical canvas in viewport pixels, or None
        before the view has a usable size.
        """
        if self.viewport().width() <= 0 or self.viewport().height() <= 0:
            return None
        rect = self.mapFromScene(self.scene.sceneRect()).boundingRect()
        if rect.width() <= 0 or rect.height() <= 0:
            return None
        return QRectF(rect)

    def resizeEvent(self, event: QResizeEvent) -> None:
        super().resizeEvent(event)
        self.fit_to_view()

    def showEvent(self, event) -> None:
        super().showEvent(event)
        self.fit_to_view()

    def fit_to_view(self) -> None:
        """Fits the logical canvas to the current view size."""
        self.fitInView(self.scene.sceneRect(), Qt.AspectRatioMode.KeepAspectRatio)

    # --- Background --------------------------------------------------------

    def set_background(self, background: Background) -> None:
        """
        Shows a photo (cover fit) or the plain silhouette canvas.

        Photos are fetched and decoded on the executor; the silhouette stays
        up until the image arrives, and for good if it cannot be loaded.
        Only the most recent request may change the canvas.
        """
        self._background = background
        self._photo_request += 1
        self.photo_item.setVisible(False)
        self.photo_item.setPixmap(QPixmap())
        self._update_silhouette()
        if not background.is_photo:
            return

        request = self._photo_request
        url = background.url
        self._executor.submit(
            lambda: self._load_photo(url),
            lambda result: self._on_photo_loaded(request, result),
            description=f"Load background photo {url}",
        )

    def set_silhouette_visible(self, visible: bool) -> None:
        """Toggles the outline drawn over a photo background."""
        self._silhouette_enabled = visible
        self._update_silhouette()

    def _update_silhouette(self) -> None:
        showing_photo = self.photo_item.isVisible()
        self.silhouette_item.setVisible(not showing_photo or self._silhouette_enabled)

    def _load_photo(self, url: str) -> CommandResult:
        # Runs on the executor thread: QImage only, no pixmaps or items.
        try:
            data = self._image_loader(url)
        except ImageLoadError as e:
            return CommandResult(success=False, message=f"Could not load background photo: {e}")

        image = QImage()
        if not image.loadFromData(data) or image.isNull():
            return CommandResult(
                success=False, message=f"Background photo is not a decodable image: {url}"
            )

        x, y, w, h = cover_source_rect(
            image.width(), image.height(), LOGICAL_WIDTH, LOGICAL_HEIGHT
        )
        cropped = image.copy(int(x), int(y), int(w), int(h))
        scaled = cropped.scaled(
            LOGICAL_WIDTH * 2,
            LOGICAL_HEIGHT * 2,
            Qt.AspectRatioMode.IgnoreAspectRatio,
            Qt.TransformationMode.SmoothTransformation,
        )
        return CommandResult(success=True, data={"image": scaled, "url": url})

    def _on_photo_loaded(self, request: int, result: CommandResult) -> None:
        if not isValid(self) or request != self._photo_request:
            logger.debug("Dropping stale background photo")
            return
        if not result.success:
            logger.warning(result.message)
            return

        self.photo_item.setPixmap(QPixmap.fromImage(result.data["image"]))
        self.photo_item.setScale(0.5)
        self.photo_item.setVisible(True)
        self._update_silhouette()
        logger.debug(f"Loaded background photo {result.data['url']}")

    # --- Markers -----------------------------------------------------------

    def set_markers(self, markers: List[Marker]) -> None:
        """
        Synchronizes the marker items with the given list.
        """
        wanted = {m.id: m for m in markers}

        for marker_id in list(self.markers):
            if marker_id not in wanted:
                self.scene.removeItem(self.markers.pop(marker_id))

        for marker in markers:
            item = self.markers.get(marker.id)
            if item is None:
                item = HealthMarkerItem(marker)
                self.scene.addItem(item)
                self.markers[marker.id] = item
            else:
                item.set_marker(marker)
            item.set_position(self.coordinates.fraction_to_logical(marker.x, marker.y))
            item.set_highlighted(marker.id == self._selected_id)

    def set_selected(self, marker_id: Optional[str]) -> None:
        self._selected_id = marker_id
        for item_id, item in self.markers.items():
            item.set_highlighted(item_id == marker_id)

    def show_draft(self, fx: float, fy: float) -> None:
        self.draft_item.setPos(self.coordinates.fraction_to_logical(fx, fy))
        self.draft_item.setVisible(True)

    def hide_draft(self) -> None:
        self.draft_item.setVisible(False)

    # --- Input -------------------------------------------------------------

    def mousePressEvent(self, event: QMouseEvent) -> None:
        if event.button() == Qt.MouseButton.LeftButton:
            self.handle_press(event.position())
            event.accept()
            return
        super().mousePressEvent(event)

    def mouseDoubleClickEvent(self, event: QMouseEvent) -> None:
        # A double click is two presses on the canvas, nothing more
        self.mousePressEvent(event)

    def viewportEvent(self, event: QEvent) -> bool:
        """
        Consumes touch events on the canvas so they are neither turned into
        mouse events nor into scroll/zoom gestures.
        """
        event_type = event.type()
        if event_type in (QEvent.Type.TouchBegin, QEvent.Type.TouchUpdate):
            event.accept()
            return True
        if event_type == QEvent.Type.TouchEnd:
            touch: QTouchEvent = event
            points = touch.points()
            if points:
                self.handle_press(points[0].position())
            event.accept()
            return True
        if event_type == QEvent.Type.TouchCancel:
            event.accept()
            return True
        return super().viewportEvent(event)

    def handle_press(self, pos: QPointF) -> None:
        """
        Routes a press at a viewport position to a marker or the canvas.
        Presses outside the logical canvas (letterbox margins) are ignored.
        """
        item = self.itemAt(pos.toPoint())
        if isinstance(item, HealthMarkerItem):
            logger.debug(f"Press on marker {item.marker_id}")
            self.marker_pressed.emit(item.marker_id)
            return

        fraction = self.coordinates.client_to_fraction(pos)
        if fraction is None:
            return
        fx, fy = fraction
        if not self.coordinates.contains_fraction(fx, fy):
            logger.debug(f"Press outside canvas at ({fx:.3f}, {fy:.3f})")
            return
        self.canvas_pressed.emit(fx, fy)

    def anchor_for(self, fx: float, fy: float) -> Optional[QPointF]:
        """
        Viewport position of a fractional coordinate, for anchoring popups.
        """
        return self.coordinates.fraction_to_client(fx, fy)
