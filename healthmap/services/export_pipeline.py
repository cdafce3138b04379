"""
Health Map Export Pipeline.

Flattens the current background and all markers into one PNG and hands it
to the photo storage service. Once uploaded, an export is an ordinary pet
photo.

Pipeline:
1. Allocate a raster surface at EXPORT_SCALE x the logical canvas.
2. Draw the background: a photo with a "cover" fit, or a flat color.
3. Render the static SVG overlay (markers, plus the recolored silhouette
   when no photo is shown).
4. Composite the overlay over the background at full size.
5. Encode to PNG.
6. Upload through the persistence gateway.
"""

import logging
from typing import Callable, Optional, Sequence, Tuple

from PySide6.QtCore import QBuffer, QByteArray, QIODevice, QRectF
from PySide6.QtGui import QColor, QImage, QPainter
from PySide6.QtSvg import QSvgRenderer

from healthmap.app.constants import (
    BACKGROUND_COLOR,
    EXPORT_IMAGE_FORMAT,
    EXPORT_SCALE,
    LOGICAL_HEIGHT,
    LOGICAL_WIDTH,
    SILHOUETTE_EXPORT_COLOR,
)
from healthmap.commands.base_command import CommandResult
from healthmap.core.background import Background
from healthmap.core.marker import Marker
from healthmap.core.overlay import build_overlay_svg
from healthmap.services.background_provider import BackgroundProvider
from healthmap.services.image_loader import ImageLoadError, load_image_bytes
from healthmap.services.marker_store import MarkerStore
from healthmap.services.persistence_gateway import PersistenceGateway
from healthmap.services.worker import TaskExecutor

logger = logging.getLogger(__name__)


class ExportError(Exception):
    """Raised when the composite image cannot be produced."""


def cover_source_rect(
    src_width: float, src_height: float, dst_width: float, dst_height: float
) -> Tuple[float, float, float, float]:
    """
    Computes the centered crop of a source image for a "cover" fit.

    The source is scaled uniformly so it fills the destination completely;
    the overflowing dimension is cropped equally on both sides.

    Args:
        src_width: Source image width in pixels.
        src_height: Source image height in pixels.
        dst_width: Destination width.
        dst_height: Destination height.

    Returns:
        Tuple[float, float, float, float]: (x, y, width, height) in source pixels.

    Raises:
        ValueError: If any dimension is not positive.
    """
    if min(src_width, src_height, dst_width, dst_height) <= 0:
        raise ValueError("Cover fit requires positive dimensions")

    scale = max(dst_width / src_width, dst_height / src_height)
    crop_width = dst_width / scale
    crop_height = dst_height / scale
    return (
        (src_width - crop_width) / 2.0,
        (src_height - crop_height) / 2.0,
        crop_width,
        crop_height,
    )


class HealthMapExporter:
    """
    Renders a pet's health map to PNG and uploads it as a photo.
    """

    def __init__(
        self,
        store: MarkerStore,
        background: BackgroundProvider,
        gateway: PersistenceGateway,
        image_loader: Callable[[str], bytes] = load_image_bytes,
    ) -> None:
        """
        Args:
            store: Source of the markers to draw.
            background: Source of the background selection.
            gateway: Used for the final upload.
            image_loader: Fetches encoded photo bytes for a URL.
        """
        self._store = store
        self._background = background
        self._gateway = gateway
        self._image_loader = image_loader

    @property
    def can_export(self) -> bool:
        """Exporting is only offered when there is at least one marker."""
        return len(self._store) > 0

    def render(
        self,
        markers: Optional[Sequence[Marker]] = None,
        background: Optional[Background] = None,
    ) -> bytes:
        """
        Composites background and markers into PNG bytes.

        Args:
            markers: Markers to draw. Defaults to the store's current list.
            background: Background to draw. Defaults to the current one.

        Returns:
            bytes: PNG-encoded image at EXPORT_SCALE x the logical canvas.

        Raises:
            ExportError: If the photo cannot be loaded or decoded, or the
                graphics surface cannot be used.
        """
        if markers is None:
            markers = self._store.list()
        if background is None:
            background = self._background.current()

        width = LOGICAL_WIDTH * EXPORT_SCALE
        height = LOGICAL_HEIGHT * EXPORT_SCALE
        target = QRectF(0, 0, width, height)

        image = QImage(width, height, QImage.Format.Format_ARGB32_Premultiplied)
        if image.isNull():
            raise ExportError("Could not allocate export surface")

        photo = self._load_photo(background.url) if background.is_photo else None

        painter = QPainter()
        if not painter.begin(image):
            raise ExportError("Graphics context unavailable")
        try:
            painter.setRenderHint(QPainter.RenderHint.Antialiasing)
            painter.setRenderHint(QPainter.RenderHint.SmoothPixmapTransform)

            if photo is not None:
                sx, sy, sw, sh = cover_source_rect(
                    photo.width(), photo.height(), width, height
                )
                painter.drawImage(target, photo, QRectF(sx, sy, sw, sh))
            else:
                painter.fillRect(target, QColor(BACKGROUND_COLOR))

            overlay = build_overlay_svg(
                markers,
                silhouette_color=None if photo is not None else SILHOUETTE_EXPORT_COLOR,
            )
            renderer = QSvgRenderer(QByteArray(overlay.encode("utf-8")))
            if not renderer.isValid():
                raise ExportError("Overlay could not be rendered")
            renderer.render(painter, target)
        finally:
            painter.end()

        return self._encode(image)

    def flatten(
        self,
        markers: Optional[Sequence[Marker]] = None,
        background: Optional[Background] = None,
    ) -> CommandResult:
        """
        Renders the health map and uploads it exactly once.

        Args:
            markers: Markers to draw. Defaults to the store's current list.
            background: Background to draw. Defaults to the current one.

        Returns:
            CommandResult: On success ``data`` holds ``image`` (PNG bytes)
            and ``photo``. Any load, render or upload failure is a single
            failed result; nothing is retried.
        """
        if markers is None:
            markers = self._store.list()
        if not markers:
            return CommandResult(
                success=False,
                message="Nothing to export: the health map has no markers.",
                command_name="FlattenHealthMap",
            )

        try:
            image_bytes = self.render(markers, background)
        except ExportError as e:
            logger.error(f"Health map export failed for pet {self._store.pet_id}: {e}")
            return CommandResult(
                success=False, message=str(e), command_name="FlattenHealthMap"
            )

        result = self._gateway.upload_photo(self._store.pet_id, image_bytes)
        result.command_name = "FlattenHealthMap"
        if result.success:
            result.data["image"] = image_bytes
            logger.info(
                f"Exported health map for pet {self._store.pet_id} "
                f"({len(markers)} marker(s), {len(image_bytes)} bytes)"
            )
        return result

    def flatten_async(
        self,
        executor: TaskExecutor,
        on_done: Callable[[CommandResult], None],
    ) -> bool:
        """
        Snapshots the current state and flattens it on the executor.

        Args:
            executor: Runs the render and upload.
            on_done: Receives the CommandResult.

        Returns:
            bool: False if there was nothing to export.
        """
        if not self.can_export:
            return False
        markers = self._store.list()
        background = self._background.current()
        executor.submit(
            lambda: self.flatten(markers, background),
            on_done,
            description=f"Flatten health map {self._store.pet_id}",
        )
        return True

    def _load_photo(self, url: str) -> QImage:
        try:
            data = self._image_loader(url)
        except ImageLoadError as e:
            raise ExportError(str(e)) from e

        photo = QImage()
        if not photo.loadFromData(data) or photo.isNull():
            raise ExportError(f"Could not decode background photo: {url}")
        return photo

    @staticmethod
    def _encode(image: QImage) -> bytes:
        buffer = QBuffer()
        if not buffer.open(QIODevice.OpenModeFlag.WriteOnly):
            raise ExportError("Could not open encode buffer")
        try:
            if not image.save(buffer, EXPORT_IMAGE_FORMAT):
                raise ExportError("PNG encoding failed")
            data = bytes(buffer.data().data())
        finally:
            buffer.close()
        if not data:
            raise ExportError("PNG encoding produced no data")
        return data
